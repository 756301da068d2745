from storage.params_file import save_params, load_params

__all__ = ["save_params", "load_params"]
