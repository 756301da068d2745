"""
Error taxonomy. Everything raised by this package derives from LLMError.

Persistence failures are plain OSError (IOError), raised by the filesystem.
"""


class LLMError(Exception):
    """Base class for every error raised by the completion layer."""
    pass


class ConfigError(LLMError, ValueError):
    """Invalid, missing or unknown configuration value."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class ValidationError(LLMError, ValueError):
    """Caller input violation (empty prompt list, wrong types)."""
    pass


class ResponseFormatError(LLMError):
    """Provider response is structurally unusable."""

    def __init__(
        self,
        message: str,
        prompt_index: int | None = None,
        field: str | None = None,
    ):
        super().__init__(message)
        self.prompt_index = prompt_index
        self.field = field


class EmptyResponseError(ResponseFormatError):
    """Provider returned zero choices where at least one was required."""
    pass


class ProviderError(LLMError):
    """Transport or auth failure inside a provider. Never retried here."""
    pass
