"""
Core data types: request parameters in, generations out.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace as dc_replace
from pathlib import Path
from types import MappingProxyType

from llm.display import format_params
from llm.errors import ConfigError
from storage.params_file import save_params

log = logging.getLogger(__name__)

DEFAULT_MODEL = "text-davinci-003"

# Canonical on-disk key order. model_name and model both carry the model;
# older documents only have one of them.
PARAM_KEYS = (
    "model_name",
    "model",
    "temperature",
    "max_tokens",
    "top_p",
    "frequency_penalty",
    "presence_penalty",
    "n",
    "best_of",
    "logit_bias",
)


def _number(key: str, value, low: float, high: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(
            f"{key} must be a number, got {type(value).__name__}", key=key
        )
    if not low <= value <= high:
        raise ConfigError(f"{key} must be in [{low}, {high}], got {value}", key=key)
    return float(value)


def _integer(key: str, value, low: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(
            f"{key} must be an integer, got {type(value).__name__}", key=key
        )
    if value < low:
        raise ConfigError(f"{key} must be >= {low}, got {value}", key=key)
    return value


def _logit_bias(value) -> dict[int, float]:
    if not isinstance(value, Mapping):
        raise ConfigError(
            f"logit_bias must be a mapping, got {type(value).__name__}", key="logit_bias"
        )
    bias = {}
    for token, weight in value.items():
        if isinstance(token, str) and token.strip().isascii() and token.strip().isdigit():
            token = int(token)
        if isinstance(token, bool) or not isinstance(token, int) or token < 0:
            raise ConfigError(
                f"logit_bias key must be a non-negative token id, got {token!r}",
                key="logit_bias",
            )
        bias[token] = _number(f"logit_bias[{token}]", weight, -100, 100)
    return dict(sorted(bias.items()))


@dataclass(frozen=True)
class ParameterSet:
    """
    Typed request parameters, validated once at construction.

    Immutable. Use replace() to get a reconfigured copy.
    """
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    max_tokens: int = 256           # -1 = let the provider decide
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    n: int = 1                      # completions per prompt
    best_of: int = 1                # server-side candidates, >= n
    logit_bias: Mapping = field(default_factory=dict, hash=False)   # read-only after init

    def __post_init__(self):
        if not isinstance(self.model, str) or not self.model.strip():
            raise ConfigError("model must be a non-empty string", key="model")

        checked = {
            "temperature": _number("temperature", self.temperature, 0, 2),
            "max_tokens": _integer("max_tokens", self.max_tokens, -1),
            "top_p": _number("top_p", self.top_p, 0, 1),
            "frequency_penalty": _number("frequency_penalty", self.frequency_penalty, -2, 2),
            "presence_penalty": _number("presence_penalty", self.presence_penalty, -2, 2),
            "n": _integer("n", self.n, 1),
            "best_of": _integer("best_of", self.best_of, 1),
            "logit_bias": MappingProxyType(_logit_bias(self.logit_bias)),
        }
        if checked["best_of"] < checked["n"]:
            raise ConfigError(
                f"best_of ({checked['best_of']}) must be >= n ({checked['n']})",
                key="best_of",
            )

        # frozen: normalised values go in through object.__setattr__
        for key, value in checked.items():
            object.__setattr__(self, key, value)

    @classmethod
    def from_config(cls, config: Mapping, strict: bool = True) -> "ParameterSet":
        """
        Build from a flat config map (order-insensitive).

        Accepts model_name as an alias of model. Unknown keys raise
        ConfigError when strict, otherwise they are dropped with a warning.
        """
        if not isinstance(config, Mapping):
            raise ConfigError(f"config must be a mapping, got {type(config).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(str(k) for k in config if k not in known and k != "model_name")
        if unknown:
            if strict:
                raise ConfigError(
                    f"Unknown parameter(s): {', '.join(unknown)}", key=unknown[0]
                )
            log.warning(f"Dropping unknown parameter(s): {', '.join(unknown)}")

        kwargs = {k: v for k, v in config.items() if k in known}
        if "model_name" in config:
            alias = config["model_name"]
            if "model" in kwargs and kwargs["model"] != alias:
                raise ConfigError(
                    f"model ({kwargs['model']!r}) and model_name ({alias!r}) disagree",
                    key="model_name",
                )
            kwargs["model"] = alias
        return cls(**kwargs)

    def replace(self, **changes) -> "ParameterSet":
        """Return a new, re-validated ParameterSet with changes applied."""
        if "model_name" in changes:
            alias = changes.pop("model_name")
            if "model" in changes and changes["model"] != alias:
                raise ConfigError(
                    f"model ({changes['model']!r}) and model_name ({alias!r}) disagree",
                    key="model_name",
                )
            changes["model"] = alias
        try:
            return dc_replace(self, **changes)
        except TypeError as e:
            raise ConfigError(str(e)) from e

    def to_map(self) -> dict:
        """Every field in canonical order, JSON-ready."""
        values = {
            "model_name": self.model,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
            "n": self.n,
            "best_of": self.best_of,
            "logit_bias": {str(k): v for k, v in self.logit_bias.items()},
        }
        return {key: values[key] for key in PARAM_KEYS}

    def save(self, path: str | Path) -> Path:
        return save_params(self.to_map(), path)

    def to_display_string(self, type_name: str | None = None) -> str:
        return format_params(self.to_map(), type_name or type(self).__name__)


def _freeze(value):
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    return value


def _thaw(value):
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    return value


@dataclass(frozen=True)
class Generation:
    """One completion for one prompt."""
    text: str
    generation_info: Mapping | None = field(default=None, hash=False)   # finish_reason, logprobs

    def __post_init__(self):
        if self.generation_info is not None:
            object.__setattr__(self, "generation_info", MappingProxyType(dict(self.generation_info)))

    def to_dict(self) -> dict:
        info = dict(self.generation_info) if self.generation_info is not None else None
        return {"text": self.text, "generation_info": info}


@dataclass(frozen=True)
class LLMResult:
    """
    Output of one generate() call.

    generations[i] holds the completions for prompts[i], in prompt order.
    llm_output carries token_usage and model_name.
    """
    generations: tuple[tuple[Generation, ...], ...]
    llm_output: Mapping = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "generations", tuple(tuple(p) for p in self.generations))
        object.__setattr__(self, "llm_output", _freeze(self.llm_output))

    def first_generation_text(self) -> str:
        if not self.generations or not self.generations[0]:
            return ""
        return self.generations[0][0].text

    def flatten(self) -> list[Generation]:
        """All generations in prompt order, then choice order."""
        return [gen for per_prompt in self.generations for gen in per_prompt]

    def texts(self) -> list[str]:
        return [gen.text for gen in self.flatten()]

    @property
    def token_usage(self) -> Mapping:
        return self.llm_output.get("token_usage", MappingProxyType({}))

    def to_dict(self) -> dict:
        return {
            "generations": [[g.to_dict() for g in per_prompt] for per_prompt in self.generations],
            "llm_output": _thaw(self.llm_output),
        }

    def __repr__(self) -> str:
        count = sum(len(p) for p in self.generations)
        return f"LLMResult(prompts={len(self.generations)}, generations={count})"
