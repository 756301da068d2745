"""
Configuration. All settings from env vars or a .env file.
No YAML. No TOML parsing. Request parameters live in ParameterSet, not here.
"""

import os
from dataclasses import dataclass, fields, replace

# Auto-load .env file so you don't need `export $(grep ...)` every time
from dotenv import load_dotenv

from llm.errors import ConfigError

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    # Provider: "openai" | "openrouter" | "claude"
    llm_provider: str = os.environ.get("COMPLETION_LLM_PROVIDER", "openai")

    # API keys, read from env only, never stored
    openai_api_key: str = os.environ.get("OPENAI_API_KEY", "")
    openrouter_api_key: str = os.environ.get("OPENROUTER_API_KEY", "")
    anthropic_api_key: str = os.environ.get("ANTHROPIC_API_KEY", "")

    # Prompts per underlying request (completions endpoint only)
    batch_size: int = int(os.environ.get("COMPLETION_BATCH_SIZE", "20"))

    # Transport knobs, handed to the vendor SDK client
    request_timeout: float = float(os.environ.get("COMPLETION_REQUEST_TIMEOUT", "60"))
    max_retries: int = int(os.environ.get("COMPLETION_MAX_RETRIES", "2"))

    # Reject unknown parameter keys instead of dropping them
    strict_params: bool = _env_bool("COMPLETION_STRICT_PARAMS", "true")


SETTING_KEYS = frozenset(f.name for f in fields(Config))


def load_config(**overrides) -> Config:
    unknown = sorted(set(overrides) - SETTING_KEYS)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}", key=unknown[0])
    return replace(Config(), **overrides)

