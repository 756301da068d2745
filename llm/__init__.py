from llm.errors import (
    LLMError,
    ConfigError,
    ValidationError,
    ResponseFormatError,
    EmptyResponseError,
    ProviderError,
)
from llm.provider import CompletionProvider, RawResponse

__all__ = [
    "LLMError",
    "ConfigError",
    "ValidationError",
    "ResponseFormatError",
    "EmptyResponseError",
    "ProviderError",
    "CompletionProvider",
    "RawResponse",
]
