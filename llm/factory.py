"""
Provider factory. Reads config, returns the right CompletionProvider.
"""

from config.settings import Config
from llm.errors import ConfigError
from llm.provider import CompletionProvider


def create_provider(config: Config) -> CompletionProvider:
    """Create provider based on config. Provider selected at runtime."""
    provider = config.llm_provider.lower()

    if provider == "openai":
        from llm.openai_provider import OpenAIProvider
        return OpenAIProvider(
            api_key=config.openai_api_key,
            batch_size=config.batch_size,
            request_timeout=config.request_timeout,
            max_retries=config.max_retries,
        )
    elif provider == "openrouter":
        from llm.openrouter_provider import OpenRouterProvider
        return OpenRouterProvider(
            api_key=config.openrouter_api_key,
            batch_size=config.batch_size,
            request_timeout=config.request_timeout,
            max_retries=config.max_retries,
        )
    elif provider == "claude":
        from llm.claude_provider import ClaudeProvider
        return ClaudeProvider(
            api_key=config.anthropic_api_key,
            request_timeout=config.request_timeout,
            max_retries=config.max_retries,
        )
    else:
        raise ConfigError(
            f"Unknown LLM provider: '{provider}'. "
            f"Set COMPLETION_LLM_PROVIDER to 'openai', 'openrouter', or 'claude'.",
            key="llm_provider",
        )
