"""
OpenRouter provider implementation.

OpenRouter exposes an OpenAI-compatible API at https://openrouter.ai/api/v1,
including the text completions endpoint. Uses the OpenAI SDK with a custom
base_url. No extra dependencies.
"""

from llm.openai_provider import OpenAIProvider


class OpenRouterProvider(OpenAIProvider):
    base_url = "https://openrouter.ai/api/v1"
    label = "openrouter"
    key_name = "OPENROUTER_API_KEY"
