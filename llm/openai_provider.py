"""
OpenAI completions provider implementation.

Uses the text completions endpoint, which accepts a list of prompts
per request and returns n choices per prompt.
"""

import logging

from llm.errors import ConfigError, ProviderError
from llm.provider import CompletionProvider, RawResponse
from llm.usage import merge_token_usage

log = logging.getLogger(__name__)


def completion_kwargs(params) -> dict:
    """Request body fields for a ParameterSet. Provider defaults are omitted."""
    kwargs = {
        "model": params.model,
        "temperature": params.temperature,
        "top_p": params.top_p,
        "frequency_penalty": params.frequency_penalty,
        "presence_penalty": params.presence_penalty,
        "n": params.n,
        "best_of": params.best_of,
    }
    if params.max_tokens != -1:
        kwargs["max_tokens"] = params.max_tokens
    if params.logit_bias:
        kwargs["logit_bias"] = {str(k): v for k, v in params.logit_bias.items()}
    return kwargs


class OpenAIProvider(CompletionProvider):
    base_url: str | None = None
    label = "openai"
    key_name = "OPENAI_API_KEY"

    def __init__(
        self,
        api_key: str,
        batch_size: int = 20,
        request_timeout: float = 60.0,
        max_retries: int = 2,
        client=None,
    ):
        if batch_size < 1:
            raise ConfigError(f"batch_size must be >= 1, got {batch_size}", key="batch_size")
        self._batch_size = batch_size

        if client is not None:
            self._client = client
            return
        if not api_key:
            raise ConfigError(f"{self.key_name} not set", key=self.key_name.lower())
        try:
            import openai
        except ImportError:
            raise ConfigError("openai package not installed: pip install openai")
        self._client = openai.OpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=request_timeout,
            max_retries=max_retries,
        )

    def complete(self, prompts: list[str], params) -> RawResponse:
        kwargs = completion_kwargs(params)
        choices: list[dict] = []
        usages: list[dict] = []
        model = params.model

        for start in range(0, len(prompts), self._batch_size):
            batch = prompts[start:start + self._batch_size]
            log.debug(f"{self.name()}: sub-batch {start}..{start + len(batch) - 1}")
            try:
                response = self._client.completions.create(prompt=batch, **kwargs)
            except Exception as e:
                raise ProviderError(f"{self.label} API error: {e}") from e

            raw = RawResponse.from_dict(
                response.model_dump() if hasattr(response, "model_dump") else response
            )
            model = raw.model or model
            usages.append(raw.usage)

            # Sub-batch indices are local; shift them to the full prompt list.
            offset = start * params.n
            for choice in raw.choices:
                if isinstance(choice, dict) and isinstance(choice.get("index"), int):
                    choice = {**choice, "index": choice["index"] + offset}
                choices.append(choice)

        return RawResponse(model=model, choices=choices, usage=merge_token_usage(usages))

    def name(self) -> str:
        return f"{self.label}/completions"
