"""
Claude (Anthropic) provider implementation.

The messages API takes one prompt and returns one answer, so a prompt
list with n choices each costs len(prompts) * n requests. Indices are
assigned as prompt_idx * n + j to match the completions layout.
"""

import logging

from llm.errors import ConfigError, ProviderError
from llm.provider import CompletionProvider, RawResponse
from llm.usage import merge_token_usage

log = logging.getLogger(__name__)

# Claude has no default max_tokens; used when the ParameterSet says -1.
FALLBACK_MAX_TOKENS = 1024

STOP_REASONS = {"end_turn": "stop", "stop_sequence": "stop", "max_tokens": "length"}


class ClaudeProvider(CompletionProvider):
    def __init__(
        self,
        api_key: str,
        request_timeout: float = 60.0,
        max_retries: int = 2,
        client=None,
    ):
        if client is not None:
            self._client = client
            return
        if not api_key:
            raise ConfigError("ANTHROPIC_API_KEY not set", key="anthropic_api_key")
        try:
            import anthropic
        except ImportError:
            raise ConfigError("anthropic package not installed: pip install anthropic")
        self._client = anthropic.Anthropic(
            api_key=api_key, timeout=request_timeout, max_retries=max_retries
        )

    def complete(self, prompts: list[str], params) -> RawResponse:
        # Claude accepts temperature in [0, 1]; penalties and logit_bias
        # have no equivalent and are not sent.
        max_tokens = params.max_tokens if params.max_tokens != -1 else FALLBACK_MAX_TOKENS
        temperature = min(params.temperature, 1.0)
        if params.logit_bias or params.frequency_penalty or params.presence_penalty:
            log.debug("claude: ignoring logit_bias / penalties (unsupported)")

        request = {"model": params.model, "max_tokens": max_tokens, "temperature": temperature}
        if params.top_p < 1.0:
            request["top_p"] = params.top_p

        choices = []
        usages = []
        for i, prompt in enumerate(prompts):
            for j in range(params.n):
                try:
                    response = self._client.messages.create(
                        messages=[{"role": "user", "content": prompt}], **request
                    )
                except Exception as e:
                    raise ProviderError(f"Claude API error: {e}") from e

                text = "".join(
                    block.text for block in response.content if getattr(block, "type", "") == "text"
                )
                choices.append({
                    "text": text,
                    "index": i * params.n + j,
                    "finish_reason": STOP_REASONS.get(response.stop_reason, response.stop_reason),
                    "logprobs": None,
                })
                usages.append({
                    "prompt_tokens": response.usage.input_tokens,
                    "completion_tokens": response.usage.output_tokens,
                })

        return RawResponse(model=params.model, choices=choices, usage=merge_token_usage(usages))

    def name(self) -> str:
        return "claude/messages"
