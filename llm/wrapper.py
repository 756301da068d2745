"""
LLM wrapper. Prompts in, LLMResult out.

Owns a ParameterSet and a CompletionProvider. Shapes the request,
validates the raw response, groups choices back onto their prompts and
merges usage. Holds no state between calls, so one instance can serve
concurrent callers without locking.
"""

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from config.settings import SETTING_KEYS, Config, load_config
from llm.errors import EmptyResponseError, ResponseFormatError, ValidationError
from llm.factory import create_provider
from llm.provider import CompletionProvider, RawResponse
from llm.usage import merge_token_usage
from models import Generation, LLMResult, ParameterSet

log = logging.getLogger(__name__)


def _split_config(config: Mapping) -> tuple[dict, dict]:
    """Separate provider/credential settings from request parameters."""
    settings = {k: v for k, v in config.items() if k in SETTING_KEYS}
    params = {k: v for k, v in config.items() if k not in SETTING_KEYS}
    return settings, params


def _check_choice(choice, position: int, limit: int) -> tuple[int, str]:
    if not isinstance(choice, Mapping):
        raise ResponseFormatError(
            f"choices[{position}] must be an object, got {type(choice).__name__}",
            field=f"choices[{position}]",
        )
    for key in ("text", "index"):
        if key not in choice:
            raise ResponseFormatError(
                f"choices[{position}] missing field: {key}",
                field=f"choices[{position}].{key}",
            )

    text, index = choice["text"], choice["index"]
    if not isinstance(text, str):
        raise ResponseFormatError(
            f"choices[{position}].text must be a string, got {type(text).__name__}",
            field=f"choices[{position}].text",
        )
    if isinstance(index, bool) or not isinstance(index, int):
        raise ResponseFormatError(
            f"choices[{position}].index must be an integer, got {index!r}",
            field=f"choices[{position}].index",
        )
    if not 0 <= index < limit:
        raise ResponseFormatError(
            f"choices[{position}].index={index} out of range for {limit} expected choices",
            field=f"choices[{position}].index",
        )
    return index, text


class LLMWrapper:
    """
    Uniform call/generate interface over a CompletionProvider.

    Usage:
        llm = LLMWrapper({"temperature": 0.2, "openai_api_key": key})
        llm.call("Name a sock company")
        llm.generate(["Tell me a joke", "Tell me a poem"]).texts()
    """

    def __init__(
        self,
        config: Mapping | None = None,
        provider: CompletionProvider | None = None,
        strict: bool | None = None,
        settings: Config | None = None,
    ):
        overrides, param_config = _split_config(config or {})
        if settings is None:
            settings = load_config(**overrides)
        elif overrides:
            settings = load_config(**{**vars(settings), **overrides})

        strict = settings.strict_params if strict is None else strict
        self._params = ParameterSet.from_config(param_config, strict=strict)
        self._provider = provider if provider is not None else create_provider(settings)
        log.debug(f"LLMWrapper ready: provider={self._provider.name()} model={self._params.model}")

    @classmethod
    def from_params(cls, params: ParameterSet, provider: CompletionProvider) -> "LLMWrapper":
        wrapper = cls.__new__(cls)
        wrapper._params = params
        wrapper._provider = provider
        return wrapper

    @property
    def params(self) -> ParameterSet:
        return self._params

    @property
    def provider(self) -> CompletionProvider:
        return self._provider

    def with_params(self, **changes) -> "LLMWrapper":
        """New wrapper with reconfigured parameters, same provider."""
        return self.from_params(self._params.replace(**changes), self._provider)

    def identifying_params(self) -> dict:
        return self._params.to_map()

    def call(self, prompt: str) -> str:
        """Complete a single prompt and return the first generation's text."""
        if not isinstance(prompt, str):
            raise ValidationError(f"prompt must be a string, got {type(prompt).__name__}")
        return self.generate([prompt]).generations[0][0].text

    def generate(self, prompts: Sequence[str]) -> LLMResult:
        """
        Complete every prompt in one logical provider operation.

        Returns:
            LLMResult with one generation list per prompt, in prompt order.

        Raises:
            ValidationError: Empty prompt list or non-string prompts.
            ResponseFormatError: Provider response missing fields, or
                fewer than n choices for some prompt.
            EmptyResponseError: Provider returned no choices at all.
            ProviderError: Transport/auth failure, passed through.
        """
        prompts = self._check_prompts(prompts)
        params = self._params

        log.info(
            f"Generating {len(prompts)} prompt(s) x n={params.n} "
            f"via {self._provider.name()} ({params.model})"
        )
        raw = self._provider.complete(prompts, params)
        if isinstance(raw, Mapping):
            raw = RawResponse.from_dict(raw)
        elif not isinstance(raw, RawResponse):
            raise ResponseFormatError(
                f"Provider returned {type(raw).__name__}, expected RawResponse"
            )

        generations = self._group_choices(raw.choices, len(prompts), params.n)
        token_usage = merge_token_usage([raw.usage])
        log.info(f"Generated {len(prompts) * params.n} completion(s), usage={token_usage}")

        return LLMResult(
            generations=generations,
            llm_output={"token_usage": token_usage, "model_name": params.model},
        )

    @staticmethod
    def _check_prompts(prompts) -> list[str]:
        if isinstance(prompts, str) or not isinstance(prompts, Sequence):
            raise ValidationError(
                f"prompts must be a list of strings, got {type(prompts).__name__}"
            )
        if len(prompts) == 0:
            raise ValidationError("prompts must contain at least one prompt")
        for i, prompt in enumerate(prompts):
            if not isinstance(prompt, str):
                raise ValidationError(
                    f"prompts[{i}] must be a string, got {type(prompt).__name__}"
                )
        return list(prompts)

    @staticmethod
    def _group_choices(choices, prompt_count: int, n: int) -> tuple[tuple[Generation, ...], ...]:
        """
        Map provider choices back to prompts by reported index.

        Choice i belongs to prompt i // n. Arrival order does not matter.
        """
        if not isinstance(choices, list):
            raise ResponseFormatError(
                f"choices must be a list, got {type(choices).__name__}", field="choices"
            )
        if not choices:
            raise EmptyResponseError("Provider returned no choices", field="choices")

        limit = prompt_count * n
        by_index: dict[int, Generation] = {}
        for position, choice in enumerate(choices):
            index, text = _check_choice(choice, position, limit)
            if index in by_index:
                raise ResponseFormatError(
                    f"choices[{position}] repeats index {index}",
                    prompt_index=index // n,
                    field=f"choices[{position}].index",
                )
            by_index[index] = Generation(
                text=text,
                generation_info={
                    "finish_reason": choice.get("finish_reason"),
                    "logprobs": choice.get("logprobs"),
                },
            )

        generations = []
        for prompt_idx in range(prompt_count):
            per_prompt = tuple(
                by_index[i] for i in range(prompt_idx * n, (prompt_idx + 1) * n) if i in by_index
            )
            if len(per_prompt) < n:
                raise ResponseFormatError(
                    f"Prompt {prompt_idx}: expected {n} choice(s), got {len(per_prompt)}",
                    prompt_index=prompt_idx,
                    field="choices",
                )
            generations.append(per_prompt)
        return tuple(generations)

    def save(self, path: str | Path) -> Path:
        return self._params.save(path)

    def to_display_string(self) -> str:
        return self._params.to_display_string(type(self).__name__)
