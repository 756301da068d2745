"""
CompletionProvider interface. This is the only abstraction that matters.

Every completion request in the system goes through this interface.
Implementations live in separate modules. No provider-specific
logic exists outside of llm/*_provider.py.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from llm.errors import ResponseFormatError

if TYPE_CHECKING:
    from models import ParameterSet


@dataclass
class RawResponse:
    """
    What comes back from any provider, before validation.

    choices are kept as plain dicts in wire shape:
        {"text": str, "index": int, "finish_reason": str | None, "logprobs": ...}
    The wrapper validates them; providers only translate.
    """
    model: str
    choices: list[dict] = field(default_factory=list)
    usage: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping) -> "RawResponse":
        """Build from a decoded completions payload (e.g. SDK model_dump())."""
        if not isinstance(data, Mapping):
            raise ResponseFormatError(
                f"Expected response object, got {type(data).__name__}"
            )
        for key in ("choices", "usage"):
            if data.get(key) is None:
                raise ResponseFormatError(f"Response missing field: {key}", field=key)
        return cls(
            model=data.get("model") or "",
            choices=data["choices"],
            usage=data["usage"],
        )


class CompletionProvider(ABC):
    """
    Single interface for all completion providers.

    Design notes:
    - One method: `complete`. All prompts in, one response out.
    - The provider decides how many network calls a prompt list needs;
      choice indices in the returned response stay global
      (prompt_idx * n + j) no matter how it splits the work.
    - Retries and timeouts belong to the vendor SDK client.
    """

    @abstractmethod
    def complete(self, prompts: list[str], params: "ParameterSet") -> RawResponse:
        """
        Send prompts to the model and get raw choices back.

        Args:
            prompts: Ordered prompt strings, at least one.
            params: Validated request parameters.

        Returns:
            RawResponse with every choice and the merged usage.

        Raises:
            ProviderError: On any transport/auth failure.
        """
        ...

    @abstractmethod
    def name(self) -> str:
        """Return provider name for logging."""
        ...
