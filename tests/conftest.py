"""
Shared test doubles. A fake CompletionProvider instead of network mocks.
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from llm.provider import CompletionProvider, RawResponse


class FakeProvider(CompletionProvider):
    """Returns canned responses in order and records every request."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.calls = []

    def complete(self, prompts, params):
        self.calls.append((list(prompts), params))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def name(self) -> str:
        return "fake"


def make_response(*texts, usage=None, model="text-davinci-003", indices=None):
    """Build a RawResponse with one choice per text, indices 0..k-1 by default."""
    indices = indices if indices is not None else range(len(texts))
    choices = [
        {"text": text, "index": index, "logprobs": None, "finish_reason": "stop"}
        for text, index in zip(texts, indices)
    ]
    return RawResponse(
        model=model,
        choices=choices,
        usage=usage if usage is not None else {
            "prompt_tokens": 15, "completion_tokens": 7, "total_tokens": 22,
        },
    )
