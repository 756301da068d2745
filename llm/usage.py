"""
Token usage accounting.
"""

from collections.abc import Iterable, Mapping

from llm.errors import ResponseFormatError

USAGE_KEYS = ("completion_tokens", "prompt_tokens", "total_tokens")


def _check_block(usage: Mapping, position: int) -> dict[str, int]:
    if not isinstance(usage, Mapping):
        raise ResponseFormatError(
            f"usage[{position}] must be an object, got {type(usage).__name__}",
            field="usage",
        )

    block = {}
    for key in USAGE_KEYS:
        if key not in usage or usage[key] is None:
            continue
        value = usage[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ResponseFormatError(
                f"usage[{position}].{key} must be a non-negative integer, got {value!r}",
                field=f"usage.{key}",
            )
        block[key] = value

    if "prompt_tokens" in block and "completion_tokens" in block:
        expected = block["prompt_tokens"] + block["completion_tokens"]
        if "total_tokens" not in block:
            block["total_tokens"] = expected
        elif block["total_tokens"] != expected:
            raise ResponseFormatError(
                f"usage[{position}].total_tokens={block['total_tokens']} but "
                f"prompt_tokens + completion_tokens = {expected}",
                field="usage.total_tokens",
            )
    return block


def merge_token_usage(usages: Iterable[Mapping]) -> dict[str, int]:
    """
    Sum usage blocks component-wise.

    Keys missing from every block stay missing; a key reported by some
    blocks only is the sum of those. total_tokens is derived when no block
    reported it but both parts are present. Keys come out in sorted order.
    """
    merged: dict[str, int] = {}
    for position, usage in enumerate(usages):
        for key, value in _check_block(usage, position).items():
            merged[key] = merged.get(key, 0) + value

    if "total_tokens" not in merged and "prompt_tokens" in merged and "completion_tokens" in merged:
        merged["total_tokens"] = merged["prompt_tokens"] + merged["completion_tokens"]
    return {key: merged[key] for key in USAGE_KEYS if key in merged}
