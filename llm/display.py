"""
Human-readable parameter rendering for logs and debugging. Not for parsing.
"""

from collections.abc import Mapping

BOLD = "\033[1m"
RESET = "\033[0m"
INDENT = "    "


def _format_value(value, depth: int) -> list[str]:
    """Lines for a nested value. Empty collections render as {} / []."""
    if isinstance(value, Mapping):
        if not value:
            return ["{}"]
        lines = [""]
        for key, item in value.items():
            lines.extend(_format_entry(key, item, depth + 1))
        return lines
    if isinstance(value, (list, tuple)):
        if not value:
            return ["[]"]
        return ["[" + ", ".join(repr(v) for v in value) + "]"]
    return [str(value)]


def _format_entry(key, value, depth: int) -> list[str]:
    pad = INDENT * depth
    head, *rest = _format_value(value, depth)
    first = f"{pad}{key}: {head}" if head else f"{pad}{key}:"
    return [first, *rest]


def format_params(params: Mapping, type_name: str) -> str:
    """
    Render a type name and its parameter map, one key per line, in the
    map's own order.

        <bold>LLMWrapper</bold>
        Params:
            model_name: text-davinci-003
            ...
            logit_bias: {}
    """
    lines = [f"{BOLD}{type_name}{RESET}", "Params:"]
    for key, value in params.items():
        lines.extend(_format_entry(key, value, 1))
    return "\n".join(lines) + "\n"
