"""
Generic visitor over parsed JSON-LD trees.

Objects, arrays and scalars are walked iteratively with an explicit depth
cap; values stored under an email-like key are collected as strings.
"""
from __future__ import annotations

from typing import Any, Iterator, List, Tuple

__all__ = ("EMAIL_KEYS", "iter_email_values", "find_email_values")

EMAIL_KEYS: frozenset[str] = frozenset(
    {"email", "emailaddress", "contactpoint", "contactemail", "authoremail"}
)


def iter_email_values(data: Any, max_depth: int = 32) -> Iterator[str]:
    """Yield string values held by email-like keys anywhere in *data*.

    Nodes deeper than *max_depth* are not visited.
    """
    stack: List[Tuple[Any, int]] = [(data, 0)]
    while stack:
        node, depth = stack.pop()
        if depth > max_depth:
            continue
        if isinstance(node, dict):
            for key, value in node.items():
                if isinstance(value, str):
                    if str(key).lower() in EMAIL_KEYS:
                        yield value
                elif isinstance(value, (dict, list)):
                    stack.append((value, depth + 1))
        elif isinstance(node, list):
            for value in reversed(node):
                if isinstance(value, (dict, list)):
                    stack.append((value, depth + 1))


def find_email_values(data: Any, max_depth: int = 32) -> List[str]:
    """List form of :func:`iter_email_values` restricted to address-like strings."""
    return [v for v in iter_email_values(data, max_depth) if "@" in v and "." in v]
