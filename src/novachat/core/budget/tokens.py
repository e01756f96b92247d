"""Lightweight token estimation.

The estimate is a length heuristic, not a tokenizer: it is approximate
but consistent (the same text always yields the same count, and longer
text never yields a smaller one).
"""

import math
from collections.abc import Iterable

from .models import Message

CHARS_PER_TOKEN = 4
"""Average characters per token for English prose."""


def estimate_tokens(text: str) -> int:
    """Return an estimated token count for *text* (``""`` is 0)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_messages_tokens(messages: Iterable[Message]) -> int:
    """Sum of :func:`estimate_tokens` over message contents."""
    return sum(estimate_tokens(m.content) for m in messages)
