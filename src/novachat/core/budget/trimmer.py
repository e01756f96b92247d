"""Recency-greedy history trimming.

Walks the history from newest to oldest and keeps messages while they
fit, stopping at the first one that does not.  A smaller, older message
that would still fit is never pulled in past a gap: the kept messages
are always a contiguous tail of the input.
"""

from collections.abc import Sequence

from .models import Message, TokenBudget
from .tokens import estimate_tokens


def available_history_tokens(reserved_tokens: int, budget: TokenBudget) -> int:
    """Tokens left for history once *reserved_tokens* are spoken for.

    May be negative when the system prompt and new message alone exceed
    the budget.
    """
    return budget.prompt_ceiling - reserved_tokens


def fit_history(history: Sequence[Message], available_tokens: int) -> list[Message]:
    """Return the longest tail of *history* whose estimate fits.

    Args:
        history: Messages in chronological order (oldest first).
        available_tokens: Token allowance for the returned messages.

    Returns:
        The kept messages, oldest first.  Empty when nothing fits.
    """
    if available_tokens <= 0:
        return []

    used = 0
    start = len(history)
    for index in range(len(history) - 1, -1, -1):
        cost = estimate_tokens(history[index].content)
        if used + cost > available_tokens:
            break
        used += cost
        start = index
    return list(history[start:])


def trim_history(
    history: Sequence[Message],
    reserved_tokens: int,
    budget: TokenBudget,
) -> list[Message]:
    """Trim *history* to what fits beside *reserved_tokens* in *budget*.

    *reserved_tokens* is the estimate of the system prompt plus the new
    user message.  Never raises: an exhausted budget yields ``[]``.
    """
    return fit_history(history, available_history_tokens(reserved_tokens, budget))
