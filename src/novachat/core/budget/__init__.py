"""Token budgeting for model prompts.

Three small pieces composed by :class:`HistoryBudgeter`:

1. **Estimator** (``tokens``): ``ceil(len / 4)`` per text.
2. **Trimmer** (``trimmer``): newest-first greedy tail selection.
3. **Envelope builder** (``envelope``): preamble, history, new message.
"""

from .budgeter import HistoryBudgeter
from .envelope import build_envelope, build_preamble
from .models import (
    BudgetedPrompt,
    Message,
    PromptEnvelope,
    PromptSegment,
    Role,
    TokenBudget,
    TokenUsage,
    to_model_role,
)
from .tokens import CHARS_PER_TOKEN, estimate_messages_tokens, estimate_tokens
from .trimmer import available_history_tokens, fit_history, trim_history

__all__ = [
    "BudgetedPrompt",
    "CHARS_PER_TOKEN",
    "HistoryBudgeter",
    "Message",
    "PromptEnvelope",
    "PromptSegment",
    "Role",
    "TokenBudget",
    "TokenUsage",
    "available_history_tokens",
    "build_envelope",
    "build_preamble",
    "estimate_messages_tokens",
    "estimate_tokens",
    "fit_history",
    "to_model_role",
    "trim_history",
]
