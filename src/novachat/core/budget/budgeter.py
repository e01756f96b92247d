"""HistoryBudgeter: estimate, trim and assemble the prompt for one request."""

import logging
from collections.abc import Sequence

from novachat.configs.system import PromptConfig

from .envelope import build_envelope, build_preamble
from .models import BudgetedPrompt, Message, TokenBudget, TokenUsage
from .tokens import estimate_messages_tokens, estimate_tokens
from .trimmer import trim_history

logger = logging.getLogger(__name__)


class HistoryBudgeter:
    """Fits conversation history into a fixed input token budget.

    Pure and synchronous: safe to share between concurrent requests.

    The preamble (system prompt, lead-in and acknowledgment) and the new
    user message are reserved first; history gets whatever is left
    after the safety margin, newest messages first.
    """

    def __init__(self, budget: TokenBudget, prompt_config: PromptConfig) -> None:
        self._budget = budget
        self._prompt_config = prompt_config

    @property
    def budget(self) -> TokenBudget:
        return self._budget

    def preamble_tokens(self, system_prompt: str) -> int:
        """Estimated cost of the scripted opening exchange."""
        return sum(
            estimate_tokens(s.text)
            for s in build_preamble(system_prompt, self._prompt_config)
        )

    def prepare(
        self,
        system_prompt: str,
        history: Sequence[Message],
        user_message: str,
    ) -> BudgetedPrompt:
        """Trim *history* and build the envelope for *user_message*.

        Args:
            system_prompt: Instructions placed in the preamble.
            history: Prior messages, oldest first, already capped to the
                candidate window.  Must not contain *user_message*.
            user_message: The new message being answered.
        """
        system_tokens = self.preamble_tokens(system_prompt)
        user_tokens = estimate_tokens(user_message)
        trimmed = trim_history(history, system_tokens + user_tokens, self._budget)

        usage = TokenUsage(
            system_prompt_tokens=system_tokens,
            user_message_tokens=user_tokens,
            history_tokens=estimate_messages_tokens(trimmed),
            history_messages=len(trimmed),
        )
        logger.info(
            "Input: ~%d/%d tokens | History: %d/%d msgs",
            usage.total,
            self._budget.input_context_limit,
            usage.history_messages,
            len(history),
        )
        envelope = build_envelope(
            system_prompt, trimmed, user_message, self._prompt_config
        )
        return BudgetedPrompt(envelope=envelope, history=tuple(trimmed), usage=usage)

    def log_output(self, reply: str) -> int:
        """Log and return the estimated size of a model reply."""
        tokens = estimate_tokens(reply)
        logger.info(
            "Output: ~%d/%d tokens", tokens, self._budget.output_response_limit
        )
        return tokens
