"""Domain models for history budgeting.

``Message`` is the persisted unit of a conversation.  Everything else
here is built fresh per request and never stored.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from novachat.configs.system import BudgetConfig
from novachat.infra.id_utils import generate_id

MESSAGE_ID_PREFIX = "msg"

ModelRole = Literal["user", "model"]
MODEL_ROLE_USER: ModelRole = "user"
MODEL_ROLE_MODEL: ModelRole = "model"


class Role(str, Enum):
    """Who authored a stored message."""

    USER = "user"
    ASSISTANT = "assistant"


_MODEL_ROLES: dict[Role, ModelRole] = {
    Role.USER: MODEL_ROLE_USER,
    Role.ASSISTANT: MODEL_ROLE_MODEL,
}


def to_model_role(role: Role | str) -> ModelRole:
    """Map a stored role onto the remote model's vocabulary.

    Raises ``ValueError`` for anything that is not a known ``Role``.
    """
    return _MODEL_ROLES[Role(role)]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """A single immutable message in a session."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=lambda: generate_id(MESSAGE_ID_PREFIX),
        description="Prefixed message id",
    )
    role: Role = Field(description="Message author")
    content: str = Field(description="Message text")
    timestamp: datetime = Field(
        default_factory=_utcnow, description="Creation instant (UTC)"
    )


@dataclass(frozen=True)
class TokenBudget:
    """Token limits fixed per deployment."""

    input_context_limit: int = 8000
    output_response_limit: int = 3500
    max_history_messages: int = 10
    safety_margin: int = 100

    @property
    def prompt_ceiling(self) -> int:
        """Largest estimated prompt size the budget admits."""
        return self.input_context_limit - self.safety_margin

    @classmethod
    def from_config(cls, config: BudgetConfig) -> "TokenBudget":
        return cls(
            input_context_limit=config.input_context_limit,
            output_response_limit=config.output_response_limit,
            max_history_messages=config.max_history_messages,
            safety_margin=config.safety_margin,
        )


@dataclass(frozen=True)
class PromptSegment:
    """One role-tagged turn of the prompt envelope."""

    role: ModelRole
    text: str

    def to_content(self) -> dict:
        """Render in the Gemini ``contents[]`` shape."""
        return {"role": self.role, "parts": [{"text": self.text}]}


@dataclass(frozen=True)
class PromptEnvelope:
    """Ordered segments submitted to the remote model for one request."""

    segments: tuple[PromptSegment, ...]

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[PromptSegment]:
        return iter(self.segments)

    def __getitem__(self, index: int) -> PromptSegment:
        return self.segments[index]

    def to_contents(self) -> list[dict]:
        return [segment.to_content() for segment in self.segments]


@dataclass(frozen=True)
class TokenUsage:
    """Estimated token usage of one prompt, for logging."""

    system_prompt_tokens: int
    user_message_tokens: int
    history_tokens: int
    history_messages: int

    @property
    def total(self) -> int:
        return self.system_prompt_tokens + self.user_message_tokens + self.history_tokens


@dataclass(frozen=True)
class BudgetedPrompt:
    """Result of budgeting one request: what to send and what it costs."""

    envelope: PromptEnvelope
    history: tuple[Message, ...]
    usage: TokenUsage
