"""SQLAlchemy ORM models.

Tables are managed by Alembic migrations.  The ``Base.metadata`` naming
convention keeps constraint names deterministic across environments.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# ---------------------------------------------------------------------------
# Declarative base with naming convention
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    """Shared declarative base with explicit naming convention."""


Base.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

TABLE_CHAT_MESSAGES = "chat_messages"

# SQLite only autoincrements INTEGER primary keys.
_ID_TYPE = BigInteger().with_variant(Integer(), "sqlite")


# ---------------------------------------------------------------------------
# Chat messages table
# ---------------------------------------------------------------------------


class ChatMessage(Base):
    """A single message in a chat session.

    Insertion order is the ``id`` sequence; ``created_at`` carries the
    message's own timestamp and is used for the session list ordering.
    """

    __tablename__ = TABLE_CHAT_MESSAGES

    id: Mapped[int] = mapped_column(
        _ID_TYPE,
        primary_key=True,
        autoincrement=True,
    )
    session_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
    )
    message_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_chat_messages_session_id_id", "session_id", "id"),
        Index("ix_chat_messages_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<ChatMessage(id={self.id}, session_id={self.session_id!r}, "
            f"role={self.role!r})>"
        )
