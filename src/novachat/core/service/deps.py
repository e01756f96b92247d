"""FastAPI dependency factories for the chat service.

``get_chat_service`` is a per-request ``Depends`` factory.  The
long-lived collaborators (store, locks, model client) come from
``app.state``; the budgeter is rebuilt from the current config.
"""

from typing import Annotated

from fastapi import Depends

from novachat.configs.config import AppConfig, get_app_config
from novachat.core.budget import HistoryBudgeter, TokenBudget
from novachat.core.llm import GeminiClient, get_model_client
from novachat.infra.concurrency import SessionLocks, get_session_locks
from novachat.infra.store import SessionStore, get_session_store

from .chat import ChatService


def get_history_budgeter(
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> HistoryBudgeter:
    return HistoryBudgeter(TokenBudget.from_config(config.budget), config.prompt)


def get_chat_service(
    store: Annotated[SessionStore, Depends(get_session_store)],
    locks: Annotated[SessionLocks, Depends(get_session_locks)],
    model_client: Annotated[GeminiClient, Depends(get_model_client)],
    budgeter: Annotated[HistoryBudgeter, Depends(get_history_budgeter)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> ChatService:
    """Create a ``ChatService`` per request."""
    return ChatService(
        store=store,
        locks=locks,
        model_client=model_client,
        budgeter=budgeter,
        prompt_config=config.prompt,
        api_config=config.api,
    )
