"""FastAPI dependency type aliases for route modules.

Override the underlying factory in tests via
``app.dependency_overrides[get_chat_service] = ...``.
"""

from typing import Annotated

from fastapi import Depends

from novachat.core.service.chat import ChatService
from novachat.core.service.deps import get_chat_service

ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
