"""Remote model client."""

from .client import GeminiClient, extract_reply_text
from .deps import build_model_client, get_model_client

__all__ = [
    "GeminiClient",
    "build_model_client",
    "extract_reply_text",
    "get_model_client",
]
