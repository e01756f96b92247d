"""Text rendering for the terminal client."""

from datetime import datetime, timezone
from typing import TextIO

USER_LABEL = "You"
ASSISTANT_LABEL = "Nova"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp from the API; ``None`` if unusable."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_relative_time(value: datetime | None, now: datetime | None = None) -> str:
    """Sidebar-style age: ``Just now``, ``5m ago``, ``3h ago`` or a date."""
    if value is None:
        return ""
    if now is None:
        now = datetime.now(timezone.utc)
    seconds = (now - value).total_seconds()
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    return value.astimezone().strftime("%Y-%m-%d")


def format_clock(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.astimezone().strftime("%H:%M")


class ResponseFormatter:
    """Writes transcript lines, session lists and notices to *output*."""

    def __init__(self, output: TextIO):
        self.output = output

    def message(self, role: str, content: str, timestamp: datetime | None = None,
                marker: str = "") -> None:
        label = USER_LABEL if role == "user" else ASSISTANT_LABEL
        clock = format_clock(timestamp)
        prefix = f"[{clock}] " if clock else ""
        self._print(f"{prefix}{label}: {content}{marker}\n")

    def sessions(self, sessions: list[dict], current_id: str,
                 now: datetime | None = None) -> None:
        if not sessions:
            self._print("No previous chats.\n")
            return
        for index, session in enumerate(sessions, start=1):
            sid = session.get("_id", "")
            current = "*" if sid == current_id else " "
            age = format_relative_time(parse_timestamp(session.get("lastTime")), now)
            count = session.get("messageCount", 0)
            preview = session.get("lastMessage", "")
            self._print(
                f"{current}{index:>2}. {preview}  ({count} msgs, {age})  {sid}\n"
            )

    def notice(self, text: str) -> None:
        self._print(f"{text}\n")

    def error(self, text: str) -> None:
        self._print(f"\n❌ {text}\n")

    def _print(self, text: str) -> None:
        self.output.write(text)
        self.output.flush()
