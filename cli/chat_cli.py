"""Main CLI loop for interactive chat."""

import logging
import secrets
import string
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TextIO

from .client import ChatAPIClient, ChatAPIError
from .config import CLIConfig
from .formatter import ResponseFormatter, parse_timestamp

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("/exit", "/quit", "exit", "quit")
CONNECTION_NOTICE = (
    "Could not reach the server. Make sure the backend is running "
    "and try again."
)
HELP_TEXT = (
    "Commands: /new  /sessions  /switch <id|number>  /history  /clear  /exit\n"
)

_SESSION_ALPHABET = string.ascii_lowercase + string.digits


def new_session_id() -> str:
    """``session_<epoch ms>_<8 random chars>``, the id format the web UI uses."""
    suffix = "".join(secrets.choice(_SESSION_ALPHABET) for _ in range(8))
    return f"session_{int(time.time() * 1000)}_{suffix}"


class Delivery(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class TranscriptEntry:
    role: str
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    delivery: Delivery = Delivery.CONFIRMED


class NovaChatCLI:
    """Interactive CLI for the NovaChat API.

    The local transcript mirrors the server's history.  A message being
    sent is shown as PENDING; it becomes CONFIRMED once the server
    replies, or FAILED if the request does not go through.  Failed
    entries stay local and are never mistaken for server history.
    """

    def __init__(
        self,
        config: CLIConfig,
        input_stream: TextIO = sys.stdin,
        output_stream: TextIO = sys.stdout,
        client: ChatAPIClient | None = None,
        session_id: str | None = None,
    ):
        self.config = config
        self.input_stream = input_stream
        self.output_stream = output_stream
        self.client = client or ChatAPIClient(config)
        self.formatter = ResponseFormatter(output_stream)
        self.session_id = session_id or new_session_id()
        self.transcript: list[TranscriptEntry] = []
        self._last_sessions: list[dict] = []

    async def run(self) -> None:
        """Run the interactive CLI loop."""
        try:
            self._print_welcome()
            await self.load_history()
            while True:
                try:
                    line = self._get_user_input().strip()
                    if not line:
                        continue
                    if line.lower() in EXIT_COMMANDS:
                        self.formatter.notice("Goodbye!")
                        break
                    if line.startswith("/"):
                        await self.handle_command(line)
                    else:
                        await self.send(line)
                except KeyboardInterrupt:
                    self.formatter.notice("\nInterrupted. Use /exit to quit.")
                except EOFError:
                    self.formatter.notice("\nGoodbye!")
                    break
        finally:
            await self.client.close()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def send(self, text: str) -> TranscriptEntry:
        """Send *text*; returns the user's transcript entry."""
        entry = TranscriptEntry(role="user", content=text, delivery=Delivery.PENDING)
        self.transcript.append(entry)
        try:
            reply = await self.client.send(self.session_id, text)
        except ChatAPIError as e:
            entry.delivery = Delivery.FAILED
            logger.debug("Send failed: %s (status=%s)", e, e.status_code)
            if e.status_code is None:
                self.formatter.error(CONNECTION_NOTICE)
            else:
                self.formatter.error(str(e))
            return entry

        entry.delivery = Delivery.CONFIRMED
        answer = TranscriptEntry(role="assistant", content=reply)
        self.transcript.append(answer)
        self.formatter.message(answer.role, answer.content, answer.timestamp)
        return entry

    async def load_history(self) -> None:
        """Replace the transcript with the server's history for this session."""
        try:
            messages = await self.client.messages(self.session_id)
        except ChatAPIError as e:
            logger.debug("History unavailable: %s", e)
            self.transcript = []
            return
        self.transcript = [
            TranscriptEntry(
                role=m.get("role", "assistant"),
                content=m.get("content", ""),
                timestamp=parse_timestamp(m.get("timestamp"))
                or datetime.now(timezone.utc),
            )
            for m in messages
        ]

    async def handle_command(self, line: str) -> None:
        command, _, argument = line.partition(" ")
        command = command.lower()
        argument = argument.strip()

        if command == "/new":
            self.session_id = new_session_id()
            self.transcript = []
            self.formatter.notice(f"Started new chat {self.session_id}")
        elif command == "/sessions":
            await self._show_sessions()
        elif command == "/switch":
            await self._switch(argument)
        elif command == "/history":
            self._show_transcript()
        elif command == "/clear":
            await self._clear()
        else:
            self.formatter.notice(HELP_TEXT.rstrip("\n"))

    async def _show_sessions(self) -> None:
        try:
            self._last_sessions = await self.client.sessions()
        except ChatAPIError as e:
            self.formatter.error(str(e))
            return
        self.formatter.sessions(self._last_sessions, self.session_id)

    async def _switch(self, argument: str) -> None:
        if not argument:
            self.formatter.notice("Usage: /switch <id|number>")
            return
        target = argument
        # A number refers to the last /sessions listing.
        if argument.isdigit() and 0 < int(argument) <= len(self._last_sessions):
            target = self._last_sessions[int(argument) - 1].get("_id", argument)
        self.session_id = target
        await self.load_history()
        self.formatter.notice(
            f"Switched to {self.session_id} ({len(self.transcript)} messages)"
        )

    async def _clear(self) -> None:
        try:
            deleted = await self.client.clear(self.session_id)
        except ChatAPIError as e:
            self.formatter.error(str(e))
            return
        self.transcript = []
        self.formatter.notice(f"Session cleared ({deleted} messages)")

    def _show_transcript(self) -> None:
        if not self.transcript:
            self.formatter.notice("No messages yet.")
            return
        for entry in self.transcript:
            marker = {
                Delivery.PENDING: " (sending...)",
                Delivery.FAILED: " (not sent)",
            }.get(entry.delivery, "")
            self.formatter.message(entry.role, entry.content, entry.timestamp, marker)

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------

    def _get_user_input(self) -> str:
        self.output_stream.write("> ")
        self.output_stream.flush()
        line = self.input_stream.readline()
        if not line:
            raise EOFError
        return line.rstrip("\n\r")

    def _print_welcome(self) -> None:
        self.formatter.notice("NovaChat CLI - Interactive Chat Interface")
        self.formatter.notice(f"Connected to: {self.config.base_url}")
        self.formatter.notice(f"Session: {self.session_id}")
        self.output_stream.write(HELP_TEXT + "\n")
        self.output_stream.flush()


async def main(
    host: str = "localhost",
    port: int = 5000,
    session_id: str | None = None,
    debug: bool = False,
) -> None:
    """Main entry point for the CLI."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    config = CLIConfig(host=host, port=port)
    cli = NovaChatCLI(config, session_id=session_id)
    await cli.run()
