"""Interactive terminal client: record, review the transcript, ask, read the answer."""

import asyncio
import logging
import sys
from typing import Optional

from pubsub import pub
from rich.console import Console
from rich.panel import Panel

from .markdown import render_markdown
from ..exceptions import VoicePromptError
from ..models.ui import UIStatus
from ..services.orchestrator import UIOrchestrator

logger = logging.getLogger(__name__)


HELP_TEXT = (
    "[bold]r[/bold] record/stop   [bold]s[/bold] send prompt   "
    "[bold]p <text>[/bold] edit prompt   [bold]l <code>[/bold] language   [bold]q[/bold] quit"
)


class TerminalScreen:
    """Line-based interface on top of a UIOrchestrator."""

    def __init__(self, orchestrator: UIOrchestrator, console: Optional[Console] = None):
        self.orchestrator = orchestrator
        self.console = console or Console()
        self._previous: Optional[UIStatus] = None
        self._lines: Optional[asyncio.Queue] = None

        pub.subscribe(self.on_status, orchestrator.status_topic)

    def on_status(self, status: UIStatus) -> None:
        """Print what changed since the previous status."""
        previous = self._previous or UIStatus()
        self._previous = status

        if status.seconds_left is not None and status.seconds_left != previous.seconds_left:
            self.console.print(f"🔴 Recording ({status.seconds_left}) ...", style="bold red")
        if status.is_transcribing and not previous.is_transcribing:
            self.console.print("📝 Transcribing ...", style="blue")
        if status.prompt != previous.prompt and not status.is_transcribing:
            self.console.print(Panel(status.prompt or "(empty transcript)", title="Prompt"))
        if status.is_sending_prompt and not previous.is_sending_prompt:
            self.console.print("🤖 Sending prompt ...", style="blue")
        if status.last_answer != previous.last_answer and status.last_answer:
            self.console.print(Panel(render_markdown(status.last_answer), title="Answer"))
        if status.last_error and status.last_error != previous.last_error:
            self.console.print(f"❌ {status.last_error}", style="red")

    def show_header(self) -> None:
        self.console.print("🎙️  VoicePrompt", style="bold blue")
        self.console.print("=" * 50)
        self.console.print(f"Language: {self.orchestrator.language}   "
                           f"Max recording: {self.orchestrator.max_seconds}s")
        self.console.print(HELP_TEXT)

    async def handle_command(self, line: str) -> bool:
        """Run one command line. Returns False when the user quits."""
        command, _, argument = line.strip().partition(" ")
        command = command.lower()

        try:
            if command == "q":
                return False
            elif command == "r":
                await self.orchestrator.toggle_recording()
            elif command == "s":
                if await self.orchestrator.send_prompt() is None:
                    self.console.print("Nothing to send", style="yellow")
            elif command == "p":
                self.orchestrator.set_prompt(argument)
            elif command == "l" and argument:
                self.orchestrator.set_language(argument)
                self.console.print(f"Language: {self.orchestrator.language}")
            elif command:
                self.console.print(HELP_TEXT)
        except VoicePromptError as e:
            # Already shown through the status update that carries last_error
            logger.info(f"Command '{command}' failed: {e}")

        return True

    def _on_stdin_ready(self) -> None:
        line = sys.stdin.readline()
        # EOF quits
        self._lines.put_nowait(line if line else "q")

    async def run(self) -> None:
        """Read commands from stdin until the user quits."""
        loop = asyncio.get_running_loop()
        self._lines = asyncio.Queue()
        loop.add_reader(sys.stdin.fileno(), self._on_stdin_ready)

        self.show_header()
        try:
            while await self.handle_command(await self._lines.get()):
                pass
        finally:
            loop.remove_reader(sys.stdin.fileno())
            pub.unsubscribe(self.on_status, self.orchestrator.status_topic)
            await self.orchestrator.shutdown()
            self.console.print("\n👋 Goodbye!")
