"""Interactive console loop driving the RAG agent."""

from __future__ import annotations

import enum
import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from .config import config
from .errors import StartupError, TurnError

if TYPE_CHECKING:
    from .agent import RAGAgent

logger = config.get_logger(__name__)

PROMPT = "You: "
EXIT_COMMANDS = frozenset({"exit", "quit"})


class ChatState(enum.Enum):
    """Lifecycle of a chat session."""

    INITIALIZING = "initializing"
    READY = "ready"
    AWAITING_INPUT = "awaiting_input"
    RESPONDING = "responding"
    TERMINATED = "terminated"


def next_state(line: str | None) -> ChatState:
    """Decide where a line of console input leads from AWAITING_INPUT.

    ``None`` stands for end of input. Exit commands are matched exactly
    (case-sensitive) after trimming whitespace.

    Returns:
        The state to move to.
    """
    if line is None:
        return ChatState.TERMINATED
    query = line.strip()
    if not query:
        return ChatState.AWAITING_INPUT
    if query in EXIT_COMMANDS:
        return ChatState.TERMINATED
    return ChatState.RESPONDING


class ChatLoop:
    """Read-query-respond loop: one question in flight at a time."""

    def __init__(
        self,
        agent: RAGAgent,
        *,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        assistant_name: str | None = None,
    ) -> None:
        """Initialize the loop with its agent and console streams."""
        self.agent = agent
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.assistant_name = assistant_name or config.ASSISTANT_NAME
        self.state = ChatState.INITIALIZING

    def _print(self, message: str = "", *, error: bool = False) -> None:
        stream = self.stderr if error else self.stdout
        print(message, file=stream, flush=True)

    async def initialize(self, file_path: Path | str) -> None:
        """Build the document index and move to READY.

        Raises:
            StartupError: If loading, embedding or indexing fails; the loop
                is then TERMINATED.
        """
        self._print(f"Reading {file_path}...")
        try:
            self._print("Creating embeddings...")
            index = await self.agent.rag_pipeline.build(Path(file_path))
        except StartupError:
            self.state = ChatState.TERMINATED
            raise
        logger.info("Index ready with %d entries", len(index))
        self.state = ChatState.READY

    def _read_line(self) -> str | None:
        self.stdout.write(PROMPT)
        self.stdout.flush()
        try:
            line = self.stdin.readline()
        except KeyboardInterrupt:
            self._print()
            return None
        return line or None

    async def respond(self, question: str) -> bool:
        """Answer one question, reporting failures without ending the session.

        Returns:
            True if an answer was printed, False if the turn failed.
        """
        self.state = ChatState.RESPONDING
        self._print(f"{self.assistant_name} thinking...")
        try:
            turn = await self.agent.answer(question)
        except TurnError as exc:
            logger.warning("Turn failed: %s", exc)
            self._print(f"Error: {exc}\n", error=True)
            return False
        finally:
            self.state = ChatState.AWAITING_INPUT
        self._print(f"{self.assistant_name}: {turn.bot_response}\n")
        return True

    async def run(self) -> int:
        """Prompt for questions until exit, quit or end of input.

        Returns:
            Process exit status (0).

        Raises:
            RuntimeError: If called before a successful ``initialize``.
        """
        if self.state is not ChatState.READY:
            msg = f"Chat loop cannot start from state {self.state.value}"
            raise RuntimeError(msg)

        self._print(f"{self.assistant_name} is ready! (Type 'exit' or 'quit' to end)\n")
        self.state = ChatState.AWAITING_INPUT

        while self.state is not ChatState.TERMINATED:
            line = self._read_line()
            state = next_state(line)
            if state is ChatState.RESPONDING:
                await self.respond(line.strip())  # type: ignore[union-attr]
            else:
                self.state = state

        self._print("Goodbye!")
        return 0
