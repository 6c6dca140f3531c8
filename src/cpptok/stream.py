"""
Input Stream Manager
====================

InputStream owns the stack of open sources and presents them to the
tokenizer as one logical character stream.

- The top of the stack is the active source. Included files are pushed
  on top and fully drained before reading resumes in the includer.
- A backslash immediately followed by a newline is removed (line
  splicing), so the two physical lines read as one logical line.
- The whole stack can be stashed and replaced by a single source, for
  example to lex a string without disturbing the file stack.

Example
-------
>>> from cpptok.stream import InputStream
>>> from cpptok.source import StringSource
>>> stream = InputStream()
>>> stream.push(StringSource("a\\\\\\nb"))
>>> stream.read_char(), stream.read_char(), stream.read_char()
('a', 'b', '\\n')
"""

import logging
from typing import Optional

from cpptok.errors import SourceLocation, UNKNOWN_LOCATION
from cpptok.source import EOF, NEWLINE, Source

logger = logging.getLogger(__name__)


class InputStream:
    """
    Stack of sources with splice-aware character reading and pushback.

    Attributes:
        files: The active source stack (top is last)
    """

    def __init__(self, source: Optional[Source] = None):
        self.files: list[Source] = []
        self._stashed: list[list[Source]] = []
        if source is not None:
            self.push(source)

    # =========================================================================
    # Stack Operations
    # =========================================================================

    def push(self, source: Source) -> None:
        """Make source the active input."""
        logger.debug(f"Pushed {source.name} (depth {len(self.files) + 1})")
        self.files.append(source)

    def pop(self) -> Source:
        """Remove and return the active source."""
        source = self.files.pop()
        logger.debug(f"Popped {source.name} (depth {len(self.files)})")
        return source

    def top(self) -> Source:
        """Return the active source."""
        return self.files[-1]

    def depth(self) -> int:
        """Return the number of sources on the active stack."""
        return len(self.files)

    def stash(self, source: Source) -> None:
        """Save the active stack and replace it with [source]."""
        self._stashed.append(self.files)
        self.files = [source]
        logger.debug(f"Stashed input stack, now reading {source.name}")

    def unstash(self) -> None:
        """Restore the stack saved by the matching stash()."""
        self.files = self._stashed.pop()
        logger.debug("Restored stashed input stack")

    # =========================================================================
    # Character Access
    # =========================================================================

    def read_char(self) -> str:
        """
        Read the next canonical character of the active source.

        Backslash-newline pairs are skipped. Returns EOF at the end of the
        active source.
        """
        source = self.top()
        while True:
            c = source.get()
            if c != "\\":
                return c
            c2 = source.get()
            if c2 == NEWLINE:
                continue
            source.unget(c2)
            return c

    def unread_char(self, c: str) -> None:
        """Push c back onto the active source (no-op for EOF)."""
        if c == EOF:
            return
        self.top().unget(c)

    def read_char_across_files(self) -> str:
        """
        Read the next character, falling through exhausted sources.

        When the active source ends and another source is beneath it, the
        active one is closed and popped and reading continues below. EOF
        is returned only when the last source is exhausted.
        """
        while True:
            c = self.read_char()
            if c != EOF or len(self.files) == 1:
                return c
            self.pop().close()

    # =========================================================================
    # Positions
    # =========================================================================

    def current_position(self) -> SourceLocation:
        """Return name, line and column of the active source."""
        if not self.files:
            return UNKNOWN_LOCATION
        return self.top().location

    def input_position(self) -> str:
        """Return the current position formatted as 'name:line:column'."""
        return str(self.current_position())
