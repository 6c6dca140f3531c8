"""
Character Sources
=================

A source is one input the tokenizer reads characters from. It is either
backed by an open binary stream (a file or standard input) or by an
in-memory string.

Reading a source performs the first translation phases:

- "\\r\\n" and a lone "\\r" are canonicalized to "\\n".
- End of input that does not immediately follow a newline is turned into
  a newline followed by end of input, so every logical line ends with
  "\\n" whether or not the file does.

Trigraphs are not supported.

Characters are one-character strings holding a single source byte. Bytes
are mapped through Latin-1, so values 0x80-0xFF come through unchanged.
End of input is the empty string EOF.

Each source also keeps its own line/column, a small pushback buffer and
a counter used to number the tokens lexed from it.
"""

import logging
import os
import sys
from typing import BinaryIO, Optional, Union

from cpptok.errors import PushbackOverflowError, SourceOpenError, SourceLocation

logger = logging.getLogger(__name__)

# End of input marker
EOF = ""

NEWLINE = "\n"


# =============================================================================
# Source Base Class
# =============================================================================

class Source:
    """
    Shared state and canonicalization for all input sources.

    Subclasses supply raw byte access through _getc/_ungetc; this class
    turns it into canonical characters with position tracking.

    Attributes:
        name: Display name used in diagnostics
        line: Current line (1-indexed)
        column: Current column (1-indexed)
        last: Last character produced by the canonicalizer
        token_count: Sequence index for the next token lexed from here
        mtime: Modification time captured at open, None for strings
    """

    # One character of lookahead plus slack for backslash-newline and
    # escape-prefix checks.
    PUSHBACK_CAPACITY = 3

    def __init__(self, name: str):
        self.name = name
        self.line = 1
        self.column = 1
        self.last: Optional[str] = None
        self.token_count = 0
        self.mtime: Optional[float] = None
        self._pushback: list[str] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Current position as a SourceLocation."""
        return SourceLocation(self.name, self.line, self.column)

    def next_token_index(self) -> int:
        """Return the sequence index for a new token and advance the counter."""
        index = self.token_count
        self.token_count += 1
        return index

    # =========================================================================
    # Raw Access (implemented by subclasses)
    # =========================================================================

    def _getc(self) -> str:
        raise NotImplementedError

    def _ungetc(self, c: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Release the underlying input, if any."""

    # =========================================================================
    # Canonical Character Access
    # =========================================================================

    def _read(self) -> str:
        """Read one canonical character from the underlying input."""
        c = self._getc()
        if c == EOF:
            c = EOF if self.last in (NEWLINE, EOF) else NEWLINE
        elif c == "\r":
            c2 = self._getc()
            if c2 != NEWLINE:
                self._ungetc(c2)
            c = NEWLINE
        self.last = c
        return c

    def get(self) -> str:
        """
        Return the next character, preferring unread characters.

        Line and column are updated once per character produced.
        """
        if self._pushback:
            c = self._pushback.pop()
        else:
            c = self._read()

        if c == NEWLINE:
            self.line += 1
            self.column = 1
        elif c != EOF:
            self.column += 1
        return c

    def unget(self, c: str) -> None:
        """
        Push a character back and undo its position update.

        Raises:
            PushbackOverflowError: If the pushback buffer is already full
        """
        if c == EOF:
            return
        if len(self._pushback) >= self.PUSHBACK_CAPACITY:
            raise PushbackOverflowError(self.name, self.PUSHBACK_CAPACITY)
        self._pushback.append(c)

        if c == NEWLINE:
            self.column = 1
            self.line -= 1
        else:
            self.column -= 1


# =============================================================================
# Stream-Backed Source
# =============================================================================

class FileSource(Source):
    """
    Source backed by an open binary stream.

    Use FileSource.open() to open a path (or "-" for standard input).
    """

    def __init__(
        self,
        handle: BinaryIO,
        name: str,
        mtime: Optional[float] = None,
        owns_handle: bool = True,
    ):
        super().__init__(name)
        self.mtime = mtime
        self._handle = handle
        self._owns_handle = owns_handle
        self._lookahead: Optional[str] = None

    @classmethod
    def open(cls, name: str) -> "FileSource":
        """
        Open a named file, or standard input when name is "-".

        Raises:
            SourceOpenError: If the file cannot be opened or stat-ed
        """
        if name == "-":
            handle = sys.stdin.buffer
            owns_handle = False
        else:
            try:
                handle = open(name, "rb")
            except OSError as e:
                raise SourceOpenError(name, e.strerror or str(e)) from e
            owns_handle = True

        try:
            mtime = os.fstat(handle.fileno()).st_mtime
        except OSError as e:
            if owns_handle:
                handle.close()
            raise SourceOpenError(name, f"fstat failed: {e}") from e

        logger.debug(f"Opened {name}")
        return cls(handle, name, mtime=mtime, owns_handle=owns_handle)

    def _getc(self) -> str:
        if self._lookahead is not None:
            c, self._lookahead = self._lookahead, None
            return c
        data = self._handle.read(1)
        if not data:
            return EOF
        return chr(data[0])

    def _ungetc(self, c: str) -> None:
        if c != EOF:
            self._lookahead = c

    def close(self) -> None:
        if self._owns_handle:
            self._handle.close()
        logger.debug(f"Closed {self.name}")


# =============================================================================
# String-Backed Source
# =============================================================================

class StringSource(Source):
    """
    Source backed by an in-memory string.

    A str is encoded as UTF-8 first so both variants read bytes.
    """

    def __init__(self, text: Union[str, bytes], name: str = "(string)"):
        super().__init__(name)
        if isinstance(text, str):
            text = text.encode("utf-8")
        self._data = bytes(text)
        self._pos = 0

    def _getc(self) -> str:
        if self._pos >= len(self._data):
            return EOF
        c = chr(self._data[self._pos])
        self._pos += 1
        return c

    def _ungetc(self, c: str) -> None:
        if c != EOF:
            self._pos -= 1


# =============================================================================
# Convenience Constructors
# =============================================================================

def open_source(name: str) -> FileSource:
    """Open a named file ("-" for stdin) as a source."""
    return FileSource.open(name)


def source_from_string(text: Union[str, bytes], name: str = "(string)") -> StringSource:
    """Wrap an in-memory string as a source."""
    return StringSource(text, name)
