"""
cpptok Error Hierarchy
======================

This module defines the exception hierarchy for the tokenizer pipeline.
All exceptions inherit from CppTokError, allowing callers to catch every
tokenizer-related error with a single except clause.

Exception Hierarchy
-------------------
CppTokError (base)
├── PushbackOverflowError - too many characters unread (internal bug)
└── DiagnosticError - errors that point at a source position
    ├── SourceOpenError - input cannot be opened or stat-ed
    ├── PromotedWarningError - a warning raised under warnings_as_errors
    └── CSyntaxError - lexical errors
        ├── UnterminatedCommentError - missing */
        ├── UnterminatedStringError - missing closing "
        ├── UnterminatedCharError - missing closing '
        ├── InvalidEscapeError - \\x without hex digits
        ├── InvalidUniversalCharacterError - bad \\u or \\U
        ├── HeaderNameError - malformed #include operand
        └── UnconsumedInputError - leftovers after lex_from_string

Error Message Format
--------------------
    filename:line:column: error: description
    hint: suggestion for fixing (when available)

Warnings use the same prefix with "warning:" instead of "error:".
"""

from dataclasses import dataclass
from typing import List, Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class CppTokError(Exception):
    """
    Base exception for all cpptok errors.

        try:
            tokenizer.next_token()
        except CppTokError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source ("-" for stdin, "(string)" for strings)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


UNKNOWN_LOCATION = SourceLocation("(unknown)", 0, 0)


# =============================================================================
# Located Errors
# =============================================================================

class DiagnosticError(CppTokError):
    """
    Base class for errors tied to a source position.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location and hint.

            foo.c:3:9: error: unterminated string
            hint: add closing '"' to complete the string
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class SourceOpenError(DiagnosticError):
    """
    Input file cannot be opened, or its descriptor cannot be stat-ed.
    """

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Cannot open {filename}: {reason}")


class PromotedWarningError(DiagnosticError):
    """A warning that was turned into an error by warnings_as_errors."""
    pass


# =============================================================================
# Syntax Errors
# =============================================================================

class CSyntaxError(DiagnosticError):
    """
    Lexical error in C source code.

    Raised when the tokenizer reaches input it cannot form into a
    preprocessing token: unterminated comments and literals, malformed
    escapes, and malformed header names.
    """
    pass


class UnterminatedCommentError(CSyntaxError):
    """Block comment still open at end of input."""

    def __init__(self, location: Optional[SourceLocation] = None):
        super().__init__(
            "premature end of block comment",
            location=location,
            hint="add closing */ to terminate the comment",
        )


class UnterminatedStringError(CSyntaxError):
    """
    Unterminated string literal.

    Example:
        char *s = "hello
    """

    def __init__(self, location: Optional[SourceLocation] = None):
        super().__init__(
            "unterminated string",
            location=location,
            hint="add closing '\"' to complete the string",
        )


class UnterminatedCharError(CSyntaxError):
    """Character literal without its closing quote."""

    def __init__(self, location: Optional[SourceLocation] = None):
        super().__init__(
            "unterminated char",
            location=location,
            hint="character literals hold a single character followed by '",
        )


class InvalidEscapeError(CSyntaxError):
    """\\x escape not followed by a hexadecimal digit."""

    def __init__(self, found: str, location: Optional[SourceLocation] = None):
        self.found = found
        super().__init__(
            f"\\x is not followed by a hexadecimal character: {found or '(eof)'}",
            location=location,
        )


class InvalidUniversalCharacterError(CSyntaxError):
    """
    Invalid universal character name.

    Raised for a non-hex digit inside \\u/\\U, a surrogate code point,
    or a code point below U+00A0 other than '$', '@' and '`'.
    """

    def __init__(self, spelling: str, location: Optional[SourceLocation] = None):
        self.spelling = spelling
        super().__init__(
            f"invalid universal character: {spelling}",
            location=location,
        )


class HeaderNameError(CSyntaxError):
    """Unterminated or empty #include header name."""
    pass


class UnconsumedInputError(CSyntaxError):
    """Text left over after lexing a single token from a string."""

    def __init__(self, text: str, location: Optional[SourceLocation] = None):
        self.text = text
        super().__init__(f"unconsumed input: {text}", location=location)


# =============================================================================
# Internal Errors
# =============================================================================

class PushbackOverflowError(CppTokError):
    """
    More characters were unread than a source can hold.

    The tokenizer never needs more than a few characters of lookahead,
    so this always indicates a bug in the caller.
    """

    def __init__(self, filename: str, capacity: int):
        self.filename = filename
        self.capacity = capacity
        super().__init__(
            f"pushback buffer overflow in {filename} (capacity {capacity})"
        )


# =============================================================================
# Warning Collection
# =============================================================================

class DiagnosticCollector:
    """
    Collects warnings for batch reporting.

    The tokenizer records every non-fatal diagnostic here so callers can
    inspect or print them after lexing.

    Example:
        collector = DiagnosticCollector(max_warnings=100)
        collector.add_warning("unknown escape character: \\\\q", location)
        if collector.warning_count():
            print(collector.report())
    """

    def __init__(self, max_warnings: int = 100):
        """
        Initialize the collector.

        Args:
            max_warnings: Maximum warnings to keep; later ones are dropped
        """
        self.warnings: List[str] = []
        self.max_warnings = max_warnings

    def add_warning(self, message: str, location: Optional[SourceLocation] = None) -> str:
        """Add a warning message and return its formatted text."""
        if location:
            text = f"{location}: warning: {message}"
        else:
            text = f"warning: {message}"
        if len(self.warnings) < self.max_warnings:
            self.warnings.append(text)
        return text

    def warning_count(self) -> int:
        """Return the number of collected warnings."""
        return len(self.warnings)

    def report(self) -> str:
        """Format all warnings for display."""
        lines = list(self.warnings)
        word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(f"{len(self.warnings)} {word}")
        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected warnings."""
        self.warnings.clear()
