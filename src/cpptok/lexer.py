"""
C Preprocessing Tokenizer
=========================

This is the translation phase after the character-level phases done by
cpptok.source and cpptok.stream. The character stream is decomposed
into preprocessing tokens.

- Each comment is treated as a space character.
- Runs of spaces are dropped, but their presence is recorded on the
  following token as the `space` flag.
- Newlines become NEWLINE tokens.

Pp-tokens are looser than the final C tokens: ".32e." is a valid
pp-number, and keywords are plain identifiers. The preprocessor turns
pp-tokens into real tokens and rejects invalid ones.

Escape Sequences
----------------
| Escape        | Value                                       |
|---------------|---------------------------------------------|
| \\a \\b \\f \\n \\r \\t \\v | control characters              |
| \\e           | ESC (GNU extension)                         |
| \\' \\" \\? \\\\ | the character itself                     |
| \\xHH...      | one or more hex digits                      |
| \\ooo         | up to three octal digits                    |
| \\uXXXX       | universal character name (4 hex digits)     |
| \\UXXXXXXXX   | universal character name (8 hex digits)     |

Example Usage
-------------
>>> from cpptok.lexer import Tokenizer
>>> lexer = Tokenizer.from_string("x <<= 1;")
>>> [tok.spelling() for tok in lexer.tokens()]
['x', '<<=', '1', ';', '\\n', '(eof)']
"""

import logging
import string
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Union

from cpptok.errors import (
    DiagnosticCollector,
    HeaderNameError,
    InvalidEscapeError,
    InvalidUniversalCharacterError,
    PromotedWarningError,
    SourceLocation,
    UnconsumedInputError,
    UnterminatedCharError,
    UnterminatedCommentError,
    UnterminatedStringError,
)
from cpptok.source import EOF, NEWLINE, FileSource, StringSource
from cpptok.stream import InputStream
from cpptok.tokens import Encoding, Punct, Token, TokenKind

logger = logging.getLogger(__name__)


# =============================================================================
# Character Classes
# =============================================================================
# Sets rather than strings: EOF is "" and `"" in "abc"` is True.

DIGITS = frozenset(string.digits)
LETTERS = frozenset(string.ascii_letters)
HEX_DIGITS = frozenset(string.hexdigits)
OCT_DIGITS = frozenset(string.octdigits)
WHITESPACE = frozenset(" \t\f\v")
EXPONENT_MARKERS = frozenset("eEpP")
SIGNS = frozenset("+-")
UCN_MARKERS = frozenset("uU")

SIMPLE_ESCAPES = {
    "'": ord("'"),
    '"': ord('"'),
    "?": ord("?"),
    "\\": ord("\\"),
    "a": 0x07,
    "b": 0x08,
    "f": 0x0C,
    "n": 0x0A,
    "r": 0x0D,
    "t": 0x09,
    "v": 0x0B,
    "e": 0x1B,
}

SINGLE_PUNCTUATORS = frozenset("(),;[]{}?~")


def is_ident_start(c: str) -> bool:
    """Return True if c can start an identifier."""
    return c in LETTERS or c == "_" or c == "$" or (c != EOF and ord(c) >= 0x80)


def is_ident_char(c: str) -> bool:
    """Return True if c can continue an identifier."""
    return is_ident_start(c) or c in DIGITS


def is_valid_ucn(c: int) -> bool:
    """
    Check a universal character name's code point.

    U+D800 to U+DFFF are reserved for surrogate pairs. ASCII may not be
    spelled with \\u or \\U, except for '$', '@' and '`', which are not in
    the basic character set.
    """
    if 0xD800 <= c <= 0xDFFF:
        return False
    return 0xA0 <= c or c in (ord("$"), ord("@"), ord("`"))


def write_utf8(buf: bytearray, c: int) -> None:
    """Append code point c to buf as UTF-8."""
    if c < 0x80:
        buf.append(c)
    elif c < 0x800:
        buf.append(0xC0 | (c >> 6))
        buf.append(0x80 | (c & 0x3F))
    elif c < 0x10000:
        buf.append(0xE0 | (c >> 12))
        buf.append(0x80 | ((c >> 6) & 0x3F))
        buf.append(0x80 | (c & 0x3F))
    elif c < 0x200000:
        buf.append(0xF0 | (c >> 18))
        buf.append(0x80 | ((c >> 12) & 0x3F))
        buf.append(0x80 | ((c >> 6) & 0x3F))
        buf.append(0x80 | (c & 0x3F))
    else:
        raise ValueError(f"code point out of UTF-8 range: {c:#x}")


def _decode(buf: bytearray) -> str:
    return bytes(buf).decode("utf-8", errors="replace")


# =============================================================================
# Options
# =============================================================================

@dataclass
class LexerOptions:
    """
    Tokenizer configuration.

    Attributes:
        enable_warnings: Report non-fatal diagnostics (False drops them)
        warnings_as_errors: Raise PromotedWarningError instead of warning
        max_warnings: Warnings kept by the collector; later ones are
                      still logged
    """
    enable_warnings: bool = True
    warnings_as_errors: bool = False
    max_warnings: int = 100


# =============================================================================
# Tokenizer
# =============================================================================

class Tokenizer:
    """
    Turns the character stream of an InputStream into pp-tokens.

    Besides plain reading, the tokenizer supports:
    - token pushback (push_back) and whole-stream substitution
      (stash_pending_buffer / unstash_pending_buffer),
    - lexing one token from an isolated string (lex_from_string),
    - the special #include operand syntax (read_header_name),
    - fast skipping of inactive #if groups (skip_conditional_block).

    Usage:
        lexer = Tokenizer.from_file("hello.c")
        for tok in lexer.tokens():
            print(tok)

    Attributes:
        stream: The InputStream being read
        options: Tokenizer configuration
        diagnostics: Collected warnings
    """

    def __init__(
        self,
        stream: Optional[InputStream] = None,
        options: Optional[LexerOptions] = None,
    ):
        self.stream = stream if stream is not None else InputStream()
        self.options = options or LexerOptions()
        self.diagnostics = DiagnosticCollector(self.options.max_warnings)

        # Pending-token buffers; the bottom one always exists
        self._buffers: list[list[Token]] = [[]]

        # Start position of the token being read
        self._mark = (1, 1)

    @classmethod
    def from_file(cls, name: str, options: Optional[LexerOptions] = None) -> "Tokenizer":
        """
        Create a tokenizer reading the named file ("-" for stdin).

        Raises:
            SourceOpenError: If the file cannot be opened
        """
        return cls(InputStream(FileSource.open(name)), options)

    @classmethod
    def from_string(
        cls,
        text: Union[str, bytes],
        name: str = "(string)",
        options: Optional[LexerOptions] = None,
    ) -> "Tokenizer":
        """Create a tokenizer reading an in-memory string."""
        return cls(InputStream(StringSource(text, name)), options)

    # =========================================================================
    # Character Access
    # =========================================================================

    def _readc(self) -> str:
        return self.stream.read_char_across_files()

    def _unreadc(self, c: str) -> None:
        self.stream.unread_char(c)

    def _peek(self) -> str:
        c = self._readc()
        self._unreadc(c)
        return c

    def _next(self, expect: str) -> bool:
        """Consume the next character if it is expect."""
        c = self._readc()
        if c == expect:
            return True
        self._unreadc(c)
        return False

    # =========================================================================
    # Positions and Diagnostics
    # =========================================================================

    def _get_pos(self, delta: int = 0) -> SourceLocation:
        source = self.stream.top()
        return SourceLocation(source.name, source.line, source.column + delta)

    def _mark_pos(self) -> None:
        source = self.stream.top()
        self._mark = (source.line, source.column)

    def _marked_location(self) -> SourceLocation:
        return SourceLocation(self.stream.top().name, *self._mark)

    def _warn(self, location: SourceLocation, message: str) -> None:
        """
        Report a non-fatal diagnostic.

        Raises:
            PromotedWarningError: If warnings_as_errors is set
        """
        if not self.options.enable_warnings:
            return
        if self.options.warnings_as_errors:
            raise PromotedWarningError(message, location)
        logger.warning(self.diagnostics.add_warning(message, location))

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        kind: TokenKind,
        value=None,
        encoding: Encoding = Encoding.NONE,
    ) -> Token:
        """Create a token at the marked position, numbered within its source."""
        source = self.stream.top() if self.stream.depth() else None
        return Token(
            kind=kind,
            value=value,
            encoding=encoding,
            source=source,
            line=self._mark[0],
            column=self._mark[1],
            index=source.next_token_index() if source is not None else -1,
        )

    def _make_keyword(self, punct: Punct) -> Token:
        return self._make_token(TokenKind.KEYWORD, punct)

    def _space_token(self) -> Token:
        return Token(TokenKind.SPACE)

    def _eof_token(self) -> Token:
        if self.stream.depth():
            self._mark_pos()
        return self._make_token(TokenKind.EOF)

    # =========================================================================
    # Whitespace and Comments
    # =========================================================================

    def _skip_line(self) -> None:
        """Skip to the end of the line, leaving the newline unread."""
        while True:
            c = self._readc()
            if c == EOF:
                return
            if c == NEWLINE:
                self._unreadc(c)
                return

    def _do_skip_space(self) -> bool:
        c = self._readc()
        if c == EOF:
            return False
        if c in WHITESPACE:
            return True
        if c == "/":
            if self._next("*"):
                self._skip_block_comment()
                return True
            if self._next("/"):
                self._skip_line()
                return True
        self._unreadc(c)
        return False

    def _skip_space(self) -> bool:
        """Skip spaces and comments; return True if anything was skipped."""
        if not self._do_skip_space():
            return False
        while self._do_skip_space():
            pass
        return True

    def _skip_block_comment(self) -> None:
        """
        Skip the body of a /* */ comment.

        Raises:
            UnterminatedCommentError: If input ends inside the comment
        """
        location = self._get_pos(-2)
        maybe_end = False
        while True:
            c = self._readc()
            if c == EOF:
                raise UnterminatedCommentError(location)
            if c == "/" and maybe_end:
                return
            maybe_end = c == "*"

    # =========================================================================
    # Conditional Skipping
    # =========================================================================

    def _skip_char_literal(self) -> None:
        if self._readc() == "\\":
            self._readc()
        c = self._readc()
        while c != EOF and c != "'":
            c = self._readc()

    def _skip_string_literal(self) -> None:
        c = self._readc()
        while c != EOF and c != '"':
            if c == "\\":
                self._readc()
            c = self._readc()

    def skip_conditional_block(self) -> None:
        """
        Skip a group excluded by #if, #ifdef and the like.

        The group is not tokenized: only directives at the start of a line
        are looked at, and nested #if groups are balanced. Stops before the
        #else, #elif or #endif that ends the group, pushing back its '#'
        and name so the next next_token() returns them. Reaching the end
        of input simply returns.
        """
        nest = 0
        while True:
            bol = self.stream.top().column == 1
            self._skip_space()
            c = self._readc()
            if c == EOF:
                return
            if c == "'":
                self._skip_char_literal()
                continue
            if c == '"':
                self._skip_string_literal()
                continue
            if c != "#" or not bol:
                continue

            source = self.stream.top()
            line, column = source.line, source.column - 1
            tok = self.next_token()
            if tok.kind is not TokenKind.IDENT:
                continue

            if not nest and tok.value in ("else", "elif", "endif"):
                self.push_back(tok)
                hash_tok = Token(
                    kind=TokenKind.KEYWORD,
                    value=Punct.HASH,
                    source=source,
                    line=line,
                    column=column,
                    index=source.next_token_index(),
                    bol=True,
                )
                self.push_back(hash_tok)
                return

            if tok.value in ("if", "ifdef", "ifndef"):
                nest += 1
            elif nest and tok.value == "endif":
                nest -= 1
            self._skip_line()

    # =========================================================================
    # Numbers
    # =========================================================================

    def _read_number(self, c: str) -> Token:
        """
        Read a pp-number.

        Integers, floats and bases are not told apart: digits, letters,
        dots and a sign right after e/E/p/P are all accepted.
        """
        chars = [c]
        last = c
        while True:
            c = self._readc()
            flonum = last in EXPONENT_MARKERS and c in SIGNS
            if not (c in DIGITS or c in LETTERS or c == "." or flonum):
                self._unreadc(c)
                return self._make_token(TokenKind.NUMBER, "".join(chars))
            chars.append(c)
            last = c

    # =========================================================================
    # Escape Sequences
    # =========================================================================

    def _read_octal_char(self, c: str) -> int:
        r = int(c, 8)
        for _ in range(2):
            if self._peek() not in OCT_DIGITS:
                break
            r = (r << 3) | int(self._readc(), 8)
        return r

    def _read_hex_char(self) -> int:
        """
        Read the digits of a \\x escape.

        Raises:
            InvalidEscapeError: If no hex digit follows \\x
        """
        location = self._get_pos(-2)
        c = self._readc()
        if c not in HEX_DIGITS:
            raise InvalidEscapeError(c, location)
        r = 0
        while c in HEX_DIGITS:
            r = (r << 4) | int(c, 16)
            c = self._readc()
        self._unreadc(c)
        return r

    def _read_universal_char(self, length: int) -> int:
        """
        Read the 4 or 8 hex digits of \\u or \\U.

        Raises:
            InvalidUniversalCharacterError: On a bad digit or code point
        """
        location = self._get_pos(-2)
        r = 0
        for _ in range(length):
            c = self._readc()
            if c not in HEX_DIGITS:
                raise InvalidUniversalCharacterError(c or "(eof)", location)
            r = (r << 4) | int(c, 16)
        if not is_valid_ucn(r):
            marker = "u" if length == 4 else "U"
            raise InvalidUniversalCharacterError(f"\\{marker}{r:0{length}x}", location)
        return r

    def _read_escaped_char(self) -> int:
        """Decode the escape sequence after a backslash."""
        location = self._get_pos(-1)
        c = self._readc()
        if c in SIMPLE_ESCAPES:
            return SIMPLE_ESCAPES[c]
        if c == "x":
            return self._read_hex_char()
        if c == "u":
            return self._read_universal_char(4)
        if c == "U":
            return self._read_universal_char(8)
        if c in OCT_DIGITS:
            return self._read_octal_char(c)
        self._warn(location, f"unknown escape character: \\{c}")
        return ord(c) if c != EOF else -1

    # =========================================================================
    # Literals
    # =========================================================================

    def _read_char_literal(self, encoding: Encoding) -> Token:
        """
        Read a character literal after its opening quote.

        Raises:
            UnterminatedCharError: If the closing quote is missing
        """
        c = self._readc()
        if c == EOF:
            raise UnterminatedCharError(self._marked_location())
        r = self._read_escaped_char() if c == "\\" else ord(c)
        if self._readc() != "'":
            raise UnterminatedCharError(self._marked_location())

        if encoding is Encoding.NONE:
            # Plain character constants have type char
            r &= 0xFF
            if r >= 0x80:
                r -= 0x100
        return self._make_token(TokenKind.CHAR, r, encoding)

    def _read_string(self, encoding: Encoding) -> Token:
        """
        Read a string literal after its opening quote.

        Universal character names are stored as UTF-8; every other
        character or escape is stored as one byte.

        Raises:
            UnterminatedStringError: If input ends before the closing quote
        """
        buf = bytearray()
        while True:
            c = self._readc()
            if c == EOF:
                raise UnterminatedStringError(self._marked_location())
            if c == '"':
                break
            if c != "\\":
                buf.append(ord(c))
                continue
            isucs = self._peek() in UCN_MARKERS
            r = self._read_escaped_char()
            if isucs:
                write_utf8(buf, r)
            else:
                buf.append(r & 0xFF)
        return self._make_token(TokenKind.STRING, bytes(buf), encoding)

    def _read_ident(self, c: str) -> Token:
        """Read an identifier; \\u and \\U names are stored as UTF-8."""
        buf = bytearray([ord(c)])
        while True:
            c = self._readc()
            if is_ident_char(c):
                buf.append(ord(c))
                continue
            if c == "\\" and self._peek() in UCN_MARKERS:
                write_utf8(buf, self._read_escaped_char())
                continue
            self._unreadc(c)
            return self._make_token(TokenKind.IDENT, _decode(buf))

    # =========================================================================
    # Punctuators
    # =========================================================================

    def _read_hash_digraph(self) -> Optional[Token]:
        """
        Read a digraph starting with '%': %> %: %:%:

        Returns None if the '%' starts no digraph.
        """
        if self._next(">"):
            return self._make_keyword(Punct.RBRACE)
        if self._next(":"):
            if self._next("%"):
                if self._next(":"):
                    return self._make_keyword(Punct.HASHHASH)
                self._unreadc("%")
            return self._make_keyword(Punct.HASH)
        return None

    def _read_rep(self, expect: str, t1: Punct, els: Punct) -> Token:
        return self._make_keyword(t1 if self._next(expect) else els)

    def _read_rep2(self, expect1: str, t1: Punct, expect2: str, t2: Punct, els: Punct) -> Token:
        if self._next(expect1):
            return self._make_keyword(t1)
        return self._make_keyword(t2 if self._next(expect2) else els)

    # =========================================================================
    # Raw Token Reading
    # =========================================================================

    def read_raw(self) -> Token:
        """
        Read one raw token.

        Returns a SPACE token if whitespace or comments were skipped;
        the next call then returns the token after them.
        """
        if self._skip_space():
            return self._space_token()
        self._mark_pos()
        c = self._readc()

        if c == NEWLINE:
            return self._make_token(TokenKind.NEWLINE)
        if c == EOF:
            return self._make_token(TokenKind.EOF)

        if c in ("L", "U"):
            # Wide/char32_t character/string literal
            encoding = Encoding.WCHAR if c == "L" else Encoding.CHAR32
            if self._next('"'):
                return self._read_string(encoding)
            if self._next("'"):
                return self._read_char_literal(encoding)
            return self._read_ident(c)
        if c == "u":
            if self._next('"'):
                return self._read_string(Encoding.CHAR16)
            if self._next("'"):
                return self._read_char_literal(Encoding.CHAR16)
            if self._next("8"):
                if self._next('"'):
                    return self._read_string(Encoding.UTF8)
                self._unreadc("8")
            return self._read_ident(c)
        if is_ident_start(c):
            return self._read_ident(c)
        if c in DIGITS:
            return self._read_number(c)

        if c == '"':
            return self._read_string(Encoding.NONE)
        if c == "'":
            return self._read_char_literal(Encoding.NONE)

        if c == ".":
            if self._peek() in DIGITS:
                return self._read_number(c)
            if self._next("."):
                if self._next("."):
                    return self._make_keyword(Punct.ELLIPSIS)
                return self._make_token(TokenKind.IDENT, "..")
            return self._make_keyword(Punct.DOT)

        if c in SINGLE_PUNCTUATORS:
            return self._make_keyword(Punct(ord(c)))
        if c == ":":
            return self._make_keyword(Punct.RBRACKET if self._next(">") else Punct.COLON)
        if c == "#":
            return self._make_keyword(Punct.HASHHASH if self._next("#") else Punct.HASH)
        if c == "+":
            return self._read_rep2("+", Punct.INCREMENT, "=", Punct.PLUS_ASSIGN, Punct.PLUS)
        if c == "*":
            return self._read_rep("=", Punct.STAR_ASSIGN, Punct.STAR)
        if c == "=":
            return self._read_rep("=", Punct.EQ, Punct.ASSIGN)
        if c == "!":
            return self._read_rep("=", Punct.NE, Punct.NOT)
        if c == "&":
            return self._read_rep2("&", Punct.AND, "=", Punct.AND_ASSIGN, Punct.AMPERSAND)
        if c == "|":
            return self._read_rep2("|", Punct.OR, "=", Punct.OR_ASSIGN, Punct.PIPE)
        if c == "^":
            return self._read_rep("=", Punct.XOR_ASSIGN, Punct.CARET)
        if c == "/":
            return self._read_rep("=", Punct.SLASH_ASSIGN, Punct.SLASH)
        if c == "-":
            if self._next("-"):
                return self._make_keyword(Punct.DECREMENT)
            if self._next(">"):
                return self._make_keyword(Punct.ARROW)
            if self._next("="):
                return self._make_keyword(Punct.MINUS_ASSIGN)
            return self._make_keyword(Punct.MINUS)
        if c == "<":
            if self._next("<"):
                return self._read_rep("=", Punct.LSHIFT_ASSIGN, Punct.LSHIFT)
            if self._next("="):
                return self._make_keyword(Punct.LE)
            if self._next(":"):
                return self._make_keyword(Punct.LBRACKET)
            if self._next("%"):
                return self._make_keyword(Punct.LBRACE)
            return self._make_keyword(Punct.LT)
        if c == ">":
            if self._next("="):
                return self._make_keyword(Punct.GE)
            if self._next(">"):
                return self._read_rep("=", Punct.RSHIFT_ASSIGN, Punct.RSHIFT)
            return self._make_keyword(Punct.GT)
        if c == "%":
            tok = self._read_hash_digraph()
            if tok is not None:
                return tok
            return self._read_rep("=", Punct.PERCENT_ASSIGN, Punct.PERCENT)

        return self._make_token(TokenKind.INVALID, c)

    # =========================================================================
    # Header Names
    # =========================================================================

    def _buffer_empty(self) -> bool:
        return len(self._buffers) == 1 and not self._buffers[0]

    def read_header_name(self) -> Optional[tuple[str, bool]]:
        """
        Read the operand of #include.

        Header names are not ordinary tokens: they may be quoted by < and
        >, and a backslash inside them is not an escape.

        Returns:
            (name, is_system), or None without consuming anything if the
            input does not start with '"' or '<', or if tokens are pending

        Raises:
            HeaderNameError: If the name is unterminated or empty
        """
        if not self._buffer_empty():
            return None
        self._skip_space()
        location = self._get_pos()
        if self._next('"'):
            is_system = False
            close = '"'
        elif self._next("<"):
            is_system = True
            close = ">"
        else:
            return None

        buf = bytearray()
        while not self._next(close):
            c = self._readc()
            if c == EOF or c == NEWLINE:
                raise HeaderNameError("premature end of header name", location)
            buf.append(ord(c))
        if not buf:
            raise HeaderNameError("header name should not be empty", location)
        return _decode(buf), is_system

    # =========================================================================
    # Token Buffers and Pushback
    # =========================================================================

    def stash_pending_buffer(self, tokens: Sequence[Token]) -> None:
        """
        Temporarily replace the input with the given tokens.

        next_token() returns the tokens in order, then EOF until
        unstash_pending_buffer() restores the previous input.
        """
        self._buffers.append(list(reversed(tokens)))

    def unstash_pending_buffer(self) -> None:
        """Restore the input replaced by stash_pending_buffer()."""
        self._buffers.pop()

    def push_back(self, tok: Token) -> None:
        """Return a token to the input; EOF tokens are dropped."""
        if tok.kind is TokenKind.EOF:
            return
        self._buffers[-1].append(tok)

    # =========================================================================
    # Public Token Interface
    # =========================================================================

    def lex_from_string(self, text: Union[str, bytes]) -> Token:
        """
        Read exactly one token from an isolated string.

        The current input stack is set aside while lexing and restored
        afterwards. A trailing newline is allowed.

        Raises:
            UnconsumedInputError: If more than one token is present
        """
        self.stream.stash(StringSource(text))
        try:
            tok = self.read_raw()
            self._next(NEWLINE)
            location = self._get_pos()
            if self._peek() != EOF:
                if isinstance(text, bytes):
                    text = text.decode("utf-8", errors="replace")
                raise UnconsumedInputError(text, location)
            return tok
        finally:
            self.stream.unstash()

    def next_token(self) -> Token:
        """
        Return the next token.

        Pending tokens come first. Otherwise a fresh token is read, with
        `space` set if whitespace preceded it and `bol` set if it starts
        a line.
        """
        buf = self._buffers[-1]
        if buf:
            return buf.pop()
        if len(self._buffers) > 1:
            return self._eof_token()
        bol = self.stream.top().column == 1
        tok = self.read_raw()
        while tok.kind is TokenKind.SPACE:
            tok = self.read_raw()
            tok.space = True
        tok.bol = bol
        return tok

    def close(self) -> None:
        """Close every source still on the input stack."""
        while self.stream.depth():
            self.stream.pop().close()

    def tokens(self) -> Iterator[Token]:
        """
        Generate tokens until end of input.

        Yields:
            Each token from next_token(), ending with the EOF token
        """
        while True:
            tok = self.next_token()
            yield tok
            if tok.kind is TokenKind.EOF:
                return


def is_keyword(tok: Token, punct: Punct) -> bool:
    """Return True if tok is the punctuator punct."""
    return tok.is_keyword(punct)


def is_ident(tok: Token, name: str) -> bool:
    """Return True if tok is the identifier name."""
    return tok.is_ident(name)
