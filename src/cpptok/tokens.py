"""
Preprocessing Tokens
====================

Token model shared by the tokenizer and its consumers.

At this stage a keyword such as "if" is just an identifier; KEYWORD
tokens carry punctuator ids. Single-character punctuators use their
character code as id, multi-character operators use ids from 256 up.

Token Kinds
-----------
| Kind    | value                              |
|---------|------------------------------------|
| IDENT   | identifier text (str)              |
| KEYWORD | Punct id                           |
| NUMBER  | raw pp-number text (str)           |
| STRING  | decoded bytes (no terminating NUL) |
| CHAR    | decoded code point (int)           |
| INVALID | the offending character (str)      |
| SPACE, NEWLINE, EOF | None                   |
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Any, Optional, Union

from cpptok.errors import SourceLocation


# =============================================================================
# Token Kinds and Encodings
# =============================================================================

class TokenKind(Enum):
    """Categories of preprocessing tokens."""

    IDENT = auto()      # Identifier (keywords included)
    KEYWORD = auto()    # Punctuator, value is a Punct
    NUMBER = auto()     # pp-number, value is the undecoded text
    STRING = auto()     # String literal
    CHAR = auto()       # Character literal
    SPACE = auto()      # Whitespace/comment marker (internal)
    NEWLINE = auto()    # End of a logical line
    EOF = auto()        # End of input
    INVALID = auto()    # Character that starts no token


class Encoding(Enum):
    """Literal encoding, from the prefix before the opening quote."""

    NONE = ""
    WCHAR = "L"
    CHAR16 = "u"
    CHAR32 = "U"
    UTF8 = "u8"

    @property
    def prefix(self) -> str:
        """Return the source prefix spelling for this encoding."""
        return self.value


class Punct(IntEnum):
    """
    Punctuator ids.

    Single-character punctuators are keyed by their character code so
    Punct(ord(c)) works for them; compound operators follow from 256.
    """

    # === Single-character punctuators ===
    NOT = ord("!")
    HASH = ord("#")
    PERCENT = ord("%")
    AMPERSAND = ord("&")
    LPAREN = ord("(")
    RPAREN = ord(")")
    STAR = ord("*")
    PLUS = ord("+")
    COMMA = ord(",")
    MINUS = ord("-")
    DOT = ord(".")
    SLASH = ord("/")
    COLON = ord(":")
    SEMICOLON = ord(";")
    LT = ord("<")
    ASSIGN = ord("=")
    GT = ord(">")
    QUESTION = ord("?")
    LBRACKET = ord("[")
    RBRACKET = ord("]")
    CARET = ord("^")
    LBRACE = ord("{")
    PIPE = ord("|")
    RBRACE = ord("}")
    TILDE = ord("~")

    # === Multi-character operators ===
    ARROW = 256             # ->
    PLUS_ASSIGN = 257       # +=
    AND_ASSIGN = 258        # &=
    SLASH_ASSIGN = 259      # /=
    PERCENT_ASSIGN = 260    # %=
    STAR_ASSIGN = 261       # *=
    OR_ASSIGN = 262         # |=
    LSHIFT_ASSIGN = 263     # <<=
    RSHIFT_ASSIGN = 264     # >>=
    MINUS_ASSIGN = 265      # -=
    XOR_ASSIGN = 266        # ^=
    DECREMENT = 267         # --
    EQ = 268                # ==
    GE = 269                # >=
    INCREMENT = 270         # ++
    LE = 271                # <=
    AND = 272               # &&
    OR = 273                # ||
    NE = 274                # !=
    LSHIFT = 275            # <<
    RSHIFT = 276            # >>
    ELLIPSIS = 277          # ...
    HASHHASH = 278          # ##

    @property
    def spelling(self) -> str:
        """Return the primary source spelling of this punctuator."""
        if self.value < 256:
            return chr(self.value)
        return _COMPOUND_SPELLINGS[self]


_COMPOUND_SPELLINGS = {
    Punct.ARROW: "->",
    Punct.PLUS_ASSIGN: "+=",
    Punct.AND_ASSIGN: "&=",
    Punct.SLASH_ASSIGN: "/=",
    Punct.PERCENT_ASSIGN: "%=",
    Punct.STAR_ASSIGN: "*=",
    Punct.OR_ASSIGN: "|=",
    Punct.LSHIFT_ASSIGN: "<<=",
    Punct.RSHIFT_ASSIGN: ">>=",
    Punct.MINUS_ASSIGN: "-=",
    Punct.XOR_ASSIGN: "^=",
    Punct.DECREMENT: "--",
    Punct.EQ: "==",
    Punct.GE: ">=",
    Punct.INCREMENT: "++",
    Punct.LE: "<=",
    Punct.AND: "&&",
    Punct.OR: "||",
    Punct.NE: "!=",
    Punct.LSHIFT: "<<",
    Punct.RSHIFT: ">>",
    Punct.ELLIPSIS: "...",
    Punct.HASHHASH: "##",
}


# =============================================================================
# C Quoting Helpers
# =============================================================================

_QUOTES = {
    ord('"'): '\\"',
    ord("\\"): "\\\\",
    ord("\b"): "\\b",
    ord("\f"): "\\f",
    ord("\n"): "\\n",
    ord("\r"): "\\r",
    ord("\t"): "\\t",
}


def quote_cstring(data: bytes) -> str:
    """
    Render bytes as the body of a C string literal.

    Other unprintable bytes use three-digit octal escapes, which end
    after the third digit; a \\x escape would swallow a following hex
    digit.
    """
    parts = []
    for b in data:
        if b in _QUOTES:
            parts.append(_QUOTES[b])
        elif 0x20 <= b < 0x7F:
            parts.append(chr(b))
        else:
            parts.append(f"\\{b:03o}")
    return "".join(parts)


def quote_char(c: int) -> str:
    """Render a code point as the body of a C character literal."""
    if c == ord("\\"):
        return "\\\\"
    if c == ord("'"):
        return "\\'"
    if 0x20 <= c < 0x7F:
        return chr(c)
    if c < 0:
        c &= 0xFF
    if c <= 0xFF:
        return f"\\x{c:02x}"
    if c <= 0xFFFF:
        return f"\\u{c:04x}"
    return f"\\U{c:08x}"


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(eq=False)
class Token:
    """
    A single preprocessing token.

    Tokens are not modified after the tokenizer returns them, except for
    hideset, which belongs to the macro expander.

    Attributes:
        kind: The TokenKind classification
        value: Kind-specific payload (see module docstring)
        encoding: Literal encoding for STRING and CHAR tokens
        source: The Source the token was read from
        line: Line number of the first character (1-indexed)
        column: Column number of the first character (1-indexed)
        index: Sequence number of the token within its source
        space: True if whitespace or a comment precedes the token
        bol: True if the token is the first on its line
        hideset: Opaque slot for the macro expander
    """
    kind: TokenKind
    value: Union[str, bytes, int, Punct, None] = None
    encoding: Encoding = Encoding.NONE
    source: Any = None
    line: int = 0
    column: int = 0
    index: int = -1
    space: bool = False
    bol: bool = False
    hideset: Optional[object] = None

    def __repr__(self) -> str:
        """Format token for debugging output."""
        if self.value is None:
            return f"Token({self.kind.name}, {self.line}:{self.column})"
        return f"Token({self.kind.name}, {self.spelling()!r}, {self.line}:{self.column})"

    @property
    def filename(self) -> str:
        """Return the name of the originating source."""
        return self.source.name if self.source is not None else "(unknown)"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def is_keyword(self, punct: Punct) -> bool:
        """Return True if this is the punctuator punct."""
        return self.kind is TokenKind.KEYWORD and self.value == punct

    def is_ident(self, name: str) -> bool:
        """Return True if this is the identifier name."""
        return self.kind is TokenKind.IDENT and self.value == name

    def spelling(self) -> str:
        """Render the token back to C source text."""
        kind = self.kind
        if kind in (TokenKind.IDENT, TokenKind.NUMBER):
            return self.value
        if kind is TokenKind.KEYWORD:
            return Punct(self.value).spelling
        if kind is TokenKind.CHAR:
            return f"{self.encoding.prefix}'{quote_char(self.value)}'"
        if kind is TokenKind.STRING:
            return f'{self.encoding.prefix}"{quote_cstring(self.value)}"'
        if kind is TokenKind.INVALID:
            return self.value
        if kind is TokenKind.SPACE:
            return " "
        if kind is TokenKind.NEWLINE:
            return "\n"
        return "(eof)"
