"""
cpptok - C Source Character and Token Pipeline
==============================================

This package implements the front end of a C compiler: it turns raw
source bytes into preprocessing tokens, performing translation phases
1 to 3 of the C standard on the way.

Main Components
---------------
- **source**: File- and string-backed character sources
    Canonicalizes line endings and guarantees a final newline

- **stream**: Input stream manager
    Stack of sources (for #include), line splicing, pushback, stashing

- **tokens**: Token model
    Token kinds, literal encodings, punctuator ids

- **lexer**: Tokenizer
    Pp-tokens, escapes and universal character names, header names,
    and the fast skipper for inactive #if groups

Quick Start
-----------
>>> from cpptok import Tokenizer
>>> lexer = Tokenizer.from_string('puts(u8"hi");')
>>> [tok.spelling() for tok in lexer.tokens()][:4]
['puts', '(', 'u8"hi"', ')']

Or from the command line:
    $ cpptok hello.c
    $ cpptok --tokens hello.c
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from cpptok.errors import (
    CppTokError,
    DiagnosticError,
    SourceLocation,
    SourceOpenError,
    PromotedWarningError,
    CSyntaxError,
    UnterminatedCommentError,
    UnterminatedStringError,
    UnterminatedCharError,
    InvalidEscapeError,
    InvalidUniversalCharacterError,
    HeaderNameError,
    UnconsumedInputError,
    PushbackOverflowError,
    DiagnosticCollector,
)
from cpptok.source import (
    EOF,
    Source,
    FileSource,
    StringSource,
    open_source,
    source_from_string,
)
from cpptok.stream import InputStream
from cpptok.tokens import Encoding, Punct, Token, TokenKind, quote_char, quote_cstring
from cpptok.lexer import LexerOptions, Tokenizer, is_ident, is_keyword, is_valid_ucn

__all__ = [
    "__version__",
    # Errors
    "CppTokError",
    "DiagnosticError",
    "SourceLocation",
    "SourceOpenError",
    "PromotedWarningError",
    "CSyntaxError",
    "UnterminatedCommentError",
    "UnterminatedStringError",
    "UnterminatedCharError",
    "InvalidEscapeError",
    "InvalidUniversalCharacterError",
    "HeaderNameError",
    "UnconsumedInputError",
    "PushbackOverflowError",
    "DiagnosticCollector",
    # Sources and stream
    "EOF",
    "Source",
    "FileSource",
    "StringSource",
    "open_source",
    "source_from_string",
    "InputStream",
    # Tokens
    "Encoding",
    "Punct",
    "Token",
    "TokenKind",
    "quote_char",
    "quote_cstring",
    # Tokenizer
    "LexerOptions",
    "Tokenizer",
    "is_ident",
    "is_keyword",
    "is_valid_ucn",
]
