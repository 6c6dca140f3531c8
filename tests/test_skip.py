# =============================================================================
# test_skip.py - Conditional Block Skipping Tests
# =============================================================================
# Tests for skip_conditional_block:
#   - Stopping at #else, #elif and #endif at nesting level zero
#   - Balancing nested #if/#ifdef/#ifndef groups
#   - Ignoring '#' inside literals, comments and mid-line
#   - End of input inside a skipped group
# =============================================================================

import pytest

from cpptok.lexer import Tokenizer
from cpptok.tokens import Punct, TokenKind


# =============================================================================
# Helper Functions
# =============================================================================

def skip(source: str) -> Tokenizer:
    """Skip a conditional group at the start of source; return the lexer."""
    lexer = Tokenizer.from_string(source, "test.c")
    lexer.skip_conditional_block()
    return lexer


def directive_after_skip(source: str):
    """Skip a group and return the following '#' token and directive name."""
    lexer = skip(source)
    hash_tok = lexer.next_token()
    name_tok = lexer.next_token()
    assert hash_tok.is_keyword(Punct.HASH)
    assert name_tok.kind is TokenKind.IDENT
    return hash_tok, name_tok


# =============================================================================
# Terminating Directives
# =============================================================================

class TestTerminatingDirectives:
    """Skipping stops before the directive that ends the group."""

    @pytest.mark.parametrize("name", ["else", "elif", "endif"])
    def test_stops_at_directive(self, name):
        hash_tok, name_tok = directive_after_skip(f"a b\nc\n#{name} X\n")
        assert name_tok.value == name
        assert (hash_tok.line, hash_tok.column) == (3, 1)

    def test_hash_token_starts_line(self):
        hash_tok, _ = directive_after_skip("x\n#endif\n")
        assert hash_tok.bol
        assert hash_tok.filename == "test.c"

    def test_rest_of_line_follows(self):
        lexer = skip("#elif FOO\ny\n")
        values = [
            t.spelling() for t in lexer.tokens()
            if t.kind not in (TokenKind.NEWLINE, TokenKind.EOF)
        ]
        assert values == ["#", "elif", "FOO", "y"]

    def test_indented_directive(self):
        hash_tok, name_tok = directive_after_skip("x\n  #  endif\n")
        assert name_tok.value == "endif"
        assert (hash_tok.line, hash_tok.column) == (2, 3)

    def test_digraph_hash_is_not_a_directive(self):
        hash_tok, _ = directive_after_skip("%:else\n#endif\n")
        assert hash_tok.line == 2


class TestNesting:
    """Nested groups are balanced."""

    def test_nested_groups(self):
        source = (
            "#if 1\n"
            "x\n"
            "#endif\n"
            "#ifdef FOO\n"
            "#else\n"
            "#endif\n"
            "#else\n"
            "y\n"
        )
        hash_tok, name_tok = directive_after_skip(source)
        assert name_tok.value == "else"
        assert (hash_tok.line, hash_tok.column) == (7, 1)

    def test_deep_nesting(self):
        source = (
            "#ifndef A\n"
            "#if B\n"
            "#elif C\n"
            "#endif\n"
            "#endif\n"
            "#endif\n"
        )
        hash_tok, name_tok = directive_after_skip(source)
        assert name_tok.value == "endif"
        assert hash_tok.line == 6


# =============================================================================
# Text That Looks Like Directives
# =============================================================================

class TestIgnoredText:
    """'#' that does not start a directive is ignored."""

    def test_hash_mid_line(self):
        hash_tok, _ = directive_after_skip("x #else\n#endif\n")
        assert hash_tok.line == 2

    def test_directive_in_string(self):
        hash_tok, _ = directive_after_skip('"\n#else\n"\n#endif\n')
        assert hash_tok.line == 4

    def test_escaped_quote_in_string(self):
        hash_tok, _ = directive_after_skip('"a\\"#else"\n#endif\n')
        assert hash_tok.line == 2

    def test_directive_in_comment(self):
        hash_tok, _ = directive_after_skip("/*\n#else\n*/\n#endif\n")
        assert hash_tok.line == 4

    def test_line_comment(self):
        hash_tok, _ = directive_after_skip("// #else\n#endif\n")
        assert hash_tok.line == 2

    def test_double_quote_in_char_literal(self):
        hash_tok, _ = directive_after_skip("'\"'\n#endif\n")
        assert hash_tok.line == 2

    def test_escaped_quote_in_char_literal(self):
        hash_tok, _ = directive_after_skip("'\\''\n#endif\n")
        assert hash_tok.line == 2

    def test_non_identifier_directive(self):
        hash_tok, _ = directive_after_skip('# 1 "file.c"\n#\n#endif\n')
        assert hash_tok.line == 3

    def test_other_directives_skipped(self):
        hash_tok, _ = directive_after_skip("#define X 1\n#include <a.h>\n#endif\n")
        assert hash_tok.line == 3


# =============================================================================
# End of Input
# =============================================================================

class TestEndOfInput:
    """Reaching the end of input just returns."""

    def test_eof_returns(self):
        lexer = skip("x\ny\n")
        assert lexer.next_token().kind is TokenKind.EOF

    def test_eof_inside_nested_group(self):
        lexer = skip("#if 1\nx\n")
        assert lexer.next_token().kind is TokenKind.EOF
