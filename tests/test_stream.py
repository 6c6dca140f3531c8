# =============================================================================
# test_stream.py - Source and Input Stream Tests
# =============================================================================
# Tests for the character-level phases:
#   - Line ending canonicalization and final newline synthesis
#   - Backslash-newline splicing
#   - Position tracking and pushback
#   - Source stack, file fall-through and stashing
#   - Opening files and standard input
# =============================================================================

import sys

import pytest

from cpptok.errors import PushbackOverflowError, SourceOpenError
from cpptok.source import EOF, FileSource, StringSource, open_source, source_from_string
from cpptok.stream import InputStream


# =============================================================================
# Helper Functions
# =============================================================================

def make_stream(text) -> InputStream:
    """Create an InputStream reading text."""
    return InputStream(StringSource(text))


def read_all(stream: InputStream) -> list:
    """Read characters from the active source up to and including EOF."""
    chars = []
    while True:
        c = stream.read_char()
        chars.append(c)
        if c == EOF:
            return chars


# =============================================================================
# Canonicalization Tests
# =============================================================================

class TestLineEndings:
    """"\\r\\n", "\\r" and "\\n" all read as one newline."""

    @pytest.mark.parametrize("ending", ["\r\n", "\r", "\n"])
    def test_line_endings_canonicalize(self, ending):
        assert read_all(make_stream(f"a{ending}b")) == ["a", "\n", "b", "\n", EOF]

    @pytest.mark.parametrize("ending", ["\r\n", "\r", "\n"])
    def test_line_endings_same_position(self, ending):
        stream = make_stream(f"a{ending}b")
        stream.read_char()
        stream.read_char()
        pos = stream.current_position()
        assert (pos.line, pos.column) == (2, 1)

    def test_cr_before_cr_lf(self):
        """A lone \\r followed by \\r\\n gives two newlines."""
        assert read_all(make_stream("\r\r\n")) == ["\n", "\n", EOF]


class TestFinalNewline:
    """Input always ends with exactly one newline before EOF."""

    def test_missing_newline_is_added(self):
        assert read_all(make_stream("ab")) == ["a", "b", "\n", EOF]

    def test_existing_newline_is_kept(self):
        assert read_all(make_stream("ab\n")) == ["a", "b", "\n", EOF]

    def test_crlf_ending_is_not_doubled(self):
        assert read_all(make_stream("ab\r\n")) == ["a", "b", "\n", EOF]

    def test_empty_input_reads_one_newline(self):
        assert read_all(make_stream("")) == ["\n", EOF]

    def test_eof_repeats(self):
        stream = make_stream("a")
        read_all(stream)
        assert stream.read_char() == EOF
        assert stream.read_char() == EOF


class TestLineSplicing:
    """Backslash-newline pairs are invisible."""

    def test_splice_removed(self):
        assert read_all(make_stream("a\\\nb")) == ["a", "b", "\n", EOF]

    def test_splice_with_crlf(self):
        assert read_all(make_stream("a\\\r\nb")) == ["a", "b", "\n", EOF]

    def test_multiple_splices(self):
        assert read_all(make_stream("a\\\n\\\nb")) == ["a", "b", "\n", EOF]

    def test_backslash_without_newline(self):
        assert read_all(make_stream("a\\b")) == ["a", "\\", "b", "\n", EOF]

    def test_backslash_at_end_of_input(self):
        """The synthesized newline splices with a trailing backslash."""
        assert read_all(make_stream("a\\")) == ["a", EOF]

    def test_splice_advances_line(self):
        stream = make_stream("a\\\nb")
        stream.read_char()
        assert stream.read_char() == "b"
        pos = stream.current_position()
        assert (pos.line, pos.column) == (2, 2)


# =============================================================================
# Position and Pushback Tests
# =============================================================================

class TestPositions:
    """Line and column bookkeeping."""

    def test_initial_position(self):
        pos = make_stream("abc").current_position()
        assert (pos.filename, pos.line, pos.column) == ("(string)", 1, 1)

    def test_column_advances(self):
        stream = make_stream("abc")
        stream.read_char()
        stream.read_char()
        assert stream.current_position().column == 3

    def test_newline_resets_column(self):
        stream = make_stream("ab\ncd")
        for _ in range(4):
            stream.read_char()
        pos = stream.current_position()
        assert (pos.line, pos.column) == (2, 2)

    def test_eof_does_not_move(self):
        stream = make_stream("a\n")
        read_all(stream)
        stream.read_char()
        pos = stream.current_position()
        assert (pos.line, pos.column) == (2, 1)

    def test_input_position_format(self):
        stream = InputStream(StringSource("x", name="foo.c"))
        stream.read_char()
        assert stream.input_position() == "foo.c:1:2"

    def test_empty_stack_position(self):
        assert InputStream().input_position() == "(unknown):0:0"


class TestPushback:
    """unread_char followed by read_char is the identity."""

    @pytest.mark.parametrize("text", ["ab", "a\nb", "\n\n", "a\r\nb"])
    def test_unread_read_identity(self, text):
        stream = make_stream(text)
        for _ in range(2):
            c = stream.read_char()
            before = stream.current_position()
            stream.unread_char(c)
            assert stream.read_char() == c
            assert stream.current_position() == before

    def test_unread_restores_column(self):
        stream = make_stream("ab")
        c = stream.read_char()
        stream.unread_char(c)
        assert stream.current_position().column == 1

    def test_unread_newline_restores_line(self):
        stream = make_stream("a\nb")
        stream.read_char()
        stream.unread_char(stream.read_char())
        pos = stream.current_position()
        assert (pos.line, pos.column) == (1, 1)

    def test_unread_eof_is_noop(self):
        stream = make_stream("a")
        stream.unread_char(EOF)
        assert stream.read_char() == "a"

    def test_pushback_is_lifo(self):
        stream = make_stream("z")
        stream.unread_char("x")
        stream.unread_char("y")
        assert stream.read_char() == "y"
        assert stream.read_char() == "x"
        assert stream.read_char() == "z"

    def test_pushback_overflow(self):
        stream = make_stream("abcd")
        for c in "abc":
            stream.unread_char(c)
        with pytest.raises(PushbackOverflowError):
            stream.unread_char("d")


# =============================================================================
# Source Stack Tests
# =============================================================================

class TestSourceStack:
    """Nested sources and stashing."""

    def test_push_pop_top_depth(self):
        stream = InputStream()
        outer = StringSource("a", name="outer")
        inner = StringSource("b", name="inner")
        stream.push(outer)
        stream.push(inner)
        assert stream.depth() == 2
        assert stream.top() is inner
        assert stream.pop() is inner
        assert stream.top() is outer

    def test_read_char_stops_at_source_end(self):
        stream = make_stream("ab")
        stream.push(StringSource("x"))
        assert read_all(stream) == ["x", "\n", EOF]
        assert stream.depth() == 2

    def test_read_across_files_is_depth_first(self):
        stream = make_stream("ab")
        assert stream.read_char_across_files() == "a"
        stream.push(StringSource("xy"))
        chars = []
        while True:
            c = stream.read_char_across_files()
            chars.append(c)
            if c == EOF:
                break
        assert chars == ["x", "y", "\n", "b", "\n", EOF]
        assert stream.depth() == 1

    def test_last_source_is_not_popped(self):
        stream = make_stream("")
        stream.read_char_across_files()
        assert stream.read_char_across_files() == EOF
        assert stream.depth() == 1

    def test_stash_and_unstash(self):
        stream = make_stream("ab")
        stream.push(StringSource("cd"))
        assert stream.read_char() == "c"

        stream.stash(StringSource("z"))
        assert stream.depth() == 1
        assert stream.read_char_across_files() == "z"
        assert stream.read_char_across_files() == "\n"
        assert stream.read_char_across_files() == EOF

        stream.unstash()
        assert stream.depth() == 2
        assert stream.read_char() == "d"

    def test_nested_stash(self):
        stream = make_stream("a")
        stream.stash(StringSource("b"))
        stream.stash(StringSource("c"))
        assert stream.read_char() == "c"
        stream.unstash()
        assert stream.read_char() == "b"
        stream.unstash()
        assert stream.read_char() == "a"


# =============================================================================
# Source Construction Tests
# =============================================================================

class TestSources:
    """File- and string-backed sources."""

    def test_string_source_bytes(self):
        stream = InputStream(StringSource(b"\xe9"))
        assert stream.read_char() == "\xe9"

    def test_string_source_utf8_encodes_str(self):
        stream = InputStream(source_from_string("é"))
        assert [stream.read_char(), stream.read_char()] == ["\xc3", "\xa9"]

    def test_string_source_has_no_mtime(self):
        assert StringSource("x").mtime is None

    def test_open_file(self, tmp_path):
        path = tmp_path / "test.c"
        path.write_bytes(b"ab\r\ncd")
        source = open_source(str(path))
        assert source.name == str(path)
        assert source.mtime is not None
        stream = InputStream(source)
        assert read_all(stream) == ["a", "b", "\n", "c", "d", "\n", EOF]
        source.close()

    def test_open_file_keeps_high_bytes(self, tmp_path):
        path = tmp_path / "latin.c"
        path.write_bytes(b"\xff\x80")
        source = FileSource.open(str(path))
        stream = InputStream(source)
        assert read_all(stream) == ["\xff", "\x80", "\n", EOF]
        source.close()

    def test_open_missing_file(self, tmp_path):
        missing = tmp_path / "missing.c"
        with pytest.raises(SourceOpenError, match="Cannot open"):
            FileSource.open(str(missing))

    def test_open_stdin(self, tmp_path, monkeypatch):
        path = tmp_path / "stdin.c"
        path.write_bytes(b"x\r")
        with open(path) as fake_stdin:
            monkeypatch.setattr(sys, "stdin", fake_stdin)
            source = FileSource.open("-")
            assert source.name == "-"
            stream = InputStream(source)
            assert read_all(stream) == ["x", "\n", EOF]
            source.close()
            assert not fake_stdin.closed

    def test_token_index_counter(self):
        source = StringSource("")
        assert [source.next_token_index() for _ in range(3)] == [0, 1, 2]
