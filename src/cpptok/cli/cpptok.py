"""
cpptok - Tokenizer Command-Line Interface
=========================================

Runs the tokenizer over a C source file and prints the result. Without
a preprocessor behind it, this shows exactly what the character and
token phases produce: spliced lines, canonical newlines, decoded
literals and digraphs mapped to their punctuators.

Usage Examples
--------------
Reconstruct the token stream as text:
    $ cpptok hello.c

One token per line with positions and flags:
    $ cpptok --tokens hello.c

Read standard input:
    $ cat hello.c | cpptok -

Treat warnings as errors:
    $ cpptok --werror hello.c
"""

import logging
from pathlib import Path
from typing import Optional, TextIO

import click

from cpptok import __version__
from cpptok.cli.errors import handle_cli_exception
from cpptok.lexer import LexerOptions, Tokenizer
from cpptok.tokens import Token, TokenKind

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def format_token(tok: Token) -> str:
    """Format one token as 'name:line:col KIND spelling [flags]'."""
    flags = []
    if tok.space:
        flags.append("space")
    if tok.bol:
        flags.append("bol")
    text = f"{tok.location} {tok.kind.name} {tok.spelling()!r}"
    if flags:
        text += " [" + ",".join(flags) + "]"
    return text


def write_tokens(lexer: Tokenizer, out: TextIO) -> int:
    """Write one line per token up to and including EOF; return the count."""
    count = 0
    for tok in lexer.tokens():
        out.write(format_token(tok) + "\n")
        count += 1
    return count


def write_text(lexer: Tokenizer, out: TextIO) -> int:
    """
    Write the tokens back out as source text.

    Line structure comes from the bol flags and spacing from the space
    flags, so comments vanish and every run of blanks becomes one space.
    """
    count = 0
    for tok in lexer.tokens():
        if tok.kind is TokenKind.EOF:
            break
        if tok.kind is TokenKind.NEWLINE:
            continue
        if tok.bol and count:
            out.write("\n")
        if tok.space:
            out.write(" ")
        out.write(tok.spelling())
        count += 1
    out.write("\n")
    return count


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument("input_file", metavar="INPUT")
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write to this file instead of stdout",
)
@click.option(
    "--tokens",
    "dump_tokens",
    is_flag=True,
    help="Print one token per line with position and flags",
)
@click.option(
    "-w", "no_warnings",
    is_flag=True,
    help="Disable all warnings",
)
@click.option(
    "--werror",
    is_flag=True,
    help="Make all warnings into errors",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="cpptok")
def main(
    input_file: str,
    output: Optional[Path],
    dump_tokens: bool,
    no_warnings: bool,
    werror: bool,
    verbose: bool,
) -> None:
    """
    Tokenize a C source file.

    INPUT is the C source file to read, or - for standard input.

    \b
    Examples:
        cpptok hello.c               # Print reconstructed text
        cpptok --tokens hello.c      # One token per line
        cpptok -o out.txt hello.c    # Write to a file
        cpptok -w hello.c            # No warnings
    """
    setup_logging(verbose)

    options = LexerOptions(
        enable_warnings=not no_warnings,
        warnings_as_errors=werror,
    )

    try:
        lexer = Tokenizer.from_file(input_file, options)
        try:
            with click.open_file(str(output) if output else "-", "w") as out:
                if dump_tokens:
                    count = write_tokens(lexer, out)
                else:
                    count = write_text(lexer, out)
        finally:
            lexer.close()

        logger.debug(f"Read {count} tokens from {input_file}")
        if verbose and lexer.diagnostics.warning_count():
            click.echo(lexer.diagnostics.report(), err=True)

    except Exception as e:
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
