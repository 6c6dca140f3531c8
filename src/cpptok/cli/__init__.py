"""
cpptok Command-Line Interface
=============================

- **cpptok**: tokenize a C source file and print the tokens, either as
  reconstructed text or one token per line.

The tool is a Click-based application with help and error reporting.
"""

__all__ = ["cpptok"]
