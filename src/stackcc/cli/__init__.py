"""
stackcc Command-Line Interface
==============================

- **stackcc**: compile a source string to x86-64 assembly on stdout

The tool is a Click-based CLI application; errors map to the exit codes
in stackcc.cli.errors.
"""

__all__ = ["stackcc"]
