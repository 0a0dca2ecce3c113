"""
CLI Error Handling
==================

Maps compiler exceptions to output and exit codes.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from stackcc.errors import CompilerError, InternalCompilerError


class ExitCode(IntEnum):
    """Standard exit codes for the CLI."""
    SUCCESS = 0
    COMPILE_ERROR = 1    # Lex or parse error in the source
    INVALID_ARGS = 2     # Wrong argument count or bad option (click.UsageError)
    INTERNAL_ERROR = 3   # Defect in the compiler


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report an exception and exit with the matching exit code.

    Compile errors go to stdout with their source context, so the caret
    lines up under the source line printed above it. The hint line is only
    added in verbose mode. Everything else goes to stderr.

    Args:
        error: The exception that was raised
        verbose: If True, add hints to compile errors and print the full
            traceback for internal errors

    Raises:
        SystemExit: Always
    """
    if isinstance(error, CompilerError):
        click.echo(error.format_diagnostic(include_hint=verbose))
        sys.exit(ExitCode.COMPILE_ERROR)

    elif isinstance(error, InternalCompilerError):
        click.echo(f"Internal compiler error: {error}", err=True)
        if verbose:
            traceback.print_exception(type(error), error, error.__traceback__)
        sys.exit(ExitCode.INTERNAL_ERROR)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exception(type(error), error, error.__traceback__)
        sys.exit(ExitCode.INTERNAL_ERROR)
