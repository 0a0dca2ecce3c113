"""
stackcc - Compiler Command-Line Interface
=========================================

Usage Examples
--------------
Compile and run:
    $ stackcc '{ return 1+2*3-4; }' > prog.s
    $ cc -o prog prog.s && ./prog; echo $?
    3

Inspect the intermediate stages:
    $ stackcc --tokens '{ a = 1; }'
    $ stackcc --ast '{ if (a < 2) a = 2; }'

Annotated assembly with stage logging on stderr:
    $ stackcc -v --comments '{ for (i=0; i<10; i=i+1) ; return i; }'
"""

import logging

import click

from stackcc import __version__
from stackcc.ast import ASTPrinter
from stackcc.cli.errors import handle_cli_exception
from stackcc.compiler import Compiler, CompilerOptions

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging on stderr based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument("source")
@click.option(
    "--tokens", "dump_tokens",
    is_flag=True,
    help="Print the token list and exit (for debugging)",
)
@click.option(
    "--ast", "dump_ast",
    is_flag=True,
    help="Print the AST and exit (for debugging)",
)
@click.option(
    "--comments",
    is_flag=True,
    help="Annotate the assembly with '#' comments",
)
@click.option(
    "--legacy-relational",
    is_flag=True,
    help="Parse the right operand of '>' and '>=' at the equality level, "
         "as earlier releases did",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Log pipeline stages to stderr and add hints to error messages",
)
@click.version_option(version=__version__, prog_name="stackcc")
def main(
    source: str,
    dump_tokens: bool,
    dump_ast: bool,
    comments: bool,
    legacy_relational: bool,
    verbose: bool,
) -> None:
    """
    Compile SOURCE to x86-64 assembly on standard output.

    SOURCE is the whole program text. A program is either a block
    '{ ... }' or a plain list of statements. Its return value becomes
    the exit status of the assembled executable.

    \b
    Examples:
        stackcc '{ return 42; }'
        stackcc 'a=3; b=a+2; return a+b;'
        stackcc -- '-1+43;'

    \b
    Supported language:
        - + - * / and unary + -
        - == != < <= > >=
        - variables and assignment
        - if/else, for, while, return, { ... }
    """
    setup_logging(verbose)

    options = CompilerOptions(
        output_comments=comments,
        legacy_relational=legacy_relational,
    )
    compiler = Compiler(options)

    try:
        if dump_tokens:
            for token in compiler.tokenize(source):
                click.echo(repr(token))
            return

        if dump_ast:
            click.echo(ASTPrinter().print(compiler.parse(source)))
            return

        result = compiler.compile_source(source)
        logger.debug(
            "Compiled %d tokens into %d labels",
            result.token_count, result.label_count,
        )
        click.echo(result.assembly, nl=False)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
