"""
Local Variable Symbol Table
===========================

Tracks the local variables of one function while it is being parsed.
Variables are created on first reference and live for the whole function;
there is no declaration syntax and no deletion.

Stack Frame Layout
------------------
Every variable occupies one 8-byte slot below the frame pointer, in order
of first reference:

    +----------------+ <- %rbp
    | first var      |  -8(%rbp)
    | second var     |  -16(%rbp)
    | ...            |
    +----------------+ <- %rbp - frame_size (16-byte aligned)
"""

from dataclasses import dataclass

SLOT_SIZE = 8
FRAME_ALIGNMENT = 16


@dataclass(frozen=True)
class LocalVariable:
    """
    A local variable and its stack slot.

    Attributes:
        name: Variable name, unique within the function
        offset: Offset from %rbp (negative, a multiple of 8)
    """
    name: str
    offset: int


def align_up(n: int, align: int) -> int:
    """
    Round n up to the nearest multiple of align.

    >>> align_up(5, 8)
    8
    >>> align_up(16, 16)
    16
    """
    return (n + align - 1) // align * align


class SymbolTable:
    """
    Symbol table scoped to a single function's parse.

    Usage:
        table = SymbolTable()
        x = table.resolve("x")      # allocates -8
        table.resolve("x") is x     # True
        variables, frame_size = table.finalize()
    """

    def __init__(self):
        self._variables: dict[str, LocalVariable] = {}

    def resolve(self, name: str) -> LocalVariable:
        """
        Look up name, allocating the next stack slot on first reference.

        Args:
            name: Identifier text

        Returns:
            The LocalVariable for name
        """
        variable = self._variables.get(name)
        if variable is None:
            offset = -SLOT_SIZE * (len(self._variables) + 1)
            variable = LocalVariable(name=name, offset=offset)
            self._variables[name] = variable
        return variable

    def finalize(self) -> tuple[list[LocalVariable], int]:
        """
        Return the variables in allocation order and the frame size.

        The frame size is the space taken by all slots rounded up to a
        16-byte boundary, as the System V ABI requires.
        """
        variables = list(self._variables.values())
        frame_size = align_up(SLOT_SIZE * len(variables), FRAME_ALIGNMENT)
        return variables, frame_size

    def __len__(self) -> int:
        return len(self._variables)

    def __contains__(self, name: str) -> bool:
        return name in self._variables
