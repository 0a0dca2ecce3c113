# =============================================================================
# conftest.py - Shared fixtures for the stackcc test suite
# =============================================================================
# Provides a small interpreter for the subset of x86-64 that the code
# generator emits, so generated programs can be executed and their results
# checked without an assembler, plus an end-to-end runner that assembles
# with the system C compiler when one is available.
# =============================================================================

import re
import subprocess

import pytest

from stackcc import compile_source


MASK64 = (1 << 64) - 1
STACK_TOP = 0x7FFF0000
RETURN_SENTINEL = -1
MAX_STEPS = 1_000_000


def _signed64(value: int) -> int:
    value &= MASK64
    return value - (1 << 64) if value & (1 << 63) else value


def _truncating_div(a: int, b: int) -> int:
    """Integer division rounding toward zero, like idiv."""
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


class AssemblyInterpreter:
    """
    Executes the instructions emitted by stackcc.CodeGenerator.

    Memory is a dict of 8-byte cells keyed by address. The program starts
    at 'main' with a sentinel return address on the stack and stops when
    'ret' pops it, returning %rax as a signed 64-bit integer.
    """

    MEMORY_OPERAND = re.compile(r"^(-?\d*)\((%\w+)\)$")

    def __init__(self, assembly: str):
        self.instructions: list[tuple[str, list[str]]] = []
        self.labels: dict[str, int] = {}

        for line in assembly.splitlines():
            line = line.strip()
            if not line or line.startswith("#") or line.startswith("."):
                if line.endswith(":"):
                    self.labels[line[:-1]] = len(self.instructions)
                continue
            if line.endswith(":"):
                self.labels[line[:-1]] = len(self.instructions)
                continue
            mnemonic, _, rest = line.partition(" ")
            operands = [op.strip() for op in rest.split(",")] if rest else []
            self.instructions.append((mnemonic, operands))

    def run(self) -> int:
        regs = {"%rax": 0, "%rdi": 0, "%rdx": 0, "%rbp": 0, "%rsp": STACK_TOP}
        memory: dict[int, int] = {}
        compared = (0, 0)

        def read(operand: str) -> int:
            if operand.startswith("$"):
                return int(operand[1:])
            if operand in regs:
                return regs[operand]
            match = self.MEMORY_OPERAND.match(operand)
            if match:
                address = regs[match.group(2)] + int(match.group(1) or 0)
                if address not in memory:
                    raise AssertionError(f"read of uninitialized memory at {address:#x}")
                return memory[address]
            raise AssertionError(f"unsupported operand {operand!r}")

        def write(operand: str, value: int) -> None:
            if operand in regs:
                regs[operand] = _signed64(value)
                return
            match = self.MEMORY_OPERAND.match(operand)
            if match:
                address = regs[match.group(2)] + int(match.group(1) or 0)
                memory[address] = _signed64(value)
                return
            raise AssertionError(f"unsupported destination {operand!r}")

        def push(value: int) -> None:
            regs["%rsp"] -= 8
            memory[regs["%rsp"]] = value

        def pop() -> int:
            value = memory[regs["%rsp"]]
            regs["%rsp"] += 8
            return value

        push(RETURN_SENTINEL)
        pc = self.labels["main"]

        for _ in range(MAX_STEPS):
            mnemonic, ops = self.instructions[pc]
            pc += 1

            if mnemonic == "push":
                push(read(ops[0]))
            elif mnemonic == "pop":
                regs[ops[0]] = pop()
            elif mnemonic == "mov":
                write(ops[1], read(ops[0]))
            elif mnemonic == "lea":
                match = self.MEMORY_OPERAND.match(ops[0])
                regs[ops[1]] = regs[match.group(2)] + int(match.group(1) or 0)
            elif mnemonic == "add":
                write(ops[1], read(ops[1]) + read(ops[0]))
            elif mnemonic == "sub":
                write(ops[1], read(ops[1]) - read(ops[0]))
            elif mnemonic == "imul":
                write(ops[1], read(ops[1]) * read(ops[0]))
            elif mnemonic == "neg":
                write(ops[0], -read(ops[0]))
            elif mnemonic == "cqo":
                regs["%rdx"] = -1 if regs["%rax"] < 0 else 0
            elif mnemonic == "idiv":
                divisor = read(ops[0])
                if divisor == 0:
                    raise ZeroDivisionError("idiv by zero")
                dividend = regs["%rax"]
                quotient = _truncating_div(dividend, divisor)
                regs["%rax"] = _signed64(quotient)
                regs["%rdx"] = _signed64(dividend - quotient * divisor)
            elif mnemonic == "cmp":
                compared = (read(ops[1]), read(ops[0]))
            elif mnemonic in ("sete", "setne", "setl", "setle"):
                left, right = compared
                flag = {
                    "sete": left == right,
                    "setne": left != right,
                    "setl": left < right,
                    "setle": left <= right,
                }[mnemonic]
                regs["%rax"] = _signed64((regs["%rax"] & ~0xFF) | int(flag))
            elif mnemonic == "movzb":
                regs["%rax"] = regs["%rax"] & 0xFF
            elif mnemonic == "je":
                if compared[0] == compared[1]:
                    pc = self.labels[ops[0]]
            elif mnemonic == "jmp":
                pc = self.labels[ops[0]]
            elif mnemonic == "ret":
                if pop() == RETURN_SENTINEL:
                    assert regs["%rsp"] == STACK_TOP, "stack not restored on return"
                    return regs["%rax"]
                raise AssertionError("unexpected return address")
            else:
                raise AssertionError(f"unsupported instruction {mnemonic!r}")

        raise AssertionError("program did not terminate")


def execute_assembly(assembly: str) -> int:
    """Run generated assembly and return %rax at exit."""
    return AssemblyInterpreter(assembly).run()


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def evaluate():
    """Compile source and return the value main() leaves in %rax."""
    def _evaluate(source: str, **options) -> int:
        return execute_assembly(compile_source(source, **options))
    return _evaluate


@pytest.fixture
def run_native(tmp_path):
    """Assemble and link source with cc, run it, and return the exit status."""
    def _run(source: str) -> int:
        asm_file = tmp_path / "prog.s"
        exe_file = tmp_path / "prog"
        asm_file.write_text(compile_source(source))
        subprocess.run(
            ["cc", "-o", str(exe_file), str(asm_file)],
            check=True,
            capture_output=True,
        )
        return subprocess.run([str(exe_file)], capture_output=True).returncode
    return _run
