"""Virtual processor executing binary stack machine code."""

from __future__ import annotations

import argparse
import math
import sys
from typing import Iterable, Optional, TextIO

from .isa import (
    ARG_IMMED,
    ARG_RAM,
    ARG_REG,
    CMD_MASK,
    RAM_SIZE,
    REGISTER_COUNT,
    CommandSpec,
    Opcode,
    command_by_code,
    read_code,
)


class CpuError(RuntimeError):
    """Raised when execution cannot continue; ``address`` is the failing ip."""

    def __init__(self, message: str, address: Optional[int] = None):
        self.address = address
        super().__init__(message if address is None else f"at {address}: {message}")


def _truncating_div(dividend: int, divisor: int) -> int:
    quotient = abs(dividend) // abs(divisor)
    return quotient if (dividend < 0) == (divisor < 0) else -quotient


class Cpu:
    """A stack machine with registers and a small RAM.

    Registers start at zero and RAM cell ``i`` starts holding ``i + 1``.
    State persists between calls to ``run``.
    """

    def __init__(self, output: Optional[TextIO] = None):
        self._output = output
        self.registers: list[int] = [0] * REGISTER_COUNT
        self.ram: list[int] = [cell + 1 for cell in range(RAM_SIZE)]
        self.stack: list[int] = []

    @property
    def output(self) -> TextIO:
        return self._output if self._output is not None else sys.stdout

    def run(self, code: Iterable[int]) -> list[int]:
        """Execute code words until the end or HLT; return the stack contents."""
        program = list(code)
        ip = 0
        while ip != len(program):
            if not 0 <= ip < len(program):
                raise CpuError("instruction pointer out of range", ip)
            word = program[ip]
            try:
                spec = command_by_code(word)
            except KeyError:
                raise CpuError(f"unknown command code {word & CMD_MASK}", ip) from None
            if spec.opcode == Opcode.HLT:
                break
            ip = self._step(spec, word, program, ip)
        return list(self.stack)

    def run_file(self, path="out.bin") -> list[int]:
        """Load a binary code file and execute it."""
        return self.run(read_code(path))

    def _step(self, spec: CommandSpec, word: int, program: list[int], ip: int) -> int:
        if spec.is_jump:
            top = self._pop(ip)
            deeper = self._pop(ip)
            target = self._operand(program, ip)
            return target - 1 if spec.condition(deeper, top) else ip + 2

        opcode = spec.opcode
        if opcode == Opcode.PUSH:
            self.stack.append(self._push_argument(word, self._operand(program, ip), ip))
            return ip + 2
        if opcode == Opcode.POP:
            value = self._pop(ip)
            index = self._operand(program, ip)
            if not 0 <= index < REGISTER_COUNT:
                raise CpuError(f"no such register: {index}", ip)
            self.registers[index] = value
            return ip + 2
        if opcode == Opcode.ADD:
            self.stack.append(self._pop(ip) + self._pop(ip))
        elif opcode == Opcode.SUB:
            top = self._pop(ip)
            self.stack.append(self._pop(ip) - top)
        elif opcode == Opcode.MUL:
            self.stack.append(self._pop(ip) * self._pop(ip))
        elif opcode == Opcode.DIV:
            if self._peek(ip) == 0:
                raise CpuError("attempt to divide by 0", ip)
            top = self._pop(ip)
            self.stack.append(_truncating_div(self._pop(ip), top))
        elif opcode == Opcode.SQRT:
            value = self._pop(ip)
            if value < 0:
                raise CpuError("sqrt of a negative number", ip)
            self.stack.append(math.isqrt(value))
        elif opcode == Opcode.CPY:
            value = self._peek(ip)
            self.stack.append(value)
        elif opcode == Opcode.PRNT:
            self.output.write("0")
        elif opcode == Opcode.ENDL:
            self.output.write("\n")
        # OUT, IN, CALL and FACT have no effect.
        return ip + 1

    def _push_argument(self, word: int, operand: int, ip: int) -> int:
        value = 0
        if word & ARG_IMMED:
            value = operand
        if word & ARG_REG:
            if not 0 <= operand < REGISTER_COUNT:
                raise CpuError(f"no such register: {operand}", ip)
            value = self.registers[operand]
        if word & ARG_RAM:
            if not 0 <= value < RAM_SIZE:
                raise CpuError(f"RAM address out of range: {value}", ip)
            value = self.ram[value]
        return value

    @staticmethod
    def _operand(program: list[int], ip: int) -> int:
        if ip + 1 >= len(program):
            raise CpuError("missing command argument", ip)
        return program[ip + 1]

    def _pop(self, ip: int) -> int:
        if not self.stack:
            raise CpuError("stack underflow", ip)
        return self.stack.pop()

    def _peek(self, ip: int) -> int:
        if not self.stack:
            raise CpuError("stack underflow", ip)
        return self.stack[-1]


def main(argv=None) -> int:
    """Command line entry point: execute a binary code file."""
    parser = argparse.ArgumentParser(description="Run a stack machine binary.")
    parser.add_argument("binary", nargs="?", default="out.bin", help="binary code file")
    args = parser.parse_args(argv)

    try:
        Cpu().run_file(args.binary)
    except (CpuError, OSError) as error:
        print(error, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())