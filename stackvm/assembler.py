"""Two-pass assembler turning assembly text into binary code."""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import Optional

from .isa import (
    ARG_IMMED,
    ARG_RAM,
    ARG_REG,
    MAX_COMMANDS,
    MAX_LABELS,
    SIGNATURE,
    VERSION,
    CommandSpec,
    Opcode,
    command_by_name,
    register_by_name,
    write_code,
)

_HEADER = re.compile(r"\s*(\S+)\s+([+-]?\d+)")
_LABEL_DEF = re.compile(r"\s*([+-]?\d+):")
_LABEL_REF = re.compile(r"\s*\S\s*([+-]?\d+)")
_INTEGER = re.compile(r"\s*([+-]?\d+)")
_RAM = re.compile(r"\s*\[\s*([+-]?\d+)\s*\]")


class AssemblerError(ValueError):
    """Raised for a malformed program; ``line`` is the 1-based line number."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        super().__init__(message if line is None else f"line {line}: {message}")


class Assembler:
    """Assembles programs whose first line is the ``ASM 2`` signature.

    Labels are defined by a line starting ``N:`` and referenced by jump
    arguments such as ``:N``. After ``assemble`` the label addresses are
    available in ``labels`` and the produced words in ``code``.
    """

    def __init__(self):
        self.labels: dict[int, int] = {}
        self.code: list[int] = []

    def assemble(self, text: str) -> list[int]:
        """Assemble program text and return the code words."""
        header, _, body = text.partition("\n")
        self._check_header(header)
        lines = body.split("\n")
        self.labels = {}
        self._encode(lines, final=False)
        self.code = self._encode(lines, final=True)
        return list(self.code)

    def assemble_file(self, path, output="out.bin") -> list[int]:
        """Assemble the file at ``path`` and write the binary to ``output``."""
        code = self.assemble(Path(path).read_text())
        write_code(code, output)
        return code

    @staticmethod
    def _check_header(header: str) -> None:
        match = _HEADER.match(header)
        if match is None or match[1] != SIGNATURE or int(match[2]) != VERSION:
            raise AssemblerError("wrong file version", 1)

    def _encode(self, lines: list[str], final: bool) -> list[int]:
        code: list[int] = []
        for lineno, line in enumerate(lines, start=2):
            definition = _LABEL_DEF.match(line)
            if definition:
                label = self._label_index(definition[1], lineno)
                self.labels[label] = len(code)

            tokens = line.split(maxsplit=1)
            if not tokens:
                continue
            try:
                spec = command_by_name(tokens[0])
            except KeyError:
                continue
            rest = tokens[1] if len(tokens) > 1 else ""
            code.extend(self._encode_command(spec, rest, final, lineno))
            if len(code) > MAX_COMMANDS:
                raise AssemblerError(
                    f"program exceeds {MAX_COMMANDS} code words", lineno
                )
        return code

    def _encode_command(
        self, spec: CommandSpec, rest: str, final: bool, lineno: int
    ) -> list[int]:
        if spec.opcode == Opcode.PUSH:
            return self._encode_push(rest, lineno)
        if spec.opcode == Opcode.POP:
            return self._encode_pop(rest, lineno)
        if spec.has_arg:
            return [int(spec.opcode), self._jump_target(rest, final, lineno)]
        return [int(spec.opcode)]

    @staticmethod
    def _encode_push(rest: str, lineno: int) -> list[int]:
        immediate = _INTEGER.match(rest)
        if immediate:
            return [Opcode.PUSH | ARG_IMMED, int(immediate[1])]
        ram = _RAM.match(rest)
        if ram:
            return [Opcode.PUSH | ARG_RAM | ARG_IMMED, int(ram[1])]
        tokens = rest.split()
        if not tokens:
            raise AssemblerError("push expects an argument", lineno)
        try:
            register = register_by_name(tokens[0])
        except KeyError:
            raise AssemblerError(f"no such register: {tokens[0]}", lineno) from None
        return [Opcode.PUSH | ARG_REG, int(register)]

    @staticmethod
    def _encode_pop(rest: str, lineno: int) -> list[int]:
        tokens = rest.split()
        if not tokens:
            raise AssemblerError("pop expects a register", lineno)
        try:
            register = register_by_name(tokens[0])
        except KeyError:
            raise AssemblerError(f"no such register: {tokens[0]}", lineno) from None
        return [Opcode.POP | ARG_REG, int(register)]

    def _jump_target(self, rest: str, final: bool, lineno: int) -> int:
        reference = _LABEL_REF.match(rest)
        if reference is None:
            raise AssemblerError("jump expects a label such as :1", lineno)
        label = self._label_index(reference[1], lineno)
        if label in self.labels:
            return self.labels[label] + 1
        if final:
            raise AssemblerError(f"undefined label {label}", lineno)
        return 0

    @staticmethod
    def _label_index(text: str, lineno: int) -> int:
        label = int(text)
        if not 0 <= label < MAX_LABELS:
            raise AssemblerError(
                f"label {label} out of range 0..{MAX_LABELS - 1}", lineno
            )
        return label


def main(argv=None) -> int:
    """Command line entry point: assemble a source file into binary code."""
    parser = argparse.ArgumentParser(description="Assemble a stack machine program.")
    parser.add_argument("source", nargs="?", help="assembly source file")
    parser.add_argument("-o", "--output", default="out.bin", help="binary output")
    args = parser.parse_args(argv)

    if args.source is None:
        print("add file name in command line")
        return 0

    assembler = Assembler()
    try:
        assembler.assemble_file(args.source, args.output)
    except (AssemblerError, OSError) as error:
        print(error, file=sys.stderr)
        return 1
    for label, address in sorted(assembler.labels.items()):
        print(f"label {label} {address}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())