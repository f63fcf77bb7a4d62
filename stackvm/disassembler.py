"""Disassembler turning binary code back into assembly text."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .isa import (
    ARG_IMMED,
    ARG_RAM,
    ARG_REG,
    CMD_MASK,
    MAX_LABELS,
    SIGNATURE,
    VERSION,
    CommandSpec,
    Opcode,
    Register,
    command_by_code,
    read_code,
)


class DisassemblerError(ValueError):
    """Raised for code that cannot be turned back into assembly."""


@dataclass(frozen=True)
class _Instruction:
    address: int
    spec: CommandSpec
    word: int
    arg: Optional[int]


def _decode(program: list[int]) -> Iterator[_Instruction]:
    address = 0
    while address < len(program):
        word = program[address]
        try:
            spec = command_by_code(word)
        except KeyError:
            raise DisassemblerError(
                f"no such command {word & CMD_MASK} at {address}"
            ) from None
        if spec.has_arg:
            if address + 1 >= len(program):
                raise DisassemblerError(f"missing argument at {address}")
            yield _Instruction(address, spec, word, program[address + 1])
            address += 2
        else:
            yield _Instruction(address, spec, word, None)
            address += 1


def _assign_labels(instructions: list[_Instruction], end: int) -> dict[int, int]:
    boundaries = {ins.address for ins in instructions} | {end}
    targets = set()
    for ins in instructions:
        if ins.spec.is_jump:
            target = ins.arg - 1
            if target not in boundaries:
                raise DisassemblerError(
                    f"jump at {ins.address} targets {target}, not an instruction"
                )
            targets.add(target)
    if len(targets) > MAX_LABELS:
        raise DisassemblerError(f"more than {MAX_LABELS} jump targets")
    return {address: label for label, address in enumerate(sorted(targets))}


def _register_name(index: int, address: int) -> str:
    try:
        return Register(index).name
    except ValueError:
        raise DisassemblerError(f"no such register {index} at {address}") from None


def _format(ins: _Instruction, labels: dict[int, int]) -> str:
    name = ins.spec.name
    if ins.spec.opcode == Opcode.PUSH:
        if ins.word & ARG_RAM:
            return f"{name} [{ins.arg}]"
        if ins.word & ARG_IMMED:
            return f"{name} {ins.arg}"
        if ins.word & ARG_REG:
            return f"{name} {_register_name(ins.arg, ins.address)}"
        raise DisassemblerError(f"push without argument type at {ins.address}")
    if ins.spec.opcode == Opcode.POP:
        if ins.word & ARG_REG:
            return f"{name} {_register_name(ins.arg, ins.address)}"
        raise DisassemblerError(f"pop without register at {ins.address}")
    if ins.spec.is_jump:
        return f"{name} :{labels[ins.arg - 1]}"
    return name


def disassemble(code: Iterable[int]) -> str:
    """Return assembly text, with the signature line, for the code words."""
    program = list(code)
    instructions = list(_decode(program))
    labels = _assign_labels(instructions, len(program))
    lines = [f"{SIGNATURE} {VERSION}"]
    for ins in instructions:
        if ins.address in labels:
            lines.append(f"{labels[ins.address]}:")
        lines.append(_format(ins, labels))
    if len(program) in labels:
        lines.append(f"{labels[len(program)]}:")
    return "\n".join(lines) + "\n"


def disassemble_file(source="out.bin", target="output.txt") -> str:
    """Disassemble a binary code file into a text file; return the text."""
    text = disassemble(read_code(source))
    Path(target).write_text(text)
    return text


def main(argv=None) -> int:
    """Command line entry point: disassemble a binary code file."""
    parser = argparse.ArgumentParser(description="Disassemble a stack machine binary.")
    parser.add_argument("source", nargs="?", default="out.bin", help="binary code file")
    parser.add_argument("-o", "--output", default="output.txt", help="text output")
    args = parser.parse_args(argv)

    try:
        disassemble_file(args.source, args.output)
    except (DisassemblerError, OSError) as error:
        print(error, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())