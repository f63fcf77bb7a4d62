"""Instruction set of the stack machine and the binary code format."""

from __future__ import annotations

import operator
import struct
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Callable, Iterable, Optional

ARG_IMMED = 1 << 6
ARG_REG = 1 << 7
ARG_RAM = 1 << 8
CMD_MASK = 0x1F

REGISTER_COUNT = 20
RAM_SIZE = 100
MAX_LABELS = 300
MAX_COMMANDS = 1000

SIGNATURE = "ASM"
VERSION = 2
WORD_SIZE = 4

_WORD_MIN = -(2**31)
_WORD_MAX = 2**31 - 1


class Opcode(IntEnum):
    """Numeric operation codes; SPACE shares its code with ENDL."""

    PUSH = 1
    POP = 2
    ADD = 3
    SUB = 4
    MUL = 5
    DIV = 6
    OUT = 7
    IN = 8
    HLT = 9
    CALL = 10
    SQRT = 11
    CPY = 12
    JB = 13
    JBE = 14
    JA = 15
    JAE = 16
    JE = 17
    JNE = 18
    FACT = 20
    PRNT = 21
    ENDL = 22
    SPACE = 22


class Register(IntEnum):
    """General purpose registers addressable from assembly."""

    RAX = 0
    RBX = 1
    RCX = 2
    RDX = 3
    REX = 4
    RFX = 5


@dataclass(frozen=True)
class CommandSpec:
    """One assembly mnemonic: its code, whether it takes an argument and,
    for conditional jumps, the comparison applied to (deeper, top) values."""

    name: str
    opcode: Opcode
    has_arg: bool
    condition: Optional[Callable[[int, int], bool]] = None

    @property
    def is_jump(self) -> bool:
        return self.condition is not None


COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec("PUSH", Opcode.PUSH, True),
    CommandSpec("POP", Opcode.POP, True),
    CommandSpec("ADD", Opcode.ADD, False),
    CommandSpec("SUB", Opcode.SUB, False),
    CommandSpec("MUL", Opcode.MUL, False),
    CommandSpec("DIV", Opcode.DIV, False),
    CommandSpec("OUT", Opcode.OUT, False),
    CommandSpec("IN", Opcode.IN, False),
    CommandSpec("HLT", Opcode.HLT, False),
    CommandSpec("CALL", Opcode.CALL, False),
    CommandSpec("SQRT", Opcode.SQRT, False),
    CommandSpec("CPY", Opcode.CPY, False),
    CommandSpec("JB", Opcode.JB, True, operator.lt),
    CommandSpec("JBE", Opcode.JBE, True, operator.le),
    CommandSpec("JA", Opcode.JA, True, operator.gt),
    CommandSpec("JAE", Opcode.JAE, True, operator.ge),
    CommandSpec("JE", Opcode.JE, True, operator.eq),
    CommandSpec("JNE", Opcode.JNE, True, operator.ne),
    CommandSpec("FACT", Opcode.FACT, False),
    CommandSpec("PRNT", Opcode.PRNT, False),
    CommandSpec("ENDL", Opcode.ENDL, False),
    CommandSpec("SPACE", Opcode.SPACE, False),
)

_BY_NAME = {spec.name: spec for spec in COMMANDS}
_BY_CODE: dict[int, CommandSpec] = {}
for _spec in COMMANDS:
    _BY_CODE.setdefault(int(_spec.opcode), _spec)
_REGISTERS = {reg.name: reg for reg in Register}


def command_by_name(name: str) -> CommandSpec:
    """Look up a mnemonic, ignoring case; raise KeyError if unknown."""
    try:
        return _BY_NAME[name.upper()]
    except KeyError:
        raise KeyError(f"unknown command: {name!r}") from None


def command_by_code(code: int) -> CommandSpec:
    """Look up the command encoded in a code word (argument flags ignored)."""
    try:
        return _BY_CODE[code & CMD_MASK]
    except KeyError:
        raise KeyError(f"unknown command code: {code & CMD_MASK}") from None


def register_by_name(name: str) -> Register:
    """Look up a register name, ignoring case; raise KeyError if unknown."""
    try:
        return _REGISTERS[name.upper()]
    except KeyError:
        raise KeyError(f"unknown register: {name!r}") from None


def pack_code(code: Iterable[int]) -> bytes:
    """Serialise code words as little-endian 32-bit signed integers."""
    words = list(code)
    for word in words:
        if not _WORD_MIN <= word <= _WORD_MAX:
            raise ValueError(f"code word out of 32-bit range: {word}")
    return struct.pack(f"<{len(words)}i", *words)


def unpack_code(data: bytes) -> list[int]:
    """Decode code words; a trailing partial word is ignored."""
    count = len(data) // WORD_SIZE
    return list(struct.unpack_from(f"<{count}i", data))


def read_code(path) -> list[int]:
    """Read a binary code file."""
    return unpack_code(Path(path).read_bytes())


def write_code(code: Iterable[int], path) -> None:
    """Write code words to a binary code file."""
    Path(path).write_bytes(pack_code(code))