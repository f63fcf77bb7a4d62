import pytest

from stackvm.assembler import Assembler
from stackvm.disassembler import (
    DisassemblerError,
    disassemble,
    disassemble_file,
    main,
)
from stackvm.isa import ARG_IMMED, ARG_RAM, ARG_REG, Opcode, Register, write_code


def test_empty_code_gives_header_only():
    assert disassemble([]) == "ASM 2\n"


def test_simple_commands():
    code = [Opcode.PUSH | ARG_IMMED, 5, Opcode.PUSH | ARG_IMMED, -2, Opcode.ADD, Opcode.HLT]
    assert disassemble(code) == "ASM 2\nPUSH 5\nPUSH -2\nADD\nHLT\n"


def test_push_ram_and_register_and_pop():
    code = [
        Opcode.PUSH | ARG_RAM | ARG_IMMED,
        3,
        Opcode.PUSH | ARG_REG,
        Register.RCX,
        Opcode.POP | ARG_REG,
        Register.RDX,
    ]
    assert disassemble(code) == "ASM 2\nPUSH [3]\nPUSH RCX\nPOP RDX\n"


def test_shared_code_disassembles_as_endl():
    assert disassemble([Opcode.SPACE]) == "ASM 2\nENDL\n"


def test_jump_gets_label():
    text = "ASM 2\n0:\nPUSH 1\nPUSH 2\nJB :0\n"
    code = Assembler().assemble(text)
    assert disassemble(code) == text


@pytest.mark.parametrize(
    "program",
    [
        "PUSH 1\nPUSH 2\nADD\nHLT",
        "PUSH 0\nPOP RAX\n7:\nPUSH RAX\nPUSH 1\nADD\nPOP RAX\nPUSH RAX\nPUSH 5\nJB :7\nHLT",
        "PUSH [4]\nPUSH 4\nJE :2\nPRNT\n2:\nENDL",
        "PUSH 1\nPUSH 1\nJNE :3\nSQRT\nCPY\nDIV\nMUL\nSUB\n3:",
    ],
)
def test_round_trip_through_assembler(program):
    code = Assembler().assemble("ASM 2\n" + program + "\n")
    text = disassemble(code)
    assert Assembler().assemble(text) == code


def test_unknown_command_raises():
    with pytest.raises(DisassemblerError):
        disassemble([0])


def test_truncated_argument_raises():
    with pytest.raises(DisassemblerError):
        disassemble([Opcode.PUSH | ARG_IMMED])


def test_bad_register_raises():
    with pytest.raises(DisassemblerError):
        disassemble([Opcode.PUSH | ARG_REG, 9])


def test_pop_without_register_flag_raises():
    with pytest.raises(DisassemblerError):
        disassemble([Opcode.POP, 0])


def test_push_without_argument_type_raises():
    with pytest.raises(DisassemblerError):
        disassemble([Opcode.PUSH, 0])


@pytest.mark.parametrize("encoded_target", [2, 100, 0])
def test_jump_to_invalid_target_raises(encoded_target):
    code = [Opcode.PUSH | ARG_IMMED, 1, Opcode.PUSH | ARG_IMMED, 1, Opcode.JE, encoded_target]
    with pytest.raises(DisassemblerError):
        disassemble(code)


def test_disassemble_file_writes_target(tmp_path):
    source = tmp_path / "prog.bin"
    target = tmp_path / "prog.txt"
    write_code([Opcode.PUSH | ARG_IMMED, 5, Opcode.HLT], source)
    text = disassemble_file(source, target)
    assert text == "ASM 2\nPUSH 5\nHLT\n"
    assert target.read_text() == text


def test_main_writes_output(tmp_path):
    source = tmp_path / "prog.bin"
    target = tmp_path / "prog.txt"
    write_code([Opcode.ADD], source)
    assert main([str(source), "-o", str(target)]) == 0
    assert target.read_text() == "ASM 2\nADD\n"


def test_main_reports_bad_code(tmp_path):
    source = tmp_path / "prog.bin"
    write_code([0], source)
    assert main([str(source), "-o", str(tmp_path / "out.txt")]) == 1