import pytest

from stackvm.isa import (
    ARG_IMMED,
    ARG_RAM,
    ARG_REG,
    Opcode,
    Register,
    command_by_code,
    command_by_name,
    pack_code,
    read_code,
    register_by_name,
    unpack_code,
    write_code,
)


def test_command_by_name_ignores_case():
    spec = command_by_name("pUsH")
    assert spec.opcode == Opcode.PUSH
    assert spec.has_arg is True
    assert spec.is_jump is False


def test_command_by_name_unknown():
    with pytest.raises(KeyError):
        command_by_name("jmp")


@pytest.mark.parametrize(
    "name, deeper, top, expected",
    [
        ("JB", 1, 2, True),
        ("JB", 2, 2, False),
        ("JBE", 2, 2, True),
        ("JA", 3, 2, True),
        ("JAE", 1, 2, False),
        ("JE", 4, 4, True),
        ("JNE", 4, 4, False),
    ],
)
def test_jump_conditions(name, deeper, top, expected):
    spec = command_by_name(name)
    assert spec.is_jump
    assert spec.has_arg
    assert spec.condition(deeper, top) is expected


def test_command_by_code_masks_argument_flags():
    assert command_by_code(Opcode.PUSH | ARG_IMMED | ARG_RAM).name == "PUSH"
    assert command_by_code(Opcode.POP | ARG_REG).name == "POP"


def test_space_shares_code_with_endl():
    assert command_by_name("space").opcode == command_by_name("endl").opcode
    assert command_by_code(Opcode.SPACE).name == "ENDL"


def test_command_by_code_unknown():
    with pytest.raises(KeyError):
        command_by_code(19)


def test_every_named_command_round_trips_by_code():
    for name in ("PUSH", "POP", "ADD", "HLT", "JNE", "FACT", "PRNT"):
        spec = command_by_name(name)
        assert command_by_code(spec.opcode) == spec


def test_register_by_name():
    assert register_by_name("rcx") is Register.RCX
    assert register_by_name("RFX") is Register.RFX


def test_register_by_name_unknown():
    with pytest.raises(KeyError):
        register_by_name("rgx")


def test_pack_code_is_little_endian_words():
    assert pack_code([1]) == b"\x01\x00\x00\x00"
    assert pack_code([-1]) == b"\xff\xff\xff\xff"


def test_pack_unpack_round_trip():
    code = [Opcode.PUSH | ARG_IMMED, -7, Opcode.HLT, 2**31 - 1, -(2**31)]
    assert unpack_code(pack_code(code)) == code


def test_unpack_ignores_partial_word():
    data = pack_code([5, 6]) + b"\x01\x02"
    assert unpack_code(data) == [5, 6]


def test_pack_rejects_out_of_range():
    with pytest.raises(ValueError):
        pack_code([2**31])


def test_read_write_round_trip(tmp_path):
    path = tmp_path / "out.bin"
    code = [Opcode.POP | ARG_REG, Register.RDX, Opcode.HLT]
    write_code(code, path)
    assert path.stat().st_size == len(code) * 4
    assert read_code(path) == code