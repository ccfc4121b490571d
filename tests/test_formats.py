import pytest

from rvsim.formats import (
    IType,
    JumpRegisterType,
    LoadType,
    RType,
    ShiftType,
    to_twos_complement,
)
from rvsim.registers import register_bits
from rvsim.text import AssemblyError, Tokenizer


def _parse(fmt, operands):
    return fmt.parse(Tokenizer(operands))


def _signed(bits):
    value = int(bits, 2)
    return value - (1 << len(bits)) if bits[0] == "1" else value


# --- two's complement -------------------------------------------------------

def test_twos_complement_pinned_values():
    assert to_twos_complement(-1, 12) == "1" * 12
    assert to_twos_complement(-2048, 12) == "1" + "0" * 11
    assert to_twos_complement(0, 5) == "00000"


@pytest.mark.parametrize("value", [-2048, -5, -1, 0, 1, 7, 2047])
def test_twos_complement_round_trip(value):
    bits = to_twos_complement(value, 12)
    assert len(bits) == 12
    assert _signed(bits) == value


def test_twos_complement_rejects_values_too_wide():
    with pytest.raises(ValueError):
        to_twos_complement(4096, 12)


# --- R type -----------------------------------------------------------------

def test_rtype_parse_returns_register_bits():
    assert _parse(RType(), "x1, x2, x3") == (
        register_bits("x2"), register_bits("x3"), register_bits("x1"))


def test_rtype_encode_layout():
    fmt = RType()
    rs1, rs2, rd = _parse(fmt, "a0, t1, s2")
    encoded = fmt.encode("SUB", rs1, rs2, rd)
    assert len(encoded) == 32
    assert encoded[:7] == "0100000"
    assert encoded[7:12] == rs2
    assert encoded[12:17] == rs1
    assert encoded[17:20] == "000"
    assert encoded[20:25] == rd
    assert encoded[25:] == "0110011"


def test_rtype_mul_funct_fields():
    fmt = RType()
    encoded = fmt.encode("DIV", *_parse(fmt, "x1 x2 x3"))
    assert encoded[:7] == "0000001"
    assert encoded[17:20] == "100"


def test_rtype_wrong_register():
    with pytest.raises(AssemblyError, match="Wrong Register"):
        _parse(RType(), "x1, x2, y3")


def test_rtype_extra_code():
    with pytest.raises(AssemblyError, match="Extra Code"):
        _parse(RType(), "x1, x2, x3 x4")


def test_rtype_unknown_mnemonic():
    fmt = RType()
    with pytest.raises(AssemblyError):
        fmt.encode("ADDI", *_parse(fmt, "x1, x2, x3"))


# --- I type -----------------------------------------------------------------

def test_itype_parse_and_encode():
    fmt = IType()
    rs1, imm, rd = _parse(fmt, "x1, x2, -5")
    assert (rs1, imm, rd) == (register_bits("x2"), -5, register_bits("x1"))
    encoded = fmt.encode("ADDI", rs1, imm, rd)
    assert encoded[:12] == to_twos_complement(-5, 12)
    assert encoded[12:17] == rs1
    assert encoded[17:20] == "000"
    assert encoded[20:25] == rd
    assert encoded[25:] == "0010011"


def test_itype_immediate_trailing_text_ignored():
    assert _parse(IType(), "x1 x2 12abc")[1] == 12


@pytest.mark.parametrize("imm", ["2048", "-2049", "99999999999"])
def test_itype_immediate_out_of_range(imm):
    with pytest.raises(AssemblyError, match="out of range"):
        _parse(IType(), f"x1, x2, {imm}")


def test_itype_bad_immediate_reported_before_register():
    with pytest.raises(AssemblyError, match="Error in immediate"):
        _parse(IType(), "x1, q9, abc")


def test_itype_bounds_accepted():
    assert _parse(IType(), "x1, x2, 2047")[1] == 2047
    assert _parse(IType(), "x1, x2, -2048")[1] == -2048


# --- shifts -----------------------------------------------------------------

def test_shift_encode_layout():
    fmt = ShiftType()
    rs1, imm, rd = _parse(fmt, "x3, x4, 3")
    encoded = fmt.encode("SRAI", rs1, imm, rd)
    assert len(encoded) == 32
    assert encoded[:7] == "0100000"
    assert encoded[7:12] == to_twos_complement(3, 5)
    assert encoded[17:20] == "101"
    assert encoded[25:] == "0010011"


@pytest.mark.parametrize("imm", ["32", "-1"])
def test_shift_amount_out_of_range(imm):
    with pytest.raises(AssemblyError, match="out of range"):
        _parse(ShiftType(), f"x1, x2, {imm}")


# --- JALR and loads ---------------------------------------------------------

def test_jalr_offset_form():
    fmt = JumpRegisterType()
    rs1, imm, rd = _parse(fmt, "x1, 8(x2)")
    assert (rs1, imm, rd) == (register_bits("x2"), 8, register_bits("x1"))
    encoded = fmt.encode("JALR", rs1, imm, rd)
    assert encoded[17:20] == "000"
    assert encoded[25:] == "1100111"


def test_load_offset_form():
    fmt = LoadType()
    rs1, imm, rd = _parse(fmt, "x5, -4(sp)")
    assert (rs1, imm, rd) == (register_bits("sp"), -4, register_bits("t0"))
    encoded = fmt.encode("LW", rs1, imm, rd)
    assert _signed(encoded[:12]) == -4
    assert encoded[17:20] == "010"
    assert encoded[25:] == "0000011"


def test_load_extra_code_after_base():
    with pytest.raises(AssemblyError, match="Extra Code"):
        _parse(LoadType(), "x1, 8(x2) x3")


def test_load_wrong_base_register():
    with pytest.raises(AssemblyError, match="Wrong Register"):
        _parse(LoadType(), "x1, 8(r2)")