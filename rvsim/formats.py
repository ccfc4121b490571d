"""Register and immediate instruction formats: R, I, shift, JALR and load."""

from __future__ import annotations

import re
from typing import ClassVar

from rvsim.registers import is_register, register_bits
from rvsim.text import AssemblyError, Tokenizer

_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1
_IMMEDIATE = re.compile(r"\s*([+-]?[0-9]+)")
_IMM12_MIN = -2048
_IMM12_MAX = 2047


def to_twos_complement(value: int, width: int) -> str:
    """Return ``value`` as a two's-complement bit string of ``width`` bits."""
    if width <= 0:
        raise ValueError("width must be positive")
    limit = 1 << width
    if not -limit < value < limit:
        raise ValueError(f"{value} does not fit in {width} bits")
    return format(value % limit, f"0{width}b")


def _next_operand(tokenizer: Tokenizer) -> str:
    tokenizer.skip_separators()
    return tokenizer.next_token()


def _parse_immediate(token: str) -> int:
    """Read a leading decimal integer from the token, ignoring anything after it."""
    match = _IMMEDIATE.match(token)
    if match is None:
        raise AssemblyError("Error in immediate")
    value = int(match.group(1))
    if not _INT32_MIN <= value <= _INT32_MAX:
        raise AssemblyError("Immediate out of range")
    return value


def _register_operands(*names: str) -> tuple[str, ...]:
    if not all(is_register(name) for name in names):
        raise AssemblyError("Wrong Register Used")
    return tuple(register_bits(name) for name in names)


def _check_range(value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise AssemblyError("Immediate out of range")


def _field(table: dict[str, str], mnemonic: str) -> str:
    try:
        return table[mnemonic]
    except KeyError:
        raise AssemblyError("Wrong Function Used") from None


def _finish(tokenizer: Tokenizer, rs1: str, imm: int, rd: str,
            low: int, high: int) -> tuple[str, int, str]:
    tokenizer.expect_end()
    rs1_bits, rd_bits = _register_operands(rs1, rd)
    _check_range(imm, low, high)
    return rs1_bits, imm, rd_bits


def _parse_register_immediate(tokenizer: Tokenizer, low: int, high: int) -> tuple[str, int, str]:
    """Read ``rd, rs1, imm``; return ``(rs1 bits, imm, rd bits)``."""
    rd = _next_operand(tokenizer)
    rs1 = _next_operand(tokenizer)
    imm = _parse_immediate(_next_operand(tokenizer))
    return _finish(tokenizer, rs1, imm, rd, low, high)


def _parse_offset(tokenizer: Tokenizer, low: int, high: int) -> tuple[str, int, str]:
    """Read ``rd, imm(rs1)``; return ``(rs1 bits, imm, rd bits)``."""
    rd = _next_operand(tokenizer)
    imm = _parse_immediate(_next_operand(tokenizer))
    rs1 = _next_operand(tokenizer)
    return _finish(tokenizer, rs1, imm, rd, low, high)


def _encode_immediate(func3: dict[str, str], opcode: str, mnemonic: str,
                      rs1: str, imm: int, rd: str) -> str:
    return to_twos_complement(imm, 12) + rs1 + _field(func3, mnemonic) + rd + opcode


class RType:
    """Register-register arithmetic: ``OP rd, rs1, rs2``."""

    OPCODE: ClassVar[str] = "0110011"
    FUNC7: ClassVar[dict[str, str]] = {
        "ADD": "0000000", "SUB": "0100000", "MUL": "0000001", "DIV": "0000001",
        "REM": "0000001", "AND": "0000000", "OR": "0000000", "XOR": "0000000",
        "SLL": "0000000", "SRL": "0000000", "SRA": "0100000", "SLT": "0000000",
        "SLTU": "0000000",
    }
    FUNC3: ClassVar[dict[str, str]] = {
        "ADD": "000", "SUB": "000", "MUL": "000", "DIV": "100", "REM": "110",
        "AND": "111", "OR": "110", "XOR": "100", "SLL": "001", "SRL": "101",
        "SRA": "101", "SLT": "010", "SLTU": "011",
    }

    def parse(self, tokenizer: Tokenizer) -> tuple[str, str, str]:
        """Read the operands; return the bits of ``(rs1, rs2, rd)``."""
        rd = _next_operand(tokenizer)
        rs1 = _next_operand(tokenizer)
        rs2 = _next_operand(tokenizer)
        tokenizer.expect_end()
        rs1_bits, rs2_bits, rd_bits = _register_operands(rs1, rs2, rd)
        return rs1_bits, rs2_bits, rd_bits

    def encode(self, mnemonic: str, rs1: str, rs2: str, rd: str) -> str:
        """Return the 32-bit encoding as a bit string."""
        return (_field(self.FUNC7, mnemonic) + rs2 + rs1
                + _field(self.FUNC3, mnemonic) + rd + self.OPCODE)


class IType:
    """Register-immediate arithmetic: ``OP rd, rs1, imm``."""

    OPCODE: ClassVar[str] = "0010011"
    FUNC3: ClassVar[dict[str, str]] = {
        "ADDI": "000", "XORI": "100", "ORI": "110", "ANDI": "111", "SLTI": "010",
    }

    def parse(self, tokenizer: Tokenizer) -> tuple[str, int, str]:
        """Read ``rd, rs1, imm``; return ``(rs1 bits, imm, rd bits)``."""
        return _parse_register_immediate(tokenizer, _IMM12_MIN, _IMM12_MAX)

    def encode(self, mnemonic: str, rs1: str, imm: int, rd: str) -> str:
        """Return the 32-bit encoding as a bit string."""
        return _encode_immediate(self.FUNC3, self.OPCODE, mnemonic, rs1, imm, rd)


class ShiftType:
    """Shifts by an immediate amount: ``OP rd, rs1, shamt``."""

    OPCODE: ClassVar[str] = "0010011"
    FUNC3: ClassVar[dict[str, str]] = {"SLLI": "001", "SRLI": "101", "SRAI": "101"}
    FUNC7: ClassVar[dict[str, str]] = {"SLLI": "0000000", "SRLI": "0000000", "SRAI": "0100000"}

    def parse(self, tokenizer: Tokenizer) -> tuple[str, int, str]:
        """Read ``rd, rs1, shamt``; return ``(rs1 bits, shamt, rd bits)``."""
        return _parse_register_immediate(tokenizer, 0, 31)

    def encode(self, mnemonic: str, rs1: str, imm: int, rd: str) -> str:
        """Return the 32-bit encoding as a bit string."""
        return (_field(self.FUNC7, mnemonic) + to_twos_complement(imm, 5) + rs1
                + _field(self.FUNC3, mnemonic) + rd + self.OPCODE)


class JumpRegisterType:
    """Indirect jump: ``JALR rd, imm(rs1)``."""

    OPCODE: ClassVar[str] = "1100111"
    FUNC3: ClassVar[dict[str, str]] = {"JALR": "000"}

    def parse(self, tokenizer: Tokenizer) -> tuple[str, int, str]:
        """Read ``rd, imm(rs1)``; return ``(rs1 bits, imm, rd bits)``."""
        return _parse_offset(tokenizer, _IMM12_MIN, _IMM12_MAX)

    def encode(self, mnemonic: str, rs1: str, imm: int, rd: str) -> str:
        """Return the 32-bit encoding as a bit string."""
        return _encode_immediate(self.FUNC3, self.OPCODE, mnemonic, rs1, imm, rd)


class LoadType:
    """Loads: ``OP rd, imm(rs1)``."""

    OPCODE: ClassVar[str] = "0000011"
    FUNC3: ClassVar[dict[str, str]] = {
        "LW": "010", "LD": "011", "LH": "001", "LB": "000",
        "LWU": "110", "LHU": "101", "LBU": "100",
    }

    def parse(self, tokenizer: Tokenizer) -> tuple[str, int, str]:
        """Read ``rd, imm(rs1)``; return ``(rs1 bits, imm, rd bits)``."""
        return _parse_offset(tokenizer, _IMM12_MIN, _IMM12_MAX)

    def encode(self, mnemonic: str, rs1: str, imm: int, rd: str) -> str:
        """Return the 32-bit encoding as a bit string."""
        return _encode_immediate(self.FUNC3, self.OPCODE, mnemonic, rs1, imm, rd)