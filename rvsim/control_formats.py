"""Store, branch, jump and upper-immediate instruction formats."""

from __future__ import annotations

from typing import ClassVar

from rvsim.formats import (
    _check_range,
    _field,
    _next_operand,
    _parse_immediate,
    _register_operands,
    to_twos_complement,
)
from rvsim.text import Tokenizer

_SHORT_MIN = -2048
_SHORT_MAX = 2047
_LONG_MIN = -1048576
_LONG_MAX = 1048574


class StoreType:
    """Stores: ``OP rs2, imm(rs1)``."""

    OPCODE: ClassVar[str] = "0100011"
    FUNC3: ClassVar[dict[str, str]] = {"SW": "010", "SB": "000", "SH": "001", "SD": "011"}

    def parse(self, tokenizer: Tokenizer) -> tuple[str, int, str]:
        """Read ``rs2, imm(rs1)``; return ``(rs1 bits, imm, rs2 bits)``."""
        rs2 = _next_operand(tokenizer)
        imm = _parse_immediate(_next_operand(tokenizer))
        rs1 = _next_operand(tokenizer)
        tokenizer.expect_end()
        rs1_bits, rs2_bits = _register_operands(rs1, rs2)
        _check_range(imm, _SHORT_MIN, _SHORT_MAX)
        return rs1_bits, imm, rs2_bits

    def encode(self, mnemonic: str, rs1: str, rs2: str, imm: int) -> str:
        """Return the 32-bit encoding as a bit string."""
        bits = to_twos_complement(imm, 12)
        return (bits[:7] + rs2 + rs1 + _field(self.FUNC3, mnemonic)
                + bits[7:] + self.OPCODE)


class BranchType:
    """Conditional branches: ``OP rs1, rs2, offset``."""

    OPCODE: ClassVar[str] = "1100011"
    FUNC3: ClassVar[dict[str, str]] = {
        "BEQ": "000", "BNE": "001", "BLT": "100",
        "BGE": "101", "BLTU": "110", "BGEU": "111",
    }

    def parse(self, tokenizer: Tokenizer) -> tuple[str, int, str]:
        """Read ``rs1, rs2, offset``; return ``(rs1 bits, offset, rs2 bits)``."""
        rs1 = _next_operand(tokenizer)
        rs2 = _next_operand(tokenizer)
        imm = _parse_immediate(_next_operand(tokenizer))
        tokenizer.expect_end()
        rs1_bits, rs2_bits = _register_operands(rs1, rs2)
        _check_range(imm, _SHORT_MIN, _SHORT_MAX)
        return rs1_bits, imm, rs2_bits

    def encode(self, mnemonic: str, rs1: str, rs2: str, imm: int) -> str:
        """Return the 32-bit encoding as a bit string."""
        sign = "1" if imm < 0 else "0"
        bits = to_twos_complement(imm, 12)
        return (sign + bits[1:7] + rs2 + rs1 + _field(self.FUNC3, mnemonic)
                + bits[7:11] + bits[11] + self.OPCODE)


class JumpType:
    """Direct jump and link: ``JAL rd, offset``."""

    OPCODE: ClassVar[str] = "1101111"

    def parse(self, tokenizer: Tokenizer) -> tuple[str, int]:
        """Read ``rd, offset``; return ``(rd bits, offset)``."""
        rd = _next_operand(tokenizer)
        imm = _parse_immediate(_next_operand(tokenizer))
        tokenizer.expect_end()
        (rd_bits,) = _register_operands(rd)
        _check_range(imm, _LONG_MIN, _LONG_MAX)
        return rd_bits, imm

    def encode(self, rd: str, imm: int) -> str:
        """Return the 32-bit encoding as a bit string."""
        bits = to_twos_complement(imm, 21)
        return bits[0] + bits[10:20] + bits[9] + bits[1:9] + rd + self.OPCODE


class UpperType:
    """Load upper immediate: ``LUI rd, imm``."""

    OPCODE: ClassVar[str] = "0110111"

    def parse(self, tokenizer: Tokenizer) -> tuple[str, int]:
        """Read ``rd, imm``; return ``(rd bits, imm)``."""
        rd = _next_operand(tokenizer)
        imm = _parse_immediate(_next_operand(tokenizer))
        tokenizer.expect_end()
        (rd_bits,) = _register_operands(rd)
        _check_range(imm, _LONG_MIN, _LONG_MAX)
        return rd_bits, imm

    def encode(self, rd: str, imm: int) -> str:
        """Return the 32-bit encoding as a bit string; the low 20 bits of imm fill the top."""
        bits = to_twos_complement(imm, 32)
        return bits[12:] + rd + self.OPCODE