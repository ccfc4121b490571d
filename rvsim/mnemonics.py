"""Mnemonic to instruction-format lookup."""

from __future__ import annotations

from enum import Enum

from rvsim.text import AssemblyError


class InstructionFormat(Enum):
    """The encoding family an instruction belongs to."""

    R_TYPE = "R_type"
    I_TYPE = "I_type"
    SHIFT = "I_type2"
    JUMP_REGISTER = "I_type3"
    LOAD = "L_type"
    STORE = "S_type"
    BRANCH = "B_type"
    JUMP = "J_type"
    UPPER = "U_type"


_FORMATS: dict[str, InstructionFormat] = {
    **dict.fromkeys(
        ("ADD", "SUB", "MUL", "DIV", "REM", "AND", "OR", "XOR",
         "SLL", "SRL", "SRA", "SLT", "SLTU"),
        InstructionFormat.R_TYPE,
    ),
    **dict.fromkeys(("ADDI", "XORI", "ORI", "ANDI", "SLTI"), InstructionFormat.I_TYPE),
    **dict.fromkeys(("SLLI", "SRLI", "SRAI"), InstructionFormat.SHIFT),
    "JALR": InstructionFormat.JUMP_REGISTER,
    **dict.fromkeys(("LW", "LD", "LH", "LB", "LWU", "LHU", "LBU"), InstructionFormat.LOAD),
    **dict.fromkeys(("SW", "SB", "SH", "SD"), InstructionFormat.STORE),
    **dict.fromkeys(("BEQ", "BNE", "BLT", "BGE", "BLTU", "BGEU"), InstructionFormat.BRANCH),
    "JAL": InstructionFormat.JUMP,
    "LUI": InstructionFormat.UPPER,
}


def format_of(mnemonic: str) -> InstructionFormat:
    """Return the format of an upper-case mnemonic."""
    try:
        return _FORMATS[mnemonic]
    except KeyError:
        raise AssemblyError("Wrong Function Used") from None