"""Assembling single lines and whole programs into 32-bit bit strings."""

from __future__ import annotations

from typing import Iterable

from rvsim.control_formats import BranchType, JumpType, StoreType, UpperType
from rvsim.formats import IType, JumpRegisterType, LoadType, RType, ShiftType
from rvsim.mnemonics import InstructionFormat, format_of
from rvsim.text import Tokenizer

_IMMEDIATE_FORMATS = {
    InstructionFormat.I_TYPE: IType(),
    InstructionFormat.SHIFT: ShiftType(),
    InstructionFormat.JUMP_REGISTER: JumpRegisterType(),
    InstructionFormat.LOAD: LoadType(),
}

_TWO_SOURCE_FORMATS = {
    InstructionFormat.STORE: StoreType(),
    InstructionFormat.BRANCH: BranchType(),
}

_LONG_IMMEDIATE_FORMATS = {
    InstructionFormat.JUMP: JumpType(),
    InstructionFormat.UPPER: UpperType(),
}


def assemble_line(line: str) -> str:
    """Encode one line of assembly; raise AssemblyError if it is malformed."""
    tokenizer = Tokenizer(line)
    tokenizer.skip_separators()
    mnemonic = tokenizer.next_token().upper()
    kind = format_of(mnemonic)

    if kind is InstructionFormat.R_TYPE:
        encoder = RType()
        rs1, rs2, rd = encoder.parse(tokenizer)
        return encoder.encode(mnemonic, rs1, rs2, rd)
    if kind in _IMMEDIATE_FORMATS:
        encoder = _IMMEDIATE_FORMATS[kind]
        rs1, imm, rd = encoder.parse(tokenizer)
        return encoder.encode(mnemonic, rs1, imm, rd)
    if kind in _TWO_SOURCE_FORMATS:
        encoder = _TWO_SOURCE_FORMATS[kind]
        rs1, imm, rs2 = encoder.parse(tokenizer)
        return encoder.encode(mnemonic, rs1, rs2, imm)
    encoder = _LONG_IMMEDIATE_FORMATS[kind]
    rd, imm = encoder.parse(tokenizer)
    return encoder.encode(rd, imm)


def assemble(lines: Iterable[str]) -> list[str]:
    """Encode every line in order, stopping at the first error."""
    return [assemble_line(line) for line in lines]