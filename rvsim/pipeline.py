"""Five-stage pipelined execution of assembled 32-bit instruction words."""

from __future__ import annotations

import operator
from dataclasses import MISSING, dataclass, field, fields
from typing import Callable, Iterable

OP_R = "0110011"
OP_IMM = "0010011"
OP_LOAD = "0000011"
OP_STORE = "0100011"
OP_BRANCH = "1100011"
OP_JAL = "1101111"
OP_JALR = "1100111"

_CONTROL_OPS = frozenset({OP_BRANCH, OP_JALR, OP_JAL})

_SIGNALS = (
    "RegRead", "RegWrite", "MemRead", "MemWrite", "Mem2Reg",
    "ALUSrc", "ALUOp", "Branch", "Jump",
)

_CONTROL_TABLE: dict[str, frozenset[str]] = {
    OP_R: frozenset({"RegRead", "RegWrite"}),
    OP_IMM: frozenset({"RegRead", "RegWrite", "ALUSrc"}),
    OP_LOAD: frozenset({"RegRead", "RegWrite", "ALUSrc", "MemRead", "Mem2Reg"}),
    OP_STORE: frozenset({"RegRead", "ALUSrc", "MemWrite"}),
    OP_BRANCH: frozenset({"RegRead", "Branch"}),
    OP_JAL: frozenset({"RegRead", "RegWrite", "Jump"}),
    OP_JALR: frozenset({"RegRead", "RegWrite", "ALUSrc", "Jump"}),
}

_REGISTER_KEYS = tuple(format(number, "05b") for number in range(32))
_DATA_WORDS = 21


def _wrap32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def _trunc_rem(a: int, b: int) -> int:
    return a - b * _trunc_div(a, b)


def _greater(a: int, b: int) -> int:
    return int(a > b)


_BinaryOp = Callable[[int, int], int]

_R_OPS: dict[tuple[str, str], _BinaryOp] = {
    ("0000000", "000"): operator.add,
    ("0000000", "111"): operator.and_,
    ("0000000", "110"): operator.or_,
    ("0000000", "100"): operator.xor,
    ("0000000", "001"): lambda a, b: a << (b & 31),
    ("0000000", "101"): lambda a, b: a >> (b & 31),
    ("0000000", "010"): _greater,
    ("0100000", "000"): operator.sub,
    ("0000001", "000"): operator.mul,
    ("0000001", "100"): _trunc_div,
    ("0000001", "110"): _trunc_rem,
}

_I_OPS: dict[str, _BinaryOp] = {
    "000": operator.add,
    "100": operator.xor,
    "110": operator.or_,
    "111": operator.and_,
    "010": _greater,
}

_BRANCH_TESTS: dict[str, Callable[[int, int], bool]] = {
    "000": operator.eq,
    "001": operator.ne,
    "100": operator.lt,
    "101": operator.ge,
}


def extract_bits(word: str, end: int, start: int) -> str:
    """Return bits ``end`` down to ``start`` of a 32-character bit string."""
    if not word:
        return word
    return word[31 - end:32 - start]


def signed_value(bits: str) -> int:
    """Interpret a bit string as a two's-complement number; the empty string is 0."""
    if not bits:
        return 0
    value = int(bits, 2)
    if bits[0] == "1":
        value -= 1 << len(bits)
    return value


def _branch_offset(word: str) -> str:
    if not word:
        return word
    high = extract_bits(word, 31, 25)
    low = extract_bits(word, 11, 7)
    joined = high[0] + low[-1] + high[1:] + low[:-1]
    return joined[1:] + "0"


def _store_offset(word: str) -> str:
    if not word:
        return word
    return extract_bits(word, 31, 25) + extract_bits(word, 11, 7)


def _jump_offset(bits: str) -> int:
    if not bits:
        return 0
    joined = bits[0] + bits[12:20] + bits[11] + bits[1:11]
    return signed_value(joined[1:] + "0")


def control_word(opcode: str) -> dict[str, bool]:
    """Return the control signals raised by an opcode."""
    active = _CONTROL_TABLE.get(opcode, frozenset())
    return {signal: signal in active for signal in _SIGNALS}


def alu(op: str, fun3: str, fun7: str, rs1: int, rs2: int, pc: int) -> tuple[int, bool]:
    """Compute the ALU result and the branch flag for one instruction."""
    if op == OP_R:
        operation = _R_OPS.get((fun7, fun3))
        return (0 if operation is None else _wrap32(operation(rs1, rs2))), True
    if op == OP_IMM:
        operation = _I_OPS.get(fun3)
        return (0 if operation is None else _wrap32(operation(rs1, rs2))), True
    if op in (OP_LOAD, OP_STORE):
        return _wrap32(rs1 + rs2), True
    if op == OP_BRANCH:
        test = _BRANCH_TESTS.get(fun3)
        return 0, True if test is None else test(rs1, rs2)
    if op in (OP_JAL, OP_JALR):
        return pc, True
    return 0, True


def _fresh_control() -> dict[str, bool]:
    return control_word("")


@dataclass
class ProgramCounter:
    """The fetch address and the fetch stage's halt and completion flags."""

    pc: int = 0
    complete: bool = False
    halt: bool = False


@dataclass
class FetchDecodeLatch:
    """State passed from fetch to decode."""

    dpc: int = 0
    npc: int = 0
    ir: str = ""
    complete: bool = False


@dataclass
class DecodeExecuteLatch:
    """State passed from decode to execute."""

    jpc: int = 0
    dpc: int = 0
    npc: int = 0
    rs1: int = 0
    rs2: int = 0
    sd_value: int = 0
    rdl: str = ""
    fun3: str = ""
    fun7: str = ""
    imm: str = ""
    op: str = ""
    complete: bool = False
    cw: dict[str, bool] = field(default_factory=_fresh_control)


@dataclass
class ExecuteMemoryLatch:
    """State passed from execute to memory access."""

    alu_out: int = 0
    sd_value: int = 0
    rdl: str = ""
    complete: bool = False
    cw: dict[str, bool] = field(default_factory=_fresh_control)


@dataclass
class MemoryWritebackLatch:
    """State passed from memory access to register write-back."""

    ld_out: int = 0
    alu_out: int = 0
    rdl: str = ""
    complete: bool = False
    cw: dict[str, bool] = field(default_factory=_fresh_control)


def _reset(latch: object) -> None:
    for spec in fields(latch):
        default = spec.default_factory() if spec.default is MISSING else spec.default
        setattr(latch, spec.name, default)


class Pipeline:
    """An in-order five-stage pipeline with register-reservation stalls."""

    def __init__(self, binary: Iterable[str]) -> None:
        self.program = list(binary)
        self.instruction_count = 0
        self.registers: dict[str, int] = dict.fromkeys(_REGISTER_KEYS, 0)
        self.data_memory: dict[int, int] = dict.fromkeys(range(_DATA_WORDS), 0)
        self._pending: dict[str, int] = dict.fromkeys(_REGISTER_KEYS, 0)

    def _past_end(self, pc: int) -> bool:
        index = _trunc_div(pc, 4)
        return index < 0 or index >= len(self.program)

    def _hazard(self, rs1: str, rs2: str, op: str) -> bool:
        if op in (OP_R, OP_STORE, OP_BRANCH):
            return bool(self._pending[rs2] or self._pending[rs1])
        if op in (OP_IMM, OP_LOAD, OP_JALR):
            return bool(self._pending[rs1])
        return False

    def _reserve(self, rd: str, op: str) -> None:
        if op in (OP_R, OP_IMM, OP_LOAD, OP_JALR):
            self._pending[rd] += 1

    def instruction_fetch(self, pc: ProgramCounter, ifid: FetchDecodeLatch) -> None:
        """Fetch the next word, halting fetch behind control-flow instructions."""
        if pc.complete:
            return
        if pc.halt:
            _reset(ifid)
            return
        if self._past_end(pc.pc):
            pc.complete = True
            return
        ifid.ir = self.program[_trunc_div(pc.pc, 4)]
        ifid.dpc = pc.pc
        ifid.npc = pc.pc + 4
        if extract_bits(ifid.ir, 6, 0) in _CONTROL_OPS:
            pc.halt = True
        else:
            pc.pc += 4
        if self._past_end(pc.pc):
            pc.complete = True

    def instruction_decode(self, ifid: FetchDecodeLatch, idex: DecodeExecuteLatch,
                           pc: ProgramCounter) -> bool:
        """Decode the fetched word; return True when the stage must stall."""
        if ifid.complete:
            return False
        word = ifid.ir
        op = extract_bits(word, 6, 0)
        rs1_field = extract_bits(word, 19, 15)
        rs2_field = extract_bits(word, 24, 20)
        if self._hazard(rs1_field, rs2_field, op):
            _reset(idex)
            return True
        if word:
            self.instruction_count += 1
        rd_field = extract_bits(word, 11, 7)
        self._reserve(rd_field, op)
        idex.jpc = ifid.dpc + _jump_offset(extract_bits(word, 31, 12))
        idex.dpc = ifid.dpc
        idex.npc = ifid.npc
        idex.imm = _branch_offset(word)
        idex.fun3 = extract_bits(word, 14, 12)
        idex.fun7 = extract_bits(word, 31, 25)
        idex.rdl = rd_field
        idex.sd_value = self.registers[rs2_field] if word else 0
        idex.op = op
        idex.cw = control_word(op)
        if idex.cw["RegRead"]:
            idex.rs1 = self.registers[rs1_field]
            if idex.cw["ALUSrc"]:
                if op == OP_STORE:
                    idex.rs2 = signed_value(_store_offset(word))
                else:
                    idex.rs2 = signed_value(extract_bits(word, 31, 20))
            else:
                idex.rs2 = self.registers[rs2_field]
        if pc.complete:
            ifid.complete = True
        return False

    def execute(self, idex: DecodeExecuteLatch, exmo: ExecuteMemoryLatch,
                pc: ProgramCounter, ifid: FetchDecodeLatch) -> None:
        """Run the ALU and resolve branches and jumps."""
        if idex.complete:
            return
        result, taken = alu(idex.op, idex.fun3, idex.fun7, idex.rs1, idex.rs2, idex.npc)
        exmo.alu_out = result
        exmo.cw = dict(idex.cw)
        exmo.sd_value = idex.sd_value
        exmo.rdl = idex.rdl
        if idex.op in _CONTROL_OPS:
            pc.halt = False
            if idex.cw["Branch"] and taken:
                pc.pc = idex.dpc + signed_value(idex.imm)
            elif idex.cw["Jump"]:
                pc.pc = idex.rs1 + idex.rs2 if idex.op == OP_JALR else idex.jpc
            else:
                pc.pc = idex.dpc + 4
        if ifid.complete:
            idex.complete = True

    def memory_access(self, exmo: ExecuteMemoryLatch, mowb: MemoryWritebackLatch,
                      idex: DecodeExecuteLatch) -> None:
        """Perform the load or store of the instruction in this stage."""
        if exmo.complete:
            return
        address = _trunc_div(exmo.alu_out, 4)
        if exmo.cw["MemWrite"]:
            self.data_memory[address] = exmo.sd_value
        if exmo.cw["MemRead"]:
            mowb.ld_out = self.data_memory.setdefault(address, 0)
        mowb.alu_out = exmo.alu_out
        mowb.cw = dict(exmo.cw)
        mowb.rdl = exmo.rdl
        if idex.complete:
            exmo.complete = True

    def register_write(self, mowb: MemoryWritebackLatch, exmo: ExecuteMemoryLatch) -> bool:
        """Write back the result; return True once the pipeline has drained."""
        if mowb.complete:
            return True
        if mowb.cw["RegWrite"]:
            if self._pending[mowb.rdl]:
                self._pending[mowb.rdl] -= 1
            self.registers[mowb.rdl] = mowb.ld_out if mowb.cw["Mem2Reg"] else mowb.alu_out
        if exmo.complete:
            mowb.complete = True
        return False

    def run(self) -> int:
        """Run the program to completion and return the number of cycles taken."""
        pc = ProgramCounter()
        ifid = FetchDecodeLatch()
        idex = DecodeExecuteLatch()
        exmo = ExecuteMemoryLatch()
        mowb = MemoryWritebackLatch()
        cycles = 0
        while True:
            cycles += 1
            if self.register_write(mowb, exmo):
                break
            self.memory_access(exmo, mowb, idex)
            self.execute(idex, exmo, pc, ifid)
            if self.instruction_decode(ifid, idex, pc):
                continue
            self.instruction_fetch(pc, ifid)
        return cycles

    def report(self) -> str:
        """Return the instruction count, register file and data memory as text."""
        lines = [
            f"Number of Instructions -> {self.instruction_count}",
            "-------------------- Register Values --------------------",
        ]
        lines += [f"{name}     {value}" for name, value in sorted(self.registers.items())]
        lines += ["", "", "", "----------------------- Memory ---------------------------"]
        lines += [f"{address}      {value}" for address, value in sorted(self.data_memory.items())]
        return "\n".join(lines) + "\n"