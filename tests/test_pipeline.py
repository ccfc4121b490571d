import pytest

from rvsim.formats import to_twos_complement
from rvsim.instruction import assemble, assemble_line
from rvsim.pipeline import (
    DecodeExecuteLatch,
    FetchDecodeLatch,
    Pipeline,
    ProgramCounter,
    alu,
    control_word,
    extract_bits,
    signed_value,
)
from rvsim.registers import register_bits


def _run(lines):
    pipeline = Pipeline(assemble(lines))
    cycles = pipeline.run()
    return pipeline, cycles


def _reg(pipeline, name):
    return pipeline.registers[register_bits(name)]


def test_extract_bits_reads_fields_of_encoded_word():
    word = assemble_line("addi x1, x2, 5")
    assert extract_bits(word, 6, 0) == "0010011"
    assert extract_bits(word, 11, 7) == register_bits("x1")
    assert extract_bits(word, 19, 15) == register_bits("x2")
    assert signed_value(extract_bits(word, 31, 20)) == 5


def test_extract_bits_of_empty_word_is_empty():
    assert extract_bits("", 6, 0) == ""


@pytest.mark.parametrize("value", range(-2048, 2048, 37))
def test_signed_value_inverts_twos_complement(value):
    assert signed_value(to_twos_complement(value, 12)) == value


def test_signed_value_of_empty_is_zero():
    assert signed_value("") == 0


def test_control_word_for_register_arithmetic():
    cw = control_word("0110011")
    assert cw["RegRead"] and cw["RegWrite"]
    assert not cw["ALUSrc"] and not cw["MemRead"]


def test_control_word_for_store_and_load():
    store = control_word("0100011")
    load = control_word("0000011")
    assert store["MemWrite"] and not store["RegWrite"]
    assert load["MemRead"] and load["Mem2Reg"] and load["RegWrite"]


@pytest.mark.parametrize("opcode", ["", "0110111"])
def test_control_word_unknown_opcode_is_all_off(opcode):
    cw = control_word(opcode)
    assert set(cw) == set(control_word("0110011"))
    assert sorted(set(cw.values())) == [0]


def test_alu_add_and_sub_are_inverse():
    total, _ = alu("0110011", "000", "0000000", 17, 25, 0)
    back, _ = alu("0110011", "000", "0100000", total, 25, 0)
    assert back == 17


def test_alu_division_truncates_toward_zero():
    quotient, _ = alu("0110011", "100", "0000001", -7, 2, 0)
    remainder, _ = alu("0110011", "110", "0000001", -7, 2, 0)
    assert quotient * 2 + remainder == -7
    assert -2 < remainder <= 0


def test_alu_wraps_to_32_bits():
    result, _ = alu("0110011", "000", "0000000", 2**31 - 1, 1, 0)
    assert result == -(2**31)


def test_alu_division_by_zero_raises():
    with pytest.raises(ZeroDivisionError):
        alu("0110011", "100", "0000001", 5, 0, 0)


def test_alu_branch_flags():
    assert alu("1100011", "000", "", 3, 3, 0)[1] is True
    assert alu("1100011", "000", "", 3, 4, 0)[1] is False
    assert alu("1100011", "001", "", 3, 4, 0)[1] is True
    assert alu("1100011", "100", "", 5, 4, 0)[1] is False
    assert alu("1100011", "110", "", 5, 4, 0)[1] is True


def test_alu_jumps_return_link_address():
    assert alu("1101111", "", "", 9, 9, 40)[0] == 40
    assert alu("1100111", "000", "", 9, 9, 44)[0] == 44


def test_fetch_halts_on_branch():
    word = assemble_line("beq x0, x0, 8")
    pipeline = Pipeline([word, word])
    pc = ProgramCounter()
    ifid = FetchDecodeLatch()
    pipeline.instruction_fetch(pc, ifid)
    assert pc.halt
    assert pc.pc == ifid.dpc
    assert ifid.ir == word


def test_fetch_advances_past_plain_instruction():
    word = assemble_line("addi x1, x0, 1")
    pipeline = Pipeline([word, word])
    pc = ProgramCounter()
    ifid = FetchDecodeLatch()
    pipeline.instruction_fetch(pc, ifid)
    assert not pc.halt
    assert pc.pc == ifid.npc
    assert not pc.complete


def test_decode_stalls_on_pending_register():
    first = assemble_line("addi x1, x0, 5")
    second = assemble_line("addi x2, x1, 3")
    pipeline = Pipeline([first, second])
    pc = ProgramCounter()
    idex = DecodeExecuteLatch()
    assert pipeline.instruction_decode(FetchDecodeLatch(ir=first), idex, pc) is False
    assert idex.op == "0010011"
    assert pipeline.instruction_decode(FetchDecodeLatch(ir=second), idex, pc) is True
    assert idex.op == ""
    assert pipeline.instruction_count == 1


def test_run_resolves_dependencies():
    pipeline, _ = _run(["addi x1, x0, 5", "addi x2, x1, 3", "add x3, x1, x2"])
    assert _reg(pipeline, "x1") == 5
    assert _reg(pipeline, "x3") == _reg(pipeline, "x1") + _reg(pipeline, "x2")
    assert pipeline.instruction_count == 3


def test_store_then_load_round_trip():
    pipeline, _ = _run(["addi x1, x0, 5", "sw x1, 8(x0)", "lw x2, 8(x0)"])
    assert _reg(pipeline, "x2") == 5
    assert pipeline.data_memory[8 // 4] == 5


def test_jal_skips_and_links():
    pipeline, _ = _run(["jal x1, 8", "addi x2, x0, 7", "addi x3, x0, 9"])
    assert _reg(pipeline, "x1") == 4
    assert _reg(pipeline, "x2") == 0
    assert _reg(pipeline, "x3") == 9
    assert pipeline.instruction_count == 2


def test_jalr_jumps_to_register_target():
    pipeline, _ = _run(["addi x5, x0, 12", "jalr x1, 0(x5)", "addi x2, x0, 7", "addi x3, x0, 9"])
    assert _reg(pipeline, "x2") == 0
    assert _reg(pipeline, "x3") == 9


def test_untaken_branch_falls_through():
    pipeline, _ = _run(["bne x0, x0, 8", "addi x1, x0, 6"])
    assert _reg(pipeline, "x1") == 6


def test_dependencies_cost_cycles():
    _, dependent = _run(["addi x1, x0, 1", "addi x2, x1, 1", "addi x3, x2, 1"])
    _, independent = _run(["addi x1, x0, 1", "addi x2, x0, 1", "addi x3, x0, 1"])
    assert dependent > independent


def test_empty_program_finishes_with_clean_state():
    pipeline, cycles = _run([])
    assert cycles > 0
    assert set(pipeline.registers.values()) == {0}
    assert pipeline.instruction_count == 0
    assert sorted(pipeline.data_memory) == list(range(21))


def test_report_layout():
    lines = ["addi x1, x0, 5"]
    pipeline, _ = _run(lines)
    text = pipeline.report().splitlines()
    assert text[0] == f"Number of Instructions -> {len(lines)}"
    assert text[1] == "-------------------- Register Values --------------------"
    assert f"{register_bits('x1')}     5" in text
    header = text.index("----------------------- Memory ---------------------------")
    assert header == 2 + 32 + 3
    assert len(text) - header - 1 == len(pipeline.data_memory)