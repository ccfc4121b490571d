import pytest

from rvsim.text import AssemblyError, Tokenizer, read_program, write_binary


def _tokens(line):
    tokenizer = Tokenizer(line)
    found = []
    while True:
        tokenizer.skip_separators()
        token = tokenizer.next_token()
        if not token:
            break
        found.append(token)
    return found


def test_tokens_split_on_spaces_and_commas():
    assert _tokens("ADD x1, x2,x3") == ["ADD", "x1", "x2", "x3"]


def test_tokens_split_on_parentheses():
    assert _tokens("LW x5, -4(sp)") == ["LW", "x5", "-4", "sp"]


def test_next_token_does_not_skip_leading_separators():
    tokenizer = Tokenizer(", x1")
    assert tokenizer.next_token() == ""
    tokenizer.skip_separators()
    assert tokenizer.next_token() == "x1"


def test_expect_end_accepts_trailing_spaces():
    tokenizer = Tokenizer("x1   ")
    assert tokenizer.next_token() == "x1"
    tokenizer.expect_end()
    assert tokenizer.pos == len("x1   ")


def test_expect_end_accepts_one_closing_parenthesis():
    tokenizer = Tokenizer("sp ) ")
    assert tokenizer.next_token() == "sp"
    tokenizer.expect_end()
    assert tokenizer.pos == len("sp ) ")


def test_expect_end_rejects_extra_code():
    tokenizer = Tokenizer("x1 x2")
    tokenizer.next_token()
    with pytest.raises(AssemblyError, match="Extra Code"):
        tokenizer.expect_end()


def test_expect_end_rejects_second_parenthesis():
    tokenizer = Tokenizer("sp))")
    tokenizer.next_token()
    with pytest.raises(AssemblyError):
        tokenizer.expect_end()


def test_read_program_skips_blank_lines(tmp_path):
    source = tmp_path / "program.s"
    source.write_text("ADDI x1, x0, 5\n\n   \nADD x2, x1, x1\n")
    assert read_program(source) == ["ADDI x1, x0, 5", "ADD x2, x1, x1"]


def test_write_then_read_round_trip(tmp_path):
    target = tmp_path / "binary.txt"
    lines = ["0" * 32, "1" * 32]
    write_binary(target, lines)
    assert target.read_text() == "".join(f"{line}\n" for line in lines)
    assert read_program(target) == lines