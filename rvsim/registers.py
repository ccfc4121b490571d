"""Register names and their five-bit encodings."""

from __future__ import annotations

from rvsim.text import AssemblyError

_ABI_NAMES = (
    ("zero",), ("ra",), ("sp",), ("gp",), ("tp",),
    ("t0",), ("t1",), ("t2",), ("s0", "fp"), ("s1",),
    ("a0",), ("a1",), ("a2",), ("a3",), ("a4",), ("a5",), ("a6",), ("a7",),
    ("s2",), ("s3",), ("s4",), ("s5",), ("s6",), ("s7",),
    ("s8",), ("s9",), ("s10",), ("s11",),
    ("t3",), ("t4",), ("t5",), ("t6",),
)


def _build_table() -> dict[str, str]:
    table: dict[str, str] = {}
    for number, aliases in enumerate(_ABI_NAMES):
        bits = format(number, "05b")
        table[f"x{number}"] = bits
        for alias in aliases:
            table[alias] = bits
    return table


_REGISTERS = _build_table()


def is_register(name: str) -> bool:
    """Tell whether the name denotes a register."""
    return name in _REGISTERS


def register_bits(name: str) -> str:
    """Return the five-bit encoding of a register name."""
    try:
        return _REGISTERS[name]
    except KeyError:
        raise AssemblyError("Wrong Register Used") from None