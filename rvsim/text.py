"""Tokenizing assembly lines and reading and writing program files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union

_SEPARATORS = frozenset(" ,()")

PathLike = Union[str, Path]


class AssemblyError(ValueError):
    """Raised when a line of assembly cannot be encoded."""


class Tokenizer:
    """Walks over one line of assembly, splitting it on spaces, commas and parentheses."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def skip_separators(self) -> None:
        """Advance past any run of spaces, commas and parentheses."""
        while self.pos < len(self.text) and self.text[self.pos] in _SEPARATORS:
            self.pos += 1

    def next_token(self) -> str:
        """Return the characters up to the next separator and advance past them."""
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in _SEPARATORS:
            self.pos += 1
        return self.text[start:self.pos]

    def _skip_spaces(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] == " ":
            self.pos += 1

    def expect_end(self) -> None:
        """Allow trailing spaces and a single closing parenthesis; reject anything else."""
        self._skip_spaces()
        if self.pos < len(self.text) and self.text[self.pos] == ")":
            self.pos += 1
            self._skip_spaces()
        if self.pos != len(self.text):
            raise AssemblyError("Error Extra Code")


def read_program(path: PathLike) -> list[str]:
    """Read an assembly file, keeping every line that holds something besides spaces."""
    lines = Path(path).read_text().splitlines()
    return [line for line in lines if line.strip(" ")]


def write_binary(path: PathLike, lines: Iterable[str]) -> None:
    """Write encoded instructions to a file, one per line."""
    with open(path, "w") as handle:
        for line in lines:
            handle.write(f"{line}\n")