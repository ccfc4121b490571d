"""A direct-mapped cache in front of a randomly filled block memory."""

from __future__ import annotations

import argparse
import random
import sys
from typing import Callable, Iterable, Optional, Sequence, TextIO

INVALID = 0
VALID = 1
PENDING = 2

HIT = "HIT"
MISS = "MISS"
WAIT = "WAIT"

_DEFAULT_REQUESTS = [36, 37, 38, 128, 192, 193]


def _words(block: Iterable[int]) -> str:
    return "".join(f"{word} " for word in block)


def _rows(rows: Iterable[str]) -> str:
    return "".join(f"{row}\n" for row in rows) + "\n"


def _random_blocks(rng: Optional[random.Random], count: int, width: int) -> list[list[int]]:
    rng = rng if rng is not None else random.Random()
    return [[rng.randrange(10) for _ in range(width)] for _ in range(count)]


def _lookup(tags: Sequence[int], states: Sequence[int], tag: int) -> Optional[str]:
    """Return HIT or WAIT for the first line holding ``tag``, else None."""
    for line_tag, state in zip(tags, states):
        if line_tag == tag:
            if state == VALID:
                return HIT
            if state == PENDING:
                return WAIT
    return None


def _serve(out: TextIO, render: Callable[[], str], outcome: str,
           fill: Callable[[], None], rule: str) -> None:
    """Log one request's outcome, filling the cache from memory on a miss."""
    if outcome == HIT:
        out.write("HIT\n")
        out.write(render())
    elif outcome == MISS:
        out.write("MISS\n")
        out.write(render())
        fill()
        out.write("FILL\n")
        out.write(render())
    else:
        out.write("WAIT\n")
    out.write(rule + "\n")


def _drain(step: Callable[[], bool], out: TextIO) -> None:
    while step():
        out.write("\n \n")


def _parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("requests", nargs="*", type=int, default=list(_DEFAULT_REQUESTS))
    parser.add_argument("--word-size", type=int, default=4)
    parser.add_argument("--block-size", type=int, default=16)
    parser.add_argument("--cache-size", type=int, default=64)
    parser.add_argument("--memory-size", type=int, default=256)
    parser.add_argument("--seed", type=int, default=None)
    return parser


def _report(hits: int, misses: int) -> int:
    print(f"{hits} {misses}")
    print("Execution Completed")
    return 0


class Memory:
    """Main memory holding ``size // block_size`` blocks of random digits."""

    def __init__(self, word_size: int, block_size: int, size: int,
                 rng: Optional[random.Random] = None) -> None:
        self.word_size = word_size
        self.block_size = block_size
        self.size = size
        self.block_count = size // block_size
        self.words_per_block = block_size // word_size
        self.blocks = _random_blocks(rng, self.block_count, self.words_per_block)

    def request(self, tag: int, block_address: int) -> tuple[int, int, list[int]]:
        """Return the tag, the block address and a copy of the addressed block."""
        return tag, block_address, list(self.blocks[block_address])

    def render(self) -> str:
        """Return the memory contents, one block per line."""
        return _rows(_words(block) for block in self.blocks)


class Cache:
    """A direct-mapped cache: each block address maps to exactly one line."""

    def __init__(self, word_size: int, block_size: int, cache_size: int) -> None:
        self.word_size = word_size
        self.block_size = block_size
        self.cache_size = cache_size
        self.line_count = cache_size // block_size
        self.words_per_block = block_size // word_size
        self.blocks = [[0] * self.words_per_block for _ in range(self.line_count)]
        self.tags = [0] * self.line_count
        self.states = [INVALID] * self.line_count

    def request(self, index: int, tag: int) -> str:
        """Look up a line; return HIT, WAIT, or MISS after reserving the line."""
        found = _lookup([self.tags[index]], [self.states[index]], tag)
        if found is not None:
            return found
        self.states[index] = PENDING
        self.tags[index] = tag
        return MISS

    def update(self, tag: int, block_address: int, block: Iterable[int]) -> None:
        """Fill the line awaiting this block, if its tag still matches."""
        index = block_address % self.line_count
        if self.tags[index] == tag and self.states[index] == PENDING:
            self.states[index] = VALID
            self.blocks[index] = list(block)

    def render(self) -> str:
        """Return state, tag and data of every line, one line per row."""
        return _rows(
            f"{state}  {tag}  {_words(block)}"
            for state, tag, block in zip(self.states, self.tags, self.blocks)
        )


class Processor:
    """Issues a list of byte addresses to the cache and counts hits and misses."""

    def __init__(self, word_size: int, block_size: int, cache_size: int, memory_size: int,
                 requests: Iterable[int], rng: Optional[random.Random] = None,
                 out: Optional[TextIO] = None) -> None:
        self.out = out if out is not None else sys.stdout
        self.memory = Memory(word_size, block_size, memory_size, rng)
        self.cache = Cache(word_size, block_size, cache_size)
        self.line_count = cache_size // block_size
        self.block_size = block_size
        self.requests = list(requests)
        self.position = 0
        self.hits = 0
        self.misses = 0
        self.out.write(self.cache.render())
        self.out.write(self.memory.render())
        self.out.write("Start Execution\n\n")

    def step(self) -> bool:
        """Serve the next request; return False once all requests are done."""
        if self.position == len(self.requests):
            return False
        address = self.requests[self.position]
        self.position += 1
        self.out.write(f"REQUEST = {address} {'-' * 58}\n\n")

        block_address = address // self.block_size
        index = block_address % self.line_count
        tag = block_address // self.line_count

        outcome = self.cache.request(index, tag)
        self.hits += outcome == HIT
        self.misses += outcome == MISS
        _serve(self.out, self.cache.render, outcome,
               lambda: self.cache.update(*self.memory.request(tag, block_address)),
               "-" * 72)
        return True

    def run(self) -> tuple[int, int]:
        """Serve every remaining request and return ``(hits, misses)``."""
        _drain(self.step, self.out)
        return self.hits, self.misses


def main(argv: Optional[list[str]] = None) -> int:
    """Simulate the cache on a list of addresses and print hit and miss counts."""
    args = _parser("rvsim-direct", "Direct-mapped cache simulation.").parse_args(argv)
    processor = Processor(args.word_size, args.block_size, args.cache_size, args.memory_size,
                          args.requests, random.Random(args.seed), sys.stdout)
    return _report(*processor.run())


if __name__ == "__main__":
    raise SystemExit(main())