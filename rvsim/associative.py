"""A fully associative cache in front of a randomly filled block memory."""

from __future__ import annotations

import math
import random
import sys
from typing import Iterable, Optional, TextIO

from rvsim.direct_mapped import (
    HIT,
    INVALID,
    MISS,
    PENDING,
    VALID,
    _drain,
    _lookup,
    _parser,
    _random_blocks,
    _report,
    _rows,
    _serve,
    _words,
)


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

    def request(self, tag: int, block_address: int) -> tuple[int, list[int]]:
        """Return the tag and a copy of the addressed block."""
        return tag, list(self.blocks[block_address])

    def render(self) -> str:
        """Return the memory contents, one block per line."""
        return _rows(_words(block) for block in self.blocks)


class Cache:
    """A fully associative cache: any block may occupy any line."""

    def __init__(self, word_size: int, block_size: int, cache_size: int) -> None:
        self.word_size = word_size
        self.block_size = block_size
        self.cache_size = cache_size
        self.line_count = cache_size // block_size
        self.words_per_block = block_size // word_size
        self.blocks = [[0] * self.words_per_block for _ in range(self.line_count)]
        self.tags = [0] * self.line_count
        self.states = [INVALID] * self.line_count

    def request(self, tag: int) -> str:
        """Search all lines; return HIT, WAIT, or MISS after reserving a line.

        On a miss the first invalid line is taken, or line 0 when none is free.
        """
        found = _lookup(self.tags, self.states, tag)
        if found is not None:
            return found
        target = next(
            (index for index, state in enumerate(self.states) if state == INVALID), 0
        )
        self.states[target] = PENDING
        self.tags[target] = tag
        return MISS

    def update(self, tag: int, block: Iterable[int]) -> None:
        """Fill every line awaiting the block with this tag."""
        data = list(block)
        for index, (line_tag, state) in enumerate(zip(self.tags, self.states)):
            if line_tag == tag and state == PENDING:
                self.states[index] = VALID
                self.blocks[index] = list(data)

    def render(self) -> str:
        """Return the states, the tags and the data of all lines on one row."""
        data = "".join(_words(block) + "  " for block in self.blocks)
        return f"{_words(self.states)}   {_words(self.tags)}   {data}\n\n"


class Processor:
    """Issues a list of byte addresses to the cache and counts hits and misses."""

    def __init__(self, word_size: int, block_size: int, cache_size: int, memory_size: int,
                 requests: Iterable[int], rng: Optional[random.Random] = None,
                 out: Optional[TextIO] = None) -> None:
        self.out = out if out is not None else sys.stdout
        self.memory = Memory(word_size, block_size, memory_size, rng)
        self.cache = Cache(word_size, block_size, cache_size)
        self.line_count = cache_size // block_size
        self.memory_size = memory_size
        self.block_size = block_size
        self.requests = list(requests)
        self.position = 0
        self.hits = 0
        self.misses = 0
        self.out.write(self.cache.render())
        self.out.write(self.memory.render())
        self.out.write("Start Execution\n\n")

    def tag_of(self, address: int) -> int:
        """Return the address bits above the offset and line-number fields."""
        total_bits = int(math.log2(self.memory_size))
        pass_bits = int(math.log2(self.block_size) + math.log2(self.line_count))
        tag_bits = total_bits - pass_bits
        if pass_bits > 0:
            address >>= pass_bits
        if tag_bits <= 0:
            return 0
        return address & ((1 << tag_bits) - 1)

    def step(self) -> bool:
        """Serve the next request; return False once all requests are done."""
        if self.position == len(self.requests):
            return False
        address = self.requests[self.position]
        self.position += 1
        self.out.write(f"REQUEST = {address} {'-' * 58}\n\n")

        block_address = address // self.block_size
        tag = block_address

        outcome = self.cache.request(tag)
        self.hits += outcome == HIT
        self.misses += outcome == MISS
        _serve(self.out, self.cache.render, outcome,
               lambda: self.cache.update(*self.memory.request(tag, block_address)),
               "-" * 71)
        return True

    def run(self) -> tuple[int, int]:
        """Serve every remaining request and return ``(hits, misses)``."""
        _drain(self.step, self.out)
        return self.hits, self.misses


def main(argv: Optional[list[str]] = None) -> int:
    """Simulate the cache on a list of addresses and print hit and miss counts."""
    args = _parser("rvsim-associative", "Fully associative cache simulation.").parse_args(argv)
    processor = Processor(args.word_size, args.block_size, args.cache_size, args.memory_size,
                          args.requests, random.Random(args.seed), sys.stdout)
    return _report(*processor.run())


if __name__ == "__main__":
    raise SystemExit(main())