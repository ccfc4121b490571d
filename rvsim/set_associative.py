"""A set-associative cache with random replacement in front of a block memory."""

from __future__ import annotations

import argparse
import random
import sys
from typing import Iterable, Optional, TextIO

_INVALID = 0
_VALID = 1
_PENDING = 2

HIT = "HIT"
MISS = "MISS"
WAIT = "WAIT"

_WRITTEN_BLOCK = (1, 1, 1, 1)
_RULE = "-" * 72
_DEFAULT_REQUESTS = (
    (36, True), (37, True), (38, False), (128, True),
    (130, False), (192, False), (193, True),
)


class Memory:
    """Main memory holding ``size // block_size`` blocks of random digits."""

    def __init__(self, word_size: int, block_size: int, size: int,
                 rng: Optional[random.Random] = None) -> None:
        rng = rng if rng is not None else random.Random()
        self.word_size = word_size
        self.block_size = block_size
        self.size = size
        self.block_count = size // block_size
        self.words_per_block = block_size // word_size
        self.blocks = [
            [rng.randrange(10) for _ in range(self.words_per_block)]
            for _ in range(self.block_count)
        ]

    def request(self, tag: int, block_address: int) -> tuple[int, int, list[int]]:
        """Return the tag, the block address and a copy of the addressed block."""
        return tag, block_address, list(self.blocks[block_address])

    def update(self, block_address: int) -> None:
        """Overwrite the addressed block with the marker written by stores."""
        self.blocks[block_address] = list(_WRITTEN_BLOCK)

    def render(self) -> str:
        """Return the memory contents, one block per line."""
        rows = ["".join(f"{word} " for word in block) + "\n" for block in self.blocks]
        return "".join(rows) + "\n"


class Cache:
    """A set-associative cache that replaces a random way on a miss."""

    def __init__(self, word_size: int, block_size: int, cache_size: int, ways: int,
                 rng: Optional[random.Random] = None, out: Optional[TextIO] = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.out = out if out is not None else sys.stdout
        self.word_size = word_size
        self.block_size = block_size
        self.cache_size = cache_size
        self.line_count = cache_size // block_size
        self.words_per_block = block_size // word_size
        self.ways = ways
        self.set_count = self.line_count // ways
        self.blocks = [
            [[0] * self.words_per_block for _ in range(ways)]
            for _ in range(self.set_count)
        ]
        self.tags = [[0] * ways for _ in range(self.set_count)]
        self.states = [[_INVALID] * ways for _ in range(self.set_count)]

    def request(self, index: int, tag: int, read: bool) -> str:
        """Look up a set; return HIT, WAIT, or MISS after reserving a random way.

        A write that hits overwrites the cached block with the store marker.
        """
        tags = self.tags[index]
        states = self.states[index]
        for way, (line_tag, state) in enumerate(zip(tags, states)):
            if line_tag != tag:
                continue
            if state == _VALID:
                self.out.write("HIT\n")
                if not read:
                    self.out.write("UPDATE IN CACHE\n")
                    self.blocks[index][way] = list(_WRITTEN_BLOCK)
                    self.out.write(self.render())
                return HIT
            if state == _PENDING:
                self.out.write("WAIT\n")
                return WAIT
        self.out.write("MISS\n")
        victim = self.rng.randrange(self.ways)
        self.out.write(f"Random Index -> {victim}\n")
        states[victim] = _PENDING
        tags[victim] = tag
        return MISS

    def update(self, tag: int, block_address: int, block: Iterable[int]) -> None:
        """Fill every way of the set that awaits the block with this tag."""
        index = block_address % self.set_count
        data = list(block)
        for way, (line_tag, state) in enumerate(zip(self.tags[index], self.states[index])):
            if line_tag == tag and state == _PENDING:
                self.states[index][way] = _VALID
                self.blocks[index][way] = list(data)

    def render(self) -> str:
        """Return states, tags and data of each set, one set per row."""
        rows = []
        for states, tags, blocks in zip(self.states, self.tags, self.blocks):
            state_text = "".join(f"{state}  " for state in states)
            tag_text = "".join(f"{tag}  " for tag in tags)
            data_text = "".join(
                "".join(f"{word} " for word in block) + " " for block in blocks
            )
            rows.append(f"{state_text}  {tag_text}  {data_text}\n")
        return "".join(rows) + "\n"


class Processor:
    """Issues ``(address, read)`` requests to the cache and counts hits and misses."""

    def __init__(self, word_size: int, block_size: int, cache_size: int, memory_size: int,
                 ways: int, requests: Iterable[tuple[int, bool]],
                 rng: Optional[random.Random] = None, out: Optional[TextIO] = None) -> None:
        rng = rng if rng is not None else random.Random()
        self.out = out if out is not None else sys.stdout
        self.memory = Memory(word_size, block_size, memory_size, rng)
        self.cache = Cache(word_size, block_size, cache_size, ways, rng, self.out)
        self.line_count = cache_size // block_size
        self.block_size = block_size
        self.ways = ways
        self.set_count = self.line_count // ways
        self.requests = [(address, bool(read)) for address, read in requests]
        self.position = 0
        self.hits = 0
        self.misses = 0
        self.out.write(self.cache.render())
        self.out.write(self.memory.render())
        self.out.write("Start Execution\n\n")

    def _write_through(self, block_address: int) -> None:
        self.out.write("UPDATE IN MEMORY\n")
        self.memory.update(block_address)
        self.out.write(self.memory.render())

    def step(self) -> bool:
        """Serve the next request; return False once all requests are done."""
        if self.position == len(self.requests):
            return False
        address, read = self.requests[self.position]
        self.position += 1
        mode = "read" if read else "write"
        self.out.write(f"REQUEST = {address} {mode} {'-' * 54}\n\n")

        block_address = address // self.block_size
        index = block_address % self.set_count
        tag = block_address // self.set_count

        outcome = self.cache.request(index, tag, read)
        if outcome == HIT:
            self.hits += 1
            if read:
                self.out.write(self.cache.render())
            else:
                self._write_through(block_address)
        elif outcome == MISS:
            self.misses += 1
            self.out.write(self.cache.render())
            if not read:
                self._write_through(block_address)
            self.cache.update(*self.memory.request(tag, block_address))
            self.out.write("FILL IN CACHE FROM MEMORY\n")
            self.out.write(self.cache.render())
        else:
            self.out.write("WAIT\n")
        self.out.write(_RULE + "\n")
        return True

    def run(self) -> tuple[int, int]:
        """Serve every remaining request and return ``(hits, misses)``."""
        while self.step():
            self.out.write("\n \n")
        return self.hits, self.misses


def _request_spec(text: str) -> tuple[int, bool]:
    address, _, mode = text.partition(":")
    mode = mode.lower() or "r"
    if mode not in ("r", "w"):
        raise argparse.ArgumentTypeError(f"mode must be r or w, not {mode!r}")
    try:
        return int(address), mode == "r"
    except ValueError:
        raise argparse.ArgumentTypeError(f"bad address {address!r}") from None


def main(argv: Optional[list[str]] = None) -> int:
    """Simulate the cache on ``ADDRESS[:r|w]`` requests and print hit and miss counts."""
    parser = argparse.ArgumentParser(prog="rvsim-set-associative",
                                     description="Set-associative cache simulation.")
    parser.add_argument("requests", nargs="*", type=_request_spec,
                        default=list(_DEFAULT_REQUESTS),
                        help="requests as ADDRESS[:r|w]; reads by default")
    parser.add_argument("--word-size", type=int, default=4)
    parser.add_argument("--block-size", type=int, default=16)
    parser.add_argument("--cache-size", type=int, default=64)
    parser.add_argument("--memory-size", type=int, default=256)
    parser.add_argument("--ways", type=int, default=2)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args(argv)

    processor = Processor(args.word_size, args.block_size, args.cache_size, args.memory_size,
                          args.ways, args.requests, random.Random(args.seed), sys.stdout)
    hits, misses = processor.run()
    print(f"{hits} {misses}")
    print("Execution Completed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())