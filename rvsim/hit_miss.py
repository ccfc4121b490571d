"""A quiet set-associative cache model for measuring hit and miss counts."""

from __future__ import annotations

import random
from typing import Iterable, Optional

from rvsim.direct_mapped import HIT, INVALID, MISS, PENDING, VALID, _lookup


class Cache:
    """Tags and states of a set-associative cache with random replacement."""

    def __init__(self, word_size: int, block_size: int, cache_size: int, ways: int,
                 rng: Optional[random.Random] = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.word_size = word_size
        self.block_size = block_size
        self.cache_size = cache_size
        self.line_count = cache_size // block_size
        self.words_per_block = block_size // word_size
        self.ways = ways
        self.set_count = self.line_count // ways
        self.tags = [[0] * ways for _ in range(self.set_count)]
        self.states = [[INVALID] * ways for _ in range(self.set_count)]

    def request(self, index: int, tag: int, read: bool) -> str:
        """Look up a set; return HIT, WAIT, or MISS after reserving a random way."""
        found = _lookup(self.tags[index], self.states[index], tag)
        if found is not None:
            return found
        victim = self.rng.randrange(self.ways)
        self.states[index][victim] = PENDING
        self.tags[index][victim] = tag
        return MISS

    def update(self, tag: int, block_address: int) -> None:
        """Mark every way awaiting this tag in the block's set as valid."""
        index = block_address % self.set_count
        for way, (line_tag, state) in enumerate(zip(self.tags[index], self.states[index])):
            if line_tag == tag and state == PENDING:
                self.states[index][way] = VALID


class Processor:
    """Feeds ``(address, read)`` requests to the cache and counts hits and misses."""

    def __init__(self, word_size: int, block_size: int, cache_size: int, ways: int,
                 requests: Iterable[tuple[int, bool]],
                 rng: Optional[random.Random] = None) -> None:
        self.cache = Cache(word_size, block_size, cache_size, ways, rng)
        self.block_size = block_size
        self.set_count = self.cache.set_count
        self.requests = [(address, bool(read)) for address, read in requests]
        self.position = 0
        self.hits = 0
        self.misses = 0
        print("Start Execution\n")

    def step(self) -> bool:
        """Serve the next request; return False once all requests are done."""
        if self.position == len(self.requests):
            return False
        address, read = self.requests[self.position]
        self.position += 1

        block_address = address // self.block_size
        tag = block_address // self.set_count

        outcome = self.cache.request(block_address % self.set_count, tag, read)
        if outcome == HIT:
            self.hits += 1
        elif outcome == MISS:
            self.misses += 1
            self.cache.update(tag, block_address)
        return True

    def run(self) -> tuple[int, int]:
        """Serve every remaining request and return ``(hits, misses)``."""
        while self.step():
            pass
        return self.hits, self.misses