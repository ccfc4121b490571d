import io
import random

import pytest

from rvsim.associative import HIT, MISS, Cache, Memory, Processor, main


def _processor(requests):
    out = io.StringIO()
    proc = Processor(4, 16, 64, 256, requests, random.Random(5), out)
    return proc, out


def _is_wait(result):
    return result not in (HIT, MISS)


def test_memory_shape_and_digits():
    mem = Memory(4, 16, 256, random.Random(1))
    assert len(mem.blocks) == 256 // 16
    assert all(len(block) == 16 // 4 for block in mem.blocks)
    assert all(0 <= word <= 9 for block in mem.blocks for word in block)


def test_memory_request_returns_tag_and_copy():
    mem = Memory(4, 16, 256, random.Random(2))
    tag, block = mem.request(6, 6)
    assert tag == 6
    assert block == mem.blocks[6]
    block.clear()
    assert len(mem.blocks[6]) == 16 // 4


def test_cache_fills_first_free_line():
    cache = Cache(4, 16, 64)
    assert cache.request(10) == MISS
    assert cache.request(11) == MISS
    assert cache.tags[:2] == [10, 11]
    assert _is_wait(cache.request(10))
    assert cache.tags[:2] == [10, 11]


def test_cache_update_then_hit():
    cache = Cache(4, 16, 64)
    cache.request(12)
    cache.update(12, [1, 2, 3, 4])
    assert cache.request(12) == HIT
    assert cache.blocks[0] == [1, 2, 3, 4]


def test_full_cache_replaces_line_zero():
    cache = Cache(4, 16, 64)
    for tag in range(1, cache.line_count + 1):
        cache.request(tag)
        cache.update(tag, [tag] * 4)
    assert cache.request(50) == MISS
    assert cache.tags[0] == 50
    assert cache.request(2) == HIT
    assert cache.request(1) == MISS


def test_update_ignores_unknown_tag():
    cache = Cache(4, 16, 64)
    cache.request(3)
    cache.update(4, [7, 7, 7, 7])
    assert cache.blocks[0] == [0, 0, 0, 0]
    assert _is_wait(cache.request(3))


def test_render_lists_states_tags_and_data():
    cache = Cache(4, 16, 64)
    cache.request(9)
    cache.update(9, [4, 3, 2, 1])
    text = cache.render()
    assert text.endswith("\n\n")
    assert text.startswith("1 0 0 0 ")
    assert "4 3 2 1 " in text


def test_tag_of_groups_addresses():
    proc, _ = _processor([])
    assert proc.tag_of(0) == 0
    assert proc.tag_of(64) == proc.tag_of(127)
    assert proc.tag_of(64) != proc.tag_of(128)
    assert proc.tag_of(255) == proc.tag_of(192)


def test_processor_worked_example():
    proc, out = _processor([36, 37, 38, 128, 192, 193])
    hits, misses = proc.run()
    assert (hits, misses) == (3, 3)
    assert out.getvalue().count("FILL") == misses


def test_filled_line_holds_memory_block():
    proc, _ = _processor([130])
    proc.run()
    assert proc.cache.tags[0] == 130 // 16
    assert proc.cache.blocks[0] == proc.memory.blocks[130 // 16]


def test_hits_plus_misses_equals_requests():
    requests = [0, 16, 32, 48, 64, 0, 16, 255, 200]
    proc, _ = _processor(requests)
    hits, misses = proc.run()
    assert hits + misses == len(requests)


@pytest.mark.parametrize("address", [0, 100, 240])
def test_repeat_access_hits(address):
    proc, _ = _processor([address, address])
    assert proc.run() == (1, 1)


def test_step_returns_false_when_done():
    proc, _ = _processor([])
    assert proc.step() is False
    assert (proc.hits, proc.misses) == (0, 0)


def test_main_prints_summary(capsys):
    assert main(["--seed", "4", "0", "0"]) == 0
    output = capsys.readouterr().out
    assert output.endswith("1 1\nExecution Completed\n")