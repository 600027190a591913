"""
CardLens Brute-Force Scanner Tests

1. Finds a bare card object anywhere in the bytes
2. Visits start offsets back to front
3. Shrinks candidates from the right past stray closing braces
4. Window size and retry gap bound the search
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cardlens.scanner import MAX_RETRY_GAP, WINDOW_SIZE, BruteForceScanner

from pngfixtures import ARIA_JSON, build_png, card_json, make_chunk, run_suite


def test_constants():
    assert WINDOW_SIZE == 512_000
    assert MAX_RETRY_GAP == 10_000
    scanner = BruteForceScanner()
    assert scanner.window_size == WINDOW_SIZE
    assert scanner.max_gap == MAX_RETRY_GAP


def test_start_offsets():
    assert BruteForceScanner.start_offsets(b"a{b{{c") == [1, 3, 4]
    assert BruteForceScanner.start_offsets(b"") == []


def test_finds_bare_object_in_binary():
    data = b"\x00\x01\xfe\xff" * 50 + ARIA_JSON + b"\x80\x81\x00" * 50
    card = BruteForceScanner().scan(data)
    assert card is not None
    assert card.name == "Aria"
    assert card.description == "A wandering bard"
    assert card.personality == "Curious"
    assert card.scenario == card.first_mes == card.mes_example == ""


def test_finds_object_after_iend():
    card = BruteForceScanner().scan(build_png(trailer=ARIA_JSON))
    assert card.name == "Aria"


def test_finds_object_in_unrelated_chunk():
    data = build_png(make_chunk(b"prVt", b"\x00\x00" + card_json().encode("utf-8") + b"\x00"))
    assert BruteForceScanner().scan(data).name == "Seraphina"


def test_later_object_wins():
    first = b'{"name":"First","description":"early"}'
    second = b'{"name":"Second","description":"late"}'
    assert BruteForceScanner().scan(first + b"\x00" * 10 + second).name == "Second"


def test_shrinks_past_trailing_braces():
    data = ARIA_JSON + b" junk } more junk }} \xff}"
    assert BruteForceScanner().scan(data).name == "Aria"


def test_nested_card_with_inner_braces():
    # The {{user}} / {{char}} macros in mes_example are tried first and rejected
    data = b"\x00\x00" + card_json().encode("utf-8") + b"\x00"
    assert BruteForceScanner().scan(data).name == "Seraphina"


def test_retry_gap_bounds_search():
    data = ARIA_JSON + b"A" * 100 + b"}"
    assert BruteForceScanner(max_gap=50).scan(data) is None
    assert BruteForceScanner().scan(data).name == "Aria"


def test_window_bounds_search():
    assert BruteForceScanner(window_size=20).scan(ARIA_JSON) is None
    assert BruteForceScanner(window_size=len(ARIA_JSON)).scan(ARIA_JSON).name == "Aria"


def test_no_candidates():
    assert BruteForceScanner().scan(b"") is None
    assert BruteForceScanner().scan(b"\x00" * 1000) is None
    assert BruteForceScanner().scan(b"{{{{ no closing") is None
    assert BruteForceScanner().scan(b'{"not": "a card"}') is None


def test_candidates_longest_first():
    scanner = BruteForceScanner()
    assert list(scanner.candidates("{a}b}c")) == ["{a}b}", "{a}"]
    assert list(scanner.candidates("{abc")) == []


def test_scan_is_repeatable():
    data = build_png(trailer=ARIA_JSON)
    scanner = BruteForceScanner()
    assert scanner.scan(data) == scanner.scan(data)


if __name__ == "__main__":
    run_suite("Brute-Force Scanner", dict(globals()))
