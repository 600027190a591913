"""
CardLens End-to-End Extraction Tests

1. Signature check is the only fatal condition
2. Each text chunk encoding yields the same card
3. Fallback to the brute-force scan, and disabling it
4. Idempotence and file loading
"""

import json
import os
import sys
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cardlens import (
    CharacterMetadata,
    InvalidFormatError,
    extract_character,
    extract_from_file,
)

from pngfixtures import (
    ARIA_JSON,
    V2_CARD,
    build_png,
    card_base64,
    card_json,
    itxt_chunk,
    run_suite,
    text_chunk,
    ztxt_chunk,
)


def expect_invalid(data: bytes) -> InvalidFormatError:
    try:
        extract_character(data)
    except InvalidFormatError as e:
        return e
    raise AssertionError("expected InvalidFormatError")


# --- Signature ---

def test_rejects_non_png_even_with_card():
    error = expect_invalid(b"GIF89a" + card_json().encode("utf-8"))
    assert "PNG" in str(error)


def test_rejects_short_and_empty():
    expect_invalid(b"")
    expect_invalid(b"\x89PN")


def test_rejects_one_wrong_magic_byte():
    data = bytearray(build_png(text_chunk("chara", card_json())))
    data[3] = ord("X")
    expect_invalid(bytes(data))


def test_only_first_four_bytes_are_checked():
    data = bytearray(build_png(text_chunk("chara", card_json())))
    data[4:8] = b"\x00\x00\x00\x00"
    assert extract_character(bytes(data)).name == "Seraphina"


# --- Chunk encodings ---

def test_text_v2_matches_data():
    card = extract_character(build_png(text_chunk("chara", card_json())))
    data = V2_CARD["data"]
    assert card.name == data["name"]
    assert card.description == data["description"]
    assert card.personality == data["personality"]
    assert card.scenario == data["scenario"]
    assert card.first_mes == data["first_mes"]
    assert card.mes_example == data["mes_example"]
    assert card.creator_notes == data["creator_notes"]
    assert card.system_prompt == data["system_prompt"]
    assert list(card.tags) == data["tags"]


def test_text_base64_card():
    assert extract_character(build_png(text_chunk("chara", card_base64()))).name == "Seraphina"


def test_ztxt_equals_text():
    plain = extract_character(build_png(text_chunk("chara", card_json())))
    compressed = extract_character(build_png(ztxt_chunk("chara", card_json())))
    assert compressed == plain


def test_itxt_both_flags_equal_text():
    plain = extract_character(build_png(text_chunk("chara", card_json())))
    assert extract_character(build_png(itxt_chunk("chara", card_json()))) == plain
    assert extract_character(build_png(itxt_chunk("chara", card_json(), compressed=True))) == plain
    assert extract_character(build_png(
        itxt_chunk("character", card_json(), language=b"en", translated=b"Character"),
    )) == plain


def test_chunk_card_preferred_over_scan():
    data = build_png(text_chunk("chara", card_base64()), trailer=ARIA_JSON)
    assert extract_character(data).name == "Seraphina"


# --- Fallback ---

def test_falls_back_to_scan():
    card = extract_character(build_png(trailer=b"\x00garbage\x00" + ARIA_JSON))
    assert card == CharacterMetadata(name="Aria", description="A wandering bard", personality="Curious")


def test_card_in_non_carrier_chunk_found_by_scan():
    assert extract_character(build_png(text_chunk("Comment", card_json()))).name == "Seraphina"


def test_scan_disabled():
    assert extract_character(build_png(trailer=ARIA_JSON), scan=False) is None


def test_no_card_anywhere():
    assert extract_character(build_png(text_chunk("Software", "paint"))) is None


def test_corrupt_carrier_then_scan():
    bad = build_png(ztxt_chunk("chara", "x")[:-6] + b"\x00\x00\x00\x00\x00\x00", trailer=ARIA_JSON)
    assert extract_character(bad).name == "Aria"


# --- Idempotence / files ---

def test_idempotent():
    data = build_png(ztxt_chunk("chara", card_json()))
    assert extract_character(data) == extract_character(data)
    none_data = build_png()
    assert extract_character(none_data) is None
    assert extract_character(none_data) is None


def test_extract_from_file():
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "card.png")
        with open(path, "wb") as f:
            f.write(build_png(text_chunk("chara", card_base64())))
        card = extract_from_file(path)
    assert card.name == "Seraphina"
    assert json.loads(json.dumps(card.to_dict()))["tags"] == V2_CARD["data"]["tags"]


def test_extract_from_missing_file():
    try:
        extract_from_file("/nonexistent/dir/card.png")
    except FileNotFoundError:
        pass
    else:
        raise AssertionError("expected FileNotFoundError")


if __name__ == "__main__":
    run_suite("Extraction", dict(globals()))
