"""
CardLens - tavern character card extraction from PNG metadata

Reads the character card a PNG carries in its text chunks, in either the
flat (V1) or data-nested (V2) shape, plain or base64-wrapped.

Stage 1: Chunk Walker — tEXt / zTXt / iTXt chunks keyworded chara or character
Stage 2: Flexible Schema Parser — JSON or base64 JSON, normalized to one record
Stage 3: Brute-Force Scanner — bounded search of the raw bytes for a card object
"""

__version__ = "0.1.0"

from cardlens.card import (
    CharacterMetadata,
    FlatCard,
    NestedCard,
    classify_card,
    normalize_card,
    parse_flexible,
)
from cardlens.chunks import Chunk, TextChunk, ChunkCursor, ChunkWalker, list_text_chunks
from cardlens.payload import DecompressError, decode_text_payload, inflate
from cardlens.scanner import BruteForceScanner
from cardlens.core import InvalidFormatError, check_signature, extract_character, extract_from_file
from cardlens.render import render_markdown, sanitize_filename

__all__ = [
    "CharacterMetadata",
    "FlatCard",
    "NestedCard",
    "classify_card",
    "normalize_card",
    "parse_flexible",
    "Chunk",
    "TextChunk",
    "ChunkCursor",
    "ChunkWalker",
    "list_text_chunks",
    "DecompressError",
    "decode_text_payload",
    "inflate",
    "BruteForceScanner",
    "InvalidFormatError",
    "check_signature",
    "extract_character",
    "extract_from_file",
    "render_markdown",
    "sanitize_filename",
]
