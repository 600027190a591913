"""
CardLens Core: extraction entry points

Runs the three stages in strict order over one immutable byte buffer:

    signature check -> chunk walk -> brute-force scan

Only the signature check can abort. Everything after it degrades to
"no card" (None) instead of raising.

Usage:
    card = extract_from_file("portrait.png")
    if card is None:
        print("no character data")
    else:
        print(card.name)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from cardlens.card import CharacterMetadata
from cardlens.chunks import ChunkWalker
from cardlens.scanner import BruteForceScanner

logger = logging.getLogger(__name__)

PNG_MAGIC = b"\x89PNG"


class InvalidFormatError(ValueError):
    """The input is not a PNG file."""
    def __init__(self, message: str = "This file is not a PNG image. Please provide the original PNG file."):
        super().__init__(message)


def check_signature(data: bytes) -> None:
    """Raise InvalidFormatError unless `data` opens with the PNG magic number."""
    if data[:4] != PNG_MAGIC:
        raise InvalidFormatError()


def extract_character(
    data: bytes,
    scan: bool = True,
    walker: Optional[ChunkWalker] = None,
    scanner: Optional[BruteForceScanner] = None,
) -> Optional[CharacterMetadata]:
    """Extract the character card embedded in PNG bytes.

    Args:
        data: complete file content
        scan: fall back to the brute-force scan when no chunk matches
        walker: chunk walker to use (default: ChunkWalker())
        scanner: fallback scanner to use (default: BruteForceScanner())

    Returns:
        CharacterMetadata, or None if the PNG carries no recognizable card

    Raises:
        InvalidFormatError: if `data` is not a PNG
    """
    check_signature(data)

    card = (walker or ChunkWalker()).find_card(data)
    if card is not None:
        return card

    if not scan:
        logger.debug("No card chunk found; brute-force scan disabled")
        return None

    logger.info("No card chunk found; scanning raw bytes")
    return (scanner or BruteForceScanner()).scan(data)


def extract_from_file(path: Union[str, Path], scan: bool = True) -> Optional[CharacterMetadata]:
    """Read a file once and extract its card. See extract_character()."""
    data = Path(path).read_bytes()
    logger.debug("Loaded %s (%d bytes)", path, len(data))
    return extract_character(data, scan=scan)
