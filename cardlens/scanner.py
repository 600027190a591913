"""
CardLens Brute-Force Scanner

Last resort when no text chunk yields a card: look for a JSON object
anywhere in the raw bytes, ignoring chunk structure entirely.

Two bounded loops:
- outer: every '{' byte offset, from the end of the file backwards
  (card data is conventionally appended late in the file)
- inner: candidate closing braces in a window after that offset, from
  the last one backwards, until the candidate falls more than
  `max_gap` characters short of the window end

A card whose closing brace sits outside that retry gap for every start
offset is missed. The bound keeps binary noise, which is full of braces,
from turning the scan quadratic.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from cardlens.card import CharacterMetadata, parse_flexible

logger = logging.getLogger(__name__)

# Bytes decoded per start offset; real cards stay well under this
WINDOW_SIZE = 512_000
# Characters between window end and candidate '}' before a start is abandoned
MAX_RETRY_GAP = 10_000

OPEN_BRACE = ord("{")


class BruteForceScanner:
    """Scans a byte buffer for an embedded card object.

    Usage:
        scanner = BruteForceScanner()
        card = scanner.scan(data)
    """

    def __init__(self, window_size: int = WINDOW_SIZE, max_gap: int = MAX_RETRY_GAP) -> None:
        self.window_size = window_size
        self.max_gap = max_gap

    @staticmethod
    def start_offsets(data: bytes) -> list[int]:
        """Offsets of every '{' byte, in file order."""
        return [i for i, byte in enumerate(data) if byte == OPEN_BRACE]

    def candidates(self, window: str) -> Iterator[str]:
        """Prefixes of `window` ending at a '}', longest first, within the retry gap."""
        close = window.rfind("}")
        while close > 0:
            yield window[:close + 1]
            close = window.rfind("}", 0, close)
            if len(window) - close > self.max_gap:
                break

    def scan_at(self, data: bytes, start: int) -> Optional[CharacterMetadata]:
        end = min(start + self.window_size, len(data))
        # Replacement characters never produce '}', so this skips the decode
        if data.rfind(b"}", start, end) == -1:
            return None
        window = data[start:end].decode("utf-8", errors="replace")
        for candidate in self.candidates(window):
            result = parse_flexible(candidate)
            if result is not None:
                return result
        return None

    def scan(self, data: bytes) -> Optional[CharacterMetadata]:
        """Return the first card found scanning start offsets back to front."""
        offsets = self.start_offsets(data)
        logger.debug("Brute-force scan: %d candidate start offsets in %d bytes", len(offsets), len(data))

        for start in reversed(offsets):
            result = self.scan_at(data, start)
            if result is not None:
                logger.debug("Brute-force scan matched object at %#x", start)
                return result
        return None

    def __repr__(self) -> str:
        return f"<BruteForceScanner window={self.window_size} max_gap={self.max_gap}>"
