"""
CardLens Chunk Walker

Walks the PNG chunk stream looking for text chunks that carry a
character card.

Each chunk is: 4-byte big-endian length, 4-byte type, `length` bytes of
data, 4-byte CRC (not verified). The cursor advances by 12 + length and
stops at IEND, at a truncated header, or at a chunk whose declared length
runs past the end of the buffer. None of these are errors: whatever comes
after is left to the brute-force scanner.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from kaitaistruct import KaitaiStream

from cardlens.card import CharacterMetadata, parse_flexible
from cardlens.payload import DecompressError, decode_text, decode_text_payload

logger = logging.getLogger(__name__)

SIGNATURE_SIZE = 8
# 4 (length) + 4 (type) + 4 (CRC)
CHUNK_OVERHEAD = 12

TEXT_CHUNK_TYPES = ("tEXt", "iTXt", "zTXt")
CARD_KEYWORDS = ("chara", "character")


@dataclass(frozen=True)
class Chunk:
    """One chunk at a given offset in the buffer."""
    offset: int
    chunk_type: str
    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        return self.offset + CHUNK_OVERHEAD + self.length

    @property
    def is_text(self) -> bool:
        return self.chunk_type in TEXT_CHUNK_TYPES

    def __repr__(self) -> str:
        return f"<Chunk {self.chunk_type} [{self.offset:#x}:{self.end:#x}] ({self.length} bytes)>"


@dataclass(frozen=True)
class TextChunk:
    """A text chunk split into its keyword and the bytes after it."""
    chunk: Chunk
    keyword: str
    body: bytes

    @property
    def chunk_type(self) -> str:
        return self.chunk.chunk_type

    def is_card_carrier(self, keywords: tuple[str, ...] = CARD_KEYWORDS) -> bool:
        return self.keyword.lower() in keywords

    def decode(self) -> str:
        """Decode the payload. May raise DecompressError or EOFError."""
        return decode_text_payload(self.chunk_type, self.body)


class ChunkCursor:
    """Iterates the chunks of a PNG buffer, starting after the signature.

    Usage:
        for chunk in ChunkCursor(data):
            print(chunk.chunk_type, chunk.length)
    """

    def __init__(self, data: bytes, start: int = SIGNATURE_SIZE) -> None:
        self._data = data
        self._start = start

    def __iter__(self) -> Iterator[Chunk]:
        with KaitaiStream(io.BytesIO(self._data)) as stream:
            size = stream.size()
            stream.seek(min(self._start, size))

            while size - stream.pos() >= CHUNK_OVERHEAD:
                offset = stream.pos()
                length = stream.read_u4be()
                chunk_type = stream.read_bytes(4).decode("latin-1")

                if offset + CHUNK_OVERHEAD + length > size:
                    logger.debug(
                        "Chunk %s at %#x declares %d bytes past end of buffer; stopping walk",
                        chunk_type, offset, length,
                    )
                    return

                data = stream.read_bytes(length)
                stream.read_u4be()  # CRC, unverified
                yield Chunk(offset, chunk_type, data)

                if chunk_type == "IEND":
                    return


def split_keyword(chunk: Chunk) -> Optional[TextChunk]:
    """Split a text chunk at its first null byte.

    Returns None if the chunk has no null terminator after the keyword.
    """
    keyword, sep, body = chunk.data.partition(b"\x00")
    if not sep:
        return None
    return TextChunk(chunk, decode_text(keyword), body)


def iter_text_chunks(data: bytes) -> Iterator[TextChunk]:
    """Every non-empty tEXt/iTXt/zTXt chunk, with its keyword split off."""
    for chunk in ChunkCursor(data):
        if not chunk.is_text or chunk.length == 0:
            continue
        text_chunk = split_keyword(chunk)
        if text_chunk is not None:
            yield text_chunk


def list_text_chunks(data: bytes) -> list[TextChunk]:
    """Inventory of text chunks in walk order, without interpreting them."""
    return list(iter_text_chunks(data))


class ChunkWalker:
    """Finds a character card in the PNG's text chunks.

    The first carrier chunk that decodes and parses wins; later carriers
    are never looked at. A carrier that fails to decode is logged and
    skipped.
    """

    def __init__(self, keywords: tuple[str, ...] = CARD_KEYWORDS) -> None:
        self.keywords = tuple(k.lower() for k in keywords)

    def find_card(self, data: bytes) -> Optional[CharacterMetadata]:
        for text_chunk in iter_text_chunks(data):
            if not text_chunk.is_card_carrier(self.keywords):
                continue

            offset = text_chunk.chunk.offset
            try:
                text = text_chunk.decode()
            except (DecompressError, EOFError) as e:
                logger.warning(
                    "Skipping %s chunk %r at %#x: %s",
                    text_chunk.chunk_type, text_chunk.keyword, offset, e,
                )
                continue

            result = parse_flexible(text)
            if result is not None:
                logger.debug(
                    "Card found in %s chunk %r at %#x", text_chunk.chunk_type, text_chunk.keyword, offset,
                )
                return result
            logger.debug("%s chunk %r at %#x holds no card", text_chunk.chunk_type, text_chunk.keyword, offset)
        return None

    def __repr__(self) -> str:
        return f"<ChunkWalker keywords={self.keywords}>"
