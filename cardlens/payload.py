"""
CardLens Payload Decoder

Turns the body of a PNG text chunk (everything after the keyword null)
into a plain-text candidate string.

Per chunk type:
- tEXt: the body is the text, uncompressed
- zTXt: 1 compression-method byte, then a zlib stream
- iTXt: compression flag, compression method, null-terminated language tag,
        null-terminated translated keyword, then the text (zlib when flag = 1)

Text is decoded as UTF-8 with replacement, so undecodable bytes never abort
a chunk. Decompression is the only step that can fail here.
"""

from __future__ import annotations

import io
import logging
import zlib

from kaitaistruct import KaitaiStream

logger = logging.getLogger(__name__)


class DecompressError(ValueError):
    """A chunk payload that should be deflate data is not."""
    def __init__(self, message: str, chunk_type: str = ""):
        where = f" in {chunk_type}" if chunk_type else ""
        super().__init__(f"Decompress failed{where}: {message}")
        self.chunk_type = chunk_type


def decode_text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def inflate(raw: bytes, chunk_type: str = "") -> bytes:
    """Inflate a zlib stream.

    Raises:
        DecompressError: if `raw` is not a complete zlib stream. An empty
            result is never returned in place of a failure.
    """
    try:
        return zlib.decompress(raw)
    except zlib.error as e:
        raise DecompressError(str(e), chunk_type) from e


def _decode_ztxt(body: bytes) -> str:
    # First byte is the compression method; 0 (deflate) is the only one defined
    return decode_text(inflate(body[1:], "zTXt"))


def _decode_itxt(body: bytes) -> str:
    with KaitaiStream(io.BytesIO(body)) as stream:
        compressed = stream.read_u1()
        stream.read_u1()  # compression method
        # Language tag and translated keyword may be empty (immediate null)
        stream.read_bytes_term(0, False, True, False)
        stream.read_bytes_term(0, False, True, False)
        text = stream.read_bytes_full()

    if compressed == 1:
        text = inflate(text, "iTXt")
    return decode_text(text)


_DECODERS = {
    "tEXt": decode_text,
    "zTXt": _decode_ztxt,
    "iTXt": _decode_itxt,
}


def decode_text_payload(chunk_type: str, body: bytes) -> str:
    """Decode the bytes following a text chunk's keyword.

    Args:
        chunk_type: "tEXt", "zTXt" or "iTXt"
        body: chunk data after the keyword's null terminator

    Raises:
        DecompressError: compressed payload is not valid deflate data
        EOFError: iTXt header fields are truncated
        KeyError: chunk_type is not a text chunk type
    """
    decoder = _DECODERS[chunk_type]
    text = decoder(body)
    logger.debug("Decoded %s payload: %d bytes -> %d chars", chunk_type, len(body), len(text))
    return text
