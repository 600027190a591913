"""
CardLens Card Schema

A tavern character card is a JSON object in one of two shapes:

- FlatCard (V1): name/description/personality/... at the top level
- NestedCard (V2): the same keys under a `data` object

classify_card() is the single discriminator between the two, and
normalize_card() the single place that maps either shape onto the
canonical CharacterMetadata record. parse_flexible() accepts raw text
that is JSON, or base64 that decodes to JSON.

"Not a card" is a normal outcome here: every entry point returns None
rather than raising.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

# Shorter base64 runs are too likely to be coincidence
MIN_BASE64_LENGTH = 20

_NON_BASE64 = re.compile(r"[^A-Za-z0-9+/=]")

TEXT_FIELDS = ("description", "personality", "scenario", "first_mes", "mes_example")


@dataclass(frozen=True)
class CharacterMetadata:
    """The canonical card record, whichever shape it was read from."""
    name: str = "Unknown"
    description: str = ""
    personality: str = ""
    scenario: str = ""
    first_mes: str = ""
    mes_example: str = ""
    creator_notes: Optional[str] = None
    system_prompt: Optional[str] = None
    tags: Optional[tuple[str, ...]] = None

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for JSON output; unset optional fields are omitted."""
        result = asdict(self)
        for key in ("creator_notes", "system_prompt", "tags"):
            if result[key] is None:
                del result[key]
        if "tags" in result:
            result["tags"] = list(result["tags"])
        return result

    def __repr__(self) -> str:
        return f"<CharacterMetadata: {self.name!r} tags={len(self.tags or ())}>"


@dataclass(frozen=True)
class FlatCard:
    """V1: the card fields live on the object itself.

    A V1 object that still carries a truthy `data` field reads from that
    field instead; if it is not an object, only defaults come out.
    """
    source: dict

    @property
    def fields(self) -> dict:
        data = self.source.get("data")
        if not data:
            return self.source
        return data if isinstance(data, dict) else {}


@dataclass(frozen=True)
class NestedCard:
    """V2: the card fields live under `data`."""
    source: dict

    @property
    def fields(self) -> dict:
        return self.source["data"]


SourceCard = Union[FlatCard, NestedCard]


def classify_card(obj: Any) -> Optional[SourceCard]:
    """Decide which card shape `obj` is, if any.

    V2 wins when both would match: an object whose `data.name` is a string
    is nested regardless of what sits at the top level.
    """
    if not isinstance(obj, dict):
        return None
    data = obj.get("data")
    if isinstance(data, dict) and isinstance(data.get("name"), str):
        return NestedCard(obj)
    if isinstance(obj.get("name"), str) and (
        isinstance(obj.get("description"), str) or isinstance(obj.get("personality"), str)
    ):
        return FlatCard(obj)
    return None


def _text(value: Any, default: str) -> str:
    if not value:
        return default
    if isinstance(value, str):
        return value
    return str(value)


def _tags(value: Any) -> Optional[tuple[str, ...]]:
    if not isinstance(value, list):
        return None
    return tuple(t if isinstance(t, str) else str(t) for t in value)


def normalize_card(card: SourceCard) -> CharacterMetadata:
    """Map either card shape onto CharacterMetadata, filling defaults."""
    fields = card.fields
    return CharacterMetadata(
        name=_text(fields.get("name"), "Unknown"),
        **{key: _text(fields.get(key), "") for key in TEXT_FIELDS},
        creator_notes=fields.get("creator_notes"),
        system_prompt=fields.get("system_prompt"),
        tags=_tags(fields.get("tags")),
    )


def _from_json(text: str) -> Optional[CharacterMetadata]:
    try:
        obj = json.loads(text)
    except (ValueError, RecursionError):
        return None
    card = classify_card(obj)
    if card is None:
        return None
    logger.debug("Matched %s card %r", type(card).__name__, card.fields.get("name"))
    return normalize_card(card)


def _decode_base64(text: str) -> Optional[str]:
    candidate = _NON_BASE64.sub("", text)
    if len(candidate) < MIN_BASE64_LENGTH:
        return None
    # Accept unpadded input
    candidate += "=" * (-len(candidate) % 4)
    try:
        raw = base64.b64decode(candidate)
    except (binascii.Error, ValueError):
        return None
    return raw.decode("utf-8", errors="replace")


def parse_flexible(text: str) -> Optional[CharacterMetadata]:
    """Read a card from text that is JSON or base64-wrapped JSON.

    The direct JSON attempt runs only when the text starts with '{'; the
    base64 attempt always runs if the direct one did not produce a card.

    Returns:
        CharacterMetadata, or None if neither path yields a valid card
    """
    text = text.strip()
    if not text:
        return None

    if text.startswith("{"):
        result = _from_json(text)
        if result is not None:
            return result

    decoded = _decode_base64(text)
    if decoded is not None:
        decoded = decoded.strip()
        if decoded.startswith("{"):
            return _from_json(decoded)
    return None
