"""
CardLens Rendering

Output helpers for an extracted card: a plain Markdown document and a
filesystem-safe file name derived from the character's name.
"""

from __future__ import annotations

import re

from cardlens.card import CharacterMetadata

_UNSAFE_FILENAME = re.compile(r'[/\\?%*:|"<>]')


def sanitize_filename(name: str) -> str:
    """Replace path and shell metacharacters with '-'; never returns empty."""
    return _UNSAFE_FILENAME.sub("-", name).strip() or "character"


def render_markdown(card: CharacterMetadata) -> str:
    """Render a card as a Markdown document."""
    sections = [
        f"# {card.name}",
        f"## Personality\n{card.personality}",
        f"## Description\n{card.description}",
        f"## Scenario\n{card.scenario}",
        f"## First Message\n{card.first_mes}",
        f"## Examples\n```\n{card.mes_example}\n```",
    ]
    if card.system_prompt:
        sections.append(f"## System Prompt\n{card.system_prompt}")
    if card.creator_notes:
        sections.append(f"## Creator Notes\n{card.creator_notes}")
    if card.tags:
        sections.append("## Tags\n" + ", ".join(f"`{tag}`" for tag in card.tags))
    return "\n\n".join(sections) + "\n"
