"""Render verse API payloads as Discord embeds."""

import json
from datetime import datetime, timezone
from typing import Any, Mapping

import discord

from verse_bot.services.verse_api import VersePayload

VERSE_TITLE = "Daily Bible Verse 📖"
VERSE_COLOUR = 0x3498DB


def _render_value(value: Any) -> str:
    # Strings verbatim; everything else as it appeared in the JSON (null, true, ...).
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _field_lines(fields: Mapping[str, Any]) -> list[str]:
    return [f"- {key}: {_render_value(value)}" for key, value in fields.items()]


def verse_description(payload: VersePayload) -> str:
    """Build the embed body: one "- key: value" line per entry, two sections.

    Entries keep the order in which the API returned them.
    """
    lines = ["**Translation Details:**"]
    lines.extend(_field_lines(payload.translation))
    lines.append("")
    lines.append("**Random Verse:**")
    lines.extend(_field_lines(payload.random_verse))
    return "\n".join(lines) + "\n"


def render_verse(payload: VersePayload, now: datetime | None = None) -> discord.Embed:
    return discord.Embed(
        title=VERSE_TITLE,
        description=verse_description(payload),
        colour=VERSE_COLOUR,
        timestamp=now or datetime.now(timezone.utc),
    )
