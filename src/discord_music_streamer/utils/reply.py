"""Helpers for fitting track titles and other user-supplied text into replies."""

from __future__ import annotations

import discord

ELLIPSIS = "…"


def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def clean_title(title: str, max_length: int = 90) -> str:
    """One line, shortened, with Discord markdown escaped so titles cannot restyle a reply."""
    return discord.utils.escape_markdown(truncate(" ".join(title.split()), max_length))
