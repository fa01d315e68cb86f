"""Preconditions for slash commands.

Each guard either returns what the command needs or replies to the user
ephemerally and returns None, so a command can bail out with a plain
``if ... is None: return``.
"""

from __future__ import annotations

import discord

from discord_music_streamer.domain.shared.messages import DiscordUIMessages


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Reply only the invoking user can see, as a followup if the interaction was answered."""
    send = (
        interaction.followup.send
        if interaction.response.is_done()
        else interaction.response.send_message
    )
    await send(message, ephemeral=True)


async def get_guild_id(interaction: discord.Interaction) -> int | None:
    if interaction.guild is None:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
        return None
    return interaction.guild.id


async def get_member(interaction: discord.Interaction) -> discord.Member | None:
    """The invoking guild member; DMs and user-installed contexts are rejected."""
    if interaction.guild is None or not isinstance(interaction.user, discord.Member):
        await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
        return None
    return interaction.user


async def get_user_voice_channel_id(interaction: discord.Interaction) -> int | None:
    """Voice channel the invoking member is connected to."""
    member = await get_member(interaction)
    if member is None:
        return None

    channel = member.voice.channel if member.voice is not None else None
    if channel is None:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE)
        return None
    return channel.id
