"""Tests for the slash-command guard functions."""

from __future__ import annotations

import pytest

from discord_music_streamer.domain.shared.messages import DiscordUIMessages
from discord_music_streamer.infrastructure.discord.guards.voice_guards import (
    get_guild_id,
    get_member,
    get_user_voice_channel_id,
    send_ephemeral,
)

from conftest import GUILD_ID, VOICE_CHANNEL_ID, make_interaction

# =============================================================================
# send_ephemeral
# =============================================================================


@pytest.mark.asyncio
async def test_send_ephemeral_uses_response_first():
    interaction = make_interaction()

    await send_ephemeral(interaction, "hello")

    interaction.response.send_message.assert_awaited_once_with("hello", ephemeral=True)
    interaction.followup.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_ephemeral_uses_followup_after_response():
    interaction = make_interaction(responded=True)

    await send_ephemeral(interaction, "hello")

    interaction.followup.send.assert_awaited_once_with("hello", ephemeral=True)
    interaction.response.send_message.assert_not_awaited()


# =============================================================================
# get_guild_id / get_member
# =============================================================================


@pytest.mark.asyncio
async def test_get_guild_id():
    assert await get_guild_id(make_interaction()) == GUILD_ID


@pytest.mark.asyncio
async def test_get_guild_id_outside_server_rejects():
    interaction = make_interaction(guild_id=None)

    assert await get_guild_id(interaction) is None

    msg = interaction.response.send_message.call_args[0][0]
    assert msg == DiscordUIMessages.STATE_SERVER_ONLY


@pytest.mark.asyncio
async def test_get_member_returns_member():
    interaction = make_interaction()

    assert await get_member(interaction) is interaction.user


@pytest.mark.asyncio
async def test_user_not_member_rejects():
    interaction = make_interaction(user_is_member=False)

    assert await get_member(interaction) is None

    interaction.response.send_message.assert_awaited_once()


# =============================================================================
# get_user_voice_channel_id
# =============================================================================


@pytest.mark.asyncio
async def test_user_in_voice_returns_channel_id():
    interaction = make_interaction()

    assert await get_user_voice_channel_id(interaction) == VOICE_CHANNEL_ID
    interaction.response.send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_user_not_in_voice_rejects():
    interaction = make_interaction(voice_channel_id=None)

    assert await get_user_voice_channel_id(interaction) is None

    msg = interaction.response.send_message.call_args[0][0]
    assert msg == DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE


@pytest.mark.asyncio
async def test_voice_state_without_channel_rejects():
    interaction = make_interaction()
    interaction.user.voice.channel = None

    assert await get_user_voice_channel_id(interaction) is None


@pytest.mark.asyncio
async def test_voice_check_outside_server_rejects():
    interaction = make_interaction(guild_id=None)

    assert await get_user_voice_channel_id(interaction) is None

    msg = interaction.response.send_message.call_args[0][0]
    assert msg == DiscordUIMessages.STATE_SERVER_ONLY
