import asyncio
import io
from collections import defaultdict
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytest_asyncio

from discord_music_streamer.application.interfaces.audio_source import AudioSource, AudioStream
from discord_music_streamer.application.interfaces.voice_adapter import (
    PlayerStatus,
    VoiceAdapter,
    VoiceConnection,
)
from discord_music_streamer.domain.shared.exceptions import StreamError, VoiceConnectionError

GUILD_ID = 987654321
VOICE_CHANNEL_ID = 111222333


# ============================================================================
# Fakes for the audio and voice ports
# ============================================================================


class FakeAudioStream(AudioStream):
    def __init__(self, source_url: str) -> None:
        self._source_url = source_url
        self._pipe = io.BytesIO(b"fake-opus-bytes")
        self._closed = False
        self.close_calls = 0

    @property
    def source_url(self) -> str:
        return self._source_url

    @property
    def pipe(self):
        return self._pipe

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self.close_calls += 1
        self._closed = True


class FakeAudioSource(AudioSource):
    """Opens fake streams; URLs listed in ``failing`` raise StreamError."""

    def __init__(self) -> None:
        self.failing: set[str] = set()
        self.opened: list[str] = []
        self.streams: list[FakeAudioStream] = []

    async def open(self, source_url: str) -> FakeAudioStream:
        self.opened.append(source_url)
        if source_url in self.failing:
            raise StreamError(source_url, f"yt-dlp produced no audio for {source_url}", returncode=1)
        stream = FakeAudioStream(source_url)
        self.streams.append(stream)
        return stream


class FakeVoiceConnection(VoiceConnection):
    """Mimics a discord.py voice client: ``stop()`` still fires the end callback, later."""

    def __init__(self, guild_id: int = GUILD_ID) -> None:
        self._guild_id = guild_id
        self._status = PlayerStatus.IDLE
        self.connected = True
        self.on_end = None
        self.played: list[AudioStream] = []
        self.fail_play = False
        self.pause_calls = 0
        self.resume_calls = 0
        self.stop_calls = 0
        self.disconnect_calls = 0

    @property
    def guild_id(self) -> int:
        return self._guild_id

    @property
    def status(self) -> PlayerStatus:
        return self._status

    def is_connected(self) -> bool:
        return self.connected

    def play(self, stream, on_end) -> None:
        if self.fail_play:
            raise StreamError(stream.source_url, "Already playing audio.")
        self.played.append(stream)
        self.on_end = on_end
        self._status = PlayerStatus.PLAYING

    def pause(self) -> None:
        self.pause_calls += 1
        self._status = PlayerStatus.PAUSED

    def resume(self) -> None:
        self.resume_calls += 1
        self._status = PlayerStatus.PLAYING

    def stop(self) -> None:
        self.stop_calls += 1
        self._status = PlayerStatus.IDLE
        callback, self.on_end = self.on_end, None
        if callback is not None:
            asyncio.get_running_loop().call_soon(callback, None)

    def finish(self, error: Exception | None = None) -> None:
        """Simulate the current stream reaching its natural end."""
        self._status = PlayerStatus.IDLE
        callback, self.on_end = self.on_end, None
        assert callback is not None, "nothing is playing"
        callback(error)

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False
        self._status = PlayerStatus.IDLE


class FakeVoiceAdapter(VoiceAdapter):
    def __init__(self) -> None:
        self.fail = False
        self.connect_calls: list[tuple[int, int]] = []
        self.connections: list[FakeVoiceConnection] = []

    @property
    def connection(self) -> FakeVoiceConnection | None:
        return self.connections[-1] if self.connections else None

    async def connect(self, guild_id: int, channel_id: int) -> FakeVoiceConnection:
        self.connect_calls.append((guild_id, channel_id))
        if self.fail:
            raise VoiceConnectionError(guild_id, channel_id, "Missing permission to join voice channel")
        connection = FakeVoiceConnection(guild_id)
        self.connections.append(connection)
        return connection


class EventRecorder:
    """Collects every event published on a bus, grouped by type."""

    def __init__(self) -> None:
        self.events: list = []
        self.by_type: dict[type, list] = defaultdict(list)

    async def __call__(self, event) -> None:
        self.events.append(event)
        self.by_type[type(event)].append(event)

    def of(self, event_type: type) -> list:
        return self.by_type[event_type]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def make_track():
    """Factory for resolved tracks."""
    from discord_music_streamer.domain.music.entities import Track

    def _make(title: str = "Test Track", duration: int | None = 180, slug: str | None = None):
        slug = slug or title.lower().replace(" ", "-")
        return Track(
            source_url=f"https://www.youtube.com/watch?v={slug}",
            title=title,
            duration_seconds=duration,
        )

    return _make


@pytest.fixture
def sample_track(make_track):
    return make_track("Test Track", 180)


@pytest.fixture
def event_bus():
    from discord_music_streamer.domain.shared.events import EventBus

    return EventBus()


@pytest.fixture
def recorder(event_bus):
    from discord_music_streamer.domain.shared.events import (
        PlaybackProgressed,
        QueueExhausted,
        SessionTerminated,
        TrackFailed,
        TrackStartedPlaying,
    )

    rec = EventRecorder()
    for event_type in (
        TrackStartedPlaying,
        PlaybackProgressed,
        TrackFailed,
        QueueExhausted,
        SessionTerminated,
    ):
        event_bus.subscribe(event_type, rec)
    return rec


@pytest.fixture
def audio_source():
    return FakeAudioSource()


@pytest.fixture
def voice_adapter():
    return FakeVoiceAdapter()


@pytest_asyncio.fixture
async def controller(voice_adapter, audio_source, event_bus, recorder):
    from discord_music_streamer.application.services.session_controller import SessionController

    session = SessionController(
        GUILD_ID,
        voice_adapter=voice_adapter,
        audio_source=audio_source,
        event_bus=event_bus,
        tick_interval=0.001,
    )
    yield session
    await session.close()


@pytest.fixture(autouse=True)
def _reset_global_state():
    from discord_music_streamer.config.settings import clear_settings_cache
    from discord_music_streamer.domain.shared.events import reset_event_bus

    yield
    reset_event_bus()
    clear_settings_cache()


# ============================================================================
# Discord interaction mocks
# ============================================================================


def make_interaction(
    *,
    guild_id: int | None = GUILD_ID,
    user_is_member: bool = True,
    voice_channel_id: int | None = VOICE_CHANNEL_ID,
    text_channel_id: int = 555,
    responded: bool = False,
):
    """Build a MagicMock interaction for slash-command tests."""

    interaction = MagicMock(spec=discord.Interaction)
    interaction.response = MagicMock()
    interaction.response.send_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.response.is_done = MagicMock(return_value=responded)
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock()
    interaction.channel_id = text_channel_id

    if guild_id is None:
        interaction.guild = None
    else:
        interaction.guild = MagicMock()
        interaction.guild.id = guild_id

    if user_is_member:
        user = MagicMock(spec=discord.Member)
        if voice_channel_id is None:
            user.voice = None
        else:
            user.voice = MagicMock()
            user.voice.channel = MagicMock()
            user.voice.channel.id = voice_channel_id
    else:
        user = MagicMock(spec=discord.User)
    interaction.user = user
    return interaction


@pytest.fixture
def interaction():
    return make_interaction()
