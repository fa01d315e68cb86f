"""AudioSource implementation that pipes ``yt-dlp`` output from stdout."""

from __future__ import annotations

import asyncio
import logging
import subprocess
import tempfile
from typing import IO, Final

from discord_music_streamer.application.interfaces.audio_source import AudioSource, AudioStream
from discord_music_streamer.config.settings import AudioSettings
from discord_music_streamer.domain.shared.exceptions import StreamError
from discord_music_streamer.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS: Final[int] = 500


class YtDlpAudioStream(AudioStream):
    """A running yt-dlp process writing encoded audio to its stdout."""

    def __init__(
        self,
        source_url: str,
        process: subprocess.Popen[bytes],
        stderr_file: IO[bytes],
    ) -> None:
        self._source_url = source_url
        self._process = process
        self._stderr_file = stderr_file
        self._closed = False

    @property
    def source_url(self) -> str:
        return self._source_url

    @property
    def pipe(self) -> IO[bytes]:
        if self._process.stdout is None:
            raise StreamError(self._source_url, ErrorMessages.STREAM_CLOSED.format(url=self._source_url))
        return self._process.stdout

    @property
    def process(self) -> subprocess.Popen[bytes]:
        return self._process

    @property
    def closed(self) -> bool:
        return self._closed

    def stderr_tail(self, limit: int = STDERR_TAIL_CHARS) -> str:
        """Last *limit* characters yt-dlp wrote to stderr."""
        if self._stderr_file.closed:
            return ""
        self._stderr_file.seek(0)
        text = self._stderr_file.read().decode("utf-8", errors="replace").strip()
        return text[-limit:]

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._process.poll() is None:
            try:
                self._process.kill()
            except OSError as e:
                logger.warning(LogTemplates.STREAM_KILL_FAILED, self._source_url, e)

        if self._process.stdout is not None:
            self._process.stdout.close()
        self._stderr_file.close()
        logger.debug(LogTemplates.STREAM_CLOSED, self._source_url)


class YtDlpAudioSource(AudioSource):
    """Spawns ``yt-dlp <url> -f <format> -o -`` and waits for the first bytes."""

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()

    def build_command(self, source_url: str) -> list[str]:
        return [
            self._settings.ytdlp_binary,
            source_url,
            "-f",
            self._settings.ytdlp_format,
            "-o",
            "-",
            "--quiet",
            "--no-warnings",
            "--no-playlist",
        ]

    async def open(self, source_url: str) -> YtDlpAudioStream:
        command = self.build_command(source_url)
        stderr_file = tempfile.TemporaryFile()
        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=stderr_file,
            )
        except OSError as e:
            stderr_file.close()
            raise StreamError(
                source_url, ErrorMessages.STREAM_SPAWN_FAILED.format(error=e)
            ) from e

        logger.debug(LogTemplates.STREAM_SPAWNED, process.pid, source_url)
        stream = YtDlpAudioStream(source_url, process, stderr_file)

        # any failure or cancellation from here on must not leave the process running
        try:
            await self._wait_for_audio(stream)
        except BaseException:
            stream.close()
            raise

        logger.info(LogTemplates.STREAM_OPENED, source_url)
        return stream

    async def _wait_for_audio(self, stream: YtDlpAudioStream) -> None:
        """Block until yt-dlp writes its first byte, without consuming it."""
        source_url = stream.source_url
        try:
            async with asyncio.timeout(self._settings.open_timeout_seconds):
                first = await asyncio.to_thread(stream.pipe.peek, 1)  # type: ignore[attr-defined]
        except TimeoutError as e:
            raise StreamError(
                source_url, ErrorMessages.STREAM_OPEN_TIMEOUT.format(url=source_url)
            ) from e

        if not first:
            returncode = await asyncio.to_thread(stream.process.wait)
            stderr = stream.stderr_tail() or "no output"
            raise StreamError(
                source_url,
                ErrorMessages.STREAM_NO_DATA.format(
                    url=source_url, returncode=returncode, stderr=stderr
                ),
                returncode=returncode,
            )
