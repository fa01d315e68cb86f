"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Snowflake Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Settings Validation Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"

    # Resolution Errors
    EMPTY_QUERY = "Nothing to resolve: the query is empty"
    SPOTIFY_NOT_CONFIGURED = "Spotify links need SPOTIFY__CLIENT_ID and SPOTIFY__CLIENT_SECRET"
    SPOTIFY_BAD_TRACK_URL = "Not a Spotify track link: {url}"
    SPOTIFY_TOKEN_FAILED = "Spotify token request failed: {error}"
    SPOTIFY_TRACK_FAILED = "Spotify track lookup failed: {error}"
    SPOTIFY_MALFORMED_RESPONSE = "Spotify returned an unexpected payload for track {track_id}"
    NO_SEARCH_RESULTS = "No results found for '{query}'"
    NO_METADATA = "Could not read track metadata for {url}"
    YTDLP_REJECTED = "Could not read track metadata for {url}: {reason}"
    SEARCH_FAILED = "Search for '{query}' failed: {reason}"

    # Stream Errors
    STREAM_NO_DATA = "yt-dlp produced no audio for {url} (exit code {returncode}): {stderr}"
    STREAM_SPAWN_FAILED = "Could not start yt-dlp: {error}"
    STREAM_OPEN_TIMEOUT = "Timed out waiting for audio from {url}"
    STREAM_CLOSED = "Audio stream for {url} is already closed"

    # Voice Errors
    VOICE_GUILD_NOT_FOUND = "Guild {guild_id} is not available"
    VOICE_CHANNEL_NOT_VOICE = "Channel {channel_id} is not a voice channel"
    VOICE_CONNECT_TIMEOUT = "Timed out joining voice channel {channel_id}"
    VOICE_NO_PERMISSION = "Missing permission to join voice channel {channel_id}"
    VOICE_CONNECT_FAILED = "Could not join voice channel {channel_id}: {error}"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting.
    """

    # Voice/Audio Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_MOVED = "Moved to voice channel %s"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %r"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect from voice in guild %s"

    # Stream Operations
    STREAM_SPAWNED = "Spawned yt-dlp (pid=%s) for %s"
    STREAM_OPENED = "Audio stream ready for %s"
    STREAM_CLOSED = "Closed audio stream for %s"
    STREAM_KILL_FAILED = "Error terminating yt-dlp for %s: %s"
    STREAM_ENDED = "Stream ended in guild %s (generation=%s, error=%s)"

    # Session / Playback Operations
    SESSION_CREATED = "Created playback session for guild %s"
    SESSION_REMOVED = "Removed playback session for guild %s"
    SESSION_CLOSED = "Closed playback session for guild %s"
    SESSION_TRANSITION = "Guild %s: %s -> %s"
    SESSION_DISPATCH_ERROR = "Unhandled error while applying %s in guild %s"
    PLAYBACK_STARTED = "Started playing '%s' in guild %s (generation=%s)"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_IGNORING_STALE_END = "Ignoring stale stream end in guild %s (event=%s, current=%s)"
    PLAYBACK_IGNORING_STALE_SKIP = "Ignoring stale skip in guild %s (issued=%s, current=%s)"
    TRACK_QUEUED = "Queued '%s' at position %s in guild %s"
    TRACK_FAILED = "Track '%s' failed in guild %s: %s"
    TRACK_SKIPPED = "Skipped '%s' in guild %s"
    TRACK_FINISHED = "Track finished: '%s' in guild %s"
    QUEUE_EMPTY = "Queue empty in guild %s"
    QUEUE_CLEARED = "Cleared %s tracks from queue in guild %s"
    LEFT_VOICE = "Left voice in guild %s"

    # Resolution / Search
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s: %s"
    YTDLP_FAILED_SEARCH = "Failed to search for %r: %s"
    RESOLVED_TRACK = "Resolved %r to '%s'"
    SPOTIFY_TOKEN_REFRESHED = "Fetched Spotify access token (expires in %ss)"
    SPOTIFY_TRACK_FETCHED = "Fetched Spotify track %s: %s - %s"

    # Presenter
    PRESENTER_EDIT_FAILED = "Failed to update now-playing message in guild %s: %s"
    PRESENTER_SEND_FAILED = "Failed to post now-playing message in guild %s: %s"

    # Application Lifecycle
    BOT_STARTING = "Starting Discord Music Streamer in {environment} mode"
    BOT_CONFIG_SUMMARY = "Spotify links %s, progress every %ss, %s guild(s) synced on startup"
    BOT_CHECK_OK = "Configuration OK"
    BOT_CHECK_FAILED = "Configuration check failed: %s"
    TOOL_NOT_FOUND = "%s not found on PATH; playback will fail"
    LOGGING_FALLBACK = "Could not apply logging config %s (%s), using basic logging"
    BOT_SETUP = "Setting up bot..."
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_SYNCED_GUILD = "Synced %s commands to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync to guild %s: %s"
    BOT_SYNCED_GLOBAL = "Synced %s commands globally"
    BOT_SYNC_GLOBAL_FAILED = "Failed to sync commands globally: %s"
    BOT_SLASH_COMMAND_ERROR = "Slash command error in '%s': %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    """

    # Play / Queue
    PLAY_NOW_PLAYING = "\U0001f3b6 Now Playing: **{title}**"
    PLAY_ADDED_TO_QUEUE = "\U0001f3b5 Added to queue: **{title}** (position {position})"
    PLAY_FAILED = "❌ {error}"
    QUEUE_HEADER = "\U0001f3b6 Current Queue:"
    QUEUE_NOW_PLAYING_LINE = "Now playing: **{title}**"
    QUEUE_LINE = "{index}. {title}"
    QUEUE_MORE = "…and {count} more"
    QUEUE_TOTAL = "Queued time: {length}"

    # Actions
    ACTION_PAUSED = "⏸️ Paused the music."
    ACTION_RESUMED = "▶️ Resumed the music."
    ACTION_STOPPED = "⏹️ Stopped the music and cleared the queue."
    ACTION_SKIPPED = "⏭️ Skipped to the next song: **{title}**"
    ACTION_LEFT = "\U0001f44b Left the voice channel and cleared the queue."

    # State Messages
    STATE_ALREADY_PAUSED = "Music is already paused."
    STATE_NOT_PAUSED = "Music is not paused."
    STATE_QUEUE_EMPTY = "Queue is empty."
    STATE_QUEUE_EMPTY_STOPPING = "The queue is empty. Stopping playback."
    STATE_ALREADY_SKIPPED = "That song already finished."
    STATE_NOTHING_PLAYING = "Nothing is playing."
    STATE_NOT_CONNECTED = "I am not in a voice channel."
    STATE_NEED_TO_BE_IN_VOICE = "You need to join a voice channel first!"
    STATE_SERVER_ONLY = "This command can only be used in a server."

    # Presenter
    NOW_PLAYING_PROGRESS = "\U0001f3b6 Now Playing: **{title}**\n{progress}"
    TRACK_FAILED = "⚠️ Could not play **{title}**: {error}"
    QUEUE_FINISHED = "✅ Queue finished."

    # Errors
    ERROR_OCCURRED = "❌ An error occurred: {error}"
