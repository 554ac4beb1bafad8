"""Centralized message constants for error messages and log output."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Manager / Gateway
    GATEWAY_REQUIRED = "A voice gateway is required to create a Manager"
    NO_NODES_CONNECTED = "No nodes connected"

    # Player Validation Errors
    INVALID_LOOP_MODE = "Invalid loop mode: {value!r}. Must be one of {valid}"
    INVALID_VOLUME = "Volume cannot be negative"
    NOTHING_TO_PLAY = "No track given and the queue is empty"

    # Queue Validation Errors
    INVALID_QUEUE_INDEX = "Queue index {index} is out of range"

    # Track Loading
    TRACK_LOAD_BAD_STATUS = "node answered HTTP {status}"
    TRACK_LOAD_BAD_BODY = "invalid response body: {error}"

    # Authentication/Security Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"


class LogTemplates:
    """Log message templates.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    so formatting stays lazy.
    """

    # Node Lifecycle
    NODE_CREATED = "Created node %s (%s:%s)"
    NODE_CONNECTING = "Node %s connecting to %s with headers %s"
    NODE_CONNECTED = "Node %s connected"
    NODE_CONNECT_FAILED = "Node %s failed to connect: %r"
    NODE_CLOSED = "Node %s websocket closed (code=%s, reason=%r)"
    NODE_ERROR = "Node %s websocket error: %r"
    NODE_RECONNECT_SCHEDULED = "Node %s reconnecting in %.1fs"
    NODE_RECONNECTING = "Node %s attempting reconnect"
    NODE_DESTROYED = "Node %s destroyed"
    NODE_BUFFERED = "Node %s offline, buffered %s (%d pending)"
    NODE_FLUSHED = "Node %s flushed %d buffered payload(s)"
    NODE_RESUMING_CONFIGURED = "Node %s configured resuming with key timeout %ss"
    NODE_STATS_UPDATED = "Node %s stats: players=%s playing=%s load=%.2f"
    NODE_BAD_FRAME = "Node %s sent an undecodable frame: %r"
    NODE_PROTOCOL_FAULT = "Node %s sent a payload outside the wire contract"
    NODE_FRAME_FAILED = "Node %s failed to handle a frame, continuing with the next one"

    # Player Lifecycle
    PLAYER_CREATED = "Created player for guild %s on node %s"
    PLAYER_DESTROYED = "Destroyed player for guild %s"
    PLAYER_IGNORED_OP = "Player for guild %s ignored op %r"
    PLAYER_DETACHED_MESSAGE = "Dropped %r for detached player in guild %s"
    PLAYER_VOICE_UPDATE = "Sending voice update for guild %s (session %s)"

    # Playback Operations
    PLAYBACK_STARTED = "Playing '%s' in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_PAUSED = "Paused=%s in guild %s"
    TRACK_ENDED = "Track '%s' ended in guild %s (reason=%s, loop=%s)"
    TRACK_STUCK = "Track '%s' stuck in guild %s (threshold=%sms)"
    TRACK_EXCEPTION = "Track '%s' failed in guild %s: %s"
    QUEUE_ENDED = "Queue ended in guild %s"
    VOICE_SOCKET_CLOSED = "Voice socket closed in guild %s (code=%s, reason=%r)"
    VOICE_SOCKET_REJOIN = "Voice session invalidated in guild %s, re-sending join"

    # Manager / Rendezvous
    MANAGER_STARTED = "Manager started for user %s with %d node(s)"
    MANAGER_CLOSED = "Manager closed"
    VOICE_SERVER_UPDATE = "Voice server update for guild %s (endpoint=%s)"
    VOICE_STATE_UPDATE = "Voice state update for guild %s (channel=%s)"
    VOICE_STATE_CLEARED = "Bot left voice in guild %s, cleared voice records"
    RENDEZVOUS_INCOMPLETE = "Rendezvous for guild %s incomplete (server=%s, player=%s)"
    RENDEZVOUS_NO_SESSION = "Rendezvous for guild %s has no voice session id yet"
    GUILD_SNAPSHOT = "Replaying %d voice state(s) for guild %s"
    JOIN_EXISTING = "Join for guild %s returned existing player"
    LEAVE_NO_PLAYER = "Leave for guild %s: no player"

    # Track Loading
    TRACKS_FETCHING = "Fetching tracks for %r from node %s"
    TRACKS_FETCHED = "Fetched %d track(s) for %r (loadType=%s)"
    TRACKS_FETCH_FAILED = "Track fetch for %r failed: %s"

    # Event Bus
    EVENT_HANDLER_ERROR = "Error in handler for %s: %s"

    # Bot Lifecycle
    BOT_STARTING = "Starting bot (environment: %s)"
    BOT_READY = "Logged in as %s (%s)"
    BOT_STOPPED = "Bot stopped"
    BOT_KEYBOARD_INTERRUPT = "Interrupted, shutting down"
    BOT_FATAL_ERROR = "Fatal error: %s"
    GATEWAY_SEND = "Sending voice state for guild %s via shard %s"
    LOGGING_CONFIG_FALLBACK = "Could not load %s, falling back to the console handler"
