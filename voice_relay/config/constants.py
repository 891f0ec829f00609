"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for wire-protocol names and default settings so the
Twilio and OpenAI vocabularies are spelled the same way everywhere.
"""

# Logger name used throughout the application
LOGGER_NAME = "voice_relay"

# Default OpenAI Realtime API settings
DEFAULT_REALTIME_MODEL = "gpt-4o-realtime-preview-2024-10-01"
DEFAULT_REALTIME_URL = "wss://api.openai.com/v1/realtime"
OPENAI_BETA_HEADER = "realtime=v1"
DEFAULT_VOICE = "alloy"
DEFAULT_TEMPERATURE = 0.8
DEFAULT_SESSION_UPDATE_DELAY = 0.1  # seconds
DEFAULT_SYSTEM_MESSAGE = (
    "You are a helpful and bubbly AI assistant who loves to chat about anything "
    "the user is interested in and is prepared to offer them facts. You have a "
    "penchant for dad jokes, owl jokes, and rickrolling subtly. Always stay "
    "positive, but work in a joke when appropriate."
)

# Server defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5050

# Audio format shared by both sides (8kHz G.711 mu-law, base64 encoded)
AUDIO_FORMAT_G711_ULAW = "g711_ulaw"

# Twilio Media Stream events
TWILIO_EVENT_START = "start"
TWILIO_EVENT_MEDIA = "media"
TWILIO_EVENT_MARK = "mark"
TWILIO_EVENT_STOP = "stop"
TWILIO_EVENT_CLEAR = "clear"

# OpenAI Realtime client events
EVENT_SESSION_UPDATE = "session.update"
EVENT_INPUT_AUDIO_BUFFER_APPEND = "input_audio_buffer.append"
EVENT_CONVERSATION_ITEM_TRUNCATE = "conversation.item.truncate"

# OpenAI Realtime server events
EVENT_SESSION_CREATED = "session.created"
EVENT_SESSION_UPDATED = "session.updated"
EVENT_RESPONSE_AUDIO_DELTA = "response.audio.delta"
EVENT_SPEECH_STARTED = "input_audio_buffer.speech_started"
EVENT_ERROR = "error"

# Routes
MEDIA_STREAM_PATH = "/media-stream"
INCOMING_CALL_PATH = "/incoming-call"

# TwiML greeting played before the media stream is connected
GREETING_MESSAGE = (
    "Please wait while we connect your call to the A.I. voice assistant, "
    "powered by Twilio and the OpenAI Realtime API."
)
READY_MESSAGE = "O.K., you can start talking!"
