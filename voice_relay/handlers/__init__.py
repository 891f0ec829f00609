"""
Handlers for the two sides of a relayed call.

- telephony_handlers: Twilio Media Stream events (start, media, mark, stop).
- realtime_handlers: OpenAI Realtime events (response.audio.delta,
  input_audio_buffer.speech_started, session.created, session.updated, error).

Every handler has the signature ``async def handler(message, session)`` where
``message`` is the decoded JSON object and ``session`` the owning
``CallRelaySession``. Unknown event names have no handler and are ignored.
"""

from voice_relay.handlers.realtime_handlers import (
    handle_audio_delta,
    handle_error,
    handle_session_created,
    handle_session_updated,
    handle_speech_started,
)
from voice_relay.handlers.telephony_handlers import (
    handle_mark,
    handle_media,
    handle_start,
    handle_stop,
)
