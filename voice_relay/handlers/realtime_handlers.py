"""
Handles events arriving from the OpenAI Realtime API.

Assistant audio is forwarded to Twilio as media frames followed by a mark, and
caller speech (server VAD) interrupts assistant audio that is still playing.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict

from voice_relay.config.constants import LOGGER_NAME
from voice_relay.models.message_schemas import ClearMessage, OutgoingMedia, OutgoingMediaMessage
from voice_relay.models.openai_schemas import (
    ConversationItemTruncateEvent,
    ErrorEvent,
    ResponseAudioDeltaEvent,
    SessionEvent,
    SpeechStartedEvent,
)

if TYPE_CHECKING:
    from voice_relay.bot.call_relay_session import CallRelaySession

logger = logging.getLogger(LOGGER_NAME)


async def handle_audio_delta(message: Dict[str, Any], session: "CallRelaySession") -> None:
    """
    Handle a response.audio.delta event.

    Sends the delta to Twilio unchanged as a media event for the current stream,
    records the start of the response window, then sends a mark so Twilio
    reports when playback reaches this point.
    """
    event = ResponseAudioDeltaEvent(**message)
    if not event.delta:
        return

    state = session.state
    if state.stream_sid is None:
        logger.debug("Dropping assistant audio received before stream start")
        return

    media = OutgoingMediaMessage(
        streamSid=state.stream_sid, media=OutgoingMedia(payload=event.delta)
    )
    if not await session.send_to_telephony(media):
        return

    state.record_response_audio(event.item_id)
    await session.send_mark()


async def handle_speech_started(message: Dict[str, Any], session: "CallRelaySession") -> None:
    """
    Handle input_audio_buffer.speech_started (barge-in).

    When interruptions are enabled and assistant audio is in flight, truncates the
    assistant item at the point the caller has heard, and tells Twilio to drop the
    audio it still has buffered.
    """
    event = SpeechStartedEvent(**message)
    state = session.state
    logger.info(f"Caller speech started at {event.audio_start_ms}ms")

    if not session.settings.enable_interruptions:
        return
    if state.last_assistant_item_id is None or state.response_start_timestamp is None:
        return

    elapsed = state.elapsed_response_ms()
    logger.info(f"Truncating assistant item {state.last_assistant_item_id} at {elapsed}ms")
    truncate = ConversationItemTruncateEvent(
        item_id=state.last_assistant_item_id, content_index=0, audio_end_ms=elapsed
    )
    await session.realtime_client.send_event(truncate.model_dump())
    if state.stream_sid is not None:
        await session.send_to_telephony(ClearMessage(streamSid=state.stream_sid))
    state.reset_response()


async def handle_session_created(message: Dict[str, Any], session: "CallRelaySession") -> None:
    """The remote session is ready, so configure it now rather than waiting out the delay."""
    SessionEvent(**message)
    logger.info("OpenAI Realtime session created")
    await session.configure()


async def handle_session_updated(message: Dict[str, Any], session: "CallRelaySession") -> None:
    event = SessionEvent(**message)
    logger.info(f"Session updated successfully: {event.session}")


async def handle_error(message: Dict[str, Any], session: "CallRelaySession") -> None:
    event = ErrorEvent(**message)
    logger.error(
        f"Received error from OpenAI: {event.error.code or event.error.type}: {event.error.message}"
    )
