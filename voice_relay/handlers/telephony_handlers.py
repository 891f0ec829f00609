"""
Handles events arriving on the Twilio Media Stream WebSocket.

Each handler receives the decoded JSON message and the ``CallRelaySession`` that
owns the connection. Handlers raise ``pydantic.ValidationError`` for messages
missing the fields they need; the session logs and drops such messages.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict

from voice_relay.config.constants import LOGGER_NAME
from voice_relay.models.message_schemas import MarkMessage, MediaMessage, StartMessage, StopMessage
from voice_relay.models.openai_schemas import InputAudioBufferAppendEvent

if TYPE_CHECKING:
    from voice_relay.bot.call_relay_session import CallRelaySession

logger = logging.getLogger(LOGGER_NAME)


async def handle_start(message: Dict[str, Any], session: "CallRelaySession") -> None:
    """
    Handle the start event that opens a media stream.

    Stores the stream identifier and resets the response window. A socket
    normally sees a single start, but a later one simply rebinds the stream.
    """
    start = StartMessage(**message)
    session.state.begin_stream(start.start.streamSid)
    logger.info(f"Incoming stream started: {start.start.streamSid}")


async def handle_media(message: Dict[str, Any], session: "CallRelaySession") -> None:
    """
    Handle an inbound media event and forward the caller audio to OpenAI.

    The payload is forwarded unchanged since both sides use G.711 mu-law. Frames
    are dropped without error when no stream has started yet or the OpenAI
    connection is not open.
    """
    media = MediaMessage(**message).media
    state = session.state
    if media.timestamp is not None:
        state.latest_media_timestamp = media.timestamp

    if state.stream_sid is None:
        logger.debug("Dropping media received before stream start")
        return
    if not session.realtime_client.is_open:
        return

    append = InputAudioBufferAppendEvent(audio=media.payload)
    await session.realtime_client.send_event(append.model_dump())


async def handle_mark(message: Dict[str, Any], session: "CallRelaySession") -> None:
    """Handle a mark echoed back by Twilio once the preceding audio has played."""
    mark = MarkMessage(**message)
    if session.state.mark_queue:
        session.state.mark_queue.pop(0)
    logger.debug(f"Playback mark received: {mark.mark.name if mark.mark else None}")


async def handle_stop(message: Dict[str, Any], session: "CallRelaySession") -> None:
    stop = StopMessage(**message)
    logger.info(f"Incoming stream stopped: {stop.streamSid or session.state.stream_sid}")
