"""
Per-call relay between a Twilio Media Stream and the OpenAI Realtime API.

A ``CallRelaySession`` is created for each inbound media stream connection. It
owns exactly one ``RealtimeClient`` and one ``CallState``, and nothing about it
is shared with other sessions.

Lifecycle:
1. ``run()`` opens the OpenAI connection and schedules the session.update
   message (sent on session.created, or after the configured delay).
2. Two reader tasks forward messages in each direction until either socket ends.
3. The other reader is cancelled and both sockets are closed.

Messages that fail to parse or validate are logged and dropped; they never end
the session.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from fastapi import WebSocket
from pydantic import BaseModel, ValidationError
from starlette.websockets import WebSocketState

from voice_relay.bot.realtime_api import RealtimeClient
from voice_relay.config.constants import (
    EVENT_ERROR,
    EVENT_RESPONSE_AUDIO_DELTA,
    EVENT_SESSION_CREATED,
    EVENT_SESSION_UPDATED,
    EVENT_SPEECH_STARTED,
    LOGGER_NAME,
    TWILIO_EVENT_MARK,
    TWILIO_EVENT_MEDIA,
    TWILIO_EVENT_START,
    TWILIO_EVENT_STOP,
)
from voice_relay.config.settings import RelaySettings
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
from voice_relay.models.call_state import CallState
from voice_relay.models.message_schemas import OutgoingMarkMessage
from voice_relay.models.openai_schemas import SessionConfig, SessionUpdateEvent

logger = logging.getLogger(LOGGER_NAME)

# Type hint for handler functions
HandlerFunc = Callable[[Dict[str, Any], "CallRelaySession"], Awaitable[None]]

MARK_NAME = "responsePart"


class CallRelaySession:
    """
    Relays audio and control events for one call.

    Attributes:
        telephony_ws: The Twilio media stream WebSocket (owned by the server)
        realtime_client: The OpenAI Realtime connection (owned by this session)
        settings: Relay settings (voice, instructions, delays)
        state: Per-call state
    """

    def __init__(self, telephony_ws: WebSocket, realtime_client: RealtimeClient, settings: RelaySettings):
        self.telephony_ws = telephony_ws
        self.realtime_client = realtime_client
        self.settings = settings
        self.state = CallState()
        self._configured = False
        self._configure_task: Optional[asyncio.Task] = None

        self.telephony_handlers: Dict[str, HandlerFunc] = {
            TWILIO_EVENT_START: handle_start,
            TWILIO_EVENT_MEDIA: handle_media,
            TWILIO_EVENT_MARK: handle_mark,
            TWILIO_EVENT_STOP: handle_stop,
        }
        self.realtime_handlers: Dict[str, HandlerFunc] = {
            EVENT_RESPONSE_AUDIO_DELTA: handle_audio_delta,
            EVENT_SPEECH_STARTED: handle_speech_started,
            EVENT_SESSION_CREATED: handle_session_created,
            EVENT_SESSION_UPDATED: handle_session_updated,
            EVENT_ERROR: handle_error,
        }

    @property
    def configured(self) -> bool:
        return self._configured

    async def run(self) -> None:
        """Relay the call until either side closes, then tear both down."""
        connected = await self.realtime_client.connect()
        if not connected:
            # Keep draining the telephony socket; media is dropped until it closes
            logger.error("OpenAI Realtime connection failed; caller audio will not be relayed")
            try:
                await self.receive_from_telephony()
            finally:
                await self.close()
            return

        self._configure_task = asyncio.create_task(self._configure_after_delay(), name="session.update")
        telephony_task = asyncio.create_task(self.receive_from_telephony(), name="twilio->openai")
        realtime_task = asyncio.create_task(self.receive_from_realtime(), name="openai->twilio")

        try:
            done, pending = await asyncio.wait(
                {telephony_task, realtime_task}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in done:
                logger.info(f"Relay task finished: {task.get_name()}")
        finally:
            for task in (telephony_task, realtime_task, self._configure_task):
                await self._cancel(task)
            await self.close()

    async def receive_from_telephony(self) -> None:
        """Process Twilio frames in arrival order until the socket closes."""
        while True:
            message = await self.telephony_ws.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"Twilio WebSocket disconnected: {message.get('code')}")
                return

            # Binary frames are not part of the protocol but must not end the call
            raw = message.get("text") or message.get("bytes")
            if raw is None:
                continue
            await self.handle_telephony_message(raw)

    async def receive_from_realtime(self) -> None:
        """Process OpenAI messages in arrival order until the connection closes."""
        async for message in self.realtime_client.receive_events():
            await self.handle_realtime_message(message)

    async def handle_telephony_message(self, raw: Union[str, bytes]) -> None:
        await self._dispatch(raw, "event", self.telephony_handlers, "Twilio")

    async def handle_realtime_message(self, raw: Union[str, bytes]) -> None:
        await self._dispatch(raw, "type", self.realtime_handlers, "OpenAI")

    async def _dispatch(
        self,
        raw: Union[str, bytes],
        discriminator: str,
        handlers: Dict[str, HandlerFunc],
        source: str,
    ) -> None:
        """Decode one message and route it to its handler; errors stay inside this message."""
        try:
            message = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Error parsing {source} message: {e}. Message: {raw[:200]!r}")
            return

        if not isinstance(message, dict):
            logger.warning(f"Ignoring non-object {source} message: {raw[:200]!r}")
            return

        message_type = message.get(discriminator)
        handler = handlers.get(message_type) if isinstance(message_type, str) else None
        if handler is None:
            logger.debug(f"Received unhandled {source} {discriminator}: {message_type}")
            return

        try:
            await handler(message, self)
        except ValidationError as e:
            logger.error(f"Invalid {source} {message_type} message: {e}")
        except Exception as e:
            logger.error(f"Error processing {source} {message_type} message: {e}", exc_info=True)

    async def configure(self) -> bool:
        """
        Send the session.update message to OpenAI, at most once per session.

        Returns:
            bool: True if this call sent the configuration
        """
        if self._configured:
            return False
        self._configured = True

        session_update = SessionUpdateEvent(
            session=SessionConfig(
                voice=self.settings.voice,
                instructions=self.settings.system_message,
                temperature=self.settings.temperature,
            )
        )
        logger.info("Sending session update")
        logger.debug(f"Session update: {session_update.model_dump_json()}")
        sent = await self.realtime_client.send_event(session_update.model_dump())
        if not sent:
            logger.warning("Session update could not be sent to OpenAI")
        return sent

    async def _configure_after_delay(self) -> None:
        await asyncio.sleep(self.settings.session_update_delay)
        await self.configure()

    async def send_to_telephony(self, message: BaseModel) -> bool:
        """
        Send a message to Twilio if the media stream socket is still connected.

        Returns:
            bool: True if the message was sent
        """
        if self.telephony_ws.client_state != WebSocketState.CONNECTED:
            return False
        await self.telephony_ws.send_text(message.model_dump_json())
        return True

    async def send_mark(self) -> None:
        """Send a mark after forwarded audio so Twilio acknowledges playback."""
        if self.state.stream_sid is None:
            return
        if await self.send_to_telephony(OutgoingMarkMessage(streamSid=self.state.stream_sid)):
            self.state.mark_queue.append(MARK_NAME)

    async def close(self) -> None:
        """Close both sides of the relay; safe to call more than once."""
        if self.realtime_client.is_open:
            try:
                await self.realtime_client.close()
            except Exception as e:
                logger.warning(f"Error closing OpenAI Realtime connection: {e}")

        if self.telephony_ws.client_state == WebSocketState.CONNECTED:
            try:
                await self.telephony_ws.close()
            except RuntimeError as e:
                logger.debug(f"Twilio WebSocket already closed: {e}")
        logger.info(f"Relay session closed for stream: {self.state.stream_sid}")

    @staticmethod
    async def _cancel(task: Optional[asyncio.Task]) -> None:
        if task is None:
            return
        if task.done():
            if not task.cancelled() and task.exception() is not None:
                logger.error(f"Relay task {task.get_name()} failed: {task.exception()}")
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
