"""
WebSocket connection manager for Twilio Media Streams.

This module accepts media stream connections from Twilio and runs one
``CallRelaySession`` per connection. Sessions are independent: the manager only
keeps the set of live sessions so the health endpoint can report a count.
"""

import logging
from typing import Optional, Set

from fastapi import WebSocket

from voice_relay.bot.call_relay_session import CallRelaySession
from voice_relay.bot.realtime_api import RealtimeClient
from voice_relay.config.constants import LOGGER_NAME
from voice_relay.config.settings import ConfigurationError, RelaySettings

logger = logging.getLogger(LOGGER_NAME)


class MediaStreamManager:
    """Runs a relay session for each Twilio media stream WebSocket."""

    def __init__(self):
        self.active_sessions: Set[CallRelaySession] = set()

    @property
    def active_count(self) -> int:
        return len(self.active_sessions)

    def create_session(self, websocket: WebSocket, settings: RelaySettings) -> CallRelaySession:
        client = RealtimeClient(settings.openai_api_key, settings.realtime_model, settings.realtime_url)
        return CallRelaySession(websocket, client, settings)

    async def handle_websocket(self, websocket: WebSocket, settings: RelaySettings) -> None:
        """
        Handle a media stream connection throughout its lifecycle.

        Args:
            websocket: The FastAPI WebSocket connection from Twilio
            settings: Relay settings; the OpenAI API key is required
        """
        await websocket.accept()
        logger.info("Client connected to media stream")

        try:
            settings.validate_required()
        except ConfigurationError as e:
            logger.error(f"Cannot relay call: {e}")
            await websocket.close()
            return

        session: Optional[CallRelaySession] = None
        try:
            session = self.create_session(websocket, settings)
            self.active_sessions.add(session)
            await session.run()
        except Exception as e:
            logger.error(f"Error in media stream connection: {e}", exc_info=True)
        finally:
            if session is not None:
                self.active_sessions.discard(session)
            logger.info("Client disconnected from media stream")
