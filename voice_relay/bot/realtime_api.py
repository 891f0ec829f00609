import asyncio
import json
import logging
import time
from typing import Any, AsyncIterator, Dict, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, ConnectionClosedOK

from voice_relay.config.constants import DEFAULT_REALTIME_URL, LOGGER_NAME, OPENAI_BETA_HEADER

logger = logging.getLogger(LOGGER_NAME)

CONNECTION_TIMEOUT = 30  # seconds
SEND_TIMEOUT = 5.0  # seconds

# WebSocket configuration for low latency
WS_MAX_SIZE = 16 * 1024 * 1024  # 16MB - large enough for audio chunks
WS_MAX_QUEUE = 32  # Small queue to prevent buffering
WS_PING_INTERVAL = 5  # 5 seconds between pings


class RealtimeClient:
    """
    Client for one connection to the OpenAI Realtime API over WebSocket.

    A client is opened once and never reconnected: when the socket drops, the
    relay session that owns it simply stops forwarding audio in that direction.
    """
    def __init__(self, api_key: str, model: str, url: str = DEFAULT_REALTIME_URL):
        self.api_key = api_key
        self.model = model
        self.url = url
        self.ws = None
        self._connection_active = False
        self._is_closing = False
        logger.info(f"RealtimeClient initialized with model: {model}")

    @property
    def is_open(self) -> bool:
        return self._connection_active and self.ws is not None

    @property
    def endpoint(self) -> str:
        return f"{self.url}?model={self.model}"

    async def connect(self) -> bool:
        """
        Connect to the OpenAI Realtime WebSocket endpoint.

        Returns:
            bool: True if connection was successful, False otherwise
        """
        if self.ws is not None or self._is_closing:
            logger.warning("Cannot connect - client was already used")
            return False

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "OpenAI-Beta": OPENAI_BETA_HEADER,
        }

        try:
            logger.info(f"Connecting to OpenAI Realtime API with model: {self.model}")
            logger.debug(f"WebSocket URL: {self.endpoint}")
            connection_start = time.time()
            self.ws = await asyncio.wait_for(
                websockets.connect(
                    self.endpoint,
                    max_size=WS_MAX_SIZE,
                    max_queue=WS_MAX_QUEUE,
                    ping_interval=WS_PING_INTERVAL,
                    ping_timeout=10,
                    compression=None,  # Disable compression for lower latency
                    additional_headers=headers
                ),
                timeout=CONNECTION_TIMEOUT
            )
            logger.debug(f"WebSocket connection established in {time.time() - connection_start:.2f} seconds")
            self._connection_active = True
            logger.info("Connected to the OpenAI Realtime API")
            return True
        except asyncio.TimeoutError:
            logger.error(f"Timeout while connecting to OpenAI Realtime API (after {CONNECTION_TIMEOUT}s)")
            return False
        except Exception as e:
            logger.error(f"Failed to connect to OpenAI Realtime API: {e}")
            return False

    async def send_event(self, event: Union[Dict[str, Any], str]) -> bool:
        """
        Send one client event to OpenAI.

        Args:
            event: Event dictionary, or an already serialized JSON string

        Returns:
            bool: True if the event was sent, False if the connection is not open
            or the send failed
        """
        if not self.is_open:
            logger.debug("Cannot send event - connection not open")
            return False

        message = event if isinstance(event, str) else json.dumps(event)
        try:
            await asyncio.wait_for(self.ws.send(message), timeout=SEND_TIMEOUT)
            return True
        except asyncio.TimeoutError:
            logger.warning("Timeout while sending event to OpenAI")
            return False
        except ConnectionClosed as e:
            logger.warning(f"Connection closed while sending event: {e}")
            self._connection_active = False
            return False

    async def receive_events(self) -> AsyncIterator[Union[str, bytes]]:
        """
        Yield raw messages from OpenAI until the connection closes.

        Closure is not an error: the iterator just ends and the client is
        marked as no longer open.
        """
        if self.ws is None:
            logger.error("WebSocket not initialized for receive loop")
            return

        try:
            async for message in self.ws:
                yield message
        except ConnectionClosedOK:
            logger.info("Disconnected from the OpenAI Realtime API")
        except ConnectionClosedError as e:
            logger.warning(f"OpenAI Realtime connection closed unexpectedly: {e}")
        finally:
            self._connection_active = False

    async def close(self) -> None:
        """Close the WebSocket connection."""
        self._is_closing = True
        self._connection_active = False

        if self.ws is not None:
            logger.info("Closing OpenAI Realtime client")
            await self.ws.close()
