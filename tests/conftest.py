import asyncio
import json
import logging

import pytest
from starlette.websockets import WebSocketState

from voice_relay.bot.call_relay_session import CallRelaySession
from voice_relay.config.settings import RelaySettings


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


class FakeTelephonyWebSocket:
    """A Twilio media stream socket that replays messages and records what is sent."""

    def __init__(self, messages=None, hold_open=False, linger=0.0):
        self.messages = list(messages or [])
        self.hold_open = hold_open
        self.linger = linger
        self.sent = []
        self.client_state = WebSocketState.CONNECTED
        self.accepted = False
        self.closed = False
        self._closed_event = None

    def _event(self):
        if self._closed_event is None:
            self._closed_event = asyncio.Event()
        return self._closed_event

    async def accept(self):
        self.accepted = True

    async def receive(self):
        if self.messages:
            message = self.messages.pop(0)
            if isinstance(message, bytes):
                return {"type": "websocket.receive", "bytes": message}
            text = message if isinstance(message, str) else json.dumps(message)
            return {"type": "websocket.receive", "text": text}
        if self.linger:
            await asyncio.sleep(self.linger)
        if self.hold_open:
            await self._event().wait()
        # Peer hung up
        self.client_state = WebSocketState.DISCONNECTED
        return {"type": "websocket.disconnect", "code": 1000}

    async def send_text(self, text):
        self.sent.append(json.loads(text))

    async def close(self, code=1000):
        self.closed = True
        self.client_state = WebSocketState.DISCONNECTED
        self._event().set()


class FakeRealtimeClient:
    """An OpenAI Realtime connection that replays events and records what is sent."""

    def __init__(self, events=None, connect_result=True, is_open=False, hold_open=True):
        self.events = list(events or [])
        self.connect_result = connect_result
        self.hold_open = hold_open
        self.sent = []
        self.connected = False
        self.closed = False
        self._open = is_open
        self._closed_event = None

    def _event(self):
        if self._closed_event is None:
            self._closed_event = asyncio.Event()
        return self._closed_event

    @property
    def is_open(self):
        return self._open

    async def connect(self):
        self.connected = True
        self._open = self.connect_result
        return self.connect_result

    async def send_event(self, event):
        if not self._open:
            return False
        self.sent.append(event)
        return True

    async def receive_events(self):
        for event in self.events:
            yield event if isinstance(event, str) else json.dumps(event)
        if self.hold_open:
            await self._event().wait()
        self._open = False

    async def close(self):
        self.closed = True
        self._open = False
        self._event().set()

    def sent_types(self):
        return [event["type"] for event in self.sent]


@pytest.fixture
def settings():
    return RelaySettings(openai_api_key="test-api-key", session_update_delay=0)


@pytest.fixture
def telephony_ws():
    return FakeTelephonyWebSocket()


@pytest.fixture
def realtime_client():
    return FakeRealtimeClient(is_open=True)


@pytest.fixture
def session(telephony_ws, realtime_client, settings):
    return CallRelaySession(telephony_ws, realtime_client, settings)


def start_event(stream_sid="CA123"):
    return {"event": "start", "start": {"streamSid": stream_sid}}


def media_event(payload="AAAA", timestamp=10):
    return {"event": "media", "media": {"timestamp": timestamp, "payload": payload}}


def audio_delta(delta="BBBB", item_id=None):
    event = {"type": "response.audio.delta", "delta": delta}
    if item_id is not None:
        event["item_id"] = item_id
    return event
