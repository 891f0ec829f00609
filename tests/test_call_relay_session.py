"""
Unit tests for CallRelaySession.

These tests drive the relay with fake Twilio and OpenAI sockets and check what
each side receives.
"""

import asyncio
import json

import pytest

from unittest.mock import patch

from conftest import (
    FakeRealtimeClient,
    FakeTelephonyWebSocket,
    audio_delta,
    media_event,
    start_event,
)
from voice_relay.bot.call_relay_session import CallRelaySession


async def send_telephony(session, message):
    await session.handle_telephony_message(json.dumps(message))


async def send_realtime(session, message):
    await session.handle_realtime_message(json.dumps(message))


@pytest.mark.asyncio
async def test_end_to_end_relay(session, telephony_ws, realtime_client):
    """Start, caller audio, then assistant audio flow through both sides."""
    await send_telephony(session, start_event("CA123"))
    assert session.state.stream_sid == "CA123"

    await send_telephony(session, media_event("AAAA", 10))
    assert realtime_client.sent == [{"type": "input_audio_buffer.append", "audio": "AAAA"}]

    await send_realtime(session, audio_delta("BBBB", item_id="item1"))
    assert telephony_ws.sent == [
        {"event": "media", "streamSid": "CA123", "media": {"payload": "BBBB"}},
        {"event": "mark", "streamSid": "CA123"},
    ]
    assert session.state.last_assistant_item_id == "item1"


@pytest.mark.asyncio
async def test_media_before_start_is_not_forwarded(session, realtime_client):
    for timestamp in (0, 20, 40):
        await send_telephony(session, media_event("AAAA", timestamp))
    assert realtime_client.sent == []

    await send_telephony(session, start_event("CA123"))
    await send_telephony(session, media_event("CCCC", 60))
    assert realtime_client.sent == [{"type": "input_audio_buffer.append", "audio": "CCCC"}]


@pytest.mark.asyncio
async def test_media_dropped_when_realtime_not_open(telephony_ws, settings):
    client = FakeRealtimeClient(is_open=False)
    session = CallRelaySession(telephony_ws, client, settings)

    await send_telephony(session, start_event())
    await send_telephony(session, media_event("AAAA", 30))

    assert client.sent == []
    assert session.state.latest_media_timestamp == 30


@pytest.mark.asyncio
async def test_media_timestamp_accepts_twilio_string(session):
    await send_telephony(session, start_event())
    await send_telephony(session, {"event": "media", "media": {"timestamp": "120", "payload": "AAAA"}})
    assert session.state.latest_media_timestamp == 120


@pytest.mark.asyncio
async def test_stream_sid_on_every_outbound_media(session, telephony_ws):
    await send_telephony(session, start_event("SID123"))
    for delta in ("QUJD", "REVG", "R0hJ"):
        await send_realtime(session, audio_delta(delta))

    assert len(telephony_ws.sent) == 6
    assert all(message["streamSid"] == "SID123" for message in telephony_ws.sent)

    await send_telephony(session, start_event("SID456"))
    await send_realtime(session, audio_delta("QUJD"))
    assert telephony_ws.sent[-2]["streamSid"] == "SID456"
    assert telephony_ws.sent[-1] == {"event": "mark", "streamSid": "SID456"}


@pytest.mark.asyncio
async def test_audio_delta_sends_one_media_then_one_mark(session, telephony_ws):
    await send_telephony(session, start_event("CA1"))
    await send_realtime(session, audio_delta("QUJD"))

    assert [message["event"] for message in telephony_ws.sent] == ["media", "mark"]
    assert telephony_ws.sent[0]["media"]["payload"] == "QUJD"
    assert session.state.mark_queue == ["responsePart"]


@pytest.mark.asyncio
async def test_audio_delta_before_start_is_dropped(session, telephony_ws):
    await send_realtime(session, audio_delta("QUJD", item_id="item1"))
    assert telephony_ws.sent == []
    assert session.state.response_start_timestamp is None


@pytest.mark.asyncio
async def test_empty_or_missing_delta_is_ignored(session, telephony_ws):
    await send_telephony(session, start_event())
    await send_realtime(session, {"type": "response.audio.delta", "delta": ""})
    await send_realtime(session, {"type": "response.audio.delta"})
    assert telephony_ws.sent == []


@pytest.mark.asyncio
async def test_response_start_timestamp_set_once_per_burst(session):
    await send_telephony(session, start_event())
    await send_telephony(session, media_event(timestamp=100))
    assert session.state.response_start_timestamp is None

    await send_realtime(session, audio_delta("QUJD", item_id="item1"))
    assert session.state.response_start_timestamp == 100

    await send_telephony(session, media_event(timestamp=200))
    await send_realtime(session, audio_delta("QUJD", item_id="item1"))
    assert session.state.response_start_timestamp == 100

    await send_telephony(session, start_event("CA999"))
    assert session.state.response_start_timestamp is None
    assert session.state.latest_media_timestamp == 0


@pytest.mark.asyncio
async def test_malformed_json_does_not_end_session(session, telephony_ws, realtime_client):
    await session.handle_telephony_message("{not json")
    await session.handle_realtime_message("not json either}")
    await session.handle_telephony_message(json.dumps(["a", "list"]))

    await send_telephony(session, start_event())
    await send_telephony(session, media_event("AAAA"))
    assert realtime_client.sent == [{"type": "input_audio_buffer.append", "audio": "AAAA"}]


@pytest.mark.asyncio
async def test_non_string_discriminator_is_ignored(session, telephony_ws, realtime_client):
    await send_telephony(session, {"event": ["start"], "start": {"streamSid": "CA123"}})
    await send_realtime(session, {"type": {}, "delta": "BBBB"})
    await send_realtime(session, {"type": ["response.audio.delta"], "delta": "BBBB"})

    assert session.state.stream_sid is None
    assert telephony_ws.sent == []

    await send_telephony(session, start_event())
    await send_telephony(session, media_event("AAAA"))
    assert realtime_client.sent == [{"type": "input_audio_buffer.append", "audio": "AAAA"}]


@pytest.mark.asyncio
async def test_missing_fields_are_logged_not_raised(session, realtime_client):
    await send_telephony(session, {"event": "start", "start": {}})
    await send_telephony(session, {"event": "media"})
    await send_telephony(session, {"event": "start"})
    assert session.state.stream_sid is None
    assert realtime_client.sent == []


@pytest.mark.asyncio
async def test_unknown_events_are_ignored(session, telephony_ws, realtime_client):
    await send_telephony(session, start_event())
    await send_telephony(session, {"event": "dtmf", "dtmf": {"digit": "1"}})
    await send_telephony(session, {"event": "connected", "protocol": "Call"})
    await send_realtime(session, {"type": "response.done"})
    await send_realtime(session, {"type": "rate_limits.updated", "rate_limits": []})
    await send_realtime(session, {"no_type": True})

    assert telephony_ws.sent == []
    assert realtime_client.sent == []


@pytest.mark.asyncio
async def test_configure_sends_session_update_once(session, realtime_client, settings):
    assert await session.configure() is True
    assert await session.configure() is False

    assert realtime_client.sent == [
        {
            "type": "session.update",
            "session": {
                "turn_detection": {"type": "server_vad"},
                "input_audio_format": "g711_ulaw",
                "output_audio_format": "g711_ulaw",
                "voice": "alloy",
                "instructions": settings.system_message,
                "modalities": ["text", "audio"],
                "temperature": 0.8,
            },
        }
    ]


@pytest.mark.asyncio
async def test_session_created_triggers_configuration(session, realtime_client):
    await send_realtime(session, {"type": "session.created", "session": {"id": "sess_1"}})
    await send_realtime(session, {"type": "session.updated", "session": {"id": "sess_1"}})
    assert realtime_client.sent_types() == ["session.update"]
    assert session.configured


@pytest.mark.asyncio
async def test_error_event_does_not_end_session(session, realtime_client):
    await send_realtime(session, {"type": "error", "error": {"code": "invalid_value", "message": "bad"}})
    await send_telephony(session, start_event())
    await send_telephony(session, media_event("AAAA"))
    assert realtime_client.sent_types() == ["input_audio_buffer.append"]


@pytest.mark.asyncio
async def test_echoed_mark_pops_pending_mark(session):
    await send_telephony(session, start_event())
    await send_realtime(session, audio_delta("QUJD"))
    await send_realtime(session, audio_delta("QUJD"))
    assert len(session.state.mark_queue) == 2

    await send_telephony(session, {"event": "mark", "streamSid": "CA123", "mark": {"name": "responsePart"}})
    assert len(session.state.mark_queue) == 1


@pytest.mark.asyncio
async def test_no_sends_after_telephony_disconnect(session, telephony_ws):
    await send_telephony(session, start_event())
    await telephony_ws.close()
    await send_realtime(session, audio_delta("QUJD"))
    assert telephony_ws.sent == []


@pytest.mark.asyncio
async def test_run_closes_realtime_when_telephony_closes(settings):
    telephony_ws = FakeTelephonyWebSocket([start_event("CA123"), media_event("AAAA", 10)])
    client = FakeRealtimeClient(hold_open=True)
    session = CallRelaySession(telephony_ws, client, settings)

    await asyncio.wait_for(session.run(), timeout=2)

    assert client.connected
    assert client.closed
    assert {"type": "input_audio_buffer.append", "audio": "AAAA"} in client.sent
    assert not client.is_open


@pytest.mark.asyncio
async def test_run_closes_telephony_when_realtime_closes(settings):
    telephony_ws = FakeTelephonyWebSocket([start_event("CA123")], hold_open=True)
    client = FakeRealtimeClient(events=[], hold_open=False)
    session = CallRelaySession(telephony_ws, client, settings)

    await asyncio.wait_for(session.run(), timeout=2)

    assert telephony_ws.closed


@pytest.mark.asyncio
async def test_run_sends_configuration_after_delay(settings):
    telephony_ws = FakeTelephonyWebSocket([], linger=0.05)
    client = FakeRealtimeClient(hold_open=True)
    session = CallRelaySession(telephony_ws, client, settings)

    await asyncio.wait_for(session.run(), timeout=2)

    assert client.sent_types() == ["session.update"]


@pytest.mark.asyncio
async def test_run_relays_assistant_audio(settings):
    telephony_ws = FakeTelephonyWebSocket([start_event("CA123")], linger=0.05)
    client = FakeRealtimeClient(hold_open=True)
    session = CallRelaySession(telephony_ws, client, settings)
    await send_telephony(session, start_event("CA123"))
    client.events = [
        "garbage",
        {"type": "response.audio.delta", "delta": "BBBB", "item_id": "item1"},
    ]

    await asyncio.wait_for(session.run(), timeout=2)

    assert {"event": "media", "streamSid": "CA123", "media": {"payload": "BBBB"}} in telephony_ws.sent


@pytest.mark.asyncio
async def test_run_without_realtime_connection_drains_telephony(settings):
    telephony_ws = FakeTelephonyWebSocket([start_event(), media_event("AAAA")])
    client = FakeRealtimeClient(connect_result=False)
    session = CallRelaySession(telephony_ws, client, settings)

    await asyncio.wait_for(session.run(), timeout=2)

    assert client.sent == []
    assert session.state.stream_sid == "CA123"
    assert not session.configured


@pytest.mark.asyncio
async def test_run_survives_binary_frames(settings):
    telephony_ws = FakeTelephonyWebSocket([b"\x00\x01", start_event("CA1"), b"{}", media_event("AAAA", 20)])
    client = FakeRealtimeClient(hold_open=True)
    session = CallRelaySession(telephony_ws, client, settings)

    await asyncio.wait_for(session.run(), timeout=2)

    assert session.state.stream_sid == "CA1"
    assert session.state.latest_media_timestamp == 20
    assert {"type": "input_audio_buffer.append", "audio": "AAAA"} in client.sent
    assert client.closed


@pytest.mark.asyncio
async def test_cancel_retrieves_failed_task_exception():
    async def fail():
        raise RuntimeError("configuration failed")

    task = asyncio.create_task(fail(), name="session.update")
    await asyncio.sleep(0)
    assert task.done()

    with patch("voice_relay.bot.call_relay_session.logger") as mock_logger:
        await CallRelaySession._cancel(task)

    mock_logger.error.assert_called_once()
    assert "configuration failed" in mock_logger.error.call_args.args[0]


@pytest.mark.asyncio
async def test_cancel_stops_running_task():
    task = asyncio.create_task(asyncio.sleep(10))

    await CallRelaySession._cancel(task)

    assert task.cancelled()
