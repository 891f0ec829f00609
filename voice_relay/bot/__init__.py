"""
Bot module bridging Twilio Media Streams with the OpenAI Realtime API.

Key components:
- RealtimeClient: one outbound WebSocket connection to the OpenAI Realtime API,
  authenticated with the configured API key. Opened once, never reconnected.
- CallRelaySession: the per-call relay. It owns a RealtimeClient and a CallState,
  forwards caller audio to OpenAI and assistant audio back to Twilio, and tears
  both sockets down together.

Usage examples:
```python
from voice_relay.bot import CallRelaySession, RealtimeClient

client = RealtimeClient(settings.openai_api_key, settings.realtime_model)
session = CallRelaySession(websocket, client, settings)
await session.run()  # returns when either side has closed
```
"""

from voice_relay.bot.realtime_api import RealtimeClient
from voice_relay.bot.call_relay_session import CallRelaySession

__all__ = ["RealtimeClient", "CallRelaySession"]
