"""
Models module for data structures and state management in the voice relay.

Key components:
- call_state: ``CallState``, the mutable state owned by one relay session
  (stream id, media timestamps, last assistant item, pending marks).
- message_schemas: Pydantic models for the Twilio Media Streams protocol.
- openai_schemas: Pydantic models for the OpenAI Realtime API events the relay
  sends and consumes.

Usage examples:
```python
from voice_relay.models.message_schemas import MediaMessage, OutgoingMarkMessage

media = MediaMessage(**{"event": "media", "media": {"timestamp": "10", "payload": "AAAA"}})
mark = OutgoingMarkMessage(streamSid="MZ123")
await websocket.send_text(mark.model_dump_json())
```
"""

from voice_relay.models.call_state import CallState
from voice_relay.models.message_schemas import (
    ClearMessage,
    MarkMessage,
    MediaMessage,
    OutgoingMarkMessage,
    OutgoingMediaMessage,
    StartMessage,
    StopMessage,
)
from voice_relay.models.openai_schemas import (
    ConversationItemTruncateEvent,
    ErrorEvent,
    InputAudioBufferAppendEvent,
    ResponseAudioDeltaEvent,
    SessionConfig,
    SessionUpdateEvent,
    SpeechStartedEvent,
)
