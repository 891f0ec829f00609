"""
Pydantic models for OpenAI Realtime API message structures.

This module provides type-safe models for the events exchanged with the OpenAI
Realtime API: the client events the relay sends and the server events it reads.
Server event models ignore unknown fields, since the API adds fields over time.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from voice_relay.config.constants import (
    AUDIO_FORMAT_G711_ULAW,
    DEFAULT_TEMPERATURE,
    DEFAULT_VOICE,
)


class RealtimeBaseMessage(BaseModel):
    """Base model for Realtime API messages."""

    model_config = ConfigDict(extra="ignore")

    type: str


# Client events (sent to OpenAI)
class TurnDetection(BaseModel):
    """Turn detection settings."""
    type: str = "server_vad"


class SessionConfig(BaseModel):
    """The session block of a session.update event."""

    turn_detection: TurnDetection = Field(default_factory=TurnDetection)
    input_audio_format: str = AUDIO_FORMAT_G711_ULAW
    output_audio_format: str = AUDIO_FORMAT_G711_ULAW
    voice: str = DEFAULT_VOICE
    instructions: str
    modalities: List[str] = Field(default_factory=lambda: ["text", "audio"])
    temperature: float = DEFAULT_TEMPERATURE


class SessionUpdateEvent(RealtimeBaseMessage):
    """session.update event configuring audio formats, voice and instructions."""

    type: Literal["session.update"] = "session.update"
    session: SessionConfig


class InputAudioBufferAppendEvent(RealtimeBaseMessage):
    """input_audio_buffer.append event carrying caller audio."""

    type: Literal["input_audio_buffer.append"] = "input_audio_buffer.append"
    audio: str = Field(..., description="Base64-encoded G.711 mu-law audio")


class ConversationItemTruncateEvent(RealtimeBaseMessage):
    """conversation.item.truncate event cutting off assistant audio the caller did not hear."""

    type: Literal["conversation.item.truncate"] = "conversation.item.truncate"
    item_id: str
    content_index: int = 0
    audio_end_ms: int = Field(..., ge=0)


# Server events (received from OpenAI)
class ResponseAudioDeltaEvent(RealtimeBaseMessage):
    """response.audio.delta event carrying a chunk of assistant audio."""

    type: Literal["response.audio.delta"]
    delta: Optional[str] = None
    item_id: Optional[str] = None
    response_id: Optional[str] = None


class SpeechStartedEvent(RealtimeBaseMessage):
    """input_audio_buffer.speech_started event from server VAD."""

    type: Literal["input_audio_buffer.speech_started"]
    audio_start_ms: Optional[int] = None
    item_id: Optional[str] = None


class SessionEvent(RealtimeBaseMessage):
    """session.created / session.updated events."""

    session: Dict[str, Any] = Field(default_factory=dict)


class RealtimeError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = None
    code: Optional[str] = None
    message: Optional[str] = None


class ErrorEvent(RealtimeBaseMessage):
    """Error event from OpenAI Realtime API."""

    type: Literal["error"]
    error: RealtimeError = Field(default_factory=RealtimeError)
