"""
Pydantic models for Twilio Media Stream message schemas.

This module defines structured data models for the incoming and outgoing messages
of the Twilio Media Streams WebSocket protocol. Incoming models only declare the
fields the relay reads; anything else Twilio sends is ignored so new fields never
break parsing.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from voice_relay.config.constants import (
    TWILIO_EVENT_CLEAR,
    TWILIO_EVENT_MARK,
    TWILIO_EVENT_MEDIA,
)


class TwilioMessage(BaseModel):
    """Base model for all Twilio Media Stream messages."""

    model_config = ConfigDict(extra="ignore")

    event: str = Field(..., description="Event discriminator")


# Incoming messages
class StartMetadata(BaseModel):
    """The "start" block of a start message."""

    model_config = ConfigDict(extra="ignore")

    streamSid: str = Field(..., min_length=1, description="Stream identifier")
    callSid: Optional[str] = Field(None, description="Call identifier")
    accountSid: Optional[str] = None


class StartMessage(TwilioMessage):
    """Model for the start event that opens a media stream."""

    event: Literal["start"]
    start: StartMetadata


class MediaPayload(BaseModel):
    """The "media" block of an inbound media message."""

    model_config = ConfigDict(extra="ignore")

    timestamp: Optional[int] = Field(None, ge=0, description="Milliseconds since the stream started")
    payload: str = Field(..., description="Base64-encoded G.711 mu-law audio")
    track: Optional[str] = None
    chunk: Optional[int] = None


class MediaMessage(TwilioMessage):
    """Model for an inbound media event carrying caller audio."""

    event: Literal["media"]
    media: MediaPayload


class MarkMetadata(BaseModel):
    name: Optional[str] = None


class MarkMessage(TwilioMessage):
    """Model for a mark event echoed back by Twilio after playback."""

    event: Literal["mark"]
    streamSid: Optional[str] = None
    mark: Optional[MarkMetadata] = None


class StopMessage(TwilioMessage):
    """Model for the stop event that ends a media stream."""

    event: Literal["stop"]
    streamSid: Optional[str] = None


# Outgoing messages
class OutgoingMedia(BaseModel):
    payload: str = Field(..., description="Base64-encoded G.711 mu-law audio")

    @field_validator("payload")
    def validate_payload(cls, v):
        """Validate that the payload is not empty."""
        if not v:
            raise ValueError("Audio payload cannot be empty")
        return v


class OutgoingMediaMessage(TwilioMessage):
    """Model for a media event sending assistant audio to Twilio."""

    event: Literal["media"] = TWILIO_EVENT_MEDIA
    streamSid: str
    media: OutgoingMedia


class OutgoingMarkMessage(TwilioMessage):
    """Model for a mark event following forwarded audio."""

    event: Literal["mark"] = TWILIO_EVENT_MARK
    streamSid: str


class ClearMessage(TwilioMessage):
    """Model for a clear event that flushes audio buffered by Twilio."""

    event: Literal["clear"] = TWILIO_EVENT_CLEAR
    streamSid: str
