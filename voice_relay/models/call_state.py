"""
Per-call relay state.

One ``CallState`` is created for each telephony media stream connection and is
only ever touched by the ``CallRelaySession`` that owns it.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class CallState:
    """
    Mutable per-call state shared between the telephony and realtime handlers.

    Attributes:
        stream_sid: Twilio stream identifier; set by the "start" event and required
            on every media/mark/clear frame sent back to Twilio
        latest_media_timestamp: Timestamp (ms) of the most recent inbound media frame
        response_start_timestamp: Media timestamp at which the current assistant
            response started playing, or None when no response is in flight
        last_assistant_item_id: Item id of the most recent assistant audio
        mark_queue: Names of marks sent to Twilio and not yet echoed back
    """

    stream_sid: Optional[str] = None
    latest_media_timestamp: int = 0
    response_start_timestamp: Optional[int] = None
    last_assistant_item_id: Optional[str] = None
    mark_queue: List[str] = field(default_factory=list)

    def begin_stream(self, stream_sid: str) -> None:
        """Bind a new stream and reset the response window."""
        self.stream_sid = stream_sid
        self.response_start_timestamp = None
        self.latest_media_timestamp = 0
        self.mark_queue.clear()

    def record_response_audio(self, item_id: Optional[str]) -> None:
        """Track the response window for an assistant audio delta."""
        if self.response_start_timestamp is None:
            self.response_start_timestamp = self.latest_media_timestamp
        if item_id:
            self.last_assistant_item_id = item_id

    def elapsed_response_ms(self) -> int:
        """Milliseconds of assistant audio the caller has heard so far."""
        if self.response_start_timestamp is None:
            return 0
        return max(0, self.latest_media_timestamp - self.response_start_timestamp)

    def reset_response(self) -> None:
        self.last_assistant_item_id = None
        self.response_start_timestamp = None
        self.mark_queue.clear()
