"""
Twilio call control for the relay.

Places outbound calls through the Twilio REST API and builds the TwiML that
tells Twilio to greet the caller and then open a media stream to this server.
"""

import asyncio
import logging
from typing import Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient
from twilio.twiml.voice_response import Connect, VoiceResponse

from voice_relay.config.constants import (
    GREETING_MESSAGE,
    INCOMING_CALL_PATH,
    LOGGER_NAME,
    MEDIA_STREAM_PATH,
    READY_MESSAGE,
)
from voice_relay.config.settings import RelaySettings

logger = logging.getLogger(LOGGER_NAME)


class TwilioCallError(Exception):
    """Raised when Twilio rejects an outbound call."""


def build_stream_twiml(host: str) -> str:
    """
    Build the TwiML returned when Twilio answers a call.

    Args:
        host: Public host name (with port, if any) of this server

    Returns:
        TwiML document as a string
    """
    response = VoiceResponse()
    response.say(GREETING_MESSAGE)
    response.pause(length=1)
    response.say(READY_MESSAGE)
    connect = Connect()
    connect.stream(url=f"wss://{host}{MEDIA_STREAM_PATH}")
    response.append(connect)
    return str(response)


class TwilioCallService:
    """Creates outbound calls that are answered by the relay's TwiML endpoint."""

    def __init__(self, settings: RelaySettings, client: Optional[TwilioClient] = None):
        settings.validate_required(require_twilio=True)
        self.settings = settings
        self._client = client or TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)

    async def create_outbound_call(self, host: str) -> str:
        """
        Ask Twilio to dial TWILIO_TO_NUMBER and fetch call instructions from this server.

        Args:
            host: Public host name of this server, used for the TwiML callback URL

        Returns:
            The Call SID of the new call

        Raises:
            TwilioCallError: If Twilio rejects the request
        """
        twiml_url = f"https://{host}{INCOMING_CALL_PATH}"
        loop = asyncio.get_running_loop()
        try:
            # The Twilio helper library is synchronous
            call = await loop.run_in_executor(
                None,
                lambda: self._client.calls.create(
                    url=twiml_url,
                    to=self.settings.twilio_to_number,
                    from_=self.settings.twilio_from_number,
                ),
            )
        except TwilioRestException as e:
            logger.error(f"Error initiating call: {e}")
            raise TwilioCallError(e.msg) from e

        logger.info(f"Call initiated. Call SID: {call.sid}")
        return call.sid
