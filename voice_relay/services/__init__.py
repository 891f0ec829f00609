"""
Services module for external API integrations in the voice relay.

Key components:
- twilio_service: ``TwilioCallService`` places outbound calls with the Twilio REST
  API; ``build_stream_twiml`` produces the TwiML that greets the caller and connects
  the call to the ``/media-stream`` WebSocket.
"""
