"""
FastAPI server relaying Twilio Media Streams to the OpenAI Realtime API.

This module creates the FastAPI application that Twilio talks to:
- ``/incoming-call`` returns TwiML that greets the caller and opens a media stream
- ``/media-stream`` is the WebSocket endpoint where each call gets a relay session
- ``/outbound-call`` asks Twilio to dial the configured number and connect it to the relay

Configuration is read from the environment (and a .env file, if present).
"""

from fastapi import Depends, FastAPI, Request, WebSocket
from fastapi.responses import JSONResponse, Response

from voice_relay.config.constants import INCOMING_CALL_PATH, MEDIA_STREAM_PATH
from voice_relay.config.logging_config import configure_logging
from voice_relay.config.settings import ConfigurationError, RelaySettings, get_settings
from voice_relay.services.twilio_service import TwilioCallError, TwilioCallService, build_stream_twiml
from voice_relay.websocket_manager import MediaStreamManager

# Configure logging
logger = configure_logging()

# Create FastAPI application
app = FastAPI(
    title="Twilio Realtime Voice Relay",
    description="Relay between Twilio Media Streams and the OpenAI Realtime API",
    version="1.0.0",
)

# Create media stream manager
media_stream_manager = MediaStreamManager()


def request_host(request: Request) -> str:
    return request.headers.get("host") or request.url.hostname


@app.get("/")
async def root():
    """Root endpoint to display basic information about the API."""
    return {
        "message": "Twilio Media Stream Server is running!",
        "version": app.version,
        "endpoints": {
            INCOMING_CALL_PATH: "TwiML connecting a call to the media stream",
            "/outbound-call": "Place an outbound call through Twilio",
            MEDIA_STREAM_PATH: "WebSocket endpoint for Twilio Media Streams",
            "/health": "Health check endpoint",
        },
    }


@app.get("/health")
async def health_check(settings: RelaySettings = Depends(get_settings)):
    """Health check endpoint reporting configuration and live call count."""
    return {
        "status": "healthy",
        "openai_api_key_configured": bool(settings.openai_api_key),
        "twilio_configured": settings.twilio_configured,
        "active_sessions": media_stream_manager.active_count,
    }


@app.api_route(INCOMING_CALL_PATH, methods=["GET", "POST"])
@app.api_route("/twilio-voice-twiml", methods=["GET", "POST"])
async def incoming_call(request: Request):
    """Return TwiML that connects the answered call to the media stream WebSocket."""
    host = request_host(request)
    logger.info(f"Using WebSocket URL: wss://{host}{MEDIA_STREAM_PATH}")
    return Response(content=build_stream_twiml(host), media_type="application/xml")


@app.post("/outbound-call")
@app.get("/make-call")
async def outbound_call(request: Request, settings: RelaySettings = Depends(get_settings)):
    """Call the configured TWILIO_TO_NUMBER and connect it back to this relay."""
    try:
        service = TwilioCallService(settings)
        call_sid = await service.create_outbound_call(request_host(request))
    except ConfigurationError as e:
        logger.error(f"Cannot place outbound call: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    except TwilioCallError as e:
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    except Exception as e:
        logger.error(f"Error initiating call: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    return {"success": True, "message": "Call initiated", "callSid": call_sid}


@app.websocket(MEDIA_STREAM_PATH)
async def media_stream(websocket: WebSocket, settings: RelaySettings = Depends(get_settings)):
    """WebSocket endpoint for Twilio Media Streams; one relay session per connection."""
    await media_stream_manager.handle_websocket(websocket, settings)
