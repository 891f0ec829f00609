"""
Twilio Realtime Voice Relay - Twilio Media Streams to OpenAI Realtime API

This application bridges phone calls carried by Twilio Media Streams with OpenAI's
Realtime API. Both sides speak 8kHz G.711 mu-law, so audio is relayed without
transcoding; the relay only correlates streams and translates a handful of
control events.

Architecture Overview:
- FastAPI server exposing the TwiML, outbound call and media stream endpoints
- One CallRelaySession per media stream connection, owning its own OpenAI
  Realtime WebSocket
- No state shared between calls

Key Components:
- bot: RealtimeClient and CallRelaySession
- config: constants, environment settings and logging setup
- handlers: Twilio and OpenAI event handlers
- models: per-call state and Pydantic wire schemas
- services: Twilio call creation and TwiML
- websocket_manager: accepts media stream connections and runs sessions

Getting Started:
1. Set up environment variables (or a .env file):
   - OPENAI_API_KEY: Your OpenAI API key
   - TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_FROM_NUMBER, TWILIO_TO_NUMBER:
     only needed to place outbound calls
   - PORT: Port to run the server on (default 5050)

2. Start the server:
   ```bash
   python run.py
   ```

3. Point your Twilio number's voice webhook at https://your-host/incoming-call
"""
