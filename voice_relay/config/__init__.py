"""
Configuration module for the Twilio to OpenAI Realtime voice relay.

Key components:
- constants: wire-protocol event names, audio format and default model settings.
- settings: ``RelaySettings`` read from the environment (and an optional .env file),
  plus ``ConfigurationError`` for missing credentials.
- logging_config: console and rotating-file logging for the ``voice_relay`` logger.

Usage examples:
```python
from voice_relay.config.logging_config import configure_logging
from voice_relay.config.settings import get_settings

logger = configure_logging()
settings = get_settings()
settings.validate_required(require_twilio=True)
```
"""
