"""
Environment-based settings for the relay.

Values are read from the process environment (optionally populated from a
``.env`` file) into a validated ``RelaySettings`` model. Nothing here exits the
process: callers decide whether a missing value is fatal (``run.py``) or a
per-request failure (the outbound call endpoint).
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Mapping, Optional

import dotenv
from pydantic import BaseModel, Field

from voice_relay.config.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_REALTIME_MODEL,
    DEFAULT_REALTIME_URL,
    DEFAULT_SESSION_UPDATE_DELAY,
    DEFAULT_SYSTEM_MESSAGE,
    DEFAULT_TEMPERATURE,
    DEFAULT_VOICE,
)

TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigurationError(ValueError):
    """Raised when a required setting is absent."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Missing required configuration: {', '.join(missing)}")


class RelaySettings(BaseModel):
    """Runtime settings for the relay server."""

    openai_api_key: Optional[str] = None
    realtime_model: str = DEFAULT_REALTIME_MODEL
    realtime_url: str = DEFAULT_REALTIME_URL
    voice: str = DEFAULT_VOICE
    system_message: str = DEFAULT_SYSTEM_MESSAGE
    temperature: float = DEFAULT_TEMPERATURE
    session_update_delay: float = Field(DEFAULT_SESSION_UPDATE_DELAY, ge=0)
    enable_interruptions: bool = True

    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_from_number: Optional[str] = None
    twilio_to_number: Optional[str] = None

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RelaySettings":
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ

        def get(*names: str) -> Optional[str]:
            for name in names:
                value = env.get(name)
                if value:
                    return value
            return None

        values = {
            "openai_api_key": get("OPENAI_API_KEY"),
            "realtime_model": get("OPENAI_REALTIME_MODEL"),
            "realtime_url": get("OPENAI_REALTIME_URL"),
            "voice": get("VOICE"),
            "system_message": get("SYSTEM_MESSAGE"),
            "temperature": get("TEMPERATURE"),
            "session_update_delay": get("SESSION_UPDATE_DELAY"),
            "twilio_account_sid": get("TWILIO_ACCOUNT_SID"),
            "twilio_auth_token": get("TWILIO_AUTH_TOKEN"),
            "twilio_from_number": get("TWILIO_FROM_NUMBER", "TWILIO_PHONE_NUMBER"),
            "twilio_to_number": get("TWILIO_TO_NUMBER", "TO_PHONE_NUMBER"),
            "host": get("HOST"),
            "port": get("PORT"),
            "log_level": get("LOG_LEVEL"),
        }
        interruptions = get("ENABLE_INTERRUPTIONS")
        if interruptions is not None:
            values["enable_interruptions"] = interruptions.strip().lower() in TRUE_VALUES

        # Unset variables fall back to the model defaults
        return cls(**{key: value for key, value in values.items() if value is not None})

    @property
    def twilio_configured(self) -> bool:
        return not self.missing_twilio()

    def missing_twilio(self) -> List[str]:
        required = {
            "TWILIO_ACCOUNT_SID": self.twilio_account_sid,
            "TWILIO_AUTH_TOKEN": self.twilio_auth_token,
            "TWILIO_FROM_NUMBER": self.twilio_from_number,
            "TWILIO_TO_NUMBER": self.twilio_to_number,
        }
        return [name for name, value in required.items() if not value]

    def missing(self, require_twilio: bool = False) -> List[str]:
        """
        List the names of required settings that are not set.

        Args:
            require_twilio: Also require the Twilio credentials and phone numbers
                used to place outbound calls

        Returns:
            Environment variable names, in a stable order
        """
        names = [] if self.openai_api_key else ["OPENAI_API_KEY"]
        if require_twilio:
            names.extend(self.missing_twilio())
        return names

    def validate_required(self, require_twilio: bool = False) -> None:
        """Raise ConfigurationError if any required setting is missing."""
        missing = self.missing(require_twilio)
        if missing:
            raise ConfigurationError(missing)


def load_environment(env_path: Path = Path(".") / ".env") -> None:
    """Load variables from a .env file if it exists."""
    if env_path.exists():
        dotenv.load_dotenv(env_path)


@lru_cache()
def get_settings() -> RelaySettings:
    """Return the process-wide settings, read once from the environment."""
    load_environment()
    return RelaySettings.from_env()
