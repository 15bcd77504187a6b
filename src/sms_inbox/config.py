from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import ConfigurationInvalid, ConfigurationMissing


@dataclass(frozen=True)
class ProviderCredentials:
    account_sid: str
    auth_token: str
    local_number: str


def _optional_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationInvalid(name, raw, "a number of seconds") from e


class Settings(BaseModel):
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # --- Twilio settings ---
    twilio_account_sid: str | None = Field(default_factory=lambda: os.getenv("TWILIO_ACCOUNT_SID"))
    twilio_auth_token: str | None = Field(default_factory=lambda: os.getenv("TWILIO_AUTH_TOKEN"))
    # The local number: fixed endpoint of every conversation
    twilio_phone_number: str | None = Field(
        default_factory=lambda: os.getenv("TWILIO_PHONE_NUMBER")
    )

    # Passed unchanged to the Twilio HTTP client; None keeps twilio's default
    twilio_timeout: float | None = Field(default_factory=lambda: _optional_float("TWILIO_TIMEOUT"))

    def require_credentials(self) -> ProviderCredentials:
        """
        Return the provider credentials, or raise ConfigurationMissing
        listing every required variable that is unset or blank.
        """
        required = {
            "TWILIO_ACCOUNT_SID": self.twilio_account_sid,
            "TWILIO_AUTH_TOKEN": self.twilio_auth_token,
            "TWILIO_PHONE_NUMBER": self.twilio_phone_number,
        }
        missing = [name for name, value in required.items() if not value or not value.strip()]
        if missing:
            raise ConfigurationMissing(missing)

        return ProviderCredentials(
            account_sid=self.twilio_account_sid.strip(),  # type: ignore[union-attr]
            auth_token=self.twilio_auth_token.strip(),  # type: ignore[union-attr]
            local_number=self.twilio_phone_number.strip(),  # type: ignore[union-attr]
        )


@lru_cache
def get_settings() -> Settings:
    # Real environment variables win over .env entries
    load_dotenv(override=False)
    return Settings()
