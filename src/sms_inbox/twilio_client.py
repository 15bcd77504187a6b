from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from requests.exceptions import RequestException
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from .config import ProviderCredentials, Settings
from .errors import InvalidNumberFormat, ProviderUnavailable
from .messages import Message

logger = logging.getLogger(__name__)

# E.164: "+" then up to 15 digits, no leading zero in the country code
E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")

# Twilio error codes that mean "this phone number is malformed or unusable"
INVALID_NUMBER_CODES = frozenset({21211, 21212, 21401, 21421, 21604, 21614})


@dataclass(frozen=True)
class MessageFilter:
    """Query filter; a None field means "any"."""

    sender: str | None = None
    recipient: str | None = None


def validate_number(number: str) -> str:
    if not number or not E164_PATTERN.match(number):
        raise InvalidNumberFormat(number, "expected +<countrycode><number>")
    return number


class ProviderClient:
    """
    Long-lived wrapper around the twilio REST client.

    Authentication happens once, in the constructor; the instance is then
    shared by every request. The underlying client keeps no per-query state,
    so concurrent `list` calls are safe.
    """

    def __init__(
        self,
        credentials: ProviderCredentials,
        timeout: float | None = None,
        client: Client | None = None,
    ) -> None:
        self.credentials = credentials
        if client is None:
            client = Client(
                credentials.account_sid,
                credentials.auth_token,
                http_client=TwilioHttpClient(timeout=timeout),
            )
        self._client = client

    @property
    def local_number(self) -> str:
        return self.credentials.local_number

    def _counterpart(self, message_filter: MessageFilter) -> str | None:
        """The filter number that is not the local one, if there is one."""
        numbers = [n for n in (message_filter.sender, message_filter.recipient) if n is not None]
        for number in numbers:
            if number != self.local_number:
                return number
        return numbers[0] if numbers else None

    def list(self, message_filter: MessageFilter) -> list[Message]:
        params: dict[str, Any] = {}
        if message_filter.sender is not None:
            params["from_"] = validate_number(message_filter.sender)
        if message_filter.recipient is not None:
            params["to"] = validate_number(message_filter.recipient)

        logger.debug("Listing messages", extra={"query": params})
        try:
            records = self._client.messages.list(**params)
        except TwilioRestException as e:
            if e.code in INVALID_NUMBER_CODES:
                raise InvalidNumberFormat(self._counterpart(message_filter), e.msg) from e
            logger.warning(
                "Twilio query failed",
                extra={"status": e.status, "code": e.code, "query": params},
            )
            raise ProviderUnavailable(f"Twilio error: {e.msg}", status=e.status, code=e.code) from e
        except (TwilioException, RequestException) as e:
            logger.warning("Twilio unreachable: %s", e, extra={"query": params})
            raise ProviderUnavailable(f"Twilio unreachable: {e}") from e

        messages = [Message.from_twilio(record) for record in records]
        logger.debug("Listed %d messages", len(messages), extra={"query": params})
        return messages


def build_provider_client(settings: Settings) -> ProviderClient:
    """Raises ConfigurationMissing when credentials are not configured."""
    credentials = settings.require_credentials()
    return ProviderClient(credentials, timeout=settings.twilio_timeout)
