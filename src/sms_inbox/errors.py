from __future__ import annotations


class SmsInboxError(Exception):
    """Base class for every error raised by sms-inbox."""


class ConfigurationMissing(SmsInboxError):
    """Required credentials or the local number are absent at startup."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


class InvalidNumberFormat(SmsInboxError):
    def __init__(self, number: str | None, detail: str | None = None) -> None:
        self.number = number
        message = f"Invalid phone number: {number!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ProviderUnavailable(SmsInboxError):
    """
    The messaging provider could not answer a query.

    Covers network failures, rejected credentials and rate limiting alike;
    `status` and `code` carry the provider's HTTP status and error code
    when it returned one.
    """

    def __init__(self, reason: str, status: int | None = None, code: int | None = None) -> None:
        self.reason = reason
        self.status = status
        self.code = code
        super().__init__(reason)


class ConfigurationInvalid(SmsInboxError):
    """A configuration variable is set but its value cannot be used."""

    def __init__(self, name: str, value: str, expected: str) -> None:
        self.name = name
        self.value = value
        super().__init__(f"Invalid value for {name}: {value!r} (expected {expected})")
