from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from sms_inbox.messages import Message
from sms_inbox.twilio_client import MessageFilter


class FakeProvider:
    """
    Stand-in for ProviderClient.

    `responses` maps (sender, recipient) filter pairs to either a list of
    messages or an exception to raise; unknown filters return [].
    """

    def __init__(self, local_number: str = "+1555") -> None:
        self.local_number = local_number
        self.responses: dict[tuple[str | None, str | None], Any] = {}
        self.calls: list[MessageFilter] = []

    def list(self, message_filter: MessageFilter) -> list[Message]:
        self.calls.append(message_filter)
        result = self.responses.get((message_filter.sender, message_filter.recipient), [])
        if isinstance(result, Exception):
            raise result
        return list(result)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_message() -> Callable[..., Message]:
    """Build a Message; `sent_at` given as epoch seconds (None for unsent)."""

    def _make(sender: str, recipient: str, sent_at: int | None, body: str = "") -> Message:
        return Message(
            sender=sender,
            recipient=recipient,
            body=body or f"{sender}->{recipient}@{sent_at}",
            sent_at=datetime.fromtimestamp(sent_at, UTC) if sent_at is not None else None,
        )

    return _make
