from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    """One SMS/MMS record as returned by the provider. Read-only."""

    model_config = ConfigDict(frozen=True)

    sender: str
    recipient: str
    body: str = ""
    # None while the message is still queued / not yet sent
    sent_at: datetime | None = None

    sid: str | None = None
    direction: str | None = None
    status: str | None = None
    num_media: int = 0

    @classmethod
    def from_twilio(cls, record: Any) -> Message:
        """Build a Message from a twilio `MessageInstance`."""
        num_media = getattr(record, "num_media", None)
        return cls(
            sender=record.from_,
            recipient=record.to,
            body=record.body or "",
            sent_at=record.date_sent,
            sid=getattr(record, "sid", None),
            direction=getattr(record, "direction", None),
            status=getattr(record, "status", None),
            # twilio reports num_media as a string
            num_media=int(num_media) if num_media else 0,
        )

    def involves(self, a: str, b: str) -> bool:
        return {self.sender, self.recipient} == {a, b}
