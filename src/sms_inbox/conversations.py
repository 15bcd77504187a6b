from __future__ import annotations

import contextvars
import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from datetime import UTC, datetime
from typing import Protocol

from .messages import Message
from .twilio_client import MessageFilter

logger = logging.getLogger(__name__)

# Stand-in timestamp for messages that have not been sent yet
_NOT_SENT = datetime.max.replace(tzinfo=UTC)

# Shared by every request; two workers per conversation in flight
_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="conversation")


class MessageSource(Protocol):
    def list(self, message_filter: MessageFilter) -> list[Message]: ...


def sent_at_sort_key(message: Message) -> tuple[bool, datetime]:
    """
    Ordering key for messages by send time.

    Sent messages order by `sent_at` ascending; messages without a `sent_at`
    (queued, not yet sent) order after every sent message. Naive timestamps
    are read as UTC.
    """
    sent_at = message.sent_at
    if sent_at is None:
        return (True, _NOT_SENT)
    if sent_at.tzinfo is None:
        sent_at = sent_at.replace(tzinfo=UTC)
    return (False, sent_at)


def order_by_sent_at(messages: Iterable[Message]) -> list[Message]:
    # sorted() is stable: equal keys keep their input order
    return sorted(messages, key=sent_at_sort_key)


def merge_conversation(provider: MessageSource, local: str, remote: str) -> list[Message]:
    """
    Rebuild the conversation between `local` and `remote`.

    Both directions are queried concurrently. If either query fails the
    whole merge fails with that error and the other result is discarded.
    On equal send times inbound messages (remote -> local) come first.
    """
    futures: list[Future[list[Message]]] = [
        # copied context carries the request id into the worker thread
        _executor.submit(contextvars.copy_context().run, provider.list, message_filter)
        for message_filter in (
            MessageFilter(sender=remote, recipient=local),
            MessageFilter(sender=local, recipient=remote),
        )
    ]
    try:
        wait(futures, return_when=FIRST_EXCEPTION)
        for future in futures:
            if future.done() and future.exception() is not None:
                # re-raises the query's exception
                future.result()
        inbound, outbound = (future.result() for future in futures)
    finally:
        for future in futures:
            future.cancel()

    combined = []
    for message in [*inbound, *outbound]:
        if not message.involves(local, remote):
            logger.warning(
                "Dropping message outside conversation",
                extra={"sid": message.sid, "local": local, "remote": remote},
            )
            continue
        combined.append(message)

    logger.info(
        "Merged conversation",
        extra={"remote": remote, "inbound": len(inbound), "outbound": len(outbound)},
    )
    return order_by_sent_at(combined)


def list_inbox(provider: MessageSource, local: str) -> list[Message]:
    """Messages sent to `local`, newest first; unsent messages on top."""
    messages = provider.list(MessageFilter(recipient=local))
    return sorted(messages, key=sent_at_sort_key, reverse=True)


def conversation_partners(messages: Sequence[Message], local: str) -> list[str]:
    """Distinct counterpart numbers in first-seen order."""
    partners: list[str] = []
    for message in messages:
        partner = message.recipient if message.sender == local else message.sender
        if partner != local and partner not in partners:
            partners.append(partner)
    return partners
