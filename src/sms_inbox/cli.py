from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from .config import get_settings
from .conversations import list_inbox, merge_conversation
from .errors import (
    ConfigurationInvalid,
    ConfigurationMissing,
    InvalidNumberFormat,
    ProviderUnavailable,
)
from .logging_utils import setup_logging
from .messages import Message
from .twilio_client import build_provider_client


def format_message(message: Message) -> str:
    sent = message.sent_at.isoformat() if message.sent_at else "not sent yet"
    return f"[{sent}] {message.sender} -> {message.recipient}: {message.body}"


def main(argv: Sequence[str] | None = None) -> int:
    """
    Print the inbox, or the conversation with one remote number.

      sms-inbox inbox
      sms-inbox conversation +27123456789
    """
    parser = argparse.ArgumentParser(prog="sms-inbox")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("inbox", help="messages received by the local number")
    conversation = commands.add_parser("conversation", help="messages exchanged with a number")
    conversation.add_argument("remote", type=str)
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
        setup_logging(settings.log_level)
        provider = build_provider_client(settings)
    except (ConfigurationMissing, ConfigurationInvalid) as e:
        print(str(e), file=sys.stderr)
        return 1

    try:
        if args.command == "inbox":
            messages = list_inbox(provider, provider.local_number)
        else:
            messages = merge_conversation(provider, provider.local_number, args.remote)
    except (InvalidNumberFormat, ProviderUnavailable) as e:
        print(str(e), file=sys.stderr)
        return 2

    if not messages:
        print("No messages.")
    for message in messages:
        print(format_message(message))
    return 0


if __name__ == "__main__":
    sys.exit(main())
