#!/usr/bin/env python3
"""
Inspect or edit the subscriber file by hand.

Usage:
  python scripts/subscribers.py list
  python scripts/subscribers.py add -1001234567890
  python scripts/subscribers.py --file data/chats.txt remove 827628064
"""
import argparse
import asyncio
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from biomed_bot.models import ChatIdentity  # noqa: E402
from biomed_bot.repositories.subscribers import FileSubscriberRepository, StorageError  # noqa: E402

DEFAULT_FILE = os.getenv("SUBSCRIBERS_FILE", "data/chats.txt")


async def run_command(store: FileSubscriberRepository, command: str, chat_id: str | None) -> int:
    if command == "list":
        chats = await store.read_all()
        for chat in chats:
            print(chat)
        print(f"{len(chats)} subscribed chat(s)", file=sys.stderr)
        return 0

    try:
        chat = ChatIdentity.parse(chat_id or "")
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    if command == "add":
        added = await store.append(chat)
        print(f"✓ chat {chat} subscribed" if added else f"chat {chat} already subscribed")
    else:
        removed = await store.remove(chat)
        print(f"✓ chat {chat} unsubscribed" if removed else f"chat {chat} was not subscribed")
    return 0


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Manage livestream announcement subscribers")
    ap.add_argument("--file", default=DEFAULT_FILE, help="Subscriber file (default: %(default)s)")
    sub = ap.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="Print subscribed chat ids")
    for name in ("add", "remove"):
        p = sub.add_parser(name, help=f"{name.capitalize()} a chat id")
        p.add_argument("chat_id", help="Telegram chat id (negative for groups)")
    args = ap.parse_args(argv)

    store = FileSubscriberRepository(Path(args.file))
    try:
        return asyncio.run(run_command(store, args.command, getattr(args, "chat_id", None)))
    except StorageError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
