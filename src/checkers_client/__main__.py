"""Entry point for running the terminal client via ``python -m checkers_client``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .client import CheckersClient
from .config import ClientSettings
from .errors import ConfigurationError
from .presentation import NOTICE_ERROR, TerminalSink

HELP = "commands: join [room] | click <x> <y> | cancel | players | board | quit"


async def handle_command(client: CheckersClient, sink: TerminalSink, words: List[str]) -> bool:
    """Run one typed command. Returns ``False`` when the user asked to quit."""

    if not words:
        return True
    command, args = words[0].lower(), words[1:]
    if command in ("quit", "exit"):
        return False
    if command == "join":
        await client.join(args[0] if args else None)
    elif command == "click":
        try:
            x, y = (int(value) for value in args)
        except ValueError:
            sink.notify_transient_message("usage: click <x> <y>", NOTICE_ERROR)
            return True
        await client.click(x, y)
    elif command == "cancel":
        client.cancel_selection()
    elif command == "players":
        await client.request_players()
    elif command == "board":
        print(sink.render())
    else:
        print(HELP)
    return True


async def run(settings: ClientSettings, room: Optional[str]) -> None:
    sink = TerminalSink(
        error_seconds=settings.error_notice_seconds,
        info_seconds=settings.info_notice_seconds,
        capture_seconds=settings.capture_highlight_seconds,
    )
    client = CheckersClient(sink, settings)
    client.refresh(turn_text="Disconnected")
    print(HELP)
    if room is not None:
        await client.join(room)

    loop = asyncio.get_running_loop()
    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            if not await handle_command(client, sink, line.split()):
                break
    finally:
        await client.close()


def main() -> None:
    """Start the interactive checkers client."""

    ap = argparse.ArgumentParser(description="Terminal checkers client")
    ap.add_argument("room", nargs="?", help="room to join on startup")
    args = ap.parse_args()

    try:
        settings = ClientSettings.from_env()
    except ConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        raise SystemExit(2)

    logging.basicConfig(
        level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    try:
        asyncio.run(run(settings, args.room))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
