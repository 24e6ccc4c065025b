#!/usr/bin/env python3
"""Operator console for the relay server.

* Plain text is broadcast to every client as ``[server] text``
* ``/info`` prints listening status, local IPv4 addresses and port-forward tips
* ``/clear`` wipes the log view, ``/quit`` (or Ctrl‑D / Ctrl‑C) stops the server
* ANSI‑coloured output via *colorama*; errors are red.

Usage (after installing package locally):

    relaychat-server --port 8888
    python -m relaychat --headless     # no console, log to stdout only
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import threading
from collections import deque
from pathlib import Path
from typing import Deque, Optional, TextIO

from colorama import Cursor, Fore, Style, init
from colorama.ansi import clear_screen

from .protocol import LogEntry
from .server import BindFailure, RelayServer
from .settings import Settings, valid_port
from .util import LOG, configure_logging

PROMPT = "> "
HISTORY_LIMIT = 1000


class OperatorConsole:
    """Terminal front end: renders log entries and turns input into actions."""

    def __init__(self, server: Optional[RelayServer] = None,
                 stream: Optional[TextIO] = None) -> None:
        self.server = server or RelayServer()
        self.server.log_sink = self.display
        self._stream = stream
        self.history: Deque[LogEntry] = deque(maxlen=HISTORY_LIMIT)

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    # ---------------------------------------------------------------- output
    def display(self, entry: LogEntry) -> None:
        self.history.append(entry)
        line = entry.render()
        if entry.is_error:
            line = f"{Fore.RED}{line}{Style.RESET_ALL}"
        # \r so a half-typed prompt line is overwritten, then re-paint it
        self.stream.write(f"\r{line}\n{PROMPT}")
        self.stream.flush()

    def clear_log(self) -> None:
        self.history.clear()
        self.stream.write(clear_screen() + Cursor.POS(1, 1))
        self.server.log_message("Log cleared")

    # ---------------------------------------------------------------- input
    def handle_line(self, line: str) -> bool:
        """Execute one line of operator input; False means shut down."""
        line = line.strip()
        if not line:
            return True

        if not line.startswith("/"):
            self.server.send_operator_message(line)
            return True

        cmd = line.split()[0].lower()
        match cmd:
            case "/quit":
                return False
            case "/info":
                self.server.show_network_info()
            case "/clear":
                self.clear_log()
            case _:
                self.server.log_message(f"Unknown command: {cmd}", is_error=True)
        return True

    def _stdin_loop(self, loop: asyncio.AbstractEventLoop,
                    lines: "asyncio.Queue[Optional[str]]") -> None:
        """Reader thread: hand each stdin line to the event loop, None on EOF."""
        try:
            for line in sys.stdin:
                loop.call_soon_threadsafe(lines.put_nowait, line)
            loop.call_soon_threadsafe(lines.put_nowait, None)
        except RuntimeError:                  # Loop already closed at exit
            pass

    # ================================================================= main ===
    async def run(self, port: int) -> None:
        try:
            await self.server.start(port)
        except BindFailure:
            # Already reported; stay up so the operator can read why.
            pass
        else:
            self.server.show_network_info()

        loop = asyncio.get_running_loop()
        lines: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        threading.Thread(target=self._stdin_loop, args=(loop, lines), daemon=True).start()

        try:
            while True:
                line = await lines.get()
                if line is None or not self.handle_line(line):
                    break
        finally:
            await self.server.stop()


async def run_headless(port: int) -> int:
    """Relay without a console; exit code 1 when the port cannot be bound."""
    server = RelayServer()
    try:
        await server.start(port)
    except BindFailure:
        return 1
    try:
        await server.serve_forever()
    finally:
        await server.stop()
    return 0

# ======================================================================
#  Command‑line entry point
# ======================================================================

def port_number(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a port number: {value!r}")
    if not valid_port(port):
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("relaychat-server", description="TCP broadcast relay server")
    parser.add_argument("--port", type=port_number, default=None,
                        help="listening port (saved for next start)")
    parser.add_argument("--config", type=Path, default=None,
                        help="settings file (default: ~/.config/relaychat/settings.json)")
    parser.add_argument("--log-file", default="relay_server.log",
                        help="rotating log file, empty string to disable")
    parser.add_argument("--headless", action="store_true",
                        help="no operator console, log to stdout")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    init(autoreset=True)
    configure_logging(args.log_file or None, console=args.headless)

    settings = Settings.load(args.config)
    if args.port is not None:
        settings.port = args.port

    code = 0
    try:
        if args.headless:
            code = asyncio.run(run_headless(settings.port))
        else:
            asyncio.run(OperatorConsole().run(settings.port))
    except KeyboardInterrupt:
        LOG.info("Shutdown requested")
    finally:
        try:
            settings.save(args.config)
        except OSError as exc:
            LOG.error("Could not save settings: %s", exc)
    return code


if __name__ == "__main__":
    sys.exit(main())
