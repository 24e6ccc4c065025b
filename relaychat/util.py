#!/usr/bin/env python3
"""Logging utils **and** helpers that discover the host's IPv4 addresses."""

from __future__ import annotations
import logging                           # Python stdlib logging framework
import socket                            # Needed for IP detection
import sys                               # For stdout handle
from logging.handlers import RotatingFileHandler
from typing import List

__all__ = ["LOG", "configure_logging", "get_local_ip", "local_ipv4_addresses"]

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(message)s"
LOG_DATEFMT = "%H:%M:%S"

# Shared logger; handlers are attached by configure_logging() from the entry
# point so that importing the package never creates a log file.
LOG = logging.getLogger("relaychat")

# ----------------------------------------------------------------------
# configure_logging() wires console + rotating file output onto LOG.
# ----------------------------------------------------------------------

def configure_logging(log_file: str | None = "relay_server.log",
                      console: bool = True) -> logging.Logger:
    """Attach handlers to the "relaychat" logger (INFO level) and return it.

    The interactive operator console renders log entries itself, so it passes
    ``console=False`` and keeps only the file handler.
    """
    LOG.setLevel(logging.INFO)

    # Calling twice must not duplicate every line.
    for handler in list(LOG.handlers):
        LOG.removeHandler(handler)
        handler.close()

    fmt = logging.Formatter(LOG_FORMAT, LOG_DATEFMT)

    if console:
        sh = logging.StreamHandler(sys.stdout)
        sh.setFormatter(fmt)
        LOG.addHandler(sh)

    if log_file:
        # Rotates once file hits ±1 MiB, keeps 3 backups.
        fh = RotatingFileHandler(
            log_file,
            maxBytes=1_048_576,
            backupCount=3,
            encoding="utf-8",
        )
        fh.setFormatter(fmt)
        LOG.addHandler(fh)

    if not LOG.handlers:
        LOG.addHandler(logging.NullHandler())
    LOG.propagate = False

    return LOG

# ----------------------------------------------------------------------
# best‑effort IP discovery (no external calls, works offline)
# ----------------------------------------------------------------------

def get_local_ip() -> str:
    """Return the host's primary IP, fallback to 127.0.0.1 on failure."""

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # connect() on UDP sends nothing; it only makes the OS pick a source IP.
        sock.connect(("8.8.8.8", 80))
        return sock.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        sock.close()


def local_ipv4_addresses() -> List[str]:
    """Every non-loopback IPv4 address of this host, primary address first."""
    found: List[str] = []

    primary = get_local_ip()
    if not primary.startswith("127."):
        found.append(primary)

    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET)
    except OSError:
        infos = []
    for info in infos:
        addr = info[4][0]
        if addr.startswith("127.") or addr in found:
            continue
        found.append(addr)

    return found
