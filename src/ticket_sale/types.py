"""Shared identity and time primitives."""

from __future__ import annotations

import secrets
import time
from collections.abc import Callable

# Participants, owners and ledgers are identified by opaque address strings.
Address = str

# The zero address is an ordinary value: it may be whitelisted or not.
# The in-memory currency ledger uses it as the source of minted funds.
ZERO_ADDRESS: Address = "0x" + "0" * 40

# A clock returns the current time as whole Unix seconds.
Clock = Callable[[], int]


def system_clock() -> int:
    """Return the wall-clock time in whole Unix seconds."""
    return int(time.time())


def new_address() -> Address:
    """Generate a fresh random address (``0x`` followed by 40 hex digits)."""
    return "0x" + secrets.token_hex(20)
