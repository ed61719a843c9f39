"""Ticket Sale — a whitelisted, time-gated ticket sale ledger.

Participants enrolled in an access registry may buy uniquely numbered tickets
with a fungible settlement currency, at a price the sale owner controls, until
the event starts.  Collected currency stays in the sale's custody until the
owner withdraws it.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ---------------------------------------------------------------------------
# Package version, read from pyproject.toml via importlib.metadata.
#
# If the package is imported without being installed (for example straight
# from a source checkout), fall back to "0.0.0-dev".
# ---------------------------------------------------------------------------
try:
    __version__: str = version("ticket_sale")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
