"""Ledger package — append-only JSONL audit journal.

Every state change accepted by an :class:`~ticket_sale.registry.AccessRegistry`
or a :class:`~ticket_sale.sale.TicketSale` constructed with a ``journal_id``
is appended here, in acceptance order.

Public surface
--------------
- :func:`append_event`        — append a single event to a journal file.
- :func:`try_append_event`    — same, but logs and swallows write failures.
- :func:`verify_journal`      — check integrity of the last event in a journal.
- :func:`read_events`         — read and verify every event in a journal.
- :exc:`LedgerWriteError`     — raised when a filesystem write fails.
- :exc:`LedgerReadError`      — raised when a journal line fails verification.
- :class:`JournalVerifyResult` — result object returned by :func:`verify_journal`.

Usage example
-------------
::

    from ticket_sale.ledger import read_events, verify_journal

    if verify_journal("chiba_hill").status == "corrupt":
        logger.critical("Journal chiba_hill is corrupt.")
    purchases = [e for e in read_events("chiba_hill") if e["event_type"] == "ticket:purchased"]
"""

from ticket_sale.ledger.writer import (
    JournalVerifyResult,
    LedgerReadError,
    LedgerWriteError,
    append_event,
    read_events,
    try_append_event,
    verify_journal,
)

__all__ = [
    "LedgerWriteError",
    "LedgerReadError",
    "JournalVerifyResult",
    "append_event",
    "try_append_event",
    "verify_journal",
    "read_events",
]
