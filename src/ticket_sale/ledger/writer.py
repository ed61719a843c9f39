"""JSONL audit journal writer for registry and sale state changes.

Overview
--------
This module is the single implementation file for the ledger package.  It
exposes :func:`append_event`, :func:`try_append_event`,
:func:`verify_journal` and :func:`read_events`, and the types they return.

The in-memory registry and sale are the source of truth while the process
runs.  The journal is the durable, append-only record of every state change
they accepted, in the order they accepted them.

Storage
-------
Each journal's events are stored in a single JSONL file::

    <journal root>/<journal_id>.jsonl

The journal root comes from ``config.journal.root`` (``data/ledger`` by
default).  The directory and file are created on the first write.

Envelope format
---------------
Every line is a self-contained JSON object:

.. code-block:: json

    {
      "event_id":       "a3f91c9e2d4b5e6f...",
      "timestamp":      "2026-02-27T14:23:01.452345+00:00",
      "journal_id":     "chiba_hill",
      "event_type":     "ticket:purchased",
      "schema_version": "1.0",
      "meta":           {"component": "sale"},
      "data":           { ... event-specific payload ... },
      "_checksum":      "sha256:b94f3e..."
    }

``_checksum`` is computed over the JSON-serialized envelope body (all fields
**except** ``_checksum`` itself, serialized with ``sort_keys=True``).

Concurrency
-----------
``fcntl.flock(LOCK_EX)`` is acquired before every append and released after
``flush()``.  This serialises concurrent writers within a single process and
across processes on the same host.  ``fcntl`` is POSIX-only.

Failure isolation
-----------------
:exc:`LedgerWriteError` is raised on filesystem failure.  Registry and sale
code goes through :func:`try_append_event`, which logs a warning and
continues: a journal failure never undoes an accepted operation.
"""

from __future__ import annotations

import fcntl
import hashlib
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

import ticket_sale.config as sale_config

logger = logging.getLogger(__name__)

# ── Schema version ─────────────────────────────────────────────────────────────
# Increment when the envelope format changes in a backwards-incompatible way.
_SCHEMA_VERSION = "1.0"

# ── Read-tail chunk size ───────────────────────────────────────────────────────
# Bytes read from the end of the journal when verifying the last event.  A
# purchase event is a few hundred bytes; 16 KiB covers any single event.
_TAIL_CHUNK_BYTES = 16_384


# ── Exceptions ────────────────────────────────────────────────────────────────


class LedgerWriteError(Exception):
    """Raised when a journal append fails due to a filesystem or encoding error.

    Example::

        try:
            append_event(journal_id, event_type, data)
        except LedgerWriteError as exc:
            logger.warning("Journal write failed: %s", exc)
    """


class LedgerReadError(Exception):
    """Raised by :func:`read_events` when a line fails to parse or verify.

    Attributes:
        line_number: 1-based line number of the offending line.
    """

    def __init__(self, message: str, *, line_number: int) -> None:
        super().__init__(message)
        self.line_number = line_number


# ── Result type ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class JournalVerifyResult:
    """Result of a journal integrity check performed by :func:`verify_journal`.

    Attributes:
        status: One of:
            - ``"ok"``      — last event is valid JSON and checksum matches.
            - ``"empty"``   — file does not exist or contains no events.
            - ``"corrupt"`` — last line is malformed JSON or checksum mismatch.
        last_event_id: The ``event_id`` of the last valid event, or ``None``
            if the journal is empty or corrupt.
        error_detail: Human-readable description of the failure reason, or
            ``None`` if status is ``"ok"`` or ``"empty"``.
    """

    status: Literal["ok", "empty", "corrupt"]
    last_event_id: str | None
    error_detail: str | None


# ── Public API ────────────────────────────────────────────────────────────────


def append_event(
    journal_id: str,
    event_type: str,
    data: dict,
    *,
    meta: dict | None = None,
) -> str:
    """Append one event to the journal's JSONL file.

    Args:
        journal_id: Journal this event belongs to.  Must be non-empty.  Used
                    as the filename stem.
        event_type: Event type from :class:`ticket_sale.events.Events`.
                    Must be non-empty.
        data:       Event-specific payload dict.  Must be JSON-serialisable.
        meta:       Optional metadata dict, e.g. ``{"component": "sale"}``.
                    If ``None``, an empty dict is stored.

    Returns:
        The ``event_id`` of the written event as a 32-character lowercase hex
        string (UUID4 without hyphens).

    Raises:
        ValueError:        If ``journal_id`` or ``event_type`` is blank.
        LedgerWriteError:  If serialisation or the filesystem write fails.
    """
    if not journal_id or not journal_id.strip():
        raise ValueError("append_event: journal_id must be a non-empty string.")
    if not event_type or not event_type.strip():
        raise ValueError("append_event: event_type must be a non-empty string.")

    event_id = uuid.uuid4().hex
    timestamp = datetime.now(UTC).isoformat()

    envelope_body: dict = {
        "event_id": event_id,
        "timestamp": timestamp,
        "journal_id": journal_id,
        "event_type": event_type,
        "schema_version": _SCHEMA_VERSION,
        "meta": meta if meta is not None else {},
        "data": data,
    }

    ledger_path = _ledger_path(journal_id)
    try:
        checksum = _compute_checksum(envelope_body)
        envelope = {**envelope_body, "_checksum": f"sha256:{checksum}"}
        line = json.dumps(envelope, ensure_ascii=False, sort_keys=True)
        _append_line_locked(ledger_path, line)
    except (OSError, TypeError, ValueError) as exc:
        raise LedgerWriteError(
            f"Failed to write event {event_id!r} to journal "
            f"{journal_id!r} at {ledger_path}: {exc}"
        ) from exc

    logger.debug(
        "journal: appended %r event %s to %s",
        event_type,
        event_id,
        ledger_path.name,
    )
    return event_id


def try_append_event(
    journal_id: str | None,
    event_type: str,
    data: dict,
    *,
    meta: dict | None = None,
) -> str | None:
    """Append an event if journaling applies, never raising on write failure.

    Nothing is written when ``journal_id`` is ``None`` or the journal is
    disabled in configuration.

    Returns:
        The ``event_id`` written, or ``None`` if nothing was written.
    """
    if journal_id is None or not sale_config.config.journal.enabled:
        return None
    try:
        return append_event(journal_id, event_type, data, meta=meta)
    except LedgerWriteError:
        logger.warning(
            "Journal write failed for %r; operation result stands.", event_type, exc_info=True
        )
        return None


def verify_journal(journal_id: str) -> JournalVerifyResult:
    """Verify the integrity of the most recent event in a journal.

    Only the last non-empty line is inspected; use :func:`read_events` for a
    full replay check.

    Args:
        journal_id: The journal to verify.

    Returns:
        A :class:`JournalVerifyResult` describing the outcome.
    """
    path = _ledger_path(journal_id)

    if not path.exists():
        return JournalVerifyResult(status="empty", last_event_id=None, error_detail=None)

    last_line = _read_last_nonempty_line(path)
    if last_line is None:
        return JournalVerifyResult(status="empty", last_event_id=None, error_detail=None)

    try:
        envelope = json.loads(last_line)
    except json.JSONDecodeError as exc:
        return JournalVerifyResult(
            status="corrupt",
            last_event_id=None,
            error_detail=f"Last line is not valid JSON: {exc}",
        )

    problem = _envelope_problem(envelope)
    if problem is not None:
        best_effort_id = envelope.get("event_id") if isinstance(envelope, dict) else None
        if problem.startswith("Checksum mismatch"):
            return JournalVerifyResult(
                status="corrupt", last_event_id=best_effort_id, error_detail=problem
            )
        return JournalVerifyResult(status="corrupt", last_event_id=None, error_detail=problem)

    return JournalVerifyResult(
        status="ok", last_event_id=envelope["event_id"], error_detail=None
    )


def read_events(journal_id: str) -> list[dict]:
    """Read and verify every event in a journal, in append order.

    Args:
        journal_id: The journal to read.

    Returns:
        The list of envelopes (including ``_checksum``).  An absent journal
        yields an empty list.

    Raises:
        LedgerReadError: If any non-empty line is malformed or fails its
                         checksum.
    """
    path = _ledger_path(journal_id)
    if not path.exists():
        return []

    events: list[dict] = []
    with path.open("r", encoding="utf-8") as fh:
        for line_number, raw in enumerate(fh, start=1):
            line = raw.strip()
            if not line:
                continue
            try:
                envelope = json.loads(line)
            except json.JSONDecodeError as exc:
                raise LedgerReadError(
                    f"Line {line_number} of journal {journal_id!r} is not valid JSON: {exc}",
                    line_number=line_number,
                ) from exc
            problem = _envelope_problem(envelope)
            if problem is not None:
                raise LedgerReadError(
                    f"Line {line_number} of journal {journal_id!r}: {problem}",
                    line_number=line_number,
                )
            events.append(envelope)
    return events


# ── Internal helpers ──────────────────────────────────────────────────────────


def _ledger_path(journal_id: str) -> Path:
    """Resolve ``<journal root>/<journal_id>.jsonl`` from the live config."""
    return sale_config.config.journal.absolute_root / f"{journal_id}.jsonl"


def _compute_checksum(payload: dict) -> str:
    """Compute a SHA-256 hex digest of the canonical JSON serialisation of ``payload``.

    The ``sha256:`` prefix is **not** included; callers prepend it.
    """
    canonical = json.dumps(payload, ensure_ascii=False, sort_keys=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _envelope_problem(envelope: object) -> str | None:
    """Return a description of what is wrong with a parsed envelope, or ``None``."""
    if not isinstance(envelope, dict):
        return "Line deserialised to a non-dict type."

    recorded_checksum = envelope.get("_checksum")
    if not isinstance(recorded_checksum, str):
        return "Line is missing or has a non-string '_checksum' field."

    body = {k: v for k, v in envelope.items() if k != "_checksum"}
    expected_checksum = f"sha256:{_compute_checksum(body)}"
    if recorded_checksum != expected_checksum:
        return (
            f"Checksum mismatch. "
            f"Recorded: {recorded_checksum!r}. "
            f"Expected: {expected_checksum!r}."
        )

    event_id = envelope.get("event_id")
    if not isinstance(event_id, str) or not event_id:
        return "Line is missing a valid 'event_id' string."

    return None


def _append_line_locked(path: Path, line: str) -> None:
    """Append a single newline-terminated line to ``path`` under an exclusive lock.

    Creates the parent directory and the file if they do not exist.

    Raises:
        OSError: If the directory creation, file open, or write fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fcntl.flock(fh, fcntl.LOCK_EX)
        try:
            fh.write(line + "\n")
            fh.flush()
        finally:
            fcntl.flock(fh, fcntl.LOCK_UN)


def _read_last_nonempty_line(path: Path) -> str | None:
    """Return the last non-empty line from a file without reading it fully.

    Reads at most :data:`_TAIL_CHUNK_BYTES` bytes from the end of the file.

    Returns:
        The last non-empty line, stripped, or ``None`` if there is none or
        the file cannot be read.
    """
    try:
        with path.open("rb") as fh:
            fh.seek(0, 2)
            size = fh.tell()

            if size == 0:
                return None

            chunk_start = max(0, size - _TAIL_CHUNK_BYTES)
            fh.seek(chunk_start)
            chunk = fh.read()

        lines = chunk.decode("utf-8", errors="replace").splitlines()
        for line in reversed(lines):
            stripped = line.strip()
            if stripped:
                return stripped

        return None

    except OSError:
        return None
