"""
Access registry: the set of addresses allowed to take part in a sale.

The registry answers one question for its consumers, "is this address
whitelisted?", through the :class:`WhitelistQuery` protocol.  Anything that
implements ``is_whitelisted`` can stand in for it, which is how tests
substitute a fake.

Only the registry owner may change membership.  ``add`` and ``remove`` are
idempotent; ``bulk_add`` is all-or-nothing.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from typing import Protocol, runtime_checkable

from ticket_sale.events import Events
from ticket_sale.ledger import try_append_event
from ticket_sale.permissions import require_owner
from ticket_sale.types import Address

logger = logging.getLogger(__name__)


@runtime_checkable
class WhitelistQuery(Protocol):
    """The single query a sale needs from an access registry."""

    def is_whitelisted(self, address: Address) -> bool: ...


class AccessRegistry:
    """
    Owner-administered whitelist.

    Args:
        owner: Identity allowed to mutate the whitelist. Fixed for the
            registry's lifetime.
        journal_id: If given, membership changes are appended to this audit
            journal (see :mod:`ticket_sale.ledger`).
    """

    def __init__(self, owner: Address, *, journal_id: str | None = None) -> None:
        self._owner = owner
        self._whitelist: set[Address] = set()
        self._journal_id = journal_id
        self._lock = threading.RLock()

    @property
    def owner(self) -> Address:
        return self._owner

    def is_whitelisted(self, address: Address) -> bool:
        """Return True if ``address`` is enrolled. Never raises."""
        return address in self._whitelist

    def members(self) -> frozenset[Address]:
        """Return an immutable snapshot of the whitelist."""
        with self._lock:
            return frozenset(self._whitelist)

    def __contains__(self, address: object) -> bool:
        return address in self._whitelist

    def __len__(self) -> int:
        return len(self._whitelist)

    def __iter__(self) -> Iterator[Address]:
        return iter(self.members())

    @require_owner("registry.add")
    def add(self, caller: Address, address: Address) -> None:
        """Enroll ``address``. Adding an enrolled address is a no-op."""
        self.bulk_add(caller, [address])

    @require_owner("registry.bulk_add")
    def bulk_add(self, caller: Address, addresses: Iterable[Address]) -> None:
        """
        Enroll every address in ``addresses``, in order.

        The iterable is fully materialized before the whitelist changes, so
        either all addresses are enrolled or (on any failure) none are.

        Raises:
            TypeError: ``addresses`` is a single address string.
        """
        if isinstance(addresses, str):
            raise TypeError("bulk_add expects an iterable of addresses, not a single address")
        batch = list(addresses)
        with self._lock:
            added = [a for a in dict.fromkeys(batch) if a not in self._whitelist]
            self._whitelist.update(added)

            if added:
                logger.info("Whitelisted %d address(es)", len(added))
                try_append_event(
                    self._journal_id,
                    Events.WHITELIST_ADDED,
                    {"addresses": added},
                    meta={"component": "registry"},
                )

    @require_owner("registry.remove")
    def remove(self, caller: Address, address: Address) -> None:
        """Remove ``address``. Removing an absent address is a no-op."""
        with self._lock:
            if address not in self._whitelist:
                return
            self._whitelist.discard(address)

            logger.info("Removed %s from whitelist", address)
            try_append_event(
                self._journal_id,
                Events.WHITELIST_REMOVED,
                {"address": address},
                meta={"component": "registry"},
            )
