"""
Settlement currency ledger.

A sale never keeps balances itself: it pulls payment from buyers and pays
out withdrawals through a :class:`CurrencyLedger`, which needs only three
operations.

:class:`InMemoryCurrencyLedger` is a complete fungible-token ledger for
running a sale in-process: owner-only minting, approvals, allowance-based
transfers and, optionally, whitelist gating.  With a registry attached, both
endpoints of every balance movement must be whitelisted, and minting counts
as a movement from :data:`~ticket_sale.types.ZERO_ADDRESS`.  A gated
deployment therefore also whitelists the zero address and the sale's own
custody address.

Every operation checks all of its preconditions before touching any
balance, so a refused transfer leaves the ledger unchanged.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Protocol, runtime_checkable

from ticket_sale.errors import InsufficientAllowance, InsufficientBalance, TransferNotPermitted
from ticket_sale.models import as_uint
from ticket_sale.permissions import require_owner
from ticket_sale.registry import WhitelistQuery
from ticket_sale.types import ZERO_ADDRESS, Address

logger = logging.getLogger(__name__)


@runtime_checkable
class CurrencyLedger(Protocol):
    """The operations a sale consumes from its settlement currency."""

    symbol: str

    def balance_of(self, holder: Address) -> int: ...

    def transfer_from(
        self, spender: Address, owner: Address, recipient: Address, amount: int
    ) -> bool: ...

    def transfer(self, sender: Address, recipient: Address, amount: int) -> bool: ...


class InMemoryCurrencyLedger:
    """
    Fungible-token ledger held in process memory.

    Args:
        name: Display name (e.g. "Crypto JPY")
        symbol: Display symbol (e.g. "cJPY"); used in sale error messages
        owner: Identity allowed to mint
        registry: Optional whitelist; when given, both endpoints of every
            transfer and mint must be whitelisted
        decimals: Number of decimal places of one whole token
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        *,
        owner: Address,
        registry: WhitelistQuery | None = None,
        decimals: int = 18,
    ) -> None:
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self._owner = owner
        self._registry = registry
        self._balances: defaultdict[Address, int] = defaultdict(int)
        self._allowances: defaultdict[tuple[Address, Address], int] = defaultdict(int)
        self._total_supply = 0
        self._lock = threading.RLock()

    @property
    def owner(self) -> Address:
        return self._owner

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def units(self, whole_tokens: int) -> int:
        """Convert whole tokens to the smallest unit (``whole * 10**decimals``)."""
        return as_uint(whole_tokens) * 10**self.decimals

    # ── Queries ───────────────────────────────────────────────────────────────

    def balance_of(self, holder: Address) -> int:
        return self._balances.get(holder, 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        return self._allowances.get((owner, spender), 0)

    # ── Mutations ─────────────────────────────────────────────────────────────

    @require_owner("currency.mint")
    def mint(self, caller: Address, recipient: Address, amount: int) -> None:
        """Create ``amount`` new units credited to ``recipient``."""
        amount = as_uint(amount)
        with self._lock:
            self._check_permitted(ZERO_ADDRESS, recipient)
            self._balances[recipient] += amount
            self._total_supply += amount
        logger.debug("Minted %d %s to %s", amount, self.symbol, recipient)

    def approve(self, owner: Address, spender: Address, amount: int) -> bool:
        """Set the amount ``spender`` may move out of ``owner``'s balance."""
        amount = as_uint(amount)
        with self._lock:
            self._allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: Address, recipient: Address, amount: int) -> bool:
        """Move ``amount`` from ``sender``'s own balance to ``recipient``."""
        amount = as_uint(amount)
        with self._lock:
            self._check_permitted(sender, recipient)
            self._check_balance(sender, amount)
            self._move(sender, recipient, amount)
        return True

    def transfer_from(
        self, spender: Address, owner: Address, recipient: Address, amount: int
    ) -> bool:
        """
        Move ``amount`` from ``owner`` to ``recipient`` on ``spender``'s allowance.

        Raises:
            TransferNotPermitted: An endpoint is not whitelisted (gated ledgers only).
            InsufficientAllowance: ``spender`` is approved for less than ``amount``.
            InsufficientBalance: ``owner`` holds less than ``amount``.
        """
        amount = as_uint(amount)
        with self._lock:
            self._check_permitted(owner, recipient)
            approved = self.allowance(owner, spender)
            if approved < amount:
                raise InsufficientAllowance(
                    f"{spender} is approved for {approved} {self.symbol} of {owner}, "
                    f"needs {amount}."
                )
            self._check_balance(owner, amount)
            self._allowances[(owner, spender)] = approved - amount
            self._move(owner, recipient, amount)
        return True

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _check_permitted(self, sender: Address, recipient: Address) -> None:
        if self._registry is None:
            return
        for endpoint in (sender, recipient):
            if not self._registry.is_whitelisted(endpoint):
                raise TransferNotPermitted(f"{endpoint} is not whitelisted for {self.symbol}.")

    def _check_balance(self, holder: Address, amount: int) -> None:
        held = self.balance_of(holder)
        if held < amount:
            raise InsufficientBalance(
                f"{holder} holds {held} {self.symbol}, needs {amount}."
            )

    def _move(self, sender: Address, recipient: Address, amount: int) -> None:
        self._balances[sender] -= amount
        self._balances[recipient] += amount
