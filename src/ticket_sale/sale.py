"""Whitelisted, time-gated ticket sale.

Overview
--------
A :class:`TicketSale` sells uniquely numbered, non-fungible tickets for a
settlement currency.  It owns the sale configuration (price, start time,
owner), enforces who may buy and when on every purchase, mints one ticket per
accepted purchase and holds the collected currency in its own custody
account until the owner withdraws it.

Sale window
-----------
The sale is open while ``now < start_time`` and closed from ``start_time``
on.  ``now`` is never read from a live clock inside the rules: it comes from
the ``clock`` injected at construction, or from an explicit ``now=`` argument
on the call.  Time only moves forward, so a closed sale never reopens.  A
``start_time`` already in the past is accepted and gives a sale that is
closed from the moment it exists.

Purchase
--------
``purchase_ticket(buyer)`` runs these checks, in order, before anything
changes:

1. The sale is open, else :exc:`~ticket_sale.errors.SaleClosed`.
2. The buyer is whitelisted and their currency balance covers the price,
   else :exc:`~ticket_sale.errors.InsufficientFunds`.
3. The currency ledger accepts an allowance-based debit of the price from
   the buyer into the sale's custody account.  Any refusal (typically an
   allowance that is too low) is also reported as
   :exc:`~ticket_sale.errors.InsufficientFunds`, with the currency error
   chained as ``__cause__``.

Only then is the ticket minted: it receives ``next_ticket_id``, which then
increments.  Ids start at 1 and are never reused, so id order is purchase
order.  There is no per-buyer limit and no supply cap.

Custody
-------
The custody balance is the sale's own balance in the currency ledger.  The
owner may withdraw any amount up to that balance; more fails with
:exc:`~ticket_sale.errors.InsufficientCustodyBalance` and moves nothing.

Journal
-------
Each accepted change is appended to the audit journal while the sale lock is
still held, so journal order is acceptance order.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict

from ticket_sale.currency import CurrencyLedger
from ticket_sale.errors import (
    CurrencyError,
    InsufficientCustodyBalance,
    InsufficientFunds,
    OperationContext,
    SaleClosed,
    UnknownTicket,
)
from ticket_sale.events import Events
from ticket_sale.ledger import try_append_event
from ticket_sale.models import SaleParameters, SaleSnapshot, as_uint
from ticket_sale.permissions import require_owner
from ticket_sale.registry import WhitelistQuery
from ticket_sale.types import Address, Clock, new_address, system_clock

logger = logging.getLogger(__name__)

# Ticket ids start here and increase by one per mint.
FIRST_TICKET_ID = 1


class TicketSale:
    """
    Ticket sale ledger.

    Args:
        name: Display name of the ticket collection
        symbol: Display symbol of the ticket collection
        currency: Settlement currency ledger
        ticket_price: Initial price, in the currency's smallest unit
        start_time: Event start, Unix seconds; purchases close at this instant
        owner: The deploying identity; may change the price and withdraw
        registry: Whitelist consulted on every purchase
        address: The sale's custody account in the currency ledger. A fresh
            random address is generated when omitted.
        clock: Source of the current time when a call does not pass ``now``
        journal_id: If given, state changes are appended to this audit journal

    Raises:
        pydantic.ValidationError: If ``ticket_price`` or ``start_time`` is not
            an unsigned integer.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        currency: CurrencyLedger,
        ticket_price: int,
        start_time: int,
        *,
        owner: Address,
        registry: WhitelistQuery,
        address: Address | None = None,
        clock: Clock = system_clock,
        journal_id: str | None = None,
    ) -> None:
        self._name = name
        self._symbol = symbol
        self._currency = currency
        self._ticket_price = as_uint(ticket_price)
        self._start_time = as_uint(start_time)
        self._owner = owner
        self._registry = registry
        self._address = address if address is not None else new_address()
        self._clock = clock
        self._journal_id = journal_id

        self._next_ticket_id = FIRST_TICKET_ID
        self._ticket_owners: dict[int, Address] = {}
        self._tickets_by_holder: defaultdict[Address, list[int]] = defaultdict(list)
        self._total_collected = 0
        self._total_withdrawn = 0
        self._lock = threading.RLock()

        logger.info(
            "Deployed sale %r (%s) at %s: price=%d start_time=%d owner=%s",
            name,
            symbol,
            self._address,
            self._ticket_price,
            self._start_time,
            owner,
        )
        self._journal(
            Events.SALE_DEPLOYED,
            {
                "address": self._address,
                "owner": owner,
                "name": name,
                "symbol": symbol,
                "ticket_price": self._ticket_price,
                "start_time": self._start_time,
            },
        )

    @classmethod
    def deploy(
        cls,
        parameters: SaleParameters,
        *,
        owner: Address,
        currency: CurrencyLedger,
        registry: WhitelistQuery,
        address: Address | None = None,
        clock: Clock = system_clock,
        journal_id: str | None = None,
    ) -> TicketSale:
        """Construct a sale from validated :class:`SaleParameters`."""
        return cls(
            parameters.name,
            parameters.symbol,
            currency,
            parameters.ticket_price,
            parameters.start_time,
            owner=owner,
            registry=registry,
            address=address,
            clock=clock,
            journal_id=journal_id,
        )

    # ── Configuration queries ─────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def owner(self) -> Address:
        return self._owner

    @property
    def address(self) -> Address:
        return self._address

    @property
    def currency(self) -> CurrencyLedger:
        return self._currency

    @property
    def registry(self) -> WhitelistQuery:
        return self._registry

    @property
    def ticket_price(self) -> int:
        return self._ticket_price

    @property
    def start_time(self) -> int:
        return self._start_time

    # ── Ticket queries ────────────────────────────────────────────────────────

    @property
    def next_ticket_id(self) -> int:
        return self._next_ticket_id

    @property
    def total_supply(self) -> int:
        """Number of tickets minted so far."""
        return self._next_ticket_id - FIRST_TICKET_ID

    def owner_of(self, ticket_id: int) -> Address:
        """
        Return the holder of ``ticket_id``.

        Raises:
            UnknownTicket: If ``ticket_id`` was never minted.
        """
        try:
            return self._ticket_owners[ticket_id]
        except KeyError:
            raise UnknownTicket(
                ticket_id, context=OperationContext(operation="sale.owner_of")
            ) from None

    def ticket_count(self, holder: Address) -> int:
        """Number of tickets held by ``holder``."""
        return len(self._tickets_by_holder.get(holder, ()))

    def tickets_of(self, holder: Address) -> list[int]:
        """Ids of the tickets held by ``holder``, in purchase order."""
        return list(self._tickets_by_holder.get(holder, ()))

    # ── Sale window and custody ───────────────────────────────────────────────

    def is_sale_open(self, now: int | None = None) -> bool:
        """True while the current time is strictly before ``start_time``."""
        return self._now(now) < self._start_time

    def custody_balance(self) -> int:
        """Currency currently held by the sale."""
        return self._currency.balance_of(self._address)

    @property
    def total_collected(self) -> int:
        return self._total_collected

    @property
    def total_withdrawn(self) -> int:
        return self._total_withdrawn

    def snapshot(self, now: int | None = None) -> SaleSnapshot:
        """Return the public state of the sale as a :class:`SaleSnapshot`."""
        with self._lock:
            return SaleSnapshot(
                address=self._address,
                owner=self._owner,
                name=self._name,
                symbol=self._symbol,
                ticket_price=self._ticket_price,
                start_time=self._start_time,
                sale_open=self.is_sale_open(now),
                next_ticket_id=self._next_ticket_id,
                total_supply=self.total_supply,
                custody_balance=self.custody_balance(),
                total_collected=self._total_collected,
                total_withdrawn=self._total_withdrawn,
            )

    # ── State-changing operations ─────────────────────────────────────────────

    def purchase_ticket(self, buyer: Address, *, now: int | None = None) -> int:
        """
        Buy one ticket at the current price.

        Args:
            buyer: The purchasing identity; pays and receives the ticket
            now: Current time in Unix seconds; defaults to the injected clock

        Returns:
            The id of the minted ticket.

        Raises:
            SaleClosed: ``now`` is at or after ``start_time``.
            InsufficientFunds: The buyer is not whitelisted, or their balance
                or allowance does not cover the price.
        """
        context = OperationContext(operation="sale.purchase_ticket", details=f"buyer={buyer}")
        with self._lock:
            current = self._now(now)
            if current >= self._start_time:
                logger.warning(
                    "Rejected purchase by %s: sale closed at %d (now=%d)",
                    buyer,
                    self._start_time,
                    current,
                )
                raise SaleClosed(context=context)

            price = self._ticket_price
            if (
                not self._registry.is_whitelisted(buyer)
                or self._currency.balance_of(buyer) < price
            ):
                logger.warning("Rejected purchase by %s: not eligible at price %d", buyer, price)
                raise InsufficientFunds(self._currency.symbol, context=context)

            try:
                debited = self._currency.transfer_from(self._address, buyer, self._address, price)
            except CurrencyError as exc:
                logger.warning("Rejected purchase by %s: currency refused debit: %s", buyer, exc)
                raise InsufficientFunds(self._currency.symbol, context=context) from exc
            if not debited:
                logger.warning("Rejected purchase by %s: currency refused debit", buyer)
                raise InsufficientFunds(self._currency.symbol, context=context)

            ticket_id = self._next_ticket_id
            self._ticket_owners[ticket_id] = buyer
            self._tickets_by_holder[buyer].append(ticket_id)
            self._next_ticket_id += 1
            self._total_collected += price

            logger.info("Ticket %d sold to %s for %d", ticket_id, buyer, price)
            self._journal(
                Events.TICKET_PURCHASED,
                {"ticket_id": ticket_id, "buyer": buyer, "price": price, "purchased_at": current},
            )
        return ticket_id

    @require_owner("sale.update_ticket_price")
    def update_ticket_price(self, caller: Address, new_price: int) -> None:
        """
        Set the price for all subsequent purchases.

        Any unsigned integer is accepted, including zero, whether or not the
        sale is still open.

        Raises:
            Unauthorized: ``caller`` is not the owner.
        """
        new_price = as_uint(new_price)
        with self._lock:
            old_price = self._ticket_price
            self._ticket_price = new_price

            logger.info("Ticket price changed from %d to %d", old_price, new_price)
            self._journal(Events.PRICE_UPDATED, {"old_price": old_price, "new_price": new_price})

    @require_owner("sale.withdraw")
    def withdraw(self, caller: Address, amount: int) -> None:
        """
        Pay ``amount`` of custodied currency out to the owner.

        Raises:
            Unauthorized: ``caller`` is not the owner.
            InsufficientCustodyBalance: ``amount`` exceeds the custody balance.
            CurrencyError: The currency ledger refused the payout.
        """
        amount = as_uint(amount)
        with self._lock:
            available = self.custody_balance()
            if amount > available:
                logger.warning(
                    "Rejected withdrawal of %d: custody holds %d", amount, available
                )
                raise InsufficientCustodyBalance(
                    requested=amount,
                    available=available,
                    context=OperationContext(operation="sale.withdraw", details=f"caller={caller}"),
                )
            if not self._currency.transfer(self._address, self._owner, amount):
                raise CurrencyError(f"{self._currency.symbol} ledger refused payout of {amount}.")
            self._total_withdrawn += amount
            remaining = self.custody_balance()

            logger.info("Withdrew %d to %s; custody now %d", amount, self._owner, remaining)
            self._journal(
                Events.FUNDS_WITHDRAWN,
                {"recipient": self._owner, "amount": amount, "custody_after": remaining},
            )

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _now(self, now: int | None) -> int:
        return self._clock() if now is None else now

    def _journal(self, event_type: str, data: dict) -> None:
        try_append_event(
            self._journal_id,
            event_type,
            {"sale": self._address, **data},
            meta={"component": "sale", "symbol": self._symbol},
        )
