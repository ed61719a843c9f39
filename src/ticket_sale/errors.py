"""Typed exceptions for the ticket sale package.

Two small hierarchies live here:

- :class:`TicketSaleError` — failures of registry and sale operations
  (authorization, sale window, purchase eligibility, custody, lookups).
- :class:`CurrencyError` — failures raised by a currency ledger when it
  refuses to move a balance.

Every sale/registry failure carries an :class:`OperationContext` so that
callers and logs can identify the rejected operation without parsing the
message.  The messages themselves are stable and meant for end users.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class OperationContext:
    """Structured operation metadata carried by ticket sale exceptions.

    Attributes:
        operation: Stable operation identifier (for example
            ``"sale.purchase_ticket"``).
        details: Optional human-readable context for logs and debugging.
    """

    operation: str
    details: str | None = None


class TicketSaleError(RuntimeError):
    """Base exception for registry and sale operation failures.

    Args:
        message: User-facing failure message.
        context: Structured operation metadata.
    """

    def __init__(self, message: str, *, context: OperationContext) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class Unauthorized(TicketSaleError):
    """Caller is not the owner of the registry, sale or currency ledger."""

    def __init__(self, *, context: OperationContext) -> None:
        super().__init__("Caller is not the owner.", context=context)


class SaleClosed(TicketSaleError):
    """Purchase attempted at or after the event start time."""

    def __init__(self, *, context: OperationContext) -> None:
        super().__init__("Event already started. Ticket sales are finished!", context=context)


class InsufficientFunds(TicketSaleError):
    """Buyer is not whitelisted, or their balance or allowance is too low.

    The three causes are reported identically.  When the currency ledger
    refused the debit, its exception is chained as ``__cause__``.
    """

    def __init__(self, currency_symbol: str, *, context: OperationContext) -> None:
        super().__init__(f"Insufficient {currency_symbol} balance.", context=context)


class InsufficientCustodyBalance(TicketSaleError):
    """Withdrawal exceeds the currency held by the sale."""

    def __init__(self, *, requested: int, available: int, context: OperationContext) -> None:
        super().__init__(
            f"Withdrawal of {requested} exceeds custody balance of {available}.",
            context=context,
        )
        self.requested = requested
        self.available = available


class UnknownTicket(TicketSaleError, LookupError):
    """Queried ticket id was never minted."""

    def __init__(self, ticket_id: int, *, context: OperationContext) -> None:
        super().__init__(f"Ticket {ticket_id} does not exist.", context=context)
        self.ticket_id = ticket_id


# ── Currency ledger failures ──────────────────────────────────────────────────


class CurrencyError(RuntimeError):
    """Base exception for currency ledger refusals."""


class InsufficientBalance(CurrencyError):
    """Sender balance does not cover the transfer amount."""


class InsufficientAllowance(CurrencyError):
    """Spender's approved allowance does not cover the transfer amount."""


class TransferNotPermitted(CurrencyError):
    """An endpoint of the transfer is not enrolled in the attached registry."""
