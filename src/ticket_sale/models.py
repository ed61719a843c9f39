"""
Pydantic models for sale parameters and read-only state snapshots.

- :class:`SaleParameters` validates the construction parameters of a sale
  before anything is deployed.
- :class:`SaleSnapshot` is the public state of a sale at one instant, for
  front-ends and diagnostics.
- :func:`as_uint` validates a single unsigned integer (prices, amounts,
  timestamps).  Strict mode: booleans, floats and numeric strings are
  rejected rather than coerced.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, Strict, TypeAdapter

# Unsigned integer in the smallest currency unit, or Unix seconds.
UInt = Annotated[int, Strict(), Field(ge=0)]

_UINT_ADAPTER: TypeAdapter[int] = TypeAdapter(UInt)


def as_uint(value: object) -> int:
    """
    Validate that ``value`` is an unsigned integer and return it.

    Raises:
        pydantic.ValidationError: (a ``ValueError``) if ``value`` is negative
            or not an ``int``.
    """
    return _UINT_ADAPTER.validate_python(value)


class SaleParameters(BaseModel):
    """
    Construction parameters for a ticket sale.

    Attributes:
        name: Display name of the ticket collection (e.g. "Chiba Hill Tickets")
        symbol: Display symbol (e.g. "CHT")
        ticket_price: Initial price in the currency's smallest unit
        start_time: Event start, Unix seconds. Purchases are accepted strictly
            before this instant. A value in the past is accepted and yields a
            sale that is closed from the start.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    symbol: str
    ticket_price: UInt
    start_time: UInt


class SaleSnapshot(BaseModel):
    """
    Public state of a sale at one instant.

    Attributes:
        address: The sale's own custody account in the currency ledger
        owner: Identity allowed to change the price and withdraw
        name: Display name
        symbol: Display symbol
        ticket_price: Current price
        start_time: Event start, Unix seconds
        sale_open: True if the snapshot instant is before start_time
        next_ticket_id: Id the next successful purchase will receive
        total_supply: Number of tickets minted so far
        custody_balance: Currency currently held by the sale
        total_collected: Sum of all prices collected
        total_withdrawn: Sum of all amounts withdrawn by the owner
    """

    model_config = ConfigDict(frozen=True)

    address: str
    owner: str
    name: str
    symbol: str
    ticket_price: int
    start_time: int
    sale_open: bool
    next_ticket_id: int
    total_supply: int
    custody_balance: int
    total_collected: int
    total_withdrawn: int
