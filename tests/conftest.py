"""
Shared pytest fixtures for the ticket sale test suite.

Fixtures mirror the standard deployment used throughout the tests:

- an access registry owned by ``OWNER``
- a whitelist-gated currency ("cJPY", 18 decimals) owned by ``OWNER``
- a sale "Chiba Hill Tickets" (CHT) priced at 10 cJPY, starting at
  ``EVENT_START_TIME``, with a fixed custody address
- ``OWNER``, ``ALICE``, ``BOB`` and ``CAROL`` whitelisted together with the
  zero address and the sale; ``DAVE`` is not
- 100 cJPY minted to Alice, Bob and Carol, each approving the sale for 100

Every test runs with the audit journal redirected to ``tmp_path``.
"""

from collections.abc import Generator
from pathlib import Path

import pytest

from tests.constants import (
    ALICE,
    BEFORE_START,
    BOB,
    CAROL,
    EVENT_START_TIME,
    OWNER,
    SALE_ADDRESS,
)
from tests.fakes import FakeClock
from ticket_sale.config import use_test_journal
from ticket_sale.currency import InMemoryCurrencyLedger
from ticket_sale.registry import AccessRegistry
from ticket_sale.sale import TicketSale
from ticket_sale.types import ZERO_ADDRESS

# ============================================================================
# JOURNAL ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def journal_root(tmp_path: Path) -> Generator[Path, None, None]:
    """Redirect all journal writes to ``tmp_path / "ledger"`` for every test."""
    with use_test_journal(tmp_path / "ledger") as root:
        yield root


# ============================================================================
# DEPLOYMENT FIXTURES
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """A clock that starts one minute before the event."""
    return FakeClock(BEFORE_START)


@pytest.fixture
def registry() -> AccessRegistry:
    return AccessRegistry(OWNER)


@pytest.fixture
def cjpy(registry: AccessRegistry) -> InMemoryCurrencyLedger:
    return InMemoryCurrencyLedger("Crypto JPY", "cJPY", owner=OWNER, registry=registry)


@pytest.fixture
def sale(
    registry: AccessRegistry, cjpy: InMemoryCurrencyLedger, clock: FakeClock
) -> TicketSale:
    """A deployed sale with funded, whitelisted and approving buyers."""
    ticket_sale = TicketSale(
        "Chiba Hill Tickets",
        "CHT",
        cjpy,
        cjpy.units(10),
        EVENT_START_TIME,
        owner=OWNER,
        registry=registry,
        address=SALE_ADDRESS,
        clock=clock,
    )

    registry.bulk_add(OWNER, [ZERO_ADDRESS, SALE_ADDRESS, OWNER, ALICE, BOB, CAROL])

    for buyer in (ALICE, BOB, CAROL):
        cjpy.mint(OWNER, buyer, cjpy.units(100))
        cjpy.approve(buyer, SALE_ADDRESS, cjpy.units(100))

    return ticket_sale
