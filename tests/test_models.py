"""Tests for ticket_sale.models validation."""

import pytest
from pydantic import ValidationError

from ticket_sale.models import SaleParameters, as_uint


@pytest.mark.unit
def test_as_uint_accepts_zero_and_large_values():
    assert as_uint(0) == 0
    assert as_uint(2**256 - 1) == 2**256 - 1


@pytest.mark.unit
@pytest.mark.parametrize("value", [-1, 1.0, "1", None, False])
def test_as_uint_rejects(value):
    with pytest.raises(ValidationError):
        as_uint(value)


@pytest.mark.unit
def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        as_uint(-1)


@pytest.mark.unit
def test_sale_parameters():
    params = SaleParameters(name="Chiba Hill Tickets", symbol="CHT", ticket_price=0, start_time=0)

    assert params.ticket_price == 0
    with pytest.raises(ValidationError):
        params.ticket_price = 5  # frozen


@pytest.mark.unit
def test_sale_parameters_rejects_negative_price():
    with pytest.raises(ValidationError):
        SaleParameters(name="n", symbol="s", ticket_price=-10, start_time=0)
