"""
Owner-only access control.

The registry, the sale and the in-memory currency ledger each have a single
owner fixed at construction.  Restricted operations take the calling
identity as their first argument and compare it with the stored owner by
equality.  There is no role hierarchy and no ownership transfer.

Usage:
    class AccessRegistry:
        @require_owner("registry.add")
        def add(self, caller, address): ...

The check runs before the wrapped method body, so an unauthorized call has no
effect at all.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, Protocol, TypeVar

from ticket_sale.errors import OperationContext, Unauthorized
from ticket_sale.types import Address

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class Owned(Protocol):
    """Anything with a fixed owner identity."""

    @property
    def owner(self) -> Address: ...


def is_owner(target: Owned, caller: Address) -> bool:
    """Return True if ``caller`` is the owner of ``target``."""
    return caller == target.owner


def require_owner(operation: str) -> Callable[[F], F]:
    """
    Decorator restricting a method to its instance's owner.

    The wrapped method must take the calling identity as its first argument
    after ``self``.

    Args:
        operation: Stable operation identifier recorded on the raised
            exception's context (e.g. ``"sale.withdraw"``).

    Raises:
        Unauthorized: If the caller is not the owner. The method body does
            not run.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(self: Owned, caller: Address, *args: Any, **kwargs: Any) -> Any:
            if not is_owner(self, caller):
                logger.warning("Rejected %s: caller %s is not the owner", operation, caller)
                raise Unauthorized(
                    context=OperationContext(operation=operation, details=f"caller={caller}")
                )
            return func(self, caller, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
