"""
Event Type Constants for the ticket sale journal

Every state change made by the registry or the sale is journaled under one
of these event types.  Using constants instead of string literals keeps the
names consistent between writers and anything that replays the journal.

=============================================================================
NAMING CONVENTION
=============================================================================

Events use "domain:action" format in PAST TENSE:

    Good: "ticket:purchased", "whitelist:added"
    Bad:  "ticket:purchase", "add_to_whitelist"

Events record FACTS about what happened, not requests.

=============================================================================
USAGE
=============================================================================

    from ticket_sale.events import Events
    from ticket_sale.ledger import try_append_event

    try_append_event("chiba_hill", Events.TICKET_PURCHASED, {"ticket_id": 1, ...})

=============================================================================
"""


class Events:
    """
    All journal event types.

    Organized by domain.  The docstring under each constant documents the
    ``data`` payload written with it.
    """

    # =========================================================================
    # SALE LIFECYCLE
    # =========================================================================

    SALE_DEPLOYED = "sale:deployed"
    """
    Written once when a sale is constructed.

    Detail: {
        "address": str, "owner": str, "name": str, "symbol": str,
        "ticket_price": int, "start_time": int
    }
    """

    PRICE_UPDATED = "sale:price_updated"
    """
    Detail: {"old_price": int, "new_price": int}
    """

    FUNDS_WITHDRAWN = "sale:funds_withdrawn"
    """
    Detail: {"recipient": str, "amount": int, "custody_after": int}
    """

    # =========================================================================
    # TICKETS
    # =========================================================================

    TICKET_PURCHASED = "ticket:purchased"
    """
    Detail: {"ticket_id": int, "buyer": str, "price": int, "purchased_at": int}
    """

    # =========================================================================
    # ACCESS REGISTRY
    # =========================================================================

    WHITELIST_ADDED = "whitelist:added"
    """
    Detail: {"addresses": list[str]}  # in insertion order
    """

    WHITELIST_REMOVED = "whitelist:removed"
    """
    Detail: {"address": str}
    """
