"""Shared market-state groupings."""

# Session phases during which some trading happens on the exchange.
ACTIVE_MARKET_STATES: frozenset[str] = frozenset({"PREPRE", "PRE", "REGULAR", "POST", "POSTPOST"})

PRE_MARKET_STATES: frozenset[str] = frozenset({"PREPRE", "PRE"})
POST_MARKET_STATES: frozenset[str] = frozenset({"POST", "POSTPOST"})

# Wire value for a classification string outside the known vocabulary.
UNKNOWN_CLASSIFICATION = "UNKNOWN"
