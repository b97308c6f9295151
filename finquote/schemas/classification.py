"""Instrument type and market session vocabularies used by quote payloads.

Both enumerations are closed: decoding a raw wire string either yields the
matching member or fails with ``UnrecognizedClassification``. Callers that
prefer to tolerate new upstream values can decode permissively, which maps
any unrecognized string to the ``UNKNOWN`` member instead of failing.
``UNKNOWN`` is never produced by strict decoding, and no unknown string is
ever coerced into one of the known members.
"""

import enum
import logging

from finquote.constants import (
    ACTIVE_MARKET_STATES,
    POST_MARKET_STATES,
    PRE_MARKET_STATES,
    UNKNOWN_CLASSIFICATION,
)
from finquote.exceptions import UnrecognizedClassification

logger = logging.getLogger(__name__)


class InstrumentType(str, enum.Enum):
    EQUITY = "EQUITY"
    INDEX = "INDEX"
    OPTION = "OPTION"
    FOREX_PAIR = "CURRENCY"
    FUTURE = "FUTURE"
    ETF = "ETF"
    MUTUAL_FUND = "MUTUALFUND"
    UNKNOWN = UNKNOWN_CLASSIFICATION

    @property
    def has_equity_fields(self) -> bool:
        """EPS, dividend, P/E and market-cap fields apply (fully for equities, partially for funds)."""
        return self in (InstrumentType.EQUITY, InstrumentType.ETF, InstrumentType.MUTUAL_FUND)

    @property
    def has_fund_fields(self) -> bool:
        return self in (InstrumentType.ETF, InstrumentType.MUTUAL_FUND)

    @property
    def has_derivative_fields(self) -> bool:
        return self in (InstrumentType.OPTION, InstrumentType.FUTURE)


class MarketState(str, enum.Enum):
    PREPRE = "PREPRE"
    PRE = "PRE"
    REGULAR = "REGULAR"
    POST = "POST"
    POSTPOST = "POSTPOST"
    CLOSED = "CLOSED"
    UNKNOWN = UNKNOWN_CLASSIFICATION

    @property
    def is_active(self) -> bool:
        return self.value in ACTIVE_MARKET_STATES

    @property
    def is_pre_market(self) -> bool:
        return self.value in PRE_MARKET_STATES

    @property
    def is_post_market(self) -> bool:
        return self.value in POST_MARKET_STATES


# Wire string -> member, excluding the permissive UNKNOWN placeholder
_INSTRUMENT_TYPES: dict[str, InstrumentType] = {
    m.value: m for m in InstrumentType if m is not InstrumentType.UNKNOWN
}
_MARKET_STATES: dict[str, MarketState] = {
    m.value: m for m in MarketState if m is not MarketState.UNKNOWN
}


def _parse(raw: object, known: dict, unknown, kind: str, strict: bool):
    if isinstance(raw, str) and raw in known:
        return known[raw]
    if strict:
        raise UnrecognizedClassification(kind, raw)
    logger.warning("Passing through unrecognized %s %r as %s", kind, raw, unknown.value)
    return unknown


def parse_instrument_type(raw: object, *, strict: bool = True) -> InstrumentType:
    """Map a raw ``quoteType`` string to an ``InstrumentType``.

    Matching is exact and case-sensitive. Raises ``UnrecognizedClassification``
    for anything else unless ``strict`` is False, in which case
    ``InstrumentType.UNKNOWN`` is returned.
    """
    return _parse(raw, _INSTRUMENT_TYPES, InstrumentType.UNKNOWN, "instrument type", strict)


def parse_market_state(raw: object, *, strict: bool = True) -> MarketState:
    """Map a raw ``marketState`` string to a ``MarketState`` (same policy as parse_instrument_type)."""
    return _parse(raw, _MARKET_STATES, MarketState.UNKNOWN, "market state", strict)
