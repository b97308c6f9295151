"""Typed quote schema for Yahoo-style market data APIs.

Public names are re-exported here so consumers can use:
    from finquote import Quote, InstrumentType, MarketState
"""

from finquote.exceptions import (
    FinquoteError,
    QuoteNotFound,
    RequestCancelled,
    RequestDeadlineExceeded,
    UnrecognizedClassification,
)
from finquote.schemas.classification import (
    InstrumentType,
    MarketState,
    parse_instrument_type,
    parse_market_state,
)
from finquote.schemas.quote import DerivativeDetails, EquityDetails, FundDetails, Quote
from finquote.schemas.request import QuoteRequest, RequestContext

__all__ = [
    # classification
    "InstrumentType",
    "MarketState",
    "parse_instrument_type",
    "parse_market_state",
    # quote
    "Quote",
    "EquityDetails",
    "FundDetails",
    "DerivativeDetails",
    # request
    "QuoteRequest",
    "RequestContext",
    # errors
    "FinquoteError",
    "UnrecognizedClassification",
    "RequestCancelled",
    "RequestDeadlineExceeded",
    "QuoteNotFound",
]
