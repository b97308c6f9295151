"""Errors raised while decoding quotes or serving quote requests."""


class FinquoteError(Exception):
    """Base class for all finquote errors."""


class UnrecognizedClassification(FinquoteError, ValueError):
    """A raw instrument-type or market-state string outside the known vocabulary."""

    def __init__(self, kind: str, value: object):
        self.kind = kind
        self.value = value
        super().__init__(f"Unrecognized {kind}: {value!r}")


class RequestCancelled(FinquoteError):
    """The request context was cancelled before the quote arrived."""


class RequestDeadlineExceeded(FinquoteError, TimeoutError):
    """The request context's deadline passed before the quote arrived."""


class QuoteNotFound(FinquoteError, LookupError):
    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"No quote data for {symbol}")
