"""Quote provider contract."""

from finquote.services.quote_providers.base import QuoteProvider

__all__ = ["QuoteProvider"]
