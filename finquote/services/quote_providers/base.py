"""Abstract base class for quote data providers."""

from abc import ABC, abstractmethod


class QuoteProvider(ABC):
    """Fetch-collaborator interface for raw quote payloads.

    Implementations wrap a specific data source and own its transport,
    authentication, batching and retry policy. Consumers go through
    quote_service, which threads the request context and decodes the
    payloads into Quote records.
    """

    @abstractmethod
    async def fetch_quote_payloads(self, symbols: list[str]) -> list[dict]:
        """Fetch raw quote payloads for multiple symbols.

        Returns one dict per symbol the source could resolve, keyed by wire
        names (symbol, marketState, quoteType, regularMarketPrice, ...).
        Symbols without data are simply missing from the result.
        """
