"""Unit tests for quote_service: context handling, decoding and symbol parsing."""

import asyncio
import gc
import logging
from unittest.mock import AsyncMock, patch

import pytest

from finquote.exceptions import (
    QuoteNotFound,
    RequestCancelled,
    RequestDeadlineExceeded,
    UnrecognizedClassification,
)
from finquote.schemas.classification import InstrumentType, MarketState
from finquote.schemas.request import QuoteRequest, RequestContext
from finquote.services.quote_providers import QuoteProvider
from finquote.services.quote_service import get_quote, get_quotes
from tests.helpers import make_payload

pytestmark = pytest.mark.asyncio(loop_scope="function")


class FakeProvider(QuoteProvider):
    """Returns canned payloads, optionally after a delay."""

    def __init__(self, payloads: list[dict], delay: float = 0.0):
        self.payloads = payloads
        self.delay = delay
        self.calls: list[list[str]] = []
        self.was_cancelled = False

    async def fetch_quote_payloads(self, symbols: list[str]) -> list[dict]:
        self.calls.append(symbols)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.was_cancelled = True
            raise
        return self.payloads


class FailingOnCancelProvider(QuoteProvider):
    """Turns its own cancellation into a connection error, like a client tearing down a socket."""

    async def fetch_quote_payloads(self, symbols: list[str]) -> list[dict]:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            raise ConnectionError("late failure")
        return []


def _provider_mock(payloads: list) -> AsyncMock:
    provider = AsyncMock(spec=QuoteProvider)
    provider.fetch_quote_payloads.return_value = payloads
    return provider


class TestGetQuote:
    async def test_returns_decoded_quote(self):
        provider = FakeProvider([make_payload()])
        q = await get_quote(provider, QuoteRequest(symbol="aapl"))
        assert q.symbol == "AAPL"
        assert q.market_state is MarketState.REGULAR
        assert provider.calls == [["AAPL"]]

    async def test_picks_matching_payload(self):
        provider = FakeProvider([make_payload(symbol="MSFT"), make_payload(symbol="AAPL", regularMarketPrice=1.0)])
        q = await get_quote(provider, QuoteRequest(symbol="AAPL"))
        assert q.regular_market_price == 1.0

    async def test_missing_quote_raises(self):
        provider = FakeProvider([make_payload(symbol="MSFT")])
        with pytest.raises(QuoteNotFound) as exc_info:
            await get_quote(provider, QuoteRequest(symbol="AAPL"))
        assert exc_info.value.symbol == "AAPL"

    async def test_empty_response_raises(self):
        with pytest.raises(QuoteNotFound):
            await get_quote(FakeProvider([]), QuoteRequest(symbol="AAPL"))

    async def test_classification_error_propagates(self):
        provider = FakeProvider([make_payload(marketState="BOGUS")])
        with pytest.raises(UnrecognizedClassification):
            await get_quote(provider, QuoteRequest(symbol="AAPL"))

    async def test_permissive_argument(self):
        provider = FakeProvider([make_payload(marketState="BOGUS")])
        q = await get_quote(provider, QuoteRequest(symbol="AAPL"), strict=False)
        assert q.market_state is MarketState.UNKNOWN
        assert q.to_wire()["marketState"] == "BOGUS"

    @pytest.mark.usefixtures("permissive_classification")
    async def test_strict_argument_overrides_setting(self):
        provider = FakeProvider([make_payload(marketState="BOGUS")])
        with pytest.raises(UnrecognizedClassification):
            await get_quote(provider, QuoteRequest(symbol="AAPL"), strict=True)

    async def test_with_context_completes(self):
        provider = FakeProvider([make_payload()])
        req = QuoteRequest(symbol="AAPL", context=RequestContext.with_timeout(5.0))
        q = await get_quote(provider, req)
        assert q.symbol == "AAPL"

    async def test_pre_cancelled_context_skips_provider(self):
        provider = FakeProvider([make_payload()])
        ctx = RequestContext()
        ctx.cancel()
        with pytest.raises(RequestCancelled):
            await get_quote(provider, QuoteRequest(symbol="AAPL", context=ctx))
        assert provider.calls == []

    async def test_expired_context_skips_provider(self):
        provider = FakeProvider([make_payload()])
        ctx = RequestContext(deadline=0.0)
        with pytest.raises(RequestDeadlineExceeded):
            await get_quote(provider, QuoteRequest(symbol="AAPL", context=ctx))
        assert provider.calls == []

    async def test_cancel_in_flight(self):
        provider = FakeProvider([make_payload()], delay=10)
        ctx = RequestContext()
        req = QuoteRequest(symbol="AAPL", context=ctx)

        task = asyncio.ensure_future(get_quote(provider, req))
        await asyncio.sleep(0.01)
        ctx.cancel()

        with pytest.raises(RequestCancelled):
            await asyncio.wait_for(task, timeout=1)
        await asyncio.sleep(0)
        assert provider.was_cancelled

    async def test_abandoned_fetch_error_is_retrieved(self):
        loop = asyncio.get_running_loop()
        reported: list[dict] = []
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        try:
            ctx = RequestContext()
            task = asyncio.ensure_future(
                get_quote(FailingOnCancelProvider(), QuoteRequest(symbol="AAPL", context=ctx))
            )
            await asyncio.sleep(0.01)
            ctx.cancel()
            with pytest.raises(RequestCancelled):
                await asyncio.wait_for(task, timeout=1)
            for _ in range(3):
                await asyncio.sleep(0)
            del task
            gc.collect()
        finally:
            loop.set_exception_handler(None)
        assert not [c for c in reported if "never retrieved" in c.get("message", "")]

    async def test_deadline_in_flight(self):
        provider = FakeProvider([make_payload()], delay=10)
        req = QuoteRequest(symbol="AAPL", context=RequestContext.with_timeout(0.05))

        with pytest.raises(RequestDeadlineExceeded):
            await asyncio.wait_for(get_quote(provider, req), timeout=1)

    async def test_deadline_is_a_timeout_error(self):
        provider = FakeProvider([make_payload()], delay=10)
        req = QuoteRequest(symbol="AAPL", context=RequestContext.with_timeout(0.01))
        with pytest.raises(TimeoutError):
            await get_quote(provider, req)

    async def test_default_timeout_applies_without_context(self):
        provider = FakeProvider([make_payload()], delay=10)
        with patch("finquote.services.quote_service.settings.default_timeout", 0.05):
            with pytest.raises(RequestDeadlineExceeded):
                await asyncio.wait_for(get_quote(provider, QuoteRequest(symbol="AAPL")), timeout=1)

    async def test_provider_error_propagates(self):
        provider = _provider_mock([])
        provider.fetch_quote_payloads.side_effect = ConnectionError("boom")
        req = QuoteRequest(symbol="AAPL", context=RequestContext.with_timeout(5.0))
        with pytest.raises(ConnectionError):
            await get_quote(provider, req)


class TestGetQuotes:
    async def test_parses_symbols(self):
        provider = _provider_mock([make_payload(symbol="AAPL"), make_payload(symbol="MSFT")])
        result = await get_quotes(provider, "AAPL,MSFT")
        assert [q.symbol for q in result] == ["AAPL", "MSFT"]

    async def test_uppercase_normalization(self):
        provider = _provider_mock([])
        await get_quotes(provider, "aapl, msft")
        provider.fetch_quote_payloads.assert_awaited_once_with(["AAPL", "MSFT"])

    async def test_empty_returns_empty(self):
        provider = _provider_mock([])
        assert await get_quotes(provider, " , ") == []
        provider.fetch_quote_payloads.assert_not_awaited()

    async def test_skips_malformed_payload(self, caplog):
        provider = _provider_mock([
            make_payload(symbol="AAPL"),
            make_payload(symbol="BAD", regularMarketDayHigh=1.0, regularMarketDayLow=2.0),
            "No data found",
        ])
        with caplog.at_level(logging.WARNING, logger="finquote.services.quote_service"):
            result = await get_quotes(provider, "AAPL,BAD,ZZZ")
        assert [q.symbol for q in result] == ["AAPL"]
        assert "Skipping malformed quote for BAD" in caplog.text
        assert "non-dict" in caplog.text
        assert "ZZZ" in caplog.text

    async def test_classification_error_propagates(self):
        provider = _provider_mock([make_payload(quoteType="WARRANT")])
        with pytest.raises(UnrecognizedClassification):
            await get_quotes(provider, "AAPL")

    async def test_permissive_passes_through(self):
        provider = _provider_mock([make_payload(quoteType="WARRANT")])
        result = await get_quotes(provider, "AAPL", strict=False)
        assert result[0].quote_type is InstrumentType.UNKNOWN
        assert result[0].raw_quote_type == "WARRANT"
