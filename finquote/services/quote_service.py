"""Quote business logic: request-context handling and payload decoding."""

import asyncio
import logging

from pydantic import ValidationError

from finquote.config import settings
from finquote.exceptions import QuoteNotFound, RequestCancelled, RequestDeadlineExceeded
from finquote.schemas.quote import Quote
from finquote.schemas.request import QuoteRequest, RequestContext
from finquote.services.quote_providers import QuoteProvider

logger = logging.getLogger(__name__)


def _check_context(context: RequestContext, symbol: str) -> None:
    if context.cancelled:
        raise RequestCancelled(f"Quote request for {symbol} was cancelled")
    if context.expired:
        raise RequestDeadlineExceeded(f"Quote request for {symbol} exceeded its deadline")


async def _fetch_within(
    provider: QuoteProvider, symbol: str, context: RequestContext,
) -> list[dict]:
    """Run the provider call, abandoning it on cancellation or deadline.

    The abandoned call is cancelled but not awaited; whatever the provider
    already did upstream is not rolled back.
    """
    _check_context(context, symbol)

    fetch = asyncio.ensure_future(provider.fetch_quote_payloads([symbol]))
    cancelled = asyncio.ensure_future(context.wait_cancelled())
    try:
        done, _ = await asyncio.wait(
            {fetch, cancelled},
            timeout=context.remaining(),
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        for task in (fetch, cancelled):
            if not task.done():
                task.add_done_callback(_discard_abandoned)
                task.cancel()

    # A finished fetch wins over a cancellation that landed in the same tick
    if fetch in done:
        return fetch.result()
    if cancelled in done:
        logger.info("Quote request for %s cancelled in flight", symbol)
        raise RequestCancelled(f"Quote request for {symbol} was cancelled")
    logger.warning("Quote request for %s exceeded its deadline", symbol)
    raise RequestDeadlineExceeded(f"Quote request for {symbol} exceeded its deadline")


def _discard_abandoned(task: asyncio.Future) -> None:
    # Mark the outcome of an abandoned fetch as retrieved
    if not task.cancelled():
        task.exception()


def _find_payload(payloads: list[dict], symbol: str) -> dict | None:
    for payload in payloads:
        if isinstance(payload, dict) and str(payload.get("symbol", "")).upper() == symbol:
            return payload
    return None


async def get_quote(
    provider: QuoteProvider, request: QuoteRequest, *, strict: bool | None = None,
) -> Quote:
    """Fetch and decode the quote for one request.

    Without a request context, ``settings.default_timeout`` (if set) bounds
    the call. ``strict`` overrides the configured classification policy.
    Raises RequestCancelled, RequestDeadlineExceeded, QuoteNotFound,
    or UnrecognizedClassification when the payload's classification is unknown
    under the configured policy.
    """
    context = request.context
    if context is None and settings.default_timeout is not None:
        context = RequestContext.with_timeout(settings.default_timeout)

    if context is None:
        payloads = await provider.fetch_quote_payloads([request.symbol])
    else:
        payloads = await _fetch_within(provider, request.symbol, context)

    payload = _find_payload(payloads, request.symbol)
    if payload is None:
        logger.warning("Provider returned no quote for %s", request.symbol)
        raise QuoteNotFound(request.symbol)
    return Quote.from_wire(payload, strict=strict)


async def get_quotes(
    provider: QuoteProvider, symbols: str, *, strict: bool | None = None,
) -> list[Quote]:
    """Fetch quotes for a comma-separated symbol list.

    Malformed payloads are logged and skipped. Unrecognized classifications
    are not: they propagate so upstream vocabulary drift stays visible.
    """
    symbol_list = [s.strip().upper() for s in symbols.split(",") if s.strip()]
    if not symbol_list:
        return []

    payloads = await provider.fetch_quote_payloads(symbol_list)

    quotes: list[Quote] = []
    skipped: list[str] = []
    for payload in payloads:
        if not isinstance(payload, dict):
            logger.warning("Provider returned non-dict payload: %s", repr(payload)[:200])
            continue
        try:
            quotes.append(Quote.from_wire(payload, strict=strict))
        except ValidationError as exc:
            sym = str(payload.get("symbol", "?"))
            logger.warning("Skipping malformed quote for %s: %s", sym, exc.errors()[0].get("msg"))
            skipped.append(sym)

    missing = set(symbol_list) - {q.symbol.upper() for q in quotes} - {s.upper() for s in skipped}
    if missing:
        logger.warning(
            "Provider returned no quote for %d/%d symbols: %s",
            len(missing), len(symbol_list), ", ".join(sorted(missing)[:10]),
        )
    return quotes
