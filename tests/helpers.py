"""Shared test helpers."""


def make_payload(**overrides) -> dict:
    """A wire-format equity quote payload, as a Yahoo-style API returns it."""
    payload = {
        "symbol": "AAPL",
        "marketState": "REGULAR",
        "quoteType": "EQUITY",
        "shortName": "Apple Inc.",
        "longName": "Apple Inc.",
        "regularMarketChangePercent": 0.82,
        "regularMarketPreviousClose": 184.0,
        "regularMarketPrice": 185.5,
        "regularMarketTime": 1_718_049_600,
        "regularMarketChange": 1.5,
        "regularMarketOpen": 184.2,
        "regularMarketDayHigh": 186.1,
        "regularMarketDayLow": 183.9,
        "regularMarketVolume": 50_000_000,
        "bid": 185.48,
        "ask": 185.52,
        "bidSize": 12,
        "askSize": 9,
        "fiftyTwoWeekLow": 164.08,
        "fiftyTwoWeekHigh": 199.62,
        "fiftyTwoWeekLowChange": 21.42,
        "fiftyTwoWeekLowChangePercent": 0.1305,
        "fiftyTwoWeekHighChange": -14.12,
        "fiftyTwoWeekHighChangePercent": -0.0707,
        "fiftyDayAverage": 178.3,
        "twoHundredDayAverage": 181.9,
        "averageDailyVolume3Month": 58_000_000,
        "averageDailyVolume10Day": 55_000_000,
        "quoteSourceName": "Nasdaq Real Time Price",
        "currency": "USD",
        "tradeable": False,
        "exchangeDataDelayedBy": 0,
        "fullExchangeName": "NasdaqGS",
        "sourceInterval": 15,
        "exchangeTimezoneName": "America/New_York",
        "exchangeTimezoneShortName": "EDT",
        "gmtOffSetMilliseconds": -14_400_000,
        "market": "us_market",
        "exchange": "NMS",
        "epsTrailingTwelveMonths": 6.43,
        "epsForward": 7.1,
        "trailingPE": 15.2,
        "forwardPE": 26.1,
        "sharesOutstanding": 15_334_099_968,
        "marketCap": 2_844_475_326_464,
    }
    payload.update(overrides)
    return payload
