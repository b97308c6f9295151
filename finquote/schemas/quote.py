"""Quote record as delivered by Yahoo-style quote APIs.

Attributes are snake_case; each carries the camelCase wire name as its alias.
``Quote.from_wire`` decodes a provider payload and ``Quote.to_wire`` encodes
back to wire names, so ``Quote.from_wire(q.to_wire()) == q``.

A classification string outside the known vocabulary is kept in
``raw_market_state`` / ``raw_quote_type`` and written back verbatim, so
permissive decoding stays lossless on the wire.
"""

import logging
from typing import Any

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from finquote.config import settings
from finquote.exceptions import UnrecognizedClassification
from finquote.schemas._validators import sanitize_float
from finquote.schemas.classification import (
    InstrumentType,
    MarketState,
    parse_instrument_type,
    parse_market_state,
)

logger = logging.getLogger(__name__)

STRICT_CONTEXT_KEY = "strict_classification"

# (attribute name, wire name, raw-value attribute, enum) for each classification field
_CLASSIFICATION_FIELDS = (
    ("market_state", "marketState", "raw_market_state", MarketState),
    ("quote_type", "quoteType", "raw_quote_type", InstrumentType),
)
_KNOWN_WIRE_VALUES: dict[type, frozenset[str]] = {
    enum_cls: frozenset(m.value for m in enum_cls if m.name != "UNKNOWN")
    for *_, enum_cls in _CLASSIFICATION_FIELDS
}


class EquityDetails(BaseModel):
    """Earnings, dividend and valuation fields of an equity (or fund) quote."""

    eps_trailing_twelve_months: float | None = None
    eps_forward: float | None = None
    earnings_timestamp: int | None = None
    earnings_timestamp_start: int | None = None
    earnings_timestamp_end: int | None = None
    trailing_annual_dividend_rate: float | None = None
    dividend_date: int | None = None
    trailing_annual_dividend_yield: float | None = None
    trailing_pe: float | None = None
    forward_pe: float | None = None
    book_value: float | None = None
    price_to_book: float | None = None
    shares_outstanding: int | None = None
    market_cap: int | None = None

    model_config = {"frozen": True, "from_attributes": True}


class FundDetails(BaseModel):
    ytd_return: float | None = None
    trailing_three_month_returns: float | None = None
    trailing_three_month_nav_returns: float | None = None

    model_config = {"frozen": True, "from_attributes": True}


class DerivativeDetails(BaseModel):
    """Contract fields of an option or futures quote."""

    underlying_symbol: str | None = None
    open_interest: int | None = None
    expire_date: int | None = None
    strike: float | None = None
    underlying_exchange_symbol: str | None = None
    head_symbol_as_string: str | None = None
    is_contract_symbol: bool | None = None

    model_config = {"frozen": True, "from_attributes": True}


class Quote(BaseModel):
    """Snapshot of one instrument at the moment it was fetched.

    Which of the equity/fund/derivative groups carry data depends on
    ``quote_type``; fields a provider leaves out stay ``None``.
    """

    # Classification
    symbol: str = Field(description="Ticker symbol (e.g. AAPL)")
    market_state: MarketState | None = Field(default=None, alias="marketState", description="Session phase of the exchange")
    quote_type: InstrumentType | None = Field(default=None, alias="quoteType", description="Asset class of the instrument")
    short_name: str | None = Field(default=None, alias="shortName", description="Short display name")
    long_name: str | None = Field(default=None, alias="longName", description="Full display name")
    raw_market_state: str | None = Field(default=None, description="Upstream marketState string when it decoded to UNKNOWN")
    raw_quote_type: str | None = Field(default=None, description="Upstream quoteType string when it decoded to UNKNOWN")

    # Regular session
    regular_market_change_percent: float | None = Field(default=None, alias="regularMarketChangePercent", description="Percentage change from previous close")
    regular_market_previous_close: float | None = Field(default=None, alias="regularMarketPreviousClose", description="Previous session close price")
    regular_market_price: float | None = Field(default=None, alias="regularMarketPrice", description="Latest regular-session price")
    regular_market_time: int | None = Field(default=None, alias="regularMarketTime", description="Epoch seconds of the latest regular-session trade")
    regular_market_change: float | None = Field(default=None, alias="regularMarketChange", description="Absolute change from previous close")
    regular_market_open: float | None = Field(default=None, alias="regularMarketOpen", description="Session open price")
    regular_market_day_high: float | None = Field(default=None, alias="regularMarketDayHigh", description="Session high")
    regular_market_day_low: float | None = Field(default=None, alias="regularMarketDayLow", description="Session low")
    regular_market_volume: int | None = Field(default=None, ge=0, alias="regularMarketVolume", description="Session trading volume")

    # Depth
    bid: float | None = Field(default=None, description="Best bid price")
    ask: float | None = Field(default=None, description="Best ask price")
    bid_size: int | None = Field(default=None, ge=0, alias="bidSize", description="Size at best bid")
    ask_size: int | None = Field(default=None, ge=0, alias="askSize", description="Size at best ask")

    # Pre-market
    pre_market_price: float | None = Field(default=None, alias="preMarketPrice")
    pre_market_change: float | None = Field(default=None, alias="preMarketChange")
    pre_market_change_percent: float | None = Field(default=None, alias="preMarketChangePercent")
    pre_market_time: int | None = Field(default=None, alias="preMarketTime")

    # Post-market
    post_market_price: float | None = Field(default=None, alias="postMarketPrice")
    post_market_change: float | None = Field(default=None, alias="postMarketChange")
    post_market_change_percent: float | None = Field(default=None, alias="postMarketChangePercent")
    post_market_time: int | None = Field(default=None, alias="postMarketTime")

    # 52-week range
    fifty_two_week_low_change: float | None = Field(default=None, alias="fiftyTwoWeekLowChange")
    fifty_two_week_low_change_percent: float | None = Field(default=None, alias="fiftyTwoWeekLowChangePercent")
    fifty_two_week_high_change: float | None = Field(default=None, alias="fiftyTwoWeekHighChange")
    fifty_two_week_high_change_percent: float | None = Field(default=None, alias="fiftyTwoWeekHighChangePercent")
    fifty_two_week_low: float | None = Field(default=None, alias="fiftyTwoWeekLow")
    fifty_two_week_high: float | None = Field(default=None, alias="fiftyTwoWeekHigh")

    # Moving averages
    fifty_day_average: float | None = Field(default=None, alias="fiftyDayAverage")
    fifty_day_average_change: float | None = Field(default=None, alias="fiftyDayAverageChange")
    fifty_day_average_change_percent: float | None = Field(default=None, alias="fiftyDayAverageChangePercent")
    two_hundred_day_average: float | None = Field(default=None, alias="twoHundredDayAverage")
    two_hundred_day_average_change: float | None = Field(default=None, alias="twoHundredDayAverageChange")
    two_hundred_day_average_change_percent: float | None = Field(default=None, alias="twoHundredDayAverageChangePercent")

    # Volume
    average_daily_volume_3_month: int | None = Field(default=None, ge=0, alias="averageDailyVolume3Month", description="3-month average daily volume")
    average_daily_volume_10_day: int | None = Field(default=None, ge=0, alias="averageDailyVolume10Day", description="10-day average daily volume")

    # Meta
    quote_source: str | None = Field(default=None, alias="quoteSourceName", description="Name of the quote feed")
    currency_id: str | None = Field(default=None, alias="currency", description="Raw currency code (e.g. USD, GBp)")
    is_tradeable: bool | None = Field(default=None, alias="tradeable")
    quote_delay: int | None = Field(default=None, alias="exchangeDataDelayedBy", description="Exchange data delay in minutes")
    full_exchange_name: str | None = Field(default=None, alias="fullExchangeName")
    source_interval: int | None = Field(default=None, alias="sourceInterval")
    exchange_timezone_name: str | None = Field(default=None, alias="exchangeTimezoneName", description="IANA timezone of the exchange")
    exchange_timezone_short_name: str | None = Field(default=None, alias="exchangeTimezoneShortName")
    gmt_offset_milliseconds: int | None = Field(default=None, alias="gmtOffSetMilliseconds")
    market_id: str | None = Field(default=None, alias="market", description="Market identifier (e.g. us_market)")
    exchange_id: str | None = Field(default=None, alias="exchange", description="Exchange code (e.g. NMS)")

    # Equity
    eps_trailing_twelve_months: float | None = Field(default=None, alias="epsTrailingTwelveMonths")
    eps_forward: float | None = Field(default=None, alias="epsForward")
    earnings_timestamp: int | None = Field(default=None, alias="earningsTimestamp")
    earnings_timestamp_start: int | None = Field(default=None, alias="earningsTimestampStart")
    earnings_timestamp_end: int | None = Field(default=None, alias="earningsTimestampEnd")
    trailing_annual_dividend_rate: float | None = Field(default=None, alias="trailingAnnualDividendRate")
    dividend_date: int | None = Field(default=None, alias="dividendDate")
    trailing_annual_dividend_yield: float | None = Field(default=None, alias="trailingAnnualDividendYield")
    trailing_pe: float | None = Field(default=None, alias="trailingPE")
    forward_pe: float | None = Field(default=None, alias="forwardPE")
    book_value: float | None = Field(default=None, alias="bookValue")
    price_to_book: float | None = Field(default=None, alias="priceToBook")
    shares_outstanding: int | None = Field(default=None, ge=0, alias="sharesOutstanding")
    market_cap: int | None = Field(default=None, alias="marketCap")

    # Mutual fund / ETF
    ytd_return: float | None = Field(default=None, alias="ytdReturn")
    trailing_three_month_returns: float | None = Field(default=None, alias="trailingThreeMonthReturns")
    trailing_three_month_nav_returns: float | None = Field(default=None, alias="trailingThreeMonthNavReturns")

    # Options / futures
    underlying_symbol: str | None = Field(default=None, alias="underlyingSymbol")
    open_interest: int | None = Field(default=None, ge=0, alias="openInterest")
    expire_date: int | None = Field(default=None, alias="expireDate")
    strike: float | None = None
    underlying_exchange_symbol: str | None = Field(default=None, alias="underlyingExchangeSymbol")
    head_symbol_as_string: str | None = Field(default=None, alias="headSymbolAsString")
    is_contract_symbol: bool | None = Field(default=None, alias="contractSymbol")

    model_config = {"frozen": True, "populate_by_name": True, "extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def keep_raw_classification(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        for name, alias, raw_name, enum_cls in _CLASSIFICATION_FIELDS:
            value = data.get(alias, data.get(name))
            if (
                isinstance(value, str)
                and not isinstance(value, enum_cls)
                and value not in _KNOWN_WIRE_VALUES[enum_cls]
                and data.get(raw_name) is None
            ):
                data = {**data, raw_name: value}
        return data

    @field_validator("*", mode="before")
    @classmethod
    def sanitize_non_finite(cls, v: Any, info: ValidationInfo) -> Any:
        sanitized = sanitize_float(v)
        if sanitized is None and v is not None:
            logger.warning("Dropping non-finite value for %s: %r", info.field_name, v)
        return sanitized

    @field_validator("market_state", mode="before")
    @classmethod
    def decode_market_state(cls, v: Any, info: ValidationInfo) -> MarketState | None:
        if v is None:
            return None
        if isinstance(v, MarketState):
            return v
        return parse_market_state(v, strict=_strict_from(info))

    @field_validator("quote_type", mode="before")
    @classmethod
    def decode_quote_type(cls, v: Any, info: ValidationInfo) -> InstrumentType | None:
        if v is None:
            return None
        if isinstance(v, InstrumentType):
            return v
        return parse_instrument_type(v, strict=_strict_from(info))

    @model_validator(mode="after")
    def check_ranges(self) -> "Quote":
        if (
            self.regular_market_day_high is not None
            and self.regular_market_day_low is not None
            and self.regular_market_day_high < self.regular_market_day_low
        ):
            raise ValueError(
                f"day high {self.regular_market_day_high} is below day low {self.regular_market_day_low}"
            )
        if (
            self.fifty_two_week_high is not None
            and self.fifty_two_week_low is not None
            and self.fifty_two_week_high < self.fifty_two_week_low
        ):
            raise ValueError(
                f"52-week high {self.fifty_two_week_high} is below 52-week low {self.fifty_two_week_low}"
            )
        return self

    @classmethod
    def from_wire(cls, payload: dict[str, Any], *, strict: bool | None = None) -> "Quote":
        """Decode a provider payload keyed by wire names.

        ``strict`` overrides the configured classification policy. An
        unrecognized classification is raised as ``UnrecognizedClassification``
        itself rather than wrapped in a ``ValidationError``; any other
        problem raises ``ValidationError``.
        """
        context = {STRICT_CONTEXT_KEY: settings.strict_classification if strict is None else strict}
        try:
            return cls.model_validate(payload, context=context)
        except ValidationError as exc:
            for error in exc.errors():
                cause = error.get("ctx", {}).get("error")
                if isinstance(cause, UnrecognizedClassification):
                    raise cause from exc
            raise

    def to_wire(self) -> dict[str, Any]:
        """Encode to a JSON-compatible dict keyed by wire names, omitting empty fields."""
        wire = self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude={"raw_market_state", "raw_quote_type"},
        )
        if self.market_state is MarketState.UNKNOWN and self.raw_market_state is not None:
            wire["marketState"] = self.raw_market_state
        if self.quote_type is InstrumentType.UNKNOWN and self.raw_quote_type is not None:
            wire["quoteType"] = self.raw_quote_type
        return wire

    @property
    def equity(self) -> EquityDetails | None:
        if self.quote_type is None or not self.quote_type.has_equity_fields:
            return None
        return EquityDetails.model_validate(self)

    @property
    def fund(self) -> FundDetails | None:
        if self.quote_type is None or not self.quote_type.has_fund_fields:
            return None
        return FundDetails.model_validate(self)

    @property
    def derivative(self) -> DerivativeDetails | None:
        if self.quote_type is None or not self.quote_type.has_derivative_fields:
            return None
        return DerivativeDetails.model_validate(self)

    @property
    def current_price(self) -> float | None:
        """Price for the session the exchange is in, falling back to the regular-market price."""
        if self.market_state is not None:
            if self.market_state.is_pre_market and self.pre_market_price is not None:
                return self.pre_market_price
            if self.market_state.is_post_market and self.post_market_price is not None:
                return self.post_market_price
        return self.regular_market_price

    @property
    def spread(self) -> float | None:
        if self.bid is None or self.ask is None:
            return None
        return self.ask - self.bid


def _strict_from(info: ValidationInfo) -> bool:
    if info.context and STRICT_CONTEXT_KEY in info.context:
        return bool(info.context[STRICT_CONTEXT_KEY])
    return settings.strict_classification
