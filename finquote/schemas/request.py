"""Quote request descriptor and its cancellation/deadline carrier."""

import asyncio
import time

from pydantic import BaseModel, Field, field_validator

from finquote.schemas._validators import normalize_symbol


class RequestContext:
    """Cooperative cancellation and deadline for a single quote fetch.

    Nothing blocks on the context by itself: the code performing the fetch
    observes it and abandons the in-flight call. A cancelled or expired
    context says nothing about whether the provider's work completed.

    Parameters:
        deadline: Absolute deadline on the ``time.monotonic()`` clock, or
                  None for no deadline.
    """

    def __init__(self, deadline: float | None = None):
        self.deadline = deadline
        self._cancelled = asyncio.Event()

    @classmethod
    def with_timeout(cls, seconds: float) -> "RequestContext":
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def wait_cancelled(self) -> None:
        await self._cancelled.wait()

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def __repr__(self) -> str:
        return f"RequestContext(deadline={self.deadline!r}, cancelled={self.cancelled})"


class QuoteRequest(BaseModel):
    symbol: str = Field(description="Ticker symbol to resolve (e.g. AAPL)")
    context: RequestContext | None = Field(
        default=None, exclude=True, description="Cancellation/deadline carrier for the fetch; not serialized",
    )

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @field_validator("symbol")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_symbol(v)
