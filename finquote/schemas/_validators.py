"""Shared Pydantic field validators."""

import math


def sanitize_float(v: object) -> object:
    """Convert NaN/Infinity to None so encoded quotes stay valid JSON."""
    if isinstance(v, float) and (math.isnan(v) or math.isinf(v)):
        return None
    return v


def normalize_symbol(v: str) -> str:
    """Strip and upper-case a ticker symbol, rejecting empty ones."""
    symbol = v.strip().upper()
    if not symbol:
        raise ValueError("symbol must not be empty")
    return symbol
