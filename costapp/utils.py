from __future__ import annotations

import math
import uuid
from datetime import datetime, date, timezone
from typing import Any, Optional


def iso_today() -> str:
    return date.today().isoformat()


def iso_now() -> str:
    # Use UTC ISO timestamps for consistency.
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def num(v: Any, default: float = 0.0) -> float:
    """Coerce to a finite float; None, junk, NaN and +/-inf become `default`."""
    if v is None or isinstance(v, bool):
        return default
    try:
        f = float(v)
    except (TypeError, ValueError, OverflowError):
        return default
    return f if math.isfinite(f) else default


def opt_num(v: Any) -> Optional[float]:
    # Keeps "not recorded" distinct from 0.
    if v is None or v == "":
        return None
    return num(v)


def at_least_one(v: Any) -> float:
    return max(num(v), 1.0)


def safe_div(n: float, d: float) -> float:
    return float(n) / float(d) if d else 0.0


def format_currency(value: Any, currency: str = "JPY") -> str:
    v = num(value)
    symbol = {"JPY": "¥", "USD": "$", "EUR": "€"}.get(currency)
    if currency == "JPY":
        text = f"{v:,.0f}"
    else:
        text = f"{v:,.2f}"
    return f"{symbol}{text}" if symbol else f"{text} {currency}"
