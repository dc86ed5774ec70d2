"""Data types shared by the fetcher, repository and projection engine."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from collections.abc import Mapping
from typing import NamedTuple

QUOTES_FALLBACK = "fallback"
RATES_FALLBACK = "fallback"


@dataclass(frozen=True)
class AssetQuote:
    """Market snapshot for one tracked asset, in the canonical schema."""

    id: str
    name: str
    symbol: str
    price_usd: float
    change_24h_pct: float = 0.0
    market_cap_usd: float | None = None
    volume_usd: float | None = None
    annual_growth_pct: float = 0.0
    color: str = ""
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Snapshot:
    """Everything one fetch cycle produced.

    Args:
        quotes: Asset id to quote.
        rates: Lowercase currency code to units per USD.
        quotes_source: Name of the provider that answered, or "fallback".
        rates_source: Name of the rate endpoint, or "fallback".
        fetched_at: When the cycle completed.
    """

    quotes: Mapping[str, AssetQuote] = field(default_factory=dict)
    rates: Mapping[str, float] = field(default_factory=dict)
    quotes_source: str = ""
    rates_source: str = ""
    fetched_at: datetime | None = None

    @property
    def is_loaded(self) -> bool:
        return self.fetched_at is not None

    @property
    def is_static(self) -> bool:
        """True when any part of the snapshot came from the static tables."""
        return (
            self.quotes_source == QUOTES_FALLBACK
            or self.rates_source == RATES_FALLBACK
        )


@dataclass(frozen=True)
class ProjectionInput:
    asset_id: str
    amount: float
    period_days: int
    growth_rate_pct: float | None = None
    currency: str = "usd"


@dataclass(frozen=True)
class ProjectionResult:
    """Compound-growth projection, money values in ``currency``."""

    asset_id: str
    name: str
    symbol: str
    color: str
    currency: str
    growth_rate_pct: float
    years: float
    initial_investment: float
    projected_value: float
    profit: float
    roi_pct: float


@dataclass(frozen=True)
class ConversionResult:
    asset_id: str
    name: str
    symbol: str
    amount: float
    currency: str
    rate: float
    value_usd: float
    value_in_target: float


class ComparisonPoint(NamedTuple):
    """One bar of the comparison chart."""

    symbol: str
    projected_value: float
    color: str
