"""Project investment returns and convert crypto amounts into fiat.

This module is the calculation side of the calculator, including:
- Compound-growth ROI projections in any supported currency
- Side-by-side projections for several assets at their assumed growth rates
- Crypto-to-fiat price conversion
- Parsing raw form input and formatting results for display

Every function here is pure: it reads the quotes and rates it is given and
never touches the network or the repository.
"""

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import pandas as pd

from cryptocalc.config import (
    CURRENCY_SYMBOLS,
    DAYS_PER_YEAR,
    DEFAULT_COLOR,
    TICKER_LIMIT,
)
from cryptocalc.errors import PreconditionError, ValidationError
from cryptocalc.models import (
    AssetQuote,
    ComparisonPoint,
    ConversionResult,
    ProjectionInput,
    ProjectionResult,
)

logger = logging.getLogger(__name__)

DATA_NOT_LOADED = "Please wait for cryptocurrency data to load or refresh the page."
PROJECTION_TOO_LARGE = "Projection is too large to calculate"


def lookup_rate(rates: Mapping[str, float], currency: str) -> float:
    """Units of ``currency`` per USD; unknown codes count as USD."""
    return rates.get(str(currency).lower()) or 1.0


def parse_amount(value: Any, field: str = "Investment amount") -> float:
    """Parse a positive, finite amount from a form value.

    Raises:
        ValidationError: If the value is empty, not a number, zero or negative.
    """
    try:
        amount = float(str(value).replace(",", "").strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number") from None
    if not math.isfinite(amount):
        raise ValidationError(f"{field} must be a number")
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return amount


def parse_period(value: Any) -> int:
    """Parse a time period in whole days."""
    try:
        days = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        raise ValidationError("Time period must be a whole number of days") from None
    if days <= 0:
        raise ValidationError("Time period must be at least one day")
    return days


def parse_growth_rate(value: Any) -> float | None:
    """Parse an annual growth rate in percent; blank means "use the default"."""
    if value is None or str(value).strip() == "":
        return None
    try:
        rate = float(str(value).strip().rstrip("%"))
    except ValueError:
        raise ValidationError("Growth rate must be a number") from None
    if not math.isfinite(rate):
        raise ValidationError("Growth rate must be a number")
    if rate < -100:
        raise ValidationError("Growth rate cannot be below -100%")
    return rate


def parse_currency(value: Any) -> str:
    code = str(value or "").strip().lower()
    return code or "usd"


def _check_projection(amount: float, period_days: int, growth_rate_pct: float) -> None:
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Investment amount must be greater than zero")
    if period_days <= 0:
        raise ValidationError("Time period must be at least one day")
    if not math.isfinite(growth_rate_pct) or growth_rate_pct < -100:
        raise ValidationError("Growth rate cannot be below -100%")


def _project(
    quote: AssetQuote,
    amount: float,
    period_days: int,
    growth_rate_pct: float,
    currency: str,
    rate: float,
) -> ProjectionResult:
    _check_projection(amount, period_days, growth_rate_pct)

    investment_usd = amount / rate
    years = period_days / DAYS_PER_YEAR
    try:
        projected_usd = investment_usd * (1 + growth_rate_pct / 100) ** years
    except OverflowError:
        raise ValidationError(PROJECTION_TOO_LARGE) from None
    profit_usd = projected_usd - investment_usd
    roi_pct = profit_usd / investment_usd * 100
    if not all(map(math.isfinite, (
        projected_usd, roi_pct, projected_usd * rate, profit_usd * rate,
    ))):
        raise ValidationError(PROJECTION_TOO_LARGE)

    return ProjectionResult(
        asset_id=quote.id,
        name=quote.name,
        symbol=quote.symbol,
        color=quote.color or DEFAULT_COLOR,
        currency=currency,
        growth_rate_pct=growth_rate_pct,
        years=years,
        initial_investment=investment_usd * rate,
        projected_value=projected_usd * rate,
        profit=profit_usd * rate,
        roi_pct=roi_pct,
    )


def calculate_roi(
    quote: AssetQuote | None,
    rates: Mapping[str, float],
    projection: ProjectionInput,
) -> ProjectionResult:
    """Project the value of an investment after ``period_days``.

    The amount is converted to USD, grown at the annual rate compounded over
    ``period_days / 365`` years, and converted back once at the end.

    Args:
        quote: Quote for the selected asset.
        rates: Exchange rate table.
        projection: User input. A missing growth rate uses the asset's
            assumed annual growth.

    Returns:
        ProjectionResult in ``projection.currency``.

    Raises:
        PreconditionError: If the quote has not been loaded.
        ValidationError: If amount, period or growth rate are out of range.
    """
    if quote is None:
        raise PreconditionError(DATA_NOT_LOADED)

    growth = projection.growth_rate_pct
    if growth is None:
        growth = quote.annual_growth_pct

    currency = parse_currency(projection.currency)
    rate = lookup_rate(rates, currency)
    return _project(quote, projection.amount, projection.period_days, growth,
                    currency, rate)


def compare(
    quotes: Mapping[str, AssetQuote],
    asset_ids: Iterable[str],
    amount: float,
    period_days: int,
) -> list[ProjectionResult]:
    """Project the same USD investment into each selected asset.

    Each asset grows at its own assumed annual rate. Results keep the order
    of ``asset_ids``; assets without a quote are left out.

    Raises:
        PreconditionError: If no quotes are loaded at all.
        ValidationError: If amount or period are out of range.
    """
    if not quotes:
        raise PreconditionError(DATA_NOT_LOADED)

    results = []
    for asset_id in asset_ids:
        quote = quotes.get(asset_id)
        if quote is None:
            logger.debug("Skipping %s: no quote loaded", asset_id)
            continue
        results.append(
            _project(quote, amount, period_days, quote.annual_growth_pct, "usd", 1.0)
        )
    return results


def chart_points(results: Sequence[ProjectionResult]) -> list[ComparisonPoint]:
    return [ComparisonPoint(r.symbol, r.projected_value, r.color) for r in results]


def convert(
    quote: AssetQuote | None,
    rates: Mapping[str, float],
    amount: float,
    currency: str,
) -> ConversionResult:
    """Value ``amount`` units of an asset in ``currency``.

    Raises:
        PreconditionError: If the quote has not been loaded.
        ValidationError: If the amount is not a finite, non-negative number.
    """
    if quote is None:
        raise PreconditionError(DATA_NOT_LOADED)
    if not math.isfinite(amount) or amount < 0:
        raise ValidationError("Amount must be a non-negative number")

    currency = parse_currency(currency)
    rate = lookup_rate(rates, currency)
    value_usd = amount * quote.price_usd
    if not math.isfinite(value_usd * rate):
        raise ValidationError("Amount is too large to convert")
    return ConversionResult(
        asset_id=quote.id,
        name=quote.name,
        symbol=quote.symbol,
        amount=amount,
        currency=currency,
        rate=rate,
        value_usd=value_usd,
        value_in_target=value_usd * rate,
    )


def format_money(value: float, currency: str = "usd") -> str:
    """Format a fiat value, e.g. ``format_money(1650, "eur") == "€1,650.00"``."""
    symbol = CURRENCY_SYMBOLS.get(str(currency).lower(), "$")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_crypto_amount(amount: float) -> str:
    """Show 4 to 8 decimals, trimming trailing zeros past the fourth."""
    text = f"{amount:,.8f}"
    whole, _, decimals = text.partition(".")
    decimals = decimals.rstrip("0").ljust(4, "0")
    return f"{whole}.{decimals}"


def format_change(change_pct: float) -> str:
    sign = "+" if change_pct >= 0 else ""
    return f"{sign}{change_pct:.2f}%"


def describe_conversion(result: ConversionResult) -> str:
    return (
        f"{format_crypto_amount(result.amount)} {result.symbol} = "
        f"{format_money(result.value_in_target, result.currency)}"
    )


def ticker_items(quotes: Mapping[str, AssetQuote], limit: int = TICKER_LIMIT) -> list[str]:
    """Price ticker lines like ``"BTC: $41,250.50 +2.50%"``."""
    if not quotes:
        return ["No crypto data available"]
    return [
        f"{q.symbol}: {format_money(q.price_usd)} {format_change(q.change_24h_pct)}"
        for q in list(quotes.values())[:limit]
    ]


def comparison_frame(results: Sequence[ProjectionResult]) -> pd.DataFrame:
    """Rank compared assets by projected value.

    Args:
        results: Output of compare().

    Returns:
        DataFrame indexed by rank (1 = highest projected value).
    """
    rows = [
        {
            "asset_id": r.asset_id,
            "name": r.name,
            "symbol": r.symbol,
            "growth_rate_pct": r.growth_rate_pct,
            "initial_investment": r.initial_investment,
            "projected_value": round(r.projected_value, 2),
            "profit": round(r.profit, 2),
            "roi_pct": round(r.roi_pct, 2),
            "color": r.color,
        }
        for r in results
    ]
    frame = pd.DataFrame(rows)
    if frame.empty:
        return frame

    frame.sort_values("projected_value", ascending=False, inplace=True)
    frame.reset_index(drop=True, inplace=True)
    frame.index += 1
    frame.index.name = "rank"
    return frame


def generate_summary(frame: pd.DataFrame) -> dict[str, Any]:
    """Summary statistics for a comparison_frame() table."""
    if frame.empty:
        return {"total_assets": 0}

    return {
        "total_assets": len(frame),
        "best_performer": str(frame.iloc[0]["name"]),
        "best_roi_pct": round(float(frame.iloc[0]["roi_pct"]), 2),
        "worst_performer": str(frame.iloc[-1]["name"]),
        "worst_roi_pct": round(float(frame.iloc[-1]["roi_pct"]), 2),
        "avg_roi_pct": round(float(frame["roi_pct"].mean()), 2),
        "total_projected_value": round(float(frame["projected_value"].sum()), 2),
    }
