"""Entry points for the UI layer.

``CryptoCalc`` takes raw form values, validates them, and runs the projection
engine against whatever snapshot the repository currently holds.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from cryptocalc import analyzer
from cryptocalc.config import (
    DEFAULT_ASSET,
    DEFAULT_CONVERT_AMOUNT,
    DEFAULT_CURRENCY,
    DEFAULT_INVESTMENT,
    DEFAULT_PERIOD_DAYS,
)
from cryptocalc.models import (
    AssetQuote,
    ComparisonPoint,
    ConversionResult,
    ProjectionInput,
    ProjectionResult,
)
from cryptocalc.repository import QuoteRepository

logger = logging.getLogger(__name__)


class CryptoCalc:
    def __init__(self, repository: QuoteRepository | None = None):
        self.repository = repository or QuoteRepository()

    def get_latest_quotes(self) -> Mapping[str, AssetQuote]:
        return self.repository.get_latest_quotes()

    def get_latest_rates(self) -> Mapping[str, float]:
        return self.repository.get_latest_rates()

    @property
    def is_static(self) -> bool:
        """True when the shown prices or rates are the built-in defaults."""
        return self.repository.is_static

    def calculate_roi(
        self,
        asset_id: str,
        amount: Any,
        period_days: Any,
        growth_rate_pct: Any = None,
        currency: Any = DEFAULT_CURRENCY,
    ) -> ProjectionResult:
        """Project an investment in one asset.

        Raises:
            ValidationError: On unusable input.
            PreconditionError: If the asset's quote is not loaded yet.
        """
        projection = ProjectionInput(
            asset_id=asset_id,
            amount=analyzer.parse_amount(amount),
            period_days=analyzer.parse_period(period_days),
            growth_rate_pct=analyzer.parse_growth_rate(growth_rate_pct),
            currency=analyzer.parse_currency(currency),
        )
        snapshot = self.repository.snapshot
        return analyzer.calculate_roi(
            snapshot.quotes.get(asset_id), snapshot.rates, projection
        )

    def convert(self, asset_id: str, amount: Any, currency: Any) -> ConversionResult:
        snapshot = self.repository.snapshot
        return analyzer.convert(
            snapshot.quotes.get(asset_id),
            snapshot.rates,
            analyzer.parse_amount(amount, field="Amount"),
            analyzer.parse_currency(currency),
        )

    def compare(
        self, asset_ids: Iterable[str], amount: Any, period_days: Any
    ) -> list[ProjectionResult]:
        return analyzer.compare(
            self.repository.get_latest_quotes(),
            list(asset_ids),
            analyzer.parse_amount(amount),
            analyzer.parse_period(period_days),
        )

    def compare_chart(
        self, asset_ids: Iterable[str], amount: Any, period_days: Any
    ) -> list[ComparisonPoint]:
        return analyzer.chart_points(self.compare(asset_ids, amount, period_days))

    def calculate_default(self) -> ProjectionResult:
        """The projection shown right after the first load."""
        result = self.calculate_roi(
            DEFAULT_ASSET, DEFAULT_INVESTMENT, DEFAULT_PERIOD_DAYS,
            currency=DEFAULT_CURRENCY,
        )
        logger.info(
            "Default projection: %s %s -> %s (%.2f%%)",
            result.symbol,
            analyzer.format_money(result.initial_investment, result.currency),
            analyzer.format_money(result.projected_value, result.currency),
            result.roi_pct,
        )
        return result

    def convert_default(self) -> ConversionResult:
        """The "1 BTC = $x" line shown next to the default projection."""
        result = self.convert(DEFAULT_ASSET, DEFAULT_CONVERT_AMOUNT, DEFAULT_CURRENCY)
        logger.info("Default conversion: %s", analyzer.describe_conversion(result))
        return result
