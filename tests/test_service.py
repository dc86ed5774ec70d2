"""Unit tests for the CryptoCalc facade."""

import pytest

from cryptocalc.analyzer import describe_conversion
from cryptocalc.errors import PreconditionError, ValidationError
from cryptocalc.service import CryptoCalc


@pytest.fixture
def calc(loaded_repository) -> CryptoCalc:
    return CryptoCalc(loaded_repository)


class TestCryptoCalc:
    """Tests for CryptoCalc."""

    def test_latest_data(self, calc, sample_quotes, sample_rates) -> None:
        assert calc.get_latest_quotes() == sample_quotes
        assert calc.get_latest_rates() == sample_rates
        assert not calc.is_static

    def test_calculate_roi_from_form_values(self, calc) -> None:
        """Test raw string input is parsed before calculating."""
        result = calc.calculate_roi("bitcoin", "1000", "365", "65", "USD")

        assert result.currency == "usd"
        assert result.projected_value == pytest.approx(1650)
        assert round(result.roi_pct, 2) == 65.00

    def test_blank_growth_uses_default(self, calc) -> None:
        result = calc.calculate_roi("solana", "1000", "365", "")
        assert result.growth_rate_pct == 120.0

    def test_zero_investment(self, calc) -> None:
        with pytest.raises(ValidationError, match="greater than zero"):
            calc.calculate_roi("bitcoin", "0", "365", "65", "usd")

    def test_non_numeric_amount(self, calc) -> None:
        with pytest.raises(ValidationError):
            calc.calculate_roi("bitcoin", "lots", "365")

    def test_before_first_load(self) -> None:
        """Test calculations before any data is loaded ask the user to wait."""
        calc = CryptoCalc()
        with pytest.raises(PreconditionError):
            calc.calculate_roi("bitcoin", "1000", "365")
        with pytest.raises(PreconditionError):
            calc.convert("bitcoin", "1", "usd")
        with pytest.raises(PreconditionError):
            calc.compare(["bitcoin"], "1000", "365")

    def test_convert(self, calc) -> None:
        result = calc.convert("bitcoin", "0.5", "EUR")
        assert result.value_in_target == pytest.approx(18975.23)

    @pytest.mark.parametrize("amount, days", [("1000", "1000000"), ("1.5e308", "365")])
    def test_projection_too_large(self, calc, amount, days) -> None:
        """Test huge amounts or periods give a validation error, not a crash."""
        with pytest.raises(ValidationError, match="too large to calculate"):
            calc.calculate_roi("bitcoin", amount, days)
        with pytest.raises(ValidationError, match="too large to calculate"):
            calc.compare(["bitcoin"], amount, days)

    def test_compare_and_chart(self, calc) -> None:
        results = calc.compare(["ethereum", "litecoin"], "1000", "365")
        assert [r.asset_id for r in results] == ["ethereum"]

        points = calc.compare_chart(["bitcoin", "solana"], 1000, 365)
        assert [p.symbol for p in points] == ["BTC", "SOL"]

    def test_calculate_default(self, calc) -> None:
        result = calc.calculate_default()
        assert result.asset_id == "bitcoin"
        assert result.initial_investment == pytest.approx(1000)
        assert result.projected_value == pytest.approx(1650)

    def test_convert_default(self, calc) -> None:
        """Test the post-load conversion is one bitcoin in USD."""
        result = calc.convert_default()

        assert result.asset_id == "bitcoin"
        assert result.amount == 1.0
        assert result.currency == "usd"
        assert describe_conversion(result) == "1.0000 BTC = $41,250.50"
