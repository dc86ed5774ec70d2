"""Test fixtures for crypto calculator tests."""

from datetime import datetime, timezone

import httpx
import pytest

from cryptocalc.data_fetcher import fallback_quotes
from cryptocalc.models import AssetQuote, Snapshot
from cryptocalc.repository import QuoteRepository


class FakeApis:
    """Answers HTTP requests by host; unknown hosts get a 503."""

    def __init__(self) -> None:
        self.responses: dict[str, httpx.Response | Exception] = {}
        self.requests: list[httpx.Request] = []

    @property
    def hosts(self) -> list[str]:
        return [r.url.host for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.responses.get(request.url.host, httpx.Response(503))
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(
            outcome.status_code, headers=outcome.headers, content=outcome.content
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_apis() -> FakeApis:
    return FakeApis()


@pytest.fixture
def coingecko_payload() -> list[dict]:
    """Sample CoinGecko /coins/markets response."""
    return [
        {
            "id": "bitcoin",
            "symbol": "btc",
            "name": "Bitcoin",
            "current_price": 41250.50,
            "price_change_percentage_24h": 2.5,
            "market_cap": 808_000_000_000,
            "total_volume": 21_000_000_000,
        },
        {
            "id": "ethereum",
            "symbol": "eth",
            "name": "Ethereum",
            "current_price": 2250.75,
            "price_change_percentage_24h": None,
            "market_cap": 270_000_000_000,
            "total_volume": 9_500_000_000,
        },
        {
            "id": "tether",
            "symbol": "usdt",
            "name": "Tether",
            "current_price": 1.0,
            "price_change_percentage_24h": 0.01,
            "market_cap": 95_000_000_000,
            "total_volume": 40_000_000_000,
        },
    ]


@pytest.fixture
def cryptocompare_payload() -> dict:
    """Sample CryptoCompare pricemultifull response."""
    return {
        "RAW": {
            "BTC": {"USD": {
                "PRICE": 41100.0,
                "CHANGEPCT24HOUR": 1.25,
                "MKTCAP": 805_000_000_000,
                "TOTALVOLUME24HTO": 20_000_000_000,
            }},
            "SOL": {"USD": {
                "PRICE": 96.4,
                "CHANGEPCT24HOUR": -3.5,
            }},
            "XRP": {"USD": {"PRICE": 0.6}},
        },
        "DISPLAY": {},
    }


@pytest.fixture
def coincap_payload() -> dict:
    """Sample CoinCap /v2/assets response, numbers as strings."""
    return {
        "data": [
            {
                "id": "bitcoin",
                "name": "Bitcoin",
                "symbol": "BTC",
                "priceUsd": "41000.1234",
                "changePercent24Hr": "-1.5",
                "marketCapUsd": "800000000000.0",
                "volumeUsd24Hr": "12000000000.5",
            },
            {
                "id": "cardano",
                "name": "Cardano",
                "symbol": "ADA",
                "priceUsd": "0.4512",
                "changePercent24Hr": None,
                "marketCapUsd": None,
                "volumeUsd24Hr": "",
            },
            {
                "id": "dogecoin",
                "name": "Dogecoin",
                "symbol": "DOGE",
                "priceUsd": "not-a-number",
            },
        ],
        "timestamp": 1700000000000,
    }


@pytest.fixture
def rates_payload() -> dict:
    """Sample exchangerate-api response; PKR, AUD, CAD and CNY are missing."""
    return {
        "base": "USD",
        "rates": {"USD": 1, "EUR": 0.92, "GBP": 0.79, "INR": 83.2, "JPY": 149.5},
    }


@pytest.fixture
def sample_quotes() -> dict[str, AssetQuote]:
    return fallback_quotes(now=datetime(2024, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def sample_rates() -> dict[str, float]:
    return {"usd": 1.0, "eur": 0.92, "gbp": 0.79, "inr": 83.2, "pkr": 277.5}


@pytest.fixture
def loaded_repository(sample_quotes, sample_rates) -> QuoteRepository:
    return QuoteRepository(Snapshot(
        quotes=sample_quotes,
        rates=sample_rates,
        quotes_source="coingecko",
        rates_source="exchangerate-api",
        fetched_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    ))
