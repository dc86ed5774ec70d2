"""Fetch live crypto prices and USD exchange rates.

This module handles all market data collection, including:
- Trying CoinGecko, CryptoCompare and CoinCap in order until one answers
- Normalizing each provider's response into canonical AssetQuote objects
- Fetching exchange rates, filled in from a static table where needed
- Falling back to static quotes when every provider fails
"""

import argparse
import asyncio
import logging
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx

from cryptocalc.config import (
    ASSETS,
    COINCAP_API_URL,
    COINGECKO_API_KEY,
    COINGECKO_API_URL,
    COINGECKO_PRO_API_URL,
    CRYPTOCOMPARE_API_URL,
    EXCHANGERATE_API_URL,
    FALLBACK_PRICES,
    FALLBACK_RATES,
    LOG_DIR,
    REQUEST_TIMEOUT,
)
from cryptocalc.errors import AllProvidersFailure, ProviderFailure, RateFetchFailure
from cryptocalc.models import QUOTES_FALLBACK, RATES_FALLBACK, AssetQuote, Snapshot

logger = logging.getLogger(__name__)

RATES_SOURCE = "exchangerate-api"


def setup_logging() -> None:
    """Configure logging to both console and file."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / "cryptocalc.log"

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    # Avoid duplicate handlers on repeated calls
    if not root_logger.handlers:
        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)


def _to_float(value: Any) -> float | None:
    """Parse a provider number, which may arrive as int, float or string."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _positive(value: Any) -> float | None:
    number = _to_float(value)
    if number is None or number <= 0:
        return None
    return number


def normalize_quote(
    asset_id: str,
    *,
    price: Any,
    name: Any = None,
    symbol: Any = None,
    change: Any = None,
    market_cap: Any = None,
    volume: Any = None,
    now: datetime | None = None,
) -> AssetQuote | None:
    """Build a canonical quote from raw provider fields.

    Args:
        asset_id: Canonical asset id.
        price: USD price in any numeric form.
        name: Display name (defaults to the configured one).
        symbol: Ticker symbol (defaults to the configured one).
        change: 24h change in percent, 0 when missing.
        market_cap: Market cap in USD, dropped when missing or not positive.
        volume: 24h volume in USD, dropped when missing or not positive.
        now: Timestamp for the quote.

    Returns:
        AssetQuote, or None if the asset is not tracked or the price is unusable.
    """
    spec = ASSETS.get(asset_id)
    if spec is None:
        logger.debug("Dropping quote for untracked asset %r", asset_id)
        return None

    price_usd = _positive(price)
    if price_usd is None:
        logger.debug("Dropping %s: unusable price %r", asset_id, price)
        return None

    return AssetQuote(
        id=asset_id,
        name=str(name) if name else spec.name,
        symbol=str(symbol).upper() if symbol else spec.symbol,
        price_usd=price_usd,
        change_24h_pct=_to_float(change) or 0.0,
        market_cap_usd=_positive(market_cap),
        volume_usd=_positive(volume),
        annual_growth_pct=spec.annual_growth_pct,
        color=spec.color,
        last_updated=now or datetime.now(timezone.utc),
    )


def _coingecko_url() -> str:
    base = COINGECKO_PRO_API_URL if COINGECKO_API_KEY else COINGECKO_API_URL
    return (
        f"{base}/coins/markets?vs_currency=usd&ids={','.join(ASSETS)}"
        "&order=market_cap_desc&per_page=100&page=1&sparkline=false"
        "&price_change_percentage=24h"
    )


def _coingecko_headers() -> dict[str, str]:
    if COINGECKO_API_KEY:
        return {"x-cg-pro-api-key": COINGECKO_API_KEY}
    return {}


def parse_coingecko(payload: Any) -> dict[str, AssetQuote]:
    """Parse a CoinGecko ``/coins/markets`` response (a list of coins)."""
    if not isinstance(payload, list):
        raise ProviderFailure("coingecko", "expected a list of coins")

    now = datetime.now(timezone.utc)
    quotes: dict[str, AssetQuote] = {}
    for coin in payload:
        if not isinstance(coin, dict):
            continue
        quote = normalize_quote(
            str(coin.get("id", "")),
            price=coin.get("current_price"),
            name=coin.get("name"),
            symbol=coin.get("symbol"),
            change=coin.get("price_change_percentage_24h"),
            market_cap=coin.get("market_cap"),
            volume=coin.get("total_volume"),
            now=now,
        )
        if quote:
            quotes[quote.id] = quote
    return quotes


def _cryptocompare_url() -> str:
    symbols = ",".join(spec.symbol for spec in ASSETS.values())
    return f"{CRYPTOCOMPARE_API_URL}/pricemultifull?fsyms={symbols}&tsyms=USD"


def parse_cryptocompare(payload: Any) -> dict[str, AssetQuote]:
    """Parse a CryptoCompare ``pricemultifull`` response.

    The payload is keyed by ticker symbol, so each configured asset is looked
    up through its symbol. Error replies arrive with HTTP 200 and no RAW table.
    """
    raw = payload.get("RAW") if isinstance(payload, dict) else None
    if not isinstance(raw, dict):
        raise ProviderFailure("cryptocompare", "response has no RAW table")

    now = datetime.now(timezone.utc)
    quotes: dict[str, AssetQuote] = {}
    for asset_id, spec in ASSETS.items():
        entry = raw.get(spec.symbol)
        usd = entry.get("USD") if isinstance(entry, dict) else None
        if not isinstance(usd, dict):
            continue
        quote = normalize_quote(
            asset_id,
            price=usd.get("PRICE"),
            symbol=spec.symbol,
            change=usd.get("CHANGEPCT24HOUR"),
            market_cap=usd.get("MKTCAP"),
            volume=usd.get("TOTALVOLUME24HTO"),
            now=now,
        )
        if quote:
            quotes[asset_id] = quote
    return quotes


def _coincap_url() -> str:
    return f"{COINCAP_API_URL}?ids={','.join(ASSETS)}"


def parse_coincap(payload: Any) -> dict[str, AssetQuote]:
    """Parse a CoinCap ``/v2/assets`` response; numbers arrive as strings."""
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise ProviderFailure("coincap", "response has no data list")

    now = datetime.now(timezone.utc)
    quotes: dict[str, AssetQuote] = {}
    for coin in data:
        if not isinstance(coin, dict):
            continue
        quote = normalize_quote(
            str(coin.get("id", "")).lower(),
            price=coin.get("priceUsd"),
            name=coin.get("name"),
            symbol=coin.get("symbol"),
            change=coin.get("changePercent24Hr"),
            market_cap=coin.get("marketCapUsd"),
            volume=coin.get("volumeUsd24Hr"),
            now=now,
        )
        if quote:
            quotes[quote.id] = quote
    return quotes


def _no_headers() -> dict[str, str]:
    return {}


@dataclass(frozen=True)
class Provider:
    """A price source: how to build its request and parse its reply."""

    name: str
    build_url: Callable[[], str]
    parse: Callable[[Any], dict[str, AssetQuote]]
    headers: Callable[[], dict[str, str]] = field(default=_no_headers)


PROVIDERS: tuple[Provider, ...] = (
    Provider("coingecko", _coingecko_url, parse_coingecko, _coingecko_headers),
    Provider("cryptocompare", _cryptocompare_url, parse_cryptocompare),
    Provider("coincap", _coincap_url, parse_coincap),
)


async def _get_json(
    client: httpx.AsyncClient,
    source: str,
    url: str,
    headers: Mapping[str, str] | None = None,
) -> Any:
    """GET ``url`` once and decode the JSON body.

    Raises:
        ProviderFailure: On transport errors, non-2xx status or a non-JSON body.
    """
    try:
        response = await client.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise ProviderFailure(source, f"request failed: {e!r}") from e

    if not response.is_success:
        raise ProviderFailure(source, f"HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as e:
        raise ProviderFailure(source, "response is not valid JSON") from e


async def fetch_quotes(
    client: httpx.AsyncClient,
    providers: Sequence[Provider] = PROVIDERS,
) -> tuple[str, dict[str, AssetQuote]]:
    """Ask each provider in turn and return the first usable answer.

    Providers are tried one at a time; the first one that answers ends the
    search and its quotes are returned as they are, never merged with another
    provider's.

    Args:
        client: HTTP client to send requests with.
        providers: Providers in priority order.

    Returns:
        Tuple of (provider name, quotes keyed by asset id).

    Raises:
        AllProvidersFailure: If no provider produced a usable response.
    """
    failures: list[ProviderFailure] = []
    for provider in providers:
        try:
            payload = await _get_json(
                client, provider.name, provider.build_url(), provider.headers()
            )
            quotes = provider.parse(payload)
        except ProviderFailure as e:
            logger.warning("Price provider %s failed: %s", provider.name, e.reason)
            failures.append(e)
            continue

        if not quotes:
            logger.warning("%s answered without any tracked assets", provider.name)
        logger.info("Fetched %d quotes from %s", len(quotes), provider.name)
        return provider.name, quotes

    raise AllProvidersFailure(failures)


def fallback_quotes(now: datetime | None = None) -> dict[str, AssetQuote]:
    """Static quotes used when no provider is reachable."""
    now = now or datetime.now(timezone.utc)
    quotes: dict[str, AssetQuote] = {}
    for asset_id, (price, change) in FALLBACK_PRICES.items():
        quote = normalize_quote(asset_id, price=price, change=change, now=now)
        if quote:
            quotes[asset_id] = quote
    return quotes


def complete_rate_table(raw: Mapping[str, Any]) -> dict[str, float]:
    """Lowercase a provider rate table and fill in every supported currency.

    Args:
        raw: Currency code to units per USD, as the provider sent it.

    Returns:
        Rate table with ``usd`` pinned to 1.0.
    """
    rates: dict[str, float] = {}
    for code, value in raw.items():
        rate = _positive(value)
        if rate is not None:
            rates[str(code).lower()] = rate

    for code, rate in FALLBACK_RATES.items():
        if code not in rates:
            logger.debug("No live rate for %s, using static %s", code, rate)
            rates[code] = rate

    rates["usd"] = 1.0
    return rates


async def _request_rates(client: httpx.AsyncClient) -> dict[str, float]:
    try:
        payload = await _get_json(client, RATES_SOURCE, EXCHANGERATE_API_URL)
    except ProviderFailure as e:
        raise RateFetchFailure(str(e)) from e

    raw = payload.get("rates") if isinstance(payload, dict) else None
    if not isinstance(raw, dict):
        raise RateFetchFailure(f"{RATES_SOURCE}: response has no rates table")
    return complete_rate_table(raw)


async def fetch_exchange_rates(client: httpx.AsyncClient) -> tuple[str, dict[str, float]]:
    """Fetch USD exchange rates, using the static table on any failure.

    Returns:
        Tuple of (source, rate table). Source is "fallback" for static rates.
    """
    try:
        rates = await _request_rates(client)
    except RateFetchFailure as e:
        logger.warning("Exchange rate fetch failed, using static rates: %s", e)
        return RATES_FALLBACK, dict(FALLBACK_RATES)

    logger.info("Fetched %d exchange rates", len(rates))
    return RATES_SOURCE, rates


def fallback_snapshot() -> Snapshot:
    """Snapshot built only from the static tables."""
    return Snapshot(
        quotes=fallback_quotes(),
        rates=dict(FALLBACK_RATES),
        quotes_source=QUOTES_FALLBACK,
        rates_source=RATES_FALLBACK,
        fetched_at=datetime.now(timezone.utc),
    )


async def refresh_snapshot(client: httpx.AsyncClient) -> Snapshot:
    """Run one fetch cycle: quotes through the provider chain, then rates.

    Network failures never escape; static data takes their place.
    """
    try:
        quotes_source, quotes = await fetch_quotes(client)
    except AllProvidersFailure as e:
        logger.error("%s. Using static quotes", e)
        quotes_source, quotes = QUOTES_FALLBACK, fallback_quotes()

    rates_source, rates = await fetch_exchange_rates(client)

    return Snapshot(
        quotes=quotes,
        rates=rates,
        quotes_source=quotes_source,
        rates_source=rates_source,
        fetched_at=datetime.now(timezone.utc),
    )


async def fetch_snapshot() -> Snapshot:
    """Run one fetch cycle with a short-lived HTTP client."""
    async with httpx.AsyncClient(
        timeout=REQUEST_TIMEOUT, headers={"Accept": "application/json"}
    ) as client:
        return await refresh_snapshot(client)


def main(currency: str = "usd") -> None:
    """Fetch once and print the ticker."""
    from cryptocalc.analyzer import format_money, lookup_rate, ticker_items

    setup_logging()
    snapshot = asyncio.run(fetch_snapshot())

    print(f"\nPrices from {snapshot.quotes_source}, rates from {snapshot.rates_source}:")
    for line in ticker_items(snapshot.quotes):
        print(f"  {line}")

    rate = lookup_rate(snapshot.rates, currency)
    if currency.lower() != "usd":
        print(f"\n1 USD = {format_money(rate, currency)}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fetch live crypto prices once")
    parser.add_argument("--currency", default="usd",
                        help="Also show the USD rate for this currency (e.g. eur)")
    args = parser.parse_args()
    main(currency=args.currency)
