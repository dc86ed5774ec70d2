"""Configuration and constants for the crypto ROI calculator."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(__file__).parent.parent
LOG_DIR = Path(os.getenv("LOG_DIR", PROJECT_ROOT / "logs"))

# Price providers, tried in this order
COINGECKO_API_URL = os.getenv("COINGECKO_API_URL", "https://api.coingecko.com/api/v3")
COINGECKO_PRO_API_URL = os.getenv(
    "COINGECKO_PRO_API_URL", "https://pro-api.coingecko.com/api/v3"
)
COINGECKO_API_KEY = os.getenv("COINGECKO_API_KEY", "")
CRYPTOCOMPARE_API_URL = os.getenv(
    "CRYPTOCOMPARE_API_URL", "https://min-api.cryptocompare.com/data"
)
COINCAP_API_URL = os.getenv("COINCAP_API_URL", "https://api.coincap.io/v2/assets")
EXCHANGERATE_API_URL = os.getenv(
    "EXCHANGERATE_API_URL", "https://api.exchangerate-api.com/v4/latest/USD"
)

# Networking
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))  # seconds per request
REFRESH_INTERVAL = float(os.getenv("REFRESH_INTERVAL", "60"))  # seconds between cycles


@dataclass(frozen=True)
class AssetSpec:
    """Static per-asset settings that no provider reports."""

    name: str
    symbol: str
    annual_growth_pct: float
    color: str


# Tracked assets. Keys are the canonical ids (also CoinGecko / CoinCap ids).
ASSETS: dict[str, AssetSpec] = {
    "bitcoin": AssetSpec("Bitcoin", "BTC", 65.0, "#F7931A"),
    "ethereum": AssetSpec("Ethereum", "ETH", 55.0, "#627EEA"),
    "solana": AssetSpec("Solana", "SOL", 120.0, "#00FFA3"),
    "cardano": AssetSpec("Cardano", "ADA", 35.0, "#0033AD"),
    "polkadot": AssetSpec("Polkadot", "DOT", 40.0, "#E6007A"),
    "dogecoin": AssetSpec("Dogecoin", "DOGE", 25.0, "#C2A633"),
}

DEFAULT_COLOR = "#0D6EFD"

# Static quotes used when every provider fails: id -> (price_usd, change_24h_pct)
FALLBACK_PRICES: dict[str, tuple[float, float]] = {
    "bitcoin": (41250.50, 2.5),
    "ethereum": (2250.75, 1.8),
    "solana": (95.30, 5.2),
    "cardano": (0.45, -1.2),
    "polkadot": (6.85, 0.5),
    "dogecoin": (0.078, 3.1),
}

# Units of currency per 1 USD
FALLBACK_RATES: dict[str, float] = {
    "usd": 1.0,
    "pkr": 277.50,
    "eur": 0.92,
    "gbp": 0.79,
    "inr": 83.20,
    "aud": 1.52,
    "cad": 1.35,
    "jpy": 149.50,
    "cny": 7.30,
}

SUPPORTED_CURRENCIES = frozenset(FALLBACK_RATES)

CURRENCY_SYMBOLS: dict[str, str] = {
    "usd": "$",
    "eur": "€",
    "gbp": "£",
    "pkr": "Rs ",
    "inr": "₹",
    "aud": "A$",
    "cad": "C$",
    "jpy": "¥",
    "cny": "¥",
}

# Calculator defaults, applied after the first load
DEFAULT_ASSET = "bitcoin"
DEFAULT_INVESTMENT = 1000.0
DEFAULT_PERIOD_DAYS = 365
DEFAULT_CURRENCY = "usd"
DEFAULT_CONVERT_AMOUNT = 1.0
DAYS_PER_YEAR = 365
TICKER_LIMIT = 6
