"""In-memory holder for the latest quotes and exchange rates.

One ``QuoteRepository`` is owned by the refresh scheduler and handed to the
projection engine and the UI. It only ever holds a complete snapshot: a refresh
swaps the whole snapshot in a single assignment, so readers never see quotes
from one cycle paired with rates from another.
"""

import logging
from collections.abc import Mapping

from cryptocalc.models import AssetQuote, Snapshot

logger = logging.getLogger(__name__)


class QuoteRepository:
    def __init__(self, snapshot: Snapshot | None = None):
        self._snapshot = snapshot or Snapshot()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def replace(self, snapshot: Snapshot) -> None:
        """Swap in the result of a completed fetch cycle."""
        self._snapshot = snapshot
        logger.debug(
            "Snapshot replaced: %d quotes from %s, %d rates from %s",
            len(snapshot.quotes), snapshot.quotes_source,
            len(snapshot.rates), snapshot.rates_source,
        )

    def get_latest_quotes(self) -> Mapping[str, AssetQuote]:
        return self._snapshot.quotes

    def get_latest_rates(self) -> Mapping[str, float]:
        return self._snapshot.rates

    def get_quote(self, asset_id: str) -> AssetQuote | None:
        return self._snapshot.quotes.get(asset_id)

    @property
    def is_empty(self) -> bool:
        return not self._snapshot.quotes

    @property
    def is_static(self) -> bool:
        return self._snapshot.is_static
