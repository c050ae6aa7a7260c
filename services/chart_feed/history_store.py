"""
History Store - ordered candle sequence per SubscriptionKey

Merge rule:
- tick.time == last.time → replace last (the open bar is still moving)
- tick.time >  last.time → append
- tick.time <  last.time → dropped (would break ordering)
"""

import logging
from collections.abc import Iterable

from core.models.market_data import Candle, SubscriptionKey

logger = logging.getLogger(__name__)


class HistoryStore:
    """
    Candle history per key, owned by the DataCoordinator

    Readers get tuple snapshots, never the underlying lists.

    Example:
        >>> store = HistoryStore()
        >>> store.replace(key, candles)
        >>> store.merge(key, live_candle)
        True
        >>> store.snapshot(key)[-1] == live_candle
        True
    """

    def __init__(self):
        self._history: dict[SubscriptionKey, list[Candle]] = {}
        self.dropped_count = 0

    def __contains__(self, key: SubscriptionKey) -> bool:
        return key in self._history

    def __len__(self) -> int:
        return len(self._history)

    def keys(self) -> list[SubscriptionKey]:
        return list(self._history)

    def replace(self, key: SubscriptionKey, candles: Iterable[Candle]) -> tuple[Candle, ...]:
        """Full overwrite of a key's history"""
        self._history[key] = list(candles)
        return tuple(self._history[key])

    def merge(self, key: SubscriptionKey, candle: Candle) -> bool:
        """
        Merge one live candle

        Returns:
            True if the history changed, False if the candle was dropped
        """
        history = self._history.setdefault(key, [])

        if history and history[-1].time == candle.time:
            history[-1] = candle
            return True

        if history and candle.time < history[-1].time:
            self.dropped_count += 1
            logger.warning(
                f"Dropped out-of-order candle for {key}: "
                f"{candle.time} < {history[-1].time}"
            )
            return False

        history.append(candle)
        return True

    def snapshot(self, key: SubscriptionKey) -> tuple[Candle, ...]:
        return tuple(self._history.get(key, ()))

    def last(self, key: SubscriptionKey) -> Candle | None:
        history = self._history.get(key)
        return history[-1] if history else None

    def discard(self, key: SubscriptionKey) -> None:
        self._history.pop(key, None)
