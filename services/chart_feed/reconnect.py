"""
Reconnect policies for kline streams that close on their own

The default is NoReconnect: a stream that drops releases its listeners and
the key has to be subscribed again. ExponentialBackoff keeps the listeners
and reopens the stream after a jittered delay.
"""

import random
from abc import ABC, abstractmethod
from collections.abc import Callable

from core.models.market_data import SubscriptionKey


class BaseReconnectPolicy(ABC):
    """Decide whether and when to reopen a dropped stream"""

    @abstractmethod
    def next_delay(self, key: SubscriptionKey, attempt: int) -> float | None:
        """
        Delay before reconnect attempt number `attempt` (1-based)

        Returns:
            Seconds to wait, or None to give up and release the key
        """


class NoReconnect(BaseReconnectPolicy):
    """Never reconnect"""

    def next_delay(self, key: SubscriptionKey, attempt: int) -> float | None:
        return None


class ExponentialBackoff(BaseReconnectPolicy):
    """
    Exponential backoff with full jitter

    delay = uniform(0, min(max_delay, base_delay × 2^(attempt-1)))

    Example:
        >>> policy = ExponentialBackoff(base_delay=1.0, max_delay=30.0, max_attempts=5)
        >>> policy.next_delay(key, 6) is None
        True
    """

    def __init__(
        self,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        max_attempts: int = 5,
        jitter: Callable[[float, float], float] = random.uniform,
    ):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.max_attempts = max_attempts
        self._jitter = jitter

    def next_delay(self, key: SubscriptionKey, attempt: int) -> float | None:
        if attempt < 1 or attempt > self.max_attempts:
            return None
        ceiling = min(self.max_delay, self.base_delay * 2 ** (attempt - 1))
        return self._jitter(0, ceiling)
