"""
Observability sink interface

Every non-fatal failure in the feed pipeline (transport, malformed frame,
invalid symbol, listener or sink exception) is reported here as a FeedError
instead of being raised.
"""

from abc import ABC, abstractmethod

from core.models.market_data import FeedError


class BaseObservabilitySink(ABC):
    """
    Destination for feed diagnostics

    Implementations:
    - LoggingObservabilitySink (core/utils/observability.py)
    """

    @abstractmethod
    def report(self, error: FeedError) -> None:
        """Record one diagnostic. Must not raise."""
