"""
Logging-backed observability sink

Tracks per-kind failure counts (like a data quality validator) and keeps a
short window of recent errors for inspection.
"""

import logging
from collections import Counter, deque

from core.interfaces.observability import BaseObservabilitySink
from core.models.market_data import FeedError, FeedErrorKind

logger = logging.getLogger(__name__)

_LEVELS = {
    FeedErrorKind.TRANSPORT: logging.ERROR,
    FeedErrorKind.MALFORMED_MESSAGE: logging.WARNING,
    FeedErrorKind.INVALID_SYMBOL: logging.WARNING,
    FeedErrorKind.LISTENER_FAILURE: logging.WARNING,
    FeedErrorKind.SINK_FAILURE: logging.WARNING,
}


class LoggingObservabilitySink(BaseObservabilitySink):
    """
    Report feed errors through stdlib logging

    Example:
        >>> sink = LoggingObservabilitySink()
        >>> sink.report(FeedError(kind=FeedErrorKind.TRANSPORT, message="timeout"))
        >>> sink.counts[FeedErrorKind.TRANSPORT]
        1
    """

    def __init__(self, history_size: int = 100):
        self.counts: Counter[FeedErrorKind] = Counter()
        self.recent: deque[FeedError] = deque(maxlen=history_size)

    def report(self, error: FeedError) -> None:
        self.counts[error.kind] += 1
        self.recent.append(error)

        where = f" [{error.key}]" if error.key else ""
        detail = f": {error.detail}" if error.detail else ""
        logger.log(
            _LEVELS.get(error.kind, logging.WARNING),
            f"✗ {error.kind.value}{where} {error.message}{detail}",
        )

    def errors_of(self, kind: FeedErrorKind) -> list[FeedError]:
        """Recent errors of one kind, oldest first"""
        return [e for e in self.recent if e.kind == kind]
