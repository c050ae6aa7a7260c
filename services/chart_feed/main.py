"""
Chart Feed Service - runs the configured chart board headless

Flow:
1. Load the chart board (config/providers/charts.yaml)
2. For every chart: validate symbol → load history → render indicators → go live
3. Log every closed bar with the latest indicator readings
4. Run until SIGINT/SIGTERM, then release every stream

Usage:
    python -m services.chart_feed.main
"""

import asyncio
import logging
import os
import signal
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from config.loader import load_chart_board
from config.settings import get_settings
from core.models.market_data import KlineEvent, SubscriptionKey
from domain.indicators.momentum import MACD, RSI
from factory.client_factory import create_feed_client
from services.chart_feed.feed_client import ListenerHandle
from services.chart_feed.memory_chart import MemoryChart
from services.chart_feed.session import Chart, ChartSession

# Configure logging
os.makedirs("data/logs", exist_ok=True)

_fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_console = logging.StreamHandler(sys.stdout)
_console.setFormatter(logging.Formatter(_fmt))

_file = RotatingFileHandler(
    "data/logs/chart_feed_errors.log",
    maxBytes=5 * 1024 * 1024,  # 5MB
    backupCount=3,
)
_file.setLevel(logging.ERROR)
_file.setFormatter(logging.Formatter(_fmt))

logging.basicConfig(level=get_settings().LOG_LEVEL, handlers=[_console, _file])
logger = logging.getLogger(__name__)


def describe_indicators(chart: Chart) -> str:
    """One-line summary of the latest indicator readings on a chart"""
    parts = []
    for indicator in chart.indicators:
        if isinstance(indicator, RSI) and indicator.last_value is not None:
            parts.append(f"RSI={indicator.last_value:.2f}")
        elif isinstance(indicator, MACD) and indicator.histogram_series is not None:
            points = indicator.histogram_series.points
            if points:
                parts.append(f"MACD hist={points[-1].value:.4f}")
    return ", ".join(parts)


class ChartFeedService:
    """
    Chart Feed Service - live chart board without a drawing layer

    Every chart gets a MemoryChart surface; closed bars are logged.
    """

    def __init__(self):
        self.settings = get_settings()
        self.running = False

        logger.info("🔧 Initializing feed client...")
        self.feed = create_feed_client()
        self.session = ChartSession(self.feed)
        self._watched: dict[str, SubscriptionKey] = {}
        self._log_handles: dict[SubscriptionKey, ListenerHandle] = {}

    async def _log_closed_bar(self, event: KlineEvent) -> None:
        if not event.closed:
            return
        for chart in self.session.charts.values():
            if chart.key != event.key:
                continue
            summary = describe_indicators(chart)
            logger.info(
                f"[{chart.chart_id}] {event.key} closed @ {event.candle.close}"
                + (f" | {summary}" if summary else "")
            )

    async def watch_chart(self, chart: Chart) -> None:
        """Log closed bars for a chart already added to the session"""
        self._watched[chart.chart_id] = chart.key
        self._log_handles[chart.key] = await self.feed.subscribe(chart.key, self._log_closed_bar)

    async def remove_chart(self, chart_id: str) -> None:
        """Remove a chart; the closed-bar logger is dropped with the last chart on its key"""
        key = self._watched.pop(chart_id, None)
        await self.session.remove_chart(chart_id)
        if key is None or key in self._watched.values():
            return

        handle = self._log_handles.pop(key, None)
        if handle is not None:
            await self.feed.unsubscribe(key, handle)

    async def start(self):
        """Start the chart board and keep it live until stopped"""
        board = load_chart_board(self.settings.CHARTS_CONFIG)

        logger.info("=" * 60)
        logger.info("Chart Feed Service started")
        logger.info("=" * 60)
        logger.info(f"  Charts: {', '.join(f'{c.id}={c.key}' for c in board)}")
        logger.info(f"  History: {self.settings.HISTORY_LIMIT} candles")
        logger.info("=" * 60)

        self.running = True

        try:
            await self.feed.open()

            for config in board:
                chart = await self.session.add_from_config(config, MemoryChart(config.id))
                if chart is not None:
                    await self.watch_chart(chart)

            if not self.session.charts:
                logger.error("❌ No chart could be started")
                return

            while self.running:
                await asyncio.sleep(1)

        except Exception as e:
            logger.error(f"❌ Fatal error: {e}", exc_info=True)
        finally:
            await self.stop()

    async def stop(self):
        """Graceful shutdown"""
        logger.info("🛑 Stopping Chart Feed Service...")
        self.running = False

        for chart_id in list(self._watched):
            await self.remove_chart(chart_id)
        await self.session.close()
        await self.feed.aclose()

        logger.info("✅ Chart Feed Service stopped")


def signal_handler(service):
    """Handle SIGINT/SIGTERM"""

    def handler(signum, frame):
        logger.info(f"Received signal {signum}")
        service.running = False

    return handler


async def main():
    """Main entry point"""
    service = ChartFeedService()

    signal.signal(signal.SIGINT, signal_handler(service))
    signal.signal(signal.SIGTERM, signal_handler(service))

    await service.start()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Goodbye!")
