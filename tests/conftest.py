"""
Pytest configuration for test suite

Markers:
- unit: Fast unit tests (no external dependencies)
"""

import functools

import pytest

import config.settings as settings_module
from core.models.market_data import SubscriptionKey
from core.utils.observability import LoggingObservabilitySink
from providers.binance.websocket import BinanceKlineStream
from services.chart_feed.feed_client import FeedClient
from tests.unit.fakes import FakeConnector, FakeRestAPI

TEST_WS_URL = "wss://stream.test/ws"


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Fast unit tests (no dependencies)")


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop the settings singleton so env changes in one test don't leak"""
    settings_module._settings_instance = None
    yield
    settings_module._settings_instance = None


@pytest.fixture
def btc_key():
    return SubscriptionKey.of("BTCUSDT", "1m")


@pytest.fixture
def eth_key():
    return SubscriptionKey.of("ETHUSDT", "1m")


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def rest_api():
    return FakeRestAPI()


@pytest.fixture
def observability():
    return LoggingObservabilitySink()


@pytest.fixture
def stream_factory(connector):
    return functools.partial(BinanceKlineStream, base_url=TEST_WS_URL, connector=connector)


@pytest.fixture
def feed(rest_api, stream_factory, observability):
    """FeedClient over fakes (open it with `async with feed:`)"""
    return FeedClient(rest_api=rest_api, stream_factory=stream_factory, observability=observability)
