"""Factory package - Dependency injection for feed clients"""

from .client_factory import (
    create_exchange_rest_api,
    create_feed_client,
    create_reconnect_policy,
    create_stream_factory,
)

__all__ = [
    "create_exchange_rest_api",
    "create_stream_factory",
    "create_reconnect_policy",
    "create_feed_client",
]
