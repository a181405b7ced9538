"""
Wiring of a Redis-backed engine from configuration.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from shared.config import CacheConfig, get_config
from shared.logging import configure_logging, get_logger
from shared.metrics import CacheMetricsCollector

from .engine import CacheAsideEngine
from .locks.redis_lock import RedisLockProvider
from .models import CacheSettings, LockGranularity
from .stores.redis_store import RedisStore


def cache_settings_from_config(config: CacheConfig) -> CacheSettings:
    """Project the engine tunables out of the service configuration."""
    return CacheSettings(
        default_ttl=timedelta(seconds=config.default_ttl_seconds),
        lock_timeout=timedelta(seconds=config.lock_timeout_seconds),
        lock_granularity=LockGranularity(config.lock_granularity),
        key_separator=config.key_separator,
        key_prefix=config.key_prefix,
    )


@dataclass
class CacheRuntime:
    """An engine together with the resources it owns."""

    engine: CacheAsideEngine
    store: RedisStore
    lock_provider: RedisLockProvider
    metrics: Optional[CacheMetricsCollector]

    async def close(self):
        await self.store.stop()


async def create_engine(config: Optional[CacheConfig] = None,
                        configure_logs: bool = True) -> CacheRuntime:
    """Connect to Redis and build an engine using one shared client."""
    config = config or get_config()
    if configure_logs:
        configure_logging(config.service_name, config.log_level)
    logger = get_logger("cache.factory")

    store = RedisStore(config.redis_url, socket_timeout=config.redis_socket_timeout)
    await store.start()

    lock_provider = RedisLockProvider(store.client, lease_seconds=config.lock_lease_seconds)
    metrics = CacheMetricsCollector(config.service_name) if config.metrics_enabled else None
    if metrics is not None and config.metrics_port is not None:
        metrics.start_metrics_server(config.metrics_port)
    settings = cache_settings_from_config(config)

    engine = CacheAsideEngine(store, lock_provider, settings=settings, metrics=metrics)
    logger.info(
        "Cache engine ready",
        env=config.env,
        default_ttl_seconds=config.default_ttl_seconds,
        lock_timeout_seconds=config.lock_timeout_seconds,
        lock_granularity=config.lock_granularity,
        metrics_port=config.metrics_port if metrics is not None else None,
    )
    return CacheRuntime(engine=engine, store=store, lock_provider=lock_provider, metrics=metrics)
