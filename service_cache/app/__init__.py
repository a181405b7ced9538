"""
Stampede-safe cache-aside layer backed by a shared remote store.
"""

from .engine import CacheAsideEngine, CacheScope, DistributedCache
from .models import CacheSettings, LockGranularity
from .serializers import JsonSerializer, ModelSerializer, Serializer

__all__ = [
    "CacheAsideEngine",
    "CacheScope",
    "DistributedCache",
    "CacheSettings",
    "LockGranularity",
    "JsonSerializer",
    "ModelSerializer",
    "Serializer",
]
