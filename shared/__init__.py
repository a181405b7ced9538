"""
Shared utilities for the Access Cache layer.

This package aggregates common building blocks consumed by the cache service:

- config: Engine and Redis configuration via pydantic-settings
- logging: Structured logging with correlation IDs
- metrics: Prometheus metrics for cache outcomes and lock waits
- errors: Canonical error types and responses
- test_helpers: Fakes shared by unit and integration tests

Do not import from service_* packages into shared/.
"""
