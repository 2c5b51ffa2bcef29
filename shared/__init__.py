"""
Shared utilities for the resource data store.

This package aggregates common building blocks consumed by the data store
components:

- config: Configuration via pydantic-settings
- logging: Structured logging with correlation ids
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Retry decorator for transport-level failures

Any cross-component logic should live here to avoid import cycles. Do not
import from service_* packages into shared/.
"""
