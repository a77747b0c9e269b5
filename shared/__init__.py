"""
Shared utilities for the Game Explorer services.

This package aggregates common building blocks consumed by the services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with correlation context
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Retry decorator for upstream calls
- base_service: FastAPI application shell (health, metrics, error handlers)

Do not import from service packages into shared/.
"""
