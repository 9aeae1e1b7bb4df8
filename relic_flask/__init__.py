"""
relic-flask - application performance monitoring for Flask

This package wires a monitoring agent into the Flask request lifecycle:
- Transaction naming from the matched route and its action parameter
- Per-route application names from an ordered prefix map
- Error reporting for unhandled exceptions and selected log records
- Real-user monitoring markup helpers for templates

The New Relic agent is the default backend; an OpenTelemetry/OTLP backend
is available with ``backend: opentelemetry``.
"""

__version__ = "0.1.0"

from relic_flask.errors import ConfigurationError  # noqa: E402
from relic_flask.extension import NewRelic  # noqa: E402
from relic_flask.resolver import resolve, route_name  # noqa: E402

__all__ = ["ConfigurationError", "NewRelic", "resolve", "route_name"]
