"""
Configuration for the monitoring integration.

The user block lives in ``app.config["NEWRELIC"]`` and is merged over
``DEFAULTS``. Values the block leaves out fall back to the agent's usual
environment variables.
"""

import copy
import os
from types import MappingProxyType

from relic_flask.errors import ConfigurationError
from relic_flask.resolver import DEFAULT_PATTERN

CONFIG_KEY = "NEWRELIC"

BACKENDS = ("newrelic", "opentelemetry")

# Levels accepted in ``logLevel``. "exception" matches any record carrying
# exception info, whatever its level.
LOG_LEVELS = ("critical", "exception", "error", "warning", "info", "debug")

DEFAULTS = {
    "enabled": True,
    "backend": "newrelic",
    "actionKey": "action",
    "logLevel": ["critical", "exception", "error"],
    "loggers": [None],
    "rum": {
        "enabled": "auto",
    },
    "transactionTracer": {
        "enabled": True,
        "detail": 1,
        "recordSql": "obfuscated",
        "slowSql": True,
        "threshold": "apdex_f",
        "stackTraceThreshold": 500,
        "explainThreshold": 500,
    },
    "errorCollector": {
        "enabled": True,
        "recordDatabaseErrors": True,
    },
    "parameters": {
        "capture": False,
        "ignored": [],
    },
    "custom": {},
    "otlp": {},
}


def parse_headers(headers_str):
    """Parse OTEL headers from comma-separated key=value string."""
    if not headers_str:
        return {}
    headers = {}
    for item in headers_str.split(","):
        if "=" in item:
            key, value = item.split("=", 1)
            headers[key.strip()] = value.strip()
    return headers


def merge(defaults, overrides):
    """Recursively merge ``overrides`` over ``defaults`` into a new dict."""
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_config(app_config):
    """Build the effective configuration from a Flask config mapping."""
    config = merge(DEFAULTS, app_config.get(CONFIG_KEY) or {})

    if "appName" not in config and os.environ.get("NEW_RELIC_APP_NAME"):
        config["appName"] = os.environ["NEW_RELIC_APP_NAME"]
    if "license" not in config and os.environ.get("NEW_RELIC_LICENSE_KEY"):
        config["license"] = os.environ["NEW_RELIC_LICENSE_KEY"]

    otlp = config["otlp"]
    otlp.setdefault("endpoint", os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT", "https://otlp.nr-data.net"))
    if isinstance(otlp.get("headers"), str):
        otlp["headers"] = parse_headers(otlp["headers"])
    otlp.setdefault("headers", parse_headers(os.environ.get("OTEL_EXPORTER_OTLP_HEADERS", "")))

    validate(config)
    return config


def validate(config):
    """Raise ConfigurationError for shapes the integration cannot use."""
    if config["backend"] not in BACKENDS:
        raise ConfigurationError("Unknown monitoring backend %r, expected one of %s" % (
            config["backend"], ", ".join(BACKENDS)))

    app_name = config.get("appName")
    if isinstance(app_name, dict) and app_name and DEFAULT_PATTERN not in app_name:
        raise ConfigurationError('Missing default app name as "*"')

    if config["rum"]["enabled"] not in (True, False, "auto"):
        raise ConfigurationError('rum.enabled must be true, false or "auto"')

    unknown = [level for level in config["logLevel"] if level not in LOG_LEVELS]
    if unknown:
        raise ConfigurationError("Unknown log levels: %s" % ", ".join(unknown))

    custom = config["custom"]
    if "parameters" in custom and not isinstance(custom["parameters"], dict):
        raise ConfigurationError("Invalid custom parameters structure")
    if "tracers" in custom and not isinstance(custom["tracers"], (list, tuple)):
        raise ConfigurationError("Invalid custom tracers structure")


def app_map(config):
    """Return the read-only route prefix map, empty for a scalar appName."""
    app_name = config.get("appName")
    if isinstance(app_name, dict):
        return MappingProxyType(dict(app_name))
    return MappingProxyType({})


def default_app_name(config):
    """Return the application name used when no route prefix matches."""
    app_name = config.get("appName")
    if isinstance(app_name, dict):
        return app_name.get(DEFAULT_PATTERN)
    return app_name
