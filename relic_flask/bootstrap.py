"""
Startup actions derived from configuration.

``build()`` turns the effective configuration into an ordered list of
calls on the monitoring client. ``Bootstrap.run()`` executes them once.
"""

import logging

from relic_flask import logger as log_forwarding
from relic_flask.config import default_app_name

logger = logging.getLogger(__name__)


def milliseconds(value):
    return value / 1000.0


def transaction_threshold(value):
    if value == "apdex_f":
        return None
    return milliseconds(float(value))


class Bootstrap:

    def __init__(self):
        self.actions = []
        self.done = False

    def add(self, description, func, *args):
        self.actions.append((description, func, args))

    def run(self):
        """Execute every action in order. Later calls do nothing."""
        if self.done:
            return
        for description, func, args in self.actions:
            logger.debug("Startup action: %s", description)
            func(*args)
        self.done = True


def build(client, config):
    bootstrap = Bootstrap()

    app_name = default_app_name(config)
    if app_name:
        bootstrap.add("setup %s" % app_name, client.setup, app_name, config.get("license"))

    levels = list(dict.fromkeys(config["logLevel"]))
    bootstrap.add("log forwarding for %s" % ", ".join(levels),
                  log_forwarding.install, client, levels, config["loggers"])

    for tracer in config["custom"].get("tracers", ()):
        bootstrap.add("tracer %s" % tracer, client.add_tracer, tracer)

    if config["rum"]["enabled"] != "auto":
        bootstrap.add("disable autorum", client.disable_autorum)

    tracer_config = config["transactionTracer"]
    error_config = config["errorCollector"]
    options = [
        ("transaction_tracer.enabled", bool(tracer_config["enabled"])),
        ("transaction_tracer.detail", int(tracer_config["detail"])),
        ("transaction_tracer.record_sql", str(tracer_config["recordSql"])),
        ("slow_sql.enabled", bool(tracer_config["slowSql"])),
        ("transaction_tracer.transaction_threshold", transaction_threshold(tracer_config["threshold"])),
        ("transaction_tracer.stack_trace_threshold", milliseconds(tracer_config["stackTraceThreshold"])),
        ("transaction_tracer.explain_threshold", milliseconds(tracer_config["explainThreshold"])),
        ("error_collector.enabled", bool(error_config["enabled"])),
        ("error_collector.record_database_errors", bool(error_config["recordDatabaseErrors"])),
    ]
    for name, value in options:
        bootstrap.add("option %s=%r" % (name, value), client.set_option, name, value)

    parameters = config["parameters"]
    bootstrap.add("capture params", client.set_option, "capture_params", bool(parameters["capture"]))
    bootstrap.add("ignored params", client.set_option, "attributes.exclude",
                  ["request.parameters.%s" % name for name in parameters["ignored"]])

    return bootstrap
