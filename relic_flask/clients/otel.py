"""
OpenTelemetry client.

Each application name gets its own TracerProvider whose resource carries
that name as ``service.name``, so one process can report to several
applications. Spans are exported over OTLP/HTTP; New Relic's OTLP endpoint
takes the license key as the ``api-key`` header.
"""

import contextlib
import functools
import importlib
import logging
import os

try:
    from opentelemetry import trace
    from opentelemetry.instrumentation.wsgi import OpenTelemetryMiddleware
    from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION, DEPLOYMENT_ENVIRONMENT
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.trace import Status, StatusCode
    OTEL_AVAILABLE = True
except ImportError:
    OTEL_AVAILABLE = False

from relic_flask import __version__
from relic_flask.clients import MonitoringClient, split_path

logger = logging.getLogger(__name__)


def otlp_exporter(endpoint, headers):
    return OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces", headers=headers)


class OpenTelemetryClient(MonitoringClient):

    def __init__(self, otlp, exporter_factory=otlp_exporter, processor_class=None):
        self.endpoint = otlp.get("endpoint")
        self.headers = dict(otlp.get("headers") or {})
        self.exporter_factory = exporter_factory
        self.processor_class = processor_class
        self.options = {}
        self.autorum = True
        self.default_provider = None
        self._tracer_providers = {}

    def is_loaded(self):
        return OTEL_AVAILABLE

    def is_enabled(self):
        return os.environ.get("OTEL_SDK_DISABLED", "false").strip().lower() != "true"

    def get_tracer_provider(self, app_name, license=None):
        """Get or create a tracer provider for a specific application."""
        if app_name in self._tracer_providers:
            return self._tracer_providers[app_name]

        resource = Resource.create({
            SERVICE_NAME: app_name,
            SERVICE_VERSION: os.environ.get("OTEL_SERVICE_VERSION", __version__),
            DEPLOYMENT_ENVIRONMENT: os.environ.get("OTEL_DEPLOYMENT_ENVIRONMENT", "production"),
            "host.name": os.environ.get("HOSTNAME", os.uname().nodename),
        })

        headers = dict(self.headers)
        if license:
            headers["api-key"] = license

        tracer_provider = TracerProvider(resource=resource)
        processor_class = self.processor_class or BatchSpanProcessor
        tracer_provider.add_span_processor(processor_class(self.exporter_factory(self.endpoint, headers)))

        logger.debug("Created tracer provider for %s", app_name)
        self._tracer_providers[app_name] = tracer_provider
        return tracer_provider

    def setup(self, app_name, license=None):
        self.default_provider = self.get_tracer_provider(app_name, license)
        trace.set_tracer_provider(self.default_provider)

    def tracer(self):
        if self.default_provider is None:
            return trace.get_tracer(__name__)
        return self.default_provider.get_tracer(__name__)

    def wrap_wsgi(self, wsgi_app, app_name, license=None):
        return OpenTelemetryMiddleware(wsgi_app, tracer_provider=self.get_tracer_provider(app_name, license))

    def _tracing(self):
        return self.options.get("transaction_tracer.enabled", True)

    def name_transaction(self, name):
        if self._tracing():
            trace.get_current_span().update_name(name)

    def disable_autorum(self):
        self.autorum = False

    def set_option(self, name, value):
        self.options[name] = value

    def add_custom_attribute(self, name, value):
        if isinstance(value, (list, tuple)):
            value = [str(item) for item in value]
        elif not isinstance(value, (str, bool, int, float)):
            value = str(value)
        trace.get_current_span().set_attribute(name, value)

    def add_tracer(self, path):
        module_name, object_path = split_path(path)
        parent = importlib.import_module(module_name)
        *owners, attribute = object_path.split(".")
        for owner in owners:
            parent = getattr(parent, owner)

        wrapped = getattr(parent, attribute)
        span_name = f"{module_name}:{object_path}"

        @functools.wraps(wrapped)
        def traced(*args, **kwargs):
            with self.tracer().start_as_current_span(span_name):
                return wrapped(*args, **kwargs)

        setattr(parent, attribute, traced)

    def notice_error(self, exc_info, attributes=None):
        span = trace.get_current_span()
        exc = exc_info[1]
        span.record_exception(exc, attributes=attributes)
        span.set_status(Status(StatusCode.ERROR, str(exc)))

    @contextlib.contextmanager
    def background_task(self, app_name, name):
        tracer = self.get_tracer_provider(app_name).get_tracer(__name__)
        with tracer.start_as_current_span(name) as span:
            span.set_attribute("background", True)
            yield span

    def browser_header(self):
        return ""

    def browser_footer(self):
        return ""

    def set_user(self, user, account=None, product=None):
        span = trace.get_current_span()
        span.set_attribute("enduser.id", str(user))
        if account is not None:
            span.set_attribute("account", str(account))
        if product is not None:
            span.set_attribute("product", str(product))
