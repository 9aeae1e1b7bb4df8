"""
Monitoring clients.

The agent keeps process-wide state, so everything the integration does to
it goes through one ``MonitoringClient`` instance. Tests pass a fake one.
"""

import abc

from relic_flask.errors import ConfigurationError


class MonitoringClient(abc.ABC):
    """Interface every monitoring backend implements."""

    @abc.abstractmethod
    def is_loaded(self):
        """Return True when the agent library can be used in this process."""
        raise NotImplementedError

    @abc.abstractmethod
    def is_enabled(self):
        """Return True when the agent is configured to report."""
        raise NotImplementedError

    @abc.abstractmethod
    def setup(self, app_name, license=None):
        raise NotImplementedError

    @abc.abstractmethod
    def wrap_wsgi(self, wsgi_app, app_name, license=None):
        """Return ``wsgi_app`` instrumented to report to ``app_name``."""
        raise NotImplementedError

    @abc.abstractmethod
    def name_transaction(self, name):
        raise NotImplementedError

    @abc.abstractmethod
    def disable_autorum(self):
        raise NotImplementedError

    @abc.abstractmethod
    def set_option(self, name, value):
        raise NotImplementedError

    @abc.abstractmethod
    def add_custom_attribute(self, name, value):
        raise NotImplementedError

    @abc.abstractmethod
    def add_tracer(self, path):
        raise NotImplementedError

    @abc.abstractmethod
    def notice_error(self, exc_info, attributes=None):
        raise NotImplementedError

    @abc.abstractmethod
    def background_task(self, app_name, name):
        """Return a context manager reporting its body as a background job."""
        raise NotImplementedError

    @abc.abstractmethod
    def browser_header(self):
        raise NotImplementedError

    @abc.abstractmethod
    def browser_footer(self):
        raise NotImplementedError

    @abc.abstractmethod
    def set_user(self, user, account=None, product=None):
        raise NotImplementedError


def split_path(path):
    """Split ``"package.module:Class.method"`` into module and object path."""
    module, sep, object_path = path.partition(":")
    if not sep:
        module, _, object_path = path.rpartition(".")
    if not module or not object_path:
        raise ConfigurationError("Invalid tracer %r, expected 'module:function'" % path)
    return module, object_path


def create_client(config):
    """Create the client for the configured backend."""
    if config["backend"] == "opentelemetry":
        from relic_flask.clients.otel import OpenTelemetryClient

        return OpenTelemetryClient(config["otlp"])

    from relic_flask.clients.new_relic import NewRelicClient

    return NewRelicClient()
