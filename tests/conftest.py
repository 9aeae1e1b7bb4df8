import contextlib
import logging

import pytest
from flask import Flask

from relic_flask.clients import MonitoringClient


class FakeMonitoringClient(MonitoringClient):

    def __init__(self, loaded=True, enabled=True):
        self.loaded = loaded
        self.enabled = enabled
        self.calls = []
        self.options = {}
        self.attributes = {}
        self.errors = []
        self.wrapped = []

    def is_loaded(self):
        return self.loaded

    def is_enabled(self):
        return self.enabled

    def setup(self, app_name, license=None):
        self.calls.append(("setup", app_name, license))

    def wrap_wsgi(self, wsgi_app, app_name, license=None):
        self.wrapped.append(app_name)

        def instrumented(environ, start_response):
            environ["test.application"] = app_name
            return wsgi_app(environ, start_response)

        return instrumented

    def name_transaction(self, name):
        self.calls.append(("name_transaction", name))

    def disable_autorum(self):
        self.calls.append(("disable_autorum",))

    def set_option(self, name, value):
        self.options[name] = value

    def add_custom_attribute(self, name, value):
        self.attributes[name] = value

    def add_tracer(self, path):
        self.calls.append(("add_tracer", path))

    def notice_error(self, exc_info, attributes=None):
        self.errors.append((exc_info, attributes))

    @contextlib.contextmanager
    def background_task(self, app_name, name):
        self.calls.append(("background_task", app_name, name))
        yield

    def browser_header(self):
        return "<script>header</script>"

    def browser_footer(self):
        return "<script>footer</script>"

    def set_user(self, user, account=None, product=None):
        self.calls.append(("set_user", user, account, product))


@pytest.fixture
def client():
    return FakeMonitoringClient()


@pytest.fixture
def app():
    app = Flask(__name__)
    app.config["TESTING"] = True
    return app


@pytest.fixture(autouse=True)
def restore_root_handlers():
    root = logging.getLogger()
    handlers = list(root.handlers)
    yield
    root.handlers[:] = handlers


@pytest.fixture(autouse=True)
def clear_agent_env(monkeypatch):
    for name in ("NEW_RELIC_APP_NAME", "NEW_RELIC_LICENSE_KEY",
                 "OTEL_EXPORTER_OTLP_ENDPOINT", "OTEL_EXPORTER_OTLP_HEADERS", "OTEL_SDK_DISABLED"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_client():
    return FakeMonitoringClient
