"""
Flask extension wiring the monitoring client into an application.

    app = Flask(__name__)
    app.config["NEWRELIC"] = {
        "appName": {"Api:*": "BackendApp", "*": "WebApp"},
        "license": "...",
    }
    NewRelic(app)
"""

import logging

from relic_flask import bootstrap
from relic_flask.clients import create_client
from relic_flask.config import app_map, default_app_name, get_config
from relic_flask.errors import ConfigurationError
from relic_flask.hooks import ErrorObserver, RequestObserver
from relic_flask.middleware import RouteAwareMiddleware
from relic_flask.rum import FooterControl, HeaderControl, RUMUser

logger = logging.getLogger(__name__)

EXTENSION_KEY = "relic_flask"


class MonitoringState:
    """Per-application state kept in ``app.extensions``."""

    def __init__(self, config, client, enabled):
        self.config = config
        self.client = client
        self.enabled = enabled
        self.default_app_name = default_app_name(config)
        self.bootstrap = None


class NewRelic:
    """
    Monitoring integration for a Flask application.

    With ``skip_if_disabled`` a missing or disabled agent turns the
    integration into a no-op; otherwise ``init_app`` raises
    ConfigurationError so the problem shows up before serving traffic.
    """

    def __init__(self, app=None, skip_if_disabled=False, client=None):
        self.skip_if_disabled = skip_if_disabled
        self.client = client
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        config = get_config(app.config)
        client = self.client or create_client(config)

        enabled = True
        if self.skip_if_disabled and (not client.is_loaded() or not client.is_enabled()):
            logger.warning("Monitoring agent is not available, %s integration disabled", config["backend"])
            enabled = False
        if not config["enabled"]:
            enabled = False

        state = MonitoringState(config, client, enabled)
        app.extensions[EXTENSION_KEY] = state

        self.setup_rum(app, state)

        if not enabled:
            return state

        if not client.is_loaded():
            raise ConfigurationError("%s agent is not loaded" % config["backend"])
        if not client.is_enabled():
            raise ConfigurationError("%s agent is not enabled" % config["backend"])

        self.setup_application_on_request(app, state)
        self.setup_application_on_error(app, state)

        state.bootstrap = bootstrap.build(client, config)
        state.bootstrap.run()

        logger.info("Monitoring initialized for %s (%s)", app.name, config["backend"])
        return state

    def setup_application_on_request(self, app, state):
        config = state.config
        routes = app_map(config)

        RequestObserver(
            state.client,
            routes,
            default_app_name=state.default_app_name,
            action_key=config["actionKey"],
            custom_parameters=config["custom"].get("parameters"),
            capture_params=bool(config["parameters"]["capture"]),
            ignored_params=config["parameters"]["ignored"],
        ).register(app)

        if state.default_app_name is not None:
            app.wsgi_app = RouteAwareMiddleware(
                app,
                app.wsgi_app,
                state.client,
                routes,
                state.default_app_name,
                license=config.get("license"),
                action_key=config["actionKey"],
            )

    def setup_application_on_error(self, app, state):
        ErrorObserver(state.client).register(app)

    def setup_rum(self, app, state):
        rum_enabled = state.enabled and state.config["rum"]["enabled"] is True

        self.header = HeaderControl(state.client, rum_enabled)
        self.footer = FooterControl(state.client, rum_enabled)
        self.user = RUMUser(state.client, rum_enabled)

        app.jinja_env.globals.update(
            newrelic_header=self.header,
            newrelic_footer=self.footer,
            newrelic_user=self.user,
        )
