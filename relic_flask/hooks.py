"""
Request lifecycle hooks.

``RequestObserver`` is subscribed to Flask's ``request_started`` signal and
``ErrorObserver`` to ``got_request_exception``. Both only talk to the
monitoring client they are given.
"""

from flask import got_request_exception, request, request_started
from werkzeug.exceptions import HTTPException

from relic_flask.errors import mark_reported
from relic_flask.resolver import SEPARATOR, resolve, route_name

ENVIRON_KEY = "relic_flask.application"


def presenter_name(endpoint):
    """Flask endpoint as a presenter name, blueprints joined by ``:``."""
    return endpoint.replace(".", SEPARATOR)


def request_params(req):
    params = dict(req.args.items())
    params.update(req.view_args or {})
    return params


def request_route_name(req, action_key):
    """Route name of a Flask request, or None when no rule matched."""
    if req.endpoint is None:
        return None
    return route_name(presenter_name(req.endpoint), request_params(req), action_key)


class RequestObserver:
    """Names the transaction of every routed request."""

    def __init__(self, client, app_map, default_app_name=None, action_key="action", custom_parameters=None,
                 capture_params=False, ignored_params=()):
        self.client = client
        self.app_map = app_map
        self.default_app_name = default_app_name
        self.action_key = action_key
        self.custom_parameters = dict(custom_parameters or {})
        self.capture_params = capture_params
        self.ignored_params = frozenset(ignored_params)

    def application(self, environ, route):
        """Application chosen for this request, resolving only if nobody did yet."""
        if ENVIRON_KEY not in environ:
            environ[ENVIRON_KEY] = resolve(route, self.app_map) or self.default_app_name
        return environ[ENVIRON_KEY]

    def __call__(self, sender, **extra):
        route = request_route_name(request, self.action_key)
        if route is None:
            return

        application = self.application(request.environ, route)
        if application is not None:
            self.client.add_custom_attribute("application", application)

        self.client.name_transaction(route)
        # RUM markup is rendered by the template helpers.
        self.client.disable_autorum()

        for name, value in self.custom_parameters.items():
            self.client.add_custom_attribute(name, value)

        if self.capture_params:
            for name, value in request_params(request).items():
                if name not in self.ignored_params:
                    self.client.add_custom_attribute("request.parameters.%s" % name, value)

    def register(self, app):
        request_started.connect(self, app, weak=False)


class ErrorObserver:
    """Reports unhandled exceptions to the error collector."""

    def __init__(self, client):
        self.client = client

    def __call__(self, sender, exception=None, **extra):
        if exception is None:
            return
        if isinstance(exception, HTTPException) and (exception.code or 500) < 500:
            return
        self.client.notice_error((type(exception), exception, exception.__traceback__))
        # Flask logs the same exception right after this signal.
        mark_reported(exception)

    def register(self, app):
        got_request_exception.connect(self, app, weak=False)
