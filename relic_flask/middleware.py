"""
WSGI middleware that picks the monitored application from the route.

The agent binds a transaction to its application when the transaction
starts, so the application name has to be known before the instrumented
WSGI app runs. The middleware matches the request against the Flask URL
map itself, resolves the application and then delegates to an app wrapped
for that name.
"""

import logging
import threading

from werkzeug.exceptions import HTTPException

from relic_flask.hooks import ENVIRON_KEY, presenter_name
from relic_flask.resolver import resolve, route_name

logger = logging.getLogger(__name__)


class RouteAwareMiddleware:
    """
    Custom WSGI middleware that sets the application name based on the route.
    """

    def __init__(self, flask_app, wsgi_app, client, app_map, default_app_name, license=None, action_key="action"):
        self.flask_app = flask_app
        self.app = wsgi_app
        self.client = client
        self.app_map = app_map
        self.default_app_name = default_app_name
        self.license = license
        self.action_key = action_key
        self._wsgi_middlewares = {}
        self._lock = threading.Lock()

    def _get_middleware_for_app(self, app_name):
        """Get or create the instrumented WSGI app for a specific application."""
        middleware = self._wsgi_middlewares.get(app_name)
        if middleware is None:
            with self._lock:
                middleware = self._wsgi_middlewares.get(app_name)
                if middleware is None:
                    logger.debug("Instrumenting WSGI app for application %s", app_name)
                    middleware = self.client.wrap_wsgi(self.app, app_name, self.license)
                    self._wsgi_middlewares[app_name] = middleware
        return middleware

    def route_for(self, environ):
        """Route name of the request in ``environ``, or None when nothing matches."""
        req = self.flask_app.request_class(environ)
        adapter = self.flask_app.create_url_adapter(req)
        if adapter is None:
            return None
        try:
            endpoint, view_args = adapter.match()
        except HTTPException:
            return None

        params = dict(req.args.items())
        params.update(view_args)
        return route_name(presenter_name(endpoint), params, self.action_key)

    def __call__(self, environ, start_response):
        app_name = None
        if self.app_map:
            route = self.route_for(environ)
            if route is not None:
                app_name = resolve(route, self.app_map)
        app_name = app_name or self.default_app_name

        environ[ENVIRON_KEY] = app_name
        if app_name is None:
            return self.app(environ, start_response)

        return self._get_middleware_for_app(app_name)(environ, start_response)
