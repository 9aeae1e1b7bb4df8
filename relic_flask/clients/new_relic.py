"""
New Relic agent client.

Thin mapping of ``MonitoringClient`` operations onto ``newrelic.agent``.
The agent itself is configured and started by ``newrelic-admin`` or
``newrelic.agent.initialize()``; this client only adjusts it.
"""

import logging

try:
    import newrelic.agent
    NEWRELIC_AVAILABLE = True
except ImportError:
    newrelic = None
    NEWRELIC_AVAILABLE = False

from relic_flask.clients import MonitoringClient, split_path

logger = logging.getLogger(__name__)

TRANSACTION_GROUP = "Flask"


class NewRelicClient(MonitoringClient):

    def __init__(self):
        self._registered = set()

    def is_loaded(self):
        return NEWRELIC_AVAILABLE

    def is_enabled(self):
        return bool(newrelic.agent.global_settings().monitor_mode)

    def setup(self, app_name, license=None):
        settings = newrelic.agent.global_settings()
        settings.app_name = app_name
        if license:
            settings.license_key = license
        self._register(app_name)

    def _register(self, app_name):
        if app_name in self._registered:
            return
        logger.debug("Registering New Relic application %s", app_name)
        newrelic.agent.register_application(name=app_name)
        self._registered.add(app_name)

    def wrap_wsgi(self, wsgi_app, app_name, license=None):
        # The agent holds a single license key per process.
        self._register(app_name)
        return newrelic.agent.WSGIApplicationWrapper(
            wsgi_app,
            application=newrelic.agent.application(app_name),
            framework=TRANSACTION_GROUP,
        )

    def name_transaction(self, name):
        newrelic.agent.set_transaction_name(name, group=TRANSACTION_GROUP)

    def disable_autorum(self):
        newrelic.agent.disable_browser_autorum()

    def set_option(self, name, value):
        target = newrelic.agent.global_settings()
        *parents, leaf = name.split(".")
        for parent in parents:
            target = getattr(target, parent, None)
        if target is None or not hasattr(target, leaf):
            logger.warning("New Relic agent has no setting %s, option ignored", name)
            return

        current = getattr(target, leaf)
        if isinstance(current, (set, frozenset)):
            # Keep entries from newrelic.ini.
            value = set(current) | set(value)
        setattr(target, leaf, value)

    def add_custom_attribute(self, name, value):
        newrelic.agent.add_custom_attribute(name, value)

    def add_tracer(self, path):
        module, object_path = split_path(path)
        newrelic.agent.wrap_function_trace(module, object_path)

    def notice_error(self, exc_info, attributes=None):
        newrelic.agent.notice_error(error=exc_info, attributes=attributes)

    def background_task(self, app_name, name):
        return newrelic.agent.BackgroundTask(
            newrelic.agent.application(app_name),
            name=name,
            group=TRANSACTION_GROUP,
        )

    def browser_header(self):
        return newrelic.agent.get_browser_timing_header()

    def browser_footer(self):
        # Current agents emit the whole browser loader from the header.
        return ""

    def set_user(self, user, account=None, product=None):
        newrelic.agent.set_user_id(str(user))
        if account is not None:
            newrelic.agent.add_custom_attribute("account", account)
        if product is not None:
            newrelic.agent.add_custom_attribute("product", product)
