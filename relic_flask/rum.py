"""
Real-user monitoring helpers for templates.

With ``rum.enabled: true`` the agent's automatic beacon injection is turned
off and templates place the markup themselves:

    <head>{{ newrelic_header() }}</head>
    <body>... {{ newrelic_footer() }}</body>

When RUM is disabled, or the integration is off, the helpers render nothing.
"""

from markupsafe import Markup


class HeaderControl:

    def __init__(self, client, enabled):
        self.client = client
        self.enabled = enabled

    def __call__(self):
        if not self.enabled:
            return Markup("")
        return Markup(self.client.browser_header())


class FooterControl:

    def __init__(self, client, enabled):
        self.client = client
        self.enabled = enabled

    def __call__(self):
        if not self.enabled:
            return Markup("")
        return Markup(self.client.browser_footer())


class RUMUser:
    """Attach the current user to the browser and server side data."""

    def __init__(self, client, enabled):
        self.client = client
        self.enabled = enabled

    def __call__(self, user, account=None, product=None):
        if self.enabled:
            self.client.set_user(user, account, product)
        return Markup("")
