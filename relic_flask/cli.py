"""
Background transactions for Flask CLI commands.

    @app.cli.command("import-feed")
    @monitored
    def import_feed():
        ...

The command is reported as a background job named after the command line,
for example ``$ flask import-feed --all``.
"""

import functools
import os
import sys

from flask import current_app

from relic_flask.extension import EXTENSION_KEY


def command_name(argv):
    return " ".join(["$", os.path.basename(argv[0])] + list(argv[1:]))


def monitored(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        state = current_app.extensions.get(EXTENSION_KEY)
        if state is None or not state.enabled or state.default_app_name is None:
            return func(*args, **kwargs)

        with state.client.background_task(state.default_app_name, command_name(sys.argv)):
            return func(*args, **kwargs)

    return wrapper
