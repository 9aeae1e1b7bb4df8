"""Exceptions raised by relic_flask."""


class ConfigurationError(RuntimeError):
    """Raised from ``init_app`` when the monitoring configuration is unusable."""


class LoggedMessage(Exception):
    """Carrier for log records that have no exception attached.

    The agent error collector only accepts exception info, so plain log
    messages are wrapped in this type before they are reported.
    """


REPORTED_ATTR = "_relic_flask_reported"


def mark_reported(exc):
    """Flag ``exc`` as already sent to the error collector."""
    try:
        setattr(exc, REPORTED_ATTR, True)
    except AttributeError:
        pass


def is_reported(exc):
    return getattr(exc, REPORTED_ATTR, False)
