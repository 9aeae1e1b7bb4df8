"""
Forwarding of log records to the agent error collector.
"""

import logging

from relic_flask.errors import LoggedMessage, is_reported

LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


class MonitoringLogHandler(logging.Handler):
    """
    Report log records to the monitoring client.

    Only records whose level is listed in ``levels`` are reported. The
    pseudo level ``"exception"`` selects records logged with exception
    info, such as those from ``logger.exception()``.
    """

    def __init__(self, client, levels):
        super().__init__(level=logging.NOTSET)
        self.client = client
        self.levels = frozenset(levels)
        self._numeric = frozenset(LEVELS[name] for name in self.levels if name in LEVELS)

    def wants(self, record):
        if record.exc_info and is_reported(record.exc_info[1]):
            return False
        if record.exc_info and "exception" in self.levels:
            return True
        return record.levelno in self._numeric

    def emit(self, record):
        if not self.wants(record):
            return

        try:
            if record.exc_info and record.exc_info[1] is not None:
                exc_info = record.exc_info
            else:
                message = LoggedMessage(self.format(record))
                exc_info = (LoggedMessage, message, None)

            self.client.notice_error(exc_info, attributes={
                "logger": record.name,
                "level": record.levelname,
            })
        except Exception:
            self.handleError(record)


def install(client, levels, logger_names=(None,)):
    """Attach a handler for ``levels`` to each named logger and return it.

    A handler left by an earlier call is replaced, so each record is
    reported once per process.
    """
    handler = MonitoringLogHandler(client, levels)
    for logger_name in logger_names:
        target = logging.getLogger(logger_name)
        for existing in [h for h in target.handlers if isinstance(h, MonitoringLogHandler)]:
            target.removeHandler(existing)
        target.addHandler(handler)
    return handler
