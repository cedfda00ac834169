"""
Logging setup shared by the application factory.
"""
import logging

from flask import has_request_context, request

LOG_FORMAT = '%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s'


class RequestIdFilter(logging.Filter):
    """Attach the current request id (set by RequestIdMiddleware) to every record."""

    def filter(self, record):
        request_id = '-'
        if has_request_context():
            request_id = request.environ.get('request_id', '-')
        record.request_id = request_id
        return True


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger('mechanix')
    # create_app() may run more than once per process (tests)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
