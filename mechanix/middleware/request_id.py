"""
Request id propagation for log correlation
"""
import uuid


class RequestIdMiddleware:
    """
    Tags every request with an id (the caller's ``X-Request-ID`` or a fresh
    uuid), stores it in ``environ['request_id']`` for the logging filter and
    echoes it back on the response.
    """

    header = 'X-Request-ID'

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        request_id = environ.get('HTTP_X_REQUEST_ID') or str(uuid.uuid4())
        environ['request_id'] = request_id

        def start_response_with_id(status, headers, exc_info=None):
            headers.append((self.header, request_id))
            return start_response(status, headers, exc_info)

        return self.app(environ, start_response_with_id)
