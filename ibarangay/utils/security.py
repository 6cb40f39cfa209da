"""Error payloads, client addressing and hardening headers for the barangay API.

Every handler answers failures with the same JSON body::

    {"error": "<message for the resident or staff member>", "code": "<OPTIONAL_CODE>"}

Exception text never reaches the client outside of debug mode; it is written
to the application log instead.
"""
import logging
from typing import Optional

from flask import current_app, has_app_context, has_request_context, jsonify, request

log = logging.getLogger(__name__)

# status -> (fallback message, log level, fallback code)
_STATUS_DEFAULTS = {
    400: ('Bad request', 'warning', None),
    401: ('Unauthorized', 'warning', None),
    403: ('Forbidden', 'warning', None),
    404: ('Not found', 'info', None),
    409: ('Conflict', 'warning', None),
    429: ('Too many requests', 'warning', 'RATE_LIMITED'),
    500: ('Internal server error', 'error', None),
}


def _debug_enabled() -> bool:
    return has_app_context() and bool(current_app.config.get('DEBUG'))


def _logger():
    return current_app.logger if has_app_context() else log


class APIError(Exception):
    """Raised from deep inside a handler to abort with a client-safe message."""

    def __init__(self, message: str, code: str = None, status_code: int = 500, details: str = None):
        super().__init__(message)
        self.message = message
        self.code = code or 'ERROR'
        self.status_code = status_code
        self.details = details

    def to_response(self):
        body = {'error': self.message, 'code': self.code}
        if self.details and _debug_enabled():
            body['details'] = self.details
        return jsonify(body), self.status_code


def safe_error_response(
    message: str,
    exception: Optional[Exception] = None,
    status_code: int = 500,
    code: str = None,
    log_level: str = 'error'
) -> tuple:
    """Log ``exception`` server-side and return ``(response, status_code)``."""
    body = {'error': message}
    if code:
        body['code'] = code

    line = message if exception is None else f"{message}: {type(exception).__name__}: {exception}"
    getattr(_logger(), log_level, _logger().error)(line)

    if exception is not None and _debug_enabled():
        body['details'] = str(exception)
        body['exception_type'] = type(exception).__name__

    return jsonify(body), status_code


def _error_for(status_code: int):
    fallback, level, fallback_code = _STATUS_DEFAULTS[status_code]

    def respond(message: str = fallback, exception: Exception = None, code: str = None):
        return safe_error_response(message, exception, status_code, code or fallback_code, level)

    respond.__name__ = f'error_{status_code}'
    respond.__doc__ = f'{fallback} ({status_code}).'
    return respond


error_400 = _error_for(400)
error_401 = _error_for(401)
error_403 = _error_for(403)
error_404 = _error_for(404)
error_409 = _error_for(409)
error_429 = _error_for(429)
error_500 = _error_for(500)


def get_client_ip() -> Optional[str]:
    """Resident's address as seen by the reverse proxy, for the audit trail."""
    if not has_request_context():
        return None
    for header in ('X-Forwarded-For', 'X-Real-IP'):
        value = request.headers.get(header)
        if value:
            # First hop is the original client
            return value.split(',')[0].strip()
    return request.remote_addr


SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
    'Cross-Origin-Resource-Policy': 'same-site',
}


def apply_security_headers(response):
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response
