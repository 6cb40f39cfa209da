"""Short-lived in-process cache for public GET responses.

One ``ResponseCache`` lives in ``app.extensions['response_cache']`` per
application. Entries are keyed by request path plus query string and expire
after their TTL; content writes drop every key under the affected path.
"""
import threading
import time
from functools import wraps

from flask import current_app, request, make_response


class ResponseCache:
    def __init__(self, default_ttl: int = 60, clock=time.monotonic, max_entries: int = 1024):
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key, value, ttl: int = None):
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._make_room(now)
            self._entries[key] = (value, now + ttl)

    def _make_room(self, now):
        # Caller holds the lock
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]
        if len(self._entries) >= self.max_entries:
            soonest = min(self._entries, key=lambda k: self._entries[k][1])
            del self._entries[soonest]

    def clear(self, prefix: str = None) -> int:
        """Drop every key starting with ``prefix`` (all keys when None). Returns the count."""
        with self._lock:
            if prefix is None:
                count = len(self._entries)
                self._entries.clear()
                return count
            stale = [key for key in self._entries if key.startswith(prefix)]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def __len__(self):
        return len(self._entries)


def init_response_cache(app) -> ResponseCache:
    cache = ResponseCache(
        default_ttl=app.config.get('CACHE_TTL_SECONDS', 60),
        max_entries=app.config.get('CACHE_MAX_ENTRIES', 1024),
    )
    app.extensions['response_cache'] = cache
    return cache


def get_response_cache() -> ResponseCache:
    return current_app.extensions['response_cache']


def clear_cache(*prefixes: str):
    cache = get_response_cache()
    for prefix in prefixes:
        cache.clear(prefix)


def _request_key() -> str:
    query = request.query_string.decode('utf-8', 'replace')
    return f"{request.path}?{query}" if query else request.path


def cached_response(ttl: int = None):
    """Cache successful JSON responses of a GET view for ``ttl`` seconds."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            cache = get_response_cache()
            key = _request_key()
            body = cache.get(key)
            if body is not None:
                response = current_app.response_class(body, status=200, mimetype='application/json')
                response.headers['X-Cache'] = 'HIT'
                return response

            response = make_response(fn(*args, **kwargs))
            if response.status_code == 200:
                cache.set(key, response.get_data(), ttl)
            response.headers['X-Cache'] = 'MISS'
            return response
        return wrapper
    return decorator
