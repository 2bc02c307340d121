"""
Per-session key/value storage.

The gate keeps very little server-side state: the service URL of the last
gateway attempt, and (optionally) a marker that the ticket validator has
authenticated the session. That state lives in a :class:`SessionStore`, keyed
by the value of the gate's session cookie.

Two implementations are provided. :class:`MemorySessionStore` keeps state in
the current process, which is fine for a single worker. Deployments with
several workers should use :class:`RedisSessionStore`, so that all of the
workers share the same view of each session.
"""

import time
import uuid
import logging
import threading
import weakref
from contextlib import contextmanager
from typing import Any, Dict, Generator, Mapping, MutableMapping, \
    Optional, Tuple

import redis
from redis.cluster import RedisCluster
from werkzeug.wrappers import Request

from .exceptions import ConfigurationError, SessionStoreUnavailable

logger = logging.getLogger(__name__)

DEFAULT_SESSION_COOKIE_NAME = 'CASGATE_SESSION'


def new_session_id() -> str:
    """Generate a new session identifier."""
    return str(uuid.uuid4())


def session_id_for(request: Request, cookie_name: str) -> Optional[str]:
    """Get the session ID carried by the request, if any."""
    return request.cookies.get(cookie_name) or None


class SessionStore(object):
    """Interface for session stores."""

    def get(self, session_id: str, key: str) -> Optional[str]:
        """Get the value of ``key`` for a session."""
        raise NotImplementedError('Must be implemented by a child class')

    def set(self, session_id: str, key: str, value: str) -> None:
        """Set the value of ``key`` for a session."""
        raise NotImplementedError('Must be implemented by a child class')

    def lock(self, session_id: str) -> Any:
        """Get a context manager that serializes access to one session."""
        raise NotImplementedError('Must be implemented by a child class')


class MemorySessionStore(SessionStore):
    """
    Keeps session data in a dict.

    Sessions expire ``duration`` seconds after they were last written.
    Expired sessions are purged at most once per ``sweep_interval`` seconds,
    whenever the store is used. Session locks are held weakly, so a lock
    disappears once no request is using it.
    """

    def __init__(self, duration: int = 7200,
                 sweep_interval: Optional[float] = None) -> None:
        self._duration = duration
        self._sweep_interval = min(duration, 60) if sweep_interval is None \
            else sweep_interval
        self._next_sweep = 0.0
        self._data: Dict[str, Tuple[float, Dict[str, str]]] = {}
        self._locks: MutableMapping[str, Any] = weakref.WeakValueDictionary()
        self._mutex = threading.Lock()

    def _purge(self, now: float) -> None:
        if now < self._next_sweep:
            return
        expired = [sid for sid, (expires, _) in self._data.items()
                   if expires <= now]
        for sid in expired:
            del self._data[sid]
        if expired:
            logger.debug('Purged %i expired sessions', len(expired))
        self._next_sweep = now + self._sweep_interval

    def get(self, session_id: str, key: str) -> Optional[str]:
        with self._mutex:
            now = time.monotonic()
            self._purge(now)
            entry = self._data.get(session_id)
            if entry is None:
                return None
            expires, values = entry
            if expires <= now:
                logger.debug('Session %s has expired', session_id)
                del self._data[session_id]
                return None
            return values.get(key)

    def set(self, session_id: str, key: str, value: str) -> None:
        with self._mutex:
            now = time.monotonic()
            self._purge(now)
            expires, values = self._data.get(session_id, (0.0, {}))
            if expires <= now:
                values = {}
            values[key] = value
            expires = now + self._duration
            self._data[session_id] = (expires, values)

    @contextmanager
    def lock(self, session_id: str) -> Generator[None, None, None]:
        with self._mutex:
            session_lock = self._locks.get(session_id)
            if session_lock is None:
                session_lock = threading.RLock()
                self._locks[session_id] = session_lock
        with session_lock:
            yield


class RedisSessionStore(SessionStore):
    """
    Manages a connection to Redis.

    Each session is a Redis hash; its TTL is reset every time it is written.
    The client instance is thread safe and connections are attached at the
    time a command is executed, so one store can be shared by all requests.
    """

    PREFIX = 'casgate:session:'

    def __init__(self, host: str, port: int, db: int, duration: int = 7200,
                 cluster: bool = False, lock_timeout: int = 10) -> None:
        """Open the connection to Redis."""
        logger.debug('New Redis connection at %s, port %s', host, port)
        if cluster:
            self.r = RedisCluster(host=host, port=port)
        else:
            self.r = redis.StrictRedis(host=host, port=port, db=db,
                                       decode_responses=True)
        self._duration = duration
        self._lock_timeout = lock_timeout

    def _key(self, session_id: str) -> str:
        return f'{self.PREFIX}{session_id}'

    def get(self, session_id: str, key: str) -> Optional[str]:
        try:
            value = self.r.hget(self._key(session_id), key)
        except redis.exceptions.ConnectionError as e:
            raise SessionStoreUnavailable(f'Connection failed: {e}') from e
        if isinstance(value, bytes):
            return value.decode('utf-8')
        return value

    def set(self, session_id: str, key: str, value: str) -> None:
        name = self._key(session_id)
        try:
            with self.r.pipeline() as pipe:
                pipe.hset(name, key, value)
                pipe.expire(name, self._duration)
                pipe.execute()
        except redis.exceptions.ConnectionError as e:
            raise SessionStoreUnavailable(f'Connection failed: {e}') from e

    @contextmanager
    def lock(self, session_id: str) -> Generator[None, None, None]:
        session_lock = self.r.lock(f'{self._key(session_id)}:lock',
                                   timeout=self._lock_timeout)
        try:
            acquired = session_lock.acquire()
        except redis.exceptions.ConnectionError as e:
            raise SessionStoreUnavailable(f'Connection failed: {e}') from e
        if not acquired:
            raise SessionStoreUnavailable(
                f'Could not lock session {session_id}'
            )
        try:
            yield
        finally:
            try:
                session_lock.release()
            except redis.exceptions.RedisError as e:
                # The lock expires after its timeout anyway.
                logger.warning('Could not release lock for session %s: %s',
                               session_id, e)


def init_app(config: Dict[str, Any]) -> None:
    """Set default configuration parameters for the session store."""
    config.setdefault('SESSION_STORE', 'memory')
    config.setdefault('SESSION_DURATION', '7200')
    config.setdefault('REDIS_HOST', 'localhost')
    config.setdefault('REDIS_PORT', '6379')
    config.setdefault('REDIS_DATABASE', '0')
    config.setdefault('REDIS_CLUSTER', '0')
    config.setdefault('CASGATE_SESSION_COOKIE_NAME',
                      DEFAULT_SESSION_COOKIE_NAME)


def _as_int(config: Mapping[str, Any], key: str, default: str) -> int:
    value = config.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f'{key} must be an integer: {value!r}') \
            from e


def get_session_store(config: Mapping[str, Any]) -> SessionStore:
    """
    Get a new session store, as described by ``config``.

    Raises
    ------
    :class:`.ConfigurationError`
        Raised if the store kind is unknown, or a numeric setting is not a
        number.

    """
    kind = str(config.get('SESSION_STORE', 'memory')).lower()
    duration = _as_int(config, 'SESSION_DURATION', '7200')
    if kind == 'memory':
        return MemorySessionStore(duration)
    if kind == 'redis':
        host = config.get('REDIS_HOST', 'localhost')
        port = _as_int(config, 'REDIS_PORT', '6379')
        db = _as_int(config, 'REDIS_DATABASE', '0')
        cluster = str(config.get('REDIS_CLUSTER', '0')) == '1'
        return RedisSessionStore(host, port, db, duration, cluster=cluster)
    raise ConfigurationError(f'Unknown session store: {kind}')
