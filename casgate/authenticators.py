"""
Authenticators that the gate delegates to.

The gate only decides *whether* a request needs authentication. What happens
next is up to an :class:`Authenticator`, selected by name in the application
config (``AUTHENTICATOR``). Implementations are registered with
:func:`register`; :func:`create` looks them up and initializes them, and fails
fast if the name is unknown or the authenticator rejects its configuration.

Here's how you might add your own:

.. code-block:: python

   from werkzeug.exceptions import Forbidden
   from casgate import authenticators


   @authenticators.register('deny')
   class DenyAuthenticator(authenticators.Authenticator):
       def process(self, environ, start_response, app):
           return Forbidden()(environ, start_response)

"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, \
    Tuple, Type
from urllib.parse import urlencode, urlsplit, urlunsplit

from werkzeug.http import dump_cookie
from werkzeug.utils import redirect
from werkzeug.wrappers import Request

from .config import as_bool
from .exceptions import ConfigurationError
from .gateway import GatewayStateTracker
from .principal import ASSERTION_KEY, PRINCIPAL_KEY, SESSION_ID_KEY
from .sessions import SessionStore, MemorySessionStore, new_session_id, \
    session_id_for, DEFAULT_SESSION_COOKIE_NAME

logger = logging.getLogger(__name__)

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]

_registry: Dict[str, Type['Authenticator']] = {}


class Authenticator(object):
    """Base class for authenticators."""

    def __init__(self, store: Optional[SessionStore] = None) -> None:
        self.store = store if store is not None else MemorySessionStore()

    def init(self, config: Mapping[str, Any]) -> None:
        """Configure the authenticator. Called once, at startup."""

    def process(self, environ: dict, start_response: Callable,
                app: WSGIApp) -> Iterable[bytes]:
        """Handle a request that requires authentication."""
        raise NotImplementedError('Must be implemented by a child class')


def register(name: str) -> Callable[[Type[Authenticator]],
                                    Type[Authenticator]]:
    """Register an :class:`.Authenticator` class under ``name``."""
    def decorator(cls: Type[Authenticator]) -> Type[Authenticator]:
        _registry[name] = cls
        return cls
    return decorator


def available() -> List[str]:
    """Get the names of all registered authenticators."""
    return sorted(_registry)


def create(name: str, config: Mapping[str, Any],
           store: Optional[SessionStore] = None) -> Authenticator:
    """
    Instantiate and initialize the authenticator registered as ``name``.

    Raises
    ------
    :class:`.ConfigurationError`
        Raised if no authenticator is registered as ``name``, or if the
        authenticator could not be initialized.

    """
    try:
        cls = _registry[name]
    except KeyError as e:
        raise ConfigurationError(
            f'Unknown authenticator {name!r}; expected one of {available()}'
        ) from e
    authenticator = cls(store)
    try:
        authenticator.init(config)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error('Could not initialize authenticator %s: %s', name, e)
        raise ConfigurationError(
            f'Could not initialize authenticator {name!r}: {e}'
        ) from e
    logger.info('Using authenticator %s', name)
    return authenticator


@register('passthrough')
class PassthroughAuthenticator(Authenticator):
    """Lets every request through. Useful in development."""

    def process(self, environ: dict, start_response: Callable,
                app: WSGIApp) -> Iterable[bytes]:
        return app(environ, start_response)


@register('cas')
class CASAuthenticator(Authenticator):
    """
    Redirects unauthenticated requests to the CAS login page.

    Requests that carry a ``ticket`` parameter are let through, so that a
    ticket validator further down the stack can handle them. In gateway mode,
    the first request for a service URL is redirected with ``gateway=true``;
    if the user comes back without a ticket, subsequent requests for that URL
    are let through anonymously.

    A session is started (and its cookie set) the first time a request needs
    authentication. Its ID is passed downstream in the environ under
    :const:`.principal.SESSION_ID_KEY`, so that the validator can mark the
    session as authenticated.
    """

    def init(self, config: Mapping[str, Any]) -> None:
        self.login_url = config.get('CAS_SERVER_LOGIN_URL')
        if not self.login_url:
            raise ConfigurationError('CAS_SERVER_LOGIN_URL must be set')
        self.gateway = as_bool(config.get('CAS_GATEWAY', False))
        self.renew = as_bool(config.get('CAS_RENEW', False))
        self.service = config.get('CAS_SERVICE') or None
        self.server_name = config.get('CAS_SERVER_NAME') or None
        self.session_cookie_name = config.get('CASGATE_SESSION_COOKIE_NAME',
                                              DEFAULT_SESSION_COOKIE_NAME)
        self.tracker = GatewayStateTracker(self.store)
        logger.info('CAS login at %s (gateway: %s, renew: %s)',
                    self.login_url, self.gateway, self.renew)

    def is_authenticated(self, environ: dict,
                         session_id: Optional[str]) -> bool:
        """Check whether the ticket validator already accepted this user."""
        if environ.get(PRINCIPAL_KEY) is not None:
            return True
        if environ.get('REMOTE_USER'):
            return True
        if session_id is None:
            return False
        return self.store.get(session_id, ASSERTION_KEY) is not None

    def construct_service_url(self, request: Request) -> str:
        """Build the URL that CAS should send the user back to."""
        if self.service:
            return self.service
        scheme, netloc, path, _, _ = urlsplit(request.base_url)
        if self.server_name:
            if '://' in self.server_name:
                scheme, netloc = urlsplit(self.server_name)[:2]
            else:
                netloc = self.server_name
        params: List[Tuple[str, str]] = [
            (key, value) for key, value in request.args.items(multi=True)
            if key != 'ticket'
        ]
        return urlunsplit((scheme, netloc, path, urlencode(params), ''))

    def construct_redirect_url(self, service_url: str) -> str:
        """Build the CAS login URL for ``service_url``."""
        params = [('service', service_url)]
        if self.renew:
            params.append(('renew', 'true'))
        if self.gateway:
            params.append(('gateway', 'true'))
        separator = '&' if '?' in self.login_url else '?'
        return f'{self.login_url}{separator}{urlencode(params)}'

    def _with_session_cookie(self, start_response: Callable,
                             session_id: str) -> Callable:
        """Add the session cookie to the response of the wrapped app."""
        cookie = dump_cookie(self.session_cookie_name, session_id,
                             httponly=True, samesite='Lax')

        def _start_response(status: str, headers: List[Tuple[str, str]],
                            exc_info: Any = None) -> Callable:
            headers = list(headers) + [('Set-Cookie', cookie)]
            return start_response(status, headers, exc_info)
        return _start_response

    def process(self, environ: dict, start_response: Callable,
                app: WSGIApp) -> Iterable[bytes]:
        request = Request(environ)
        session_id = session_id_for(request, self.session_cookie_name)
        if session_id is not None:
            environ[SESSION_ID_KEY] = session_id
        if self.is_authenticated(environ, session_id):
            return app(environ, start_response)

        # The validator needs a session to record the login against, so one
        # is started before the user is sent to CAS or comes back from it.
        new_session = session_id is None
        if new_session:
            session_id = new_session_id()
            environ[SESSION_ID_KEY] = session_id

        if request.args.get('ticket'):
            logger.debug('Request carries a ticket; not redirecting')
            if new_session:
                start_response = self._with_session_cookie(start_response,
                                                           session_id)
            return app(environ, start_response)

        service_url = self.construct_service_url(request)
        if self.gateway:
            with self.tracker.locked(session_id):
                attempted = self.tracker.has_attempted(session_id,
                                                       service_url)
                if not attempted:
                    service_url = self.tracker.record_attempt(
                        request, session_id, service_url
                    )
            if attempted:
                logger.debug('Already gatewayed %s; continuing', service_url)
                return app(environ, start_response)

        target = self.construct_redirect_url(service_url)
        logger.debug('Redirecting to %s', target)
        response = redirect(target)
        if new_session:
            response.set_cookie(self.session_cookie_name, session_id,
                                httponly=True, samesite='Lax')
        return response(environ, start_response)
