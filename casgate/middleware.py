"""
Middleware that decides which requests need authentication.

:class:`AuthenticationGate` wraps a WSGI application. On each request it
classifies the request path with three pattern sets, applied in this order
(the first one that matches wins):

- ``URI_EXCLUSION_FILTER_PATTERN``: never authenticate.
- ``URI_FILTER_PATTERN``: always authenticate.
- ``AUTHENTICATE_ONLY_IF_LOGGED_IN_FILTER_PATTERN``: authenticate only if the
  login cookie is present (see :mod:`.cookies`).

Requests that need authentication are handed to the configured
:class:`.authenticators.Authenticator`; everything else goes straight to the
application. Setting ``DISABLE_CAS`` lets every request through.

The path that is matched is the full request path, including the mount point
of the application (``SCRIPT_NAME``). ``CONTEXT_PATH`` is prepended to every
pattern, so patterns can be written relative to the mount point.
"""

import logging
from typing import Any, Callable, Iterable, Mapping, Optional

from werkzeug.wrappers import Request

from . import authenticators, cookies
from .authenticators import Authenticator, WSGIApp
from .config import as_bool
from .domain import GateDecision
from .exceptions import ConfigurationError
from .patterns import PatternSet
from .sessions import SessionStore

logger = logging.getLogger(__name__)

URI_FILTER_PATTERN = 'URI_FILTER_PATTERN'
URI_EXCLUSION_FILTER_PATTERN = 'URI_EXCLUSION_FILTER_PATTERN'
AUTHENTICATE_ONLY_IF_LOGGED_IN_FILTER_PATTERN = \
    'AUTHENTICATE_ONLY_IF_LOGGED_IN_FILTER_PATTERN'

DECISION_KEY = 'casgate.decision'


class AuthenticationGate(object):
    """
    Routes requests to an authenticator, based on the request path.

    All of the pattern sets and the authenticator are fixed when the gate is
    created, so a single gate can safely serve concurrent requests.
    """

    def __init__(self, app: WSGIApp,
                 authenticator: Optional[Authenticator] = None,
                 exclusion: Optional[PatternSet] = None,
                 inclusion: Optional[PatternSet] = None,
                 conditional_inclusion: Optional[PatternSet] = None,
                 cookie_name: Optional[str] = None,
                 disabled: bool = False) -> None:
        self.app = app
        self.authenticator = authenticator
        self.exclusion = exclusion or PatternSet()
        self.inclusion = inclusion or PatternSet()
        self.conditional_inclusion = conditional_inclusion or PatternSet()
        self.cookie_name = cookie_name or cookies.resolve_cookie_name()
        self.disabled = disabled
        if authenticator is None and not disabled:
            raise ConfigurationError('An authenticator is required')

    @classmethod
    def from_config(cls, app: WSGIApp, config: Mapping[str, Any],
                    store: Optional[SessionStore] = None) \
            -> 'AuthenticationGate':
        """
        Build a gate from application config.

        Raises
        ------
        :class:`.ConfigurationError`
            Raised if a pattern is invalid, or the authenticator is unknown or
            could not be initialized.

        """
        if as_bool(config.get('DISABLE_CAS', False)):
            logger.info('CAS is disabled.')
            return cls(app, disabled=True)

        context_path = config.get('CONTEXT_PATH') or ''
        logger.debug('Using context path %r', context_path)
        exclusion = PatternSet.compile(
            context_path, config.get(URI_EXCLUSION_FILTER_PATTERN)
        )
        inclusion = PatternSet.compile(
            context_path, config.get(URI_FILTER_PATTERN)
        )
        conditional = PatternSet.compile(
            context_path,
            config.get(AUTHENTICATE_ONLY_IF_LOGGED_IN_FILTER_PATTERN)
        )
        logger.debug('Excluded URI patterns: %r', exclusion)
        logger.debug('Included URI patterns: %r', inclusion)
        logger.debug('Authenticate only if logged in patterns: %r',
                     conditional)

        name = config.get('AUTHENTICATOR', 'cas')
        authenticator = authenticators.create(name, config, store=store)
        cookie_name = cookies.resolve_cookie_name(
            config.get(cookies.COOKIE_NAME_CONFIG)
        )
        return cls(app, authenticator, exclusion=exclusion,
                   inclusion=inclusion, conditional_inclusion=conditional,
                   cookie_name=cookie_name)

    def classify(self, path: str,
                 request: Optional[Request] = None) -> GateDecision:
        """
        Decide what to do with a request for ``path``.

        ``request`` is only consulted for the login cookie; if it is not
        provided, the user is treated as not logged in.
        """
        if self.disabled:
            return GateDecision.EXCLUDED
        if self.exclusion.matches(path):
            return GateDecision.EXCLUDED
        if self.inclusion.matches(path):
            return GateDecision.ALWAYS_AUTHENTICATE
        if self.conditional_inclusion.matches(path) \
                and request is not None \
                and cookies.is_user_logged_in(request, self.cookie_name):
            return GateDecision.AUTHENTICATE_IF_LOGGED_IN
        return GateDecision.NO_MATCH

    def __call__(self, environ: dict,
                 start_response: Callable) -> Iterable[bytes]:
        """Classify the request, and authenticate it if required."""
        if self.disabled:
            environ[DECISION_KEY] = GateDecision.EXCLUDED
            return self.app(environ, start_response)

        request = Request(environ)
        path = request.root_path + request.path
        decision = self.classify(path, request)
        environ[DECISION_KEY] = decision
        logger.debug('Request URI = %r', path)

        if decision is GateDecision.EXCLUDED:
            logger.debug('Ignoring URI because it matches %s',
                         URI_EXCLUSION_FILTER_PATTERN)
        elif decision is GateDecision.ALWAYS_AUTHENTICATE:
            logger.debug('Forwarding URI %r to authenticator because it'
                         ' matches %s', path, URI_FILTER_PATTERN)
        elif decision is GateDecision.AUTHENTICATE_IF_LOGGED_IN:
            logger.debug('Forwarding URI %r to authenticator because it'
                         ' matches %s and %s cookie exists', path,
                         AUTHENTICATE_ONLY_IF_LOGGED_IN_FILTER_PATTERN,
                         self.cookie_name)
        else:
            logger.debug('No action taken - no matching pattern found for %r',
                         path)

        if decision.authenticates:
            return self.authenticator.process(environ, start_response,
                                              self.app)
        return self.app(environ, start_response)
