"""
Helpers for reading cookies from a request.

The presence of the login cookie (``ALA-Auth`` by default) indicates that the
user has logged in to the central authentication server at some point. It is
set by the authentication server, not by this package.
"""

import os
import logging
from typing import Mapping, Optional, Tuple

from werkzeug.wrappers import Request

logger = logging.getLogger(__name__)

DEFAULT_COOKIE_NAME = 'ALA-Auth'
COOKIE_NAME_ENV = 'ALA_AUTH_COOKIE_NAME'
COOKIE_NAME_CONFIG = 'ALA_AUTH_COOKIE_NAME'


def _first_not_blank(*values: Optional[str]) -> str:
    for value in values:
        if value is not None and value.strip():
            return value
    return ''


def resolve_cookie_name(explicit: Optional[str] = None,
                        environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Determine the name of the login cookie.

    The first non-blank value wins, in this order: ``explicit`` (usually from
    application config), the ``ALA_AUTH_COOKIE_NAME`` environment variable,
    then :const:`DEFAULT_COOKIE_NAME`.
    """
    if environ is None:
        environ = os.environ
    return _first_not_blank(explicit, environ.get(COOKIE_NAME_ENV),
                            DEFAULT_COOKIE_NAME)


def get_cookie(request: Optional[Request],
               name: str) -> Optional[Tuple[str, str]]:
    """Get the cookie ``name`` as a ``(name, value)`` pair."""
    if request is None:
        logger.warning('get_cookie(): request is None!')
        return None
    value = request.cookies.get(name)
    if value is None:
        logger.debug('Cookie %s not found', name)
        return None
    logger.debug('Cookie %s found', name)
    return name, value


def get_cookie_value(request: Optional[Request], name: str) -> Optional[str]:
    """Get the value of the cookie ``name``, or ``None`` if not present."""
    cookie = get_cookie(request, name)
    return None if cookie is None else cookie[1]


def cookie_exists(request: Optional[Request], name: str) -> bool:
    """Check whether the cookie ``name`` was sent with the request."""
    return get_cookie_value(request, name) is not None


def is_user_logged_in(request: Optional[Request], name: str) -> bool:
    """Check for the login cookie ``name`` on the request."""
    return cookie_exists(request, name)
