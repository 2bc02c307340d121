"""
Helpers for getting at the attributes of the authenticated user.

The ticket validator (not part of this package) puts a
:class:`.domain.Principal` in the WSGI environ under :const:`PRINCIPAL_KEY`
once it has validated a ticket. CAS returns user attributes alongside the
principal name; the ones used here are ``userid``, ``email``, ``firstname``,
``lastname`` and ``authority`` (a comma-separated list of roles).

A validator that keeps the login in the session store instead should record
it under :const:`ASSERTION_KEY`, for the session ID that the gate puts in the
environ under :const:`SESSION_ID_KEY`. That ID is set on every request that
reaches the validator through the gate, including the one carrying the
ticket.
"""

import logging
from typing import Any, Optional

from werkzeug.wrappers import Request

from . import cookies
from .domain import Principal
from .sessions import SessionStore

logger = logging.getLogger(__name__)

PRINCIPAL_KEY = 'casgate.principal'
SESSION_ID_KEY = 'casgate.session_id'
ASSERTION_KEY = '_const_cas_assertion_'

ATTR_USER_ID = 'userid'
ATTR_EMAIL_ADDRESS = 'email'
ATTR_FIRST_NAME = 'firstname'
ATTR_LAST_NAME = 'lastname'
ATTR_ROLES = 'authority'


def get_principal(environ: Optional[dict]) -> Optional[Principal]:
    """Get the authenticated :class:`.Principal`, if there is one."""
    if environ is None:
        return None
    principal = environ.get(PRINCIPAL_KEY)
    if isinstance(principal, Principal):
        return principal
    return None


def get_attribute(environ: Optional[dict], key: str) -> Optional[str]:
    """Get the string value of a principal attribute."""
    principal = get_principal(environ)
    if principal is None:
        logger.debug('No principal (looking for attribute %s)', key)
        return None
    value = principal.attributes.get(key)
    logger.debug('get_attribute(%s) = %s', key, value)
    return None if value is None else str(value)


def get_user_id(environ: Optional[dict]) -> Optional[str]:
    """Get the numeric user ID of the authenticated user."""
    return get_attribute(environ, ATTR_USER_ID)


def get_email_address(environ: Optional[dict],
                      cookie_name: Optional[str] = None) -> Optional[str]:
    """
    Get the email address of the authenticated user.

    Falls back to the value of the login cookie, which holds the email
    address that the user logged in with.
    """
    email = get_attribute(environ, ATTR_EMAIL_ADDRESS)
    if email is None and environ is not None:
        logger.debug('No email on principal; looking in login cookie')
        name = cookie_name or cookies.resolve_cookie_name()
        email = cookies.get_cookie_value(Request(environ), name)
    return email


def get_display_name(environ: Optional[dict]) -> Optional[str]:
    """Get a name suitable for display, or ``None`` if not authenticated."""
    first = (get_attribute(environ, ATTR_FIRST_NAME) or '').strip()
    last = (get_attribute(environ, ATTR_LAST_NAME) or '').strip()
    if first and last:
        return f'{first} {last}'
    return first or last or None


def _roles_equal(given: str, candidate: Any, ignore_case: bool) -> bool:
    if ignore_case:
        return given.lower() == str(candidate).lower()
    return given == candidate


def is_user_in_role(environ: Optional[dict], role: str,
                    attribute: str = ATTR_ROLES,
                    ignore_case: bool = True) -> bool:
    """
    Check whether the authenticated user has ``role``.

    The role attribute may be a list of roles, or a string with roles
    separated by commas.
    """
    if not role or not role.strip():
        return False
    principal = get_principal(environ)
    if principal is None:
        logger.debug('No principal in request; not in role %s', role)
        return False
    value = principal.attributes.get(attribute)
    if isinstance(value, str):
        candidates = [v.strip() for v in value.split(',') if v.strip()]
    elif isinstance(value, (list, tuple, set, frozenset)):
        candidates = list(value)
    else:
        candidates = [] if value is None else [value]
    member = any(_roles_equal(role, c, ignore_case) for c in candidates)
    logger.debug('User %s is in role %s: %s', principal.name, role, member)
    return member


def is_user_logged_in(environ: Optional[dict],
                      store: Optional[SessionStore] = None,
                      session_id: Optional[str] = None) -> bool:
    """
    Check whether the current request is authenticated.

    This is the case if the validator attached a principal to the request, or
    marked the session as authenticated in the session store.
    """
    if get_principal(environ) is not None:
        return True
    if store is None or not session_id:
        return False
    return store.get(session_id, ASSERTION_KEY) is not None
