"""
Tracks silent authentication ("gateway") attempts.

In gateway mode the user is redirected to the authentication server with
``gateway=true``. If the user already has an SSO session they come back
authenticated; otherwise they come back without a ticket, and must be allowed
through anonymously rather than being redirected again. To tell these cases
apart we remember, per session, the service URL of the last gateway attempt.

AJAX requests are a special case. The browser will not transparently follow a
cross-origin redirect for a programmatic request, so a gateway attempt made
from one never completes. If it were recorded, the next real navigation to the
same URL would skip the SSO check it needed. So attempts that originate from
AJAX requests are not recorded.
"""

import logging
from typing import Any, Optional

from werkzeug.wrappers import Request

from .domain import RequestOrigin
from .sessions import SessionStore

logger = logging.getLogger(__name__)

GATEWAY_KEY = '_const_cas_gateway_'
AJAX_HEADER = 'X-Requested-With'
AJAX_HEADER_VALUE = 'XMLHttpRequest'


def request_origin(request: Request) -> RequestOrigin:
    """
    Guess whether ``request`` was made by a script.

    jQuery and several other client libraries set ``X-Requested-With:
    XMLHttpRequest`` on programmatic requests. This is a convention, not a
    guarantee: clients may omit the header, and nothing stops a browser
    navigation from carrying it.
    """
    if request.headers.get(AJAX_HEADER) == AJAX_HEADER_VALUE:
        return RequestOrigin.AJAX
    return RequestOrigin.STANDARD


class GatewayStateTracker(object):
    """Records gateway attempts in a :class:`.SessionStore`."""

    def __init__(self, store: SessionStore) -> None:
        self.store = store

    def has_attempted(self, session_id: Optional[str],
                      service_url: str) -> bool:
        """Check whether a gateway attempt was recorded for ``service_url``."""
        if not session_id:
            return False
        return self.store.get(session_id, GATEWAY_KEY) == service_url

    def record_attempt(self, request: Request, session_id: str,
                       service_url: str) -> str:
        """
        Record a gateway attempt for ``service_url``, unless it is AJAX.

        Returns
        -------
        str
            The service URL to send to the authentication server.

        """
        if request_origin(request) is RequestOrigin.AJAX:
            logger.debug('Not recording gateway attempt for AJAX request: %s',
                         service_url)
            return service_url
        self.store.set(session_id, GATEWAY_KEY, service_url)
        return service_url

    def locked(self, session_id: str) -> Any:
        """Serialize a check-then-record sequence for one session."""
        return self.store.lock(session_id)
