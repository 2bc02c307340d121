"""
Calls web services that are protected by CAS, on behalf of a user.

:class:`WebServiceAuthenticationHelper` uses the CAS REST protocol. The user's
credentials are exchanged for a ticket-granting ticket (TGT) once, when the
helper is created. Each call to :meth:`.WebServiceAuthenticationHelper.invoke`
then obtains a service ticket for the target URL and passes it to the service
as the ``ticket`` parameter; the service validates it with CAS as usual.

Failures are logged and reported by returning ``None``.
"""

import re
import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

CAS_CONTEXT = '/cas/v1/tickets/'
TGT_PATTERN = re.compile(r'.*action=".*/(.*?)".*', re.DOTALL)


def _truncate(text: str, length: int = 1024) -> str:
    return text[:length]


class WebServiceAuthenticationHelper(object):
    """Authenticates with CAS, then invokes protected web services."""

    def __init__(self, cas_server: str, username: str, password: str,
                 session: Optional[requests.Session] = None,
                 timeout: float = 30) -> None:
        self.cas_server = cas_server.rstrip('/')
        self.timeout = timeout
        self._http = session or requests.Session()
        self.ticket_granting_ticket = \
            self._get_ticket_granting_ticket(username, password)

    def invoke(self, service_url: str) -> Optional[str]:
        """Get a service ticket, and call ``service_url`` with it."""
        service_ticket = self._get_service_ticket(service_url)
        if service_ticket is None:
            return None
        return self._get_service_response(service_url, service_ticket)

    def _get_ticket_granting_ticket(self, username: str,
                                    password: str) -> Optional[str]:
        url = self.cas_server + CAS_CONTEXT
        try:
            response = self._http.post(url, timeout=self.timeout, data={
                'username': username,
                'password': password
            })
        except requests.RequestException as e:
            logger.warning('Exception calling %s: %s', url, e)
            return None

        if response.status_code == 201:
            match = TGT_PATTERN.match(response.text)
            if match:
                return match.group(1)
            logger.warning('Successful ticket granting request, but no'
                           ' ticket found!')
        else:
            logger.warning('Invalid response code (%i) from CAS server!',
                           response.status_code)
        logger.info('Response (1k): %s', _truncate(response.text))
        return None

    def _get_service_ticket(self, service_url: str) -> Optional[str]:
        if self.ticket_granting_ticket is None:
            return None
        url = self.cas_server + CAS_CONTEXT + self.ticket_granting_ticket
        try:
            response = self._http.post(url, data={'service': service_url},
                                       timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning('Exception calling %s: %s', url, e)
            return None

        if response.status_code == 200:
            return response.text
        logger.warning('Invalid response code (%i) from CAS server!',
                       response.status_code)
        logger.info('Response (1k): %s', _truncate(response.text))
        return None

    def _get_service_response(self, service_url: str,
                              service_ticket: str) -> Optional[str]:
        try:
            response = self._http.get(service_url, timeout=self.timeout,
                                      params={'ticket': service_ticket})
        except requests.RequestException as e:
            logger.warning('Exception calling %s: %s', service_url, e)
            return None

        if response.status_code == 200:
            return response.text
        logger.warning('Invalid response code (%i) from web service!',
                       response.status_code)
        logger.info('Response (1k): %s', _truncate(response.text))
        return None
