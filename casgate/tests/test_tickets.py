"""Tests for :mod:`casgate.tickets`."""

from unittest import TestCase, mock

import requests

from casgate.tickets import WebServiceAuthenticationHelper

TGT_RESPONSE = (
    '<!DOCTYPE HTML PUBLIC "-//IETF//DTD HTML 2.0//EN">\n'
    '<html><head><title>201 Created</title></head><body>'
    '<h1>TGT Created</h1><form action="https://auth.example.org/cas/v1/'
    'tickets/TGT-1-abc" method="POST">Service:<input type="text" '
    'name="service" value=""></form></body></html>'
)


def mock_response(status_code, text=''):
    response = mock.MagicMock(status_code=status_code, text=text)
    return response


class TestWebServiceAuthenticationHelper(TestCase):
    """Tests for :class:`.WebServiceAuthenticationHelper`."""

    def setUp(self):
        self.session = mock.MagicMock(spec=requests.Session)

    def make_helper(self):
        return WebServiceAuthenticationHelper('https://auth.example.org/',
                                              'foo', 'secret',
                                              session=self.session)

    def test_invoke(self):
        """A service ticket is obtained and passed to the service."""
        self.session.post.side_effect = [
            mock_response(201, TGT_RESPONSE),
            mock_response(200, 'ST-2-def')
        ]
        self.session.get.return_value = mock_response(200, '{"ok": true}')

        helper = self.make_helper()
        self.assertEqual(helper.ticket_granting_ticket, 'TGT-1-abc')
        self.assertEqual(helper.invoke('https://svc.example.org/api'),
                         '{"ok": true}')

        tgt_call, st_call = self.session.post.call_args_list
        self.assertEqual(tgt_call[0][0],
                         'https://auth.example.org/cas/v1/tickets/')
        self.assertEqual(tgt_call[1]['data'],
                         {'username': 'foo', 'password': 'secret'})
        self.assertEqual(st_call[0][0],
                         'https://auth.example.org/cas/v1/tickets/TGT-1-abc')
        self.assertEqual(st_call[1]['data'],
                         {'service': 'https://svc.example.org/api'})
        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], 'https://svc.example.org/api')
        self.assertEqual(kwargs['params'], {'ticket': 'ST-2-def'})

    def test_bad_credentials(self):
        """Nothing is invoked without a ticket-granting ticket."""
        self.session.post.return_value = mock_response(400, 'Bad request')
        helper = self.make_helper()
        self.assertIsNone(helper.ticket_granting_ticket)
        self.assertIsNone(helper.invoke('https://svc.example.org/api'))
        self.assertEqual(self.session.post.call_count, 1)
        self.assertEqual(self.session.get.call_count, 0)

    def test_no_ticket_in_response(self):
        """A created response without a ticket is a failure."""
        self.session.post.return_value = mock_response(201, '<html></html>')
        self.assertIsNone(self.make_helper().ticket_granting_ticket)

    def test_cas_unreachable(self):
        """Connection errors are reported as failures."""
        self.session.post.side_effect = requests.ConnectionError('nope')
        self.assertIsNone(self.make_helper().ticket_granting_ticket)

    def test_service_ticket_refused(self):
        """The service is not called if CAS refuses a service ticket."""
        self.session.post.side_effect = [
            mock_response(201, TGT_RESPONSE),
            mock_response(404, 'Not found')
        ]
        helper = self.make_helper()
        self.assertIsNone(helper.invoke('https://svc.example.org/api'))
        self.assertEqual(self.session.get.call_count, 0)

    def test_service_fails(self):
        """An error from the service is reported as a failure."""
        self.session.post.side_effect = [
            mock_response(201, TGT_RESPONSE),
            mock_response(200, 'ST-2-def')
        ]
        self.session.get.return_value = mock_response(500, 'Oops')
        helper = self.make_helper()
        self.assertIsNone(helper.invoke('https://svc.example.org/api'))

    def test_service_unreachable(self):
        """A connection error from the service is reported as a failure."""
        self.session.post.side_effect = [
            mock_response(201, TGT_RESPONSE),
            mock_response(200, 'ST-2-def')
        ]
        self.session.get.side_effect = requests.Timeout('slow')
        helper = self.make_helper()
        self.assertIsNone(helper.invoke('https://svc.example.org/api'))
