"""Tests for :mod:`casgate.ext`."""

from urllib.parse import parse_qs, urlsplit

import pytest
from flask import Flask

from casgate.ext import CASGate
from casgate.exceptions import ConfigurationError
from casgate.middleware import AuthenticationGate

from .conftest import LOGIN_URL, create_app


def query(response):
    return parse_qs(urlsplit(response.headers['Location']).query)


def test_installed(app):
    """The gate wraps the app and is registered as an extension."""
    extension = app.extensions['casgate']
    assert isinstance(extension, CASGate)
    assert isinstance(app.wsgi_app, AuthenticationGate)
    assert extension.gate is app.wsgi_app
    assert app.config['SESSION_STORE'] == 'memory'


def test_excluded(client):
    """Excluded paths are served to anonymous users."""
    response = client.get('/public/about')
    assert response.status_code == 200
    assert response.data == b'excluded'


def test_included(client):
    """Included paths send anonymous users to the login page."""
    response = client.get('/admin/users')
    assert response.status_code == 302
    assert response.headers['Location'].startswith(LOGIN_URL + '?')
    assert query(response) == {'service': ['http://localhost/admin/users']}


def test_conditional(client):
    """Conditional paths are authenticated only with the login cookie."""
    response = client.get('/papers/1')
    assert response.status_code == 200
    assert response.data == b'no_match'

    client.set_cookie('ALA-Auth', 'foo@example.org')
    response = client.get('/papers/1')
    assert response.status_code == 302


def test_gateway(gateway_app):
    """Logged-in users are gatewayed once per URL."""
    client = gateway_app.test_client()
    client.set_cookie('ALA-Auth', 'foo@example.org')

    response = client.get('/papers/1')
    assert response.status_code == 302
    assert query(response)['gateway'] == ['true']

    # The session cookie set on the redirect is sent back.
    response = client.get('/papers/1')
    assert response.status_code == 200
    assert response.data == b'authenticate_if_logged_in'


def test_disabled():
    """Nothing is authenticated when CAS is disabled."""
    client = create_app(DISABLE_CAS='true').test_client()
    response = client.get('/admin/users')
    assert response.status_code == 200
    assert response.data == b'excluded'


def test_missing_login_url():
    """The app cannot start without a login URL."""
    app = Flask('test_casgate')
    app.config['URI_FILTER_PATTERN'] = '/admin/.*'
    with pytest.raises(ConfigurationError):
        CASGate(app)


def test_init_app():
    """The extension can be created before the app."""
    extension = CASGate()
    assert extension.gate is None
    app = create_app()
    extension.init_app(app)
    assert extension.store is not None
    assert extension.gate.cookie_name == 'ALA-Auth'


def test_config_file(tmp_path, monkeypatch):
    """Settings in the gate config file win over the app config."""
    config_file = tmp_path / 'casgate.cfg'
    config_file.write_text(
        "URI_FILTER_PATTERN = '/papers/.*'\n"
        "SECRET_KEY = 'not for the gate'\n"
        "CAS_PROPERTIES = 'URI_FILTER_PATTERN'\n"
    )
    monkeypatch.setenv('CASGATE_CONFIG_FILE', str(config_file))
    client = create_app().test_client()

    assert client.get('/papers/1').status_code == 302
    assert client.get('/admin/users').status_code == 200
