"""Fixtures for testing the gate installed on a Flask app."""

import pytest
from flask import Flask, request

from casgate.ext import CASGate
from casgate.middleware import DECISION_KEY
from casgate.sessions import MemorySessionStore

LOGIN_URL = 'https://auth.example.org/cas/login'


def create_app(**config) -> Flask:
    """Build a small app protected by the gate."""
    app = Flask('test_casgate')
    app.config.update({
        'URI_EXCLUSION_FILTER_PATTERN': '/public/.*',
        'URI_FILTER_PATTERN': '/admin/.*',
        'AUTHENTICATE_ONLY_IF_LOGGED_IN_FILTER_PATTERN': '/.*',
        'CAS_SERVER_LOGIN_URL': LOGIN_URL,
    })
    app.config.update(config)

    @app.route('/', defaults={'path': ''})
    @app.route('/<path:path>')
    def catch_all(path):
        return request.environ[DECISION_KEY].value

    CASGate(app, store=MemorySessionStore())
    return app


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def gateway_app():
    return create_app(CAS_GATEWAY=True)


@pytest.fixture
def client(app):
    return app.test_client()
