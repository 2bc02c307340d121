"""
Authentication gate for CAS-protected web applications.

This package decides, for each request, whether the user must be sent to the
CAS login page, silently checked for an existing SSO session (CAS "gateway"
mode), or let through untouched. Validating tickets is not handled here; that
is left to a CAS validator further down the middleware stack.

Quick start
-----------

1. Install this package into your virtual environment.
2. Configure the URI patterns and the CAS login URL in your app config.
3. Install :class:`casgate.ext.CASGate` onto your application.

.. code-block:: python

   # yourapp/config.py
   URI_EXCLUSION_FILTER_PATTERN = '/static/.*,/health$'
   URI_FILTER_PATTERN = '/admin/.*,/profile/.*'
   AUTHENTICATE_ONLY_IF_LOGGED_IN_FILTER_PATTERN = '/.*'
   CAS_SERVER_LOGIN_URL = 'https://auth.example.org/cas/login'
   CAS_GATEWAY = True

   # yourapp/factory.py
   from flask import Flask
   from casgate.ext import CASGate


   def create_web_app() -> Flask:
       app = Flask('yourapp')
       app.config.from_pyfile('config.py')
       CASGate(app)    # <- Install the gate.
       return app

Applications that are not built with Flask can wrap any WSGI application with
:meth:`casgate.middleware.AuthenticationGate.from_config`.
"""

from .domain import GateDecision, RequestOrigin, PathPattern, Principal
from .exceptions import CasGateError, ConfigurationError
