"""
Flask integration.

Intended for use in a Flask application factory, for example:

.. code-block:: python

   from flask import Flask
   from casgate.ext import CASGate
   from someapp import routes


   def create_web_app() -> Flask:
       app = Flask('someapp')
       app.config.from_pyfile('config.py')
       CASGate(app)    # Wraps app.wsgi_app with the authentication gate.
       app.register_blueprint(routes.blueprint)
       return app

"""

import logging
from typing import Optional

from flask import Flask

from . import config as defaults
from . import sessions
from .app_logging import setup_logger
from .middleware import AuthenticationGate
from .sessions import SessionStore

logger = logging.getLogger(__name__)


class CASGate(object):
    """Installs :class:`.AuthenticationGate` on a Flask application."""

    def __init__(self, app: Optional[Flask] = None,
                 store: Optional[SessionStore] = None) -> None:
        """
        Initialize ``app`` with the authentication gate.

        Parameters
        ----------
        app : :class:`Flask`
        store : :class:`.SessionStore`
            Overrides the session store described by the app config.

        """
        self.store = store
        self.gate: Optional[AuthenticationGate] = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """
        Wrap the WSGI app of ``app`` with the gate.

        Raises
        ------
        :class:`.ConfigurationError`
            Raised if the gate configuration is invalid. The application
            should not be served in that case.

        """
        for key, value in defaults.defaults().items():
            app.config.setdefault(key, value)
        sessions.init_app(app.config)
        settings = defaults.layered(defaults.load_overrides(), app.config)

        if defaults.as_bool(settings.get('CASGATE_JSON_LOGGING')):
            setup_logger()

        if self.store is None:
            self.store = sessions.get_session_store(settings)
        self.gate = AuthenticationGate.from_config(app.wsgi_app, settings,
                                                   store=self.store)
        app.wsgi_app = self.gate    # type: ignore
        app.extensions['casgate'] = self
