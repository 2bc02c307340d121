"""
Command-line helper for checking gate configuration.

.. code-block:: bash

   $ URI_FILTER_PATTERN='/secure/.*' CONTEXT_PATH=/portal \\
       casgate classify /portal/secure/profile
   always_authenticate

"""

import logging
from typing import Iterable, Optional

import click
from werkzeug.test import EnvironBuilder
from werkzeug.wrappers import Request

from . import config
from .app_logging import setup_logger
from .exceptions import ConfigurationError
from .middleware import AuthenticationGate


def _no_app(environ: dict, start_response: object) -> Iterable[bytes]:
    return []


@click.group()
@click.option('--debug', is_flag=True, help='Log gate decisions.')
def main(debug: bool) -> None:
    """Inspect the authentication gate."""
    setup_logger(logging.DEBUG if debug else logging.WARNING)


@main.command()
@click.argument('path')
@click.option('--cookie', is_flag=True,
              help='Pretend that the login cookie is present.')
@click.option('--config', 'config_file', default=None,
              type=click.Path(exists=True, dir_okay=False),
              help='Python config file with gate settings.')
def classify(path: str, cookie: bool, config_file: Optional[str]) -> None:
    """Show what the gate would do with a request for PATH."""
    settings = config.layered(config.load_overrides(config_file),
                              config.defaults())
    # Only the patterns matter here.
    settings = config.layered({'AUTHENTICATOR': 'passthrough'}, settings)
    try:
        gate = AuthenticationGate.from_config(_no_app, settings)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    builder = EnvironBuilder(path=path)
    if cookie:
        builder.headers['Cookie'] = f'{gate.cookie_name}=1'
    request = Request(builder.get_environ())
    click.echo(gate.classify(path, request).value)


if __name__ == '__main__':
    main()
