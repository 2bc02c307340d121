"""
Configuration for the authentication gate.

The values below are defaults, read from the environment when this module is
imported. An application normally overrides them in its own Flask config; see
:class:`casgate.ext.CASGate`. Settings can also be kept in a separate Python
file, named by ``CASGATE_CONFIG_FILE``, which takes precedence over the
application config (see :func:`load_overrides` and :func:`layered`).
"""

import os
from collections import ChainMap
from typing import Any, Dict, Mapping, Optional

from flask import Config

URI_EXCLUSION_FILTER_PATTERN = os.environ.get('URI_EXCLUSION_FILTER_PATTERN',
                                              '')
"""Comma-delimited patterns for paths that are never authenticated."""

URI_FILTER_PATTERN = os.environ.get('URI_FILTER_PATTERN', '')
"""Comma-delimited patterns for paths that are always authenticated."""

AUTHENTICATE_ONLY_IF_LOGGED_IN_FILTER_PATTERN = os.environ.get(
    'AUTHENTICATE_ONLY_IF_LOGGED_IN_FILTER_PATTERN', ''
)
"""Patterns for paths authenticated only if the login cookie is present."""

CONTEXT_PATH = os.environ.get('CONTEXT_PATH', '')
"""Prefix prepended to every pattern; the application's mount point."""

DISABLE_CAS = os.environ.get('DISABLE_CAS', 'false')
"""If true, no request is ever authenticated."""

AUTHENTICATOR = os.environ.get('AUTHENTICATOR', 'cas')
"""Name of the authenticator that handles requests needing authentication."""

CAS_SERVER_LOGIN_URL = os.environ.get('CAS_SERVER_LOGIN_URL', '')
CAS_GATEWAY = os.environ.get('CAS_GATEWAY', 'false')
CAS_RENEW = os.environ.get('CAS_RENEW', 'false')
CAS_SERVICE = os.environ.get('CAS_SERVICE', '')
CAS_SERVER_NAME = os.environ.get('CAS_SERVER_NAME', '')

CASGATE_SESSION_COOKIE_NAME = os.environ.get('CASGATE_SESSION_COOKIE_NAME',
                                             'CASGATE_SESSION')
SESSION_STORE = os.environ.get('SESSION_STORE', 'memory')
SESSION_DURATION = os.environ.get('SESSION_DURATION', '7200')

REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
REDIS_CLUSTER = os.environ.get('REDIS_CLUSTER', '0')

CASGATE_JSON_LOGGING = os.environ.get('CASGATE_JSON_LOGGING', 'false')

PROPERTIES_WHITELIST_KEY = 'CAS_PROPERTIES'


def as_bool(value: Any) -> bool:
    """Interpret a config value as a boolean."""
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def defaults() -> Dict[str, Any]:
    """Get the default settings defined in this module."""
    return {key: value for key, value in globals().items()
            if key.isupper() and key != 'PROPERTIES_WHITELIST_KEY'}


def load_overrides(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load settings from a Python config file.

    If the file defines ``CAS_PROPERTIES`` (a comma-delimited list of keys),
    only those keys are used; other settings in the file are ignored. This
    allows a config file shared with the rest of the application to be used
    without its unrelated settings leaking into the gate.
    """
    if path is None:
        path = os.environ.get('CASGATE_CONFIG_FILE')
    if not path:
        return {}
    loaded = Config(os.getcwd())
    loaded.from_pyfile(os.path.abspath(path))
    whitelist = loaded.pop(PROPERTIES_WHITELIST_KEY, None)
    if whitelist is None:
        return dict(loaded)
    keys = [key.strip() for key in whitelist.split(',') if key.strip()]
    return {key: loaded[key] for key in keys if key in loaded}


def layered(overrides: Mapping[str, Any],
            base: Mapping[str, Any]) -> ChainMap:
    """Look up settings in ``overrides`` first, then in ``base``."""
    return ChainMap(dict(overrides), base)
