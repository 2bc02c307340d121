"""Helpers for building requests in tests."""

from typing import Dict, Iterable, Optional

from werkzeug.test import EnvironBuilder
from werkzeug.wrappers import Request, Response


def make_environ(path: str = '/', cookies: Optional[Dict[str, str]] = None,
                 headers: Optional[Dict[str, str]] = None,
                 script_name: str = '') -> dict:
    """Build a WSGI environ for a GET request."""
    all_headers = dict(headers or {})
    if cookies:
        all_headers['Cookie'] = '; '.join(f'{k}={v}'
                                          for k, v in cookies.items())
    builder = EnvironBuilder(path=path, headers=all_headers,
                             base_url=f'http://localhost{script_name}/')
    return builder.get_environ()


def make_request(path: str = '/', cookies: Optional[Dict[str, str]] = None,
                 headers: Optional[Dict[str, str]] = None) -> Request:
    """Build a :class:`.Request` for a GET request."""
    return Request(make_environ(path, cookies=cookies, headers=headers))


def hello_app(environ: dict, start_response) -> Iterable[bytes]:
    """A WSGI app that always says hello."""
    return Response('hello')(environ, start_response)


def cookie_from(response, name: str) -> Optional[str]:
    """Get the value of a cookie set by ``response``."""
    for header in response.headers.getlist('Set-Cookie'):
        key, _, rest = header.partition('=')
        if key == name:
            return rest.split(';', 1)[0]
    return None
