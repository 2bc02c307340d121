"""Core concepts used by the authentication gate."""

from enum import Enum
from typing import Any, Dict, NamedTuple, Pattern


class PathPattern(NamedTuple):
    """A compiled URI pattern, anchored to the application context path."""

    regex: Pattern
    """Compiled expression, including the context path prefix."""

    prefix: str
    """The context path that was prepended at configuration time."""

    @property
    def source(self) -> str:
        """The configured pattern, without the context path."""
        return self.regex.pattern[len(self.prefix):]


class GateDecision(Enum):
    """Outcome of classifying a request path."""

    EXCLUDED = 'excluded'
    ALWAYS_AUTHENTICATE = 'always_authenticate'
    AUTHENTICATE_IF_LOGGED_IN = 'authenticate_if_logged_in'
    NO_MATCH = 'no_match'

    @property
    def authenticates(self) -> bool:
        """Whether the request is handed to the authenticator."""
        return self in (GateDecision.ALWAYS_AUTHENTICATE,
                        GateDecision.AUTHENTICATE_IF_LOGGED_IN)


class RequestOrigin(Enum):
    """How a request was (probably) initiated."""

    AJAX = 'ajax'
    STANDARD = 'standard'


class Principal(NamedTuple):
    """An authenticated user, as produced by the ticket validator."""

    name: str
    attributes: Dict[str, Any]
