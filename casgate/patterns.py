"""
URI pattern sets used to decide which requests are subject to authentication.

Patterns are configured as a comma-delimited list of regular expressions. The
application context path is prepended to each expression, so that patterns can
be written relative to the mount point of the application. For example, under
the context path ``/app`` the pattern ``/occurrences/\\d+`` is compiled as
``/app/occurrences/\\d+``.

A pattern is satisfied if it matches at the *start* of the request path (see
:meth:`re.Pattern.match`). It is not required to consume the whole path, so a
pattern that must not match longer paths needs an explicit ``$``.
"""

import re
import logging
from typing import Iterator, Optional, Tuple

from .domain import PathPattern
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class PatternSet(object):
    """An immutable collection of :class:`.PathPattern` with any-match."""

    def __init__(self, patterns: Tuple[PathPattern, ...] = ()) -> None:
        self._patterns = tuple(patterns)

    @classmethod
    def compile(cls, context_path: Optional[str],
                patterns: Optional[str]) -> 'PatternSet':
        """
        Compile a comma-delimited list of patterns.

        Parameters
        ----------
        context_path : str
            Prefix prepended to every pattern. May be empty.
        patterns : str
            Comma-delimited regular expressions. ``None`` or an empty string
            produces an empty set, which matches nothing.

        Returns
        -------
        :class:`.PatternSet`

        Raises
        ------
        :class:`.ConfigurationError`
            Raised if any of the patterns is not a valid regular expression.

        """
        prefix = context_path or ''
        compiled = []
        for raw in (patterns or '').split(','):
            raw = raw.strip()
            if not raw:
                continue
            try:
                regex = re.compile(prefix + raw)
            except re.error as e:
                raise ConfigurationError(
                    f'Invalid URI pattern {raw!r}: {e}'
                ) from e
            compiled.append(PathPattern(regex=regex, prefix=prefix))
        logger.debug('Compiled %i patterns with prefix %r',
                     len(compiled), prefix)
        return cls(tuple(compiled))

    def matches(self, path: str) -> bool:
        """Determine whether any pattern in the set matches ``path``."""
        return any(pattern.regex.match(path) is not None
                   for pattern in self._patterns)

    def __iter__(self) -> Iterator[PathPattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __repr__(self) -> str:
        return 'PatternSet(%r)' % [p.regex.pattern for p in self._patterns]
