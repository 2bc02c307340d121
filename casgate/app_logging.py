"""Structured (JSON) logging for deployments that ship logs as JSON."""

import logging
from typing import Optional, Union

from pythonjsonlogger.json import JsonFormatter

_handler: Optional[logging.Handler] = None


def setup_logger(level: Union[int, str] = logging.INFO) -> logging.Handler:
    """Attach a JSON stream handler to the root logger, once."""
    global _handler
    logger = logging.getLogger()
    if _handler is None:
        _handler = logging.StreamHandler()
        formatter = JsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        )
        _handler.setFormatter(formatter)
        logger.addHandler(_handler)
    logger.setLevel(level)
    return _handler
