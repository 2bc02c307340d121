"""Exceptions."""


class CasGateError(RuntimeError):
    """Base exception for the authentication gate."""


class ConfigurationError(CasGateError):
    """The gate is misconfigured and cannot serve requests."""


class SessionStoreUnavailable(CasGateError):
    """Could not reach the session store."""
