"""Authentication provider exceptions.

Every AuthenticationError is reported to the caller as the same bare 401;
the subclasses exist so the precise cause can be logged.
"""

from __future__ import annotations


class AuthProviderError(Exception):
    """Base exception for auth provider errors."""


class AuthenticationError(AuthProviderError):
    """Raised when authentication fails for any reason."""


class InvalidCredentialsError(AuthenticationError):
    """Raised for an unknown user or a wrong password (indistinguishable)."""


class ProviderDisabledError(AuthenticationError):
    """Raised when the addressed provider is disabled or not configured."""


class MalformedCredentialsError(AuthenticationError):
    """Raised when an Authorization header cannot be decoded."""


class StateMismatchError(AuthenticationError):
    """Raised when an OAuth2 callback state matches no pending login."""


class TokenExchangeError(AuthenticationError):
    """Raised when the authorization code cannot be exchanged for a token."""


class UserinfoError(AuthenticationError):
    """Raised when the userinfo document cannot be fetched or decoded."""


class EmailPathError(AuthenticationError):
    """Raised when the email path finds no usable value in the userinfo."""


class ConfigurationError(AuthProviderError):
    """Raised when the auth provider is misconfigured."""
