"""Authentication providers package.

Available providers:
- BasicAuthProvider: static users with bcrypt password hashes
- OAuth2AuthProvider: authorization-code login against an external issuer

Usage:
    from transmission_proxy.auth.providers import create_auth_providers

    providers = create_auth_providers(settings.providers, PendingLoginStore())
"""

from transmission_proxy.auth.providers.basic import BasicAuthProvider, hash_password
from transmission_proxy.auth.providers.exceptions import (
    AuthenticationError,
    AuthProviderError,
    ConfigurationError,
    EmailPathError,
    InvalidCredentialsError,
    MalformedCredentialsError,
    ProviderDisabledError,
    StateMismatchError,
    TokenExchangeError,
    UserinfoError,
)
from transmission_proxy.auth.providers.factory import create_auth_providers
from transmission_proxy.auth.providers.models import (
    AuthorizationRequest,
    BasicCredentials,
    BasicProviderConfig,
    BasicUser,
    CompletedLogin,
    Credentials,
    OAuth2Callback,
    OAuth2ProviderConfig,
    ProvidersConfig,
)
from transmission_proxy.auth.providers.oauth2 import OAuth2AuthProvider
from transmission_proxy.auth.providers.protocol import AuthProvider
from transmission_proxy.auth.providers.state import PendingLogin, PendingLoginStore


__all__ = [
    "AuthProvider",
    "AuthProviderError",
    "AuthenticationError",
    "AuthorizationRequest",
    "BasicAuthProvider",
    "BasicCredentials",
    "BasicProviderConfig",
    "BasicUser",
    "CompletedLogin",
    "ConfigurationError",
    "Credentials",
    "EmailPathError",
    "InvalidCredentialsError",
    "MalformedCredentialsError",
    "OAuth2AuthProvider",
    "OAuth2Callback",
    "OAuth2ProviderConfig",
    "PendingLogin",
    "PendingLoginStore",
    "ProviderDisabledError",
    "ProvidersConfig",
    "StateMismatchError",
    "TokenExchangeError",
    "UserinfoError",
    "create_auth_providers",
    "hash_password",
]
