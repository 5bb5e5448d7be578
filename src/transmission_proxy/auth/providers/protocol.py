"""Authentication provider protocol definition.

This module defines the AuthProvider protocol shared by the Basic and
OAuth2 providers. The resolver only talks to providers through it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from transmission_proxy.auth.identity import Identity, ProviderKind
    from transmission_proxy.auth.providers.models import Credentials


@runtime_checkable
class AuthProvider(Protocol):
    """Protocol for authentication providers.

    A provider turns one credential shape into an Identity tagged with its
    own ProviderKind. Providers never see the ACL policy.

    Example implementation:
        class MyAuthProvider:
            @property
            def kind(self) -> ProviderKind:
                return ProviderKind.basic()

            def accepts(self, credentials: Credentials) -> bool:
                return isinstance(credentials, BasicCredentials)

            async def authenticate(self, credentials: Credentials) -> Identity:
                ...
    """

    @property
    def provider_name(self) -> str:
        """Return the provider name for logging (e.g. 'basic', 'oauth2:google')."""
        ...

    @property
    def kind(self) -> ProviderKind:
        """Return the kind stamped on identities this provider resolves."""
        ...

    @property
    def enabled(self) -> bool:
        """Whether the provider participates in authentication."""
        ...

    @property
    def visible(self) -> bool:
        """Whether the provider is advertised on the login route."""
        ...

    def accepts(self, credentials: Credentials) -> bool:
        """Return True if the provider handles this credential shape."""
        ...

    async def authenticate(self, credentials: Credentials) -> Identity:
        """Resolve credentials to an identity.

        Raises:
            ProviderDisabledError: If the provider is disabled.
            AuthenticationError: For any other authentication failure.
        """
        ...

    async def initialize(self) -> None:
        """Initialize the provider (called during application startup)."""
        ...

    async def shutdown(self) -> None:
        """Clean up provider resources."""
        ...
