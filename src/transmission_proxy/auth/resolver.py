"""Identity resolution.

The resolver turns the credentials found on a request into exactly one
Identity:
- a valid identity cookie wins
- otherwise a Basic Authorization header is tried against every enabled
  provider that accepts it, in configuration order
- otherwise the caller is Anonymous

It only fails on credentials that were presented but rejected; whether an
Anonymous caller may proceed is for the ACL engine to decide.
"""

from __future__ import annotations

import base64
import binascii
from typing import TYPE_CHECKING

from transmission_proxy.auth.identity import ANONYMOUS, Identity
from transmission_proxy.auth.providers.exceptions import (
    AuthenticationError,
    InvalidCredentialsError,
    MalformedCredentialsError,
    ProviderDisabledError,
)
from transmission_proxy.auth.providers.models import BasicCredentials
from transmission_proxy.auth.providers.oauth2 import OAuth2AuthProvider
from transmission_proxy.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Sequence

    from transmission_proxy.auth.providers.models import (
        CompletedLogin,
        Credentials,
        OAuth2Callback,
    )
    from transmission_proxy.auth.providers.protocol import AuthProvider
    from transmission_proxy.auth.session import IdentityCookieCodec

logger = get_logger(__name__)


def parse_basic_authorization(header: str | None) -> BasicCredentials | None:
    """Decode a Basic Authorization header.

    Returns None when the header is absent or uses another scheme.

    Raises:
        MalformedCredentialsError: If a Basic header cannot be decoded.
    """
    if not header:
        return None

    scheme, _, param = header.strip().partition(" ")
    if scheme.lower() != "basic":
        return None

    try:
        decoded = base64.b64decode(param.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        msg = "basic credentials are not valid base64 UTF-8"
        raise MalformedCredentialsError(msg) from e

    username, separator, password = decoded.partition(":")
    if not separator or not username:
        msg = "basic credentials lack a username:password pair"
        raise MalformedCredentialsError(msg)

    return BasicCredentials(username=username, password=password)


class IdentityResolver:
    """Resolves request credentials through the configured providers."""

    def __init__(
        self,
        providers: Sequence[AuthProvider],
        cookies: IdentityCookieCodec,
    ) -> None:
        self.providers = tuple(providers)
        self.cookies = cookies

    @property
    def basic_enabled(self) -> bool:
        """Whether any enabled provider accepts Basic credentials."""
        sample = BasicCredentials(username="_", password="")
        return any(p.enabled and p.accepts(sample) for p in self.providers)

    def visible_providers(self) -> list[AuthProvider]:
        """Enabled providers advertised on the login route."""
        return [p for p in self.providers if p.enabled and p.visible]

    def oauth2_provider(self, label: str) -> OAuth2AuthProvider:
        """Look up an enabled OAuth2 provider by label.

        Raises:
            ProviderDisabledError: If no such provider is enabled.
        """
        for provider in self.providers:
            if (
                isinstance(provider, OAuth2AuthProvider)
                and provider.config.name == label
                and provider.enabled
            ):
                return provider
        msg = f"no enabled oauth2 provider named {label!r}"
        raise ProviderDisabledError(msg)

    async def resolve(
        self,
        *,
        authorization: str | None = None,
        cookie: str | None = None,
    ) -> Identity:
        """Resolve the identity of a request.

        Args:
            authorization: Raw Authorization header, if any.
            cookie: Raw identity cookie, if any.

        Raises:
            AuthenticationError: If presented credentials are rejected.
        """
        if cookie:
            identity = self.cookies.decode(cookie)
            if identity is not None:
                return identity

        credentials = parse_basic_authorization(authorization)
        if credentials is None:
            return ANONYMOUS

        return await self.authenticate(credentials)

    async def authenticate(self, credentials: Credentials) -> Identity:
        """Try every provider that accepts ``credentials``; first success wins.

        Raises:
            ProviderDisabledError: If no enabled provider accepts them.
            AuthenticationError: The last failure otherwise.
        """
        candidates = [p for p in self.providers if p.enabled and p.accepts(credentials)]
        if not candidates:
            logger.warning("No enabled provider for credentials", credentials=type(credentials).__name__)
            msg = "no enabled provider accepts these credentials"
            raise ProviderDisabledError(msg)

        failure: AuthenticationError = InvalidCredentialsError("invalid credentials")
        for provider in candidates:
            try:
                identity = await provider.authenticate(credentials)
            except AuthenticationError as e:
                logger.debug(
                    "Provider rejected credentials",
                    provider=provider.provider_name,
                    error=type(e).__name__,
                )
                failure = e
                continue

            logger.debug("Identity resolved", provider=provider.provider_name, identity=str(identity))
            return identity

        raise failure

    async def complete_oauth2(self, callback: OAuth2Callback) -> CompletedLogin:
        """Finish an OAuth2 login at the provider the callback names.

        Raises:
            ProviderDisabledError: If the provider is unknown or disabled.
            AuthenticationError: If the callback is rejected.
        """
        provider = self.oauth2_provider(callback.provider)
        completed = await provider.complete(callback)
        logger.debug("Identity resolved", provider=provider.provider_name, identity=str(completed.identity))
        return completed

    async def initialize(self) -> None:
        for provider in self.providers:
            await provider.initialize()

    async def shutdown(self) -> None:
        for provider in self.providers:
            await provider.shutdown()
