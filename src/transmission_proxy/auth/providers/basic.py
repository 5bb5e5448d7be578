"""Static username/password provider.

Users are configured with bcrypt hashes. bcrypt is deliberately slow, so
it runs in a worker thread, and a successful verification is remembered
per user as a keyed digest of the password: repeating the same password
skips bcrypt, any other password is verified again.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import secrets
from typing import TYPE_CHECKING

import bcrypt

from transmission_proxy.auth.identity import Identity, ProviderKind
from transmission_proxy.auth.providers.exceptions import (
    InvalidCredentialsError,
    ProviderDisabledError,
)
from transmission_proxy.auth.providers.models import BasicCredentials
from transmission_proxy.observability.logging import get_logger


if TYPE_CHECKING:
    from transmission_proxy.auth.providers.models import (
        BasicProviderConfig,
        Credentials,
    )

logger = get_logger(__name__)


def hash_password(password: str, *, rounds: int = 12) -> str:
    """Hash a password for use in the Basic provider configuration."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


class BasicAuthProvider:
    """Authenticates Basic credentials against configured bcrypt hashes.

    Unknown users and wrong passwords both raise InvalidCredentialsError
    with the same message. When a username is configured twice the first
    entry wins.
    """

    def __init__(self, config: BasicProviderConfig) -> None:
        self.config = config
        self._hashes: dict[str, bytes] = {}
        for user in config.users:
            self._hashes.setdefault(user.username, user.password_hash.encode())
        self._cache_key = secrets.token_bytes(32)
        self._verified: dict[str, bytes] = {}

    @property
    def provider_name(self) -> str:
        return "basic"

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.basic()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def visible(self) -> bool:
        return self.config.visible

    def accepts(self, credentials: Credentials) -> bool:
        return isinstance(credentials, BasicCredentials)

    async def authenticate(self, credentials: Credentials) -> Identity:
        """Verify a username/password pair.

        Raises:
            ProviderDisabledError: If the provider is disabled.
            InvalidCredentialsError: For an unknown user or wrong password.
        """
        if not isinstance(credentials, BasicCredentials):
            msg = "basic provider only accepts basic credentials"
            raise TypeError(msg)

        if not self.enabled:
            msg = "basic provider is disabled"
            raise ProviderDisabledError(msg)

        stored = self._hashes.get(credentials.username)
        if stored is None:
            logger.warning("Basic login for unknown user", username=credentials.username)
            msg = "invalid credentials"
            raise InvalidCredentialsError(msg)

        password = credentials.password.encode()
        digest = hmac.new(self._cache_key, password, hashlib.sha256).digest()
        cached = self._verified.get(credentials.username)

        if cached is None or not hmac.compare_digest(cached, digest):
            if not await self._check(password, stored, credentials.username):
                self._verified.pop(credentials.username, None)
                logger.warning("Basic login with wrong password", username=credentials.username)
                msg = "invalid credentials"
                raise InvalidCredentialsError(msg)
            self._verified[credentials.username] = digest

        return Identity(provider=self.kind, name=credentials.username)

    async def _check(self, password: bytes, stored: bytes, username: str) -> bool:
        try:
            return await asyncio.to_thread(bcrypt.checkpw, password, stored)
        except ValueError:
            logger.error("Configured password hash is not a valid bcrypt hash", username=username)
            return False

    async def initialize(self) -> None:
        logger.info(
            "Basic auth provider initialized",
            enabled=self.enabled,
            users=len(self._hashes),
        )

    async def shutdown(self) -> None:
        self._verified.clear()
