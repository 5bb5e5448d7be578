"""Signed identity cookie.

After a successful login the identity is stored client-side as an HS256
JWT:

    {"provider": "oauth2", "oauth2": "google", "sub": "a@b.c", "iat": ..., "exp": ...}

A cookie that fails verification is treated as absent.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from jose import jwt
from jose.exceptions import JWTError
from pydantic import BaseModel, ValidationError

from transmission_proxy.auth.identity import Identity, ProviderKind, ProviderType
from transmission_proxy.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)


class IdentityClaim(BaseModel):
    """Identity cookie payload."""

    provider: ProviderType
    oauth2: str | None = None
    sub: str
    iat: int
    exp: int

    def to_identity(self) -> Identity:
        return Identity(
            provider=ProviderKind(type=self.provider, label=self.oauth2),
            name=self.sub,
        )


class IdentityCookieCodec:
    """Encodes identities into signed cookies and back.

    Attributes:
        ttl: Lifetime of issued cookies.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._clock = clock or (lambda: datetime.now(UTC))
        self.ttl = ttl

    def encode(self, identity: Identity) -> str:
        """Sign an identity.

        Raises:
            ValueError: If the identity is anonymous.
        """
        if identity.is_anonymous:
            msg = "anonymous identities are never stored in a cookie"
            raise ValueError(msg)

        now = self._clock()
        claim = IdentityClaim(
            provider=identity.provider.type,
            oauth2=identity.provider.label,
            sub=identity.name,
            iat=int(now.timestamp()),
            exp=int((now + self.ttl).timestamp()),
        )
        return jwt.encode(
            claim.model_dump(exclude_none=True, mode="json"),
            self._secret_key,
            algorithm=self._algorithm,
        )

    def decode(self, token: str) -> Identity | None:
        """Verify a cookie and return its identity, or None if it is unusable."""
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
            claim = IdentityClaim.model_validate(payload)
        except (JWTError, ValidationError) as e:
            logger.warning("Ignoring invalid identity cookie", error=str(e))
            return None

        # Expiry is checked against the injected clock, not the wall clock
        if claim.exp <= int(self._clock().timestamp()):
            logger.debug("Identity cookie expired")
            return None

        if claim.provider is ProviderType.ANONYMOUS:
            logger.warning("Ignoring identity cookie for anonymous provider")
            return None
        if (claim.provider is ProviderType.OAUTH2) != bool(claim.oauth2):
            logger.warning("Ignoring identity cookie with inconsistent provider")
            return None

        return claim.to_identity()
