"""Authentication package.

Usage:
    from transmission_proxy.auth import IdentityResolver

    identity = await resolver.resolve(authorization=header, cookie=cookie)
"""

from transmission_proxy.auth.identity import (
    ANONYMOUS,
    Identity,
    ProviderKind,
    ProviderType,
)
from transmission_proxy.auth.resolver import IdentityResolver, parse_basic_authorization
from transmission_proxy.auth.session import IdentityClaim, IdentityCookieCodec


__all__ = [
    "ANONYMOUS",
    "Identity",
    "IdentityClaim",
    "IdentityCookieCodec",
    "IdentityResolver",
    "ProviderKind",
    "ProviderType",
    "parse_basic_authorization",
]
