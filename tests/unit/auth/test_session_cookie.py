"""Unit tests for the signed identity cookie."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from tests.conftest import basic_identity, oauth2_identity
from transmission_proxy.auth.identity import ANONYMOUS
from transmission_proxy.auth.session import IdentityCookieCodec


pytestmark = pytest.mark.unit

SECRET = "cookie-secret"


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def codec(clock: FakeClock) -> IdentityCookieCodec:
    return IdentityCookieCodec(SECRET, ttl=timedelta(hours=1), clock=clock)


class TestIdentityCookieCodec:
    """Tests for encoding and verifying identity cookies."""

    def test_basic_identity(self, codec: IdentityCookieCodec) -> None:
        """Should restore a Basic identity."""
        identity = basic_identity("admin")

        assert codec.decode(codec.encode(identity)) == identity

    def test_oauth2_identity_keeps_label(self, codec: IdentityCookieCodec) -> None:
        """Should restore the OAuth2 provider label."""
        identity = oauth2_identity("google", "bob@example.org")

        claims = jwt.get_unverified_claims(codec.encode(identity))

        assert claims["provider"] == "oauth2"
        assert claims["oauth2"] == "google"
        assert claims["sub"] == "bob@example.org"
        assert codec.decode(codec.encode(identity)) == identity

    def test_anonymous_is_never_encoded(self, codec: IdentityCookieCodec) -> None:
        """Should refuse to issue a cookie for Anonymous."""
        with pytest.raises(ValueError, match="anonymous"):
            codec.encode(ANONYMOUS)

    def test_expired(self, codec: IdentityCookieCodec, clock: FakeClock) -> None:
        """Should ignore a cookie past its lifetime."""
        token = codec.encode(basic_identity("admin"))

        clock.now += timedelta(hours=1, seconds=1)

        assert codec.decode(token) is None

    def test_wrong_secret(self, codec: IdentityCookieCodec, clock: FakeClock) -> None:
        """Should ignore a cookie signed with another key."""
        other = IdentityCookieCodec("other-secret", clock=clock)

        assert codec.decode(other.encode(basic_identity("admin"))) is None

    def test_garbage(self, codec: IdentityCookieCodec) -> None:
        """Should ignore a value that is not a JWT."""
        assert codec.decode("not-a-jwt") is None

    @pytest.mark.parametrize(
        "claims",
        [
            {"provider": "anonymous", "sub": "x"},
            {"provider": "oauth2", "sub": "x"},
            {"provider": "basic", "oauth2": "google", "sub": "x"},
            {"provider": "ldap", "sub": "x"},
        ],
    )
    def test_inconsistent_claims(
        self,
        codec: IdentityCookieCodec,
        clock: FakeClock,
        claims: dict[str, str],
    ) -> None:
        """Should ignore a correctly signed cookie with unusable claims."""
        issued = int(clock.now.timestamp())
        token = jwt.encode(
            {**claims, "iat": issued, "exp": issued + 60},
            SECRET,
            algorithm="HS256",
        )

        assert codec.decode(token) is None
