"""Unit tests for BasicAuthProvider."""

from __future__ import annotations

from unittest.mock import patch

import bcrypt
import pytest

from transmission_proxy.auth.identity import ProviderType
from transmission_proxy.auth.providers import (
    AuthProvider,
    BasicAuthProvider,
    BasicProviderConfig,
    InvalidCredentialsError,
    ProviderDisabledError,
)
from transmission_proxy.auth.providers.basic import hash_password
from transmission_proxy.auth.providers.models import BasicCredentials, BasicUser, OAuth2Callback


pytestmark = pytest.mark.unit


@pytest.fixture
def provider(password_hashes: dict[str, str]) -> BasicAuthProvider:
    """Provider with the shared test users."""
    return BasicAuthProvider(
        BasicProviderConfig(
            users=tuple(
                BasicUser(username=name, password_hash=value)
                for name, value in password_hashes.items()
            )
        )
    )


class TestAuthenticate:
    """Tests for password verification."""

    async def test_valid_credentials(self, provider: BasicAuthProvider) -> None:
        """Should return a Basic identity named after the user."""
        identity = await provider.authenticate(
            BasicCredentials(username="admin", password="admin-secret")
        )

        assert identity.provider.type is ProviderType.BASIC
        assert identity.name == "admin"

    async def test_wrong_password(self, provider: BasicAuthProvider) -> None:
        """Should reject a wrong password."""
        with pytest.raises(InvalidCredentialsError):
            await provider.authenticate(BasicCredentials(username="admin", password="nope"))

    async def test_unknown_user(self, provider: BasicAuthProvider) -> None:
        """Should reject unknown users with the same error as wrong passwords."""
        with pytest.raises(InvalidCredentialsError) as unknown:
            await provider.authenticate(BasicCredentials(username="mallory", password="x"))
        with pytest.raises(InvalidCredentialsError) as wrong:
            await provider.authenticate(BasicCredentials(username="admin", password="x"))

        assert str(unknown.value) == str(wrong.value)

    async def test_disabled(self, password_hashes: dict[str, str]) -> None:
        """Should refuse to authenticate when disabled."""
        provider = BasicAuthProvider(
            BasicProviderConfig(
                enabled=False,
                users=(BasicUser(username="admin", password_hash=password_hashes["admin"]),),
            )
        )

        with pytest.raises(ProviderDisabledError):
            await provider.authenticate(
                BasicCredentials(username="admin", password="admin-secret")
            )

    async def test_first_duplicate_wins(self) -> None:
        """Should use the first entry for a username configured twice."""
        provider = BasicAuthProvider(
            BasicProviderConfig(
                users=(
                    BasicUser(username="dup", password_hash=hash_password("first", rounds=4)),
                    BasicUser(username="dup", password_hash=hash_password("second", rounds=4)),
                )
            )
        )

        assert (await provider.authenticate(BasicCredentials(username="dup", password="first"))).name == "dup"
        with pytest.raises(InvalidCredentialsError):
            await provider.authenticate(BasicCredentials(username="dup", password="second"))

    async def test_invalid_configured_hash(self) -> None:
        """Should treat an unparseable hash as a failed verification."""
        provider = BasicAuthProvider(
            BasicProviderConfig(users=(BasicUser(username="x", password_hash="not-bcrypt"),))
        )

        with pytest.raises(InvalidCredentialsError):
            await provider.authenticate(BasicCredentials(username="x", password="x"))


class TestVerificationCache:
    """Tests for the verified-password cache."""

    async def test_repeat_skips_bcrypt(self, provider: BasicAuthProvider) -> None:
        """Should verify a repeated correct password only once."""
        credentials = BasicCredentials(username="alice", password="alice-secret")

        with patch(
            "transmission_proxy.auth.providers.basic.bcrypt.checkpw",
            wraps=bcrypt.checkpw,
        ) as checkpw:
            await provider.authenticate(credentials)
            await provider.authenticate(credentials)

        assert checkpw.call_count == 1

    async def test_other_password_is_verified(self, provider: BasicAuthProvider) -> None:
        """Should not let a cached success vouch for a different password."""
        await provider.authenticate(BasicCredentials(username="alice", password="alice-secret"))

        with pytest.raises(InvalidCredentialsError):
            await provider.authenticate(BasicCredentials(username="alice", password="guess"))

    async def test_failure_evicts_cache(self, provider: BasicAuthProvider) -> None:
        """Should forget a cached success after a failed attempt."""
        credentials = BasicCredentials(username="alice", password="alice-secret")
        await provider.authenticate(credentials)
        with pytest.raises(InvalidCredentialsError):
            await provider.authenticate(BasicCredentials(username="alice", password="guess"))

        with patch(
            "transmission_proxy.auth.providers.basic.bcrypt.checkpw",
            wraps=bcrypt.checkpw,
        ) as checkpw:
            await provider.authenticate(credentials)

        assert checkpw.call_count == 1


class TestAccepts:
    """Tests for credential routing."""

    def test_accepts_only_basic(self, provider: BasicAuthProvider) -> None:
        """Should accept Basic credentials and nothing else."""
        assert provider.accepts(BasicCredentials(username="a", password="b"))
        assert not provider.accepts(OAuth2Callback(provider="google", state="s", code="c"))
        assert provider.provider_name == "basic"

    def test_implements_protocol(self, provider: BasicAuthProvider) -> None:
        """Should satisfy the provider protocol."""
        assert isinstance(provider, AuthProvider)
