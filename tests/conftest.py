"""Shared pytest fixtures.

Fixtures here build the proxy's collaborators from small, explicit
configurations so every test states the policy it runs against.
"""

from __future__ import annotations

import base64
from typing import Any

import pytest

from transmission_proxy.acl.models import AclPolicy
from transmission_proxy.auth.identity import Identity, ProviderKind
from transmission_proxy.auth.providers.basic import hash_password
from transmission_proxy.auth.providers.models import ProvidersConfig
from transmission_proxy.core.config import Settings


UPSTREAM_URL = "http://transmission.test:9091/transmission/rpc"
SESSION_TOKEN = "token-1"


# =============================================================================
# Helpers
# =============================================================================


def basic_header(username: str, password: str) -> str:
    """Build a Basic Authorization header value."""
    encoded = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {encoded}"


def basic_identity(name: str) -> Identity:
    return Identity(provider=ProviderKind.basic(), name=name)


def oauth2_identity(label: str, name: str) -> Identity:
    return Identity(provider=ProviderKind.oauth2(label), name=name)


# =============================================================================
# Configuration fixtures
# =============================================================================


@pytest.fixture(scope="session")
def password_hashes() -> dict[str, str]:
    """bcrypt hashes with minimal rounds, computed once per session."""
    return {
        "admin": hash_password("admin-secret", rounds=4),
        "readonly": hash_password("readonly-secret", rounds=4),
        "alice": hash_password("alice-secret", rounds=4),
    }


@pytest.fixture
def providers_config(password_hashes: dict[str, str]) -> ProvidersConfig:
    """One Basic provider with three users and one OAuth2 provider."""
    return ProvidersConfig.model_validate(
        {
            "basic": {
                "users": [
                    {"username": name, "password_hash": value}
                    for name, value in password_hashes.items()
                ],
            },
            "oauth2": [
                {
                    "name": "google",
                    "auth_url": "https://issuer.test/authorize",
                    "token_url": "https://issuer.test/token",
                    "userinfo_url": "https://issuer.test/userinfo",
                    "client_id": "client-id",
                    "client_secret": "client-secret",
                },
            ],
        }
    )


@pytest.fixture
def acl_policy() -> AclPolicy:
    """admin unrestricted, readonly confined to read methods, others confined."""
    return AclPolicy.model_validate(
        {
            "rules": [
                {"identities": [{"provider": "basic", "name": "admin"}]},
                {
                    "identities": [{"provider": "basic", "name": "readonly"}],
                    "allowed_methods": ["torrent-get", "session-get", "session-stats"],
                },
                {
                    "identities": [
                        {"provider": "basic", "name": "alice"},
                        {"provider": "oauth2", "oauth2": "google", "name": "bob@example.org"},
                    ],
                    "allowed_methods": [
                        "torrent-get",
                        "torrent-add",
                        "torrent-start",
                        "torrent-stop",
                        "torrent-remove",
                        "torrent-set-location",
                        "session-get",
                    ],
                },
                {"deny": True},
            ]
        }
    )


@pytest.fixture
def settings(
    tmp_path: Any,
    acl_policy: AclPolicy,
    providers_config: ProvidersConfig,
) -> Settings:
    """Settings for an app talking to a mocked daemon."""
    return Settings(
        APP_ENV="test",
        SECRET_KEY="test-secret-key",
        upstream={
            "url": UPSTREAM_URL,
            "timeout": 5.0,
            "download_root": str(tmp_path / "downloads"),
            "create_directories": True,
        },
        server={"mount_path": "/transmission"},
        acl=acl_policy,
        providers=providers_config,
    )
