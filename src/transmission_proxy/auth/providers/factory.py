"""Authentication provider factory.

This module builds the configured providers in resolution order: Basic
providers first, then OAuth2 providers, each in configuration order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from transmission_proxy.auth.providers.basic import BasicAuthProvider
from transmission_proxy.auth.providers.exceptions import ConfigurationError
from transmission_proxy.auth.providers.oauth2 import OAuth2AuthProvider
from transmission_proxy.observability.logging import get_logger


if TYPE_CHECKING:
    import httpx

    from transmission_proxy.auth.providers.models import ProvidersConfig
    from transmission_proxy.auth.providers.protocol import AuthProvider
    from transmission_proxy.auth.providers.state import PendingLoginStore

logger = get_logger(__name__)


def create_auth_providers(
    config: ProvidersConfig,
    pending: PendingLoginStore,
    *,
    timeout: float = 10.0,
    http_client: httpx.AsyncClient | None = None,
) -> list[AuthProvider]:
    """Create providers from configuration.

    Args:
        config: Provider configuration section.
        pending: Store of in-flight OAuth2 logins.
        timeout: Timeout for issuer requests.
        http_client: Optional HTTP client shared by OAuth2 providers.

    Returns:
        Providers in resolution order.

    Raises:
        ConfigurationError: If two OAuth2 providers share a name.
    """
    providers: list[AuthProvider] = [BasicAuthProvider(basic) for basic in config.basic]
    providers.extend(
        OAuth2AuthProvider(oauth2, pending, timeout=timeout, http_client=http_client)
        for oauth2 in config.oauth2
    )

    if not any(provider.enabled for provider in providers):
        logger.warning("No authentication provider is enabled; every caller is anonymous")

    names = [provider.provider_name for provider in providers]
    oauth2_names = [name for name in names if name != "basic"]
    if len(set(oauth2_names)) != len(oauth2_names):
        msg = "oauth2 provider names must be unique"
        raise ConfigurationError(msg)

    logger.info("Authentication providers created", providers=names)
    return providers
