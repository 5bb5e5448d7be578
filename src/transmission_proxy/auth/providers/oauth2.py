"""OAuth2 authorization-code provider.

The login is a three-step flow:
- authorize: redirect the browser to the issuer with a fresh state token
  and an S256 PKCE challenge; the state is remembered server-side
- exchange: on callback, check the state and trade the code for an access
  token at the token endpoint
- userinfo: fetch the userinfo document and extract the identity name with
  the configured JSONPath
"""

from __future__ import annotations

import base64
import hashlib
import secrets
from typing import TYPE_CHECKING, Any

import httpx
from jsonpath_ng import parse as parse_jsonpath

from transmission_proxy.auth.identity import Identity, ProviderKind
from transmission_proxy.auth.providers.exceptions import (
    EmailPathError,
    ProviderDisabledError,
    StateMismatchError,
    TokenExchangeError,
    UserinfoError,
)
from transmission_proxy.auth.providers.models import (
    AuthorizationRequest,
    CompletedLogin,
    OAuth2Callback,
)
from transmission_proxy.observability.logging import get_logger


if TYPE_CHECKING:
    from transmission_proxy.auth.providers.models import (
        Credentials,
        OAuth2ProviderConfig,
    )
    from transmission_proxy.auth.providers.state import PendingLogin, PendingLoginStore

logger = get_logger(__name__)


def _pkce_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class OAuth2AuthProvider:
    """Authenticates users through an external OAuth2 issuer.

    Attributes:
        config: Provider configuration.
    """

    def __init__(
        self,
        config: OAuth2ProviderConfig,
        pending: PendingLoginStore,
        *,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            config: Provider configuration.
            pending: Store of in-flight logins, shared between providers.
            timeout: Timeout for issuer requests in seconds.
            http_client: Optional pre-built HTTP client (owned by the caller).
        """
        self.config = config
        self._pending = pending
        self._timeout = timeout
        self._email_path = parse_jsonpath(config.email_path)
        self._http_client = http_client
        self._owns_http_client = http_client is None

    @property
    def provider_name(self) -> str:
        return f"oauth2:{self.config.name}"

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.oauth2(self.config.name)

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def visible(self) -> bool:
        return self.config.visible

    def accepts(self, credentials: Credentials) -> bool:
        return isinstance(credentials, OAuth2Callback) and credentials.provider == self.config.name

    async def initialize(self) -> None:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers={"Accept": "application/json"},
            )
            self._owns_http_client = True
        logger.info(
            "OAuth2 provider initialized",
            provider=self.config.name,
            enabled=self.enabled,
        )

    async def shutdown(self) -> None:
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    # =========================================================================
    # Flow
    # =========================================================================

    async def authorize(
        self,
        redirect_uri: str,
        *,
        return_to: str | None = None,
    ) -> AuthorizationRequest:
        """Start a login and return the issuer URL to redirect to.

        Args:
            redirect_uri: Absolute callback URL registered with the issuer.
            return_to: Local path to send the browser to after the callback.

        Raises:
            ProviderDisabledError: If the provider is disabled.
        """
        if not self.enabled:
            msg = f"oauth2 provider {self.config.name} is disabled"
            raise ProviderDisabledError(msg)

        state = secrets.token_urlsafe(32)
        verifier = secrets.token_urlsafe(64)
        await self._pending.add(
            state,
            provider=self.config.name,
            code_verifier=verifier,
            redirect_uri=redirect_uri,
            return_to=return_to,
        )

        params = {
            "response_type": "code",
            "client_id": self.config.client_id,
            "redirect_uri": redirect_uri,
            "scope": " ".join(self.config.scopes),
            "state": state,
            "code_challenge": _pkce_challenge(verifier),
            "code_challenge_method": "S256",
        }
        url = httpx.URL(self.config.auth_url).copy_merge_params(params)
        return AuthorizationRequest(url=str(url), state=state)

    async def authenticate(self, credentials: Credentials) -> Identity:
        """Complete a login from its callback parameters."""
        completed = await self.complete(credentials)
        return completed.identity

    async def complete(self, credentials: Credentials) -> CompletedLogin:
        """Complete a login and return the identity with its return path.

        Raises:
            ProviderDisabledError: If the provider is disabled.
            StateMismatchError: If the state matches no pending login of this
                provider or differs from the browser's login cookie.
            TokenExchangeError: If the code cannot be exchanged.
            UserinfoError: If the userinfo document cannot be fetched.
            EmailPathError: If the email path yields no usable name.
        """
        if not isinstance(credentials, OAuth2Callback):
            msg = "oauth2 provider only accepts callbacks"
            raise TypeError(msg)

        if not self.enabled:
            msg = f"oauth2 provider {self.config.name} is disabled"
            raise ProviderDisabledError(msg)

        pending = await self._pending.pop(credentials.state)
        if (
            pending is None
            or pending.provider != self.config.name
            or credentials.browser_state != credentials.state
        ):
            logger.warning("OAuth2 callback with unknown state", provider=self.config.name)
            msg = "state does not match a pending login"
            raise StateMismatchError(msg)

        access_token = await self._exchange(credentials.code, pending)
        userinfo = await self._userinfo(access_token)
        name = self.extract_email(userinfo)

        logger.info("OAuth2 login completed", provider=self.config.name, name=name)
        return CompletedLogin(
            identity=Identity(provider=self.kind, name=name),
            return_to=pending.return_to,
        )

    def extract_email(self, userinfo: Any) -> str:
        """Apply the email path to a userinfo document."""
        matches = self._email_path.find(userinfo)
        if not matches:
            msg = f"email path {self.config.email_path} matched nothing"
            raise EmailPathError(msg)

        value = matches[0].value
        if not isinstance(value, str) or not value:
            msg = f"email path {self.config.email_path} did not yield a string"
            raise EmailPathError(msg)
        return value

    async def _exchange(self, code: str, pending: PendingLogin) -> str:
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": pending.redirect_uri,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code_verifier": pending.code_verifier,
        }

        try:
            response = await self._client().post(self.config.token_url, data=data)
        except httpx.RequestError as e:
            logger.warning("OAuth2 token endpoint unreachable", provider=self.config.name, error=str(e))
            msg = f"token endpoint unreachable: {e}"
            raise TokenExchangeError(msg) from e

        if not response.is_success:
            logger.warning(
                "OAuth2 token exchange rejected",
                provider=self.config.name,
                status_code=response.status_code,
            )
            msg = f"token endpoint returned HTTP {response.status_code}"
            raise TokenExchangeError(msg)

        try:
            body = response.json()
        except ValueError as e:
            msg = "token endpoint returned invalid JSON"
            raise TokenExchangeError(msg) from e

        token = body.get("access_token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            msg = "token endpoint response has no access_token"
            raise TokenExchangeError(msg)
        return token

    async def _userinfo(self, access_token: str) -> Any:
        try:
            response = await self._client().get(
                self.config.userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.RequestError as e:
            logger.warning("OAuth2 userinfo endpoint unreachable", provider=self.config.name, error=str(e))
            msg = f"userinfo endpoint unreachable: {e}"
            raise UserinfoError(msg) from e

        if not response.is_success:
            msg = f"userinfo endpoint returned HTTP {response.status_code}"
            raise UserinfoError(msg)

        try:
            return response.json()
        except ValueError as e:
            msg = "userinfo endpoint returned invalid JSON"
            raise UserinfoError(msg) from e

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            msg = f"oauth2 provider {self.config.name} is not initialized"
            raise RuntimeError(msg)
        return self._http_client
