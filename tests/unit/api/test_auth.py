"""Unit tests for login, logout and OAuth2 callback routes."""

from __future__ import annotations

import httpx
import pytest
import respx

from tests.conftest import basic_header
from transmission_proxy.api.endpoints.auth import safe_redirect


pytestmark = pytest.mark.unit

LOGIN_COOKIE = "_transmission_proxy_login"
IDENTITY_COOKIE = "_transmission_proxy"


def _set_cookies(response: httpx.Response) -> str:
    return "\n".join(response.headers.get_list("set-cookie"))


class TestSafeRedirect:
    """Tests for post-login destinations."""

    @pytest.mark.parametrize(
        ("target", "expected"),
        [
            ("/transmission/web/", "/transmission/web/"),
            (None, "/default"),
            ("", "/default"),
            ("https://evil.test/", "/default"),
            ("//evil.test/", "/default"),
            ("/\\evil.test", "/default"),
        ],
    )
    def test_safe_redirect(self, target: str | None, expected: str) -> None:
        """Should only allow local absolute paths."""
        assert safe_redirect(target, "/default") == expected


class TestLogin:
    """Tests for the login route."""

    async def test_lists_providers(self, client: httpx.AsyncClient) -> None:
        """Should list visible providers with their login URLs."""
        response = await client.get("/transmission/login")

        assert response.status_code == 200
        body = response.json()
        assert body["redirect_to"] == "/transmission/web/"
        assert body["providers"] == [
            {
                "name": "basic",
                "type": "basic",
                "login_url": "/transmission/auth/basic?redirect_to=%2Ftransmission%2Fweb%2F",
            },
            {
                "name": "google",
                "type": "oauth2",
                "login_url": "/transmission/auth/google/login?redirect_to=%2Ftransmission%2Fweb%2F",
            },
        ]

    async def test_authenticated_caller_redirected(self, client: httpx.AsyncClient) -> None:
        """Should send logged-in callers straight to their destination."""
        response = await client.get(
            "/transmission/login",
            params={"redirect_to": "/transmission/web/#files"},
            headers={"Authorization": basic_header("admin", "admin-secret")},
        )

        assert response.status_code == 302
        assert response.headers["location"] == "/transmission/web/#files"


class TestBasicLogin:
    """Tests for the Basic login route."""

    async def test_challenges_without_credentials(self, client: httpx.AsyncClient) -> None:
        """Should make the browser prompt for credentials."""
        response = await client.get("/transmission/auth/basic")

        assert response.status_code == 401
        assert "www-authenticate" in response.headers

    async def test_sets_identity_cookie(self, client: httpx.AsyncClient) -> None:
        """Should set a strict, HTTP-only cookie and redirect."""
        response = await client.get(
            "/transmission/auth/basic",
            params={"redirect_to": "/transmission/web/"},
            headers={"Authorization": basic_header("admin", "admin-secret")},
        )

        assert response.status_code == 302
        assert response.headers["location"] == "/transmission/web/"
        cookies = _set_cookies(response)
        assert f"{IDENTITY_COOKIE}=" in cookies
        assert "HttpOnly" in cookies
        assert "SameSite=strict" in cookies
        assert "Path=/transmission" in cookies

    async def test_rejects_wrong_password(self, client: httpx.AsyncClient) -> None:
        """Should answer 401 without a cookie."""
        response = await client.get(
            "/transmission/auth/basic",
            headers={"Authorization": basic_header("admin", "wrong")},
        )

        assert response.status_code == 401
        assert IDENTITY_COOKIE not in _set_cookies(response)

    async def test_ignores_foreign_redirect(self, client: httpx.AsyncClient) -> None:
        """Should not redirect off-site after login."""
        response = await client.get(
            "/transmission/auth/basic",
            params={"redirect_to": "https://evil.test/"},
            headers={"Authorization": basic_header("admin", "admin-secret")},
        )

        assert response.headers["location"] == "/transmission/web/"


class TestLogout:
    """Tests for the logout route."""

    async def test_clears_cookie(self, client: httpx.AsyncClient) -> None:
        """Should expire the identity cookie."""
        response = await client.get("/transmission/logout")

        assert response.status_code == 302
        assert response.headers["location"] == "/transmission/login"
        cookies = _set_cookies(response)
        assert f"{IDENTITY_COOKIE}=" in cookies
        assert "Max-Age=0" in cookies


class TestOAuth2Flow:
    """Tests for the OAuth2 login and callback routes."""

    async def _login(self, client: httpx.AsyncClient) -> tuple[str, str]:
        response = await client.get(
            "/transmission/auth/google/login",
            params={"redirect_to": "/transmission/web/"},
        )
        assert response.status_code == 302
        location = httpx.URL(response.headers["location"])
        state = location.params["state"]
        return state, response.cookies[LOGIN_COOKIE]

    async def test_login_redirects_to_issuer(self, client: httpx.AsyncClient) -> None:
        """Should redirect to the issuer and remember the state in a lax cookie."""
        response = await client.get("/transmission/auth/google/login")

        location = httpx.URL(response.headers["location"])
        assert location.host == "issuer.test"
        assert location.params["redirect_uri"] == (
            "http://proxy.test/transmission/auth/google/callback"
        )
        cookies = _set_cookies(response)
        assert f"{LOGIN_COOKIE}={location.params['state']}" in cookies
        assert "SameSite=lax" in cookies

    async def test_unknown_provider(self, client: httpx.AsyncClient) -> None:
        """Should answer 401 for a provider that is not configured."""
        response = await client.get("/transmission/auth/github/login")

        assert response.status_code == 401

    async def test_callback_sets_identity(
        self,
        client: httpx.AsyncClient,
        mocked: respx.MockRouter,
    ) -> None:
        """Should complete the login, set the identity cookie and redirect."""
        mocked.post("https://issuer.test/token").mock(
            return_value=httpx.Response(200, json={"access_token": "at"})
        )
        mocked.get("https://issuer.test/userinfo").mock(
            return_value=httpx.Response(200, json={"email": "bob@example.org"})
        )
        state, login_cookie = await self._login(client)

        response = await client.get(
            "/transmission/auth/google/callback",
            params={"state": state, "code": "code-1"},
            headers={"Cookie": f"{LOGIN_COOKIE}={login_cookie}"},
        )

        assert response.status_code == 302
        assert response.headers["location"] == "/transmission/web/"
        cookies = _set_cookies(response)
        assert f"{IDENTITY_COOKIE}=" in cookies
        assert f'{LOGIN_COOKIE}=""' in cookies or f"{LOGIN_COOKIE}=;" in cookies

    async def test_callback_from_other_browser(
        self,
        client: httpx.AsyncClient,
        mocked: respx.MockRouter,
    ) -> None:
        """Should reject a callback without the matching login cookie."""
        token = mocked.post("https://issuer.test/token").mock(
            return_value=httpx.Response(200, json={"access_token": "at"})
        )
        state, _ = await self._login(client)
        client.cookies.clear()

        response = await client.get(
            "/transmission/auth/google/callback",
            params={"state": state, "code": "code-1"},
        )

        assert response.status_code == 401
        assert token.call_count == 0

    async def test_callback_with_error(self, client: httpx.AsyncClient) -> None:
        """Should answer 401 when the issuer reports an error."""
        response = await client.get(
            "/transmission/auth/google/callback",
            params={"error": "access_denied"},
        )

        assert response.status_code == 401
