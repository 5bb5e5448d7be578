"""Authentication provider models.

This module defines provider configuration and the credential shapes that
providers accept.
"""

from __future__ import annotations

from typing import Any

from jsonpath_ng import parse as parse_jsonpath
from jsonpath_ng.exceptions import JSONPathError
from pydantic import BaseModel, Field, field_validator, model_validator

from transmission_proxy.auth.identity import Identity


# =============================================================================
# Configuration
# =============================================================================


class BasicUser(BaseModel):
    """A static user with a bcrypt password hash."""

    username: str = Field(..., min_length=1)
    password_hash: str = Field(..., min_length=1, description="bcrypt hash ($2b$...)")

    model_config = {"frozen": True}


class BasicProviderConfig(BaseModel):
    """Static username/password provider."""

    enabled: bool = True
    visible: bool = True
    users: tuple[BasicUser, ...] = ()

    model_config = {"frozen": True}


class OAuth2ProviderConfig(BaseModel):
    """Authorization-code OAuth2 provider.

    Attributes:
        name: Provider label, used in URLs, identities and ACL matchers.
        email_path: JSONPath applied to the userinfo document; the first
            match is the identity name.
    """

    name: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9_.-]+$")
    enabled: bool = True
    visible: bool = True
    auth_url: str
    token_url: str
    userinfo_url: str
    client_id: str
    client_secret: str = ""
    email_path: str = "$.email"
    scopes: tuple[str, ...] = ("openid", "email")

    model_config = {"frozen": True}

    @field_validator("email_path")
    @classmethod
    def validate_email_path(cls, value: str) -> str:
        try:
            parse_jsonpath(value)
        except JSONPathError as e:
            msg = f"invalid email_path {value!r}: {e}"
            raise ValueError(msg) from e
        return value


class ProvidersConfig(BaseModel):
    """All configured providers, in resolution order.

    ``basic`` accepts either a single provider mapping or a list of them.
    """

    basic: tuple[BasicProviderConfig, ...] = ()
    oauth2: tuple[OAuth2ProviderConfig, ...] = ()

    model_config = {"frozen": True}

    @field_validator("basic", mode="before")
    @classmethod
    def coerce_basic(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return [value]
        return value

    @model_validator(mode="after")
    def validate_unique_oauth2_names(self) -> ProvidersConfig:
        names = [provider.name for provider in self.oauth2]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            msg = f"duplicate oauth2 provider names: {', '.join(duplicates)}"
            raise ValueError(msg)
        return self


# =============================================================================
# Credentials
# =============================================================================


class BasicCredentials(BaseModel):
    """Decoded Basic Authorization header."""

    username: str
    password: str = Field(..., repr=False)

    model_config = {"frozen": True}


class OAuth2Callback(BaseModel):
    """Parameters of a completed OAuth2 redirect.

    Attributes:
        provider: Label of the provider the callback was addressed to.
        state: State echoed back by the issuer.
        code: Authorization code.
        browser_state: State carried by the login cookie of the browser that
            started the flow.
    """

    provider: str
    state: str
    code: str = Field(..., repr=False)
    browser_state: str | None = None

    model_config = {"frozen": True}


Credentials = BasicCredentials | OAuth2Callback


class AuthorizationRequest(BaseModel):
    """Redirect issued to start an OAuth2 login."""

    url: str
    state: str

    model_config = {"frozen": True}


class CompletedLogin(BaseModel):
    """Outcome of an OAuth2 callback."""

    identity: Identity
    return_to: str | None = None

    model_config = {"frozen": True}
