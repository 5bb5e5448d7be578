"""Resolved caller identities.

An identity is the pair (provider, name) produced by an authentication
provider. It is recomputed for every request and never stored.
"""

from __future__ import annotations

import re
from enum import StrEnum

from pydantic import BaseModel


class ProviderType(StrEnum):
    """Kinds of identity source."""

    ANONYMOUS = "anonymous"
    BASIC = "basic"
    OAUTH2 = "oauth2"


class ProviderKind(BaseModel):
    """Provider that vouched for an identity.

    Attributes:
        type: Provider kind.
        label: Configured provider name, only set for OAuth2.
    """

    type: ProviderType
    label: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def basic(cls) -> ProviderKind:
        return cls(type=ProviderType.BASIC)

    @classmethod
    def oauth2(cls, label: str) -> ProviderKind:
        return cls(type=ProviderType.OAUTH2, label=label)

    def __str__(self) -> str:
        if self.label:
            return f"{self.type}:{self.label}"
        return str(self.type)


_SEPARATORS = re.compile(r"[/\\]")
_LEADING_DOTS = re.compile(r"^\.+")


def _path_component(raw: str) -> str:
    safe = _SEPARATORS.sub("_", raw)
    safe = _LEADING_DOTS.sub(lambda m: "_" * len(m.group()), safe)
    return safe or "_"


class Identity(BaseModel):
    """An authenticated (or anonymous) caller.

    Equality is structural on provider and name; names compare
    case-sensitively.
    """

    provider: ProviderKind
    name: str

    model_config = {"frozen": True}

    @property
    def is_anonymous(self) -> bool:
        return self.provider.type is ProviderType.ANONYMOUS

    @property
    def directory_name(self) -> str:
        """Deterministic per-identity subdirectory, relative to the root.

        Basic identities use their name. OAuth2 identities live under
        ``.oauth2/<label>/<name>`` and Anonymous under ``.anonymous``.
        Path separators and leading dots in every component become ``_``,
        so no Basic name can reach into the dotted namespaces.
        """
        if self.is_anonymous:
            return f".{ProviderType.ANONYMOUS}"
        if self.provider.type is ProviderType.OAUTH2:
            label = _path_component(self.provider.label or "")
            return f".{ProviderType.OAUTH2}/{label}/{_path_component(self.name)}"
        return _path_component(self.name)

    def __str__(self) -> str:
        if self.is_anonymous:
            return "anonymous"
        return f"{self.provider}/{self.name}"


ANONYMOUS = Identity(provider=ProviderKind(type=ProviderType.ANONYMOUS), name="")
