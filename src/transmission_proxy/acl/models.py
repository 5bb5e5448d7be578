"""ACL policy models.

A policy is an ordered list of rules, loaded once and frozen:

    rules:
      - identities: [{provider: basic, name: admin}]
      - identities: [{provider: basic, name: readonly}]
        allowed_methods: [torrent-get, session-get, session-stats, free-space]
      - identities: [{provider: basic, name: alice}]
        tracker_rules:
          - {from: '^http://tracker\\.lan/', to: 'https://tracker.example.org/'}
      - deny: true

``allowed_methods`` absent, empty or ``"all"`` grants every method; use
``deny`` to block access. A rule without identities matches every caller.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from transmission_proxy.auth.identity import Identity, ProviderType
from transmission_proxy.rpc.models import RpcMethod


ALL_METHODS = "all"


class AclIdentity(BaseModel):
    """Identity matcher; comparison is exact and case-sensitive.

    Attributes:
        provider: Provider kind to match.
        name: Identity name (ignored for anonymous matchers).
        oauth2: OAuth2 provider label, required when provider is oauth2.
    """

    provider: ProviderType
    name: str = ""
    oauth2: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_provider_fields(self) -> AclIdentity:
        if self.provider is ProviderType.OAUTH2 and not self.oauth2:
            msg = "oauth2 identity matchers need the provider label in 'oauth2'"
            raise ValueError(msg)
        if self.provider is not ProviderType.OAUTH2 and self.oauth2 is not None:
            msg = "'oauth2' is only valid on oauth2 identity matchers"
            raise ValueError(msg)
        if self.provider is not ProviderType.ANONYMOUS and not self.name:
            msg = f"{self.provider} identity matchers need a name"
            raise ValueError(msg)
        return self

    def matches(self, identity: Identity) -> bool:
        if identity.provider.type is not self.provider:
            return False
        if self.provider is ProviderType.ANONYMOUS:
            return True
        return identity.provider.label == self.oauth2 and identity.name == self.name


class TrackerRule(BaseModel):
    """Announce URL rewrite.

    ``to`` uses Python replacement syntax (``\\1``, ``\\g<name>``). Only the
    first match is replaced. A rewrite that leaves an empty URL drops the
    tracker.
    """

    pattern: re.Pattern[str] = Field(alias="from")
    to: str

    model_config = {"frozen": True, "populate_by_name": True}

    def apply(self, announce: str) -> str | None:
        return self.pattern.sub(self.to, announce, count=1) or None


def rewrite_announce(announce: str, rules: tuple[TrackerRule, ...]) -> str | None:
    """Run ``announce`` through every rule in order; None means removed."""
    result: str | None = announce
    for rule in rules:
        if result is None:
            break
        result = rule.apply(result)
    return result


class AclRule(BaseModel):
    """One ordered policy entry.

    Attributes:
        identities: Matchers; empty matches every identity.
        allowed_methods: Methods granted by an allow rule.
        download_dir: Subdirectory of the download root to confine matched
            identities to. Defaults to the identity's own directory for
            every allow rule that restricts methods.
        deny: Deny every call from matched identities.
        tracker_rules: Announce rewrites applied to added torrents and to
            tracker edits.
    """

    identities: tuple[AclIdentity, ...] = ()
    allowed_methods: tuple[str, ...] | Literal["all"] | None = None
    download_dir: str | None = None
    deny: bool = False
    tracker_rules: tuple[TrackerRule, ...] = ()

    model_config = {"frozen": True}

    @field_validator("allowed_methods")
    @classmethod
    def validate_methods(
        cls,
        value: tuple[str, ...] | str | None,
    ) -> tuple[str, ...] | str | None:
        if value is None or value == ALL_METHODS:
            return value
        known = {method.value for method in RpcMethod}
        unknown = sorted(set(value) - known)
        if unknown:
            msg = f"unknown RPC methods: {', '.join(unknown)}"
            raise ValueError(msg)
        return value

    @field_validator("download_dir")
    @classmethod
    def validate_download_dir(cls, value: str | None) -> str | None:
        if value is None:
            return value
        path = PurePosixPath(value)
        if not value or path.is_absolute() or ".." in path.parts:
            msg = f"download_dir must be a relative path inside the download root: {value!r}"
            raise ValueError(msg)
        return value

    @property
    def allows_all_methods(self) -> bool:
        return not self.allowed_methods or self.allowed_methods == ALL_METHODS

    @property
    def is_confined(self) -> bool:
        """Whether matched identities are kept inside a download directory."""
        return self.download_dir is not None or not self.allows_all_methods

    @property
    def is_unrestricted(self) -> bool:
        """Allow rule granting every method with no filtering at all."""
        return not self.deny and not self.is_confined and not self.tracker_rules

    def matches(self, identity: Identity) -> bool:
        if not self.identities:
            return True
        return any(matcher.matches(identity) for matcher in self.identities)

    def permits(self, method: str) -> bool:
        if self.deny:
            return False
        if self.allows_all_methods:
            return True
        return method in self.allowed_methods  # type: ignore[operator]


class AclPolicy(BaseModel):
    """Ordered rule list; evaluation is first-match-wins, default deny."""

    rules: tuple[AclRule, ...] = ()

    model_config = {"frozen": True}


class AclDecision(BaseModel):
    """Outcome of evaluating one call.

    Attributes:
        allowed: Whether the call may be forwarded.
        download_dir: Subdirectory of the download root the call is confined
            to; None on an allow means unrestricted.
        rule_index: Index of the rule that decided, None for default deny.
        tracker_rules: Announce rewrites to apply to the call.
    """

    allowed: bool
    download_dir: str | None = None
    rule_index: int | None = None
    tracker_rules: tuple[TrackerRule, ...] = ()

    model_config = {"frozen": True}

    @classmethod
    def allow(
        cls,
        download_dir: str | None = None,
        rule_index: int | None = None,
        tracker_rules: tuple[TrackerRule, ...] = (),
    ) -> AclDecision:
        return cls(
            allowed=True,
            download_dir=download_dir,
            rule_index=rule_index,
            tracker_rules=tracker_rules,
        )

    @classmethod
    def deny(cls, rule_index: int | None = None) -> AclDecision:
        return cls(allowed=False, rule_index=rule_index)

    @property
    def is_unrestricted(self) -> bool:
        return self.allowed and self.download_dir is None and not self.tracker_rules
