"""ACL decision engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from transmission_proxy.acl.models import AclDecision
from transmission_proxy.observability.logging import get_logger


if TYPE_CHECKING:
    from transmission_proxy.acl.models import AclPolicy
    from transmission_proxy.auth.identity import Identity

logger = get_logger(__name__)


class AclEngine:
    """Evaluates a frozen policy against (identity, method) pairs.

    The first rule whose identities match decides; no later rule is looked
    at. A matched allow rule that does not grant the method denies that call
    only. No match at all denies. Evaluation has no side effects besides a
    debug log line.
    """

    def __init__(self, policy: AclPolicy) -> None:
        self.policy = policy

    def decide(self, identity: Identity, method: str) -> AclDecision:
        for index, rule in enumerate(self.policy.rules):
            if not rule.matches(identity):
                continue

            if not rule.permits(method):
                decision = AclDecision.deny(rule_index=index)
            elif rule.is_unrestricted:
                decision = AclDecision.allow(rule_index=index)
            else:
                download_dir = None
                if rule.is_confined:
                    download_dir = rule.download_dir or identity.directory_name
                decision = AclDecision.allow(
                    download_dir=download_dir,
                    rule_index=index,
                    tracker_rules=rule.tracker_rules,
                )

            logger.debug(
                "ACL decision",
                identity=str(identity),
                method=method,
                allowed=decision.allowed,
                rule=index,
            )
            return decision

        logger.debug("ACL default deny", identity=str(identity), method=method)
        return AclDecision.deny()
