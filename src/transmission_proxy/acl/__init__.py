"""Access control.

Usage:
    from transmission_proxy.acl import AclEngine

    decision = AclEngine(settings.acl).decide(identity, "torrent-get")
"""

from transmission_proxy.acl.engine import AclEngine
from transmission_proxy.acl.models import (
    ALL_METHODS,
    AclDecision,
    AclIdentity,
    AclPolicy,
    AclRule,
    TrackerRule,
)


__all__ = [
    "ALL_METHODS",
    "AclDecision",
    "AclEngine",
    "AclIdentity",
    "AclPolicy",
    "AclRule",
    "TrackerRule",
]
