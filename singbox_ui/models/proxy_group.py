"""
Proxy group model mirrored from the ``/proxies`` endpoint.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ProxyGroupType(Enum):
    """Group types the client can drive."""
    SELECTOR = "Selector"
    URLTEST = "URLTest"


# Proxy types that are not real upstream nodes
NON_NODE_TYPES = frozenset({'direct', 'block', 'dns-out', 'DIRECT', 'REJECT'})


@dataclass(frozen=True)
class ProxyGroup:
    """
    A selector or url-test group.

    Attributes:
        name: Group tag
        type: Group type
        members: Member tags in remote order
        active: Currently selected member (None if unknown)
    """
    name: str
    type: ProxyGroupType
    members: Tuple[str, ...] = ()
    active: Optional[str] = None

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> Optional['ProxyGroup']:
        """
        Create a group from one entry of the proxies map.

        Returns:
            ProxyGroup, or None if the entry is not a Selector/URLTest group
        """
        try:
            group_type = ProxyGroupType(data.get('type'))
        except ValueError:
            return None
        return cls(
            name=name,
            type=group_type,
            members=tuple(data.get('all') or ()),
            active=data.get('now') or None
        )

    def with_active(self, member: str) -> 'ProxyGroup':
        return replace(self, active=member)

    def is_selectable(self) -> bool:
        """Only selector groups accept a manual choice."""
        return self.type == ProxyGroupType.SELECTOR


def parse_proxy_groups(payload: Dict[str, Any]) -> Dict[str, ProxyGroup]:
    """Extract Selector/URLTest groups from a ``GET /proxies`` payload."""
    groups = {}
    for name, entry in (payload.get('proxies') or {}).items():
        if not isinstance(entry, dict):
            continue
        group = ProxyGroup.from_dict(name, entry)
        if group is not None:
            groups[name] = group
    return groups


def count_nodes(payload: Dict[str, Any]) -> int:
    """Count real upstream nodes in a ``GET /proxies`` payload."""
    proxies = payload.get('proxies') or {}
    return sum(
        1 for entry in proxies.values()
        if isinstance(entry, dict) and entry.get('type') not in NON_NODE_TYPES
    )

