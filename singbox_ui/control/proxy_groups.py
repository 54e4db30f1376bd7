"""
Proxy group selection.

The local ``active`` member of a group changes only after the manager
confirms the selection; a failed request leaves local state as it was.
"""

import logging
import threading
from typing import Dict, List, Optional

from ..api.channel import RemoteStateChannel, Resource
from ..api.client import ControlPlaneClient
from ..api.errors import ClientError, ValidationError
from ..error_handling.error_manager import ErrorManager
from ..models.proxy_group import ProxyGroup, count_nodes, parse_proxy_groups


class ProxyGroupController:
    """Mirrors Selector/URLTest groups and switches their active member."""

    def __init__(self, client: ControlPlaneClient, channel: RemoteStateChannel,
                 error_manager: Optional[ErrorManager] = None):
        self.logger = logging.getLogger(__name__)
        self.client = client
        self.channel = channel
        self.error_manager = error_manager or ErrorManager()

        self._lock = threading.RLock()
        self._groups: Dict[str, ProxyGroup] = {}
        self._node_count = 0

    def refresh(self) -> bool:
        """
        Reload groups from the manager.

        Returns:
            True if refreshed; on failure the previous mirror is kept
        """
        result = self.channel.fetch_once(Resource.PROXIES)
        if not result.ok:
            self.logger.debug(f"Proxy refresh failed: {result.error}")
            return False

        groups = parse_proxy_groups(result.value)
        with self._lock:
            self._groups = groups
            self._node_count = count_nodes(result.value)
        return True

    def get_groups(self) -> List[ProxyGroup]:
        with self._lock:
            return list(self._groups.values())

    def get_group(self, name: str) -> Optional[ProxyGroup]:
        with self._lock:
            return self._groups.get(name)

    @property
    def node_count(self) -> int:
        with self._lock:
            return self._node_count

    def select(self, group_name: str, member_tag: str) -> bool:
        """
        Make ``member_tag`` the active member of ``group_name``.

        Returns:
            True if the manager accepted the selection
        """
        group = self.get_group(group_name)
        if group is not None and group.members and member_tag not in group.members:
            self.error_manager.report(
                ValidationError(f"{member_tag} is not a member of {group_name}"),
                "Select proxy",
                context={'group': group_name, 'member': member_tag}
            )
            return False

        try:
            self.client.select_proxy(group_name, member_tag)
        except ClientError as e:
            self.error_manager.report(e, "Select proxy",
                                      context={'group': group_name, 'member': member_tag})
            return False

        with self._lock:
            current = self._groups.get(group_name)
            if current is not None:
                self._groups[group_name] = current.with_active(member_tag)

        self.logger.info(f"Selected {member_tag} in {group_name}")
        return True
