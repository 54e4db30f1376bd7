"""
Configuration editing against the manager.

Operator-entered values are parsed and validated locally first; a
ValidationError is reported without sending anything. Remote failures
are reported and leave the remote configuration as the manager has it.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union

from ..api.client import CONFIG_SECTIONS, ControlPlaneClient
from ..api.errors import ClientError, ValidationError
from ..config.inbounds import synthesize
from ..error_handling.error_manager import ErrorManager
from ..models import outbound as outbound_ops
from ..models.app_config import AppConfig
from ..models.inbound import InboundSpec, inbounds_to_payload


class ConfigEditor:
    """Loads and saves the app config and the sing-box config sections."""

    def __init__(self, client: ControlPlaneClient,
                 error_manager: Optional[ErrorManager] = None):
        self.logger = logging.getLogger(__name__)
        self.client = client
        self.error_manager = error_manager or ErrorManager()

    # App config

    def load_app_config(self) -> Optional[AppConfig]:
        try:
            return self.client.get_app_config()
        except ClientError as e:
            self.error_manager.report(e, "Load app config")
            return None

    def save_app_config(self, config: Union[AppConfig, Dict[str, Any]]) -> Optional[List[InboundSpec]]:
        """
        Save the app config and regenerate the inbound section from it.

        Args:
            config: AppConfig or a form dict of its fields

        Returns:
            The synthesized inbounds, or None if anything failed
        """
        try:
            if not isinstance(config, AppConfig):
                config = self._parse_app_config(config)
            inbounds = synthesize(config)

            self.client.set_app_config(config)
            self.client.set_inbounds(inbounds_to_payload(inbounds))
        except ClientError as e:
            self.error_manager.report(e, "Save app config")
            return None

        self.logger.info(f"Saved app config ({config.proxy_mode.value} mode, "
                         f"{len(inbounds)} inbounds)")
        return inbounds

    # Sections

    def load_section(self, section: str) -> Any:
        try:
            self._check_section(section)
            return self.client.get_config_section(section)
        except ClientError as e:
            self.error_manager.report(e, f"Load {section}")
            return None

    def save_section(self, section: str, value: Any) -> bool:
        """
        Save one config section.

        Args:
            section: One of dns, route, outbounds, inbounds
            value: Decoded value, or the editor's JSON text

        Returns:
            True if the manager accepted it
        """
        try:
            self._check_section(section)
            if isinstance(value, (str, bytes)):
                value = parse_json(value)
            self.client.set_config_section(section, value)
        except ClientError as e:
            self.error_manager.report(e, f"Save {section}")
            return False

        self.logger.info(f"Saved {section} config")
        return True

    # Outbounds

    def delete_outbound(self, tag: str) -> bool:
        """Delete a node and drop it from every group."""
        try:
            outbounds = self.client.get_outbounds()
            if not any(o.get('tag') == tag for o in outbounds):
                raise ValidationError(f"Unknown outbound: {tag}")
            self.client.set_outbounds(outbound_ops.remove_outbound(outbounds, tag))
        except ClientError as e:
            self.error_manager.report(e, "Delete outbound", context={'tag': tag})
            return False

        self.logger.info(f"Deleted outbound {tag}")
        return True

    def add_outbound(self, outbound: Union[str, Dict[str, Any]]) -> bool:
        """Add a node (dict or editor JSON) and list it in every group."""
        try:
            if isinstance(outbound, (str, bytes)):
                outbound = parse_json(outbound)
            if not isinstance(outbound, dict):
                raise ValidationError("Outbound must be a JSON object")
            if not outbound.get('type'):
                raise ValidationError("Outbound must have a type")

            outbounds = self.client.get_outbounds()
            try:
                updated = outbound_ops.add_outbound(outbounds, outbound)
            except ValueError as e:
                raise ValidationError(str(e)) from e
            self.client.set_outbounds(updated)
        except ClientError as e:
            self.error_manager.report(e, "Add outbound")
            return False

        self.logger.info(f"Added outbound {outbound['tag']}")
        return True

    def import_subscription(self, url: str, name: str = "") -> Optional[int]:
        """
        Import nodes from a subscription URL.

        Returns:
            Number of imported nodes, or None on failure
        """
        try:
            url = (url or "").strip()
            if not url:
                raise ValidationError("Subscription URL is required")
            imported = self.client.subscribe(url, name.strip() or None)
        except ClientError as e:
            self.error_manager.report(e, "Import subscription", context={'url': url})
            return None

        self.logger.info(f"Imported {imported} nodes from subscription")
        return imported

    @staticmethod
    def _check_section(section: str):
        if section not in CONFIG_SECTIONS:
            raise ValidationError(f"Unknown config section: {section}")

    @staticmethod
    def _parse_app_config(data: Dict[str, Any]) -> AppConfig:
        try:
            return AppConfig.from_dict(data)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Invalid app config: {e}") from e


def parse_json(text: Union[str, bytes]) -> Any:
    """Parse editor text, raising ValidationError on malformed JSON."""
    try:
        return json.loads(text)
    except ValueError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
