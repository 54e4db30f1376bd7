"""
Settings manager for loading and saving client settings.
"""

import os
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from .client_settings import ClientSettings

ENV_BASE_URL = 'SINGBOX_UI_BASE_URL'
ENV_LOG_LEVEL = 'SINGBOX_UI_LOG_LEVEL'


class SettingsManager:
    """
    Manages loading and saving of client settings.

    Handles settings persistence, fallback to defaults, and environment
    overrides.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the settings manager.

        Args:
            config_dir: Custom configuration directory path.
                       If None, uses default user config directory.
        """
        self.logger = logging.getLogger(__name__)

        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            self.config_dir = self._get_default_config_dir()

        self.config_file = self.config_dir / "singbox_ui_config.json"

    def _get_default_config_dir(self) -> Path:
        """Get the default configuration directory based on OS."""
        if os.name == 'nt':  # Windows
            config_base = os.environ.get('APPDATA', os.path.expanduser('~'))
        else:  # Unix-like systems
            config_base = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(config_base) / "singbox-ui-client"

    def load_settings(self) -> ClientSettings:
        """
        Load settings from the configuration file and environment.

        Returns:
            ClientSettings with loaded values, or defaults if the file
            is missing or invalid.
        """
        settings = self._load_file()
        return self._apply_environment(settings)

    def _load_file(self) -> ClientSettings:
        if not self.config_file.exists():
            self.logger.info("Configuration file not found, using defaults")
            return ClientSettings()

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

            settings = ClientSettings.from_dict(data)
            self.logger.info(f"Loaded settings from {self.config_file}")
            return settings

        except (json.JSONDecodeError, ValueError, TypeError, AttributeError) as e:
            self.logger.error(f"Failed to load settings from {self.config_file}: {e}")
            self.logger.info("Using default settings")
            return ClientSettings()
        except OSError as e:
            self.logger.error(f"Failed to read config file {self.config_file}: {e}")
            return ClientSettings()

    def _apply_environment(self, settings: ClientSettings) -> ClientSettings:
        overrides = {}
        if os.environ.get(ENV_BASE_URL):
            overrides['base_url'] = os.environ[ENV_BASE_URL]
        if os.environ.get(ENV_LOG_LEVEL):
            overrides['log_level'] = os.environ[ENV_LOG_LEVEL]
        if not overrides:
            return settings

        try:
            return replace(settings, **overrides)
        except ValueError as e:
            self.logger.error(f"Ignoring invalid environment override: {e}")
            return settings

    def save_settings(self, settings: ClientSettings) -> bool:
        """
        Save settings to the configuration file.

        Args:
            settings: ClientSettings object to save.

        Returns:
            True if saved successfully, False otherwise.
        """
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)

            # Keep the previous file as a backup
            if self.config_file.exists():
                backup_file = self.config_file.with_suffix('.json.bak')
                self.config_file.replace(backup_file)

            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(settings.to_dict(), f, indent=2)

            self.logger.info(f"Saved settings to {self.config_file}")
            return True

        except OSError as e:
            self.logger.error(f"Failed to save settings to {self.config_file}: {e}")
            return False

    def reset_to_defaults(self) -> ClientSettings:
        """Reset settings to defaults and save."""
        default_settings = ClientSettings()

        if self.save_settings(default_settings):
            self.logger.info("Reset configuration to defaults")

        return default_settings
