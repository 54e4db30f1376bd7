"""
Configuration for the sing-box UI client.

This module provides the client's own settings (loading, saving,
validation) and the synthesis of the remote inbound section from the
operator's proxy-mode choices.
"""

from .client_settings import ClientSettings
from .settings_manager import SettingsManager
from .inbounds import synthesize

__all__ = ['ClientSettings', 'SettingsManager', 'synthesize']
