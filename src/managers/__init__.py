"""
Managers for configuration and startup assets
"""

from .config_manager import ConfigManager
from .asset_manager import AssetManager

__all__ = ['ConfigManager', 'AssetManager']
