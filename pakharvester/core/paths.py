# ==============================================================================
# PAK HARVESTER - PATH UTILITIES
# ==============================================================================
# Centralized path handling for per-user data and export locations.
#
# User data (config) goes in the platform's application data folder. The
# PAKHARVESTER_HOME environment variable overrides it on every platform.
#
# Usage:
#   from pakharvester.core.paths import Paths
#   config_path = Paths.get_config_path()
# ==============================================================================

import os
import sys
from typing import Optional


class Paths:
    """
    Centralized path management for PakHarvester.

    User data (config) is stored in:
    - Windows: %APPDATA%/PakHarvester/
    - Linux: ~/.config/PakHarvester/
    - macOS: ~/Library/Application Support/PakHarvester/
    """

    # Application name for folder creation
    APP_NAME = "PakHarvester"

    # Environment override for the user data directory
    HOME_ENV = "PAKHARVESTER_HOME"

    # Cached platform default for the user data directory
    _user_data_dir: Optional[str] = None

    @classmethod
    def get_user_data_dir(cls, create: bool = True) -> str:
        """
        Get the user data directory.

        Args:
            create: Create the directory if it doesn't exist

        Returns:
            Absolute path to user data directory
        """
        override = os.environ.get(cls.HOME_ENV)
        if override:
            path = os.path.abspath(override)
        else:
            if cls._user_data_dir is None:
                if sys.platform == 'win32':
                    base = os.environ.get('APPDATA', os.path.expanduser('~'))
                    cls._user_data_dir = os.path.join(base, cls.APP_NAME)
                elif sys.platform == 'darwin':
                    cls._user_data_dir = os.path.join(
                        os.path.expanduser('~'),
                        'Library', 'Application Support', cls.APP_NAME
                    )
                else:
                    base = os.environ.get('XDG_CONFIG_HOME',
                                          os.path.join(os.path.expanduser('~'), '.config'))
                    cls._user_data_dir = os.path.join(base, cls.APP_NAME)
            path = cls._user_data_dir

        if create:
            os.makedirs(path, exist_ok=True)
        return path

    @classmethod
    def get_config_path(cls) -> str:
        """
        Get the path to the configuration file.

        Returns:
            Absolute path to config.json
        """
        return os.path.join(cls.get_user_data_dir(create=False), 'config.json')

    @classmethod
    def get_default_output_dir(cls) -> str:
        """
        Get a sensible default output directory.

        Returns:
            Path to Documents/PakHarvester or ~/PakHarvester
        """
        if sys.platform == 'win32':
            docs = os.path.join(os.path.expanduser('~'), 'Documents')
        else:
            docs = os.path.expanduser('~')

        return os.path.join(docs, cls.APP_NAME)
