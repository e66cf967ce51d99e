# ==============================================================================
# CORE MODULE INIT
# ==============================================================================
# Core application modules for PakHarvester.
#
# This package contains:
#   - Config: Application configuration management
#   - Paths: Per-user data and output locations
#   - SpriteCatalog: Folder scanning and filename-based categories
#
# Usage:
#   from pakharvester.core import SpriteCatalog, get_config
# ==============================================================================

from .config import Config, get_config
from .paths import Paths
from .cataloger import SpriteCatalog, SpriteFile, ScanFailure, DEFAULT_CATEGORIES

__all__ = [
    # Configuration
    'Config',
    'get_config',

    # Paths
    'Paths',

    # Cataloging
    'SpriteCatalog',
    'SpriteFile',
    'ScanFailure',
    'DEFAULT_CATEGORIES',
]
