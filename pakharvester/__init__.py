# ==============================================================================
# PAK HARVESTER - SOURCE PACKAGE
# ==============================================================================
# Main package for PakHarvester.
#
# Subpackages:
#   - core: Configuration, paths, sprite cataloging
#   - extractors: Container parsers, image sniffing, resolver
#
# Entry points:
#   - main.py: Launcher
#   - pakharvester/cli.py: Command-line interface
# ==============================================================================

__version__ = "1.0.0"
__description__ = "Sprite extraction for undocumented game PAK containers"

# Convenience imports
from .extractors import PakReader, ContainerResolver, SpriteEntry, SpriteContainer, load_pak
from .core import SpriteCatalog, get_config

__all__ = [
    '__version__',
    '__description__',

    # Extractors
    'PakReader',
    'ContainerResolver',
    'SpriteEntry',
    'SpriteContainer',
    'load_pak',

    # Core
    'SpriteCatalog',
    'get_config',
]
