# ==============================================================================
# EXTRACTORS MODULE INIT
# ==============================================================================
# Container parsing for PakHarvester.
#
# This package contains:
#   - BaseContainerParser: Abstract base class for parser strategies
#   - ParserRegistry: Priority-ordered registry of strategies
#   - Strict parsers: legacy <Pak, indexed PACK, SPRITEPACK
#   - Heuristic parsers: signature sweep, flat chunk sweep, raw image
#   - ImageSniffer / signature scanner: payload validation helpers
#   - ContainerResolver / PakReader: run the strategy table on a file
#
# Adding a new container revision:
#   1. Create a parser class (see strict_parsers.py for examples)
#   2. Call ParserRegistry.register(MyParser) at module level
#   3. Import the module here
#
# Usage:
#   from pakharvester.extractors import PakReader
#   reader = PakReader()
#   if reader.read_file("sprites.pak"):
#       for entry in reader.entries():
#           entry.export_to(f"{entry.name}.png", "PNG")
# ==============================================================================

# Import base classes first (required by the parser modules)
from .base_extractor import (
    BaseContainerParser, ParserRegistry, ParserSettings, ParseOutcome, ParseStatus,
    PakError, PakIOError, UnrecognizedFormatError,
)
from .sprite_entry import SpriteEntry, SpriteContainer
from .image_sniffer import ImageSniffer, SniffResult

# Import parser modules (each one registers its parsers, in priority order)
from .strict_parsers import LegacyPakParser, IndexedPackParser, SpritePackParser
from .heuristic_parsers import SignatureSweepParser, FlatChunkParser, RawImageParser

from .pak_reader import ContainerResolver, PakReader, load_pak

# Public exports
__all__ = [
    # Base classes
    'BaseContainerParser',
    'ParserRegistry',
    'ParserSettings',
    'ParseOutcome',
    'ParseStatus',

    # Errors
    'PakError',
    'PakIOError',
    'UnrecognizedFormatError',

    # Data
    'SpriteEntry',
    'SpriteContainer',
    'ImageSniffer',
    'SniffResult',

    # Strict parsers
    'LegacyPakParser',
    'IndexedPackParser',
    'SpritePackParser',

    # Heuristic parsers
    'SignatureSweepParser',
    'FlatChunkParser',
    'RawImageParser',

    # Reading
    'ContainerResolver',
    'PakReader',
    'load_pak',
]


# ==============================================================================
# CONVENIENCE FUNCTION
# ==============================================================================
def list_parsers() -> dict:
    """
    Get the strategy table in try order.

    Returns:
        Dict mapping parser IDs to format names

    Example:
        >>> list_parsers()
        {'legacy_pak': 'Legacy <Pak archive', 'indexed_pack': ..., ...}
    """
    return {parser.parser_id: parser.format_name for parser in ParserRegistry.create_parsers()}
