# ==============================================================================
# BASE EXTRACTOR MODULE
# ==============================================================================
# Abstract base class that every container parser strategy implements, plus
# the ParserRegistry that keeps them in priority order.
#
# A parser strategy takes the full bytes of one file and reports a
# ParseOutcome:
#   - SUCCESS:   at least one entry recovered
#   - NO_MATCH:  header/shape did not fit this strategy
#   - MALFORMED: header fit, but an internal bound was violated
#
# Strict parsers encode an exact binary grammar; heuristic parsers have no
# grammar and only keep payloads the ImageSniffer accepts. The registry
# always hands out strict parsers before heuristic ones.
#
# To add a new container revision:
#   1. Subclass BaseContainerParser and implement the abstract members
#   2. Call ParserRegistry.register(MyParser) at module level
#   3. Import the module in extractors/__init__.py
#
# Example:
#   class MyPakParser(BaseContainerParser):
#       parser_id = "my_pak"
#       format_name = "My PAK"
#       is_strict = True
#       def attempt(self, data): ...
#
#   ParserRegistry.register(MyPakParser)
# ==============================================================================

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .image_sniffer import ImageSniffer
from .signature_scanner import DEFAULT_WINDOW_SIZE
from .sprite_entry import SpriteEntry


# ==============================================================================
# SANITY CEILINGS
# ==============================================================================

DEFAULT_MAX_ENTRY_COUNT = 10000
DEFAULT_MAX_NAME_LENGTH = 1024


# ==============================================================================
# ERRORS
# ==============================================================================
class PakError(Exception):
    """Base class for errors surfaced to callers of the reader."""


class PakIOError(PakError):
    """The input file could not be opened or read."""


class UnrecognizedFormatError(PakError):
    """Every parser strategy was tried and none recovered an entry."""


# ==============================================================================
# PARSE OUTCOME
# ==============================================================================
class ParseStatus(Enum):
    SUCCESS = "success"
    NO_MATCH = "no_match"
    MALFORMED = "malformed"


@dataclass
class ParseOutcome:
    """
    Result of one parser strategy run against one buffer.

    Attributes:
        parser_id (str):      Strategy that produced this outcome
        status (ParseStatus): SUCCESS, NO_MATCH or MALFORMED
        entries (list):       Recovered entries (non-empty only on SUCCESS)
        reason (str):         Why the strategy gave up, for diagnostics
    """
    parser_id: str
    status: ParseStatus
    entries: List[SpriteEntry] = field(default_factory=list)
    reason: str = ""

    @classmethod
    def success(cls, parser_id: str, entries: List[SpriteEntry]) -> "ParseOutcome":
        # An empty container is not a success
        if not entries:
            return cls(parser_id, ParseStatus.NO_MATCH, reason="no entries recovered")
        return cls(parser_id, ParseStatus.SUCCESS, list(entries))

    @classmethod
    def no_match(cls, parser_id: str, reason: str = "") -> "ParseOutcome":
        return cls(parser_id, ParseStatus.NO_MATCH, reason=reason)

    @classmethod
    def malformed(cls, parser_id: str, reason: str = "") -> "ParseOutcome":
        return cls(parser_id, ParseStatus.MALFORMED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.SUCCESS


# ==============================================================================
# PARSER SETTINGS
# ==============================================================================
@dataclass
class ParserSettings:
    """
    Tunables shared by all parser strategies.

    Attributes:
        max_entry_count (int):          Reject entry counts above this
        max_name_length (int):          Reject name lengths above this
        speculative_window_size (int):  Bytes taken for records with no end marker
        sniffer (ImageSniffer):         Validates and decodes payloads
        debug (bool):                   Print [DEBUG] trace lines
    """
    max_entry_count: int = DEFAULT_MAX_ENTRY_COUNT
    max_name_length: int = DEFAULT_MAX_NAME_LENGTH
    speculative_window_size: int = DEFAULT_WINDOW_SIZE
    sniffer: ImageSniffer = field(default_factory=ImageSniffer)
    debug: bool = False

    @classmethod
    def from_config(cls, config) -> "ParserSettings":
        """
        Build settings from a Config instance.

        Args:
            config: pakharvester.core.config.Config

        Returns:
            ParserSettings populated from the config values
        """
        sniffer = ImageSniffer(
            dimensions=config.raw_dimensions,
            strides=config.raw_strides,
            reject_grayscale=config.get('reject_grayscale', True),
        )
        return cls(
            max_entry_count=config.max_entry_count,
            max_name_length=config.max_name_length,
            speculative_window_size=config.speculative_window_size,
            sniffer=sniffer,
            debug=config.debug_mode,
        )


# ==============================================================================
# BASE CONTAINER PARSER ABSTRACT CLASS
# ==============================================================================
class BaseContainerParser(ABC):
    """
    Abstract base class for container parser strategies.

    Parsers are stateless: attempt() builds fresh entries on every call, so
    one instance can be reused for any number of buffers.
    """

    def __init__(self, settings: Optional[ParserSettings] = None):
        """
        Initialize the parser.

        Args:
            settings: Shared tunables (defaults if None)
        """
        self.settings = settings or ParserSettings()

    # ==========================================================================
    # ABSTRACT PROPERTIES - Must be implemented by subclasses
    # ==========================================================================

    @property
    @abstractmethod
    def parser_id(self) -> str:
        """
        Unique identifier for this strategy.

        Returns:
            Short ID string (e.g., "legacy_pak", "flat_chunks")
        """
        pass

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Human-readable name of the layout this strategy handles."""
        pass

    @property
    @abstractmethod
    def is_strict(self) -> bool:
        """
        Whether this strategy validates an exact grammar.

        Strict strategies keep every payload; heuristic ones keep only
        payloads the ImageSniffer accepts.
        """
        pass

    # ==========================================================================
    # ABSTRACT METHODS - Must be implemented by subclasses
    # ==========================================================================

    @abstractmethod
    def attempt(self, data: bytes) -> ParseOutcome:
        """
        Try to parse a whole file's bytes.

        Must never raise on bad input: every rejection is reported as
        NO_MATCH or MALFORMED.

        Args:
            data: Complete file contents

        Returns:
            ParseOutcome for this strategy
        """
        pass

    # ==========================================================================
    # COMMON HELPERS
    # ==========================================================================

    @property
    def sniffer(self) -> ImageSniffer:
        return self.settings.sniffer

    def debug(self, message: str):
        """Print a [DEBUG] line when debug output is enabled."""
        if self.settings.debug:
            print(f"[DEBUG] {self.parser_id}: {message}")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.parser_id}>"


# ==============================================================================
# PARSER REGISTRY
# ==============================================================================
class ParserRegistry:
    """
    Registry of available parser strategies.

    Registration order is priority order within each tier (strict, then
    heuristic).

    Usage:
        # Register a parser
        ParserRegistry.register(LegacyPakParser)

        # Build the strategy table
        parsers = ParserRegistry.create_parsers(settings)
    """

    # Class-level storage for registered parsers (insertion ordered)
    _parsers: Dict[str, type] = {}

    @classmethod
    def register(cls, parser_class: type):
        """
        Register a parser class.

        Args:
            parser_class: Class that inherits from BaseContainerParser
        """
        parser_id = parser_class.parser_id
        if not isinstance(parser_id, str):
            raise TypeError(f"{parser_class.__name__} must define parser_id as a class attribute")
        cls._parsers[parser_id] = parser_class

    @classmethod
    def unregister(cls, parser_id: str):
        cls._parsers.pop(parser_id, None)

    @classmethod
    def get_parser_by_id(cls, parser_id: str) -> Optional[type]:
        """
        Get a parser class by its ID.

        Args:
            parser_id: Parser ID (e.g., "indexed_pack")

        Returns:
            Parser class, or None if not found
        """
        return cls._parsers.get(parser_id)

    @classmethod
    def get_all(cls) -> Dict[str, type]:
        """Get all registered parsers, in registration order."""
        return cls._parsers.copy()

    @classmethod
    def create_parsers(cls, settings: Optional[ParserSettings] = None) -> List[BaseContainerParser]:
        """
        Instantiate every registered parser in priority order.

        Args:
            settings: Settings shared by all instances

        Returns:
            Strict parsers first, then heuristic parsers
        """
        settings = settings or ParserSettings()
        parsers = [parser_class(settings) for parser_class in cls._parsers.values()]
        strict = [p for p in parsers if p.is_strict]
        heuristic = [p for p in parsers if not p.is_strict]
        return strict + heuristic
