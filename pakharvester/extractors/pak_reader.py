# ==============================================================================
# PAK READER MODULE
# ==============================================================================
# Container resolution: run the parser strategy table against one file.
#
#   Start -> strict[1..N] -> heuristic[1..M] -> Success | Exhausted
#
# The first strategy to report SUCCESS wins and the rest are skipped.
# NO_MATCH and MALFORMED are treated the same way: try the next one.
# An exception escaping a strategy counts as MALFORMED and never stops the
# remaining strategies from running.
#
# The file is opened, read completely and closed before any parsing starts;
# parsers only ever see an in-memory bytes object.
#
# Usage:
#   reader = PakReader()
#   if reader.read_file("sprites.pak"):
#       for entry in reader.entries():
#           print(entry.name, entry.size)
#
#   container = load_pak("sprites.pak")     # raises PakError subclasses
# ==============================================================================

import os
from typing import Iterator, List, Optional

from .base_extractor import (
    BaseContainerParser, ParseOutcome, ParserRegistry, ParserSettings,
    PakIOError, UnrecognizedFormatError,
)
from .sprite_entry import SpriteContainer, SpriteEntry


def read_file_bytes(path: str) -> bytes:
    """
    Load a whole file into memory.

    Raises:
        PakIOError: If the file cannot be opened or read
    """
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise PakIOError(f"could not open {path}: {e}") from e


# ==============================================================================
# CONTAINER RESOLVER
# ==============================================================================
class ContainerResolver:
    """
    Runs parser strategies in priority order until one succeeds.

    Attributes:
        settings (ParserSettings):  Shared tunables
        parsers (list):             Strategy table, in try order
    """

    def __init__(self, parsers: Optional[List[BaseContainerParser]] = None,
                 settings: Optional[ParserSettings] = None):
        """
        Initialize the resolver.

        Args:
            parsers: Explicit strategy table; the registry's if None
            settings: Settings for registry-built parsers
        """
        self.settings = settings or ParserSettings()
        if parsers is None:
            parsers = ParserRegistry.create_parsers(self.settings)
        self.parsers = list(parsers)

    def attempts(self, data: bytes) -> Iterator[ParseOutcome]:
        """
        Run every strategy in order and yield each outcome.

        The caller decides when to stop; resolve() stops at the first success.
        """
        for parser in self.parsers:
            try:
                outcome = parser.attempt(data)
            except Exception as e:
                print(f"[WARN] Parser {parser.parser_id} failed: {e}")
                outcome = ParseOutcome.malformed(parser.parser_id, f"exception: {e}")

            if self.settings.debug:
                detail = f" ({outcome.reason})" if outcome.reason else ""
                print(f"[DEBUG] {parser.parser_id}: {outcome.status.value}{detail}")

            yield outcome

    def resolve(self, data: bytes, source_path: Optional[str] = None) -> SpriteContainer:
        """
        Recover the entries of one file.

        Args:
            data: Complete file contents
            source_path: Optional path, recorded on the container

        Returns:
            Non-empty SpriteContainer from the first successful strategy

        Raises:
            UnrecognizedFormatError: If every strategy failed
        """
        data = bytes(data)
        by_id = {parser.parser_id: parser for parser in self.parsers}

        for outcome in self.attempts(data):
            if outcome.ok:
                parser = by_id[outcome.parser_id]
                return SpriteContainer(
                    entries=outcome.entries,
                    parser_id=parser.parser_id,
                    format_name=parser.format_name,
                    source_path=source_path,
                )

        raise UnrecognizedFormatError("unrecognized container format")


# ==============================================================================
# PAK READER
# ==============================================================================
class PakReader:
    """
    Loads a file from disk and resolves it into a SpriteContainer.

    Each read_file() call replaces the previous result; the returned
    container is owned by whoever takes it.

    Attributes:
        resolver (ContainerResolver):  Strategy runner
        container (SpriteContainer):   Result of the last successful read
        last_error (str):              Message for the last failed read
    """

    def __init__(self, resolver: Optional[ContainerResolver] = None,
                 settings: Optional[ParserSettings] = None):
        self.resolver = resolver or ContainerResolver(settings=settings)
        self.container: Optional[SpriteContainer] = None
        self.last_error: Optional[str] = None

    def load(self, path: str) -> SpriteContainer:
        """
        Read and resolve a file, raising on failure.

        Raises:
            PakIOError: File could not be opened
            UnrecognizedFormatError: No strategy recovered any entry
        """
        data = read_file_bytes(path)
        return self.resolver.resolve(data, source_path=path)

    def read_file(self, path: str) -> bool:
        """
        Read and resolve a file.

        Args:
            path: File to read (any extension)

        Returns:
            True if at least one entry was recovered
        """
        self.container = None
        self.last_error = None

        try:
            self.container = self.load(path)
        except PakIOError as e:
            self.last_error = "could not open file"
            print(f"[ERROR] Failed to open file: {e}")
            return False
        except UnrecognizedFormatError:
            self.last_error = "unrecognized container format"
            print(f"[ERROR] Unrecognized container format: {os.path.basename(path)}")
            return False

        print(f"[INFO] {os.path.basename(path)}: {len(self.container)} entries "
              f"({self.container.format_name})")
        return True

    def entries(self) -> List[SpriteEntry]:
        """Entries from the last successful read (empty list otherwise)."""
        return list(self.container.entries) if self.container else []


def load_pak(path: str, settings: Optional[ParserSettings] = None) -> SpriteContainer:
    """
    Convenience wrapper: read one file with the default strategy table.

    Raises:
        PakIOError, UnrecognizedFormatError
    """
    return PakReader(settings=settings).load(path)
