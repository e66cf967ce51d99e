# ==============================================================================
# STRICT CONTAINER PARSERS
# ==============================================================================
# Exact-grammar decoders for the known PAK container revisions.
#
# All integers are unsigned 32-bit little-endian.
#
# legacy_pak (inline names, sequential data):
#   "<Pak" | version | count | { name_len | name | size | data } * count
#
# indexed_pack (offset table):
#   "PACK" | file_size | count | { offset | size | name_len | name } * count
#   Payloads live anywhere in the file and are read by absolute offset.
#   Names may carry trailing NUL padding.
#
# sprite_pack (16-byte magic, NUL-terminated names):
#   "SPRITEPACK" + 6 NUL | flags | count | { name NUL | size | data } * count
#
# Any violation rejects the whole file. Payloads are kept even when they
# cannot be decoded as images; the preview is a courtesy for strict formats.
# ==============================================================================

import struct
from typing import List, Optional, Tuple

from .base_extractor import BaseContainerParser, ParseOutcome, ParserRegistry
from .sprite_entry import SpriteEntry


# ==============================================================================
# CONSTANTS
# ==============================================================================

LEGACY_PAK_MAGIC = b"<Pak"
INDEXED_PACK_MAGIC = b"PACK"
SPRITE_PACK_MAGIC = b"SPRITEPACK" + b"\x00" * 6

U32 = struct.Struct("<I")
LEGACY_HEADER = struct.Struct("<4sII")      # magic, version, count
INDEXED_HEADER = struct.Struct("<4sII")     # magic, file_size, count
INDEXED_ENTRY = struct.Struct("<III")       # offset, size, name_len
SPRITE_PACK_HEADER = struct.Struct("<16sII")  # magic, flags, count


class MalformedEntry(Exception):
    """Internal: a bound was violated while walking the entry table."""


# ==============================================================================
# BYTE CURSOR
# ==============================================================================
class ByteCursor:
    """
    Bounds-checked sequential reader over an immutable buffer.

    Every read either returns exactly the requested bytes or raises
    MalformedEntry; it never returns a short read.
    """

    def __init__(self, data: bytes, offset: int = 0):
        self.data = data
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def read(self, count: int, what: str = "data") -> bytes:
        if count < 0 or count > self.remaining:
            raise MalformedEntry(
                f"short read for {what}: wanted {count} bytes, {self.remaining} available"
            )
        chunk = self.data[self.offset:self.offset + count]
        self.offset += count
        return bytes(chunk)

    def read_u32(self, what: str = "u32") -> int:
        return U32.unpack(self.read(4, what))[0]

    def read_struct(self, fmt: struct.Struct, what: str = "record") -> Tuple:
        return fmt.unpack(self.read(fmt.size, what))

    def read_cstring(self, limit: int, what: str = "name") -> bytes:
        """Read up to a NUL byte (consumed, not returned)."""
        end = self.data.find(b"\x00", self.offset, self.offset + limit + 1)
        if end == -1:
            if self.offset + limit + 1 <= len(self.data):
                raise MalformedEntry(f"{what} longer than {limit} bytes")
            raise MalformedEntry(f"unterminated {what}")
        value = bytes(self.data[self.offset:end])
        self.offset = end + 1
        return value


def decode_name(raw: bytes) -> str:
    """Decode a table name, dropping NUL padding."""
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


# ==============================================================================
# SHARED BASE
# ==============================================================================
class StrictContainerParser(BaseContainerParser):
    """
    Common driver for strict parsers.

    Subclasses implement read_header() and read_entries(); this class turns
    their MalformedEntry exceptions into MALFORMED outcomes and decodes
    previews for the recovered payloads.
    """

    is_strict = True

    # Smallest byte count that can hold a complete header
    header_size = 0

    def attempt(self, data: bytes) -> ParseOutcome:
        if len(data) < self.header_size:
            return ParseOutcome.no_match(self.parser_id, "truncated header")

        header = self.read_header(data)
        if header is None:
            return ParseOutcome.no_match(self.parser_id, "header mismatch")

        count = header["count"]
        if count == 0:
            return ParseOutcome.no_match(self.parser_id, "empty entry table")
        if count > self.settings.max_entry_count:
            return ParseOutcome.malformed(
                self.parser_id,
                f"entry count {count} exceeds {self.settings.max_entry_count}",
            )

        try:
            entries = self.read_entries(data, header)
        except MalformedEntry as e:
            self.debug(f"rejected: {e}")
            return ParseOutcome.malformed(self.parser_id, str(e))

        for entry in entries:
            if entry.load_image(self.sniffer):
                self.debug(f"{entry.name}: {entry.image_format} {entry.image.size}")
            else:
                self.debug(f"{entry.name}: no preview ({entry.size} bytes)")

        return ParseOutcome.success(self.parser_id, entries)

    def read_header(self, data: bytes) -> Optional[dict]:
        """Parse and check the fixed header; None if it does not match."""
        raise NotImplementedError

    def read_entries(self, data: bytes, header: dict) -> List[SpriteEntry]:
        """Walk the entry table; raise MalformedEntry on any violation."""
        raise NotImplementedError

    def check_name_length(self, length: int):
        if length > self.settings.max_name_length:
            raise MalformedEntry(
                f"name length {length} exceeds {self.settings.max_name_length}"
            )


# ==============================================================================
# LEGACY <Pak PARSER
# ==============================================================================
class LegacyPakParser(StrictContainerParser):
    """'<Pak' revision: inline names and payloads, read strictly in order."""

    parser_id = "legacy_pak"
    format_name = "Legacy <Pak archive"
    header_size = LEGACY_HEADER.size

    def read_header(self, data: bytes) -> Optional[dict]:
        magic, version, count = LEGACY_HEADER.unpack_from(data, 0)
        if magic != LEGACY_PAK_MAGIC:
            return None
        return {"version": version, "count": count}

    def read_entries(self, data: bytes, header: dict) -> List[SpriteEntry]:
        cursor = ByteCursor(data, LEGACY_HEADER.size)
        entries = []

        for i in range(header["count"]):
            name_length = cursor.read_u32(f"name length of entry {i}")
            self.check_name_length(name_length)
            name = decode_name(cursor.read(name_length, f"name of entry {i}"))

            size = cursor.read_u32(f"data size of entry {i}")
            payload = cursor.read(size, f"data of entry {i}")

            entries.append(SpriteEntry(name=name, data=payload))

        return entries


# ==============================================================================
# INDEXED PACK PARSER
# ==============================================================================
class IndexedPackParser(StrictContainerParser):
    """'PACK' revision: an offset table pointing at payloads anywhere in the file."""

    parser_id = "indexed_pack"
    format_name = "Indexed PACK archive"
    header_size = INDEXED_HEADER.size

    def read_header(self, data: bytes) -> Optional[dict]:
        magic, file_size, count = INDEXED_HEADER.unpack_from(data, 0)
        if magic != INDEXED_PACK_MAGIC:
            return None
        return {"file_size": file_size, "count": count}

    def read_entries(self, data: bytes, header: dict) -> List[SpriteEntry]:
        if header["file_size"] > len(data):
            raise MalformedEntry(
                f"declared file size {header['file_size']} exceeds actual {len(data)}"
            )

        cursor = ByteCursor(data, INDEXED_HEADER.size)
        entries = []

        for i in range(header["count"]):
            offset, size, name_length = cursor.read_struct(INDEXED_ENTRY, f"table entry {i}")
            self.check_name_length(name_length)
            name = decode_name(cursor.read(name_length, f"name of entry {i}"))

            if offset + size > len(data):
                raise MalformedEntry(
                    f"entry {i} ({name!r}) spans {offset}+{size}, file is {len(data)} bytes"
                )

            # Independent cursor so the table position is left untouched
            payload = ByteCursor(data, offset).read(size, f"data of entry {i}")
            entries.append(SpriteEntry(name=name, data=payload))

        return entries


# ==============================================================================
# SPRITEPACK PARSER
# ==============================================================================
class SpritePackParser(StrictContainerParser):
    """16-byte 'SPRITEPACK' revision with NUL-terminated inline names."""

    parser_id = "sprite_pack"
    format_name = "SPRITEPACK archive"
    header_size = SPRITE_PACK_HEADER.size

    def read_header(self, data: bytes) -> Optional[dict]:
        magic, flags, count = SPRITE_PACK_HEADER.unpack_from(data, 0)
        if magic != SPRITE_PACK_MAGIC:
            return None
        return {"flags": flags, "count": count}

    def read_entries(self, data: bytes, header: dict) -> List[SpriteEntry]:
        cursor = ByteCursor(data, SPRITE_PACK_HEADER.size)
        entries = []

        for i in range(header["count"]):
            raw_name = cursor.read_cstring(self.settings.max_name_length, f"name of entry {i}")
            size = cursor.read_u32(f"data size of entry {i}")
            payload = cursor.read(size, f"data of entry {i}")
            entries.append(SpriteEntry(name=decode_name(raw_name), data=payload))

        return entries


# Registration order is priority order
ParserRegistry.register(LegacyPakParser)
ParserRegistry.register(IndexedPackParser)
ParserRegistry.register(SpritePackParser)
