# ==============================================================================
# SIGNATURE SCANNER MODULE
# ==============================================================================
# Byte-level search helpers for locating embedded image records.
#
# Every encoded image format we care about starts with a fixed literal magic
# and most of them end with a fixed literal trailer:
#   - PNG:  89 50 4E 47 0D 0A 1A 0A ... 49 45 4E 44 AE 42 60 82 (IEND + CRC)
#   - JPEG: FF D8 FF ... FF D9
#   - GIF:  "GIF87a" / "GIF89a" ... 00 3B
#   - BMP:  "BM" + u32 file size (no trailer)
#
# Records without a trailer are delimited by their header size field when it
# looks sane, otherwise by a fixed-size speculative window. When the first
# cut does not decode, iter_record_ends() offers later trailers in turn.
#
# Usage:
#   from pakharvester.extractors.signature_scanner import find_signature, PNG_MAGIC
#   offset = find_signature(data, PNG_MAGIC, 0)
# ==============================================================================

import struct
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple


# ==============================================================================
# CONSTANTS
# ==============================================================================

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
PNG_IEND = b"IEND\xaeB`\x82"

JPEG_MAGIC = b"\xff\xd8\xff"
JPEG_EOI = b"\xff\xd9"

GIF87_MAGIC = b"GIF87a"
GIF89_MAGIC = b"GIF89a"
GIF_TRAILER = b"\x00\x3b"

BMP_MAGIC = b"BM"

# Smallest possible BMP: 14 byte file header + 12 byte core header
BMP_MIN_SIZE = 26

# Default speculative window for records with no usable end marker
DEFAULT_WINDOW_SIZE = 32 * 1024


# ==============================================================================
# SIGNATURE DATA CLASS
# ==============================================================================
@dataclass(frozen=True)
class ImageSignature:
    """
    Describes how to find the start and end of one encoded image record.

    Attributes:
        name (str):              Format name (e.g., "PNG")
        magic (bytes):           Literal bytes at the start of the record
        terminator (bytes):      Literal bytes that end the record, if any
        size_field (int):        Offset of a u32 LE total-size field, if any
    """
    name: str
    magic: bytes
    terminator: Optional[bytes] = None
    size_field: Optional[int] = None


IMAGE_SIGNATURES = (
    ImageSignature("PNG", PNG_MAGIC, terminator=PNG_IEND),
    ImageSignature("JPEG", JPEG_MAGIC, terminator=JPEG_EOI),
    ImageSignature("GIF", GIF89_MAGIC, terminator=GIF_TRAILER),
    ImageSignature("GIF", GIF87_MAGIC, terminator=GIF_TRAILER),
    ImageSignature("BMP", BMP_MAGIC, size_field=2),
)


# ==============================================================================
# SEARCH FUNCTIONS
# ==============================================================================

def find_signature(data: bytes, signature: bytes, start: int = 0) -> Optional[int]:
    """
    Find the first occurrence of a signature at or after start.

    Args:
        data: Buffer to search
        signature: Literal bytes to look for
        start: Offset to begin searching from

    Returns:
        Offset of the match, or None if not found
    """
    if not signature:
        return None
    if start < 0:
        start = 0
    if start >= len(data):
        return None

    offset = data.find(signature, start)
    return offset if offset != -1 else None


def find_terminator(data: bytes, terminator: bytes, start: int = 0) -> Optional[int]:
    """
    Find the end of a record delimited by a trailing marker.

    Args:
        data: Buffer to search
        terminator: Literal end-of-record bytes
        start: Offset to begin searching from (usually the record start)

    Returns:
        Offset immediately following the terminator, or None if not found
    """
    offset = find_signature(data, terminator, start)
    if offset is None:
        return None
    return offset + len(terminator)


def find_next_image(data: bytes, start: int = 0,
                    signatures: Tuple[ImageSignature, ...] = IMAGE_SIGNATURES
                    ) -> Optional[Tuple[int, ImageSignature]]:
    """
    Find the nearest image signature of any known kind.

    When two signatures match at the same offset the one listed first wins.

    Returns:
        Tuple of (offset, signature), or None if nothing matches
    """
    best = None
    for signature in signatures:
        offset = find_signature(data, signature.magic, start)
        if offset is None:
            continue
        if best is None or offset < best[0]:
            best = (offset, signature)
    return best


def locate_record_end(data: bytes, start: int, signature: ImageSignature,
                      window_size: int = DEFAULT_WINDOW_SIZE) -> int:
    """
    Work out where an image record that begins at start ends.

    Tries, in order: the format's terminator, the header size field, and
    finally a speculative window clipped to the end of the buffer.

    Returns:
        Exclusive end offset of the candidate record
    """
    body_start = start + len(signature.magic)

    if signature.terminator is not None:
        end = find_terminator(data, signature.terminator, body_start)
        if end is not None:
            return end

    if signature.size_field is not None:
        field_offset = start + signature.size_field
        if field_offset + 4 <= len(data):
            declared = struct.unpack_from("<I", data, field_offset)[0]
            if declared >= BMP_MIN_SIZE and start + declared <= len(data):
                return start + declared

    return min(start + window_size, len(data))


def iter_record_ends(data: bytes, start: int, signature: ImageSignature,
                     window_size: int = DEFAULT_WINDOW_SIZE) -> Iterator[int]:
    """
    Yield candidate end offsets for a record, best guess first.

    The first candidate is locate_record_end(). For formats with a
    terminator, later terminator occurrences follow, as long as they end
    within the speculative window; a JPEG with an embedded thumbnail has
    its first EOI marker inside the thumbnail. The clipped window comes
    last. No offset is yielded twice.
    """
    first = locate_record_end(data, start, signature, window_size)
    yield first
    seen = {first}

    window_end = min(start + window_size, len(data))

    if signature.terminator is not None:
        end = find_terminator(data, signature.terminator, start + len(signature.magic))
        while end is not None and end <= window_end:
            if end not in seen:
                seen.add(end)
                yield end
            end = find_terminator(data, signature.terminator, end)

    if window_end not in seen:
        yield window_end
