# ==============================================================================
# HEURISTIC CONTAINER PARSERS
# ==============================================================================
# Fallback strategies for files with no recognizable container header.
#
# None of these assume a grammar, so the only evidence that a candidate is
# real is that the ImageSniffer accepts it. A heuristic strategy succeeds
# only if it yields at least one sniff-validated image.
#
#   signature_sweep: scan for image magics, cut each record at its end marker
#                    (or a speculative window) and keep the decodable ones
#   flat_chunks:     read (u32 size, payload) pairs from offset 0, then from
#                    offset 4 in case the file starts with an entry count
#   raw_image:       treat the whole file as a single raw/encoded image
#
# Entries are named sprite_<n> in the order they were accepted.
# ==============================================================================

import struct
from typing import List, Optional

from .base_extractor import BaseContainerParser, ParseOutcome, ParserRegistry
from .signature_scanner import IMAGE_SIGNATURES, find_next_image, iter_record_ends
from .sprite_entry import SpriteEntry


U32 = struct.Struct("<I")

# Start offsets tried by the flat chunk sweep: bare sequence, count-prefixed
FLAT_CHUNK_STARTS = (0, 4)


def sprite_name(index: int) -> str:
    return f"sprite_{index}"


class HeuristicContainerParser(BaseContainerParser):
    """Marker base for strategies with no structural validation."""

    is_strict = False


# ==============================================================================
# SIGNATURE SWEEP
# ==============================================================================
class SignatureSweepParser(HeuristicContainerParser):
    """
    Salvage encoded images by their magic bytes.

    After an accepted record the scan resumes right after it; after a
    rejected hit it resumes one byte later, so overlapping or damaged
    signatures are not skipped.
    """

    parser_id = "signature_sweep"
    format_name = "Embedded image scan"

    def __init__(self, settings=None, signatures=IMAGE_SIGNATURES):
        super().__init__(settings)
        self.signatures = tuple(signatures)

    def attempt(self, data: bytes) -> ParseOutcome:
        entries = self.sweep(data)
        return ParseOutcome.success(self.parser_id, entries)

    def sweep(self, data: bytes) -> List[SpriteEntry]:
        entries = []
        position = 0
        window = self.settings.speculative_window_size

        while position < len(data):
            hit = find_next_image(data, position, self.signatures)
            if hit is None:
                break

            offset, signature = hit
            entry = self.carve(data, offset, signature, window, len(entries))
            if entry is not None:
                entries.append(entry)
                position = offset + entry.size
            else:
                position = offset + 1

        return entries

    def carve(self, data: bytes, offset: int, signature, window: int,
              index: int) -> Optional[SpriteEntry]:
        """Cut the record at each candidate end until one decodes."""
        for end in iter_record_ends(data, offset, signature, window):
            entry = SpriteEntry(name=sprite_name(index), data=data[offset:end])
            # A magic claims an encoded image, so raw guessing does not apply
            if entry.load_image(self.sniffer, allow_raw=False):
                self.debug(f"{signature.name} at {offset}..{end} -> {entry.image.size}")
                return entry
        return None


# ==============================================================================
# FLAT CHUNK SWEEP
# ==============================================================================
class FlatChunkParser(HeuristicContainerParser):
    """
    Read the file as back-to-back (u32 size, payload) chunks.

    Stops at the end of the buffer or at a size that is zero or larger than
    what is left. Chunks the sniffer rejects are dropped but the walk goes on.
    """

    parser_id = "flat_chunks"
    format_name = "Size-prefixed chunk stream"

    def attempt(self, data: bytes) -> ParseOutcome:
        for start in FLAT_CHUNK_STARTS:
            entries = self.sweep(data, start)
            if entries:
                self.debug(f"start offset {start}: {len(entries)} images")
                return ParseOutcome.success(self.parser_id, entries)
        return ParseOutcome.no_match(self.parser_id, "no decodable chunks")

    def sweep(self, data: bytes, start: int) -> List[SpriteEntry]:
        entries = []
        position = start

        while position + U32.size <= len(data):
            size = U32.unpack_from(data, position)[0]
            position += U32.size

            if size == 0 or size > len(data) - position:
                self.debug(f"stop at {position - U32.size}: chunk size {size}")
                break

            entry = SpriteEntry(name=sprite_name(len(entries)), data=data[position:position + size])
            position += size

            if entry.load_image(self.sniffer):
                entries.append(entry)

        return entries


# ==============================================================================
# WHOLE-BUFFER RAW IMAGE
# ==============================================================================
class RawImageParser(HeuristicContainerParser):
    """Last resort: the entire file is one image (usually raw pixels)."""

    parser_id = "raw_image"
    format_name = "Headerless image"

    def attempt(self, data: bytes) -> ParseOutcome:
        entry = SpriteEntry(name=sprite_name(0), data=data)
        if not entry.load_image(self.sniffer):
            return ParseOutcome.no_match(self.parser_id, "not decodable as an image")
        return ParseOutcome.success(self.parser_id, [entry])


ParserRegistry.register(SignatureSweepParser)
ParserRegistry.register(FlatChunkParser)
ParserRegistry.register(RawImageParser)
