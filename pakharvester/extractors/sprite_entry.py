# ==============================================================================
# SPRITE ENTRY MODULE
# ==============================================================================
# Data classes for recovered assets.
#
#   - SpriteEntry:     one named payload, plus an optional decoded preview
#   - SpriteContainer: the ordered entries recovered from one file
#
# The raw payload is authoritative. The preview is a courtesy produced by the
# ImageSniffer and may be missing even for non-empty payloads; such entries
# are still valid and export their raw bytes.
#
# Usage:
#   entry = SpriteEntry(name="hero", data=payload)
#   entry.load_image(sniffer)
#   entry.export_to("hero.png", "PNG")
# ==============================================================================

import os
import re
import struct
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional

from PIL import Image

from .image_sniffer import ImageSniffer


# Pillow format names for user-facing format hints
FORMAT_ALIASES = {
    "JPG": "JPEG",
    "TIF": "TIFF",
}

# File extensions used by export_all
FORMAT_EXTENSIONS = {
    "PNG": ".png",
    "BMP": ".bmp",
    "JPEG": ".jpg",
    "GIF": ".gif",
    "TIFF": ".tif",
}

RAW_EXTENSION = ".bin"

# 32-bit BGRA bitmap layout: file header + BITMAPV4HEADER with channel masks
BMP_FILE_HEADER = struct.Struct("<2sIHHI")
BMP_V4_HEADER = struct.Struct("<IiiHHIIiiII4II36s3I")
BI_BITFIELDS = 3
LCS_SRGB = 0x73524742
BGRA_MASKS = (0x00FF0000, 0x0000FF00, 0x000000FF, 0xFF000000)
PIXELS_PER_METER = 2835


def normalize_format(format_hint: str) -> str:
    """Map a user format hint (e.g., "jpg") to a Pillow format name."""
    fmt = (format_hint or "PNG").strip().lstrip(".").upper()
    return FORMAT_ALIASES.get(fmt, fmt)


def has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info


def encode_bmp_rgba(image: Image.Image) -> bytes:
    """
    Encode an image as a bottom-up 32-bit BGRA bitmap.

    The alpha channel is declared through BI_BITFIELDS masks in a V4
    header, which Pillow and most viewers read back as RGBA.
    """
    image = image.convert("RGBA")
    width, height = image.size
    pixels = image.tobytes("raw", "BGRA", 0, -1)

    info = BMP_V4_HEADER.pack(
        BMP_V4_HEADER.size, width, height, 1, 32, BI_BITFIELDS, len(pixels),
        PIXELS_PER_METER, PIXELS_PER_METER, 0, 0,
        *BGRA_MASKS, LCS_SRGB, b"\x00" * 36, 0, 0, 0,
    )
    offset = BMP_FILE_HEADER.size + len(info)
    header = BMP_FILE_HEADER.pack(b"BM", offset + len(pixels), 0, 0, offset)
    return header + info + pixels


def safe_filename(name: str, fallback: str = "entry") -> str:
    """Turn an entry name into something usable as a file name."""
    cleaned = re.sub(r'[\\/:*?"<>|\x00-\x1f]', "_", name).strip(" .")
    return cleaned or fallback


# ==============================================================================
# SPRITE ENTRY DATA CLASS
# ==============================================================================
@dataclass
class SpriteEntry:
    """
    One asset recovered from a container.

    Attributes:
        name (str):           Name from the container table, or sprite_<n>
        data (bytes):         Raw payload, copied out of the source buffer
        image (Image):        Decoded preview, if the payload could be sniffed
        image_format (str):   "PNG", "BMP", "JPEG", "GIF", "RAW" or None
    """
    name: str
    data: bytes = b""
    image: Optional[Image.Image] = field(default=None, repr=False)
    image_format: Optional[str] = None

    def __post_init__(self):
        # Never hold a view into the loaded file buffer
        if not isinstance(self.data, bytes):
            self.data = bytes(self.data)

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.data)

    @property
    def has_preview(self) -> bool:
        return self.image is not None

    def preview(self) -> Optional[Image.Image]:
        """Get the decoded preview, or None for opaque payloads."""
        return self.image

    def load_image(self, sniffer: Optional[ImageSniffer] = None,
                   allow_raw: bool = True) -> bool:
        """
        Decode the payload into a preview image.

        Args:
            sniffer: ImageSniffer to use (a default one if None)
            allow_raw: Permit raw geometry guesses

        Returns:
            True if a preview was produced
        """
        sniffer = sniffer or ImageSniffer()
        result = sniffer.sniff(self.data, allow_raw=allow_raw)
        if result is None:
            self.image = None
            self.image_format = None
            return False

        self.image = result.image
        self.image_format = result.format
        return True

    def export_to(self, path: str, format_hint: str = "PNG") -> bool:
        """
        Write this entry to disk.

        With a preview, the image is re-encoded in the requested format.
        Without one, the raw payload is written verbatim and format_hint
        is ignored. A preview with alpha exported as BMP becomes a 32-bit
        BGRA bitmap so the alpha channel survives.

        Args:
            path: Destination file path
            format_hint: Target format ("PNG", "BMP", "JPG", ...)

        Returns:
            True if the file was written
        """
        try:
            if self.image is not None:
                fmt = normalize_format(format_hint)
                image = self.image
                if fmt == "BMP" and has_alpha(image):
                    with open(path, "wb") as f:
                        f.write(encode_bmp_rgba(image))
                    return True
                if fmt == "JPEG" and image.mode not in ("RGB", "L", "CMYK"):
                    image = image.convert("RGB")
                image.save(path, format=fmt)
                return True

            with open(path, "wb") as f:
                f.write(self.data)
            return True

        except (OSError, ValueError, KeyError) as e:
            print(f"[ERROR] Failed to export {self.name!r} to {path}: {e}")
            return False


# ==============================================================================
# SPRITE CONTAINER DATA CLASS
# ==============================================================================
@dataclass
class SpriteContainer:
    """
    The ordered result of one successful parse.

    Entry order is parse order. It is stable for display but says nothing
    about the order assets were authored in.

    Attributes:
        entries (list):      Recovered SpriteEntry objects (never empty)
        parser_id (str):     ID of the strategy that produced them
        format_name (str):   Human-readable name of that strategy
        source_path (str):   File the bytes came from, if known
    """
    entries: List[SpriteEntry]
    parser_id: str = ""
    format_name: str = ""
    source_path: Optional[str] = None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[SpriteEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> SpriteEntry:
        return self.entries[index]

    def names(self) -> List[str]:
        return [entry.name for entry in self.entries]

    def preview_count(self) -> int:
        """Number of entries with a decoded preview."""
        return sum(1 for entry in self.entries if entry.has_preview)

    def get_total_size(self) -> int:
        return sum(entry.size for entry in self.entries)

    def export_all(self, output_dir: str, format_hint: str = "PNG",
                   progress_callback: Callable[[int, int, str], None] = None) -> int:
        """
        Export every entry into a directory.

        Files are named <index>_<name>.<ext>. Entries without a preview are
        written raw with a .bin extension.

        Args:
            output_dir: Directory to write into (created if missing)
            format_hint: Target image format for entries with a preview
            progress_callback: Optional callback(current, total, name)

        Returns:
            Number of entries successfully written
        """
        os.makedirs(output_dir, exist_ok=True)

        fmt = normalize_format(format_hint)
        image_ext = FORMAT_EXTENSIONS.get(fmt, "." + fmt.lower())

        total = len(self.entries)
        exported = 0

        for idx, entry in enumerate(self.entries):
            if progress_callback:
                progress_callback(idx + 1, total, entry.name)

            ext = image_ext if entry.has_preview else RAW_EXTENSION
            filename = f"{idx:04d}_{safe_filename(entry.name, f'sprite_{idx}')}{ext}"

            if entry.export_to(os.path.join(output_dir, filename), fmt):
                exported += 1

        return exported
