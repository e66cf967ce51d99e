# ==============================================================================
# IMAGE SNIFFER MODULE
# ==============================================================================
# Works out whether a byte blob is an image, and if so, which kind.
#
# Two passes, first match wins:
#   1. Standard encodings through Pillow (PNG, BMP, JPEG, GIF).
#   2. Raw uncompressed pixels under a fixed set of guessed geometries.
#
# The raw pass is a heuristic. Several (width, height, stride) combinations
# can divide the same byte count and the grayscale filter is weak, so the
# guess is deterministic (fixed search order) but not necessarily the real
# geometry of the source data.
#
# Candidate order for the raw pass:
#   - Exact tier (width * height * stride == len(data)) before loose tier
#     (width * height * 4 <= len(data), the buffer prefix is used)
#   - Inside a tier: fewer pixels first, then squarest, then narrowest,
#     then stride in configured order
#
# Usage:
#   sniffer = ImageSniffer()
#   result = sniffer.sniff(data)
#   if result:
#       print(result.format, result.width, result.height)
# ==============================================================================

import io
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image


# ==============================================================================
# CONSTANTS
# ==============================================================================

# Pillow plugin names, tried in this order
STANDARD_FORMATS = ("PNG", "BMP", "JPEG", "GIF")

DEFAULT_RAW_DIMENSIONS = (16, 32, 64, 128, 256, 512)

# 4 = BGRA (ARGB32 on little-endian), 3 = BGR
DEFAULT_RAW_STRIDES = (4, 3)

# Pillow raw decoder arguments per stride: (mode, rawmode)
RAW_MODES = {
    4: ("RGBA", "BGRA"),
    3: ("RGB", "BGR"),
}

RAW_FORMAT = "RAW"


# ==============================================================================
# RESULT DATA CLASS
# ==============================================================================
@dataclass
class SniffResult:
    """
    A successful sniff.

    Attributes:
        image:     Decoded Pillow image (fully loaded)
        format:    "PNG", "BMP", "JPEG", "GIF" or "RAW"
        width:     Image width in pixels
        height:    Image height in pixels
        stride:    Bytes per pixel for raw guesses, None for encoded images
        exact:     True when a raw guess used every byte of the input
    """
    image: Image.Image
    format: str
    width: int
    height: int
    stride: Optional[int] = None
    exact: bool = True

    @property
    def is_raw(self) -> bool:
        return self.format == RAW_FORMAT


# ==============================================================================
# IMAGE SNIFFER CLASS
# ==============================================================================
class ImageSniffer:
    """
    Decodes byte blobs as images using standard codecs or raw geometry guesses.

    Attributes:
        dimensions (tuple):      Candidate widths and heights for raw guesses
        strides (tuple):         Candidate bytes-per-pixel for raw guesses
        reject_grayscale (bool): Drop raw guesses whose pixels are all gray
    """

    def __init__(self, dimensions: Sequence[int] = DEFAULT_RAW_DIMENSIONS,
                 strides: Sequence[int] = DEFAULT_RAW_STRIDES,
                 reject_grayscale: bool = True):
        self.dimensions = tuple(sorted(set(int(d) for d in dimensions if int(d) > 0)))
        self.strides = tuple(s for s in strides if s in RAW_MODES)
        self.reject_grayscale = reject_grayscale

    # ==========================================================================
    # PUBLIC API
    # ==========================================================================

    def sniff(self, data: bytes, allow_raw: bool = True) -> Optional[SniffResult]:
        """
        Try to interpret data as an image.

        Args:
            data: Candidate payload
            allow_raw: Fall back to raw geometry guessing if no codec matches

        Returns:
            SniffResult on success, None if nothing accepted the data
        """
        if not data:
            return None

        result = self.decode_standard(data)
        if result is not None:
            return result

        if allow_raw:
            return self.decode_raw(data)
        return None

    def decode_standard(self, data: bytes) -> Optional[SniffResult]:
        """Try each standard encoding in order."""
        for fmt in STANDARD_FORMATS:
            image = _open_with_format(data, fmt)
            if image is not None:
                return SniffResult(image=image, format=fmt,
                                   width=image.width, height=image.height)
        return None

    def decode_raw(self, data: bytes) -> Optional[SniffResult]:
        """Try raw pixel interpretations in candidate order."""
        for width, height, stride, exact in self.raw_candidates(len(data)):
            byte_count = width * height * stride
            pixels = data[:byte_count]

            if self.reject_grayscale and _is_grayscale(pixels, stride):
                continue

            mode, rawmode = RAW_MODES[stride]
            try:
                image = Image.frombytes(mode, (width, height), pixels, "raw", rawmode)
            except ValueError:
                continue

            return SniffResult(image=image, format=RAW_FORMAT, width=width,
                               height=height, stride=stride, exact=exact)
        return None

    def raw_candidates(self, length: int) -> List[Tuple[int, int, int, bool]]:
        """
        List raw geometry candidates for a payload length, in try order.

        Returns:
            List of (width, height, stride, exact) tuples
        """
        exact = []
        loose = []

        for width in self.dimensions:
            for height in self.dimensions:
                pixels = width * height
                for rank, stride in enumerate(self.strides):
                    if pixels * stride == length:
                        exact.append((pixels, abs(width - height), width, rank, height, stride))

                if 4 in self.strides and pixels * 4 < length:
                    loose.append((pixels, abs(width - height), width, 0, height, 4))

        exact.sort()
        loose.sort()

        candidates = [(w, h, s, True) for _, _, w, _, h, s in exact]
        candidates.extend((w, h, s, False) for _, _, w, _, h, s in loose)
        return candidates


# ==============================================================================
# HELPERS
# ==============================================================================

def _open_with_format(data: bytes, fmt: str) -> Optional[Image.Image]:
    """Decode data with a single Pillow plugin, or return None."""
    try:
        image = Image.open(io.BytesIO(data), formats=[fmt])
        image.load()
        if image.width <= 0 or image.height <= 0:
            return None
        return image
    except Exception:
        # Pillow plugins raise anything from SyntaxError to struct.error on
        # malformed input; each failure just means "not this format"
        return None


def _is_grayscale(pixels: bytes, stride: int) -> bool:
    """Check if every pixel has equal colour channels (alpha ignored)."""
    arr = np.frombuffer(pixels, dtype=np.uint8).reshape(-1, stride)
    colour = arr[:, :3]
    return bool(np.all(colour[:, 0] == colour[:, 1]) and np.all(colour[:, 1] == colour[:, 2]))
