from __future__ import annotations

import struct
import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pakharvester.extractors.signature_scanner import (
    BMP_MAGIC,
    IMAGE_SIGNATURES,
    PNG_IEND,
    PNG_MAGIC,
    ImageSignature,
    find_next_image,
    find_signature,
    find_terminator,
    iter_record_ends,
    locate_record_end,
)

from builders import encode_image, jpeg_with_thumbnail, png_bytes


class FindSignatureTests(unittest.TestCase):
    def test_finds_first_match_at_or_after_start(self) -> None:
        data = b"xx" + PNG_MAGIC + b"yy" + PNG_MAGIC
        self.assertEqual(find_signature(data, PNG_MAGIC, 0), 2)
        self.assertEqual(find_signature(data, PNG_MAGIC, 2), 2)
        self.assertEqual(find_signature(data, PNG_MAGIC, 3), 12)

    def test_not_found_returns_none(self) -> None:
        self.assertIsNone(find_signature(b"nothing here", PNG_MAGIC, 0))

    def test_start_at_or_past_end_returns_none(self) -> None:
        data = PNG_MAGIC
        self.assertIsNone(find_signature(data, PNG_MAGIC, len(data)))
        self.assertIsNone(find_signature(data, PNG_MAGIC, len(data) + 100))
        self.assertIsNone(find_signature(b"", PNG_MAGIC, 0))

    def test_negative_start_is_clamped(self) -> None:
        self.assertEqual(find_signature(PNG_MAGIC, PNG_MAGIC, -5), 0)


class FindTerminatorTests(unittest.TestCase):
    def test_returns_offset_after_terminator(self) -> None:
        png = png_bytes()
        self.assertEqual(find_terminator(png, PNG_IEND, 0), len(png))

    def test_missing_terminator(self) -> None:
        self.assertIsNone(find_terminator(png_bytes()[:-8], PNG_IEND, 0))
        self.assertIsNone(find_terminator(PNG_IEND, PNG_IEND, 1))


class FindNextImageTests(unittest.TestCase):
    def test_nearest_signature_wins(self) -> None:
        data = b"...." + BMP_MAGIC + b"...." + PNG_MAGIC
        offset, signature = find_next_image(data, 0)
        self.assertEqual((offset, signature.name), (4, "BMP"))

        offset, signature = find_next_image(data, 5)
        self.assertEqual((offset, signature.name), (10, "PNG"))

    def test_no_signature(self) -> None:
        self.assertIsNone(find_next_image(b"\x00" * 64, 0))


class LocateRecordEndTests(unittest.TestCase):
    def png_signature(self) -> ImageSignature:
        return next(s for s in IMAGE_SIGNATURES if s.name == "PNG")

    def bmp_signature(self) -> ImageSignature:
        return next(s for s in IMAGE_SIGNATURES if s.name == "BMP")

    def test_terminated_record(self) -> None:
        png = png_bytes()
        data = png + b"trailing junk"
        self.assertEqual(locate_record_end(data, 0, self.png_signature()), len(png))

    def test_missing_terminator_uses_clipped_window(self) -> None:
        data = PNG_MAGIC + b"\x00" * 100
        self.assertEqual(locate_record_end(data, 0, self.png_signature(), window_size=32), 32)
        self.assertEqual(locate_record_end(data, 0, self.png_signature(), window_size=4096), len(data))

    def test_bmp_uses_declared_size(self) -> None:
        bmp = encode_image("BMP")
        data = b"ab" + bmp + b"\x00" * 50
        self.assertEqual(locate_record_end(data, 2, self.bmp_signature()), 2 + len(bmp))

    def test_bmp_with_implausible_size_falls_back_to_window(self) -> None:
        data = BMP_MAGIC + struct.pack("<I", 0xFFFFFF) + b"\x00" * 200
        self.assertEqual(locate_record_end(data, 0, self.bmp_signature(), window_size=64), 64)


class IterRecordEndsTests(unittest.TestCase):
    def jpeg_signature(self) -> ImageSignature:
        return next(s for s in IMAGE_SIGNATURES if s.name == "JPEG")

    def test_later_terminators_follow_the_first(self) -> None:
        jpeg = jpeg_with_thumbnail()
        data = jpeg + b"\x00" * 10
        thumb_end = find_terminator(data, b"\xff\xd9", 3)

        ends = list(iter_record_ends(data, 0, self.jpeg_signature(), window_size=len(jpeg) + 4))
        self.assertEqual(ends[0], thumb_end)
        self.assertLess(thumb_end, len(jpeg))
        self.assertIn(len(jpeg), ends)
        self.assertEqual(ends[-1], len(jpeg) + 4)
        self.assertEqual(len(ends), len(set(ends)))

    def test_terminators_past_the_window_are_not_offered(self) -> None:
        jpeg = jpeg_with_thumbnail()
        window = len(jpeg) - 1

        ends = list(iter_record_ends(jpeg, 0, self.jpeg_signature(), window_size=window))
        self.assertNotIn(len(jpeg), ends)
        self.assertEqual(ends[-1], window)
        self.assertTrue(all(end <= window for end in ends))

    def test_bmp_declared_size_then_window(self) -> None:
        bmp = encode_image("BMP")
        data = bmp + b"\x00" * 100
        signature = next(s for s in IMAGE_SIGNATURES if s.name == "BMP")
        self.assertEqual(list(iter_record_ends(data, 0, signature, window_size=len(data))),
                         [len(bmp), len(data)])


if __name__ == "__main__":
    unittest.main()
