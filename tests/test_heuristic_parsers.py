from __future__ import annotations

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pakharvester.extractors.base_extractor import ParseStatus
from pakharvester.extractors.heuristic_parsers import (
    FlatChunkParser,
    RawImageParser,
    SignatureSweepParser,
)
from pakharvester.extractors.image_sniffer import ImageSniffer
from pakharvester.extractors.signature_scanner import JPEG_EOI, PNG_IEND, PNG_MAGIC

from builders import encode_image, flat_chunks, jpeg_with_thumbnail, png_bytes, raw_pixels


class SignatureSweepTests(unittest.TestCase):
    def setUp(self) -> None:
        self.parser = SignatureSweepParser()

    def test_two_concatenated_pngs(self) -> None:
        first = png_bytes((255, 0, 0), size=(4, 4))
        second = png_bytes((0, 255, 0), size=(6, 3))
        data = first + second

        outcome = self.parser.attempt(data)
        self.assertEqual(outcome.status, ParseStatus.SUCCESS)
        self.assertEqual(len(outcome.entries), 2)
        self.assertEqual([e.name for e in outcome.entries], ["sprite_0", "sprite_1"])
        self.assertEqual(outcome.entries[0].data, first)
        self.assertEqual(outcome.entries[1].data, second)

        # The second record starts at or after the first terminator
        first_end = data.find(PNG_IEND) + len(PNG_IEND)
        self.assertGreaterEqual(data.index(outcome.entries[1].data, 1), first_end)

        sniffer = ImageSniffer()
        for entry in outcome.entries:
            self.assertIsNotNone(sniffer.sniff(entry.data, allow_raw=False))

    def test_fake_magic_is_skipped(self) -> None:
        real = png_bytes()
        data = b"junk" + PNG_MAGIC + b"\xff" * 16 + real + b"tail"

        outcome = self.parser.attempt(data)
        self.assertTrue(outcome.ok)
        self.assertEqual(len(outcome.entries), 1)
        self.assertEqual(outcome.entries[0].data, real)

    def test_embedded_bmp_uses_declared_size(self) -> None:
        bmp = encode_image("BMP", size=(5, 5), color=(0, 0, 255))
        outcome = self.parser.attempt(b"\x00\x01" + bmp + b"\x00" * 40)
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.entries[0].data, bmp)
        self.assertEqual(outcome.entries[0].image_format, "BMP")

    def test_jpeg_with_thumbnail_keeps_main_image(self) -> None:
        jpeg = jpeg_with_thumbnail(size=(64, 48), thumb_size=(8, 8))
        data = b"hdr!" + jpeg + b"tail"
        # The first EOI belongs to the thumbnail
        self.assertLess(data.find(JPEG_EOI) + len(JPEG_EOI), 4 + len(jpeg))

        outcome = self.parser.attempt(data)
        self.assertTrue(outcome.ok)
        self.assertEqual(len(outcome.entries), 1)
        self.assertEqual(outcome.entries[0].data, jpeg)
        self.assertEqual(outcome.entries[0].image_format, "JPEG")
        self.assertEqual(outcome.entries[0].image.size, (64, 48))

    def test_no_signatures(self) -> None:
        outcome = self.parser.attempt(b"\x00" * 256)
        self.assertEqual(outcome.status, ParseStatus.NO_MATCH)

    def test_raw_pixels_are_not_guessed(self) -> None:
        self.assertFalse(self.parser.attempt(raw_pixels(64, 64)).ok)


class FlatChunkTests(unittest.TestCase):
    def setUp(self) -> None:
        self.parser = FlatChunkParser()

    def test_bare_chunks(self) -> None:
        first, second = png_bytes((255, 0, 0)), png_bytes((0, 0, 255))
        outcome = self.parser.attempt(flat_chunks([first, second]))
        self.assertTrue(outcome.ok)
        self.assertEqual([e.data for e in outcome.entries], [first, second])

    def test_count_prefixed_chunks(self) -> None:
        first, second = png_bytes((255, 0, 0)), png_bytes((0, 0, 255))
        outcome = self.parser.attempt(flat_chunks([first, second], count_prefix=True))
        self.assertTrue(outcome.ok)
        self.assertEqual([e.data for e in outcome.entries], [first, second])

    def test_undecodable_chunks_are_dropped(self) -> None:
        image = png_bytes()
        outcome = self.parser.attempt(flat_chunks([b"not an image", image, b"\x00\x01"]))
        self.assertTrue(outcome.ok)
        self.assertEqual(len(outcome.entries), 1)
        self.assertEqual(outcome.entries[0].name, "sprite_0")
        self.assertEqual(outcome.entries[0].data, image)

    def test_raw_chunk_is_guessed(self) -> None:
        outcome = self.parser.attempt(flat_chunks([raw_pixels(16, 16)]))
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.entries[0].image_format, "RAW")
        self.assertEqual(outcome.entries[0].image.size, (16, 16))

    def test_oversized_chunk_stops_the_walk(self) -> None:
        data = flat_chunks([png_bytes()])
        outcome = self.parser.attempt(data[:-1])
        self.assertEqual(outcome.status, ParseStatus.NO_MATCH)


class RawImageTests(unittest.TestCase):
    def test_whole_buffer_raw_image(self) -> None:
        outcome = RawImageParser().attempt(raw_pixels(64, 64))
        self.assertTrue(outcome.ok)
        entry = outcome.entries[0]
        self.assertEqual(entry.name, "sprite_0")
        self.assertEqual(entry.image.size, (64, 64))

    def test_whole_buffer_encoded_image(self) -> None:
        outcome = RawImageParser().attempt(encode_image("JPEG", size=(10, 10)))
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.entries[0].image_format, "JPEG")

    def test_undecodable_buffer(self) -> None:
        outcome = RawImageParser().attempt(b"nothing")
        self.assertEqual(outcome.status, ParseStatus.NO_MATCH)


if __name__ == "__main__":
    unittest.main()
