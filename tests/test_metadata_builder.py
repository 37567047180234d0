import json
import tempfile
import unittest
from pathlib import Path

from inpaintpro.buffers import MaskBuffer, PixelBuffer
from inpaintpro.inpainter import DiffusionFillEngine, fill
from inpaintpro.metadata_builder import MetadataBuilder


class TestMetadataBuilder(unittest.TestCase):
    def test_summary_counts_partial_fills(self):
        pixels = PixelBuffer.blank(6, 6)
        mask = MaskBuffer.blank(6, 6)
        mask.mark_rect(1, 1, 2, 2)
        complete = fill(pixels, mask)

        stuck_mask = MaskBuffer.blank(2, 2)
        stuck_mask.mark_rect(0, 0, 2, 2)
        stuck = DiffusionFillEngine().fill(PixelBuffer.blank(2, 2), stuck_mask)

        builder = MetadataBuilder().set_image_info("photo.png", 6, 6)
        builder.add_fill_result(complete).add_fill_result(stuck)
        meta = builder.build()

        summary = meta['fill_summary']
        self.assertEqual(summary['total_fills'], 2)
        self.assertEqual(summary['damaged_pixels'], 8)
        self.assertEqual(summary['resolved_pixels'], 4)
        self.assertEqual(summary['unresolved_pixels'], 4)
        self.assertEqual(summary['partial_fills'], 1)
        self.assertEqual(meta['image_info']['filename'], "photo.png")
        self.assertIsNotNone(meta['created_at'])
        self.assertEqual([f['status'] for f in builder.get_fills()], ['resolved', 'stuck'])

    def test_empty_summary(self):
        summary = MetadataBuilder().build()['fill_summary']
        self.assertEqual(summary['total_fills'], 0)
        self.assertEqual(summary['unresolved_pixels'], 0)

    def test_save_and_load(self):
        builder = MetadataBuilder().set_image_info("a.jpg", 10, 20)
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "report.json"
            builder.save(str(path))

            with open(path, encoding='utf-8') as f:
                self.assertEqual(json.load(f)['image_info']['height'], 20)
            loaded = MetadataBuilder.load(str(path))
            self.assertEqual(loaded.metadata['image_info']['width'], 10)


if __name__ == "__main__":
    unittest.main()
