import unittest

import cv2
import numpy as np

from inpaintpro.buffers import (
    InvalidInputError,
    MaskBuffer,
    PixelBuffer,
    check_buffers,
    decode_image,
    mask_from_canvas,
)


class TestPixelBuffer(unittest.TestCase):
    def test_layout_is_row_major_rgba(self):
        pixels = PixelBuffer.blank(3, 2)
        pixels.as_image()[1, 2] = (1, 2, 3, 4)
        i = (1 * 3 + 2) * 4
        self.assertEqual(pixels.index_of(2, 1), i)
        self.assertEqual(list(pixels.data[i:i + 4]), [1, 2, 3, 4])
        self.assertEqual(pixels.pixel(2, 1), (1, 2, 3, 4))

    def test_from_bgr_swaps_channels_and_adds_alpha(self):
        bgr = np.zeros((2, 2, 3), dtype=np.uint8)
        bgr[0, 0] = (10, 20, 30)
        pixels = PixelBuffer.from_bgr(bgr)
        self.assertEqual(pixels.size, (2, 2))
        self.assertEqual(pixels.pixel(0, 0), (30, 20, 10, 255))
        np.testing.assert_array_equal(pixels.to_bgr(), bgr)

    def test_from_bgr_grayscale_and_bgra(self):
        gray = np.full((2, 3), 77, dtype=np.uint8)
        self.assertEqual(PixelBuffer.from_bgr(gray).pixel(2, 1), (77, 77, 77, 255))

        bgra = np.zeros((1, 1, 4), dtype=np.uint8)
        bgra[0, 0] = (1, 2, 3, 128)
        self.assertEqual(PixelBuffer.from_bgr(bgra).pixel(0, 0), (3, 2, 1, 128))

    def test_copy_is_independent(self):
        pixels = PixelBuffer.blank(2, 2)
        clone = pixels.copy()
        clone.data[0] = 99
        self.assertEqual(pixels.data[0], 0)

    def test_from_array_rejects_wrong_shape(self):
        with self.assertRaises(InvalidInputError):
            PixelBuffer.from_array(np.zeros((2, 2, 3), dtype=np.uint8))


class TestMaskBuffer(unittest.TestCase):
    def test_mark_and_count(self):
        mask = MaskBuffer.blank(4, 4)
        mask.mark(0, 0)
        mask.mark_rect(1, 1, 2, 2, alpha=10)
        self.assertEqual(mask.damaged_count(), 5)
        self.assertTrue(mask.is_damaged(2, 2))
        self.assertFalse(mask.is_damaged(3, 3))
        mask.clear()
        self.assertEqual(mask.damaged_count(), 0)

    def test_from_alpha(self):
        alpha = np.array([[0, 1], [True, 0]])
        mask = MaskBuffer.from_alpha(alpha)
        self.assertTrue(mask.is_damaged(1, 0))
        self.assertTrue(mask.is_damaged(0, 1))
        self.assertEqual(mask.damaged_count(), 2)


class TestCheckBuffers(unittest.TestCase):
    def test_valid_pair(self):
        check_buffers(PixelBuffer.blank(3, 2), MaskBuffer.blank(3, 2))

    def test_size_mismatch(self):
        with self.assertRaises(InvalidInputError):
            check_buffers(PixelBuffer.blank(3, 2), MaskBuffer.blank(2, 3))

    def test_wrong_dtype(self):
        pixels = PixelBuffer(1, 1, np.zeros(4, dtype=np.float32))
        with self.assertRaises(InvalidInputError):
            check_buffers(pixels, MaskBuffer.blank(1, 1))

    def test_long_buffer(self):
        mask = MaskBuffer(1, 1, np.zeros(8, dtype=np.uint8))
        with self.assertRaises(InvalidInputError):
            check_buffers(PixelBuffer.blank(1, 1), mask)

    def test_invalid_input_is_value_error(self):
        self.assertTrue(issubclass(InvalidInputError, ValueError))


class TestDecodeImage(unittest.TestCase):
    def test_decode_png(self):
        bgr = np.zeros((3, 4, 3), dtype=np.uint8)
        bgr[:, :] = (0, 0, 255)
        ok, encoded = cv2.imencode(".png", bgr)
        self.assertTrue(ok)

        pixels = decode_image(encoded.tobytes())

        self.assertEqual(pixels.size, (4, 3))
        self.assertEqual(pixels.pixel(0, 0), (255, 0, 0, 255))

    def test_decode_garbage(self):
        with self.assertRaises(InvalidInputError):
            decode_image(b"not an image")
        with self.assertRaises(InvalidInputError):
            decode_image(b"")


class TestMaskFromCanvas(unittest.TestCase):
    def test_none_gives_empty_mask(self):
        mask = mask_from_canvas(None, 5, 4)
        self.assertEqual(mask.size, (5, 4))
        self.assertEqual(mask.damaged_count(), 0)

    def test_same_size_layer(self):
        layer = np.zeros((4, 5, 4), dtype=np.uint8)
        layer[1, 2] = (255, 50, 50, 204)
        mask = mask_from_canvas(layer, 5, 4)
        self.assertEqual(mask.damaged_count(), 1)
        self.assertTrue(mask.is_damaged(2, 1))

    def test_layer_scaled_to_image(self):
        layer = np.zeros((2, 2, 4), dtype=np.uint8)
        layer[0, 0, 3] = 255
        mask = mask_from_canvas(layer, 4, 4)
        self.assertEqual(mask.size, (4, 4))
        self.assertEqual(mask.damaged_count(), 4)
        for x, y in [(0, 0), (1, 0), (0, 1), (1, 1)]:
            self.assertTrue(mask.is_damaged(x, y))

    def test_rejects_non_rgba(self):
        with self.assertRaises(InvalidInputError):
            mask_from_canvas(np.zeros((2, 2), dtype=np.uint8), 2, 2)


if __name__ == "__main__":
    unittest.main()
