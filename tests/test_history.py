import unittest

from inpaintpro.buffers import PixelBuffer
from inpaintpro.history import EditHistory


def solid(value):
    return PixelBuffer.blank(2, 2, color=(value, value, value, 255))


class TestEditHistory(unittest.TestCase):
    def test_reset_keeps_original(self):
        history = EditHistory()
        image = solid(1)
        history.reset(image)
        image.data[:] = 0

        self.assertEqual(history.original.pixel(0, 0), (1, 1, 1, 255))
        self.assertEqual(history.current.pixel(0, 0), (1, 1, 1, 255))
        self.assertFalse(history.can_undo)
        self.assertFalse(history.can_redo)

    def test_undo_redo(self):
        history = EditHistory()
        history.reset(solid(1))
        history.commit(solid(2))
        history.commit(solid(3))

        self.assertEqual(history.undo().pixel(0, 0)[0], 2)
        self.assertEqual(history.undo().pixel(0, 0)[0], 1)
        self.assertFalse(history.can_undo)
        self.assertEqual(history.undo().pixel(0, 0)[0], 1)

        self.assertEqual(history.redo().pixel(0, 0)[0], 2)
        self.assertTrue(history.can_redo)

    def test_commit_clears_redo(self):
        history = EditHistory()
        history.reset(solid(1))
        history.commit(solid(2))
        history.undo()
        history.commit(solid(5))

        self.assertFalse(history.can_redo)
        self.assertEqual(history.current.pixel(0, 0)[0], 5)

    def test_limit(self):
        history = EditHistory(limit=3)
        history.reset(solid(0))
        for value in range(1, 6):
            history.commit(solid(value))

        self.assertEqual(len(history), 3)
        self.assertEqual(history.current.pixel(0, 0)[0], 5)
        history.undo()
        history.undo()
        self.assertEqual(history.current.pixel(0, 0)[0], 3)
        self.assertFalse(history.can_undo)
        # 원본은 히스토리 한도와 무관
        self.assertEqual(history.original.pixel(0, 0)[0], 0)

    def test_is_loaded_tracks_upload_source(self):
        history = EditHistory()
        self.assertFalse(history.is_loaded("a.png"))

        history.reset(solid(1), source="a.png")
        history.commit(solid(2))
        self.assertTrue(history.is_loaded("a.png"))
        self.assertFalse(history.is_loaded("b.png"))
        # 같은 업로드 확인만으로는 편집 내용이 사라지지 않음
        self.assertEqual(history.current.pixel(0, 0)[0], 2)

        history.reset(solid(3), source="b.png")
        self.assertTrue(history.is_loaded("b.png"))
        self.assertFalse(history.is_loaded("a.png"))
        self.assertFalse(history.can_undo)

    def test_invalid_limit(self):
        with self.assertRaises(ValueError):
            EditHistory(limit=0)


if __name__ == "__main__":
    unittest.main()
