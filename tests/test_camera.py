"""
Test cases for the webcam stream wrapper.
"""
import unittest
from unittest.mock import MagicMock, patch

import numpy as np

from gesture_shutter.camera import CameraStream
from gesture_shutter.config import load_config
from gesture_shutter.errors import CameraAccessError


class TestCameraStream(unittest.TestCase):
    """Test open/read/release against a mocked VideoCapture."""

    def setUp(self):
        self.cfg = load_config()
        self.cap = MagicMock()
        self.cap.isOpened.return_value = True
        self.cap.get.return_value = 0
        patcher = patch("gesture_shutter.camera.cv2.VideoCapture", return_value=self.cap)
        self.video_capture = patcher.start()
        self.addCleanup(patcher.stop)
        self.stream = CameraStream(self.cfg.camera)

    def test_open_requests_resolution(self):
        self.stream.open()
        self.video_capture.assert_called_once_with(self.cfg.camera.index)
        self.assertTrue(self.stream.is_open)
        self.assertEqual(self.cap.set.call_count, 3)

    def test_open_failure(self):
        self.cap.isOpened.return_value = False
        with self.assertRaises(CameraAccessError):
            self.stream.open()
        self.cap.release.assert_called_once_with()
        self.assertFalse(self.stream.is_open)

    def test_read_mirrors_frame(self):
        frame = np.zeros((2, 3, 3), dtype=np.uint8)
        frame[:, 0] = 255
        self.cap.read.return_value = (True, frame)
        self.stream.open()

        out = self.stream.read()
        self.assertTrue((out[:, 2] == 255).all())
        self.assertTrue((out[:, 0] == 0).all())

    def test_read_miss(self):
        self.cap.read.return_value = (False, None)
        self.stream.open()
        self.assertIsNone(self.stream.read())

    def test_read_before_open(self):
        self.assertIsNone(self.stream.read())

    def test_release_is_idempotent(self):
        self.stream.open()
        self.stream.release()
        self.stream.release()
        self.cap.release.assert_called_once_with()


if __name__ == '__main__':
    unittest.main()
