"""
Test cases for the desktop application wiring.
"""
import unittest
from unittest.mock import Mock

from gesture_shutter.config import load_config
from gesture_shutter.main import CaptureApp, parse_args


class TestCaptureApp(unittest.TestCase):
    """Test keyboard handling and argument parsing."""

    def setUp(self):
        self.cfg = load_config()
        self.app = CaptureApp(self.cfg)
        self.app.session = Mock()

    def test_cancel_keys_close(self):
        for key in (ord('q'), 27):
            with self.subTest(key=key):
                self.app.session.reset_mock()
                self.app._handle_key(key)
                self.app.session.close.assert_called_once_with()
                self.app.session.capture_now.assert_not_called()

    def test_submit_keys_capture(self):
        for key in (ord('s'), ord(' ')):
            with self.subTest(key=key):
                self.app.session.reset_mock()
                self.app._handle_key(key)
                self.app.session.capture_now.assert_called_once_with()

    def test_other_keys_ignored(self):
        self.app._handle_key(0xFF)
        self.app.session.close.assert_not_called()
        self.app.session.capture_now.assert_not_called()

    def test_parse_args(self):
        args = parse_args(["--camera", "2", "--output-dir", "shots", "--no-preview"])
        self.assertEqual(args.camera, 2)
        self.assertEqual(args.output_dir, "shots")
        self.assertTrue(args.no_preview)
        self.assertIsNone(args.config)


if __name__ == '__main__':
    unittest.main()
