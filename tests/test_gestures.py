"""
Test cases for the hold timer and the stage sequencer.
"""
import unittest

from gesture_shutter.config import load_config
from gesture_shutter.errors import ConfigError
from gesture_shutter.gestures import HoldTimer, StageSequencer

EPS = 0.001


class TestHoldTimer(unittest.TestCase):
    """Test hold confirmation timing."""

    def setUp(self):
        self.timer = HoldTimer(required_s=1.5)
        self.t0 = 100.0

    def test_just_short_of_required_does_not_confirm(self):
        """Holding for required - eps never confirms."""
        self.assertFalse(self.timer.observe(True, self.t0))
        self.assertFalse(self.timer.observe(True, self.t0 + 1.5 - EPS))
        self.assertLess(self.timer.progress, 1.0)

    def test_just_past_required_confirms_once(self):
        """Holding for required + eps confirms exactly once."""
        self.timer.observe(True, self.t0)
        self.assertTrue(self.timer.observe(True, self.t0 + 1.5 + EPS))
        self.assertFalse(self.timer.observe(True, self.t0 + 1.6))
        self.assertFalse(self.timer.observe(True, self.t0 + 5.0))
        self.assertEqual(self.timer.progress, 1.0)

    def test_progress_fraction(self):
        """Progress is elapsed / required."""
        self.timer.observe(True, self.t0)
        self.assertEqual(self.timer.progress, 0.0)
        self.timer.observe(True, self.t0 + 0.75)
        self.assertAlmostEqual(self.timer.progress, 0.5)

    def test_interruption_resets_progress(self):
        """One mismatching observation clears the hold."""
        self.timer.observe(True, self.t0)
        self.timer.observe(True, self.t0 + 1.0)
        self.assertFalse(self.timer.observe(False, self.t0 + 1.1))
        self.assertEqual(self.timer.progress, 0.0)
        self.assertIsNone(self.timer.hold_start)

    def test_resume_restarts_from_zero(self):
        """After an interruption the hold starts over."""
        self.timer.observe(True, self.t0)
        self.timer.observe(True, self.t0 + 1.4)
        self.timer.observe(False, self.t0 + 1.45)
        self.assertFalse(self.timer.observe(True, self.t0 + 1.5))
        self.assertEqual(self.timer.hold_start, self.t0 + 1.5)
        self.assertFalse(self.timer.observe(True, self.t0 + 2.9))
        self.assertTrue(self.timer.observe(True, self.t0 + 3.0 + EPS))

    def test_new_hold_can_confirm_again(self):
        """Confirmation is once per hold start, not once per timer."""
        self.timer.observe(True, self.t0)
        self.assertTrue(self.timer.observe(True, self.t0 + 1.5))
        self.timer.observe(False, self.t0 + 1.6)
        self.timer.observe(True, self.t0 + 2.0)
        self.assertTrue(self.timer.observe(True, self.t0 + 3.5))

    def test_invalid_duration(self):
        with self.assertRaises(ValueError):
            HoldTimer(required_s=0)


class TestStageSequencer(unittest.TestCase):
    """Test the ordered 1-2-3 challenge."""

    def setUp(self):
        self.cfg = load_config()
        self.sequencer = StageSequencer(self.cfg)
        self.t = 100.0

    def hold(self, count, seconds, dt=0.1):
        """Feed ``count`` every dt seconds for ``seconds``; return completed stages."""
        completed = []
        steps = int(round(seconds / dt))
        for _ in range(steps + 1):
            stage = self.sequencer.update(count, self.t)
            if stage is not None:
                completed.append(stage)
            self.t += dt
        return completed

    def test_initial_state(self):
        state = self.sequencer.state
        self.assertEqual(state.active_stage, 1)
        self.assertIsNone(state.hold_start)
        self.assertEqual(state.completed, frozenset())
        self.assertFalse(state.all_complete)
        self.assertEqual(self.sequencer.stage_completed(), (False, False, False))

    def test_stages_complete_in_order(self):
        """1, 2, 3 held in turn completes the challenge."""
        self.assertEqual(self.hold(1, 1.6), [1])
        self.assertEqual(self.sequencer.active_stage, 2)
        self.assertEqual(self.hold(2, 1.6), [2])
        self.assertEqual(self.sequencer.active_stage, 3)
        self.assertEqual(self.hold(3, 1.6), [3])
        self.assertTrue(self.sequencer.is_complete)
        self.assertTrue(self.sequencer.state.all_complete)
        self.assertEqual(self.sequencer.stage_completed(), (True, True, True))

    def test_later_stage_cannot_be_skipped_to(self):
        """Holding 2 or 3 fingers while stage 1 is active does nothing."""
        self.assertEqual(self.hold(2, 3.0), [])
        self.assertEqual(self.hold(3, 3.0), [])
        self.assertEqual(self.sequencer.active_stage, 1)
        self.assertEqual(self.sequencer.state.completed, frozenset())

    def test_wrong_count_keeps_completed_stages(self):
        """A mismatch only resets the active stage's hold."""
        self.hold(1, 1.6)
        self.hold(2, 1.0)
        self.assertGreater(self.sequencer.hold_progress, 0.0)
        self.hold(4, 0.1)
        self.assertEqual(self.sequencer.hold_progress, 0.0)
        self.assertEqual(self.sequencer.active_stage, 2)
        self.assertEqual(self.sequencer.state.completed, frozenset({1}))

    def test_no_hand_resets_hold(self):
        """Losing the hand for one frame restarts the hold."""
        self.hold(1, 1.0)
        self.sequencer.update(None, self.t)
        self.t += 0.1
        self.assertIsNone(self.sequencer.state.hold_start)
        self.assertEqual(self.hold(1, 1.0), [])
        self.assertEqual(self.hold(1, 0.6), [1])

    def test_completion_fires_once(self):
        """Continuing to hold after completion never re-completes a stage."""
        completed = self.hold(1, 5.0)
        self.assertEqual(completed, [1])

    def test_update_after_complete_is_noop(self):
        self.hold(1, 1.6)
        self.hold(2, 1.6)
        self.hold(3, 1.6)
        self.assertIsNone(self.sequencer.update(3, self.t))
        self.assertIsNone(self.sequencer.active_stage)

    def test_hold_start_projection(self):
        self.sequencer.update(1, 42.0)
        self.assertEqual(self.sequencer.state.hold_start, 42.0)

    def test_reset(self):
        self.hold(1, 1.6)
        self.sequencer.reset()
        self.assertEqual(self.sequencer.active_stage, 1)
        self.assertEqual(self.sequencer.state.completed, frozenset())

    def test_custom_stages(self):
        self.cfg.challenge.stages = [2, 5]
        self.cfg.challenge.hold_ms = 500
        sequencer = StageSequencer(self.cfg)
        self.sequencer = sequencer
        self.assertEqual(self.hold(2, 0.6), [2])
        self.assertEqual(self.hold(5, 0.6), [5])
        self.assertTrue(sequencer.is_complete)

    def test_invalid_stages(self):
        self.cfg.challenge.stages = [2, 1]
        with self.assertRaises(ConfigError):
            StageSequencer(self.cfg)
        self.cfg.challenge.stages = []
        with self.assertRaises(ConfigError):
            StageSequencer(self.cfg)


if __name__ == '__main__':
    unittest.main()
