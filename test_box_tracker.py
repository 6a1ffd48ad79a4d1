# test_box_tracker.py
"""Tests for the Kalman box tracker and its conversion helpers."""

import unittest

import numpy as np

from box_tracker import (
    BoxTracker,
    KalmanState,
    MEASUREMENT,
    TRANSITION,
    TrackerConfig,
    kalman_correct,
    kalman_predict,
    measurement_noise_cov,
    process_noise_cov,
    to_bounding_box,
    to_measurement,
)
from errors import EmptyInputError
from face_types import BoundingBox


class TestConversions(unittest.TestCase):
    def setUp(self):
        self.scene = BoundingBox(0, 0, 640, 480)

    def test_to_measurement(self):
        z = to_measurement(BoundingBox(10, 20, 40, 80))
        np.testing.assert_allclose(z, [30.0, 60.0, 3200.0, 0.5])

    def test_to_measurement_rejects_empty_box(self):
        with self.assertRaises(EmptyInputError):
            to_measurement(BoundingBox())

    def test_to_bounding_box_inverts_measurement(self):
        box = BoundingBox(10, 20, 40, 80)
        self.assertEqual(to_bounding_box(to_measurement(box), self.scene), box)

    def test_to_bounding_box_clips_to_scene(self):
        z = to_measurement(BoundingBox(600, 400, 100, 100))
        self.assertEqual(to_bounding_box(z, self.scene), BoundingBox(600, 400, 40, 80))

    def test_to_bounding_box_outside_scene_is_empty(self):
        z = to_measurement(BoundingBox(1000, 1000, 50, 50))
        self.assertTrue(to_bounding_box(z, self.scene).is_empty())

    def test_to_bounding_box_non_positive_scale_is_empty(self):
        self.assertTrue(to_bounding_box(np.array([100.0, 100.0, -5.0, 1.0]), self.scene).is_empty())


class TestKalmanSteps(unittest.TestCase):
    def test_predict_advances_by_velocity(self):
        state = KalmanState()
        state.x[:] = [10, 20, 100, 1, 2, -3, 5]
        pred = kalman_predict(state, TRANSITION, process_noise_cov())
        np.testing.assert_allclose(pred.x, [12, 17, 105, 1, 2, -3, 5])
        # uncertainty grows
        self.assertTrue(np.all(np.diag(pred.cov) >= np.diag(state.cov)))

    def test_steps_do_not_mutate_input(self):
        state = KalmanState()
        state.x[:4] = [10, 20, 100, 1]
        before = state.copy()
        kalman_predict(state, TRANSITION, process_noise_cov())
        kalman_correct(state, np.array([12.0, 22.0, 110.0, 1.0]), MEASUREMENT, measurement_noise_cov(0.1))
        np.testing.assert_array_equal(state.x, before.x)
        np.testing.assert_array_equal(state.cov, before.cov)

    def test_correct_moves_toward_measurement(self):
        state = KalmanState()
        state.x[:4] = [10, 20, 100, 1]
        z = np.array([20.0, 20.0, 100.0, 1.0])
        corr = kalman_correct(state, z, MEASUREMENT, measurement_noise_cov(0.1))
        self.assertGreater(corr.x[0], 10.0)
        self.assertLessEqual(corr.x[0], 20.0)
        self.assertLess(corr.cov[0, 0], state.cov[0, 0])


class TestBoxTracker(unittest.TestCase):
    def setUp(self):
        self.tracker = BoxTracker(TrackerConfig(BoundingBox(0, 0, 2000, 2000), 0.1))

    def test_init_with_empty_box_fails(self):
        with self.assertRaises(EmptyInputError):
            self.tracker.init(BoundingBox())
        with self.assertRaises(ValueError):
            self.tracker.init(BoundingBox(10, 10, 0, 50))
        self.assertFalse(self.tracker.is_initialized())

    def test_empty_update_while_uninitialized_is_noop(self):
        box = self.tracker.update(BoundingBox())
        self.assertTrue(box.is_empty())
        self.assertFalse(self.tracker.is_initialized())
        np.testing.assert_array_equal(self.tracker.state.x, np.zeros(7))

    def test_first_update_initializes(self):
        box = BoundingBox(100, 120, 80, 80)
        self.assertEqual(self.tracker.update(box), box)
        self.assertTrue(self.tracker.is_initialized())

    def test_first_update_is_clipped_to_scene(self):
        tracker = BoxTracker(TrackerConfig(BoundingBox(0, 0, 640, 480)))
        self.assertEqual(tracker.update(BoundingBox(600, 400, 100, 100)), BoundingBox(600, 400, 40, 80))

    def test_init_resets_position_only(self):
        self.tracker.init(BoundingBox(100, 100, 100, 100))
        self.tracker.update(BoundingBox(110, 100, 100, 100))
        cov_before = self.tracker.state.cov
        self.tracker.init(BoundingBox(500, 500, 50, 50))
        np.testing.assert_allclose(self.tracker.state.x[:4], [525, 525, 2500, 1])
        np.testing.assert_array_equal(self.tracker.state.cov, cov_before)

    def test_coasting_without_velocity_stays_put(self):
        box = BoundingBox(100, 100, 100, 100)
        self.tracker.init(box)
        for _ in range(5):
            self.assertEqual(self.tracker.update(), box)
        self.assertTrue(self.tracker.is_initialized())

    def test_correction_pulls_toward_detection(self):
        self.tracker.init(BoundingBox(100, 100, 100, 100))
        box = self.tracker.update(BoundingBox(120, 100, 100, 100))
        self.assertGreater(box.x, 100)
        self.assertLessEqual(box.x, 120)

    def test_constant_velocity_is_extrapolated(self):
        """After a steady run of detections, coasting keeps the same velocity."""
        last = None
        for k in range(40):
            last = self.tracker.update(BoundingBox(100 + 5 * k, 300, 100, 100))

        self.assertAlmostEqual(self.tracker.state.x[4], 5.0, delta=0.1)
        self.assertAlmostEqual(self.tracker.state.x[5], 0.0, delta=0.1)

        coasted = [self.tracker.update() for _ in range(4)]
        self.assertAlmostEqual(coasted[0].x, last.x + 5, delta=1.5)
        for prev, cur in zip(coasted, coasted[1:]):
            self.assertAlmostEqual(cur.x - prev.x, 5, delta=1.01)
            self.assertAlmostEqual(cur.y, 300, delta=1)
            self.assertAlmostEqual(cur.width, 100, delta=1)

    def test_measurement_noise_is_clamped(self):
        self.assertEqual(TrackerConfig(BoundingBox(0, 0, 10, 10), 5.0).measurement_noise, 1.0)
        self.assertEqual(TrackerConfig(BoundingBox(0, 0, 10, 10), -1.0).measurement_noise, 0.0)


if __name__ == "__main__":
    unittest.main()
