# test_renderer.py
"""Tests for result drawing."""

import unittest

import numpy as np

from face_types import BoundingBox, FaceResult
from renderer import render_faces, render_tracklet, roll_angle


class TestRenderer(unittest.TestCase):
    def setUp(self):
        self.frame = np.zeros((240, 320, 3), dtype=np.uint8)
        self.landmarks = (60.0, 70.0, 90.0, 70.0, 75.0, 85.0, 62.0, 100.0, 88.0, 100.0)

    def test_roll_angle(self):
        self.assertAlmostEqual(roll_angle(self.landmarks), 0.0)
        self.assertAlmostEqual(roll_angle((0.0, 0.0, 10.0, 10.0)), 45.0)
        self.assertEqual(roll_angle(()), 0.0)

    def test_render_faces_draws_on_frame(self):
        face = FaceResult(BoundingBox(50, 50, 60, 60), self.landmarks, 0.9, 0, "alice", 0.87)
        out = render_faces(self.frame, [face])
        self.assertIs(out, self.frame)
        self.assertGreater(int(self.frame.sum()), 0)

    def test_render_face_without_landmarks_near_border(self):
        face = FaceResult(BoundingBox(280, 200, 40, 40), (), 0.0, -1, "unknown", 0.1)
        render_faces(self.frame, [face])
        # unknown faces are labelled in red (BGR)
        self.assertGreater(int(self.frame[:, :, 2].sum()), 0)

    def test_render_tracklet_color(self):
        render_tracklet(self.frame, BoundingBox(10, 10, 50, 50), fired=False)
        self.assertEqual(tuple(self.frame[10, 30]), (255, 0, 0))
        render_tracklet(self.frame, BoundingBox(10, 10, 50, 50), fired=True)
        self.assertEqual(tuple(self.frame[10, 30]), (0, 255, 0))

    def test_render_tracklet_empty_box(self):
        render_tracklet(self.frame, BoundingBox(), fired=True)
        self.assertEqual(int(self.frame.sum()), 0)


if __name__ == "__main__":
    unittest.main()
