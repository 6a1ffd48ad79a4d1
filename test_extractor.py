# test_extractor.py
"""Tests for FaceExtractor error handling around the face_recognition encoder."""

import unittest
from unittest import mock

import numpy as np

from errors import EmptyInputError, FaceRecognitionError, InferenceError, ModelNotInitializedError
from extractor import FaceExtractor


class TestFaceExtractor(unittest.TestCase):
    def setUp(self):
        self.crop = np.full((40, 40, 3), 128, dtype=np.uint8)

    def test_encoder_failure_becomes_inference_error(self):
        extractor = FaceExtractor()
        with mock.patch(
            "extractor.face_recognition.face_encodings",
            side_effect=RuntimeError("dlib: compute_face_descriptor failed"),
        ):
            with self.assertRaises(InferenceError) as ctx:
                extractor.extract(self.crop)
        self.assertIsInstance(ctx.exception, FaceRecognitionError)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    def test_returns_float32_embedding(self):
        extractor = FaceExtractor()
        with mock.patch(
            "extractor.face_recognition.face_encodings",
            return_value=[np.linspace(0.0, 1.0, 128)],
        ) as encode:
            embedding = extractor.extract(self.crop)
        self.assertEqual(embedding.dtype, np.float32)
        self.assertEqual(embedding.shape, (128,))
        self.assertEqual(encode.call_args.kwargs["known_face_locations"], [(0, 40, 40, 0)])

    def test_empty_crop(self):
        with self.assertRaises(EmptyInputError):
            FaceExtractor().extract(np.zeros((0, 0, 3), dtype=np.uint8))

    def test_unknown_model_is_not_ready(self):
        extractor = FaceExtractor(model="huge")
        self.assertFalse(extractor.is_ready())
        with self.assertRaises(ModelNotInitializedError):
            extractor.extract(self.crop)


if __name__ == "__main__":
    unittest.main()
