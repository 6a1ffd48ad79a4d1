# extractor.py
# Face embedding collaborator built on face_recognition's encoder.

import logging
from typing import List

import cv2
import face_recognition
import numpy as np

from errors import EmptyInputError, InferenceError, ModelNotInitializedError

logger = logging.getLogger(__name__)


class FaceExtractor:
    """Turns a BGR face crop into a fixed-length (128-d) embedding."""

    def __init__(self, num_jitters: int = 1, model: str = "small"):
        self.num_jitters = int(num_jitters)
        self.model = model
        self._ready = model in ("small", "large")
        if not self._ready:
            logger.error(f"FaceExtractor: unknown landmark model '{model}'")

    def is_ready(self) -> bool:
        return self._ready

    def extract(self, face_image: np.ndarray) -> np.ndarray:
        if face_image is None or face_image.size == 0:
            raise EmptyInputError("FaceExtractor.extract: empty image")
        if not self._ready:
            raise ModelNotInitializedError("FaceExtractor.extract: model is not initialized")

        crop_rgb = cv2.cvtColor(face_image, cv2.COLOR_BGR2RGB)
        h, w = crop_rgb.shape[:2]
        # The crop is already the face; encode it as one location covering the whole image.
        try:
            encodings = face_recognition.face_encodings(
                crop_rgb,
                known_face_locations=[(0, w, h, 0)],
                num_jitters=self.num_jitters,
                model=self.model,
            )
        except RuntimeError as e:
            raise InferenceError(f"FaceExtractor.extract: encoding failed: {e}") from e
        return np.array(encodings[0], dtype="float32")

    def extract_many(self, face_images: List[np.ndarray]) -> List[np.ndarray]:
        return [self.extract(img) for img in face_images]
