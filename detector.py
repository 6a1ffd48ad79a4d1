# detector.py
# Face detector collaborator: dlib detector scores + face_recognition landmarks.

import logging
from typing import List, Optional

import cv2
import dlib
import face_recognition
import face_recognition_models
import numpy as np

from config import DETECT_SCALE, DETECTOR_MODEL, MIN_CONFIDENCE, UPSAMPLE_TIMES
from errors import EmptyInputError, InferenceError, ModelNotInitializedError
from face_types import BoundingBox, Detection, Landmarks

logger = logging.getLogger(__name__)


def _mean_point(points):
    pts = np.asarray(points, dtype=np.float32)
    return float(pts[:, 0].mean()), float(pts[:, 1].mean())


def five_point_landmarks(shape: dict) -> Landmarks:
    """
    Reduce a face_recognition landmark dict to the five reference points:
    left eye, right eye, nose tip, mouth left, mouth right (flattened).
    """
    left_eye = _mean_point(shape["left_eye"])
    right_eye = _mean_point(shape["right_eye"])
    nose = _mean_point(shape["nose_tip"])
    lips = shape["top_lip"] + shape["bottom_lip"]
    mouth_left = min(lips, key=lambda p: p[0])
    mouth_right = max(lips, key=lambda p: p[0])
    return (
        left_eye[0], left_eye[1],
        right_eye[0], right_eye[1],
        nose[0], nose[1],
        float(mouth_left[0]), float(mouth_left[1]),
        float(mouth_right[0]), float(mouth_right[1]),
    )


class FaceDetector:
    """
    Detects faces in BGR frames.

    model="hog" uses dlib's frontal face detector (SVM score as confidence),
    model="cnn" uses dlib's MMOD CNN detector. A model that fails to load
    leaves the detector non-functional; `detect` then raises.
    """

    def __init__(
        self,
        model: str = DETECTOR_MODEL,
        model_path: Optional[str] = None,
        upsample_times: int = UPSAMPLE_TIMES,
        scale: float = DETECT_SCALE,
    ):
        self.model = model
        self.upsample_times = int(upsample_times)
        self.scale = float(scale)
        self._hog = None
        self._cnn = None

        try:
            if model == "hog":
                self._hog = dlib.get_frontal_face_detector()
            elif model == "cnn":
                path = model_path or face_recognition_models.cnn_face_detector_model_location()
                self._cnn = dlib.cnn_face_detection_model_v1(path)
            else:
                logger.error(f"FaceDetector: unknown model '{model}'")
        except RuntimeError as e:
            logger.error(f"FaceDetector: could not load model '{model}': {e}")

        if self.is_ready():
            logger.info(f"FaceDetector: '{model}' model ready")

    def is_ready(self) -> bool:
        return self._hog is not None or self._cnn is not None

    def _raw_detections(self, rgb: np.ndarray, min_confidence: float):
        if self._hog is not None:
            rects, scores, _ = self._hog.run(rgb, self.upsample_times, min_confidence)
            return list(zip(rects, scores))
        return [(d.rect, d.confidence) for d in self._cnn(rgb, self.upsample_times)]

    def detect(self, frame: np.ndarray, min_confidence: float = MIN_CONFIDENCE) -> List[Detection]:
        """Return detections ordered by descending confidence."""
        if frame is None or frame.size == 0:
            raise EmptyInputError("FaceDetector.detect: empty image")
        if not self.is_ready():
            raise ModelNotInitializedError("FaceDetector.detect: model is not initialized")

        img = frame
        if self.scale != 1.0:
            img = cv2.resize(frame, (0, 0), fx=self.scale, fy=self.scale)
        rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)

        try:
            raw = self._raw_detections(rgb, min_confidence)
        except RuntimeError as e:
            raise InferenceError(f"FaceDetector.detect: detection failed: {e}") from e
        found = [(r, float(s)) for r, s in raw if s >= min_confidence]
        if not found:
            return []
        found.sort(key=lambda item: item[1], reverse=True)

        locations = [(r.top(), r.right(), r.bottom(), r.left()) for r, _ in found]
        try:
            shapes = face_recognition.face_landmarks(rgb, face_locations=locations, model="large")
        except RuntimeError as e:
            raise InferenceError(f"FaceDetector.detect: landmark prediction failed: {e}") from e

        h, w = frame.shape[:2]
        frame_rect = BoundingBox(0, 0, w, h)
        inv = 1.0 / self.scale
        detections = []
        for (rect, score), css, shape in zip(found, locations, shapes):
            top, right, bottom, left = (int(v * inv) for v in css)
            box = BoundingBox.from_ltrb(left, top, right, bottom).intersect(frame_rect)
            if box.is_empty():
                continue
            landmarks = tuple(v * inv for v in five_point_landmarks(shape))
            detections.append(Detection(box=box, landmarks=landmarks, confidence=score))

        logger.debug(f"FaceDetector: {len(detections)} faces (min_confidence={min_confidence})")
        return detections
