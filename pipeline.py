# pipeline.py
# Per-frame driver: trigger -> detect -> track -> extract -> identify -> emit.

import logging
import math
from typing import Callable, List, Optional, Tuple

import cv2
import numpy as np

from box_tracker import BoxTracker, TrackerConfig
from config import (
    DETECTION_FREQUENCY_MS,
    DETECTION_NOISE,
    MAX_FPS,
    MIN_CONFIDENCE,
    MIN_FPS,
    MIN_SIMILARITY,
    UNKNOWN_ID,
    UNKNOWN_NAME,
)
from errors import FaceRecognitionError
from face_types import BoundingBox, Detection, FaceResult, FrameOutcome
from gallery_store import Gallery
from matching import search_most_similar
from periodic_trigger import PeriodicTrigger

logger = logging.getLogger(__name__)

FrameSink = Callable[[np.ndarray, FrameOutcome], Optional[bool]]


def frame_timestamp(frame_idx: int, fps: float) -> int:
    """Milliseconds since stream start for a 1-based frame index."""
    if fps is None or math.isnan(fps):
        fps = MIN_FPS
    fps = min(max(float(fps), MIN_FPS), MAX_FPS)
    return int(frame_idx * 1000 / fps)


class RecognitionPipeline:
    """
    Recognizes faces in a frame sequence.

    With tracking on (default) one face is followed: the detector runs only
    when the periodic trigger fires, and a Kalman box tracker carries the face
    through the frames in between. With tracking off every frame is detected
    and every detection is identified.

    `detector` needs `detect(frame, min_confidence) -> List[Detection]`,
    `extractor` needs `extract(crop) -> embedding`.
    """

    def __init__(
        self,
        detector,
        extractor,
        gallery: Gallery,
        min_confidence: float = MIN_CONFIDENCE,
        min_similarity: float = MIN_SIMILARITY,
        detection_frequency: int = DETECTION_FREQUENCY_MS,
        detection_noise: float = DETECTION_NOISE,
        tracking: bool = True,
        input_scale: float = 1.0,
    ):
        self.detector = detector
        self.extractor = extractor
        self.gallery = gallery
        self.min_confidence = min_confidence
        self.min_similarity = min_similarity
        self.detection_noise = detection_noise
        self.tracking = tracking
        self.input_scale = float(input_scale)

        self.trigger = PeriodicTrigger(detection_frequency)
        self.tracker: Optional[BoxTracker] = None

    def prepare_frame(self, frame: np.ndarray) -> np.ndarray:
        if self.input_scale == 1.0:
            return frame
        return cv2.resize(frame, (0, 0), fx=self.input_scale, fy=self.input_scale)

    def identify(self, embedding: np.ndarray) -> Tuple[int, str, float]:
        """Return (name_id, name, similarity); unknown faces get the sentinel id."""
        if len(self.gallery) == 0:
            # search_most_similar rejects an empty gallery; there is nobody to match
            return UNKNOWN_ID, UNKNOWN_NAME, -1.0

        best_idx, best_sim = search_most_similar(self.gallery.embeddings, embedding)
        if best_sim >= self.min_similarity:
            logger.debug(f"Matched {self.gallery.name_of(best_idx)} (sim={best_sim:.3f})")
            return best_idx, self.gallery.name_of(best_idx), best_sim
        logger.debug(f"No match above {self.min_similarity} (best sim={best_sim:.3f})")
        return UNKNOWN_ID, UNKNOWN_NAME, best_sim

    def _recognize(self, frame: np.ndarray, box: BoundingBox, detection: Detection) -> FaceResult:
        embedding = self.extractor.extract(box.crop(frame))
        name_id, name, sim = self.identify(embedding)
        return FaceResult(
            box=box,
            landmarks=detection.landmarks,
            confidence=detection.confidence,
            name_id=name_id,
            name=name,
            similarity=sim,
        )

    def _ensure_tracker(self, frame: np.ndarray) -> BoxTracker:
        if self.tracker is None:
            h, w = frame.shape[:2]
            self.tracker = BoxTracker(TrackerConfig(BoundingBox(0, 0, w, h), self.detection_noise))
        return self.tracker

    def _process_tracked(self, frame: np.ndarray, fired: bool) -> List[FaceResult]:
        detection = Detection(box=BoundingBox())
        if fired:
            detections = self.detector.detect(frame, self.min_confidence)
            if detections:
                detection = detections[0]

        roi = self._ensure_tracker(frame).update(detection.box)
        if roi.is_empty():
            return []
        return [self._recognize(frame, roi, detection)]

    def _process_untracked(self, frame: np.ndarray) -> List[FaceResult]:
        return [
            self._recognize(frame, det.box, det)
            for det in self.detector.detect(frame, self.min_confidence)
        ]

    def process_frame(self, frame: np.ndarray, frame_idx: int, fps: float) -> FrameOutcome:
        """
        Run the whole pipeline on one frame. Errors raised by the core or the
        collaborators fail this frame only; the outcome carries the message.
        """
        timestamp = frame_timestamp(frame_idx, fps)
        fired = self.trigger.should_fire(timestamp) if self.tracking else True

        try:
            if self.tracking:
                faces = self._process_tracked(frame, fired)
            else:
                faces = self._process_untracked(frame)
        except (FaceRecognitionError, cv2.error) as e:
            logger.warning(f"Frame {frame_idx} skipped: {e}")
            return FrameOutcome(frame_idx, timestamp, fired, [], str(e))

        return FrameOutcome(frame_idx, timestamp, fired, faces)


def run_stream(capture, pipeline: RecognitionPipeline, sink: Optional[FrameSink] = None) -> int:
    """
    Feed frames from `capture` (anything with read() and get()) through the
    pipeline until the stream ends or the sink returns False.
    Returns the number of processed frames.
    """
    fps = capture.get(cv2.CAP_PROP_FPS)
    logger.info(f"Stream opened (reported fps={fps})")

    processed = 0
    frame_idx = 1
    while True:
        ok, frame = capture.read()
        if not ok or frame is None or frame.size == 0:
            logger.info("End of stream")
            break

        frame = pipeline.prepare_frame(frame)
        outcome = pipeline.process_frame(frame, frame_idx, fps)
        processed += 1
        frame_idx += 1

        if sink is not None and sink(frame, outcome) is False:
            logger.info("Stopped by sink")
            break

    return processed
