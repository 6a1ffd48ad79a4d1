# renderer.py
# Drawing of recognition results and the on-screen render sink.

import math
from typing import Iterable, Optional

import cv2
import numpy as np

from face_types import BoundingBox, FaceResult, FrameOutcome, Landmarks

FACE_COLOR = (50, 255, 0)
UNKNOWN_COLOR = (0, 0, 255)
DETECTED_COLOR = (0, 255, 0)
COASTING_COLOR = (255, 0, 0)
BORDER_SIZE = 0.2
THICKNESS = 2


def roll_angle(landmarks: Landmarks) -> float:
    """Angle of the line between the eyes, in degrees."""
    if len(landmarks) < 4:
        return 0.0
    dx = landmarks[2] - landmarks[0]
    dy = landmarks[3] - landmarks[1]
    return math.degrees(math.atan2(dy, dx))


def _draw_bordered_box(out: np.ndarray, box: BoundingBox, color=FACE_COLOR):
    # corner brackets only
    b = box.to_int()
    bw = int(BORDER_SIZE * b.width)
    bh = int(BORDER_SIZE * b.height)
    left, top, right, bottom = b.to_ltrb()
    for (x, y, sx, sy) in ((left, top, 1, 1), (right, top, -1, 1), (right, bottom, -1, -1), (left, bottom, 1, -1)):
        cv2.line(out, (x, y), (x + sx * bw, y), color, THICKNESS)
        cv2.line(out, (x, y), (x, y + sy * bh), color, THICKNESS)


def _draw_transparent_rect(out: np.ndarray, box: BoundingBox, color, opacity: float):
    h, w = out.shape[:2]
    b = box.to_int().intersect(BoundingBox(0, 0, w, h))
    if b.is_empty():
        return
    left, top, right, bottom = b.to_ltrb()
    roi = out[top:bottom, left:right]
    colored = np.full_like(roi, color)
    roi[:] = cv2.addWeighted(colored, opacity, roi, 1.0 - opacity, 0.0)


def render_landmarks(out: np.ndarray, landmarks: Landmarks, color=FACE_COLOR):
    for i in range(0, len(landmarks) - 1, 2):
        cv2.circle(out, (int(landmarks[i]), int(landmarks[i + 1])), 1, color, -1)


def render_faces(out: np.ndarray, faces: Iterable[FaceResult]) -> np.ndarray:
    for face in faces:
        box = face.box.to_int()
        _draw_bordered_box(out, box)
        render_landmarks(out, face.landmarks)

        name_color = FACE_COLOR if face.is_known else UNKNOWN_COLOR
        cv2.putText(out, face.name, (box.x, box.y - 15), cv2.FONT_HERSHEY_PLAIN, 1.25, name_color, THICKNESS)

        # info panel to the right of the face
        panel = BoundingBox(box.x + box.width + 1, box.y, 150, max(box.height, 80))
        _draw_transparent_rect(out, panel, (0, 0, 0), 0.4)
        x = box.x + box.width + 10
        y = box.y + 5
        lines = (
            (f"pid: {face.name_id}", name_color),
            (f"conf: {face.confidence:.2f}", FACE_COLOR),
            (f"cosine: {face.similarity:.2f}", name_color),
            (f"roll: {roll_angle(face.landmarks):.1f}", FACE_COLOR),
        )
        for text, color in lines:
            y += 20
            cv2.putText(out, text, (x, y), cv2.FONT_HERSHEY_PLAIN, 1.2, color, 1)
    return out


def render_tracklet(out: np.ndarray, box: BoundingBox, fired: bool) -> np.ndarray:
    """Outline the tracked region: green on detection frames, blue while coasting."""
    if box.is_empty():
        return out
    left, top, right, bottom = box.to_int().to_ltrb()
    color = DETECTED_COLOR if fired else COASTING_COLOR
    cv2.rectangle(out, (left, top), (right, bottom), color, THICKNESS)
    return out


class WindowSink:
    """Shows every processed frame in a window; returns False on 'q' or Esc."""

    def __init__(self, window_name: str = "FaceRecognizer", delay_ms: int = 15):
        self.window_name = window_name
        self.delay_ms = delay_ms

    def __call__(self, frame: np.ndarray, outcome: FrameOutcome) -> Optional[bool]:
        render_faces(frame, outcome.faces)
        for face in outcome.faces:
            render_tracklet(frame, face.box, outcome.detection_fired)
        cv2.imshow(self.window_name, frame)
        key = cv2.waitKey(self.delay_ms) & 0xFF
        if key in (27, ord("q")):
            return False
        return True

    def close(self):
        cv2.destroyAllWindows()
