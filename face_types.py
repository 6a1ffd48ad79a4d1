# face_types.py
# Plain data records shared by the detector, tracker, pipeline and renderer.

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

Landmarks = Tuple[float, ...]  # flattened (x, y) pairs: left eye, right eye, nose, mouth left, mouth right


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned rectangle. A box with no area means "nothing here"."""
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0

    @classmethod
    def from_ltrb(cls, left, top, right, bottom) -> "BoundingBox":
        return cls(left, top, right - left, bottom - top)

    @classmethod
    def from_css(cls, css) -> "BoundingBox":
        """Build from face_recognition's (top, right, bottom, left) tuple."""
        top, right, bottom, left = css
        return cls.from_ltrb(left, top, right, bottom)

    def to_ltrb(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def to_css(self) -> Tuple[int, int, int, int]:
        box = self.to_int()
        return (box.y, box.x + box.width, box.y + box.height, box.x)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def area(self) -> float:
        if self.is_empty():
            return 0
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    def to_int(self) -> "BoundingBox":
        # truncation, the same way pixel rectangles are built from real coordinates
        return BoundingBox(int(self.x), int(self.y), int(self.width), int(self.height))

    def intersect(self, other: "BoundingBox") -> "BoundingBox":
        left = max(self.x, other.x)
        top = max(self.y, other.y)
        right = min(self.x + self.width, other.x + other.width)
        bottom = min(self.y + self.height, other.y + other.height)
        if right <= left or bottom <= top:
            return BoundingBox()
        return BoundingBox.from_ltrb(left, top, right, bottom)

    def crop(self, image: np.ndarray) -> np.ndarray:
        """Return the part of `image` covered by the box (a view, possibly empty)."""
        h, w = image.shape[:2]
        box = self.to_int().intersect(BoundingBox(0, 0, w, h))
        if box.is_empty():
            return image[0:0, 0:0]
        left, top, right, bottom = box.to_ltrb()
        return image[top:bottom, left:right]


@dataclass
class Detection:
    box: BoundingBox
    landmarks: Landmarks = ()
    confidence: float = 0.0


@dataclass
class FaceResult:
    """One identified (or unidentified) face, as handed to the render sink."""
    box: BoundingBox
    landmarks: Landmarks
    confidence: float
    name_id: int
    name: str
    similarity: float

    @property
    def is_known(self) -> bool:
        return self.name_id >= 0


@dataclass
class FrameOutcome:
    frame_idx: int
    timestamp: int
    detection_fired: bool = False
    faces: List[FaceResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
