# camera_utils.py
# Camera and video source utilities

import logging

import cv2

logger = logging.getLogger(__name__)


def parse_source(source: str):
    """A bare integer ("0", "1", ...) is a camera index; anything else a path or URL."""
    source = str(source)
    if source.isdigit():
        return int(source)
    return source


def open_capture(source: str):
    """Open a video source; returns None when it cannot be opened."""
    cap = cv2.VideoCapture(parse_source(source))
    if not cap.isOpened():
        logger.error(f"Could not open video source {source!r}")
        cap.release()
        return None
    return cap


def list_available_cameras(max_index: int = 5):
    """Return a list of camera indices that can be opened."""
    available = []
    for idx in range(max_index + 1):
        cap = cv2.VideoCapture(idx)
        ok = cap.isOpened()
        cap.release()
        if ok:
            available.append(idx)
    return available
