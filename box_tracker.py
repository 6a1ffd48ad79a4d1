# box_tracker.py
# Single-object bounding box tracker driven by a constant-velocity Kalman filter.

import logging
from dataclasses import dataclass, field

import numpy as np

from config import (
    DETECTION_NOISE,
    INITIAL_ERROR_COV,
    INITIAL_VELOCITY_ERROR_COV,
    PROCESS_NOISE,
    VELOCITY_PROCESS_NOISE,
)
from errors import EmptyInputError
from face_types import BoundingBox

logger = logging.getLogger(__name__)

STATE_DIM = 7  # [cx, cy, s, r, vx, vy, vs]
MEAS_DIM = 4   # [cx, cy, s, r]

# Center and scale advance by their velocity each step; aspect ratio and velocities persist.
TRANSITION = np.array([
    [1, 0, 0, 0, 1, 0, 0],
    [0, 1, 0, 0, 0, 1, 0],
    [0, 0, 1, 0, 0, 0, 1],
    [0, 0, 0, 1, 0, 0, 0],
    [0, 0, 0, 0, 1, 0, 0],
    [0, 0, 0, 0, 0, 1, 0],
    [0, 0, 0, 0, 0, 0, 1],
], dtype=np.float64)

MEASUREMENT = np.eye(MEAS_DIM, STATE_DIM, dtype=np.float64)


def initial_error_cov() -> np.ndarray:
    cov = np.eye(STATE_DIM) * INITIAL_ERROR_COV
    cov[4, 4] = INITIAL_VELOCITY_ERROR_COV
    return cov


def process_noise_cov() -> np.ndarray:
    cov = np.eye(STATE_DIM) * PROCESS_NOISE
    cov[4, 4] = VELOCITY_PROCESS_NOISE
    cov[5, 5] = VELOCITY_PROCESS_NOISE
    cov[6, 6] = VELOCITY_PROCESS_NOISE * VELOCITY_PROCESS_NOISE
    return cov


def measurement_noise_cov(noise: float) -> np.ndarray:
    return np.eye(MEAS_DIM) * noise


@dataclass
class KalmanState:
    """State estimate `x` and its error covariance `cov`."""
    x: np.ndarray = field(default_factory=lambda: np.zeros(STATE_DIM))
    cov: np.ndarray = field(default_factory=initial_error_cov)

    def copy(self) -> "KalmanState":
        return KalmanState(self.x.copy(), self.cov.copy())


def kalman_predict(state: KalmanState, transition: np.ndarray, process_noise: np.ndarray) -> KalmanState:
    x = transition @ state.x
    cov = transition @ state.cov @ transition.T + process_noise
    return KalmanState(x, cov)


def kalman_correct(
    state: KalmanState,
    z: np.ndarray,
    measurement: np.ndarray,
    measurement_noise: np.ndarray,
) -> KalmanState:
    innovation_cov = measurement @ state.cov @ measurement.T + measurement_noise
    # gain = P H^T S^-1, S and P symmetric
    gain = np.linalg.solve(innovation_cov, measurement @ state.cov).T
    residual = np.asarray(z, dtype=np.float64) - measurement @ state.x
    x = state.x + gain @ residual
    cov = state.cov - gain @ measurement @ state.cov
    return KalmanState(x, cov)


def to_measurement(box: BoundingBox) -> np.ndarray:
    """(x, y, w, h) -> [cx, cy, s, r]: center, area and aspect ratio."""
    if box.is_empty():
        raise EmptyInputError("to_measurement: empty box")
    cx = box.x + box.width / 2.0
    cy = box.y + box.height / 2.0
    s = float(box.width * box.height)
    r = box.width / float(box.height)
    return np.array([cx, cy, s, r], dtype=np.float64)


def to_bounding_box(state: np.ndarray, scene_bounds: BoundingBox) -> BoundingBox:
    """[cx, cy, s, r, ...] -> box clipped to `scene_bounds`."""
    cx, cy, s, r = (float(v) for v in state[:MEAS_DIM])
    if not (s > 0 and r > 0) or not np.isfinite([cx, cy, s, r]).all():
        return BoundingBox()
    w = np.sqrt(s * r)
    h = s / w
    box = BoundingBox(cx - w / 2.0, cy - h / 2.0, w, h).to_int()
    return box.intersect(scene_bounds)


@dataclass
class TrackerConfig:
    scene_bounds: BoundingBox
    measurement_noise: float = DETECTION_NOISE

    def __post_init__(self):
        self.measurement_noise = min(max(float(self.measurement_noise), 0.0), 1.0)


class BoxTracker:
    """
    Keeps a position estimate for one bounding box across frames.

    Uninitialized until `init` or the first non-empty `update`; never goes back.
    `update()` without a box coasts on the predicted state, `update(box)` folds
    the detection into the estimate.
    """

    def __init__(self, config: TrackerConfig):
        self.config = config
        self._state = KalmanState()
        self._transition = TRANSITION
        self._measurement = MEASUREMENT
        self._process_noise = process_noise_cov()
        self._measurement_noise = measurement_noise_cov(config.measurement_noise)
        self._initialized = False

    @property
    def state(self) -> KalmanState:
        return self._state.copy()

    def is_initialized(self) -> bool:
        return self._initialized

    def init(self, box: BoundingBox):
        """Hard-reset position and scale to `box`. Velocities and covariance are kept."""
        if box.is_empty():
            raise EmptyInputError("BoxTracker.init: empty box")
        self._state.x[:MEAS_DIM] = to_measurement(box)
        self._initialized = True
        logger.debug(f"BoxTracker: initialized at {box}")

    def update(self, box: BoundingBox = BoundingBox()) -> BoundingBox:
        if not self._initialized:
            if box.is_empty():
                return BoundingBox()
            self.init(box)
            return to_bounding_box(self._state.x, self.config.scene_bounds)

        self._state = kalman_predict(self._state, self._transition, self._process_noise)
        if box.is_empty():
            logger.debug("BoxTracker: no measurement, coasting on prediction")
            return to_bounding_box(self._state.x, self.config.scene_bounds)

        self._state = kalman_correct(
            self._state, to_measurement(box), self._measurement, self._measurement_noise
        )
        return to_bounding_box(self._state.x, self.config.scene_bounds)
