# config.py
# Configuration constants for the face tracking and recognition pipeline.

# Recognition thresholds
MIN_CONFIDENCE = 0.25
MIN_SIMILARITY = 0.25

# Unidentified face placeholders
UNKNOWN_NAME = "unknown"
UNKNOWN_ID = -1

# Detection settings
DETECTION_FREQUENCY_MS = 160
DETECT_SCALE = 1.0
DETECTOR_MODEL = "hog"
UPSAMPLE_TIMES = 1

# Stream timing (fps reported by captures is clamped to this range)
MIN_FPS = 1.0
MAX_FPS = 30.0

# Tracking settings (Kalman filter tuning)
DETECTION_NOISE = 0.1
INITIAL_ERROR_COV = 10.0
INITIAL_VELOCITY_ERROR_COV = 1000.0
PROCESS_NOISE = 1.0
VELOCITY_PROCESS_NOISE = 0.2

# Gallery settings
GALLERY_NAMES_KEY = "Names"
PHOTO_EXTENSIONS = (".png", ".jpg", ".jpeg")
