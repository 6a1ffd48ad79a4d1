# errors.py
# Exceptions raised by the tracking and recognition core.


class FaceRecognitionError(Exception):
    """Base class for every error raised by this project."""


class EmptyInputError(FaceRecognitionError, ValueError):
    """An empty box, image, gallery, query or embedding list was given."""


class DimensionMismatchError(FaceRecognitionError, ValueError):
    """Two embeddings that must be compared have different lengths."""


class ModelNotInitializedError(FaceRecognitionError, RuntimeError):
    """A detector or extractor is used after its model failed to load."""


class GalleryFormatError(FaceRecognitionError, ValueError):
    """A persisted gallery could not be interpreted."""


class InferenceError(FaceRecognitionError, RuntimeError):
    """A detector or extractor failed while processing an image."""
