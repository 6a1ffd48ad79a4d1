# main.py
# Real-time face recognition on a camera or video stream.

import argparse
import logging
import sys

from camera_utils import list_available_cameras, open_capture
from config import DETECT_SCALE, DETECTION_FREQUENCY_MS, DETECTION_NOISE, MIN_CONFIDENCE, MIN_SIMILARITY
from errors import GalleryFormatError
from gallery_store import Gallery, load_gallery
from pipeline import RecognitionPipeline, run_stream

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="FaceRecognizer", description="Detect, track and identify a face in a video stream.")
    parser.add_argument("input", nargs="?", default="0", help="camera index or video path/URL")
    parser.add_argument("--gallery", help="gallery file written by enroll.py")
    parser.add_argument("--conf", type=float, default=MIN_CONFIDENCE, help="minimal detection confidence")
    parser.add_argument("--sim-thr", type=float, default=MIN_SIMILARITY, help="minimal similarity to accept a match")
    parser.add_argument("--input-scale", type=float, default=DETECT_SCALE, help="resize factor applied to every frame")
    parser.add_argument("--frequency", type=int, default=DETECTION_FREQUENCY_MS,
                        help="ms between detections (0 = every frame, <0 = never)")
    parser.add_argument("--noise", type=float, default=DETECTION_NOISE, help="detector noise in [0, 1] for the tracker")
    parser.add_argument("--no-tracking", action="store_true", help="detect and identify every face on every frame")
    parser.add_argument("--list-cameras", action="store_true", help="print available camera indices and exit")
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if args.list_cameras:
        print(list_available_cameras())
        return 0

    gallery = Gallery.empty()
    if args.gallery:
        try:
            gallery = load_gallery(args.gallery)
        except (OSError, GalleryFormatError) as e:
            logger.error(f"Failed to open gallery: {e}")
            return 1

    # Imported here so --help and --list-cameras work without loading the models
    from detector import FaceDetector
    from extractor import FaceExtractor
    from renderer import WindowSink

    detector = FaceDetector()
    extractor = FaceExtractor()
    if not detector.is_ready() or not extractor.is_ready():
        logger.error("Face models are not available")
        return 1

    pipeline = RecognitionPipeline(
        detector,
        extractor,
        gallery,
        min_confidence=args.conf,
        min_similarity=args.sim_thr,
        detection_frequency=args.frequency,
        detection_noise=args.noise,
        tracking=not args.no_tracking,
        input_scale=args.input_scale,
    )

    capture = open_capture(args.input)
    if capture is None:
        return 1

    sink = WindowSink()
    try:
        processed = run_stream(capture, pipeline, sink)
    finally:
        capture.release()
        sink.close()

    logger.info(f"Finished after {processed} frames")
    return 0


if __name__ == "__main__":
    sys.exit(main())
