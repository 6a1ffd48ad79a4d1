# enroll.py
# Builds a gallery file from a directory of per-person photo folders:
#   <input>/<person name>/*.jpg|*.jpeg|*.png

import argparse
import logging
import os
import sys
from typing import List, Optional

import cv2
import numpy as np

from config import MIN_CONFIDENCE, PHOTO_EXTENSIONS
from errors import FaceRecognitionError
from gallery_store import Gallery, save_gallery
from matching import average_embedding

logger = logging.getLogger(__name__)


def encode_photo(img_bgr: np.ndarray, detector, extractor, min_confidence: float = MIN_CONFIDENCE) -> Optional[np.ndarray]:
    detections = detector.detect(img_bgr, min_confidence)
    if not detections:
        return None

    # Enrollment photos hold one person; take the first detected face
    face_crop = detections[0].box.crop(img_bgr)
    if face_crop.size == 0:
        return None
    return extractor.extract(face_crop)


def person_embeddings(person_dir: str, detector, extractor, min_confidence: float = MIN_CONFIDENCE) -> List[np.ndarray]:
    embeddings = []
    for filename in sorted(os.listdir(person_dir)):
        photo_path = os.path.join(person_dir, filename)
        if not os.path.isfile(photo_path):
            continue
        if os.path.splitext(filename)[1].lower() not in PHOTO_EXTENSIONS:
            continue

        img = cv2.imread(photo_path)
        if img is None:
            logger.debug(f"Skipping unreadable file: {photo_path}")
            continue

        try:
            emb = encode_photo(img, detector, extractor, min_confidence)
        except FaceRecognitionError as e:
            logger.warning(f"Skipping {photo_path}: {e}")
            continue
        if emb is None:
            logger.debug(f"No face found in {photo_path}, skipped")
            continue
        embeddings.append(emb)
    return embeddings


def build_gallery(input_dir: str, detector, extractor, min_confidence: float = MIN_CONFIDENCE) -> Gallery:
    """One averaged embedding per sub-directory that yields at least one face."""
    names = []
    embeddings = []
    for person in sorted(os.listdir(input_dir)):
        person_dir = os.path.join(input_dir, person)
        if not os.path.isdir(person_dir):
            continue

        embs = person_embeddings(person_dir, detector, extractor, min_confidence)
        if not embs:
            logger.info(f"No usable photos for {person}, skipped")
            continue

        names.append(person)
        embeddings.append(average_embedding(embs))
        logger.info(f"Embeddings extracted for {person} ({len(embs)} photos)")

    return Gallery(names, embeddings)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Collect averaged face embeddings per person into a gallery file.")
    parser.add_argument("input", nargs="?", help="directory with one sub-directory of photos per person")
    parser.add_argument("output", nargs="?", help="gallery file to write (.npz)")
    parser.add_argument("--conf", type=float, default=MIN_CONFIDENCE, help="minimal detection confidence")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if not args.input:
        logger.error("You must specify an input directory")
        return 1
    if not args.output:
        logger.error("You must specify an output file")
        return 1
    if not os.path.isdir(args.input):
        logger.error(f"Input directory does not exist: {args.input}")
        return 1

    from detector import FaceDetector
    from extractor import FaceExtractor

    detector = FaceDetector()
    extractor = FaceExtractor()
    if not detector.is_ready() or not extractor.is_ready():
        return 1

    gallery = build_gallery(args.input, detector, extractor, args.conf)
    if len(gallery) == 0:
        logger.warning("No persons enrolled, nothing written")
        return 0

    save_gallery(args.output, gallery)
    logger.info(f"Enrollment complete. {len(gallery)} persons written to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
