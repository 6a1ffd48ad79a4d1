# gallery_store.py
# Named embedding gallery and its .npz persistence.

import logging
import os
import zipfile
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np

from config import GALLERY_NAMES_KEY
from errors import EmptyInputError, GalleryFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Gallery:
    """
    Ordered (name, embedding) pairs. The position of a person is its numeric
    id. Read-only once built, so one instance can back several pipelines.
    """
    names: Tuple[str, ...]
    embeddings: np.ndarray  # (K, D) float32, not writeable

    def __init__(self, names: Sequence[str], embeddings):
        names = tuple(str(n) for n in names)
        if len(names) == 0:
            embs = np.zeros((0, 0), dtype=np.float32)
        else:
            embs = np.array([np.asarray(e, dtype=np.float32).reshape(-1) for e in embeddings])
            if embs.ndim != 2 or embs.shape[0] != len(names):
                raise ValueError("Gallery: need exactly one embedding per name, all of one dimension")
        embs.setflags(write=False)
        object.__setattr__(self, "names", names)
        object.__setattr__(self, "embeddings", embs)

    @classmethod
    def from_mapping(cls, mapping: Dict[str, np.ndarray]) -> "Gallery":
        names = list(mapping.keys())
        return cls(names, [mapping[n] for n in names])

    @classmethod
    def empty(cls) -> "Gallery":
        return cls([], [])

    def __len__(self) -> int:
        return len(self.names)

    @property
    def dimension(self) -> int:
        return int(self.embeddings.shape[1]) if len(self) else 0

    def name_of(self, idx: int) -> str:
        return self.names[idx]


def save_gallery(path: str, gallery: Gallery):
    if len(gallery) == 0:
        raise EmptyInputError("save_gallery: nothing to save")
    if GALLERY_NAMES_KEY in gallery.names:
        raise GalleryFormatError(f"save_gallery: '{GALLERY_NAMES_KEY}' is reserved and cannot be a person name")
    if len(set(gallery.names)) != len(gallery.names):
        raise GalleryFormatError("save_gallery: person names must be unique")

    arrays = {name: gallery.embeddings[i].reshape(1, -1) for i, name in enumerate(gallery.names)}
    arrays[GALLERY_NAMES_KEY] = np.array(gallery.names, dtype=str)

    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    # np.savez appends .npz to paths without it; open the file ourselves to keep the name
    with open(path, "wb") as f:
        np.savez_compressed(f, **arrays)
    logger.info(f"Saved {len(gallery)} persons to {path}")


def load_gallery(path: str) -> Gallery:
    """
    Read a gallery written by `save_gallery`.

    Raises FileNotFoundError for a missing file and GalleryFormatError when the
    names entry is missing, is not a flat sequence, or names a person without an
    embedding.
    """
    names: List[str] = []
    embeddings: List[np.ndarray] = []
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    try:
        data = np.load(path, allow_pickle=False)
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        raise GalleryFormatError(f"Failed to read gallery {path}: {e}") from e

    if not hasattr(data, "files"):
        raise GalleryFormatError(f"{path} is a single array, not a named gallery")

    with data:
        if GALLERY_NAMES_KEY not in data.files:
            raise GalleryFormatError(f"{path} has no '{GALLERY_NAMES_KEY}' entry")

        names_arr = data[GALLERY_NAMES_KEY]
        if names_arr.ndim != 1:
            raise GalleryFormatError(f"'{GALLERY_NAMES_KEY}' in {path} is not a sequence")

        for name in names_arr.tolist():
            name = str(name)
            if name not in data.files:
                raise GalleryFormatError(f"{path} lists '{name}' but stores no embedding for it")
            names.append(name)
            embeddings.append(np.asarray(data[name], dtype=np.float32).reshape(-1))

    try:
        gallery = Gallery(names, embeddings)
    except ValueError as e:
        raise GalleryFormatError(f"{path}: {e}") from e
    logger.info(f"Loaded {len(gallery)} persons from {path}")
    return gallery
