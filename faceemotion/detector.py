"""
Face detection adapter over DeepFace.
"""
from __future__ import annotations
from typing import List
import logging

import numpy as np

from faceemotion.config import Settings
from faceemotion.extractor import upright_image
from faceemotion.frames import RawFrame
from faceemotion.models import BoundingBox

logger = logging.getLogger(__name__)


class DetectionError(RuntimeError):
    """The underlying face detector failed (distinct from finding no faces)."""


class FaceDetector:
    """Long-lived DeepFace detector, opened once per visible session.

    Boxes are reported in the coordinates of the upright raster that was
    passed in.
    """
    def __init__(self, settings: Settings):
        self.s = settings
        self._deepface = None

    # ---- lifecycle ----
    def open(self) -> "FaceDetector":
        if self._deepface is None:
            # Lazy import so tests can inject a fake 'deepface' module
            from deepface import DeepFace
            self._deepface = DeepFace
            logger.debug(f"[detector] opened backend={self.s.DETECTOR_BACKEND}")
        return self

    def close(self) -> None:
        self._deepface = None

    @property
    def is_open(self) -> bool:
        return self._deepface is not None

    def __enter__(self) -> "FaceDetector":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    # ---- detection ----
    def detect(self, frame: RawFrame) -> List[BoundingBox]:
        return self.detect_image(upright_image(frame, self.s.COLOR_STRATEGY))

    def detect_image(self, image: np.ndarray) -> List[BoundingBox]:
        if self._deepface is None:
            raise DetectionError("detector is closed")
        try:
            dets = self._deepface.extract_faces(
                img_path=image,
                detector_backend=self.s.DETECTOR_BACKEND,
                enforce_detection=False,
                align=False,
            )
        except Exception as e:
            raise DetectionError(f"face detection failed: {e}") from e

        h, w = image.shape[:2]
        boxes: List[BoundingBox] = []
        for d in dets or []:
            d = d or {}
            fa = d.get("facial_area") or {}
            x, y = int(fa.get("x", 0)), int(fa.get("y", 0))
            fw, fh = int(fa.get("w", 0)), int(fa.get("h", 0))
            conf = d.get("confidence")
            conf = 1.0 if conf is None else float(conf)
            if conf < self.s.MIN_DETECTION_CONFIDENCE:
                continue
            # enforce_detection=False yields a zero-confidence whole-image placeholder
            if conf <= 0 and (x, y, fw, fh) == (0, 0, w, h):
                continue
            box = BoundingBox(left=x, top=y, right=x + fw, bottom=y + fh)
            if not box.is_empty:
                boxes.append(box)
        logger.debug(f"[detector] {len(boxes)} face(s) in {w}x{h}")
        return boxes
