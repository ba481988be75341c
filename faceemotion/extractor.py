"""
Face region extraction: planar -> interleaved conversion, rotation and crop.
"""
from __future__ import annotations
from typing import Optional, Tuple
import logging

import cv2
import numpy as np

from faceemotion.frames import RawFrame
from faceemotion.geometry import inflate_box, clamp_box
from faceemotion.models import BoundingBox

logger = logging.getLogger(__name__)

_ROTATE_CODES = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def to_interleaved(frame: RawFrame, strategy: str = "gray") -> np.ndarray:
    """Convert a planar frame to a BGR raster.

    "gray" uses the luma plane only (cheap, loses colour);
    "color" decodes all three planes.
    """
    if strategy == "color":
        return cv2.cvtColor(frame.i420(), cv2.COLOR_YUV2BGR_I420)
    return cv2.cvtColor(np.ascontiguousarray(frame.y), cv2.COLOR_GRAY2BGR)


def rotate_clockwise(image: np.ndarray, rotation: int) -> np.ndarray:
    code = _ROTATE_CODES.get(rotation % 360)
    if code is None:
        return image
    return cv2.rotate(image, code)


def upright_image(frame: RawFrame, strategy: str = "gray") -> np.ndarray:
    return rotate_clockwise(to_interleaved(frame, strategy), frame.rotation)


def crop_face(image: np.ndarray,
              box: BoundingBox,
              inflate: float = 1.0) -> Optional[Tuple[BoundingBox, np.ndarray]]:
    """Inflate, clamp and crop `box` out of an upright raster.

    Returns (effective_box, face_image), or None when the box falls
    entirely outside the raster.
    """
    h, w = image.shape[:2]
    clamped = clamp_box(inflate_box(box, inflate), w, h)
    if clamped is None:
        logger.debug(f"[extract] box {box} outside {w}x{h} raster; skipped")
        return None
    face = image[clamped.top:clamped.bottom, clamped.left:clamped.right].copy()
    return clamped, face


def extract(frame: RawFrame,
            box: BoundingBox,
            inflate: float = 1.0,
            strategy: str = "gray") -> Optional[np.ndarray]:
    res = crop_face(upright_image(frame, strategy), box, inflate)
    return None if res is None else res[1]
