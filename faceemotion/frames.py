"""
Camera frame acquisition: planar I420 frames and scoped buffer leases.
"""
from __future__ import annotations
import logging
import threading
from typing import Callable, Optional

import cv2
import numpy as np
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

logger = logging.getLogger(__name__)

VALID_ROTATIONS = (0, 90, 180, 270)


class RawFrame(BaseModel):
    """One luminance plane plus two 2x2-subsampled chroma planes (I420)."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    y: np.ndarray
    u: np.ndarray
    v: np.ndarray
    width: int
    height: int
    rotation: int = 0

    @field_validator("rotation")
    @classmethod
    def _check_rotation(cls, value: int) -> int:
        if value % 360 not in VALID_ROTATIONS:
            raise ValueError(f"rotation must be a multiple of 90, got {value}")
        return value % 360

    @model_validator(mode="after")
    def _check_planes(self):
        if self.width <= 0 or self.height <= 0 or self.width % 2 or self.height % 2:
            raise ValueError(f"frame size must be positive and even, got {self.width}x{self.height}")
        if self.y.shape != (self.height, self.width):
            raise ValueError(f"luma plane shape {self.y.shape} != {(self.height, self.width)}")
        chroma = (self.height // 2, self.width // 2)
        if self.u.shape != chroma or self.v.shape != chroma:
            raise ValueError(f"chroma planes must be {chroma}, got {self.u.shape} / {self.v.shape}")
        return self

    @classmethod
    def from_i420(cls, data: bytes, width: int, height: int, rotation: int = 0) -> "RawFrame":
        """Split a packed I420 buffer (Y, then U, then V) into planes."""
        expected = width * height * 3 // 2
        if len(data) != expected:
            raise ValueError(f"I420 buffer for {width}x{height} must be {expected} bytes, got {len(data)}")
        buf = np.frombuffer(data, dtype=np.uint8)
        luma = width * height
        quarter = luma // 4
        y = buf[:luma].reshape(height, width)
        u = buf[luma:luma + quarter].reshape(height // 2, width // 2)
        v = buf[luma + quarter:].reshape(height // 2, width // 2)
        return cls(y=y, u=u, v=v, width=width, height=height, rotation=rotation)

    @classmethod
    def from_bgr(cls, image: np.ndarray, rotation: int = 0) -> "RawFrame":
        """Encode an OpenCV BGR frame as I420 (odd trailing row/column dropped)."""
        h, w = image.shape[:2]
        image = np.ascontiguousarray(image[: h - h % 2, : w - w % 2])
        h, w = image.shape[:2]
        packed = cv2.cvtColor(image, cv2.COLOR_BGR2YUV_I420)
        return cls.from_i420(packed.tobytes(), w, h, rotation)

    def i420(self) -> np.ndarray:
        """Planes stacked in OpenCV's (H*3/2, W) I420 layout."""
        return np.concatenate([
            self.y.reshape(-1), self.u.reshape(-1), self.v.reshape(-1)
        ]).reshape(self.height * 3 // 2, self.width)


class FrameLease:
    """Scoped ownership of a camera buffer.

    The source's release callback runs exactly once, on the first release()
    call, whichever exit path triggers it.
    """
    def __init__(self, frame: RawFrame, on_release: Optional[Callable[[], None]] = None):
        self.frame = frame
        self._on_release = on_release
        self._lock = threading.Lock()
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> bool:
        with self._lock:
            if self._released:
                return False
            self._released = True
        if self._on_release is not None:
            try:
                self._on_release()
            except Exception:
                logger.exception("[frames] release callback failed")
        return True

    def __enter__(self) -> "FrameLease":
        return self

    def __exit__(self, *exc) -> None:
        self.release()
