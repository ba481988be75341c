"""
Pydantic data models for pipeline results and API IO.
"""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import List, Optional, Literal

FrameStatus = Literal["OK", "NO_FACE", "DETECTION_ERROR"]

IDLE_MESSAGE = "Point camera at a face"
NO_FACE_MESSAGE = "No face detected"
DETECTION_ERROR_MESSAGE = "Error detecting face"


class Size(BaseModel):
    width: int
    height: int


class BoundingBox(BaseModel):
    """Axis-aligned face box in integer pixel coordinates (right/bottom exclusive)."""
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def center(self) -> tuple[float, float]:
        return (self.left + self.right) / 2.0, (self.top + self.bottom) / 2.0


class CanvasRect(BaseModel):
    """Overlay rectangle in display-canvas coordinates."""
    left: float
    top: float
    right: float
    bottom: float


class FaceResult(BaseModel):
    face_id: int
    box: BoundingBox
    label: str
    confidence: float
    emotion: str
    overlay: Optional[CanvasRect] = None


class FrameResult(BaseModel):
    ts: float
    status: FrameStatus
    message: str
    faces: List[FaceResult] = Field(default_factory=list)
    analysis_size: Size
    canvas_size: Optional[Size] = None
    mirrored: bool = False


# still image models


class EmotionRank(BaseModel):
    label: str
    score: float
    probability: str


class StillFaceResult(BaseModel):
    title: str
    box: BoundingBox
    emotions: List[EmotionRank] = Field(default_factory=list)


class StillImageResult(BaseModel):
    status: FrameStatus
    message: str
    image_size: Size
    faces: List[StillFaceResult] = Field(default_factory=list)


class LiveStatus(BaseModel):
    running: bool
    started_at: float | None = None
    mirrored: bool = False
    last_result: FrameResult | None = None
