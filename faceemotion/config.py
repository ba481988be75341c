"""
Configuration for the face emotion pipeline.
"""
from pydantic import BaseModel
from typing import List
import os

DEFAULT_LABELS = "Angry,Disgust,Fear,Happy,Sad,Surprise,Neutral"


def _env_bool(name: str, default: str) -> bool:
    return (os.getenv(name, default) or default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    BACK_CAMERA_INDEX: int = int(os.getenv("BACK_CAMERA_INDEX", "1"))
    FRONT_CAMERA: bool = _env_bool("FRONT_CAMERA", "true")
    CAMERA_ROTATION: int = int(os.getenv("CAMERA_ROTATION", "0"))
    CAMERA_WIDTH: int = int(os.getenv("CAMERA_WIDTH", "640"))
    CAMERA_HEIGHT: int = int(os.getenv("CAMERA_HEIGHT", "480"))

    # Portrait display canvas the overlay rectangles are mapped onto
    CANVAS_WIDTH: int = int(os.getenv("CANVAS_WIDTH", "480"))
    CANVAS_HEIGHT: int = int(os.getenv("CANVAS_HEIGHT", "640"))

    LIVE_INFLATE: float = float(os.getenv("LIVE_INFLATE", "1.4"))
    STILL_INFLATE: float = float(os.getenv("STILL_INFLATE", "1.0"))
    STILL_MAX_SIDE: int = int(os.getenv("STILL_MAX_SIDE", "480"))

    COLOR_STRATEGY: str = os.getenv("COLOR_STRATEGY", "gray")
    RENDER_MODE: str = os.getenv("RENDER_MODE", "boxes")

    DETECTOR_BACKEND: str = os.getenv("DETECTOR_BACKEND", "opencv")
    MIN_DETECTION_CONFIDENCE: float = float(os.getenv("MIN_DETECTION_CONFIDENCE", "0.5"))
    CLASSIFIER_NORMALIZE: bool = _env_bool("CLASSIFIER_NORMALIZE", "true")

    EMOTION_LABELS: List[str] = [
        s.strip() for s in os.getenv("EMOTION_LABELS", DEFAULT_LABELS).split(",") if s.strip()
    ]
    LABELS_PATH: str | None = os.getenv("LABELS_PATH") or None

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize enum-like knobs: lower-case, fall back to defaults
        strategy = (self.COLOR_STRATEGY or "gray").strip().lower()
        if strategy not in ("gray", "color"):
            strategy = "gray"
        object.__setattr__(self, "COLOR_STRATEGY", strategy)

        mode = (self.RENDER_MODE or "boxes").strip().lower()
        if mode not in ("text", "boxes"):
            mode = "boxes"
        object.__setattr__(self, "RENDER_MODE", mode)

        if self.CAMERA_ROTATION % 90 != 0:
            object.__setattr__(self, "CAMERA_ROTATION", 0)
        else:
            object.__setattr__(self, "CAMERA_ROTATION", self.CAMERA_ROTATION % 360)
