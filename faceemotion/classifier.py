# faceemotion/classifier.py
"""
Emotion classification adapter over DeepFace's emotion model.
"""
from __future__ import annotations
from typing import Dict, Tuple
import logging

import cv2
import numpy as np

from faceemotion.config import Settings

logger = logging.getLogger(__name__)


class ClassificationError(RuntimeError):
    """The emotion classifier failed on a face crop."""


def load_labels(settings: Settings) -> Tuple[str, ...]:
    """
    Load the ordered emotion label set: one label per line from LABELS_PATH,
    else the EMOTION_LABELS setting.
    """
    if settings.LABELS_PATH:
        with open(settings.LABELS_PATH, "r", encoding="utf-8") as f:
            labels = [line.strip() for line in f if line.strip()]
        logger.debug(f"[classifier] loaded {len(labels)} labels from {settings.LABELS_PATH}")
    else:
        labels = list(settings.EMOTION_LABELS)
    if not labels:
        raise ValueError("emotion label set is empty")
    return tuple(labels)


class EmotionClassifier:
    """Scores a face crop over a fixed, ordered label set."""
    def __init__(self, settings: Settings, labels: Tuple[str, ...] | None = None):
        self.s = settings
        self.labels: Tuple[str, ...] = labels if labels is not None else load_labels(settings)
        self._deepface = None

    def open(self) -> "EmotionClassifier":
        if self._deepface is None:
            from deepface import DeepFace
            self._deepface = DeepFace
            logger.debug(f"[classifier] opened labels={list(self.labels)}")
        return self

    def close(self) -> None:
        self._deepface = None

    def __enter__(self) -> "EmotionClassifier":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def classify(self, image: np.ndarray, normalize: bool = True) -> Dict[str, float]:
        """
        Return a score in [0, 1] for every configured label.

        `normalize` stretches the crop's contrast before inference.
        """
        if self._deepface is None:
            raise ClassificationError("classifier is closed")
        if image is None or image.size == 0:
            raise ClassificationError("empty face image")

        chip = cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX) if normalize else image
        try:
            res = self._deepface.analyze(
                img_path=chip,
                actions=["emotion"],
                enforce_detection=False,
                detector_backend="skip",
                silent=True,
            )
        except Exception as e:
            raise ClassificationError(f"emotion inference failed: {e}") from e

        res = res if isinstance(res, list) else [res]
        r0 = res[0] if res else {}
        probs = r0.get("emotion") if isinstance(r0, dict) else None
        if not isinstance(probs, dict) or not probs:
            raise ClassificationError("classifier returned no emotion scores")

        # DeepFace reports percentages keyed by lower-case label
        lowered = {str(k).lower(): float(v) for k, v in probs.items()}
        if not any(label.lower() in lowered for label in self.labels):
            raise ClassificationError(f"no configured label matches classifier output {sorted(lowered)}")
        return {label: lowered.get(label.lower(), 0.0) / 100.0 for label in self.labels}
