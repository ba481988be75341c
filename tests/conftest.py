import sys
import types

import numpy as np
import pytest

from faceemotion.config import Settings

LABELS = ["Angry", "Disgust", "Fear", "Happy", "Sad", "Surprise", "Neutral"]


class FakeDeepFace:
    """Stands in for deepface.DeepFace: fixed detections and emotion scores."""
    def __init__(self):
        self.facial_areas = []
        self.confidence = 0.99
        self.emotion = {"angry": 5.0, "disgust": 1.0, "fear": 2.0, "happy": 80.0,
                        "sad": 4.0, "surprise": 3.0, "neutral": 5.0}
        self.fail_detect = False
        self.fail_analyze = False
        self.detect_shapes = []
        self.analyze_calls = 0

    def extract_faces(self, img_path=None, detector_backend=None, enforce_detection=None, align=None):
        self.detect_shapes.append(img_path.shape)
        if self.fail_detect:
            raise ValueError("detector exploded")
        return [{"facial_area": dict(fa), "confidence": self.confidence} for fa in self.facial_areas]

    def analyze(self, img_path=None, actions=None, **kwargs):
        self.analyze_calls += 1
        if self.fail_analyze:
            raise ValueError("classifier exploded")
        return [{"emotion": dict(self.emotion), "dominant_emotion": max(self.emotion, key=self.emotion.get)}]


@pytest.fixture
def fake_deepface(monkeypatch):
    # Inject a fake 'deepface' module so `from deepface import DeepFace` works
    fake = FakeDeepFace()
    monkeypatch.setitem(sys.modules, "deepface", types.SimpleNamespace(DeepFace=fake))
    return fake


@pytest.fixture
def settings():
    return Settings(COLOR_STRATEGY="gray", LABELS_PATH=None, EMOTION_LABELS=list(LABELS),
                    MIN_DETECTION_CONFIDENCE=0.5, LIVE_INFLATE=1.4, STILL_INFLATE=1.0,
                    STILL_MAX_SIDE=480, CAMERA_ROTATION=0, FRONT_CAMERA=True)


@pytest.fixture
def labels():
    return tuple(LABELS)


@pytest.fixture
def gray_frame_bytes():
    """Factory for packed I420 buffers with a position-coded luma plane."""
    def _make(width, height):
        y = (np.arange(width * height) % 251).astype(np.uint8)
        uv = np.full(width * height // 2, 128, dtype=np.uint8)
        return np.concatenate([y, uv]).tobytes()
    return _make
