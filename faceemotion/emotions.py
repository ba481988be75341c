"""Emotion score helpers: dominant label selection and formatting."""
from __future__ import annotations
from typing import Dict, List, Sequence, Tuple

from faceemotion.models import EmotionRank

UNKNOWN_LABEL = "Unknown"


def _ordered_keys(scores: Dict[str, float], labels: Sequence[str]) -> List[str]:
    keys = [k for k in labels if k in scores]
    keys += [k for k in scores if k not in keys]
    return keys


def dominant_emotion(scores: Dict[str, float], labels: Sequence[str] = ()) -> Tuple[str, float]:
    """Stable argmax: the first label (in `labels` order) holding the maximum score."""
    best_label, best = None, 0.0
    for key in _ordered_keys(scores, labels):
        value = float(scores[key])
        if best_label is None or value > best:
            best_label, best = key, value
    if best_label is None:
        return UNKNOWN_LABEL, 0.0
    return best_label, best


def format_emotion(label: str, confidence: float) -> str:
    return f"{label} ({confidence * 100:.1f}%)"


def rank_emotions(scores: Dict[str, float], labels: Sequence[str] = ()) -> List[EmotionRank]:
    """Full distribution, highest first; equal scores keep label order."""
    keys = _ordered_keys(scores, labels)
    ranked = sorted(keys, key=lambda k: float(scores[k]), reverse=True)
    return [
        EmotionRank(label=k, score=float(scores[k]), probability=f"{float(scores[k]) * 100:.1f}%")
        for k in ranked
    ]
