
"""Visualization helpers.

- draw_overlays: draw a frame result on the live preview, either as a status
  text block ("text" mode) or as per-face boxes with labels ("boxes" mode)
- draw_still_annotations: draw numbered face boxes on a still image
"""
from __future__ import annotations
import cv2
import numpy as np
from typing import List, Optional, Tuple

from faceemotion.geometry import mirror_rect
from faceemotion.models import IDLE_MESSAGE, CanvasRect, FrameResult, StillFaceResult

OK_COLOR = (0, 255, 0)
ERROR_COLOR = (0, 0, 255)


def _draw_text_block(out: np.ndarray, lines: List[str], color: Tuple[int, int, int]) -> None:
    h = out.shape[0]
    y = h - 12 - 26 * (len(lines) - 1)
    for line in lines:
        cv2.putText(out, line, (10, max(20, y)), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2, cv2.LINE_AA)
        y += 26


def draw_overlays(frame: np.ndarray,
                  result: Optional[FrameResult],
                  render_mode: str = "boxes",
                  mirrored: bool = False,
                  color: Tuple[int, int, int] = OK_COLOR) -> np.ndarray:
    """Draw a FrameResult on the upright preview frame.

    Args:
        frame: upright BGR preview (already flipped when `mirrored`)
        result: latest pipeline result, or None before the first one (idle prompt)
        render_mode: "text" or "boxes"
        mirrored: reflect face boxes horizontally to match a flipped preview
        color: BGR colour for face boxes

    Returns:
        Annotated copy of the frame
    """
    out = frame.copy()
    h, w = out.shape[:2]

    if result is None:
        _draw_text_block(out, [IDLE_MESSAGE], color)
        return out
    if result.status != "OK":
        _draw_text_block(out, [result.message], ERROR_COLOR)
        return out

    if render_mode == "text":
        _draw_text_block(out, result.message.splitlines(), color)
        return out

    for face in result.faces:
        rect = CanvasRect(left=face.box.left, top=face.box.top, right=face.box.right, bottom=face.box.bottom)
        if mirrored:
            rect = mirror_rect(rect, w)
        x0 = max(0, min(int(rect.left), w - 1)); y0 = max(0, min(int(rect.top), h - 1))
        x1 = max(0, min(int(rect.right), w - 1)); y1 = max(0, min(int(rect.bottom), h - 1))
        cv2.rectangle(out, (x0, y0), (x1, y1), color, 2)
        cv2.putText(out, face.emotion, (x0, max(12, y0 - 10)), cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2, cv2.LINE_AA)

    return out


def draw_still_annotations(image: np.ndarray,
                           faces: List[StillFaceResult],
                           color: Tuple[int, int, int] = OK_COLOR) -> np.ndarray:
    """Outline each face and write its number inside the bottom-left corner."""
    out = image.copy()
    indent = 0.1
    for n, face in enumerate(faces, start=1):
        b = face.box
        cv2.rectangle(out, (b.left, b.top), (b.right, b.bottom), color, 2)
        org = (int(b.left + b.width * indent), int(b.bottom - b.height * indent))
        cv2.putText(out, str(n), org, cv2.FONT_HERSHEY_SIMPLEX, 1.0, color, 2, cv2.LINE_AA)
    return out
