"""Box geometry: inflation, clamping and overlay coordinate mapping.

Boxes produced by the detector live in the upright raster the detector was
fed. The overlay mapper works on sensor-oriented (landscape) boxes and a
portrait canvas, so upright boxes are first taken back to sensor space with
to_sensor_space.
"""
from __future__ import annotations
from typing import Optional

from faceemotion.models import BoundingBox, CanvasRect, Size


def _trunc(v: float) -> int:
    # round away float noise (e.g. 13.999999999999998) before truncating
    return int(round(v, 6))


def inflate_box(box: BoundingBox, factor: float) -> BoundingBox:
    """Grow a box symmetrically about its centre by `factor` (no-op for factor <= 1)."""
    if factor <= 1.0:
        return box
    cx, cy = box.center()
    half_w = box.width * factor / 2.0
    half_h = box.height * factor / 2.0
    return BoundingBox(
        left=_trunc(cx - half_w),
        top=_trunc(cy - half_h),
        right=_trunc(cx + half_w),
        bottom=_trunc(cy + half_h),
    )


def clamp_box(box: BoundingBox, width: int, height: int) -> Optional[BoundingBox]:
    """Clamp a box to a width x height raster; None when nothing is left."""
    left = max(0, box.left)
    top = max(0, box.top)
    clamped = BoundingBox(left=left, top=top, right=min(width, box.right), bottom=min(height, box.bottom))
    return None if clamped.is_empty else clamped


def to_sensor_space(box: BoundingBox, rotation: int, sensor_size: Size) -> BoundingBox:
    """Undo a clockwise `rotation` applied to a sensor frame of `sensor_size`."""
    W, H = sensor_size.width, sensor_size.height
    rotation = rotation % 360
    if rotation == 90:
        return BoundingBox(left=box.top, top=H - box.right, right=box.bottom, bottom=H - box.left)
    if rotation == 180:
        return BoundingBox(left=W - box.right, top=H - box.bottom, right=W - box.left, bottom=H - box.top)
    if rotation == 270:
        return BoundingBox(left=W - box.bottom, top=box.left, right=W - box.top, bottom=box.right)
    return box


def mirror_rect(rect: CanvasRect, canvas_width: float) -> CanvasRect:
    left = canvas_width - rect.right
    right = canvas_width - rect.left
    return CanvasRect(left=min(left, right), top=rect.top, right=max(left, right), bottom=rect.bottom)


def map_to_canvas(box: BoundingBox,
                  analysis_size: Size,
                  canvas_size: Size,
                  mirrored: bool = False) -> Optional[CanvasRect]:
    """Map a landscape analysis-image box onto the portrait canvas.

    Axes are swapped (sensor y -> canvas x, sensor x -> canvas y) and the
    result is reflected horizontally for the front camera. Returns None when
    the analysis size is degenerate so the caller skips drawing.
    """
    if analysis_size.width == 0 or analysis_size.height == 0:
        return None

    x_scale = canvas_size.width / analysis_size.height
    y_scale = canvas_size.height / analysis_size.width

    left = box.top * x_scale
    top = box.left * y_scale
    right = box.bottom * x_scale
    bottom = box.right * y_scale

    rect = CanvasRect(left=min(left, right), top=min(top, bottom),
                      right=max(left, right), bottom=max(top, bottom))
    if mirrored:
        rect = mirror_rect(rect, canvas_size.width)
    return rect
