import numpy as np

from faceemotion.extractor import crop_face, extract, to_interleaved, upright_image
from faceemotion.frames import RawFrame
from faceemotion.models import BoundingBox


def test_extract_exact_region(gray_frame_bytes):
    frame = RawFrame.from_i420(gray_frame_bytes(100, 100), 100, 100)
    face = extract(frame, BoundingBox(left=10, top=10, right=50, bottom=50), inflate=1.0)
    assert face.shape == (40, 40, 3)
    assert np.array_equal(face[..., 0], frame.y[10:50, 10:50])
    assert np.array_equal(face[..., 2], frame.y[10:50, 10:50])


def test_extract_outside_raster_returns_none(gray_frame_bytes):
    frame = RawFrame.from_i420(gray_frame_bytes(100, 100), 100, 100)
    assert extract(frame, BoundingBox(left=120, top=10, right=160, bottom=50)) is None


def test_crop_inflated_box_is_clamped():
    image = np.zeros((15, 15, 3), dtype=np.uint8)
    box, face = crop_face(image, BoundingBox(left=0, top=0, right=20, bottom=20), inflate=1.4)
    assert (box.left, box.top, box.right, box.bottom) == (0, 0, 15, 15)
    assert face.shape == (15, 15, 3)


def test_rotation_is_applied_before_crop(gray_frame_bytes):
    # 80 wide x 40 high sensor frame, rotated 90 -> 40 wide x 80 high upright raster
    frame = RawFrame.from_i420(gray_frame_bytes(80, 40), 80, 40, rotation=90)
    upright = upright_image(frame)
    assert upright.shape[:2] == (80, 40)

    # the box fits the upright raster but not the sensor one
    face = extract(frame, BoundingBox(left=5, top=50, right=35, bottom=75))
    assert face is not None and face.shape[:2] == (25, 30)
    assert np.array_equal(face[..., 0], np.rot90(frame.y, k=-1)[50:75, 5:35])


def test_color_strategy_decodes_all_planes():
    w, h = 16, 16
    y = np.full(w * h, 128, dtype=np.uint8)
    u = np.full(w * h // 4, 128, dtype=np.uint8)
    v = np.full(w * h // 4, 200, dtype=np.uint8)  # strong red chroma
    frame = RawFrame.from_i420(np.concatenate([y, u, v]).tobytes(), w, h)

    gray = to_interleaved(frame, "gray")
    color = to_interleaved(frame, "color")
    assert gray.shape == color.shape == (h, w, 3)
    assert np.all(gray == 128)
    b, g, r = color[0, 0].astype(int)
    assert r > g and r > b
