
import numpy as np
from faceemotion.models import BoundingBox, FaceResult, FrameResult, Size, StillFaceResult
from faceemotion.visual import draw_overlays, draw_still_annotations


def _result(status="OK", faces=None, message="Face 1: Happy (80.0%)"):
    return FrameResult(ts=0.0, status=status, message=message, faces=faces or [],
                       analysis_size=Size(width=40, height=40))


def _face():
    return FaceResult(face_id=1, box=BoundingBox(left=5, top=5, right=20, bottom=25),
                      label="Happy", confidence=0.8, emotion="Happy (80.0%)")


def test_draw_overlays_cases():
    frame = np.zeros((40, 40, 3), dtype=np.uint8)
    idle = draw_overlays(frame, None)
    assert idle.shape == frame.shape and idle.any()

    out1 = draw_overlays(frame, _result("NO_FACE", message="No face detected"))
    assert out1.shape == frame.shape and out1.any()
    out2 = draw_overlays(frame, _result(faces=[_face()]), render_mode="text")
    assert out2.shape == frame.shape and out2.any()
    out3 = draw_overlays(frame, _result(faces=[_face()]), render_mode="boxes")
    assert out3[5, 5:20].any()
    # frame itself untouched
    assert not frame.any()


def test_draw_overlays_mirrors_boxes():
    frame = np.zeros((40, 40, 3), dtype=np.uint8)
    out = draw_overlays(frame, _result(faces=[_face()]), render_mode="boxes", mirrored=True)
    # box 5..20 reflected to 20..35 on a 40 px wide frame
    assert out[30, 35].any()
    assert not out[30, 5].any()


def test_draw_still_annotations():
    image = np.zeros((60, 60, 3), dtype=np.uint8)
    faces = [StillFaceResult(title="Face 1", box=BoundingBox(left=10, top=10, right=50, bottom=50))]
    out = draw_still_annotations(image, faces)
    assert out[10, 10:50].any()
    assert not image.any()
