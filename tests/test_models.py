
from faceemotion.models import BoundingBox, CanvasRect, FaceResult, FrameResult, Size, LiveStatus

def test_models():
    box = BoundingBox(left=10, top=20, right=50, bottom=80)
    assert (box.width, box.height) == (40, 60)
    assert box.center() == (30.0, 50.0)
    assert not box.is_empty
    assert BoundingBox(left=5, top=5, right=5, bottom=9).is_empty

    face = FaceResult(face_id=1, box=box, label="Sad", confidence=0.5, emotion="Sad (50.0%)",
                      overlay=CanvasRect(left=0, top=0, right=1, bottom=1))
    fr = FrameResult(ts=1.0, status="OK", message="Face 1: Sad (50.0%)", faces=[face],
                     analysis_size=Size(width=640, height=480))
    dumped = fr.model_dump()
    assert dumped["analysis_size"] == {"width": 640, "height": 480}
    assert dumped["faces"][0]["box"]["right"] == 50

    st = LiveStatus(running=True, last_result=fr)
    assert st.last_result.faces[0].label == "Sad"
