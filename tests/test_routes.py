
import cv2
import numpy as np
from fastapi.testclient import TestClient

from api.main import app
import api.routes as routes
from faceemotion.models import BoundingBox, LiveStatus
from faceemotion.pipeline import FramePipeline


class DummyDetector:
    def detect_image(self, image):
        return [BoundingBox(left=4, top=4, right=24, bottom=24)]


class DummyClassifier:
    labels = ("Angry", "Happy", "Neutral")
    def classify(self, image, normalize=True):
        return {"Angry": 0.1, "Happy": 0.7, "Neutral": 0.2}


class DummyLive:
    def __init__(self, settings):
        self.running = False
        self.front = True
    def start(self): self.running = True
    def stop(self): self.running = False
    def switch_camera(self):
        self.front = not self.front
        return self.front
    def status(self): return LiveStatus(running=self.running, mirrored=self.front)


def _client(monkeypatch, settings):
    pipe = FramePipeline(DummyDetector(), DummyClassifier(), settings)
    monkeypatch.setattr(routes, "get_pipeline", lambda: pipe)
    return TestClient(app)


def test_health():
    assert TestClient(app).get("/health").json() == {"status": "ok"}


def test_analyze_image(monkeypatch, settings):
    client = _client(monkeypatch, settings)
    ok, png = cv2.imencode(".png", np.zeros((48, 48, 3), dtype=np.uint8))
    assert ok
    r = client.post("/analyze/image", files={"file": ("face.png", png.tobytes(), "image/png")})
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "OK"
    assert j["faces"][0]["title"] == "Face 1"
    assert j["faces"][0]["emotions"][0] == {"label": "Happy", "score": 0.7, "probability": "70.0%"}


def test_analyze_image_rejects_garbage(monkeypatch, settings):
    client = _client(monkeypatch, settings)
    r = client.post("/analyze/image", files={"file": ("x.png", b"not an image", "image/png")})
    assert r.status_code == 400


def test_analyze_frame(monkeypatch, settings, gray_frame_bytes):
    client = _client(monkeypatch, settings)
    data = {"width": "64", "height": "48", "rotation": "0", "mirrored": "true",
            "canvas_width": "480", "canvas_height": "640", "inflate": "1.0"}
    r = client.post("/analyze/frame", data=data,
                    files={"file": ("frame.yuv", gray_frame_bytes(64, 48), "application/octet-stream")})
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "OK"
    assert j["message"] == "Face 1: Happy (70.0%)"
    assert j["analysis_size"] == {"width": 64, "height": 48}
    assert j["faces"][0]["overlay"] is not None
    assert j["mirrored"] is True


def test_analyze_frame_bad_buffer(monkeypatch, settings):
    client = _client(monkeypatch, settings)
    r = client.post("/analyze/frame", data={"width": "64", "height": "48"},
                    files={"file": ("frame.yuv", b"\x00" * 100, "application/octet-stream")})
    assert r.status_code == 400


def test_live_lifecycle(monkeypatch):
    monkeypatch.setattr(routes, "LiveAnalyzer", DummyLive)
    monkeypatch.setitem(routes.live_session, "analyzer", None)
    client = TestClient(app)

    assert client.get("/live/status").json()["running"] is False
    assert client.post("/live/switch").json()["status"] == "not_running"
    assert client.post("/live/start").json()["status"] == "started"
    assert client.post("/live/start").json()["status"] == "already_running"
    assert client.get("/live/status").json()["running"] is True
    assert client.post("/live/switch").json() == {"status": "switched", "camera": "back"}
    assert client.post("/live/stop").json()["status"] == "stopped"
    assert client.post("/live/stop").json()["status"] == "not_running"
