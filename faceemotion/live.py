# faceemotion/live.py
"""
Live (real-time) camera analysis.

- LiveAnalyzer: background camera thread feeding the frame pipeline; keeps the
  latest FrameResult for polling (used by the API)
- run_live_overlay: OpenCV preview window with the latest result drawn on it

The detector and classifier are opened when a session starts and closed when
it stops; frames never allocate their own.
"""

from __future__ import annotations

import os
import time
import threading
from typing import Optional

import cv2
import numpy as np

# Prevent OpenMP oversubscription on CPU
os.environ.setdefault("OMP_NUM_THREADS", "1")

from faceemotion.classifier import EmotionClassifier
from faceemotion.config import Settings
from faceemotion.detector import FaceDetector
from faceemotion.extractor import rotate_clockwise
from faceemotion.frames import FrameLease, RawFrame
from faceemotion.models import FrameResult, LiveStatus, Size
from faceemotion.pipeline import FramePipeline
from faceemotion.visual import draw_overlays

WINDOW_NAME = "Face Emotion Live (q to quit, c to switch camera)"


def _open_capture(settings: Settings, index: int):
    cap = cv2.VideoCapture(index)
    if cap.isOpened() and hasattr(cap, "set"):
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, settings.CAMERA_WIDTH)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, settings.CAMERA_HEIGHT)
    return cap


# -----------------------------------------------------------------------------
# LiveAnalyzer: background camera thread (no UI)
# -----------------------------------------------------------------------------
class LiveAnalyzer:
    """Runs the frame pipeline on live camera frames and keeps the last result."""
    def __init__(self, settings: Settings):
        self.s = settings
        self._run = False
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._front = settings.FRONT_CAMERA
        self._last_result: Optional[FrameResult] = None
        self._started_at: Optional[float] = None
        self._pipeline: Optional[FramePipeline] = None
        self.detector: Optional[FaceDetector] = None
        self.classifier: Optional[EmotionClassifier] = None

    # ---- lifecycle ----
    def start(self):
        if self._run:
            return
        self.detector = FaceDetector(self.s).open()
        self.classifier = EmotionClassifier(self.s).open()
        self._pipeline = FramePipeline(self.detector, self.classifier, self.s, on_result=self._on_result)
        self._last_result = None
        self._run = True
        self._started_at = time.time()
        self._thread = threading.Thread(target=self._video_loop, daemon=True)
        self._thread.start()

    def stop(self):
        if not self._run:
            return
        self._run = False
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        self._pipeline.close()
        self.detector.close()
        self.classifier.close()

    @property
    def running(self) -> bool:
        return self._run

    def switch_camera(self) -> bool:
        """Toggle front/back camera; returns True when the front camera is active."""
        self._front = not self._front
        return self._front

    def status(self) -> LiveStatus:
        with self._lock:
            last = self._last_result
        return LiveStatus(running=self._run, started_at=self._started_at,
                          mirrored=self._front, last_result=last)

    # ---- frames ----
    def submit_frame(self, frame: np.ndarray):
        """Wrap a BGR camera frame and hand it to the pipeline (dropped if busy)."""
        raw = RawFrame.from_bgr(frame, rotation=self.s.CAMERA_ROTATION)
        canvas = Size(width=self.s.CANVAS_WIDTH, height=self.s.CANVAS_HEIGHT)
        return self._pipeline.submit(FrameLease(raw), mirrored=self._front, canvas_size=canvas)

    def _on_result(self, result: FrameResult) -> None:
        with self._lock:
            self._last_result = result

    def _camera_index(self) -> int:
        return self.s.CAMERA_INDEX if self._front else self.s.BACK_CAMERA_INDEX

    def _video_loop(self):
        index = self._camera_index()
        cap = _open_capture(self.s, index)
        while self._run:
            if index != self._camera_index():
                cap.release()
                index = self._camera_index()
                cap = _open_capture(self.s, index)
            if not cap.isOpened():
                time.sleep(0.1)
                continue

            ok, frame = cap.read()
            if not ok or frame is None:
                time.sleep(0.05)
                continue
            self.submit_frame(frame)
            time.sleep(0.005)
        cap.release()


# -----------------------------------------------------------------------------
# Live camera overlay window
# -----------------------------------------------------------------------------
def _result_for_preview(result: Optional[FrameResult], front: bool) -> Optional[FrameResult]:
    # a result still in flight when the camera switched belongs to the other preview
    if result is not None and result.mirrored != front:
        return None
    return result


def run_live_overlay(settings: Settings, camera_index: Optional[int] = None) -> None:
    """
    Open the camera, analyse frames in the background and draw the latest
    result on the preview.

    Press 'q' to quit, 'c' to switch between front and back camera.
    """
    front = settings.FRONT_CAMERA
    cam_idx = settings.CAMERA_INDEX if camera_index is None else camera_index
    cap = _open_capture(settings, cam_idx)
    if not cap.isOpened():
        raise RuntimeError(f"Could not open camera index {cam_idx}")

    latest: dict = {"result": None}
    lock = threading.Lock()

    def _on_result(result: FrameResult) -> None:
        with lock:
            latest["result"] = result

    with FaceDetector(settings) as detector, EmotionClassifier(settings) as classifier:
        pipeline = FramePipeline(detector, classifier, settings, on_result=_on_result)
        try:
            while True:
                ok, frame = cap.read()
                if not ok or frame is None:
                    break

                raw = RawFrame.from_bgr(frame, rotation=settings.CAMERA_ROTATION)
                pipeline.submit(FrameLease(raw), mirrored=front)

                preview = rotate_clockwise(frame[:raw.height, :raw.width], settings.CAMERA_ROTATION)
                if front:
                    preview = cv2.flip(preview, 1)
                with lock:
                    result = latest["result"]
                annotated = draw_overlays(preview, _result_for_preview(result, front),
                                          settings.RENDER_MODE, mirrored=front)
                cv2.imshow(WINDOW_NAME, annotated)

                key = cv2.waitKey(1) & 0xFF
                if key == ord("q"):
                    break
                if key == ord("c"):
                    front = not front
                    cap.release()
                    cam_idx = settings.CAMERA_INDEX if front else settings.BACK_CAMERA_INDEX
                    cap = _open_capture(settings, cam_idx)
                    if not cap.isOpened():
                        raise RuntimeError(f"Could not open camera index {cam_idx}")
                    with lock:
                        latest["result"] = None
        finally:
            pipeline.close()
            cap.release()
            cv2.destroyAllWindows()
