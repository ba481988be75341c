# faceemotion/pipeline.py
"""
Per-frame face emotion pipeline.

detect -> (extract -> classify) per face -> overlay mapping, with at most one
frame in flight. Frames arriving while the slot is taken are released and
dropped, never queued.
"""
from __future__ import annotations
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional
import logging
import threading
import time

import cv2
import numpy as np

from faceemotion.classifier import ClassificationError, EmotionClassifier
from faceemotion.config import Settings
from faceemotion.detector import DetectionError, FaceDetector
from faceemotion.emotions import dominant_emotion, format_emotion, rank_emotions
from faceemotion.extractor import crop_face, upright_image
from faceemotion.frames import FrameLease, RawFrame
from faceemotion.geometry import map_to_canvas, to_sensor_space
from faceemotion.models import (
    DETECTION_ERROR_MESSAGE, NO_FACE_MESSAGE,
    FaceResult, FrameResult, Size, StillFaceResult, StillImageResult,
)

logger = logging.getLogger(__name__)


def scale_to_max_side(image: np.ndarray, max_side: int) -> np.ndarray:
    """Resize so the longest side equals `max_side`, keeping aspect ratio."""
    h, w = image.shape[:2]
    longest = max(h, w)
    if longest == 0 or longest == max_side:
        return image
    scale = max_side / float(longest)
    new_size = (max(1, int(w * scale)), max(1, int(h * scale)))
    interp = cv2.INTER_AREA if scale < 1.0 else cv2.INTER_LINEAR
    return cv2.resize(image, new_size, interpolation=interp)


class FramePipeline:
    """Runs detection and classification for one frame at a time.

    The detector and classifier are shared, long-lived collaborators owned by
    the caller. `on_result` is only invoked for work started before the last
    close().
    """
    def __init__(self,
                 detector: FaceDetector,
                 classifier: EmotionClassifier,
                 settings: Settings,
                 on_result: Optional[Callable[[FrameResult], None]] = None):
        self.s = settings
        self.detector = detector
        self.classifier = classifier
        self.on_result = on_result
        self._slot = threading.Semaphore(1)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="frame-analysis")
        self._generation = 0
        self._closed = False
        self._in_flight = False
        self.dropped = 0

    # ---- admission ----
    def submit(self,
               lease: FrameLease,
               mirrored: bool = False,
               canvas_size: Optional[Size] = None) -> Optional[Future]:
        """Start analysing a frame, or drop it if another is still in flight."""
        if self._closed or not self._slot.acquire(blocking=False):
            self.dropped += 1
            lease.release()
            return None

        self._in_flight = True
        generation = self._generation
        try:
            future = self._executor.submit(self._run, lease, mirrored, canvas_size)
        except RuntimeError:
            # executor already shut down
            self._in_flight = False
            self._slot.release()
            lease.release()
            return None
        future.add_done_callback(lambda f: self._deliver(f, generation))
        return future

    def _run(self, lease: FrameLease, mirrored: bool, canvas_size: Optional[Size]) -> FrameResult:
        try:
            return self.analyze_frame(lease.frame, mirrored=mirrored, canvas_size=canvas_size)
        finally:
            lease.release()
            self._in_flight = False
            self._slot.release()

    def _deliver(self, future: Future, generation: int) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("[pipeline] frame analysis crashed", exc_info=exc)
            return
        if self._closed or generation != self._generation:
            logger.debug("[pipeline] discarding result of a stale session")
            return
        if self.on_result is not None:
            self.on_result(future.result())

    @property
    def busy(self) -> bool:
        return self._in_flight

    def close(self) -> None:
        """Stop accepting frames; in-flight work finishes but is not delivered."""
        self._closed = True
        self._generation += 1
        self._executor.shutdown(wait=False)

    # ---- analysis ----
    def analyze_frame(self,
                      frame: RawFrame,
                      mirrored: bool = False,
                      canvas_size: Optional[Size] = None,
                      inflate: Optional[float] = None) -> FrameResult:
        inflate = self.s.LIVE_INFLATE if inflate is None else inflate
        analysis_size = Size(width=frame.width, height=frame.height)
        ts = time.time()

        def _result(status, message, faces=None):
            return FrameResult(ts=ts, status=status, message=message, faces=faces or [],
                               analysis_size=analysis_size, canvas_size=canvas_size,
                               mirrored=mirrored)

        image = upright_image(frame, self.s.COLOR_STRATEGY)
        try:
            boxes = self.detector.detect_image(image)
        except DetectionError:
            logger.exception("[pipeline] face detection failed")
            return _result("DETECTION_ERROR", DETECTION_ERROR_MESSAGE)

        if not boxes:
            return _result("NO_FACE", NO_FACE_MESSAGE)

        faces: List[FaceResult] = []
        for face_id, box in enumerate(boxes, start=1):
            cropped = crop_face(image, box, inflate)
            if cropped is None:
                continue
            eff_box, chip = cropped
            try:
                scores = self.classifier.classify(chip, normalize=self.s.CLASSIFIER_NORMALIZE)
            except ClassificationError:
                logger.warning(f"[pipeline] classification failed for face {face_id}; omitted", exc_info=True)
                continue
            label, confidence = dominant_emotion(scores, self.classifier.labels)

            overlay = None
            if canvas_size is not None:
                sensor_box = to_sensor_space(eff_box, frame.rotation, analysis_size)
                overlay = map_to_canvas(sensor_box, analysis_size, canvas_size, mirrored)

            faces.append(FaceResult(
                face_id=face_id,
                box=eff_box,
                label=label,
                confidence=confidence,
                emotion=format_emotion(label, confidence),
                overlay=overlay,
            ))

        if not faces:
            return _result("NO_FACE", NO_FACE_MESSAGE)

        message = "\n".join(f"Face {f.face_id}: {f.emotion}" for f in faces)
        logger.debug(f"[pipeline] frame {frame.width}x{frame.height} rot={frame.rotation}: {message!r}")
        return _result("OK", message, faces)

    def analyze_image(self, image: np.ndarray) -> StillImageResult:
        """
        Still-image flow: scale to STILL_MAX_SIDE, detect, classify every face
        and return its full ranked distribution.
        """
        scaled = scale_to_max_side(image, self.s.STILL_MAX_SIDE)
        h, w = scaled.shape[:2]
        image_size = Size(width=w, height=h)

        try:
            boxes = self.detector.detect_image(scaled)
        except DetectionError:
            logger.exception("[pipeline] still-image detection failed")
            return StillImageResult(status="DETECTION_ERROR", message=DETECTION_ERROR_MESSAGE,
                                    image_size=image_size)

        faces: List[StillFaceResult] = []
        for box in boxes:
            cropped = crop_face(scaled, box, self.s.STILL_INFLATE)
            if cropped is None:
                continue
            eff_box, chip = cropped
            try:
                scores = self.classifier.classify(chip, normalize=self.s.CLASSIFIER_NORMALIZE)
            except ClassificationError:
                logger.warning("[pipeline] still-image classification failed; face omitted", exc_info=True)
                continue
            faces.append(StillFaceResult(
                title=f"Face {len(faces) + 1}",
                box=eff_box,
                emotions=rank_emotions(scores, self.classifier.labels),
            ))

        if not faces:
            return StillImageResult(status="NO_FACE", message=NO_FACE_MESSAGE, image_size=image_size)
        return StillImageResult(status="OK", message=f"{len(faces)} face(s) detected",
                                image_size=image_size, faces=faces)
