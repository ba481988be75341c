"""
REST endpoints for still-image, single-frame and live analysis.
"""
from fastapi import APIRouter, UploadFile, File, HTTPException, Form
from fastapi.responses import JSONResponse
import logging
import threading

import cv2
import numpy as np

from faceemotion.classifier import EmotionClassifier
from faceemotion.config import Settings
from faceemotion.detector import FaceDetector
from faceemotion.frames import RawFrame
from faceemotion.live import LiveAnalyzer
from faceemotion.models import Size
from faceemotion.pipeline import FramePipeline


router = APIRouter()
settings = Settings()
logger = logging.getLogger(__name__)

live_session = {"analyzer": None}
_shared = {"pipeline": None}
_shared_lock = threading.Lock()


def get_pipeline() -> FramePipeline:
    """Detector/classifier shared by the request handlers, created on first use."""
    with _shared_lock:
        if _shared["pipeline"] is None:
            detector = FaceDetector(settings).open()
            classifier = EmotionClassifier(settings).open()
            _shared["pipeline"] = FramePipeline(detector, classifier, settings)
        return _shared["pipeline"]


@router.post("/analyze/image")
async def analyze_image(file: UploadFile = File(...)):
    """
    Detect faces in an uploaded still image and classify each one.

    Args:
        file: Uploaded image (any format OpenCV can decode).

    Returns:
        JSONResponse: StillImageResult payload with a ranked distribution per face.
    """
    logger.debug(f"[api] /analyze/image filename={file.filename}")
    data = await file.read()
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR) if data else None
    if image is None:
        raise HTTPException(status_code=400, detail="Could not decode image")

    try:
        result = get_pipeline().analyze_image(image)
    except Exception as e:
        logger.exception("[api] analyze_image failed")
        raise HTTPException(status_code=500, detail=str(e))
    return JSONResponse(result.model_dump())


@router.post("/analyze/frame")
async def analyze_frame(
    file: UploadFile = File(...),
    width: int = Form(...),
    height: int = Form(...),
    rotation: int = Form(0),
    mirrored: bool = Form(False),
    canvas_width: int | None = Form(None),
    canvas_height: int | None = Form(None),
    inflate: float | None = Form(None),
):
    """
    Analyse one raw camera frame (packed I420: Y plane, then U, then V).

    Args:
        file: Raw frame bytes, width*height*3/2 long.
        width, height: Sensor frame size.
        rotation: Clockwise degrees needed to make the frame upright.
        mirrored: Front camera; mirror overlay rectangles.
        canvas_width, canvas_height: Optional portrait canvas for overlay rectangles.
        inflate: Optional box inflation override (defaults to LIVE_INFLATE).

    Returns:
        JSONResponse: FrameResult payload.
    """
    data = await file.read()
    try:
        frame = RawFrame.from_i420(data, width, height, rotation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    canvas = None
    if canvas_width and canvas_height:
        canvas = Size(width=canvas_width, height=canvas_height)

    try:
        result = get_pipeline().analyze_frame(frame, mirrored=mirrored, canvas_size=canvas, inflate=inflate)
    except Exception as e:
        logger.exception("[api] analyze_frame failed")
        raise HTTPException(status_code=500, detail=str(e))
    return JSONResponse(result.model_dump())


@router.post("/live/start")
async def live_start():
    analyzer = live_session["analyzer"]
    if analyzer is not None and analyzer.running:
        return {"status": "already_running"}
    analyzer = LiveAnalyzer(settings)
    try:
        analyzer.start()
    except Exception as e:
        logger.exception("[api] live start failed")
        raise HTTPException(status_code=500, detail=str(e))
    live_session["analyzer"] = analyzer
    return {"status": "started"}

@router.get("/live/status")
async def live_status():
    analyzer = live_session["analyzer"]
    if analyzer is None:
        return {"running": False, "last_result": None}
    return analyzer.status().model_dump()

@router.post("/live/switch")
async def live_switch():
    analyzer = live_session["analyzer"]
    if analyzer is None or not analyzer.running:
        return {"status": "not_running"}
    front = analyzer.switch_camera()
    return {"status": "switched", "camera": "front" if front else "back"}

@router.post("/live/stop")
async def live_stop():
    analyzer = live_session["analyzer"]
    if analyzer is None or not analyzer.running:
        return {"status": "not_running"}
    analyzer.stop()
    return {"status": "stopped"}
