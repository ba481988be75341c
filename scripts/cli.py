"""
CLI to analyze a still image -> JSON (and optionally an annotated copy).
"""
from __future__ import annotations
import argparse, json, logging, os
import cv2
from faceemotion.classifier import EmotionClassifier
from faceemotion.config import Settings
from faceemotion.detector import FaceDetector
from faceemotion.pipeline import FramePipeline, scale_to_max_side
from faceemotion.visual import draw_still_annotations

def main():
    p = argparse.ArgumentParser()
    p.add_argument("--image", required=True, help="Path to input image")
    p.add_argument("--out", default="output/analysis.json", help="Path to output JSON")
    p.add_argument("--annotated", default=None, help="Optional path for the annotated image")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    args = p.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    image = cv2.imread(args.image)
    if image is None:
        raise SystemExit(f"Could not read image: {args.image}")

    settings = Settings()
    with FaceDetector(settings) as detector, EmotionClassifier(settings) as classifier:
        pipeline = FramePipeline(detector, classifier, settings)
        try:
            result = pipeline.analyze_image(image)
        finally:
            pipeline.close()

    payload = result.model_dump()
    print(json.dumps(payload, indent=2, ensure_ascii=False))

    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    print(f"✅ Analysis written to {args.out}")

    if args.annotated:
        scaled = scale_to_max_side(image, settings.STILL_MAX_SIDE)
        cv2.imwrite(args.annotated, draw_still_annotations(scaled, result.faces))
        print(f"✅ Annotated image written to {args.annotated}")

if __name__ == "__main__":
    main()
