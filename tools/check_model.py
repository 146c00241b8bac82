#!/usr/bin/env python3
"""
Check an exported ONNX detector against a still image or a video.

This utility helps verify that:
1. onnxruntime can load the model with the requested providers
2. The output has the expected [x, y, w, h, score, class_id] row layout
3. Boxes land where expected when drawn by the overlay renderer

Usage:
    python tools/check_model.py --model models/model.onnx --image street.jpg
    python tools/check_model.py --model models/model.onnx --video clip.mp4 --frames 50
"""

import argparse
import os
import sys
import time

# Add project directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

import cv2

from detection.postprocess import rows_from_output
from inference.backend import InferenceAdapter, InferenceFailure, ModelLoadFailure
from inference.onnx_backend import load_onnx_model
from models.config import Config, ModelConfig
from pipeline.engine import create_pipeline_from_config


class StillFrame:
    """Video element that always shows one frame."""
    paused = False
    ended = False

    def __init__(self, frame):
        self._frame = frame

    def current_frame(self):
        return self._frame


def check_image(pipeline, image_path):
    frame = cv2.imread(image_path)
    if frame is None:
        print(f"❌ Failed to load image: {image_path}")
        return 1

    # Raw rows first so layout problems show up before postprocessing
    with pipeline.preprocessor.acquire(frame) as tensor:
        output = pipeline.adapter.infer(tensor)
    print(f"   Raw output shape: {output.shape}")
    try:
        rows = rows_from_output(output)
    except ValueError as e:
        print(f"❌ {e}")
        return 1
    print(f"   Rows: {len(rows)}, above threshold: "
          f"{int((rows[:, 4] >= pipeline.postprocessor.threshold).sum())}")

    result = pipeline.run_cycle(StillFrame(frame))
    for det in result.detections:
        print(f"   class={det.class_id} {det.label} box=({det.x:.0f}, {det.y:.0f}, "
              f"{det.width:.0f}, {det.height:.0f})")

    output_path = image_path.rsplit('.', 1)[0] + "_overlay.jpg"
    cv2.imwrite(output_path, pipeline.surface.snapshot())
    print(f"   Saved overlay to: {output_path}")
    return 0


def check_video(pipeline, video_path, max_frames):
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        print(f"❌ Failed to open video: {video_path}")
        return 1

    latencies = []
    boxes = 0
    while len(latencies) < max_frames:
        ret, frame = cap.read()
        if not ret:
            break
        result = pipeline.run_cycle(StillFrame(frame))
        latencies.append(result.latency_ms)
        boxes += len(result.detections)
    cap.release()

    if not latencies:
        print("❌ No frames decoded")
        return 1

    avg = sum(latencies) / len(latencies)
    print(f"   Frames: {len(latencies)}, detections: {boxes}")
    print(f"   Cycle latency: avg={avg:.1f}ms max={max(latencies):.1f}ms")
    if avg > 100:
        print("⚠️  Average cycle is slower than the 100ms scheduler interval")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Check an ONNX detector")
    parser.add_argument("--model", required=True, help="Path to the ONNX model")
    parser.add_argument("--image", help="Still image to run once")
    parser.add_argument("--video", help="Video to benchmark")
    parser.add_argument("--frames", type=int, default=100, help="Max video frames")
    parser.add_argument("--threshold", type=float, default=0.5)
    parser.add_argument("--cpu", action="store_true", help="Force CPUExecutionProvider")
    args = parser.parse_args()

    if not args.image and not args.video:
        parser.error("one of --image or --video is required")

    providers = ["CPUExecutionProvider"] if args.cpu else ["CUDAExecutionProvider", "CPUExecutionProvider"]

    print(f"\n📦 Loading model: {args.model}")
    start = time.time()
    try:
        model = load_onnx_model(ModelConfig(path=args.model, providers=providers))
    except ModelLoadFailure as e:
        print(f"❌ {e}")
        return 1
    print(f"   Loaded in {time.time() - start:.2f}s on {model.providers}")
    print(f"   Input: {model.input_name} {model.input_shape}")

    cfg = Config.from_dict({"detection": {"threshold": args.threshold}})
    pipeline = create_pipeline_from_config(cfg, InferenceAdapter(model))

    try:
        if args.image:
            return check_image(pipeline, args.image)
        return check_video(pipeline, args.video, args.frames)
    except InferenceFailure as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
