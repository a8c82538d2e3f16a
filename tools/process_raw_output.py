#!/usr/bin/env python3
"""
Run detection post-processing over recorded raw model outputs.

Reads a .npz archive holding "scores" [F, N, C] and "boxes" [F, N, 4] (or
[F, N, 1, 4]) and prints one JSON line of detections per frame. Useful for
checking thresholds offline without a camera or model.

Usage:
    python tools/process_raw_output.py outputs.npz --width 350 --height 450
    python tools/process_raw_output.py outputs.npz --score-threshold 0.3 --max-outputs 10
"""

import argparse
import json
import os
import sys

# Add project directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

import numpy as np

from detection import DetectionPipeline, MalformedInput
from models.config import PostprocessConfig
from models.detection import RawDetectionOutput


def process_archive(path, width, height, config):
    """Yield (frame_index, detections or None) for every frame in the archive."""
    pipeline = DetectionPipeline(config)
    with np.load(path) as archive:
        scores = np.asarray(archive["scores"])
        boxes = np.asarray(archive["boxes"])

    for idx in range(len(scores)):
        try:
            raw = RawDetectionOutput.from_tensors(scores[idx][np.newaxis, ...], boxes[idx][np.newaxis, ...])
            objects = pipeline.process(raw, width, height)
        except (MalformedInput, ValueError) as e:
            print(f"frame {idx}: malformed output: {e}", file=sys.stderr)
            yield idx, None
        else:
            yield idx, objects


def main():
    parser = argparse.ArgumentParser(description="Post-process recorded raw detection outputs")
    parser.add_argument("archive", help=".npz file with scores and boxes arrays")
    parser.add_argument("--width", type=int, default=350, help="Target width in pixels")
    parser.add_argument("--height", type=int, default=450, help="Target height in pixels")
    parser.add_argument("--max-outputs", type=int, default=30)
    parser.add_argument("--iou-threshold", type=float, default=0.5)
    parser.add_argument("--score-threshold", type=float, default=0.5)
    args = parser.parse_args()

    if not os.path.exists(args.archive):
        print(f"Archive not found: {args.archive}", file=sys.stderr)
        sys.exit(1)

    config = PostprocessConfig(
        max_outputs=args.max_outputs,
        iou_threshold=args.iou_threshold,
        score_threshold=args.score_threshold,
    )

    total = 0
    for idx, objects in process_archive(args.archive, args.width, args.height, config):
        if objects is None:
            continue
        total += len(objects)
        print(json.dumps({"frame": idx, "detections": [obj.to_dict() for obj in objects]}))

    print(f"Total detections: {total}", file=sys.stderr)


if __name__ == "__main__":
    main()
