"""
Live object detection on a camera stream.

Reads frames from a camera (or video file), runs an SSD-style detection model
on each one, suppresses overlapping boxes and draws the labeled results.

Usage:
    python src/main.py --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --display: Show the annotated stream in a window (press 'q' to quit)
    --record: Record the annotated stream to a video file
    --max-frames: Stop after this many loop iterations
"""

import os
import sys
import argparse
import logging
from typing import Dict, Any, Tuple, Optional

import yaml

from models.config import Config
from ops.logging import setup_logging
from pipeline.engine import create_loop_from_config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        merged: Dict[str, Any] = {}
        local_overrides_path = os.path.join(config_dir, "config.yaml")
        for path in (os.path.join(config_dir, "default.yaml"), local_overrides_path):
            if os.path.exists(path):
                with open(path, "r") as f:
                    merged = _deep_merge(merged, yaml.safe_load(f) or {})

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                merged = _deep_merge(merged, yaml.safe_load(f) or {})

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_size(value: Any) -> bool:
    return (
        isinstance(value, list)
        and len(value) == 2
        and all(isinstance(x, int) and not isinstance(x, bool) and x > 0 for x in value)
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'model', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera') or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    device_id = camera['device_id']
    if isinstance(device_id, bool) or not isinstance(device_id, (int, str)):
        return False, "camera.device_id must be an integer (index) or string (URL or file path)"
    if isinstance(device_id, int) and device_id < 0:
        return False, "camera.device_id integer must be non-negative"
    if 'resolution' in camera and not _is_size(camera['resolution']):
        return False, "camera.resolution must be a list of two positive integers [width, height]"
    if camera.get('output_size') is not None and not _is_size(camera['output_size']):
        return False, "camera.output_size must be a list of two positive integers [width, height]"
    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"
    if camera.get('rotate', 0) not in (0, 90, 180, 270, None):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    # Model
    model = config.get('model') or {}
    backend = model.get('backend', 'opencv')
    if backend not in ('opencv', 'replay'):
        return False, "model.backend must be one of: opencv, replay"
    if backend == 'opencv' and (not isinstance(model.get('path'), str) or not model.get('path')):
        return False, "model.path is required when model.backend is 'opencv'"
    if backend == 'replay' and (not isinstance(model.get('replay_path'), str) or not model.get('replay_path')):
        return False, "model.replay_path is required when model.backend is 'replay'"
    if 'input_size' in model and not _is_size(model['input_size']):
        return False, "model.input_size must be a list of two positive integers [width, height]"

    # Post-processing
    postprocess = config.get('postprocess') or {}
    if 'max_outputs' in postprocess:
        max_outputs = postprocess['max_outputs']
        if not isinstance(max_outputs, int) or isinstance(max_outputs, bool) or max_outputs <= 0:
            return False, "postprocess.max_outputs must be a positive integer"
    for key in ('iou_threshold', 'score_threshold'):
        if key in postprocess:
            value = postprocess[key]
            if not _is_number(value) or not (0 <= value <= 1):
                return False, f"postprocess.{key} must be between 0 and 1"

    # Loop
    loop = config.get('loop') or {}
    target_fps = loop.get('target_fps')
    if target_fps is not None and (not _is_number(target_fps) or target_fps <= 0):
        return False, "loop.target_fps must be a positive number or null"
    max_failures = loop.get('max_consecutive_failures')
    if max_failures is not None and (not isinstance(max_failures, int) or max_failures <= 0):
        return False, "loop.max_consecutive_failures must be a positive integer or null"
    if 'stats_log_interval' in loop and (not _is_number(loop['stats_log_interval']) or loop['stats_log_interval'] <= 0):
        return False, "loop.stats_log_interval must be a positive number"

    # Logging
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Live object detection')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Show annotated frames in a window')
    parser.add_argument('--record', action='store_true',
                        help='Record annotated frames to a video file')
    parser.add_argument('--max-frames', type=int, default=None,
                        help='Stop after this many loop iterations')
    args = parser.parse_args()

    raw_config = load_config(args.config)

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    config = Config.from_dict(raw_config)
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting live detection")

    loop = create_loop_from_config(config, display=args.display, record=args.record)
    try:
        loop.run(max_iterations=args.max_frames)
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        loop.stop()
        logging.info("Live detection stopped")


if __name__ == "__main__":
    main()
