"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  resolution: [640, 480]
  fps: 30
  output_size: [350, 450]

model:
  backend: "opencv"
  path: "models/detector.pb"
  input_size: [300, 300]

postprocess:
  max_outputs: 30
  iou_threshold: 0.5
  score_threshold: 0.5

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
            "output_size": [350, 450],
        },
        "model": {
            "backend": "opencv",
            "path": "models/detector.pb",
            "input_size": [300, 300],
        },
        "postprocess": {
            "max_outputs": 30,
            "iou_threshold": 0.5,
            "score_threshold": 0.5,
        },
        "loop": {
            "target_fps": 60,
            "max_consecutive_failures": None,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def overlapping_output():
    """Two heavily overlapping boxes, two classes."""
    scores = np.array([[[0.9, 0.1], [0.8, 0.2]]], dtype=np.float32)
    boxes = np.array([[[[0.0, 0.0, 0.5, 0.5]], [[0.01, 0.01, 0.49, 0.49]]]], dtype=np.float32)
    return scores, boxes


@pytest.fixture
def separated_output():
    """Two non-overlapping boxes, two classes."""
    scores = np.array([[[0.9, 0.1], [0.8, 0.2]]], dtype=np.float32)
    boxes = np.array([[[[0.0, 0.0, 0.5, 0.5]], [[0.6, 0.6, 0.9, 0.9]]]], dtype=np.float32)
    return scores, boxes
