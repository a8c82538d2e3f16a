"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    output_size: Optional[List[int]] = field(default_factory=lambda: [350, 450])
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            output_size=d.get("output_size", [350, 450]),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "output_size": self.output_size,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
        }


@dataclass
class ModelConfig:
    """Detection model configuration."""
    backend: str = "opencv"
    path: str = ""
    config_path: Optional[str] = None
    input_size: List[int] = field(default_factory=lambda: [300, 300])
    scores_output: Optional[str] = None
    boxes_output: Optional[str] = None
    swap_rb: bool = True
    replay_path: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        return cls(
            backend=d.get("backend", "opencv"),
            path=d.get("path", ""),
            config_path=d.get("config_path"),
            input_size=d.get("input_size", [300, 300]),
            scores_output=d.get("scores_output"),
            boxes_output=d.get("boxes_output"),
            swap_rb=d.get("swap_rb", True),
            replay_path=d.get("replay_path"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "backend": self.backend,
            "path": self.path,
            "input_size": self.input_size,
            "swap_rb": self.swap_rb,
        }
        if self.config_path is not None:
            d["config_path"] = self.config_path
        if self.scores_output is not None:
            d["scores_output"] = self.scores_output
        if self.boxes_output is not None:
            d["boxes_output"] = self.boxes_output
        if self.replay_path is not None:
            d["replay_path"] = self.replay_path
        return d


@dataclass
class PostprocessConfig:
    """Score reduction and non-max suppression parameters."""
    max_outputs: int = 30
    iou_threshold: float = 0.5
    score_threshold: float = 0.5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PostprocessConfig":
        return cls(
            max_outputs=d.get("max_outputs", 30),
            iou_threshold=d.get("iou_threshold", 0.5),
            score_threshold=d.get("score_threshold", 0.5),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_outputs": self.max_outputs,
            "iou_threshold": self.iou_threshold,
            "score_threshold": self.score_threshold,
        }


@dataclass
class RenderConfig:
    """Renderer configuration. Colors are BGR."""
    display: bool = False
    window_name: str = "Live Detection"
    record: bool = False
    output_dir: str = "output/video"
    box_color: List[int] = field(default_factory=lambda: [0, 0, 255])
    text_color: List[int] = field(default_factory=lambda: [255, 255, 255])
    line_width: int = 2
    font_scale: float = 0.5
    label_names: Optional[Dict[str, str]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RenderConfig":
        label_names = d.get("label_names")
        if label_names:
            label_names = {str(k): str(v) for k, v in label_names.items()}
        return cls(
            display=d.get("display", False),
            window_name=d.get("window_name", "Live Detection"),
            record=d.get("record", False),
            output_dir=d.get("output_dir", "output/video"),
            box_color=d.get("box_color", [0, 0, 255]),
            text_color=d.get("text_color", [255, 255, 255]),
            line_width=d.get("line_width", 2),
            font_scale=d.get("font_scale", 0.5),
            label_names=label_names or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "display": self.display,
            "window_name": self.window_name,
            "record": self.record,
            "output_dir": self.output_dir,
            "box_color": self.box_color,
            "text_color": self.text_color,
            "line_width": self.line_width,
            "font_scale": self.font_scale,
        }
        if self.label_names is not None:
            d["label_names"] = self.label_names
        return d


@dataclass
class LoopConfig:
    """
    Inference loop configuration.

    target_fps of None runs unpaced; max_consecutive_failures of None never
    stops on missing frames.
    """
    target_fps: Optional[float] = 60.0
    warmup: bool = True
    max_consecutive_failures: Optional[int] = None
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoopConfig":
        return cls(
            target_fps=d.get("target_fps", 60.0),
            warmup=d.get("warmup", True),
            max_consecutive_failures=d.get("max_consecutive_failures"),
            stats_log_interval=d.get("stats_log_interval", 60.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_fps": self.target_fps,
            "warmup": self.warmup,
            "max_consecutive_failures": self.max_consecutive_failures,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    postprocess: PostprocessConfig = field(default_factory=PostprocessConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)
    log_path: str = "logs/live_detect.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            model=ModelConfig.from_dict(d.get("model") or {}),
            postprocess=PostprocessConfig.from_dict(d.get("postprocess") or {}),
            render=RenderConfig.from_dict(d.get("render") or {}),
            loop=LoopConfig.from_dict(d.get("loop") or {}),
            log_path=d.get("log_path", "logs/live_detect.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or logging)."""
        return {
            "camera": self.camera.to_dict(),
            "model": self.model.to_dict(),
            "postprocess": self.postprocess.to_dict(),
            "render": self.render.to_dict(),
            "loop": self.loop.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
