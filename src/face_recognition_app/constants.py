"""Centralized constants and configuration loader.

This module provides access to configuration values and sensible defaults
for every tunable used by the app. Values are loaded from config/config.yaml
when available, otherwise defaults are used.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

# Path to the default configuration file
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

# Storage key of the persisted registry record
STORAGE_KEY = "face_descriptors"

# Label reported for probes that match no identity
UNKNOWN_LABEL = "unknown"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. Uses default if None.

    Returns:
        Configuration dictionary.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    try:
        if path.exists():
            with open(path, "r") as f:
                return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")

    return {}


def _get_nested(config: Dict, *keys: str, default: Any = None) -> Any:
    """Get nested config value with default fallback."""
    value = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
        else:
            return default
        if value is None:
            return default
    return value


# ============================================================
# Brightness Monitor
# ============================================================

@dataclass
class BrightnessConfig:
    """Brightness heuristic constants."""
    # Average luma (0-255) below which the frame is too dark
    dark_threshold: float = 60.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "BrightnessConfig":
        """Create from config dictionary."""
        b = _get_nested(config, "brightness") or {}
        return cls(dark_threshold=float(b.get("dark_threshold", 60.0)))


# ============================================================
# Matching
# ============================================================

@dataclass
class MatchingConfig:
    """Descriptor matching constants."""
    # Maximum Euclidean distance for a known match
    distance_threshold: float = 0.6
    # Descriptor length produced by the recognition model
    embedding_dim: int = 128

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "MatchingConfig":
        """Create from config dictionary."""
        m = _get_nested(config, "matching") or {}
        return cls(
            distance_threshold=float(m.get("distance_threshold", 0.6)),
            embedding_dim=int(m.get("embedding_dim", 128)),
        )


# ============================================================
# Recognition Session
# ============================================================

@dataclass
class SessionConfig:
    """Recognition session timing and concurrency."""
    # Seconds between poll ticks
    poll_interval: float = 0.3
    # Seconds a session runs before returning to idle
    duration: float = 30.0
    # Skip a tick while the previous detection is still running
    skip_if_busy: bool = True
    # What happens to detections in flight when the session ends
    in_flight_policy: str = "discard"
    # Detection worker threads
    max_workers: int = 2

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SessionConfig":
        """Create from config dictionary."""
        s = _get_nested(config, "session") or {}
        return cls(
            poll_interval=float(s.get("poll_interval", 0.3)),
            duration=float(s.get("duration", 30.0)),
            skip_if_busy=bool(s.get("skip_if_busy", True)),
            in_flight_policy=str(s.get("in_flight_policy", "discard")),
            max_workers=int(s.get("max_workers", 2)),
        )


# ============================================================
# Storage
# ============================================================

@dataclass
class StorageConfig:
    """Registry persistence settings."""
    directory: str = "data"
    key: str = STORAGE_KEY

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "StorageConfig":
        """Create from config dictionary."""
        st = _get_nested(config, "storage") or {}
        return cls(
            directory=str(st.get("directory", "data")),
            key=str(st.get("key", STORAGE_KEY)),
        )


# ============================================================
# Detector
# ============================================================

@dataclass
class DetectorConfig:
    """dlib detector model locations."""
    models_dir: str = "models"
    upsample_num_times: int = 1
    shape_predictor_file: str = "shape_predictor_68_face_landmarks.dat"
    recognition_model_file: str = "dlib_face_recognition_resnet_model_v1.dat"

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "DetectorConfig":
        """Create from config dictionary."""
        d = _get_nested(config, "detector") or {}
        return cls(
            models_dir=str(d.get("models_dir", "models")),
            upsample_num_times=int(d.get("upsample_num_times", 1)),
            shape_predictor_file=d.get(
                "shape_predictor_file", "shape_predictor_68_face_landmarks.dat"
            ),
            recognition_model_file=d.get(
                "recognition_model_file", "dlib_face_recognition_resnet_model_v1.dat"
            ),
        )


# ============================================================
# Camera
# ============================================================

@dataclass
class CameraSettings:
    """Webcam capture settings."""
    device: Union[int, str] = 0
    width: int = 640
    height: int = 480
    fps: int = 30

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "CameraSettings":
        """Create from config dictionary."""
        c = _get_nested(config, "camera") or {}
        resolution = c.get("resolution", [640, 480])
        return cls(
            device=c.get("device", 0),
            width=int(resolution[0]),
            height=int(resolution[1]),
            fps=int(c.get("fps", 30)),
        )


@dataclass
class AppConfig:
    """All configuration sections bundled for explicit injection."""
    brightness: BrightnessConfig = field(default_factory=BrightnessConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    camera: CameraSettings = field(default_factory=CameraSettings)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "AppConfig":
        """Create every section from one config dictionary."""
        return cls(
            brightness=BrightnessConfig.from_config(config),
            matching=MatchingConfig.from_config(config),
            session=SessionConfig.from_config(config),
            storage=StorageConfig.from_config(config),
            detector=DetectorConfig.from_config(config),
            camera=CameraSettings.from_config(config),
        )


def load_app_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load an AppConfig from a YAML file (defaults when absent)."""
    return AppConfig.from_config(load_config(config_path))


# ============================================================
# Global Config Instance (lazy loaded)
# ============================================================

class Config:
    """Global configuration singleton."""

    _instance: Optional["Config"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load()
        return cls._instance

    def _load(self) -> None:
        """Load configuration from file."""
        self._config = load_config()
        self._app: Optional[AppConfig] = None

    def reload(self, config_path: Optional[Path] = None) -> None:
        """Reload configuration from file."""
        self._config = load_config(config_path)
        self._app = None

    @property
    def app(self) -> AppConfig:
        """Get the full app config."""
        if self._app is None:
            self._app = AppConfig.from_config(self._config)
        return self._app


def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()


def get_app_config() -> AppConfig:
    """Get the app config loaded from the default config file."""
    return get_config().app
