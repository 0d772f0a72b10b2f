"""Camera brightness monitoring.

Average luma is the mean over all pixels of the per-pixel average of the
three colour channels. Alpha, when present, is ignored.
"""

import logging
from enum import Enum
from typing import Callable, Optional

import numpy as np

from .constants import BrightnessConfig

logger = logging.getLogger(__name__)

DARK_WARNING = "Warning: Camera image is too dark. Please increase brightness."


class BrightnessState(Enum):
    """Binary brightness signal."""
    OK = "ok"
    TOO_DARK = "too_dark"


def average_luma(frame: np.ndarray) -> float:
    """Compute the average luma of a frame.

    Args:
        frame: HxWx3 (BGR/RGB) or HxWx4 (with alpha) uint8 image

    Returns:
        Mean channel average in [0, 255]
    """
    if frame.ndim != 3 or frame.shape[2] < 3:
        raise ValueError(f"Expected a colour frame, got shape {frame.shape}")

    color = frame[..., :3].astype(np.float64)
    return float(color.mean(axis=2).mean())


class BrightnessMonitor:
    """Tracks whether the camera image is too dark."""

    def __init__(
        self,
        config: Optional[BrightnessConfig] = None,
        on_change: Optional[Callable[[BrightnessState], None]] = None,
    ):
        self.config = config or BrightnessConfig()
        self.on_change = on_change
        self._state = BrightnessState.OK
        self._last_sample: Optional[float] = None

    def check(self, frame: Optional[np.ndarray]) -> Optional[float]:
        """Sample one frame and update the warning state.

        Does nothing when no frame is available; the previous state is kept.

        Args:
            frame: Current video frame, or None if the source is not ready

        Returns:
            The average luma, or None when no frame was given
        """
        if frame is None or frame.size == 0:
            return None

        luma = average_luma(frame)
        self._last_sample = luma

        state = (
            BrightnessState.TOO_DARK
            if luma < self.config.dark_threshold
            else BrightnessState.OK
        )
        if state != self._state:
            logger.debug(f"Brightness {state.value} (luma={luma:.1f})")
            self._state = state
            if self.on_change is not None:
                self.on_change(state)

        return luma

    @property
    def state(self) -> BrightnessState:
        return self._state

    @property
    def is_too_dark(self) -> bool:
        return self._state is BrightnessState.TOO_DARK

    @property
    def warning(self) -> str:
        """Banner text, empty unless the image is too dark."""
        return DARK_WARNING if self.is_too_dark else ""

    @property
    def last_sample(self) -> Optional[float]:
        return self._last_sample
