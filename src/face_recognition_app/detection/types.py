"""Detected face data type."""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True, eq=False)
class DetectedFace:
    """A detected face with bounding box, confidence and identity descriptor."""

    x: int
    y: int
    width: int
    height: int
    descriptor: Optional[np.ndarray] = None
    confidence: float = 1.0

    @property
    def bbox(self) -> Tuple[int, int, int, int]:
        """Return bounding box as (x, y, w, h)."""
        return (self.x, self.y, self.width, self.height)

    @property
    def center(self) -> Tuple[int, int]:
        """Return center point of bounding box."""
        return (self.x + self.width // 2, self.y + self.height // 2)

    @property
    def area(self) -> int:
        """Return area of bounding box."""
        return self.width * self.height

    def resized(
        self,
        source_size: Tuple[int, int],
        display_size: Tuple[int, int],
    ) -> "DetectedFace":
        """Scale the box from source frame size to display size.

        Args:
            source_size: (width, height) of the frame the face was found in
            display_size: (width, height) of the surface it is drawn on

        Returns:
            A copy with the box rescaled
        """
        src_w, src_h = source_size
        dst_w, dst_h = display_size
        if src_w <= 0 or src_h <= 0:
            raise ValueError(f"Invalid source size: {source_size}")

        sx = dst_w / src_w
        sy = dst_h / src_h
        return replace(
            self,
            x=int(round(self.x * sx)),
            y=int(round(self.y * sy)),
            width=int(round(self.width * sx)),
            height=int(round(self.height * sy)),
        )
