"""Eye side enumeration for gaze estimation."""

from enum import Enum


class EyeSide(Enum):
    """Enumeration of tracked eyes, named from the tracking model's point of view."""
    LEFT = "left"
    RIGHT = "right"
