"""Base tracker interface for facial tracking oracles."""

from abc import ABC, abstractmethod
from typing import Iterator, Optional, Any, List

from .types import TrackingFrame


class BaseTracker(ABC):
    """
    Abstract base class for tracking oracles (live trackers, recorded replays).

    A tracker yields one item per source frame: a TrackingFrame, or None when
    landmark detection failed for that frame. Frames are sequential; the tracker
    is the only stateful stage upstream of keyframe generation.
    """

    def __init__(self) -> None:
        """Initialize base tracker."""
        self.fps: float = 30.0
        self.frame_count: Optional[int] = None

    @property
    @abstractmethod
    def eye_model_names(self) -> List[str]:
        """Names of the eye sub-models exposed by the tracking model, in landmark order."""
        pass

    @abstractmethod
    def read_frames(self) -> Iterator[Optional[TrackingFrame]]:
        """
        Read tracking results from the source.

        Yields:
            TrackingFrame per source frame, or None if tracking failed
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close tracker and clean up resources."""
        pass

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Optional[type], exc_val: Optional[Exception], exc_tb: Optional[Any]) -> None:
        """Context manager exit with automatic cleanup."""
        self.close()
