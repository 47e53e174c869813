"""Load recorded tracking oracle output from files."""

from typing import Iterator, Optional, Dict, Any, List, Union
from pathlib import Path
import torch

from .streaming_json_reader import StreamingJSONReader
from ..core.base_tracker import BaseTracker
from ..core.constants import FACE_LANDMARK_COUNT
from ..core.types import CameraIntrinsics, HeadPose, TrackingFrame, as_tensor


class DataLoader:
    """Convert recorded tracking items into TrackingFrame objects."""

    @staticmethod
    def load_metadata(input_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Read tracking file metadata without loading frames.

        Args:
            input_path: Input JSON file path

        Returns:
            Metadata dict with fps, frame_count and eye_models
        """
        with StreamingJSONReader(input_path) as reader:
            data = reader.get_metadata()

        if 'fps' not in data:
            raise ValueError(f"Tracking file has no fps: {input_path}")

        frame_count = data.get('frame_count')
        return {
            'fps': float(data['fps']),
            'frame_count': int(frame_count) if frame_count is not None else None,
            'eye_models': list(data.get('eye_models') or []),
        }

    @staticmethod
    def load_tracking(input_path: Union[str, Path],
                      device: str = 'cpu') -> Iterator[Optional[TrackingFrame]]:
        """
        Stream tracking frames from a JSON file.

        Args:
            input_path: Input JSON file path
            device: Device to load tensors to

        Yields:
            TrackingFrame per recorded frame, or None where tracking failed
        """
        with StreamingJSONReader(input_path) as reader:
            for item in reader.read_items():
                yield DataLoader.frame_from_dict(item, device) if item is not None else None

    @staticmethod
    def frame_from_dict(item: Dict[str, Any], device: str = 'cpu') -> TrackingFrame:
        """
        Build a TrackingFrame from one recorded item.

        Args:
            item: Dict with head_pose, camera, face_landmarks, eye_landmarks,
                  au_presence and au_intensity
            device: Device to load tensors to

        Returns:
            TrackingFrame
        """
        face_landmarks = as_tensor(item['face_landmarks'], device=device)
        if face_landmarks.shape != (FACE_LANDMARK_COUNT, 3):
            raise ValueError(
                f"Expected ({FACE_LANDMARK_COUNT}, 3) face landmarks, got {tuple(face_landmarks.shape)}"
            )

        eye_landmarks: Optional[List[torch.Tensor]] = None
        if item.get('eye_landmarks') is not None:
            eye_landmarks = [as_tensor(points, device=device) for points in item['eye_landmarks']]

        return TrackingFrame(
            head_pose=HeadPose.from_sequence(item['head_pose'], device=device),
            camera=CameraIntrinsics.from_sequence(item['camera']),
            face_landmarks=face_landmarks,
            eye_landmarks=eye_landmarks,
            au_presence={k: float(v) for k, v in (item.get('au_presence') or {}).items()},
            au_intensity={k: float(v) for k, v in (item.get('au_intensity') or {}).items()},
        )


class JSONTrackingSource(BaseTracker):
    """
    Tracking oracle replayed from a recorded JSON file.

    Frames are parsed lazily, so arbitrarily long recordings stream in
    constant memory.
    """

    def __init__(self, input_path: Union[str, Path], device: str = 'cpu') -> None:
        """
        Initialize the replay source.

        Args:
            input_path: Recorded tracking JSON file
            device: Device to load tensors to
        """
        super().__init__()
        self.input_path = Path(input_path)
        if not self.input_path.exists():
            raise FileNotFoundError(f"Tracking file not found: {self.input_path}")
        self.device = device

        metadata = DataLoader.load_metadata(self.input_path)
        self.fps = metadata['fps']
        self.frame_count = metadata['frame_count']
        self._eye_model_names: List[str] = metadata['eye_models']

    @property
    def eye_model_names(self) -> List[str]:
        return list(self._eye_model_names)

    def read_frames(self) -> Iterator[Optional[TrackingFrame]]:
        return DataLoader.load_tracking(self.input_path, self.device)

    def close(self) -> None:
        # Each read_frames() call owns its own file handle
        pass
