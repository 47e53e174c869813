"""Core components for face-vmd-gen package."""

from .base_mapper import BaseExpressionMapper
from .base_tracker import BaseTracker
from .eye_side import EyeSide
from .exceptions import DegenerateInput, FaceVMDError, GazeModelUnavailable, MalformedLabel
from .types import (
    ActionUnitVector,
    CameraIntrinsics,
    ExpressionWeights,
    FrameOutput,
    HeadPose,
    MorphKeyframe,
    PositionKeyframe,
    RotationKeyframe,
    TrackingFrame,
)

__all__ = [
    "ActionUnitVector",
    "BaseExpressionMapper",
    "BaseTracker",
    "CameraIntrinsics",
    "DegenerateInput",
    "ExpressionWeights",
    "EyeSide",
    "FaceVMDError",
    "FrameOutput",
    "GazeModelUnavailable",
    "HeadPose",
    "MalformedLabel",
    "MorphKeyframe",
    "PositionKeyframe",
    "RotationKeyframe",
    "TrackingFrame",
]
