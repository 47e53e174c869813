"""Type definitions for tracking input and keyframe output."""

from dataclasses import dataclass, field
from typing import Optional, Dict, List, Sequence, Union, Any
import numpy as np
import torch

from .constants import (
    DTYPE,
    AU_SIZE,
    MORPH_A,
    MORPH_I,
    MORPH_U,
    MORPH_SMILE,
    MORPH_FROWN_CORNER,
    MORPH_BLINK,
    MORPH_CHEEK_RAISER,
    MORPH_SURPRISE,
    MORPH_TROUBLED,
    MORPH_SERIOUS,
    MORPH_ANGER,
    MORPH_BROW_DOWN,
    MORPH_BROW_UP,
)

ArrayLike = Union[torch.Tensor, np.ndarray, Sequence[float], Sequence[Sequence[float]]]


def as_tensor(values: ArrayLike, device: str = 'cpu') -> torch.Tensor:
    """Convert list/numpy/tensor input to a tensor in working precision."""
    if isinstance(values, torch.Tensor):
        return values.to(dtype=DTYPE, device=device)
    return torch.as_tensor(np.asarray(values, dtype=np.float64), device=device)


@dataclass
class HeadPose:
    """
    Head pose in camera space, as produced by the tracking model.

    Translation is in millimetres; rotation is (pitch, yaw, roll) in radians.
    """
    translation: torch.Tensor  # (3,) tx, ty, tz
    rotation: torch.Tensor     # (3,) pitch, yaw, roll

    @classmethod
    def from_sequence(cls, values: ArrayLike, device: str = 'cpu') -> 'HeadPose':
        """
        Build a pose from the oracle's flat 6-vector.

        Args:
            values: (tx, ty, tz, pitch, yaw, roll)
            device: Device to create tensors on

        Returns:
            HeadPose
        """
        pose = as_tensor(values, device=device).reshape(-1)
        if pose.numel() != 6:
            raise ValueError(f"Head pose needs 6 values, got {pose.numel()}")
        return cls(translation=pose[:3].clone(), rotation=pose[3:].clone())

    @classmethod
    def create_default(cls, device: str = 'cpu') -> 'HeadPose':
        """Neutral pose: no rotation, no translation."""
        return cls(
            translation=torch.zeros(3, dtype=DTYPE, device=device),
            rotation=torch.zeros(3, dtype=DTYPE, device=device),
        )

    @property
    def pitch(self) -> torch.Tensor:
        return self.rotation[0]

    @property
    def yaw(self) -> torch.Tensor:
        return self.rotation[1]

    @property
    def roll(self) -> torch.Tensor:
        return self.rotation[2]


@dataclass
class CameraIntrinsics:
    """Pinhole camera model: focal lengths and principal point in pixels."""
    fx: float
    fy: float
    cx: float
    cy: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> 'CameraIntrinsics':
        """Build intrinsics from (fx, fy, cx, cy)."""
        if len(values) != 4:
            raise ValueError(f"Camera intrinsics need 4 values, got {len(values)}")
        fx, fy, cx, cy = (float(v) for v in values)
        return cls(fx=fx, fy=fy, cx=cx, cy=cy)

    def project(self, points: torch.Tensor) -> torch.Tensor:
        """
        Project camera-space points to pixel coordinates.

        Args:
            points: (..., 3) camera-space points with nonzero z

        Returns:
            (..., 2) pixel coordinates
        """
        u = self.fx * points[..., 0] / points[..., 2] + self.cx
        v = self.fy * points[..., 1] / points[..., 2] + self.cy
        return torch.stack([u, v], dim=-1)

    def unproject(self, pixels: torch.Tensor, depth: torch.Tensor) -> torch.Tensor:
        """
        Back-project pixel coordinates onto the plane z = depth.

        Args:
            pixels: (..., 2) pixel coordinates
            depth: Scalar or (...) depth of the target plane

        Returns:
            (..., 3) camera-space points
        """
        depth = torch.as_tensor(depth, dtype=pixels.dtype, device=pixels.device)
        x = (pixels[..., 0] - self.cx) * depth / self.fx
        y = (pixels[..., 1] - self.cy) * depth / self.fy
        z = depth.expand_as(x)
        return torch.stack([x, y, z], dim=-1)


@dataclass
class ActionUnitVector:
    """
    Dense action unit intensities indexed by AU code, normalized to the oracle's maximum.
    Codes that were not reported, or reported as not present, are exactly 0.
    """
    values: torch.Tensor  # (AU_SIZE,)

    @classmethod
    def create_default(cls, device: str = 'cpu') -> 'ActionUnitVector':
        """All-zero vector (no facial activity)."""
        return cls(values=torch.zeros(AU_SIZE, dtype=DTYPE, device=device))

    @classmethod
    def from_dict(cls, intensities: Dict[int, float], device: str = 'cpu') -> 'ActionUnitVector':
        """Build a vector from already-normalized {code: value} pairs."""
        vector = cls.create_default(device=device)
        for code, value in intensities.items():
            if not 0 <= code < AU_SIZE:
                raise ValueError(f"Action unit code out of range: {code}")
            vector.values[code] = float(value)
        return vector

    def __getitem__(self, code: int) -> torch.Tensor:
        return self.values[code]

    def to_dict(self) -> Dict[int, float]:
        """Nonzero entries as {code: value}."""
        return {int(code): self.values[code].item() for code in torch.nonzero(self.values).flatten()}


@dataclass
class ExpressionWeights:
    """
    Blendshape weights produced by the expression rule table.
    Field order is the emission order of the morph keyframes.
    """

    # Mouth
    mouth_a: torch.Tensor
    mouth_i: torch.Tensor
    mouth_u: torch.Tensor
    smile: torch.Tensor
    frown_corner: torch.Tensor

    # Eyes
    blink: torch.Tensor
    cheek_raise: torch.Tensor
    surprise: torch.Tensor

    # Brows
    brow_inner_raise: torch.Tensor
    brow_outer_raise: torch.Tensor
    anger: torch.Tensor
    brow_down: torch.Tensor
    brow_up: torch.Tensor

    @classmethod
    def create_default(cls, device: str = 'cpu') -> 'ExpressionWeights':
        """Neutral face: every weight 0."""
        return cls(**{name: torch.tensor(0.0, dtype=DTYPE, device=device)
                      for name in cls.__dataclass_fields__})

    def to_dict(self) -> Dict[str, float]:
        """
        Convert weights to {morph name: weight}, preserving emission order.
        Tensor values are converted to Python floats.
        """
        return {
            self._field_to_morph_name(field_name): getattr(self, field_name).item()
            for field_name in self.__dataclass_fields__
        }

    @staticmethod
    def _field_to_morph_name(field_name: str) -> str:
        """Convert field name to the avatar's morph name."""
        mapping = {
            "mouth_a": MORPH_A,
            "mouth_i": MORPH_I,
            "mouth_u": MORPH_U,
            "smile": MORPH_SMILE,
            "frown_corner": MORPH_FROWN_CORNER,
            "blink": MORPH_BLINK,
            "cheek_raise": MORPH_CHEEK_RAISER,
            "surprise": MORPH_SURPRISE,
            "brow_inner_raise": MORPH_TROUBLED,
            "brow_outer_raise": MORPH_SERIOUS,
            "anger": MORPH_ANGER,
            "brow_down": MORPH_BROW_DOWN,
            "brow_up": MORPH_BROW_UP,
        }
        return mapping.get(field_name, field_name)


@dataclass
class TrackingFrame:
    """
    One frame of tracking oracle output.

    Landmarks are camera-space 3D points. ``eye_landmarks`` is indexed like the
    tracking model's eye model list and is None when the model has no eye stage.
    """
    head_pose: HeadPose
    camera: CameraIntrinsics
    face_landmarks: torch.Tensor                       # (68, 3)
    eye_landmarks: Optional[List[torch.Tensor]] = None  # per eye model, (28, 3)
    au_presence: Dict[str, float] = field(default_factory=dict)
    au_intensity: Dict[str, float] = field(default_factory=dict)

    @property
    def has_eye_model(self) -> bool:
        return self.eye_landmarks is not None and len(self.eye_landmarks) > 0


@dataclass
class RotationKeyframe:
    """Bone rotation at a frame; quaternion stored as (w, x, y, z)."""
    bone_name: str
    frame_index: int
    rotation: torch.Tensor

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.bone_name,
            "frame": self.frame_index,
            "rotation": self.rotation.cpu().tolist(),
        }


@dataclass
class PositionKeyframe:
    """Bone translation at a frame, in output units."""
    bone_name: str
    frame_index: int
    position: torch.Tensor

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.bone_name,
            "frame": self.frame_index,
            "position": self.position.cpu().tolist(),
        }


@dataclass
class MorphKeyframe:
    """Morph weight at a frame."""
    morph_name: str
    frame_index: int
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.morph_name,
            "frame": self.frame_index,
            "weight": self.weight,
        }


@dataclass
class FrameOutput:
    """All keyframes emitted for one input frame."""
    frame_index: int
    rotations: List[RotationKeyframe] = field(default_factory=list)
    positions: List[PositionKeyframe] = field(default_factory=list)
    morphs: List[MorphKeyframe] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable form used by the keyframe exporter."""
        # Head rotation, center position, then the eye rotations
        bones = self.rotations[:1] + self.positions + self.rotations[1:]
        return {
            "frame": self.frame_index,
            "bones": [kf.to_dict() for kf in bones],
            "morphs": [kf.to_dict() for kf in self.morphs],
        }

    def morph_weights(self) -> Dict[str, float]:
        """Morph keyframes of this frame as {name: weight}."""
        return {kf.morph_name: kf.weight for kf in self.morphs}
