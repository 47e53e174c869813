"""Head and eye rotation composition in the MMD bone convention."""

import logging
from typing import Dict, Optional
import torch

from ..core.constants import (
    DTYPE,
    EPSILON,
    DEPTH_ORIGIN,
    MMD_UNITS_PER_METER,
    CENTER_SCALE_DIVISOR,
    GAZE_DAMPING,
    FORWARD_VECTOR,
)
from ..core.exceptions import DegenerateInput
from ..core.eye_side import EyeSide
from ..core.quaternion import (
    UNIT_X,
    UNIT_Y,
    UNIT_Z,
    axis_angle_quaternion,
    identity_quaternion,
    quaternion_from_two_vectors,
    quaternion_multiply,
    quaternion_rotate,
    quaternion_slerp,
)
from ..core.types import HeadPose

logger = logging.getLogger(__name__)


class RotationComposer:
    """
    Converts camera-space head pose and gaze rays to MMD bone transforms.

    Axis convention (camera -> avatar): the camera looks down +z with y
    pointing down; the avatar faces -z with y up. Head rotation negates
    pitch (about X) and roll (about Z) and keeps yaw (about Y). Gaze rays
    have their y component negated. Translation negates y.
    """

    def __init__(self,
                 gaze_damping: float = GAZE_DAMPING,
                 depth_origin: float = DEPTH_ORIGIN,
                 units_per_meter: float = MMD_UNITS_PER_METER,
                 scale_divisor: float = CENTER_SCALE_DIVISOR,
                 device: str = 'cpu'):
        """
        Initialize the rotation composer.

        Args:
            gaze_damping: Fraction of the full gaze deflection applied to the eye bones (0-1)
            depth_origin: Camera distance (tracking units) mapped to a zero center offset
            units_per_meter: Output units per metre
            scale_divisor: Extra attenuation of the center movement
            device: Device to create tensors on
        """
        if not 0.0 <= gaze_damping <= 1.0:
            raise ValueError(f"gaze_damping must be in [0, 1], got {gaze_damping}")
        if scale_divisor == 0:
            raise ValueError("scale_divisor must be nonzero")
        self.gaze_damping = gaze_damping
        self.depth_origin = depth_origin
        self.position_scale = units_per_meter / 1000.0 / scale_divisor
        self.device = device
        self.forward = torch.tensor(FORWARD_VECTOR, dtype=DTYPE, device=device)

    def head_rotation(self, head_pose: HeadPose) -> torch.Tensor:
        """
        Head bone rotation: X, then Y, then Z composition with X and Z negated.

        Args:
            head_pose: Camera-space head pose

        Returns:
            (4,) unit quaternion (w, x, y, z)
        """
        rotation = head_pose.rotation.to(dtype=DTYPE, device=self.device)
        rot_x = axis_angle_quaternion(-rotation[0], UNIT_X, device=self.device)
        rot_y = axis_angle_quaternion(rotation[1], UNIT_Y, device=self.device)
        rot_z = axis_angle_quaternion(-rotation[2], UNIT_Z, device=self.device)
        return quaternion_multiply(quaternion_multiply(rot_x, rot_y), rot_z)

    def center_position(self, head_pose: HeadPose) -> torch.Tensor:
        """
        Center bone offset from head translation.

        Args:
            head_pose: Camera-space head pose (millimetres)

        Returns:
            (3,) offset in output units
        """
        t = head_pose.translation.to(dtype=DTYPE, device=self.device)
        position = torch.stack([t[0], -t[1], t[2] - self.depth_origin])
        return position * self.position_scale

    def head_forward(self, head_rotation: torch.Tensor) -> torch.Tensor:
        """Canonical forward vector rotated by the head."""
        return quaternion_rotate(head_rotation, self.forward)

    def eye_rotation(self, gaze: torch.Tensor, head_rotation: torch.Tensor) -> Optional[torch.Tensor]:
        """
        Damped eye bone rotation turning the head's forward direction toward the gaze.

        Args:
            gaze: (3,) camera-space unit gaze ray; zeros mean no gaze
            head_rotation: (4,) head bone quaternion

        Returns:
            (4,) unit quaternion, or None when no gaze is available
        """
        gaze = gaze.to(dtype=DTYPE, device=self.device)
        if torch.linalg.norm(gaze) < EPSILON:
            return None

        direction = torch.stack([gaze[0], -gaze[1], gaze[2]])
        try:
            full = quaternion_from_two_vectors(self.head_forward(head_rotation), direction)
        except DegenerateInput as e:
            logger.debug("Skipping eye rotation: %s", e)
            return None

        damped = quaternion_slerp(identity_quaternion(device=self.device), full, self.gaze_damping)
        return damped / torch.linalg.norm(damped)

    def eye_rotations(self,
                      gaze_rays: Dict[EyeSide, torch.Tensor],
                      head_rotation: torch.Tensor) -> Dict[EyeSide, Optional[torch.Tensor]]:
        """
        Eye rotations for every tracked eye, each damped independently.

        Returns:
            {EyeSide: quaternion or None}, keyed by the tracked eye
        """
        return {side: self.eye_rotation(ray, head_rotation) for side, ray in gaze_rays.items()}
