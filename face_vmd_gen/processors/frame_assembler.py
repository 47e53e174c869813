"""Packs per-frame mapping results into keyframe records."""

import math
from typing import Dict, Optional, Union, Mapping
import torch

from ..core.constants import BONE_HEAD, BONE_CENTER, BONE_LEFT_EYE, BONE_RIGHT_EYE
from ..core.eye_side import EyeSide
from ..core.types import (
    ExpressionWeights,
    FrameOutput,
    MorphKeyframe,
    PositionKeyframe,
    RotationKeyframe,
)

# The avatar's eye bones mirror the tracked eyes
EYE_BONES = {
    EyeSide.RIGHT: BONE_LEFT_EYE,
    EyeSide.LEFT: BONE_RIGHT_EYE,
}


class FrameAssembler:
    """
    Emits the rotation, position and morph keyframes for one frame.

    Order within a frame: head rotation, center position, eye rotations
    (左目 then 右目), then morphs in rule-table order. Morph weights are
    clamped to [0, 1] on emission. An eye whose rotation is None is omitted.
    """

    def assemble(self,
                 frame_index: int,
                 head_rotation: torch.Tensor,
                 center_position: torch.Tensor,
                 eye_rotations: Optional[Mapping[EyeSide, Optional[torch.Tensor]]],
                 weights: Union[ExpressionWeights, Dict[str, float]]) -> FrameOutput:
        """
        Build the FrameOutput for one frame.

        Args:
            frame_index: Caller-supplied, monotonically increasing frame number
            head_rotation: (4,) head quaternion
            center_position: (3,) center offset
            eye_rotations: Per tracked eye quaternion or None; None for no eye stage at all
            weights: Expression weights or {morph name: weight}

        Returns:
            FrameOutput
        """
        if frame_index < 0:
            raise ValueError(f"frame_index must be non-negative, got {frame_index}")

        output = FrameOutput(frame_index=frame_index)
        output.rotations.append(RotationKeyframe(BONE_HEAD, frame_index, head_rotation))
        output.positions.append(PositionKeyframe(BONE_CENTER, frame_index, center_position))

        if eye_rotations:
            for side in (EyeSide.RIGHT, EyeSide.LEFT):
                rotation = eye_rotations.get(side)
                if rotation is not None:
                    output.rotations.append(RotationKeyframe(EYE_BONES[side], frame_index, rotation))

        morphs = weights.to_dict() if isinstance(weights, ExpressionWeights) else weights
        for name, weight in morphs.items():
            output.morphs.append(MorphKeyframe(name, frame_index, self.clamp_weight(weight)))

        return output

    @staticmethod
    def clamp_weight(weight: float) -> float:
        """Force a morph weight into [0, 1]; NaN becomes 0."""
        weight = float(weight)
        if math.isnan(weight):
            return 0.0
        return min(1.0, max(0.0, weight))
