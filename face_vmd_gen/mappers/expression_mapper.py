"""Action unit to MMD morph weight mapper."""

import torch

from ..core.base_mapper import BaseExpressionMapper
from ..core.constants import (
    AU_INNER_BROW_RAISER,
    AU_OUTER_BROW_RAISER,
    AU_BROW_LOWERER,
    AU_UPPER_LID_RAISER,
    AU_CHEEK_RAISER,
    AU_LID_TIGHTENER,
    AU_NOSE_WRINKLER,
    AU_LIP_CORNER_PULLER,
    AU_LIP_CORNER_DEPRESSOR,
    AU_LIP_TIGHTENER,
    AU_LIPS_PART,
    AU_JAW_DROP,
    AU_BLINK,
    MOUTH_GAIN,
    MOUTH_EXCLUSION_THRESHOLD,
    BLINK_THRESHOLD,
)
from ..core.types import ActionUnitVector, ExpressionWeights


class ExpressionMapper(BaseExpressionMapper):
    """
    Fixed rule table from action units to MMD morph weights.

    Mouth shapes:
    - "a" from jaw drop (AU26), "u" from lip tightener (AU23), both doubled and clamped
    - "i" from lips part (AU25), doubled and clamped, only while "a" and "u" are
      both below the exclusion threshold

    Eyes: blink follows lid tightener (AU07) and snaps to 1.0 when the blink
    unit (AU45) exceeds its threshold.

    Everything else passes through 1:1. Conflicting pairs (blink vs cheek
    raise, troubled brow vs pleased) are left for the morph refinement pass.
    """

    def __init__(self,
                 mouth_gain: float = MOUTH_GAIN,
                 mouth_exclusion_threshold: float = MOUTH_EXCLUSION_THRESHOLD,
                 blink_threshold: float = BLINK_THRESHOLD):
        """
        Initialize the expression mapper.

        Args:
            mouth_gain: Multiplier applied to the mouth action units
            mouth_exclusion_threshold: "i" is suppressed unless "a" and "u" are both below this
            blink_threshold: AU45 level above which blink is forced to 1.0
        """
        self.mouth_gain = mouth_gain
        self.mouth_exclusion_threshold = mouth_exclusion_threshold
        self.blink_threshold = blink_threshold

    def map(self, action_units: ActionUnitVector) -> ExpressionWeights:
        au = action_units.values

        # Mouth
        mouth_a = self.clamp(au[AU_JAW_DROP] * self.mouth_gain)
        mouth_u = self.clamp(au[AU_LIP_TIGHTENER] * self.mouth_gain)
        if mouth_a < self.mouth_exclusion_threshold and mouth_u < self.mouth_exclusion_threshold:
            mouth_i = self.clamp(au[AU_LIPS_PART] * self.mouth_gain)
        else:
            mouth_i = torch.zeros_like(mouth_a)

        # Eyes
        blink = au[AU_LID_TIGHTENER].clone()
        if au[AU_BLINK] > self.blink_threshold:
            blink = torch.ones_like(blink)

        return ExpressionWeights(
            mouth_a=mouth_a,
            mouth_i=mouth_i,
            mouth_u=mouth_u,
            smile=au[AU_LIP_CORNER_PULLER].clone(),
            frown_corner=au[AU_LIP_CORNER_DEPRESSOR].clone(),
            blink=blink,
            cheek_raise=au[AU_CHEEK_RAISER].clone(),
            surprise=au[AU_UPPER_LID_RAISER].clone(),
            brow_inner_raise=au[AU_INNER_BROW_RAISER].clone(),
            brow_outer_raise=au[AU_OUTER_BROW_RAISER].clone(),
            anger=au[AU_NOSE_WRINKLER].clone(),
            brow_down=au[AU_BROW_LOWERER].clone(),
            brow_up=au[AU_UPPER_LID_RAISER].clone(),
        )
