"""Action unit extraction from labeled presence/intensity reports."""

import logging
from typing import Dict, Mapping

from ..core.constants import AU_SIZE, ACTION_UNIT_MAXVAL, AU_LABEL_CODE_SLICE
from ..core.exceptions import MalformedLabel
from ..core.types import ActionUnitVector

logger = logging.getLogger(__name__)


def parse_action_unit_code(label: str) -> int:
    """
    Parse the action unit code out of an oracle label.

    Labels carry a fixed-width, two-digit code after a two-character prefix
    ("AU01_c", "AU45_r").

    Args:
        label: Oracle label

    Returns:
        Action unit code in [1, AU_SIZE)

    Raises:
        MalformedLabel: If the label has no two-digit code or the code is out of range
    """
    digits = label[AU_LABEL_CODE_SLICE]
    if len(digits) != 2 or not digits.isdigit():
        raise MalformedLabel(label, "no two-digit code at positions 2-3")

    code = int(digits)
    if not 0 < code < AU_SIZE:
        raise MalformedLabel(label, f"code {code} outside 1..{AU_SIZE - 1}")
    return code


class ActionUnitExtractor:
    """
    Builds a dense, normalized ActionUnitVector from the oracle's two reports.

    An intensity is kept only when the presence report flags its code as
    present; everything else is 0. Malformed labels are skipped.
    """

    def __init__(self, max_intensity: float = ACTION_UNIT_MAXVAL, device: str = 'cpu'):
        """
        Initialize the extractor.

        Args:
            max_intensity: Oracle intensity scale maximum; intensities are divided by it
            device: Device to create tensors on
        """
        if max_intensity <= 0:
            raise ValueError(f"max_intensity must be positive, got {max_intensity}")
        self.max_intensity = max_intensity
        self.device = device

    def extract(self,
                presence: Mapping[str, float],
                intensity: Mapping[str, float]) -> ActionUnitVector:
        """
        Combine presence and intensity reports into a normalized vector.

        Args:
            presence: Classification report, label -> 0 (absent) or nonzero (present)
            intensity: Regression report, label -> intensity on the oracle scale

        Returns:
            ActionUnitVector with vector[code] = intensity / max_intensity for present codes
        """
        valid = self._build_validity(presence)
        vector = ActionUnitVector.create_default(device=self.device)

        for label, value in intensity.items():
            code = self._parse_or_skip(label)
            if code is None:
                continue
            if valid.get(code, False):
                vector.values[code] = float(value) / self.max_intensity

        return vector

    def _build_validity(self, presence: Mapping[str, float]) -> Dict[int, bool]:
        """Map each well-formed code to whether the oracle reports it present."""
        valid: Dict[int, bool] = {}
        for label, value in presence.items():
            code = self._parse_or_skip(label)
            if code is None:
                continue
            valid[code] = value != 0
        return valid

    @staticmethod
    def _parse_or_skip(label: str):
        try:
            return parse_action_unit_code(label)
        except MalformedLabel as e:
            logger.debug("Skipping action unit entry: %s", e)
            return None
