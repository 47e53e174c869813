"""Base class for action unit to blendshape weight mapping."""

from abc import ABC, abstractmethod
from typing import Union
import torch

from .constants import DTYPE
from .types import ActionUnitVector, ExpressionWeights


class BaseExpressionMapper(ABC):
    """
    Abstract base class for mapping action unit vectors to blendshape weights.

    Mappers hold configuration only; every call is a pure function of its input
    so frames may be mapped in any order.
    """

    @abstractmethod
    def map(self, action_units: ActionUnitVector) -> ExpressionWeights:
        """
        Map a normalized action unit vector to blendshape weights.

        Args:
            action_units: Dense AU intensities in [0, 1]

        Returns:
            Expression weights
        """
        pass

    @staticmethod
    def clamp(value: Union[float, torch.Tensor]) -> torch.Tensor:
        """Force a weight into [0, 1]."""
        if not isinstance(value, torch.Tensor):
            value = torch.tensor(float(value), dtype=DTYPE)
        return torch.clamp(value, 0.0, 1.0)
