"""Mapper implementations for tracking signals to MMD keyframe values."""

from .expression_mapper import ExpressionMapper
from .rotation_composer import RotationComposer

__all__ = [
    "ExpressionMapper",
    "RotationComposer",
]
