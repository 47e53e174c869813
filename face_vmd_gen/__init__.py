"""
Face VMD Generation Package

A Python package for converting facial tracking results (head pose, eye
landmarks, action units) into MMD bone and morph keyframes.
"""

__version__ = "1.0.0"

from .core.eye_side import EyeSide
from .core.types import ActionUnitVector, ExpressionWeights, FrameOutput, HeadPose, TrackingFrame
from .estimators.gaze_estimator import GazeEstimator
from .extractors.action_unit_extractor import ActionUnitExtractor
from .mappers.expression_mapper import ExpressionMapper
from .mappers.rotation_composer import RotationComposer
from .processors.data_exporter import KeyframeExporter
from .processors.data_loader import DataLoader, JSONTrackingSource
from .processors.frame_assembler import FrameAssembler
from .processors.morph_refiner import MorphRefiner
from .processors.pipeline import KeyframeCollector, Pipeline

__all__ = [
    "ActionUnitExtractor",
    "ActionUnitVector",
    "DataLoader",
    "ExpressionMapper",
    "ExpressionWeights",
    "EyeSide",
    "FrameAssembler",
    "FrameOutput",
    "GazeEstimator",
    "HeadPose",
    "JSONTrackingSource",
    "KeyframeCollector",
    "KeyframeExporter",
    "MorphRefiner",
    "Pipeline",
    "RotationComposer",
    "TrackingFrame",
]
