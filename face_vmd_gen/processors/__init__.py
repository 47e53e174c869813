"""Processing utilities for tracking streams and keyframe output."""

from .data_exporter import KeyframeExporter
from .data_loader import DataLoader, JSONTrackingSource
from .frame_assembler import FrameAssembler
from .morph_refiner import MorphRefiner
from .pipeline import FrameData, KeyframeCollector, Pipeline
from .stream_utils import (
    index_stream,
    is_iterator,
)

__all__ = [
    "DataLoader",
    "FrameAssembler",
    "FrameData",
    "JSONTrackingSource",
    "KeyframeCollector",
    "KeyframeExporter",
    "MorphRefiner",
    "Pipeline",
    "index_stream",
    "is_iterator",
]
