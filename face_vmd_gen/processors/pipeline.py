"""Processing pipeline components."""

from typing import Dict, List, Optional, Iterable, Iterator, Union
from dataclasses import dataclass, field
import torch

from ..core.base_mapper import BaseExpressionMapper
from ..core.base_tracker import BaseTracker
from ..core.eye_side import EyeSide
from ..core.types import (
    ActionUnitVector,
    ExpressionWeights,
    FrameOutput,
    MorphKeyframe,
    PositionKeyframe,
    RotationKeyframe,
    TrackingFrame,
)
from ..estimators.gaze_estimator import GazeEstimator
from ..extractors.action_unit_extractor import ActionUnitExtractor
from ..mappers.expression_mapper import ExpressionMapper
from ..mappers.rotation_composer import RotationComposer
from .frame_assembler import FrameAssembler
from .stream_utils import index_stream, is_iterator


@dataclass
class FrameData:
    """Intermediate results for a single frame in the pipeline."""
    frame_idx: int
    tracking: TrackingFrame
    action_units: Optional[ActionUnitVector] = None
    weights: Optional[ExpressionWeights] = None
    head_rotation: Optional[torch.Tensor] = None
    center_position: Optional[torch.Tensor] = None
    gaze_rays: Dict[EyeSide, torch.Tensor] = field(default_factory=dict)
    eye_rotations: Optional[Dict[EyeSide, Optional[torch.Tensor]]] = None
    output: Optional[FrameOutput] = None


class Pipeline:
    """
    Per-frame keyframe generation pipeline.

    Each frame runs two independent chains and joins them in the assembler:
    - action unit extraction -> expression mapping
    - gaze estimation -> head/eye rotation composition

    No state is carried between frames; the frame index is supplied by the
    caller (or by the stream position) and frames missing from the source are
    skipped without renumbering the rest.
    """

    def __init__(self,
                 extractor: Optional[ActionUnitExtractor] = None,
                 gaze_estimator: Optional[GazeEstimator] = None,
                 composer: Optional[RotationComposer] = None,
                 mapper: Optional[BaseExpressionMapper] = None,
                 assembler: Optional[FrameAssembler] = None):
        """
        Initialize pipeline with optional components.

        Args:
            extractor: Action unit extractor (default: ActionUnitExtractor())
            gaze_estimator: Gaze estimator; None disables eye keyframes
            composer: Head/eye rotation composer (default: RotationComposer())
            mapper: Expression mapper (default: ExpressionMapper())
            assembler: Frame assembler (default: FrameAssembler())
        """
        self.extractor = extractor or ActionUnitExtractor()
        self.gaze_estimator = gaze_estimator
        self.composer = composer or RotationComposer()
        self.mapper = mapper or ExpressionMapper()
        self.assembler = assembler or FrameAssembler()

    @classmethod
    def from_tracker(cls, tracker: BaseTracker, estimate_gaze: bool = True, **components) -> 'Pipeline':
        """
        Build a pipeline whose gaze estimator is bound to the tracker's eye models.

        Args:
            tracker: Tracking oracle supplying the eye model names
            estimate_gaze: If False, no eye keyframes are produced
            **components: Overrides passed to the constructor

        Returns:
            Pipeline
        """
        if estimate_gaze and 'gaze_estimator' not in components:
            components['gaze_estimator'] = GazeEstimator(tracker.eye_model_names)
        return cls(**components)

    def process(self,
                input_data: Union[TrackingFrame, Iterable[Optional[TrackingFrame]]],
                frame_index: int = 0) -> Union[FrameOutput, Iterator[FrameOutput]]:
        """
        Unified processing interface for single frames and streams.

        Args:
            input_data: One tracking frame, or a list/iterator of frames (None = tracking failed)
            frame_index: Frame number of the single frame, or of the first stream item

        Returns:
            - Single input: FrameOutput
            - Multiple inputs: Iterator of FrameOutput (lazy)
        """
        if isinstance(input_data, TrackingFrame):
            return self._process_single_frame(input_data, frame_index).output

        if not is_iterator(input_data) and not isinstance(input_data, (list, tuple)):
            raise TypeError(f"Unsupported input type: {type(input_data).__name__}")

        return (frame_data.output for frame_data in self.process_stream(input_data, frame_index))

    def process_stream(self,
                       frames: Iterable[Optional[TrackingFrame]],
                       start_index: int = 0) -> Iterator[FrameData]:
        """
        Process a frame stream through all pipeline stages.

        Args:
            frames: Tracking frames; None entries are skipped but still counted
            start_index: Frame number of the first item

        Yields:
            FrameData objects with processed results
        """
        for frame_idx, tracking in index_stream(frames, start_index):
            yield self._process_single_frame(tracking, frame_idx)

    def _process_single_frame(self, tracking: TrackingFrame, frame_idx: int) -> FrameData:
        """
        Process a single frame through all pipeline stages.

        Args:
            tracking: Tracking oracle output
            frame_idx: Frame number

        Returns:
            FrameData with every intermediate result filled in
        """
        result = FrameData(frame_idx=frame_idx, tracking=tracking)

        # Head pose
        result.head_rotation = self.composer.head_rotation(tracking.head_pose)
        result.center_position = self.composer.center_position(tracking.head_pose)

        # Expression
        result.action_units = self.extractor.extract(tracking.au_presence, tracking.au_intensity)
        result.weights = self.mapper.map(result.action_units)

        # Gaze
        if self.gaze_estimator is not None and tracking.has_eye_model:
            result.gaze_rays = self.gaze_estimator.estimate_both(tracking)
            result.eye_rotations = self.composer.eye_rotations(result.gaze_rays, result.head_rotation)

        result.output = self.assembler.assemble(
            frame_idx,
            result.head_rotation,
            result.center_position,
            result.eye_rotations,
            result.weights,
        )
        return result


class KeyframeCollector:
    """
    Streaming-compatible keyframe collector.

    Accumulates the keyframe sequences of a FrameOutput stream while passing
    the stream through, for passes that need the whole sequence.
    """

    def __init__(self):
        """Initialize keyframe collector."""
        self.rotations: List[RotationKeyframe] = []
        self.positions: List[PositionKeyframe] = []
        self.morphs: List[MorphKeyframe] = []
        self.frame_count: int = 0

    def collect(self, stream: Iterable[FrameOutput]) -> Iterator[FrameOutput]:
        """
        Collect keyframes from an output stream with passthrough.

        Args:
            stream: FrameOutput stream

        Yields:
            Same stream (passthrough)
        """
        for frame_output in stream:
            self.rotations.extend(frame_output.rotations)
            self.positions.extend(frame_output.positions)
            self.morphs.extend(frame_output.morphs)
            self.frame_count += 1
            yield frame_output

    def collect_all(self, stream: Iterable[FrameOutput]) -> 'KeyframeCollector':
        """Drain a stream into the collector."""
        for _ in self.collect(stream):
            pass
        return self

    def clear(self):
        """Clear collected keyframes."""
        self.rotations.clear()
        self.positions.clear()
        self.morphs.clear()
        self.frame_count = 0
