"""Expression conflict refinement over emitted morph keyframes."""

from typing import Dict, Iterable, Iterator, List

from ..core.constants import (
    MORPH_BLINK,
    MORPH_CHEEK_RAISER,
    MORPH_LAUGH_EYES,
    MORPH_PLEASED,
    MORPH_SMILE,
    MORPH_TROUBLED,
    CHEEK_RAISE_THRESHOLD,
    PLEASED_THRESHOLD,
)
from ..core.types import FrameOutput, MorphKeyframe


class MorphRefiner:
    """
    Resolves mutually exclusive expressions the rule table leaves overlapping.

    Per frame:
    - blink vs cheek raise: while the cheek is raised, closed eyes are a laugh,
      so the blink weight moves to the laughing-eyes morph (笑い)
    - troubled brow vs pleased: while smiling, raised inner brows read as
      pleased, so the troubled weight (困る) moves to にこり

    The CheekRaiser pseudo-morph is dropped. Both target morphs are emitted on
    every frame that carries their source morph so their channels return to 0.
    Input keyframes are never modified; refined copies are returned.
    """

    def __init__(self,
                 cheek_raise_threshold: float = CHEEK_RAISE_THRESHOLD,
                 pleased_threshold: float = PLEASED_THRESHOLD):
        """
        Initialize the morph refiner.

        Args:
            cheek_raise_threshold: CheekRaiser weight at which blink becomes laughing eyes
            pleased_threshold: Smile weight at which troubled brows become pleased
        """
        self.cheek_raise_threshold = cheek_raise_threshold
        self.pleased_threshold = pleased_threshold

    def refine(self, morphs: Iterable[MorphKeyframe]) -> List[MorphKeyframe]:
        """
        Refine a whole morph keyframe sequence.

        Args:
            morphs: Morph keyframes, grouped by frame in emission order

        Returns:
            Refined morph keyframes in the same frame order
        """
        refined: List[MorphKeyframe] = []
        for frame_morphs in self._group_by_frame(morphs):
            refined.extend(self._refine_frame_morphs(frame_morphs))
        return refined

    def refine_frame(self, frame_output: FrameOutput) -> FrameOutput:
        """Refined copy of one frame's output; bones are shared, morphs replaced."""
        return FrameOutput(
            frame_index=frame_output.frame_index,
            rotations=list(frame_output.rotations),
            positions=list(frame_output.positions),
            morphs=self._refine_frame_morphs(frame_output.morphs),
        )

    def refine_stream(self, stream: Iterable[FrameOutput]) -> Iterator[FrameOutput]:
        """Apply refine_frame lazily to a FrameOutput stream."""
        for frame_output in stream:
            yield self.refine_frame(frame_output)

    def _refine_frame_morphs(self, morphs: List[MorphKeyframe]) -> List[MorphKeyframe]:
        weights: Dict[str, float] = {kf.morph_name: kf.weight for kf in morphs}
        laughing = weights.get(MORPH_CHEEK_RAISER, 0.0) >= self.cheek_raise_threshold
        pleased = weights.get(MORPH_SMILE, 0.0) >= self.pleased_threshold

        refined: List[MorphKeyframe] = []
        for kf in morphs:
            if kf.morph_name == MORPH_CHEEK_RAISER:
                continue
            if kf.morph_name == MORPH_BLINK:
                refined.append(MorphKeyframe(MORPH_BLINK, kf.frame_index, 0.0 if laughing else kf.weight))
                refined.append(MorphKeyframe(MORPH_LAUGH_EYES, kf.frame_index, kf.weight if laughing else 0.0))
            elif kf.morph_name == MORPH_TROUBLED:
                refined.append(MorphKeyframe(MORPH_TROUBLED, kf.frame_index, 0.0 if pleased else kf.weight))
                refined.append(MorphKeyframe(MORPH_PLEASED, kf.frame_index, kf.weight if pleased else 0.0))
            else:
                refined.append(MorphKeyframe(kf.morph_name, kf.frame_index, kf.weight))
        return refined

    @staticmethod
    def _group_by_frame(morphs: Iterable[MorphKeyframe]) -> Iterator[List[MorphKeyframe]]:
        group: List[MorphKeyframe] = []
        for kf in morphs:
            if group and kf.frame_index != group[0].frame_index:
                yield group
                group = []
            group.append(kf)
        if group:
            yield group
