"""Recoverable error conditions raised by the mapping layer."""


class FaceVMDError(Exception):
    """Base class for keyframe generation errors."""


class DegenerateInput(FaceVMDError):
    """Geometry cannot be resolved (zero-length vector, zero depth, coincident points)."""


class GazeModelUnavailable(DegenerateInput):
    """The tracking model exposes no landmark subset for the requested eye."""


class MalformedLabel(FaceVMDError):
    """An action unit label does not encode a usable numeric code."""

    def __init__(self, label: str, reason: str):
        super().__init__(f"Malformed action unit label {label!r}: {reason}")
        self.label = label
        self.reason = reason
