"""Estimator implementations for geometric quantities."""

from .gaze_estimator import GazeEstimator, resolve_eye_models

__all__ = [
    "GazeEstimator",
    "resolve_eye_models",
]
