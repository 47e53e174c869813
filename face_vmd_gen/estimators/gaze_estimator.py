"""Gaze estimation by reprojecting tracked eye landmarks against the eyeball centre."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple
import torch

from ..core.constants import (
    DTYPE,
    EPSILON,
    EYEBALL_OFFSET,
    EYE_MODEL_NAMES,
    IRIS_LANDMARK_COUNT,
    LANDMARK_POINTS,
)
from ..core.exceptions import DegenerateInput, GazeModelUnavailable
from ..core.eye_side import EyeSide
from ..core.quaternion import euler_to_rotation_matrix
from ..core.types import CameraIntrinsics, HeadPose, TrackingFrame

logger = logging.getLogger(__name__)


def resolve_eye_models(model_names: Sequence[str]) -> Dict[EyeSide, int]:
    """
    Resolve each eye side to its index in the tracking model's eye model list.

    Sides whose model is missing are left out of the result.

    Args:
        model_names: Eye model names exposed by the tracker, in landmark order

    Returns:
        {EyeSide: index into TrackingFrame.eye_landmarks}
    """
    indices: Dict[EyeSide, int] = {}
    for side in EyeSide:
        wanted = EYE_MODEL_NAMES[side.value]
        for i, name in enumerate(model_names):
            if name == wanted:
                indices[side] = i
    return indices


class GazeEstimator:
    """
    Estimates a unit gaze ray per eye in camera space.

    The eyeball centre is placed at a fixed anatomical offset behind the
    eye-socket centre (midpoint of the eyelid corners). The pupil is the iris
    centroid, with its noisy depth replaced by a value interpolated between
    the eyelid corners. The gaze is the direction from eyeball centre to pupil.

    Eye sub-models are looked up once, at construction, from the names the
    tracking model exposes.
    """

    def __init__(self,
                 eye_model_names: Sequence[str],
                 eyeball_offset: Tuple[float, float, float] = EYEBALL_OFFSET,
                 device: str = 'cpu'):
        """
        Initialize the gaze estimator.

        Args:
            eye_model_names: Eye sub-model names from the tracker (BaseTracker.eye_model_names)
            eyeball_offset: Eyeball centre relative to socket centre, head-local frame
            device: Device to create tensors on
        """
        self.device = device
        self.eyeball_offset = torch.tensor(eyeball_offset, dtype=DTYPE, device=device)
        self.eye_model_indices = resolve_eye_models(eye_model_names)

        missing = [side.value for side in EyeSide if side not in self.eye_model_indices]
        if missing:
            logger.warning("Tracking model exposes no eye model for: %s", ", ".join(missing))

    def estimate(self, frame: TrackingFrame, side: EyeSide) -> torch.Tensor:
        """
        Estimate the gaze ray for one eye, degrading to a zero vector on failure.

        Args:
            frame: Tracking oracle output for one frame
            side: Which eye

        Returns:
            (3,) unit gaze ray, or zeros if no gaze is available
        """
        try:
            return self.estimate_gaze(frame.head_pose, frame.camera, frame.face_landmarks,
                                      frame.eye_landmarks, side)
        except GazeModelUnavailable as e:
            logger.warning("No gaze for %s eye: %s", side.value, e)
        except DegenerateInput as e:
            logger.debug("Degenerate gaze geometry for %s eye: %s", side.value, e)
        return self._zero()

    def estimate_both(self, frame: TrackingFrame) -> Dict[EyeSide, torch.Tensor]:
        """
        Estimate both eyes, logging a missing eye model at most once for the frame.

        Returns:
            {EyeSide: (3,) unit gaze ray or zeros}
        """
        rays: Dict[EyeSide, torch.Tensor] = {}
        unavailable: List[str] = []

        for side in EyeSide:
            try:
                rays[side] = self.estimate_gaze(frame.head_pose, frame.camera, frame.face_landmarks,
                                                frame.eye_landmarks, side)
            except GazeModelUnavailable:
                unavailable.append(side.value)
                rays[side] = self._zero()
            except DegenerateInput as e:
                logger.debug("Degenerate gaze geometry for %s eye: %s", side.value, e)
                rays[side] = self._zero()

        if unavailable:
            logger.warning("Couldn't find the eye model for: %s", ", ".join(unavailable))
        return rays

    def estimate_gaze(self,
                      head_pose: HeadPose,
                      camera: CameraIntrinsics,
                      face_landmarks: torch.Tensor,
                      eye_landmarks: Optional[List[torch.Tensor]],
                      side: EyeSide) -> torch.Tensor:
        """
        Estimate the gaze ray for one eye.

        Args:
            head_pose: Head pose; only its rotation is used
            camera: Camera intrinsics used for reprojection
            face_landmarks: (68, 3) camera-space face landmarks
            eye_landmarks: Per eye model (N, 3) camera-space landmarks
            side: Which eye

        Returns:
            (3,) unit gaze ray in camera space

        Raises:
            GazeModelUnavailable: If no landmark subset exists for ``side``
            DegenerateInput: If the geometry cannot be resolved
        """
        eye_points = self._select_eye_landmarks(eye_landmarks, side)
        face_points = face_landmarks.to(dtype=DTYPE)

        rotation_matrix = euler_to_rotation_matrix(head_pose.rotation.to(dtype=DTYPE))
        pupil = self.pupil_position(eye_points)

        corner_indices = LANDMARK_POINTS[f"{side.value}_eye_corners"]
        eyelid_l = face_points[corner_indices[0]]
        eyelid_r = face_points[corner_indices[1]]
        eye_centre = (eyelid_l + eyelid_r) / 2.0
        eyeball_centre = eye_centre + rotation_matrix @ self.eyeball_offset

        pupil, _ = self.correct_pupil_depth(pupil, eyelid_l, eyelid_r, eye_centre[2], camera)

        gaze = pupil - eyeball_centre
        norm = torch.linalg.norm(gaze)
        if norm < EPSILON:
            raise DegenerateInput("Pupil coincides with the eyeball centre")
        return gaze / norm

    @staticmethod
    def pupil_position(eye_points: torch.Tensor) -> torch.Tensor:
        """Pupil centre as the centroid of the iris boundary landmarks."""
        if eye_points.ndim != 2 or eye_points.shape[-1] != 3:
            raise DegenerateInput(f"Eye landmarks must be (N, 3) points, got {tuple(eye_points.shape)}")
        if eye_points.shape[0] < IRIS_LANDMARK_COUNT:
            raise DegenerateInput(
                f"Eye model has {eye_points.shape[0]} points, need at least {IRIS_LANDMARK_COUNT}"
            )
        return eye_points[:IRIS_LANDMARK_COUNT].mean(dim=0)

    @staticmethod
    def correct_pupil_depth(pupil: torch.Tensor,
                            eyelid_l: torch.Tensor,
                            eyelid_r: torch.Tensor,
                            depth: torch.Tensor,
                            camera: CameraIntrinsics) -> Tuple[torch.Tensor, torch.Tensor]:
        """
        Replace the pupil's depth with one interpolated between the eyelid corners.

        The pupil and both corners are reprojected onto the plane z = ``depth``;
        the pupil's x position between the corners gives the interpolation
        parameter t, clamped to [0, 1]. The pupil is then slid along its camera
        ray to the interpolated depth.

        Args:
            pupil: (3,) raw pupil estimate
            eyelid_l: (3,) image-left eyelid corner
            eyelid_r: (3,) image-right eyelid corner
            depth: Depth of the common reprojection plane
            camera: Camera intrinsics

        Returns:
            Tuple of (corrected pupil (3,), clamped t)

        Raises:
            DegenerateInput: On zero depths, zero focal length, or coincident corners
        """
        points = torch.stack([pupil, eyelid_l, eyelid_r])
        if torch.any(torch.abs(points[:, 2]) < EPSILON) or torch.abs(depth) < EPSILON:
            raise DegenerateInput("Landmark at zero depth")
        if abs(camera.fx) < EPSILON or abs(camera.fy) < EPSILON:
            raise DegenerateInput("Camera focal length is zero")

        reprojected = camera.unproject(camera.project(points), depth)
        p2d, l2d, r2d = reprojected.unbind(0)

        span = l2d[0] - r2d[0]
        if torch.abs(span) < EPSILON:
            raise DegenerateInput("Eyelid corners reproject to the same x position")

        t = torch.clamp((p2d[0] - r2d[0]) / span, 0.0, 1.0)
        new_z = eyelid_r[2] + (eyelid_l[2] - eyelid_r[2]) * t

        corrected = torch.stack([
            pupil[0] * new_z / pupil[2],
            pupil[1] * new_z / pupil[2],
            new_z,
        ])
        return corrected, t

    def _select_eye_landmarks(self,
                              eye_landmarks: Optional[List[torch.Tensor]],
                              side: EyeSide) -> torch.Tensor:
        index = self.eye_model_indices.get(side)
        if index is None:
            raise GazeModelUnavailable(f"tracking model has no {EYE_MODEL_NAMES[side.value]}")
        if eye_landmarks is None or index >= len(eye_landmarks) or eye_landmarks[index] is None:
            raise GazeModelUnavailable(f"frame carries no landmarks for {EYE_MODEL_NAMES[side.value]}")
        return eye_landmarks[index].to(dtype=DTYPE)

    def _zero(self) -> torch.Tensor:
        return torch.zeros(3, dtype=DTYPE, device=self.device)
