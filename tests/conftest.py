"""Shared fixtures: a synthetic, geometrically consistent tracking frame."""

import json
from typing import Dict, List, Optional

import pytest
import torch

from face_vmd_gen.core.constants import DTYPE, EYE_LANDMARK_COUNT, FACE_LANDMARK_COUNT
from face_vmd_gen.core.types import CameraIntrinsics, HeadPose, TrackingFrame

EYE_MODELS = ["left_eye_28", "right_eye_28"]

# Eyelid corners (face landmark index -> camera-space point, mm)
CORNERS = {
    36: (-40.0, 0.0, 500.0),
    39: (-10.0, 0.0, 500.0),
    42: (10.0, 0.0, 500.0),
    45: (40.0, 0.0, 500.0),
}


def make_face_landmarks(corners: Optional[Dict[int, tuple]] = None) -> torch.Tensor:
    points = torch.zeros(FACE_LANDMARK_COUNT, 3, dtype=DTYPE)
    points[:, 2] = 500.0
    for index, point in (corners or CORNERS).items():
        points[index] = torch.tensor(point, dtype=DTYPE)
    return points


def make_eye_landmarks(pupil: tuple) -> torch.Tensor:
    return torch.tensor(pupil, dtype=DTYPE).repeat(EYE_LANDMARK_COUNT, 1)


def make_frame(rotation=(0.0, 0.0, 0.0),
               translation=(0.0, 0.0, 1000.0),
               eye_landmarks: Optional[List[torch.Tensor]] = None,
               with_eyes: bool = True,
               au_presence=None,
               au_intensity=None) -> TrackingFrame:
    if eye_landmarks is None and with_eyes:
        eye_landmarks = [
            make_eye_landmarks((-25.0, 0.0, 500.0)),
            make_eye_landmarks((25.0, 0.0, 500.0)),
        ]
    return TrackingFrame(
        head_pose=HeadPose.from_sequence(list(translation) + list(rotation)),
        camera=CameraIntrinsics(fx=500.0, fy=500.0, cx=320.0, cy=240.0),
        face_landmarks=make_face_landmarks(),
        eye_landmarks=eye_landmarks,
        au_presence=au_presence or {},
        au_intensity=au_intensity or {},
    )


def frame_to_dict(frame: TrackingFrame) -> dict:
    return {
        "head_pose": frame.head_pose.translation.tolist() + frame.head_pose.rotation.tolist(),
        "camera": [frame.camera.fx, frame.camera.fy, frame.camera.cx, frame.camera.cy],
        "face_landmarks": frame.face_landmarks.tolist(),
        "eye_landmarks": [points.tolist() for points in frame.eye_landmarks] if frame.eye_landmarks else None,
        "au_presence": frame.au_presence,
        "au_intensity": frame.au_intensity,
    }


@pytest.fixture
def frame() -> TrackingFrame:
    return make_frame(
        au_presence={"AU26_c": 1.0, "AU12_c": 1.0},
        au_intensity={"AU26_r": 3.0, "AU12_r": 2.0},
    )


@pytest.fixture
def tracking_file(tmp_path, frame):
    """Recorded tracking file with a failed frame in the middle."""
    path = tmp_path / "tracking.json"
    payload = {
        "fps": 30,
        "eye_models": EYE_MODELS,
        "frame_count": 3,
        "data": [frame_to_dict(frame), None, frame_to_dict(frame)],
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
