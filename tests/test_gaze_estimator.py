"""Tests for gaze estimation."""

import logging

import pytest
import torch

from face_vmd_gen.core.constants import DTYPE
from face_vmd_gen.core.eye_side import EyeSide
from face_vmd_gen.core.exceptions import DegenerateInput, GazeModelUnavailable
from face_vmd_gen.core.types import CameraIntrinsics
from face_vmd_gen.estimators import GazeEstimator, resolve_eye_models

from conftest import EYE_MODELS, make_eye_landmarks, make_frame

CAMERA = CameraIntrinsics(fx=500.0, fy=500.0, cx=320.0, cy=240.0)


def vec(*values):
    return torch.tensor(values, dtype=DTYPE)


class TestResolveEyeModels:
    def test_both_sides(self):
        assert resolve_eye_models(EYE_MODELS) == {EyeSide.LEFT: 0, EyeSide.RIGHT: 1}

    def test_order_follows_model_list(self):
        names = ["mouth_20", "right_eye_28", "left_eye_28"]
        assert resolve_eye_models(names) == {EyeSide.RIGHT: 1, EyeSide.LEFT: 2}

    def test_missing_side(self):
        assert resolve_eye_models(["left_eye_28"]) == {EyeSide.LEFT: 0}


class TestGazeEstimator:
    def test_straight_gaze(self):
        estimator = GazeEstimator(EYE_MODELS)
        gaze = estimator.estimate(make_frame(), EyeSide.LEFT)
        expected = vec(0.0, 3.5, -7.0)
        torch.testing.assert_close(gaze, expected / torch.linalg.norm(expected))

    @pytest.mark.parametrize("rotation", [(0.0, 0.0, 0.0), (0.1, -0.3, 0.2), (-0.5, 0.4, 0.0)])
    def test_unit_length(self, rotation):
        estimator = GazeEstimator(EYE_MODELS)
        frame = make_frame(rotation=rotation, eye_landmarks=[
            make_eye_landmarks((-22.0, 3.0, 498.0)),
            make_eye_landmarks((28.0, -2.0, 503.0)),
        ])
        for side in EyeSide:
            gaze = estimator.estimate(frame, side)
            assert torch.linalg.norm(gaze).item() == pytest.approx(1.0)

    def test_pupil_offset_turns_gaze(self):
        estimator = GazeEstimator(EYE_MODELS)
        frame = make_frame(eye_landmarks=[
            make_eye_landmarks((-20.0, 0.0, 500.0)),
            make_eye_landmarks((25.0, 0.0, 500.0)),
        ])
        assert estimator.estimate(frame, EyeSide.LEFT)[0].item() > 0
        assert estimator.estimate(frame, EyeSide.RIGHT)[0].item() == pytest.approx(0.0)

    def test_missing_model_gives_zero(self, caplog):
        estimator = GazeEstimator(["left_eye_28"])
        frame = make_frame()
        with caplog.at_level(logging.WARNING):
            gaze = estimator.estimate(frame, EyeSide.RIGHT)
        assert torch.equal(gaze, torch.zeros(3, dtype=DTYPE))
        assert "right" in caplog.text

    def test_missing_model_raises_from_estimate_gaze(self):
        estimator = GazeEstimator([])
        frame = make_frame()
        with pytest.raises(GazeModelUnavailable):
            estimator.estimate_gaze(frame.head_pose, frame.camera, frame.face_landmarks,
                                    frame.eye_landmarks, EyeSide.LEFT)

    def test_frame_without_eye_landmarks(self):
        estimator = GazeEstimator(EYE_MODELS)
        gaze = estimator.estimate(make_frame(with_eyes=False), EyeSide.LEFT)
        assert torch.equal(gaze, torch.zeros(3, dtype=DTYPE))

    def test_estimate_both_warns_once(self, caplog):
        estimator = GazeEstimator([])
        with caplog.at_level(logging.WARNING, logger="face_vmd_gen.estimators.gaze_estimator"):
            caplog.clear()
            rays = estimator.estimate_both(make_frame())
        assert set(rays) == {EyeSide.LEFT, EyeSide.RIGHT}
        assert all(torch.equal(ray, torch.zeros(3, dtype=DTYPE)) for ray in rays.values())
        messages = [r.getMessage() for r in caplog.records]
        assert messages == ["Couldn't find the eye model for: left, right"]

    def test_coincident_corners_give_zero(self):
        estimator = GazeEstimator(EYE_MODELS)
        frame = make_frame()
        frame.face_landmarks[39] = frame.face_landmarks[36]
        gaze = estimator.estimate(frame, EyeSide.LEFT)
        assert torch.equal(gaze, torch.zeros(3, dtype=DTYPE))
        assert not torch.isnan(gaze).any()

    def test_zero_depth_gives_zero(self):
        estimator = GazeEstimator(EYE_MODELS)
        frame = make_frame(eye_landmarks=[
            make_eye_landmarks((-25.0, 0.0, 0.0)),
            make_eye_landmarks((25.0, 0.0, 500.0)),
        ])
        gaze = estimator.estimate(frame, EyeSide.LEFT)
        assert torch.equal(gaze, torch.zeros(3, dtype=DTYPE))


class TestPupilPosition:
    def test_iris_centroid(self):
        points = torch.zeros(28, 3, dtype=DTYPE)
        points[:8, 0] = torch.arange(8, dtype=DTYPE)
        points[8:, 0] = 100.0
        torch.testing.assert_close(GazeEstimator.pupil_position(points), vec(3.5, 0.0, 0.0))

    @pytest.mark.parametrize("shape", [(28, 2), (28,), (2, 28, 3)])
    def test_points_must_be_3d(self, shape):
        with pytest.raises(DegenerateInput):
            GazeEstimator.pupil_position(torch.zeros(shape, dtype=DTYPE))

    def test_too_few_points(self):
        with pytest.raises(DegenerateInput):
            GazeEstimator.pupil_position(torch.zeros(5, 3, dtype=DTYPE))


class TestCorrectPupilDepth:
    eyelid_l = vec(-40.0, 0.0, 510.0)
    eyelid_r = vec(-10.0, 0.0, 500.0)
    depth = torch.tensor(505.0, dtype=DTYPE)

    def test_midpoint(self):
        pupil = vec(-25.0, 0.0, 500.0)
        eyelid_l = vec(-40.0, 0.0, 500.0)
        corrected, t = GazeEstimator.correct_pupil_depth(pupil, eyelid_l, self.eyelid_r, self.depth, CAMERA)
        assert t.item() == pytest.approx(0.5)
        torch.testing.assert_close(corrected, pupil)

    def test_beyond_left_corner_clamps_to_one(self):
        pupil = vec(-100.0, 0.0, 500.0)
        corrected, t = GazeEstimator.correct_pupil_depth(pupil, self.eyelid_l, self.eyelid_r, self.depth, CAMERA)
        assert t.item() == 1.0
        assert corrected[2].item() == pytest.approx(510.0)

    def test_beyond_right_corner_clamps_to_zero(self):
        pupil = vec(50.0, 0.0, 500.0)
        corrected, t = GazeEstimator.correct_pupil_depth(pupil, self.eyelid_l, self.eyelid_r, self.depth, CAMERA)
        assert t.item() == 0.0
        assert corrected[2].item() == pytest.approx(500.0)

    def test_pupil_stays_on_camera_ray(self):
        pupil = vec(-30.0, 4.0, 490.0)
        corrected, _ = GazeEstimator.correct_pupil_depth(pupil, self.eyelid_l, self.eyelid_r, self.depth, CAMERA)
        torch.testing.assert_close(corrected / corrected[2], pupil / pupil[2])

    def test_zero_focal_length(self):
        camera = CameraIntrinsics(fx=0.0, fy=500.0, cx=320.0, cy=240.0)
        with pytest.raises(DegenerateInput):
            GazeEstimator.correct_pupil_depth(vec(-25.0, 0.0, 500.0), self.eyelid_l, self.eyelid_r,
                                              self.depth, camera)
