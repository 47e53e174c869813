"""Tests for tracking file loading and keyframe export."""

import json

import pytest
import torch

from face_vmd_gen.core.types import FrameOutput, MorphKeyframe, TrackingFrame
from face_vmd_gen.processors import DataLoader, JSONTrackingSource, KeyframeExporter, Pipeline
from face_vmd_gen.processors.streaming_json_reader import StreamingJSONReader

from conftest import EYE_MODELS, frame_to_dict, make_frame


class TestStreamingJSONReader:
    def test_metadata_stops_at_data(self, tracking_file):
        with StreamingJSONReader(tracking_file) as reader:
            metadata = reader.get_metadata()
        assert metadata == {"fps": 30.0, "eye_models": EYE_MODELS, "frame_count": 3.0}

    def test_items(self, tracking_file):
        with StreamingJSONReader(tracking_file) as reader:
            items = list(reader.read_items())
        assert len(items) == 3
        assert items[1] is None
        assert isinstance(items[0]["camera"][0], float)


class TestDataLoader:
    def test_load_metadata(self, tracking_file):
        assert DataLoader.load_metadata(tracking_file) == {
            "fps": 30.0, "frame_count": 3, "eye_models": EYE_MODELS,
        }

    def test_missing_fps(self, tmp_path):
        path = tmp_path / "no_fps.json"
        path.write_text(json.dumps({"data": []}), encoding="utf-8")
        with pytest.raises(ValueError):
            DataLoader.load_metadata(path)

    def test_optional_fields(self, tmp_path):
        path = tmp_path / "minimal.json"
        path.write_text(json.dumps({"fps": 24.0, "data": []}), encoding="utf-8")
        assert DataLoader.load_metadata(path) == {"fps": 24.0, "frame_count": None, "eye_models": []}

    def test_null_eye_models(self, tmp_path):
        path = tmp_path / "no_eye_stage.json"
        path.write_text(json.dumps({"fps": 30.0, "eye_models": None, "data": []}), encoding="utf-8")
        assert DataLoader.load_metadata(path)["eye_models"] == []
        with JSONTrackingSource(path) as tracker:
            assert tracker.eye_model_names == []

    def test_frame_from_dict(self, frame):
        loaded = DataLoader.frame_from_dict(frame_to_dict(frame))
        assert isinstance(loaded, TrackingFrame)
        assert torch.equal(loaded.face_landmarks, frame.face_landmarks)
        assert torch.equal(loaded.head_pose.translation, frame.head_pose.translation)
        assert loaded.camera == frame.camera
        assert len(loaded.eye_landmarks) == 2
        assert loaded.au_intensity == {"AU26_r": 3.0, "AU12_r": 2.0}

    def test_frame_without_eye_stage(self):
        item = frame_to_dict(make_frame(with_eyes=False))
        assert not DataLoader.frame_from_dict(item).has_eye_model

    def test_bad_landmark_shape(self, frame):
        item = frame_to_dict(frame)
        item["face_landmarks"] = item["face_landmarks"][:10]
        with pytest.raises(ValueError):
            DataLoader.frame_from_dict(item)

    def test_bad_head_pose(self, frame):
        item = frame_to_dict(frame)
        item["head_pose"] = [0.0, 0.0, 1000.0]
        with pytest.raises(ValueError):
            DataLoader.frame_from_dict(item)


class TestJSONTrackingSource:
    def test_metadata(self, tracking_file):
        with JSONTrackingSource(tracking_file) as tracker:
            assert tracker.fps == 30.0
            assert tracker.frame_count == 3
            assert tracker.eye_model_names == EYE_MODELS

    def test_read_frames(self, tracking_file):
        with JSONTrackingSource(tracking_file) as tracker:
            frames = list(tracker.read_frames())
        assert [f is None for f in frames] == [False, True, False]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            JSONTrackingSource(tmp_path / "missing.json")


class TestKeyframeExporter:
    def test_export(self, tmp_path):
        path = tmp_path / "out" / "keyframes.json"
        frames = [
            FrameOutput(frame_index=0, morphs=[MorphKeyframe("まばたき", 0, 1.0)]),
            FrameOutput(frame_index=2, morphs=[MorphKeyframe("あ", 2, 0.5)]),
        ]
        assert KeyframeExporter.export(frames, path, fps=30.0) == 2

        text = path.read_text(encoding="utf-8")
        assert "まばたき" in text
        data = json.loads(text)
        assert data["fps"] == 30.0
        assert data["frame_count"] == 2
        assert [item["frame"] for item in data["data"]] == [0, 2]
        assert data["data"][1]["morphs"] == [{"name": "あ", "frame": 2, "weight": 0.5}]

    def test_empty_stream(self, tmp_path):
        path = tmp_path / "empty.json"
        assert KeyframeExporter.export([], path, fps=60.0) == 0
        assert json.loads(path.read_text(encoding="utf-8")) == {"fps": 60.0, "frame_count": 0, "data": []}

    def test_write_outside_context(self, tmp_path):
        exporter = KeyframeExporter(tmp_path / "x.json")
        with pytest.raises(RuntimeError):
            exporter.write_item({})


class TestEndToEnd:
    def test_tracking_file_to_keyframes(self, tracking_file, tmp_path):
        output_path = tmp_path / "keyframes.json"
        with JSONTrackingSource(tracking_file) as tracker:
            pipeline = Pipeline.from_tracker(tracker)
            written = KeyframeExporter.export(pipeline.process(tracker.read_frames()), output_path, tracker.fps)

        assert written == 2
        data = json.loads(output_path.read_text(encoding="utf-8"))
        assert [item["frame"] for item in data["data"]] == [0, 2]
        bones = [bone["name"] for bone in data["data"][0]["bones"]]
        assert bones == ["頭", "センター", "左目", "右目"]
        assert data["data"][0]["bones"][1]["position"] == pytest.approx([0.0, 0.0, 0.0])
