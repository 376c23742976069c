"""
Unit tests for ModelRunner against small exported ONNX models.
"""

import numpy as np
import pytest
from PIL import Image

from src.face_attributes.errors import InferenceError, ModelLoadError
from src.face_attributes.preprocessing import preprocess
from src.face_attributes.runner import ModelRunner


@pytest.fixture
def runner():
    return ModelRunner()


@pytest.fixture
def white_tensor():
    return preprocess(Image.new("RGB", (64, 64), color="white"))


@pytest.fixture
def black_tensor():
    return preprocess(Image.new("RGB", (64, 64), color="black"))


class TestModelLoading:
    """Tests for artifact loading failures."""

    def test_empty_bytes(self, runner, white_tensor):
        with pytest.raises(ModelLoadError) as exc_info:
            runner.run(b"", white_tensor, model_name="gender_model")
        assert exc_info.value.model == "gender_model"
        assert "gender_model" in str(exc_info.value)

    def test_unparsable_bytes(self, runner, white_tensor):
        with pytest.raises(ModelLoadError, match="age3_model"):
            runner.run(b"not a serialized model", white_tensor, model_name="age3_model")

    def test_default_missing_message(self):
        error = ModelLoadError("gender_model")
        assert str(error) == "Could not find gender_model."
        assert error.model == "gender_model"

    def test_session_options(self):
        options = ModelRunner(num_threads=2)._session_options()
        assert options.intra_op_num_threads == 2
        assert options.inter_op_num_threads == 1


class TestModelRun:
    """Tests for running exported models."""

    def test_constant_scores(self, runner, constant_model, white_tensor):
        model = constant_model([0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7])
        scores = runner.run(model, white_tensor, model_name="expression7_model")

        assert scores.dtype == np.float32
        assert scores.shape == (7,)
        assert np.allclose(scores, [0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7])

    def test_input_is_bound(self, runner, brightness_model, white_tensor, black_tensor):
        model = brightness_model()

        assert np.allclose(runner.run(model, white_tensor), [1.0, 0.0], atol=1e-5)
        assert np.allclose(runner.run(model, black_tensor), [0.0, 1.0], atol=1e-5)

    def test_raw_copy_into_declared_shape(self, runner, brightness_model, white_tensor):
        """A model declaring (1, 3, 128, 128) receives the same flat buffer."""
        model = brightness_model(input_shape=(1, 3, 128, 128))
        assert np.allclose(runner.run(model, white_tensor), [1.0, 0.0], atol=1e-5)

    def test_input_size_mismatch(self, runner, constant_model, white_tensor):
        model = constant_model([0.5, 0.5], input_shape=(1, 64, 64, 3))
        with pytest.raises(InferenceError, match="expects 12288 values, got 49152"):
            runner.run(model, white_tensor, model_name="gender_model")

    def test_runs_are_independent(self, runner, constant_model, white_tensor):
        gender = constant_model([0.3, 0.7])
        age = constant_model([0.1, 0.8, 0.1])

        first = runner.run(gender, white_tensor)
        runner.run(age, white_tensor)
        second = runner.run(gender, white_tensor)

        assert np.array_equal(first, second)
        assert runner._sessions == {}


class TestSessionCache:
    """Tests for optional interpreter reuse."""

    def test_reuses_session_per_model(self, constant_model, white_tensor):
        runner = ModelRunner(cache_sessions=True)
        model = constant_model([0.6, 0.4])

        first = runner.run(model, white_tensor, model_name="gender_model")
        session = runner._sessions["gender_model"][0]
        second = runner.run(model, white_tensor, model_name="gender_model")

        assert runner._sessions["gender_model"][0] is session
        assert np.array_equal(first, second)

    def test_separate_sessions_per_model(self, constant_model, white_tensor):
        runner = ModelRunner(cache_sessions=True)
        runner.run(constant_model([0.6, 0.4]), white_tensor, model_name="gender_model")
        runner.run(constant_model([0.1, 0.8, 0.1]), white_tensor, model_name="age3_model")

        assert set(runner._sessions) == {"gender_model", "age3_model"}

        runner.clear()
        assert runner._sessions == {}

    def test_changed_artifact_replaces_session(self, constant_model, white_tensor):
        """New bytes under a cached model name are not served by the old interpreter."""
        runner = ModelRunner(cache_sessions=True)

        first = runner.run(constant_model([0.6, 0.4]), white_tensor, model_name="gender_model")
        old_session = runner._sessions["gender_model"][0]
        second = runner.run(constant_model([0.2, 0.8]), white_tensor, model_name="gender_model")

        assert np.allclose(first, [0.6, 0.4])
        assert np.allclose(second, [0.2, 0.8])
        assert runner._sessions["gender_model"][0] is not old_session
        assert len(runner._sessions) == 1

    def test_unnamed_runs_are_not_cached(self, constant_model, white_tensor):
        runner = ModelRunner(cache_sessions=True)
        runner.run(constant_model([0.6, 0.4]), white_tensor)
        assert runner._sessions == {}
