"""
Shared fixtures: in-memory images, fake runners and small exported ONNX models.
"""

import io
import threading

import numpy as np
import pytest
from PIL import Image

from src.face_attributes.config import TASKS


def encode_png(image: Image.Image) -> bytes:
    """Encode a PIL image as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


# Scores returned per model by the default fake runner
DEFAULT_SCORES = {
    "gender_model": [0.3, 0.7],
    "age3_model": [0.1, 0.8, 0.1],
    "expression7_model": [0.05, 0.05, 0.05, 0.6, 0.1, 0.1, 0.05],
}


class FakeRunner:
    """Stands in for ModelRunner, returning fixed scores per model name."""

    def __init__(self, scores=None, errors=None):
        self.scores = dict(DEFAULT_SCORES if scores is None else scores)
        self.errors = dict(errors or {})
        self.calls = []
        self._lock = threading.Lock()

    def run(self, model_bytes, input_tensor, model_name=None):
        with self._lock:
            self.calls.append((model_name, model_bytes, input_tensor.shape))
        if model_name in self.errors:
            raise self.errors[model_name]
        return np.asarray(self.scores[model_name], dtype=np.float32)

    @property
    def models_run(self):
        return [name for name, _, _ in self.calls]


@pytest.fixture
def gray_image():
    return Image.new("RGB", (256, 256), color="gray")


@pytest.fixture
def gray_png(gray_image):
    return encode_png(gray_image)


@pytest.fixture
def model_bytes():
    """Placeholder artifact bytes for each model (only read by FakeRunner)."""
    return {info["model"]: f"{info['model']}-bytes".encode() for info in TASKS.values()}


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def export_onnx():
    """
    Export a torch module to ONNX bytes.

    Skips the test when torch is not installed.
    """
    torch = pytest.importorskip("torch")

    def _export(module, input_shape=(1, 128, 128, 3)):
        module.eval()
        buffer = io.BytesIO()
        torch.onnx.export(
            module,
            torch.zeros(*input_shape),
            buffer,
            export_params=True,
            opset_version=17,
            input_names=["input"],
            output_names=["output"],
            dynamo=False,
        )
        return buffer.getvalue()

    return _export


@pytest.fixture
def constant_model(export_onnx):
    """Build an ONNX model that ignores its input and returns fixed scores."""
    import torch

    class ConstantScores(torch.nn.Module):
        def __init__(self, scores):
            super().__init__()
            self.register_buffer("scores", torch.tensor([scores], dtype=torch.float32))

        def forward(self, x):
            return self.scores + 0.0 * x.sum()

    def _build(scores, input_shape=(1, 128, 128, 3)):
        return export_onnx(ConstantScores(scores), input_shape)

    return _build


@pytest.fixture
def brightness_model(export_onnx):
    """
    Build a 2-class ONNX model scoring [mean, 1 - mean] of its input.

    A white image scores [1, 0] and a black image scores [0, 1].
    """
    import torch

    class Brightness(torch.nn.Module):
        def forward(self, x):
            mean = x.mean().reshape(1, 1)
            return torch.cat([mean, 1.0 - mean], dim=1)

    def _build(input_shape=(1, 128, 128, 3)):
        return export_onnx(Brightness(), input_shape)

    return _build


@pytest.fixture
def make_runner():
    """Factory for FakeRunner with custom scores or per-model errors."""
    return FakeRunner
