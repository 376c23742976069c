"""
Face Attributes - gender, age group and facial expression classification

Runs three independent on-device classifiers over one preprocessed image
and reports the combined result.
"""

__version__ = "1.0.0"

from .artifacts import ArtifactProvider, DirectoryArtifactProvider, InMemoryArtifactProvider
from .config import AGE_GROUPS, EXPRESSION_LABELS, GENDER_LABELS, Config
from .decoding import ClassificationResult, decode_age, decode_expression, decode_gender
from .errors import (
    AssetNotFound,
    InferenceError,
    ModelLoadError,
    PipelineError,
    PreprocessError,
    ShapeError,
)
from .formatting import format_log_line, format_summary, parse_log_line
from .pipeline import FaceAttributePredictor, PipelineResult, PipelineSummary, run_pipeline
from .preprocessing import normalize_image, pack_tensor
from .runner import ModelRunner

__all__ = [
    "Config",
    "AGE_GROUPS",
    "EXPRESSION_LABELS",
    "GENDER_LABELS",
    "ArtifactProvider",
    "DirectoryArtifactProvider",
    "InMemoryArtifactProvider",
    "ClassificationResult",
    "decode_gender",
    "decode_age",
    "decode_expression",
    "PipelineError",
    "AssetNotFound",
    "PreprocessError",
    "ModelLoadError",
    "InferenceError",
    "ShapeError",
    "format_summary",
    "format_log_line",
    "parse_log_line",
    "normalize_image",
    "pack_tensor",
    "ModelRunner",
    "FaceAttributePredictor",
    "PipelineResult",
    "PipelineSummary",
    "run_pipeline",
]
