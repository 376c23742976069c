"""
Exceptions raised by the face attribute pipeline.
"""

from typing import Optional


class PipelineError(Exception):
    """Base exception for a failed pipeline run."""

    def display_message(self) -> str:
        """Human-readable message shown in place of a result."""
        return str(self)


class AssetNotFound(PipelineError):
    """Image asset could not be found."""

    def __init__(self, name: str):
        super().__init__(f"Could not load image {name}.")
        self.name = name


class PreprocessError(PipelineError):
    """Image could not be decoded, resized or converted."""

    def display_message(self) -> str:
        detail = str(self)
        if detail:
            return f"Failed to preprocess image: {detail}"
        return "Failed to preprocess image."


class ModelLoadError(PipelineError):
    """Model artifact is missing or cannot be parsed."""

    def __init__(self, model: str, message: Optional[str] = None):
        super().__init__(message or f"Could not find {model}.")
        self.model = model


class InferenceError(PipelineError):
    """Interpreter failed to bind input or execute the model."""

    def display_message(self) -> str:
        return f"Interpreter error: {self}"


class ShapeError(PipelineError):
    """Model output length does not match the expected class count."""

    def __init__(self, task: str, size: int, expected: int):
        super().__init__(f"Unexpected {task} output size: {size}")
        self.task = task
        self.size = size
        self.expected = expected
