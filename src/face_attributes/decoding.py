"""
Decoding raw model scores into labels and confidences.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .config import EXPRESSION_LABELS, GENDER_LABELS, get_age_label, get_num_classes
from .errors import ShapeError


@dataclass(frozen=True)
class ClassificationResult:
    """Label and confidence decoded from one model output."""

    label: str
    confidence: float

    def as_dict(self) -> dict:
        return {"label": self.label, "confidence": self.confidence}


def argmax(scores: Sequence[float]) -> int:
    """
    Index of the largest score.

    Ties resolve to the lowest index.
    """
    values = np.asarray(scores, dtype=np.float32).reshape(-1)
    if values.size == 0:
        raise ValueError("argmax of an empty score vector")
    # np.argmax returns the first occurrence of the maximum
    return int(np.argmax(values))


def _check_shape(task: str, scores: Sequence[float]) -> np.ndarray:
    values = np.asarray(scores, dtype=np.float32).reshape(-1)
    expected = get_num_classes(task)
    if values.size != expected:
        raise ShapeError(task, values.size, expected)
    return values


def decode_gender(scores: Sequence[float]) -> ClassificationResult:
    """
    Decode [male, female] scores.

    Female wins only when strictly greater, so an exact tie is Male.
    """
    values = _check_shape("gender", scores)
    male_score, female_score = float(values[0]), float(values[1])

    label = GENDER_LABELS[1] if female_score > male_score else GENDER_LABELS[0]
    return ClassificationResult(label=label, confidence=max(male_score, female_score))


def decode_age(scores: Sequence[float]) -> ClassificationResult:
    """Decode [child, adult, elderly] scores."""
    values = _check_shape("age", scores)
    index = argmax(values)
    return ClassificationResult(label=get_age_label(index), confidence=float(values[index]))


def decode_expression(scores: Sequence[float]) -> ClassificationResult:
    """Decode the 7 FER2013 expression scores."""
    values = _check_shape("expression", scores)
    index = argmax(values)
    return ClassificationResult(label=EXPRESSION_LABELS[index], confidence=float(values[index]))


DECODERS = {
    "gender": decode_gender,
    "age": decode_age,
    "expression": decode_expression,
}


def decode(task: str, scores: Sequence[float]) -> ClassificationResult:
    """Decode scores with the rule for the given task."""
    if task not in DECODERS:
        raise ValueError(f"Unknown task: {task}. Choose from: {list(DECODERS)}")
    return DECODERS[task](scores)
