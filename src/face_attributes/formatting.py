"""
Result formatting for display and for the EVAL log record.
"""

from dataclasses import dataclass

from .decoding import ClassificationResult

LOG_PREFIX = "EVAL"

_LABEL_KEYS = ("PredGender", "PredAge", "PredExpr")
_CONF_KEYS = ("GenderConf", "AgeConf", "ExprConf")


@dataclass(frozen=True)
class EvalRecord:
    """One parsed EVAL log line."""

    image_name: str
    gender: ClassificationResult
    age: ClassificationResult
    expression: ClassificationResult


def format_summary(
    image_name: str,
    gender: ClassificationResult,
    age: ClassificationResult,
    expression: ClassificationResult,
) -> str:
    """Build the multi-line text shown to the user."""
    return (
        f"Image: {image_name}\n"
        f"\n"
        f"Gender: {gender.label} ({gender.confidence * 100:.1f}%)\n"
        f"Age group: {age.label} ({age.confidence * 100:.1f}%)\n"
        f"Expression: {expression.label} ({expression.confidence * 100:.1f}%)"
    )


def format_log_line(
    image_name: str,
    gender: ClassificationResult,
    age: ClassificationResult,
    expression: ClassificationResult,
) -> str:
    """
    Build the single-line EVAL record.

    Example:
        EVAL,eval01,PredGender=Female,PredAge=Adult,PredExpr=Happy,GenderConf=0.912,AgeConf=0.801,ExprConf=0.654
    """
    return (
        f"{LOG_PREFIX},{image_name},"
        f"PredGender={gender.label},"
        f"PredAge={age.label},"
        f"PredExpr={expression.label},"
        f"GenderConf={gender.confidence:.3f},"
        f"AgeConf={age.confidence:.3f},"
        f"ExprConf={expression.confidence:.3f}"
    )


def parse_log_line(line: str) -> EvalRecord:
    """
    Parse an EVAL record produced by format_log_line.

    Args:
        line: Log line, surrounding whitespace allowed

    Returns:
        EvalRecord with confidences rounded to 3 decimals
    """
    parts = line.strip().split(",")
    if len(parts) != 8 or parts[0] != LOG_PREFIX:
        raise ValueError(f"Not an {LOG_PREFIX} record: {line!r}")

    image_name = parts[1]
    fields = {}
    for part in parts[2:]:
        key, sep, value = part.partition("=")
        if not sep:
            raise ValueError(f"Malformed field {part!r} in {line!r}")
        fields[key] = value

    missing = [key for key in _LABEL_KEYS + _CONF_KEYS if key not in fields]
    if missing:
        raise ValueError(f"Missing fields {missing} in {line!r}")

    results = [
        ClassificationResult(label=fields[label_key], confidence=float(fields[conf_key]))
        for label_key, conf_key in zip(_LABEL_KEYS, _CONF_KEYS)
    ]

    return EvalRecord(image_name, *results)


def is_log_line(line: str) -> bool:
    """Check whether a line looks like an EVAL record."""
    return line.startswith(f"{LOG_PREFIX},")
