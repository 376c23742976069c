"""
Evaluation of EVAL log records against ground-truth labels.
"""

import csv
from collections import Counter
from typing import Iterable, Optional

import numpy as np

from .config import AGE_GROUPS, EXPRESSION_LABELS, GENDER_LABELS, TASK_ORDER
from .formatting import EvalRecord, is_log_line, parse_log_line

CLASS_NAMES = {
    "gender": list(GENDER_LABELS.values()),
    "age": [info["label"] for info in AGE_GROUPS.values()],
    "expression": list(EXPRESSION_LABELS.values()),
}


def read_log_records(lines: Iterable[str]) -> list[EvalRecord]:
    """
    Parse every EVAL record in a stream of log lines.

    Lines that are not EVAL records (summaries, errors) are skipped.
    """
    records = []
    for line in lines:
        line = line.strip()
        if is_log_line(line):
            records.append(parse_log_line(line))
    return records


def load_ground_truth(path: str) -> dict[str, dict[str, str]]:
    """
    Load ground-truth labels from a CSV file.

    The file needs an "image" column plus one column per task
    ("gender", "age", "expression"); a task column may be missing or blank.

    Returns:
        Mapping of image name to {task: label}
    """
    ground_truth = {}
    with open(path, newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None or "image" not in reader.fieldnames:
            raise ValueError(f"Ground-truth file {path} needs an 'image' column")

        for row in reader:
            labels = {
                task: row[task].strip().capitalize()
                for task in TASK_ORDER
                if row.get(task) and row[task].strip()
            }
            ground_truth[row["image"].strip()] = labels

    return ground_truth


def collect_predictions(
    records: list[EvalRecord], ground_truth: dict[str, dict[str, str]], task: str
) -> tuple[list[str], list[str], np.ndarray]:
    """
    Pair predicted and true labels for one task.

    Records without a ground-truth label for the task are skipped.

    Returns:
        Tuple of (true labels, predicted labels, predicted confidences)
    """
    y_true, y_pred, confidences = [], [], []
    for record in records:
        true_label = ground_truth.get(record.image_name, {}).get(task)
        if true_label is None:
            continue
        result = getattr(record, task)
        y_true.append(true_label)
        y_pred.append(result.label)
        confidences.append(result.confidence)

    return y_true, y_pred, np.array(confidences, dtype=np.float32)


def compute_metrics(y_true: list[str], y_pred: list[str], class_names: list[str]) -> dict:
    """
    Compute classification metrics for one task.

    Args:
        y_true: True labels
        y_pred: Predicted labels
        class_names: Label order for the confusion matrix and per-class metrics

    Returns:
        Dictionary with metrics
    """
    from sklearn.metrics import (
        accuracy_score,
        confusion_matrix,
        f1_score,
        precision_score,
        recall_score,
    )

    if not y_true:
        raise ValueError("No labelled predictions to evaluate")

    metrics = {
        "num_samples": len(y_true),
        "accuracy": accuracy_score(y_true, y_pred),
        "precision_macro": precision_score(
            y_true, y_pred, labels=class_names, average="macro", zero_division=0
        ),
        "recall_macro": recall_score(
            y_true, y_pred, labels=class_names, average="macro", zero_division=0
        ),
        "f1_macro": f1_score(y_true, y_pred, labels=class_names, average="macro", zero_division=0),
        "confusion_matrix": confusion_matrix(y_true, y_pred, labels=class_names),
    }

    precision_per_class = precision_score(
        y_true, y_pred, labels=class_names, average=None, zero_division=0
    )
    recall_per_class = recall_score(
        y_true, y_pred, labels=class_names, average=None, zero_division=0
    )
    f1_per_class = f1_score(y_true, y_pred, labels=class_names, average=None, zero_division=0)

    metrics["per_class"] = {
        name: {
            "precision": precision_per_class[i],
            "recall": recall_per_class[i],
            "f1": f1_per_class[i],
        }
        for i, name in enumerate(class_names)
    }

    return metrics


def evaluate_records(
    records: list[EvalRecord], ground_truth: dict[str, dict[str, str]]
) -> dict[str, dict]:
    """
    Evaluate every task that has at least one labelled record.

    Returns:
        Mapping of task name to its metrics
    """
    results = {}
    for task in TASK_ORDER:
        y_true, y_pred, confidences = collect_predictions(records, ground_truth, task)
        if not y_true:
            continue
        metrics = compute_metrics(y_true, y_pred, CLASS_NAMES[task])
        metrics["mean_confidence"] = float(np.mean(confidences))
        results[task] = metrics
    return results


def prediction_distribution(records: list[EvalRecord]) -> dict[str, Counter]:
    """Count predicted labels per task."""
    return {
        task: Counter(getattr(record, task).label for record in records)
        for task in TASK_ORDER
    }


def print_metrics(task: str, metrics: dict) -> None:
    """Print metrics for one task in a formatted way."""
    print("\n" + "=" * 60)
    print(f"{task.upper()} RESULTS ({metrics['num_samples']} images)")
    print("=" * 60)

    print(f"\nAccuracy: {metrics['accuracy']:.4f} ({metrics['accuracy'] * 100:.2f}%)")
    if "mean_confidence" in metrics:
        print(f"Mean confidence: {metrics['mean_confidence']:.3f}")

    print("\nMacro-averaged Metrics:")
    print(f"  Precision: {metrics['precision_macro']:.4f}")
    print(f"  Recall:    {metrics['recall_macro']:.4f}")
    print(f"  F1-Score:  {metrics['f1_macro']:.4f}")

    print("\nPer-Class Performance:")
    for class_name, class_metrics in metrics["per_class"].items():
        print(
            f"  {class_name:<10} P={class_metrics['precision']:.3f} "
            f"R={class_metrics['recall']:.3f} F1={class_metrics['f1']:.3f}"
        )


def plot_confusion_matrix(
    confusion_matrix: np.ndarray,
    class_names: list[str],
    title: str = "Confusion Matrix",
    save_path: Optional[str] = None,
):
    """
    Plot a confusion matrix.

    Args:
        confusion_matrix: Confusion matrix array
        class_names: Axis labels in matrix order
        title: Plot title
        save_path: Path to save the figure
    """
    import matplotlib.pyplot as plt
    import seaborn as sns

    plt.figure(figsize=(8, 6))
    sns.heatmap(
        confusion_matrix,
        annot=True,
        fmt="d",
        cmap="Blues",
        xticklabels=class_names,
        yticklabels=class_names,
    )
    plt.xlabel("Predicted")
    plt.ylabel("True")
    plt.title(title)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        print(f"Confusion matrix saved to: {save_path}")

    return plt.gcf()
