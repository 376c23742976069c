#!/usr/bin/env python3
"""
CLI script for scoring EVAL log records against ground-truth labels.

Usage:
    python scripts/run_pipeline.py --all --log-file eval.log
    python scripts/evaluate.py --log-file eval.log --labels labels.csv
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.face_attributes.evaluate import (
    CLASS_NAMES,
    evaluate_records,
    load_ground_truth,
    plot_confusion_matrix,
    prediction_distribution,
    print_metrics,
    read_log_records,
)


def parse_args():
    parser = argparse.ArgumentParser(
        description="Evaluate gender, age and expression predictions",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--log-file", "-l",
        type=str,
        required=True,
        help="File containing EVAL records"
    )

    parser.add_argument(
        "--labels",
        type=str,
        default=None,
        help="Ground-truth CSV (image,gender,age,expression)"
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory to save confusion matrix plots"
    )

    return parser.parse_args()


def main():
    args = parse_args()

    with open(args.log_file) as f:
        records = read_log_records(f)

    print(f"Loaded {len(records)} EVAL records from {args.log_file}")
    if not records:
        return 1

    print("\nPrediction distribution:")
    for task, counts in prediction_distribution(records).items():
        summary = ", ".join(f"{label}={count}" for label, count in counts.most_common())
        print(f"  {task:<10} {summary}")

    if args.labels is None:
        return 0

    ground_truth = load_ground_truth(args.labels)
    results = evaluate_records(records, ground_truth)

    if not results:
        print("\nNo records matched the ground-truth file")
        return 1

    for task, metrics in results.items():
        print_metrics(task, metrics)

    if args.output_dir:
        os.makedirs(args.output_dir, exist_ok=True)
        for task, metrics in results.items():
            cm_path = os.path.join(args.output_dir, f"{task}_confusion_matrix.png")
            plot_confusion_matrix(
                metrics["confusion_matrix"], CLASS_NAMES[task], f"{task} Confusion Matrix", cm_path
            )
        print(f"\nOutputs saved to: {args.output_dir}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
