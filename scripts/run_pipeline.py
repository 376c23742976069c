#!/usr/bin/env python3
"""
CLI script for running gender, age and expression prediction on images.

Usage:
    python scripts/run_pipeline.py --image eval01
    python scripts/run_pipeline.py --all --log-file eval.log
    python scripts/run_pipeline.py --image eval03 --benchmark
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.face_attributes import Config, DirectoryArtifactProvider, FaceAttributePredictor
from src.face_attributes.config import EVAL_IMAGES
from src.face_attributes.errors import PipelineError


def parse_args():
    parser = argparse.ArgumentParser(
        description="Run gender, age and expression models on images",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--image", "-i",
        type=str,
        action="append",
        help="Image name to run (repeatable)",
    )

    parser.add_argument(
        "--all",
        action="store_true",
        help="Run every image in the image directory (or the default eval set)",
    )

    parser.add_argument(
        "--image-dir",
        type=str,
        default="./assets/images",
        help="Directory with input images",
    )

    parser.add_argument(
        "--model-dir",
        type=str,
        default="./assets/models",
        help="Directory with model artifacts",
    )

    parser.add_argument(
        "--model-ext",
        type=str,
        default="onnx",
        help="Model artifact file extension",
    )

    parser.add_argument(
        "--threads",
        type=int,
        default=2,
        help="Interpreter thread count",
    )

    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run the three models concurrently",
    )

    parser.add_argument(
        "--cache-sessions",
        action="store_true",
        help="Reuse one interpreter per model across images",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also append EVAL records to this file",
    )

    parser.add_argument(
        "--benchmark",
        action="store_true",
        help="Benchmark inference latency after running",
    )

    return parser.parse_args()


def main():
    args = parse_args()

    config = Config(
        num_threads=args.threads,
        model_ext=args.model_ext,
        parallel=args.parallel,
        cache_sessions=args.cache_sessions,
        image_dir=args.image_dir,
        model_dir=args.model_dir,
    )
    provider = DirectoryArtifactProvider(args.image_dir, args.model_dir, args.model_ext)

    if args.all:
        image_names = provider.list_images() or EVAL_IMAGES
    elif args.image:
        image_names = args.image
    else:
        image_names = EVAL_IMAGES[:1]

    failures = 0
    log_file = open(args.log_file, "a") if args.log_file else None

    def emit(line: str) -> None:
        print(line)
        if log_file is not None:
            log_file.write(line + "\n")

    try:
        predictor = FaceAttributePredictor(provider=provider, config=config, log_fn=emit)

        print(f"\n{'=' * 60}")
        print("FACE ATTRIBUTE PREDICTION")
        print(f"{'=' * 60}")
        print(f"Images: {len(image_names)}")
        print(f"Models: {', '.join(config.model_filename(t) for t in config.model_names)}")
        print(f"Mode: {'parallel' if config.parallel else 'sequential'}")
        print(f"{'=' * 60}")

        for result in predictor.predict_batch(image_names):
            print(f"\n--- {result.image_name} ---")
            print(result.message)
            if not result.ok:
                failures += 1

        print(f"\n{'=' * 60}")
        print(f"Done: {len(image_names) - failures} succeeded, {failures} failed")

        if args.benchmark:
            try:
                stats = predictor.benchmark(image_names[0])
            except PipelineError as e:
                print(f"\nBenchmark failed: {e.display_message()}")
            else:
                print(f"\nBenchmark Results ({image_names[0]}):")
                print(f"  Mean latency: {stats['mean_ms']:.2f} ms")
                print(f"  Std dev: {stats['std_ms']:.2f} ms")
                print(f"  Min/Max: {stats['min_ms']:.2f} / {stats['max_ms']:.2f} ms")
                print(f"  P95 latency: {stats['p95_ms']:.2f} ms")
                print(f"  Throughput: {stats['throughput_fps']:.1f} images/s")
    finally:
        if log_file is not None:
            log_file.close()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
