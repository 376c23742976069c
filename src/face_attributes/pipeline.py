"""
End-to-end pipeline: image -> tensor -> three models -> decoded, formatted result.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from .artifacts import ArtifactProvider, provider_from_config
from .config import TASK_ORDER, Config
from .decoding import ClassificationResult, decode
from .errors import PipelineError
from .formatting import format_log_line, format_summary
from .preprocessing import ImageSource, normalize_image, pack_tensor
from .runner import ModelRunner


@dataclass
class PipelineSummary:
    """Decoded results of one successful run."""

    image_name: str
    gender: ClassificationResult
    age: ClassificationResult
    expression: ClassificationResult
    text: str = field(init=False)
    log_line: str = field(init=False)

    def __post_init__(self):
        self.text = format_summary(self.image_name, self.gender, self.age, self.expression)
        self.log_line = format_log_line(self.image_name, self.gender, self.age, self.expression)

    def as_dict(self) -> dict:
        return {
            "image": self.image_name,
            "gender": self.gender.as_dict(),
            "age": self.age.as_dict(),
            "expression": self.expression.as_dict(),
        }


@dataclass
class PipelineResult:
    """Outcome of a run: either a summary or the error that stopped it."""

    image_name: str
    summary: Optional[PipelineSummary] = None
    error: Optional[PipelineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        """Text for the display collaborator."""
        if self.error is not None:
            return self.error.display_message()
        return self.summary.text


def runner_from_config(config: Config) -> ModelRunner:
    """Create a ModelRunner from a Config."""
    return ModelRunner(
        num_threads=config.num_threads,
        providers=config.providers,
        cache_sessions=config.cache_sessions,
    )


def run_task(
    task: str,
    provider: ArtifactProvider,
    runner: ModelRunner,
    tensor: np.ndarray,
    config: Config,
) -> ClassificationResult:
    """Load one model, run it on the shared tensor and decode its scores."""
    model_name = config.get_model_name(task)
    model_bytes = provider.load_model(model_name)
    scores = runner.run(model_bytes, tensor, model_name=model_name)
    return decode(task, scores)


def infer(
    provider: ArtifactProvider,
    tensor: np.ndarray,
    runner: ModelRunner,
    config: Config,
) -> dict[str, ClassificationResult]:
    """
    Run all three models on one input tensor.

    Models run in gender, age, expression order. In parallel mode they run
    on one worker each; the first failure in that same order is raised.
    """
    if not config.parallel:
        return {task: run_task(task, provider, runner, tensor, config) for task in TASK_ORDER}

    with ThreadPoolExecutor(max_workers=len(TASK_ORDER)) as executor:
        futures = {
            task: executor.submit(run_task, task, provider, runner, tensor, config)
            for task in TASK_ORDER
        }
        return {task: futures[task].result() for task in TASK_ORDER}


def summarize(
    image_name: str,
    source: ImageSource,
    provider: ArtifactProvider,
    runner: ModelRunner,
    config: Config,
) -> PipelineSummary:
    """Run the pipeline on an image, raising PipelineError on failure."""
    tensor = pack_tensor(normalize_image(source, config.image_size), config.image_size)
    results = infer(provider, tensor, runner, config)
    return PipelineSummary(image_name, **results)


def run_pipeline(
    provider: ArtifactProvider,
    image_name: str,
    runner: Optional[ModelRunner] = None,
    config: Optional[Config] = None,
    log_fn: Optional[Callable[[str], None]] = print,
    image: Optional[ImageSource] = None,
) -> PipelineResult:
    """
    Run the full pipeline for one image.

    Args:
        provider: Source of image and model bytes
        image_name: Image to load from the provider (and to report)
        runner: ModelRunner to use (built from config if None)
        config: Configuration object
        log_fn: Receives the EVAL log line on success; None disables it
        image: Already-decoded image; skips the provider image lookup

    Returns:
        PipelineResult holding the summary or the error that stopped the run
    """
    config = config or Config()
    runner = runner or runner_from_config(config)

    try:
        source = image if image is not None else provider.load_image(image_name)
        summary = summarize(image_name, source, provider, runner, config)
    except PipelineError as e:
        return PipelineResult(image_name, error=e)

    if log_fn is not None:
        log_fn(summary.log_line)

    return PipelineResult(image_name, summary=summary)


class FaceAttributePredictor:
    """
    High-level interface for gender, age group and expression prediction.

    Holds the artifact provider, model runner and configuration shared by
    every run.
    """

    def __init__(
        self,
        provider: Optional[ArtifactProvider] = None,
        config: Optional[Config] = None,
        runner: Optional[ModelRunner] = None,
        log_fn: Optional[Callable[[str], None]] = print,
    ):
        """
        Initialize the predictor.

        Args:
            provider: Artifact provider (directory provider from config if None)
            config: Configuration object
            runner: Model runner (built from config if None)
            log_fn: Receives EVAL log lines; None disables them
        """
        self.config = config or Config()
        self.provider = provider or provider_from_config(self.config)
        self.runner = runner or runner_from_config(self.config)
        self.log_fn = log_fn

    def predict(self, image_name: str) -> PipelineResult:
        """Run the pipeline on a named image from the provider."""
        return run_pipeline(
            self.provider, image_name, runner=self.runner, config=self.config, log_fn=self.log_fn
        )

    def predict_image(self, image: ImageSource, image_name: str = "upload") -> PipelineResult:
        """Run the pipeline on an image that is already in memory."""
        return run_pipeline(
            self.provider,
            image_name,
            runner=self.runner,
            config=self.config,
            log_fn=self.log_fn,
            image=image,
        )

    def predict_batch(self, image_names: list[str]) -> list[PipelineResult]:
        """Run the pipeline on several named images, one after another."""
        return [self.predict(name) for name in image_names]

    def benchmark(self, image_name: str, num_runs: int = 20, warmup_runs: int = 2) -> dict:
        """
        Benchmark end-to-end latency of the three model runs.

        The image is loaded and preprocessed once; each timed run covers model
        loading, inference and decoding.

        Args:
            image_name: Image to run
            num_runs: Number of timed runs
            warmup_runs: Number of warmup runs

        Returns:
            Dictionary with timing statistics
        """
        source = self.provider.load_image(image_name)
        tensor = pack_tensor(normalize_image(source, self.config.image_size), self.config.image_size)

        for _ in range(warmup_runs):
            infer(self.provider, tensor, self.runner, self.config)

        times = []
        for _ in range(num_runs):
            start = time.perf_counter()
            infer(self.provider, tensor, self.runner, self.config)
            end = time.perf_counter()
            times.append((end - start) * 1000)  # Convert to ms

        times = np.array(times)

        return {
            "mean_ms": float(np.mean(times)),
            "std_ms": float(np.std(times)),
            "min_ms": float(np.min(times)),
            "max_ms": float(np.max(times)),
            "median_ms": float(np.median(times)),
            "p95_ms": float(np.percentile(times, 95)),
            "throughput_fps": float(1000 / np.mean(times)),
        }
