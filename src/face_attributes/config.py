"""
Configuration settings for the face attribute pipeline.
"""

from dataclasses import dataclass, field

# Gender output order: [male, female]
GENDER_LABELS = {0: "Male", 1: "Female"}

# Age group definitions (3-class model)
AGE_GROUPS = {
    0: {"label": "Child"},
    1: {"label": "Adult"},
    2: {"label": "Elderly"},
}

# FER2013 class order
EXPRESSION_LABELS = {
    0: "Angry",
    1: "Disgust",
    2: "Fear",
    3: "Happy",
    4: "Neutral",
    5: "Sad",
    6: "Surprise",
}

# Task name -> (model artifact name, number of classes)
TASKS = {
    "gender": {"model": "gender_model", "num_classes": len(GENDER_LABELS)},
    "age": {"model": "age3_model", "num_classes": len(AGE_GROUPS)},
    "expression": {"model": "expression7_model", "num_classes": len(EXPRESSION_LABELS)},
}

TASK_ORDER = ("gender", "age", "expression")

IMAGE_SIZE = 128
NUM_CHANNELS = 3
TENSOR_LENGTH = IMAGE_SIZE * IMAGE_SIZE * NUM_CHANNELS

# Evaluation images shipped with the demo asset set
EVAL_IMAGES = [f"eval{i:02d}" for i in range(1, 21)]


@dataclass
class Config:
    """Pipeline and runtime configuration."""

    # Preprocessing
    image_size: int = IMAGE_SIZE

    # Interpreter settings
    num_threads: int = 2
    providers: tuple[str, ...] = ("CPUExecutionProvider",)
    cache_sessions: bool = False

    # Model artifacts
    model_ext: str = "onnx"
    model_names: dict[str, str] = field(
        default_factory=lambda: {task: info["model"] for task, info in TASKS.items()}
    )

    # Execution
    parallel: bool = False

    # Paths
    image_dir: str = "./assets/images"
    model_dir: str = "./assets/models"

    def model_filename(self, task: str) -> str:
        """Get the artifact filename for a task, e.g. "gender_model.onnx"."""
        return f"{self.get_model_name(task)}.{self.model_ext}"

    def get_model_name(self, task: str) -> str:
        """Get the artifact name for a task."""
        if task not in self.model_names:
            raise ValueError(f"Unknown task: {task}. Choose from: {list(TASKS)}")
        return self.model_names[task]

    @property
    def tensor_length(self) -> int:
        return self.image_size * self.image_size * NUM_CHANNELS


def get_num_classes(task: str) -> int:
    """Get the expected score vector length for a task."""
    if task not in TASKS:
        raise ValueError(f"Unknown task: {task}. Choose from: {list(TASKS)}")
    return TASKS[task]["num_classes"]


def get_age_label(group_idx: int) -> str:
    """Get the display label for an age group."""
    if group_idx in AGE_GROUPS:
        return AGE_GROUPS[group_idx]["label"]
    return "Unknown"


def get_expression_label(class_idx: int) -> str:
    """Get the display label for an expression class."""
    return EXPRESSION_LABELS.get(class_idx, "Unknown")
