"""
Artifact providers supplying image and model bytes by name.
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .errors import AssetNotFound, ModelLoadError

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".webp")


class ArtifactProvider(ABC):
    """Source of evaluation images and serialized models."""

    @abstractmethod
    def load_image(self, name: str) -> bytes:
        """Return encoded image bytes, raising AssetNotFound if missing."""
        pass

    @abstractmethod
    def load_model(self, name: str) -> bytes:
        """Return model bytes, raising ModelLoadError if missing."""
        pass


class DirectoryArtifactProvider(ArtifactProvider):
    """
    Reads images and models from directories on disk.

    Images are looked up by exact filename first, then by stem with each of
    the known image extensions. Models are looked up as "<name>.<model_ext>".
    """

    def __init__(self, image_dir: str, model_dir: str, model_ext: str = "onnx"):
        self.image_dir = Path(image_dir)
        self.model_dir = Path(model_dir)
        self.model_ext = model_ext.lstrip(".")

    def _find_image(self, name: str) -> Optional[Path]:
        candidates = [self.image_dir / name]
        candidates += [self.image_dir / f"{name}{ext}" for ext in IMAGE_EXTENSIONS]
        for path in candidates:
            if path.is_file():
                return path
        return None

    def load_image(self, name: str) -> bytes:
        path = self._find_image(name)
        if path is None:
            raise AssetNotFound(name)
        return path.read_bytes()

    def model_path(self, name: str) -> Path:
        return self.model_dir / f"{name}.{self.model_ext}"

    def load_model(self, name: str) -> bytes:
        path = self.model_path(name)
        if not path.is_file():
            raise ModelLoadError(name, f"Could not find {path.name}.")
        try:
            return path.read_bytes()
        except OSError as e:
            raise ModelLoadError(name, f"Could not read {path.name}: {e}") from e

    def list_images(self) -> list[str]:
        """List image stems available in the image directory, sorted."""
        if not self.image_dir.is_dir():
            return []
        return sorted(
            path.stem
            for path in self.image_dir.iterdir()
            if path.suffix.lower() in IMAGE_EXTENSIONS
        )


class InMemoryArtifactProvider(ArtifactProvider):
    """Serves images and models from dictionaries keyed by name."""

    def __init__(
        self,
        images: Optional[dict[str, bytes]] = None,
        models: Optional[dict[str, bytes]] = None,
        model_ext: str = "onnx",
    ):
        self.images = dict(images or {})
        self.models = dict(models or {})
        self.model_ext = model_ext

    def load_image(self, name: str) -> bytes:
        if name not in self.images:
            raise AssetNotFound(name)
        return self.images[name]

    def load_model(self, name: str) -> bytes:
        if name not in self.models:
            raise ModelLoadError(name, f"Could not find {name}.{self.model_ext}.")
        return self.models[name]


def provider_from_config(config) -> DirectoryArtifactProvider:
    """Create a directory provider from a Config."""
    return DirectoryArtifactProvider(
        image_dir=os.fspath(config.image_dir),
        model_dir=os.fspath(config.model_dir),
        model_ext=config.model_ext,
    )
