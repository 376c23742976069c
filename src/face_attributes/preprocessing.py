"""
Image decoding, resizing and packing into the shared model input tensor.
"""

import io
import os
from typing import Union

import numpy as np
from PIL import Image

from .config import IMAGE_SIZE, NUM_CHANNELS
from .errors import PreprocessError

ImageSource = Union[bytes, str, os.PathLike, Image.Image, np.ndarray]


def load_image(source: ImageSource) -> Image.Image:
    """
    Decode an image from encoded bytes, a file path, a numpy array or a PIL Image.

    Args:
        source: Image data in any supported form

    Returns:
        Decoded PIL Image
    """
    try:
        if isinstance(source, Image.Image):
            return source
        if isinstance(source, np.ndarray):
            return Image.fromarray(source)
        if isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(source))
        else:
            image = Image.open(source)
        image.load()
        return image
    except (OSError, ValueError, TypeError, Image.DecompressionBombError) as e:
        raise PreprocessError(f"could not decode image ({e})") from e


def to_8bit(image: Image.Image) -> Image.Image:
    """
    Scale 16-bit integer images down to 8 bits per channel.

    Pillow clips these modes to 255 when converting to RGB, so the top byte
    is kept instead.
    """
    if image.mode != "I" and not image.mode.startswith("I;16"):
        return image

    pixels = np.asarray(image).astype(np.int64) >> 8
    return Image.fromarray(np.clip(pixels, 0, 255).astype(np.uint8))


def normalize_image(source: ImageSource, image_size: int = IMAGE_SIZE) -> np.ndarray:
    """
    Resize an image to a fixed square and scale its RGB channels to [0, 1].

    Alpha is discarded after premultiplying, so transparent pixels come out
    black, matching a premultiplied RGBA bitmap context.

    Args:
        source: Image to normalize
        image_size: Output width and height in pixels

    Returns:
        float32 array of shape (image_size, image_size, 3), row-major with
        R, G, B interleaved per pixel
    """
    image = load_image(source)

    try:
        rgba = to_8bit(image).convert("RGBA")
        resized = rgba.resize((image_size, image_size), Image.Resampling.BILINEAR)
        premultiplied = resized.convert("RGBa")
    except (OSError, ValueError) as e:
        raise PreprocessError(f"could not convert image to RGB ({e})") from e

    pixels = np.asarray(premultiplied, dtype=np.uint8)[:, :, :NUM_CHANNELS]
    return pixels.astype(np.float32) / 255.0


def pack_tensor(normalized: np.ndarray, image_size: int = IMAGE_SIZE) -> np.ndarray:
    """
    Pack normalized pixels into the flat model input buffer.

    The element order is preserved exactly (y outer, x inner, then R, G, B);
    only a leading batch dimension is added.

    Args:
        normalized: Output of normalize_image, or an equivalent flat sequence
        image_size: Expected width and height

    Returns:
        Contiguous float32 array of shape (1, image_size, image_size, 3)
    """
    data = np.asarray(normalized, dtype=np.float32)
    expected = image_size * image_size * NUM_CHANNELS

    if data.size != expected:
        raise PreprocessError(
            f"tensor has {data.size} values, expected {expected}"
        )

    return np.ascontiguousarray(data.reshape(1, image_size, image_size, NUM_CHANNELS))


def tensor_to_bytes(tensor: np.ndarray) -> bytes:
    """Serialize a tensor as little-endian float32 bytes."""
    return np.ascontiguousarray(tensor, dtype="<f4").tobytes()


def preprocess(source: ImageSource, image_size: int = IMAGE_SIZE) -> np.ndarray:
    """Decode, normalize and pack an image in one step."""
    return pack_tensor(normalize_image(source, image_size), image_size)
