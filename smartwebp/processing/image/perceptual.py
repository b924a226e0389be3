"""
Perceptual comparison

Structural similarity between an original and a candidate, measured on a
fixed square canvas so that images of different native sizes compare.
"""

import io
from typing import Optional

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError
from skimage.metrics import structural_similarity

from smartwebp.core.errors import ComparisonError
from smartwebp.core.logger import get_logger
from smartwebp.core.settings import get_conversion_config

from .analysis import normalise_mode

logger = get_logger(__name__)

RESAMPLE = Image.Resampling.LANCZOS
PAD_COLOR = (0, 0, 0)


def letterbox(img_bytes: bytes, size: tuple) -> Image.Image:
    """
    Decode and fit an image into a fixed canvas

    Aspect ratio is preserved; the remainder is padded with black.
    Transparent pixels are composited onto the same black background.

    Raises:
        ComparisonError: if the bytes cannot be decoded or resized
    """
    if not img_bytes:
        raise ComparisonError("Empty image data")

    try:
        with Image.open(io.BytesIO(img_bytes)) as src:
            src.load()
            img = normalise_mode(src)
            if img.mode == "RGBA":
                flat = Image.new("RGB", img.size, PAD_COLOR)
                flat.paste(img, mask=img.getchannel("A"))
                img = flat
            elif img is src:
                img = src.copy()
        return ImageOps.pad(img, size, method=RESAMPLE, color=PAD_COLOR)
    except UnidentifiedImageError as exc:
        raise ComparisonError("Data is not a recognised image") from exc
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ComparisonError(f"Failed to prepare image for comparison: {exc}") from exc


class PerceptualComparator:
    """Mean SSIM on a letterboxed luminance canvas, clamped to [0, 1]"""

    def __init__(self, canvas_size: Optional[int] = None):
        self.canvas_size = canvas_size or get_conversion_config().comparison_canvas

    def _luma(self, img_bytes: bytes) -> np.ndarray:
        canvas = letterbox(img_bytes, (self.canvas_size, self.canvas_size))
        return np.asarray(canvas.convert("L"), dtype=np.float64)

    def compare(self, original: bytes, candidate: bytes) -> float:
        """
        Score how structurally similar two encoded images are

        Args:
            original: Source image bytes
            candidate: Re-encoded image bytes

        Returns:
            SSIM in [0, 1], 1.0 meaning identical structure

        Raises:
            ComparisonError: if either input cannot be decoded/resized or scored
        """
        a = self._luma(original)
        b = self._luma(candidate)

        try:
            score = structural_similarity(a, b, data_range=255.0)
        except ValueError as exc:
            raise ComparisonError(f"SSIM computation failed: {exc}") from exc

        if not np.isfinite(score):
            raise ComparisonError(f"SSIM is not finite: {score}")

        return float(np.clip(score, 0.0, 1.0))
