"""
Content analysis

Decodes source bytes and derives the content profile that drives
strategy selection:
- Shannon entropy of the greyscale histogram (visual complexity)
- Mean brightness of the first channel
- Flat / dark / high-detail flags
"""

import io
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from smartwebp.core.errors import DecodeError
from smartwebp.core.logger import get_logger
from smartwebp.core.settings import ConversionConfig, get_conversion_config
from smartwebp.models.entities import ContentProfile, ImageAnalysis, RasterImage

from .strategy import describe_strategy, select_strategy

logger = get_logger(__name__)

_ALPHA_MODES = ("RGBA", "LA", "PA", "RGBa", "La")


def _has_transparency(img: Image.Image) -> bool:
    if img.mode in _ALPHA_MODES:
        return True
    return img.mode == "P" and "transparency" in img.info


def normalise_mode(img: Image.Image) -> Image.Image:
    """Convert any decoded mode to RGB, or RGBA when the source carries alpha"""
    if _has_transparency(img):
        return img if img.mode == "RGBA" else img.convert("RGBA")
    if img.mode == "RGB":
        return img
    if img.mode in ("I", "I;16", "I;16B", "I;16L", "F"):
        # Wide greyscale has no direct RGB conversion
        img = img.convert("L")
    return img.convert("RGB")


def decode_image(img_bytes: bytes) -> RasterImage:
    """
    Decode raw bytes into a RasterImage

    Args:
        img_bytes: Encoded source image

    Returns:
        RasterImage with RGB/RGBA pixels

    Raises:
        DecodeError: if the bytes are empty, not an image, or truncated
    """
    if not img_bytes:
        raise DecodeError("Empty image data")

    try:
        with Image.open(io.BytesIO(img_bytes)) as src:
            source_format = (src.format or "unknown").lower()
            src.load()
            image = normalise_mode(src)
            if image is src:
                image = src.copy()
    except UnidentifiedImageError as exc:
        raise DecodeError("Data is not a recognised image") from exc
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Failed to decode image: {exc}") from exc

    width, height = image.size
    return RasterImage(
        image=image,
        width=width,
        height=height,
        source_format=source_format,
        byte_size=len(img_bytes),
    )


def histogram_entropy(image: Image.Image) -> float:
    """Base-2 Shannon entropy of the 256-bin greyscale histogram (alpha ignored)"""
    gray = image.convert("L")
    hist = np.asarray(gray.histogram(), dtype=np.float64)
    total = hist.sum()
    if total == 0:
        return 0.0
    p = hist[hist > 0] / total
    return float(-(p * np.log2(p)).sum())


def first_channel_mean(image: Image.Image) -> float:
    """Mean of the first band: luminance for greyscale sources, red otherwise"""
    band = np.asarray(image.getchannel(0), dtype=np.float64)
    if band.size == 0:
        return 0.0
    return float(band.mean())


class ImageAnalyzer:
    """
    Content classifier

    Pure and deterministic: identical pixels always give the same profile.
    """

    def __init__(self, config: Optional[ConversionConfig] = None):
        self.config = config or get_conversion_config()

    def decode(self, img_bytes: bytes) -> RasterImage:
        return decode_image(img_bytes)

    def classify(self, raster: RasterImage) -> ContentProfile:
        """Compute entropy and brightness, then derive the content flags"""
        entropy = histogram_entropy(raster.image)
        mean = first_channel_mean(raster.image)

        profile = ContentProfile(
            entropy=entropy,
            mean_brightness=mean,
            is_flat=entropy < self.config.flat_entropy,
            is_dark=mean < self.config.dark_mean,
            is_high_detail=entropy > self.config.high_detail_entropy,
        )

        logger.debug(
            f"Classified {raster.width}x{raster.height} {raster.source_format}: "
            f"entropy={entropy:.3f}, mean={mean:.1f} → {profile.classification}"
        )
        return profile

    def analyze(self, img_bytes: bytes) -> ImageAnalysis:
        """Classifier report with the strategy that a conversion would use"""
        raster = self.decode(img_bytes)
        profile = self.classify(raster)
        strategy = select_strategy(
            profile, raster.source_format, raster.byte_size, config=self.config
        )

        return ImageAnalysis(
            width=raster.width,
            height=raster.height,
            format=raster.source_format,
            size=raster.byte_size,
            entropy=profile.entropy,
            mean=profile.mean_brightness,
            classification=profile.classification,
            recommendation=strategy.kind,
            reason=describe_strategy(strategy),
        )
