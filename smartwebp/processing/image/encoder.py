"""
WebP encoder adapter

Thin wrapper over Pillow's WebP plugin. The codec itself is consumed, not
reimplemented; this module maps strategy options onto encoder arguments
and turns encoder failures into EncodeError. Near-lossless strength is
applied as a pixel preprocessing pass ahead of the codec.
"""

import io
from typing import Any, Dict, Optional

import numpy as np
from PIL import Image
from pydantic import ConfigDict

from smartwebp.core.errors import EncodeError
from smartwebp.core.logger import get_logger
from smartwebp.models.base import BaseModel
from smartwebp.models.entities import (
    CarefulStrategy,
    EncodingStrategy,
    LosslessStrategy,
    ManualStrategy,
    SkipStrategy,
)

logger = get_logger(__name__)

# libwebp "method": 0 = fastest, 6 = slowest/best
DEFAULT_EFFORT = 4
MAX_EFFORT = 6


def near_lossless_bits(strength: int) -> int:
    """Quantization depth for a near-lossless strength: 100 → 0 bits, 0 → 5 bits"""
    return 5 - strength // 20


def _discretize(values: np.ndarray, bits: int) -> np.ndarray:
    """Round each component to the closest multiple of 2**bits, saturating at 255"""
    mask = (1 << bits) - 1
    biased = values + (mask >> 1) + ((values >> bits) & 1)
    return np.where(biased > 0xFF, 0xFF, biased & ~mask)


def apply_near_lossless(image: Image.Image, strength: int) -> Image.Image:
    """
    Near-lossless preprocessing

    Pixels whose four neighbours all lie within 2**bits of them are part of a
    smooth area and stay exact; every other interior pixel is quantized, so
    the error hides in edges and texture. Border pixels are never touched.

    Args:
        image: RGB or RGBA pixels
        strength: 0-100, where 100 leaves the image unchanged

    Returns:
        A new image, or the input itself when nothing would change
    """
    bits = near_lossless_bits(strength)
    if bits <= 0 or image.width < 3 or image.height < 3:
        return image

    px = np.asarray(image, dtype=np.int32)
    limit = 1 << bits
    center = px[1:-1, 1:-1]

    smooth = np.ones(center.shape[:2], dtype=bool)
    for neighbour in (px[:-2, 1:-1], px[2:, 1:-1], px[1:-1, :-2], px[1:-1, 2:]):
        smooth &= (np.abs(neighbour - center) < limit).all(axis=-1)

    out = px.copy()
    inner = out[1:-1, 1:-1]
    inner[~smooth] = _discretize(center[~smooth], bits)
    return Image.fromarray(out.astype(np.uint8))


class EncodeOptions(BaseModel):
    """Encoder arguments for a single pass"""

    model_config = ConfigDict(frozen=True)

    quality: int = 80
    lossless: bool = False
    effort: int = DEFAULT_EFFORT
    near_lossless: Optional[int] = None
    smart_subsample: bool = False

    @classmethod
    def for_strategy(
        cls, strategy: EncodingStrategy, quality: Optional[int] = None
    ) -> "EncodeOptions":
        """
        Derive encoder options from a strategy

        Args:
            strategy: Lossless, Adaptive, Careful or Manual strategy
            quality: Candidate quality for search strategies

        Raises:
            EncodeError: for Skip, which never reaches the encoder
        """
        if isinstance(strategy, SkipStrategy):
            raise EncodeError("Skip strategy has no encoder options")
        if isinstance(strategy, LosslessStrategy):
            return cls(quality=100, lossless=True, effort=strategy.effort)
        if isinstance(strategy, ManualStrategy):
            return cls(quality=strategy.quality)
        if quality is None:
            raise EncodeError(f"{strategy.kind} strategy requires a quality")
        if isinstance(strategy, CarefulStrategy):
            return cls(
                quality=quality,
                near_lossless=strategy.near_lossless_strength,
                smart_subsample=strategy.smart_subsample,
            )
        return cls(quality=quality)


class WebPEncoder:
    """
    Deterministic WebP encoder

    Lower quality never yields a larger file for the same image and
    otherwise identical options; that property belongs to libwebp and is
    covered by tests rather than enforced here.
    """

    def _save_params(self, options: EncodeOptions) -> Dict[str, Any]:
        if not 0 <= options.quality <= 100:
            raise EncodeError(f"Quality out of range: {options.quality}")
        if not 0 <= options.effort <= MAX_EFFORT:
            raise EncodeError(f"Effort out of range: {options.effort}")
        if options.near_lossless is not None and not 0 <= options.near_lossless <= 100:
            raise EncodeError(f"Near-lossless strength out of range: {options.near_lossless}")
        if options.lossless and options.smart_subsample:
            raise EncodeError("smart_subsample has no effect on lossless output")

        params: Dict[str, Any] = {
            "quality": options.quality,
            "lossless": options.lossless,
            "method": options.effort,
        }
        if options.smart_subsample:
            # No sharp-YUV switch in Pillow; highest effort only
            params["method"] = MAX_EFFORT
        return params

    def encode(self, image: Image.Image, options: EncodeOptions) -> bytes:
        """
        Encode pixels to WebP

        Args:
            image: RGB or RGBA pixels
            options: Encoder options

        Returns:
            Encoded WebP bytes

        Raises:
            EncodeError: on invalid options or encoder failure
        """
        if image.mode not in ("RGB", "RGBA"):
            raise EncodeError(f"Unsupported pixel mode: {image.mode}")
        if image.width == 0 or image.height == 0:
            raise EncodeError("Cannot encode an empty image")

        params = self._save_params(options)
        if options.near_lossless is not None:
            image = apply_near_lossless(image, options.near_lossless)

        output = io.BytesIO()
        try:
            image.save(output, format="WEBP", **params)
        except (OSError, ValueError, KeyError) as exc:
            raise EncodeError(f"WebP encoding failed: {exc}") from exc

        encoded = output.getvalue()
        logger.debug(
            f"Encoded WebP q={options.quality} lossless={options.lossless} "
            f"method={params['method']} → {len(encoded) / 1024:.1f}KB"
        )
        return encoded
