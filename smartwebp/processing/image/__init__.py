"""
Image conversion module

Provides content-adaptive WebP conversion:
- Content analysis (entropy, brightness, flat/dark/high-detail flags)
- Strategy selection (skip, lossless, careful, adaptive)
- Quality search against a perceptual (SSIM) floor
- Diff map rendering for manual review
"""

from .analysis import ImageAnalyzer, decode_image
from .diff import DiffMapRenderer
from .encoder import EncodeOptions, WebPEncoder
from .perceptual import PerceptualComparator
from .processing import ImageConverter
from .strategy import describe_strategy, select_strategy

__all__ = [
    # Classes
    "DiffMapRenderer",
    "EncodeOptions",
    "ImageAnalyzer",
    "ImageConverter",
    "PerceptualComparator",
    "WebPEncoder",
    # Functions
    "decode_image",
    "describe_strategy",
    "select_strategy",
]
