"""
Diff map rendering for human review
"""

import io
from typing import Optional, Tuple

from PIL import ImageChops, ImageOps

from smartwebp.core.errors import ComparisonError
from smartwebp.core.logger import get_logger
from smartwebp.core.settings import get_conversion_config

from .perceptual import letterbox

logger = get_logger(__name__)


class DiffMapRenderer:
    """
    Renders a contrast-stretched per-pixel difference image

    Purely presentational: it never influences whether a candidate is accepted.
    """

    def __init__(self, preview_size: Optional[Tuple[int, int]] = None):
        if preview_size is None:
            config = get_conversion_config()
            preview_size = (config.preview_width, config.preview_height)
        self.preview_size = preview_size

    def render(self, original: bytes, candidate: bytes) -> bytes:
        """
        Build the diff map

        Args:
            original: Source image bytes
            candidate: Accepted (or fallback) candidate bytes; empty for Skip

        Returns:
            PNG bytes, or empty bytes when there is no candidate
        """
        if not candidate:
            return b""

        a = letterbox(original, self.preview_size)
        b = letterbox(candidate, self.preview_size)

        try:
            diff = ImageChops.difference(a, b)
            # Amplify differences so subtle artifacts become visible
            stretched = ImageOps.autocontrast(diff)
            output = io.BytesIO()
            stretched.save(output, format="PNG", optimize=True)
        except (OSError, ValueError) as exc:
            raise ComparisonError(f"Failed to render diff map: {exc}") from exc

        logger.debug(f"Diff map rendered: {len(output.getvalue()) / 1024:.1f}KB")
        return output.getvalue()
