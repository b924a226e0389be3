"""
Image service

Orchestrates the collaborators around the conversion core:
- Fetch source bytes
- Analyze (classifier report)
- Convert / manual retry at an explicit quality
- Batch conversion with per-item failure isolation
- Optional caller-owned outcome cache
"""

from typing import Iterable, List, Optional

from smartwebp.core.errors import ConversionError
from smartwebp.core.logger import get_logger
from smartwebp.models.entities import BatchItemResult, ConversionOutcome, ImageAnalysis
from smartwebp.models.requests import BatchImageItem
from smartwebp.processing.cache import ConversionCache, make_cache_key
from smartwebp.processing.image import ImageConverter

from .image_fetcher import ImageFetcher

logger = get_logger(__name__)


class ImageService:
    """Fetch-and-convert facade used by handlers and the CLI"""

    def __init__(
        self,
        converter: Optional[ImageConverter] = None,
        fetcher: Optional[ImageFetcher] = None,
        cache: Optional[ConversionCache] = None,
    ):
        """
        Args:
            converter: Conversion core
            fetcher: Source downloader
            cache: Outcome cache; no caching happens when omitted
        """
        self.converter = converter or ImageConverter()
        self.fetcher = fetcher or ImageFetcher()
        self.cache = cache

    def analyze(self, image_url: str) -> ImageAnalysis:
        """Fetch an image and report how it would be converted"""
        original = self.fetcher.fetch(image_url)
        return self.converter.analyzer.analyze(original)

    def convert(self, image_url: str, force: bool = False) -> ConversionOutcome:
        """Fetch and convert one image"""
        original = self.fetcher.fetch(image_url)
        return self.convert_bytes(original, force=force)

    def convert_bytes(self, original: bytes, force: bool = False) -> ConversionOutcome:
        """Convert already-fetched bytes, consulting the cache when one is set"""
        key = None
        if self.cache is not None:
            key = make_cache_key(original, force=force)
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Conversion served from cache")
                return cached

        outcome = self.converter.convert(original, force=force)

        if self.cache is not None and key is not None:
            self.cache.put(key, outcome)
        return outcome

    def retry_at_quality(self, image_url: str, quality: int) -> ConversionOutcome:
        """Fetch and re-encode once at a caller-specified quality"""
        original = self.fetcher.fetch(image_url)
        return self.retry_bytes_at_quality(original, quality)

    def retry_bytes_at_quality(self, original: bytes, quality: int) -> ConversionOutcome:
        key = None
        if self.cache is not None:
            key = make_cache_key(original, quality=quality)
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        outcome = self.converter.convert_at_quality(original, quality)

        if self.cache is not None and key is not None:
            self.cache.put(key, outcome)
        return outcome

    def batch_convert(
        self, images: Iterable[BatchImageItem], force: bool = False
    ) -> List[BatchItemResult]:
        """
        Convert images one at a time, in order

        A failure on one item is recorded and the next item proceeds.

        Returns:
            One entry per input item, in input order
        """
        results: List[BatchItemResult] = []

        for item in images:
            try:
                outcome = self.convert(item.url, force=force)
                results.append(BatchItemResult(id=item.id, success=True, outcome=outcome))
            except ConversionError as e:
                logger.warning(f"Conversion failed for {item.id}: {e}")
                results.append(BatchItemResult(id=item.id, success=False, error=str(e)))
            except Exception as e:
                logger.error(f"Unexpected failure converting {item.id}: {e}", exc_info=True)
                results.append(BatchItemResult(id=item.id, success=False, error=str(e)))

        failed = sum(1 for r in results if not r.success)
        logger.info(f"Batch conversion: {len(results) - failed}/{len(results)} succeeded")
        return results


_global_image_service: Optional[ImageService] = None


def get_image_service(reset: bool = False) -> ImageService:
    """Get or create the image service used by handlers"""
    global _global_image_service

    if _global_image_service is None or reset:
        _global_image_service = ImageService()

    return _global_image_service
