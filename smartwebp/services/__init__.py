"""
Services around the conversion core: fetching and orchestration
"""

from .image_fetcher import ImageFetcher
from .image_service import ImageService, get_image_service

__all__ = ["ImageFetcher", "ImageService", "get_image_service"]
