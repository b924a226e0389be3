"""
Processing layer: single-image conversion and the optional outcome cache
"""

from .cache import ConversionCache, make_cache_key

__all__ = ["ConversionCache", "make_cache_key"]
