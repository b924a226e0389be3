"""
smart-webp

Content-adaptive WebP recompression with a perceptual quality floor.
"""

__version__ = "0.1.0"
