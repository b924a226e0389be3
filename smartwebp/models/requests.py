"""
Request models for image handlers
"""

from typing import List

from pydantic import Field

from .base import BaseModel


class AnalyzeImageRequest(BaseModel):
    """Classify an image without converting it"""

    image_url: str = Field(min_length=1)


class ConvertImageRequest(BaseModel):
    """Convert an image; force bypasses the already-optimized short-circuit"""

    image_url: str = Field(min_length=1)
    force_convert: bool = False


class RetryImageRequest(BaseModel):
    """Re-encode an image once at an explicit quality"""

    image_url: str = Field(min_length=1)
    quality: int = Field(ge=0, le=100)


class BatchImageItem(BaseModel):
    """Batch entry: caller identifier plus source locator"""

    id: str
    url: str


class BatchConvertRequest(BaseModel):
    """Convert several images, one at a time, in order"""

    images: List[BatchImageItem]
    force_convert: bool = False
