"""
Response models for image handlers
"""

from typing import List, Optional

from .base import BaseModel, TimedOperationResponse
from .entities import ImageAnalysis


class ConversionData(BaseModel):
    """Conversion result with base64 payloads for transport"""

    original_size: int
    converted_size: int
    reduction_percent: int
    ssim_score: float
    quality: int
    strategy: str
    accepted: bool
    reason: str
    converted_blob: str
    diff_blob: str


class AnalyzeImageResponse(TimedOperationResponse):
    """Response with classifier report"""

    data: Optional[ImageAnalysis] = None


class ConvertImageResponse(TimedOperationResponse):
    """Response with a single conversion result"""

    data: Optional[ConversionData] = None


class BatchItemData(BaseModel):
    """Per-item entry of a batch response"""

    id: str
    success: bool
    result: Optional[ConversionData] = None
    error: str = ""


class BatchConvertResponse(TimedOperationResponse):
    """Response with one entry per requested image, in request order"""

    data: Optional[List[BatchItemData]] = None
