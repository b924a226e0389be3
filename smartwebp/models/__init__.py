"""
Models for conversion results and handler communication
"""

from .base import (
    BaseModel,
    OperationDataResponse,
    OperationResponse,
    TimedOperationResponse,
)
from .entities import (
    Accepted,
    AdaptiveStrategy,
    BatchItemResult,
    CandidateResult,
    CarefulStrategy,
    ContentProfile,
    ConversionOutcome,
    EncodingStrategy,
    Fallback,
    ImageAnalysis,
    LosslessStrategy,
    ManualStrategy,
    RasterImage,
    SkipStrategy,
    Verdict,
)
from .requests import (
    AnalyzeImageRequest,
    BatchConvertRequest,
    BatchImageItem,
    ConvertImageRequest,
    RetryImageRequest,
)
from .responses import (
    AnalyzeImageResponse,
    BatchConvertResponse,
    BatchItemData,
    ConversionData,
    ConvertImageResponse,
)

__all__ = [
    # Base
    "BaseModel",
    "OperationResponse",
    "OperationDataResponse",
    "TimedOperationResponse",
    # Entities
    "RasterImage",
    "ContentProfile",
    "ImageAnalysis",
    "SkipStrategy",
    "LosslessStrategy",
    "AdaptiveStrategy",
    "CarefulStrategy",
    "ManualStrategy",
    "EncodingStrategy",
    "Accepted",
    "Fallback",
    "Verdict",
    "CandidateResult",
    "ConversionOutcome",
    "BatchItemResult",
    # Requests
    "AnalyzeImageRequest",
    "ConvertImageRequest",
    "RetryImageRequest",
    "BatchImageItem",
    "BatchConvertRequest",
    # Responses
    "ConversionData",
    "AnalyzeImageResponse",
    "ConvertImageResponse",
    "BatchItemData",
    "BatchConvertResponse",
]
