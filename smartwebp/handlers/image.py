"""
Image conversion handlers.

Operations exposed to the review UI:
- Analyze an image (classification + recommended strategy)
- Convert an image (optionally forcing past the already-optimized check)
- Retry a conversion at an explicit quality
- Batch convert with per-item results
"""

import asyncio
import base64
from datetime import datetime
from typing import Optional

from smartwebp.core.errors import ConversionError
from smartwebp.core.logger import get_logger
from smartwebp.models import (
    AnalyzeImageRequest,
    AnalyzeImageResponse,
    BatchConvertRequest,
    BatchConvertResponse,
    BatchItemData,
    ConversionData,
    ConversionOutcome,
    ConvertImageRequest,
    ConvertImageResponse,
    RetryImageRequest,
)
from smartwebp.services.image_service import ImageService, get_image_service

from . import api_handler

logger = get_logger(__name__)

_service: Optional[ImageService] = None


def set_image_service(service: Optional[ImageService]) -> None:
    """Override the service used by handlers (None restores the default)"""
    global _service
    _service = service


def _get_service() -> ImageService:
    return _service or get_image_service()


def _to_conversion_data(outcome: ConversionOutcome) -> ConversionData:
    result = outcome.result
    return ConversionData(
        original_size=outcome.original_size,
        converted_size=result.size_bytes,
        reduction_percent=outcome.reduction_percent,
        ssim_score=result.ssim_score,
        quality=result.quality_used,
        strategy=result.strategy_tag,
        accepted=result.accepted,
        reason=outcome.reason,
        converted_blob=base64.b64encode(result.encoded_bytes).decode("utf-8"),
        diff_blob=base64.b64encode(outcome.diff_bytes).decode("utf-8"),
    )


@api_handler(
    body=AnalyzeImageRequest,
    method="POST",
    path="/image/analyze",
    tags=["image"],
)
async def analyze_image(body: AnalyzeImageRequest) -> AnalyzeImageResponse:
    """
    Classify an image and report the strategy a conversion would use

    Returns:
    - Dimensions, format and size
    - Entropy and mean brightness
    - Classification, recommendation and reason
    """
    try:
        analysis = await asyncio.to_thread(_get_service().analyze, body.image_url)
        return AnalyzeImageResponse(
            success=True,
            data=analysis,
            timestamp=datetime.now().isoformat(),
        )
    except ConversionError as e:
        logger.warning(f"Analyze failed for {body.image_url}: {e}")
        return AnalyzeImageResponse(
            success=False,
            message="Failed to analyze image",
            error=str(e),
            timestamp=datetime.now().isoformat(),
        )
    except Exception as e:
        logger.error(f"Unexpected failure handling {body.image_url}: {e}", exc_info=True)
        return AnalyzeImageResponse(
            success=False,
            message="Failed to analyze image",
            error=str(e),
            timestamp=datetime.now().isoformat(),
        )


@api_handler(
    body=ConvertImageRequest,
    method="POST",
    path="/image/convert",
    tags=["image"],
)
async def convert_image(body: ConvertImageRequest) -> ConvertImageResponse:
    """Convert one image to WebP with the content-adaptive strategy"""
    try:
        outcome = await asyncio.to_thread(
            _get_service().convert, body.image_url, body.force_convert
        )
        return ConvertImageResponse(
            success=True,
            message=outcome.reason,
            data=_to_conversion_data(outcome),
            timestamp=datetime.now().isoformat(),
        )
    except ConversionError as e:
        logger.warning(f"Convert failed for {body.image_url}: {e}")
        return ConvertImageResponse(
            success=False,
            message="Failed to convert image",
            error=str(e),
            timestamp=datetime.now().isoformat(),
        )
    except Exception as e:
        logger.error(f"Unexpected failure handling {body.image_url}: {e}", exc_info=True)
        return ConvertImageResponse(
            success=False,
            message="Failed to convert image",
            error=str(e),
            timestamp=datetime.now().isoformat(),
        )


@api_handler(
    body=RetryImageRequest,
    method="POST",
    path="/image/retry",
    tags=["image"],
)
async def retry_image(body: RetryImageRequest) -> ConvertImageResponse:
    """Re-encode once at the requested quality instead of searching"""
    try:
        outcome = await asyncio.to_thread(
            _get_service().retry_at_quality, body.image_url, body.quality
        )
        return ConvertImageResponse(
            success=True,
            message=outcome.reason,
            data=_to_conversion_data(outcome),
            timestamp=datetime.now().isoformat(),
        )
    except ConversionError as e:
        logger.warning(f"Retry at q={body.quality} failed for {body.image_url}: {e}")
        return ConvertImageResponse(
            success=False,
            message="Failed to convert image",
            error=str(e),
            timestamp=datetime.now().isoformat(),
        )
    except Exception as e:
        logger.error(f"Unexpected failure handling {body.image_url}: {e}", exc_info=True)
        return ConvertImageResponse(
            success=False,
            message="Failed to convert image",
            error=str(e),
            timestamp=datetime.now().isoformat(),
        )


@api_handler(
    body=BatchConvertRequest,
    method="POST",
    path="/image/batch-convert",
    tags=["image"],
)
async def batch_convert_images(body: BatchConvertRequest) -> BatchConvertResponse:
    """
    Convert several images sequentially

    The response holds one entry per requested image, in request order;
    failed entries carry the error message.
    """
    results = await asyncio.to_thread(
        _get_service().batch_convert, body.images, body.force_convert
    )

    items = [
        BatchItemData(
            id=r.id,
            success=r.success,
            result=_to_conversion_data(r.outcome) if r.outcome else None,
            error=r.error,
        )
        for r in results
    ]
    failed = sum(1 for item in items if not item.success)

    return BatchConvertResponse(
        success=failed == 0,
        message=f"Converted {len(items) - failed}/{len(items)} images",
        data=items,
        timestamp=datetime.now().isoformat(),
    )
