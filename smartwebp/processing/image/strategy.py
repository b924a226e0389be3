"""
Strategy selection

Maps a content profile plus the source format/size to exactly one
encoding strategy. Rules are priority ordered; the first match wins.
"""

from typing import Optional

from smartwebp.core.settings import ConversionConfig, get_conversion_config
from smartwebp.models.entities import (
    AdaptiveStrategy,
    CarefulStrategy,
    ContentProfile,
    EncodingStrategy,
    LosslessStrategy,
    ManualStrategy,
    SkipStrategy,
)

CAREFUL_QUALITIES = (82, 80, 78)
CAREFUL_NEAR_LOSSLESS = 60
HIGH_DETAIL_QUALITIES = (82, 78, 74, 70)
DEFAULT_QUALITIES = (78, 74, 70, 66)


def select_strategy(
    profile: ContentProfile,
    current_format: str,
    current_size: int,
    allow_skip: bool = True,
    config: Optional[ConversionConfig] = None,
) -> EncodingStrategy:
    """
    Pick the encoding strategy for an image

    Args:
        profile: Classifier output
        current_format: Source container format, e.g. "jpeg"
        current_size: Source size in bytes
        allow_skip: False routes already-optimized sources into encoding anyway
        config: Conversion tunables (project config when omitted)

    Returns:
        One of Skip, Lossless, Careful or Adaptive
    """
    config = config or get_conversion_config()

    if (
        allow_skip
        and current_format.lower() == config.target_format
        and current_size < config.skip_max_bytes
    ):
        return SkipStrategy()

    if profile.is_flat:
        return LosslessStrategy(effort=config.lossless_effort)

    if profile.is_dark:
        return CarefulStrategy(
            quality_candidates=CAREFUL_QUALITIES,
            near_lossless_strength=CAREFUL_NEAR_LOSSLESS,
            smart_subsample=True,
        )

    if profile.is_high_detail:
        return AdaptiveStrategy(quality_candidates=HIGH_DETAIL_QUALITIES)

    return AdaptiveStrategy(quality_candidates=DEFAULT_QUALITIES)


def describe_strategy(strategy: EncodingStrategy) -> str:
    """Human readable reason for a strategy choice"""
    if isinstance(strategy, SkipStrategy):
        return "Already optimized WebP"
    if isinstance(strategy, LosslessStrategy):
        return "Flat/graphic image detected"
    if isinstance(strategy, CarefulStrategy):
        return "Dark image detected, preserving shadow detail"
    if isinstance(strategy, ManualStrategy):
        return f"Manual override at quality {strategy.quality}"
    if strategy.quality_candidates == HIGH_DETAIL_QUALITIES:
        return "High-detail image, adaptive quality search"
    return "Standard high-quality conversion"
