"""
Quality search

Drives a single-image conversion:
decode → classify → select strategy → encode/compare loop → diff map

Strategy branches:
- Skip: original bytes returned untouched
- Lossless: one lossless pass, similarity fixed at 1.0
- Adaptive / Careful: candidates tried in the order given; the first one
  scoring above the SSIM threshold wins, otherwise the first candidate is
  re-encoded as a fallback flagged for manual review
"""

from typing import Optional

from smartwebp.core.errors import EncodeError
from smartwebp.core.logger import get_logger
from smartwebp.core.settings import ConversionConfig, get_conversion_config
from smartwebp.models.entities import (
    FALLBACK_TAG,
    Accepted,
    AdaptiveStrategy,
    CandidateResult,
    CarefulStrategy,
    ContentProfile,
    ConversionOutcome,
    EncodingStrategy,
    Fallback,
    LosslessStrategy,
    ManualStrategy,
    RasterImage,
    SkipStrategy,
)

from .analysis import ImageAnalyzer
from .diff import DiffMapRenderer
from .encoder import EncodeOptions, WebPEncoder
from .perceptual import PerceptualComparator
from .strategy import select_strategy

logger = get_logger(__name__)

LOSSLESS_QUALITY = 100
PERFECT_SCORE = 1.0


class ImageConverter:
    """
    Content-adaptive WebP converter with a perceptual quality floor

    Every call recomputes decode, profile and candidates; nothing is kept
    between calls, so one instance can serve any number of images.
    """

    def __init__(
        self,
        config: Optional[ConversionConfig] = None,
        analyzer: Optional[ImageAnalyzer] = None,
        encoder: Optional[WebPEncoder] = None,
        comparator: Optional[PerceptualComparator] = None,
        diff_renderer: Optional[DiffMapRenderer] = None,
    ):
        """
        Args:
            config: Conversion tunables (project config when omitted)
            analyzer: Content classifier
            encoder: WebP encoder
            comparator: SSIM comparator
            diff_renderer: Diff map renderer
        """
        self.config = config or get_conversion_config()
        self.analyzer = analyzer or ImageAnalyzer(self.config)
        self.encoder = encoder or WebPEncoder()
        self.comparator = comparator or PerceptualComparator(self.config.comparison_canvas)
        self.diff_renderer = diff_renderer or DiffMapRenderer(
            (self.config.preview_width, self.config.preview_height)
        )

    def convert(
        self, original: bytes, force: bool = False, with_diff: bool = True
    ) -> ConversionOutcome:
        """
        Convert one image

        Args:
            original: Source image bytes
            force: Encode even when the source is already an optimized WebP
            with_diff: Render the review diff map for encoded results

        Returns:
            ConversionOutcome with the chosen candidate

        Raises:
            DecodeError, EncodeError, ComparisonError: propagated, never retried
        """
        raster = self.analyzer.decode(original)
        profile = self.analyzer.classify(raster)
        strategy = select_strategy(
            profile,
            raster.source_format,
            raster.byte_size,
            allow_skip=not force,
            config=self.config,
        )
        logger.debug(f"Selected strategy {strategy.kind} (force={force})")

        result = self.run_strategy(original, raster, strategy)
        return self._outcome(original, result, strategy, profile, with_diff)

    def convert_at_quality(
        self, original: bytes, quality: int, with_diff: bool = True
    ) -> ConversionOutcome:
        """
        One-shot encode at an explicit quality, bypassing the automatic search

        The measured score still decides between accepted and fallback.

        Raises:
            EncodeError: if quality is outside 0-100
        """
        if not 0 <= quality <= 100:
            raise EncodeError(f"Quality out of range: {quality}")

        raster = self.analyzer.decode(original)
        strategy = ManualStrategy(quality=quality)
        result = self.run_strategy(original, raster, strategy)
        return self._outcome(original, result, strategy, None, with_diff)

    def run_strategy(
        self, original: bytes, raster: RasterImage, strategy: EncodingStrategy
    ) -> CandidateResult:
        """Execute one strategy branch and return its single candidate"""
        if isinstance(strategy, SkipStrategy):
            return CandidateResult(
                encoded_bytes=original,
                strategy_tag=strategy.kind,
                verdict=Accepted(quality=LOSSLESS_QUALITY, ssim=PERFECT_SCORE),
            )

        if isinstance(strategy, LosslessStrategy):
            encoded = self.encoder.encode(raster.image, EncodeOptions.for_strategy(strategy))
            logger.info(
                f"Lossless: {raster.byte_size / 1024:.1f}KB → {len(encoded) / 1024:.1f}KB"
            )
            return CandidateResult(
                encoded_bytes=encoded,
                strategy_tag=strategy.kind,
                verdict=Accepted(quality=LOSSLESS_QUALITY, ssim=PERFECT_SCORE),
            )

        if isinstance(strategy, ManualStrategy):
            encoded = self.encoder.encode(raster.image, EncodeOptions.for_strategy(strategy))
            score = self.comparator.compare(original, encoded)
            logger.info(f"Manual q={strategy.quality}: ssim={score:.4f}")
            return self._scored(encoded, strategy.kind, strategy.quality, score)

        return self._search(original, raster, strategy)

    def _search(
        self,
        original: bytes,
        raster: RasterImage,
        strategy: AdaptiveStrategy | CarefulStrategy,
    ) -> CandidateResult:
        threshold = self.config.ssim_threshold

        for quality in strategy.quality_candidates:
            options = EncodeOptions.for_strategy(strategy, quality)
            encoded = self.encoder.encode(raster.image, options)
            score = self.comparator.compare(original, encoded)

            logger.debug(
                f"{strategy.kind} q={quality}: {len(encoded) / 1024:.1f}KB, ssim={score:.4f}"
            )

            if score > threshold:
                logger.info(
                    f"Accepted {strategy.kind} q={quality}: "
                    f"{raster.byte_size / 1024:.1f}KB → {len(encoded) / 1024:.1f}KB, ssim={score:.4f}"
                )
                return CandidateResult(
                    encoded_bytes=encoded,
                    strategy_tag=strategy.kind,
                    verdict=Accepted(quality=quality, ssim=score),
                )

        # Nothing cleared the threshold: fall back to the first candidate
        fallback_quality = strategy.quality_candidates[0]
        encoded = self.encoder.encode(
            raster.image, EncodeOptions.for_strategy(strategy, fallback_quality)
        )
        score = self.comparator.compare(original, encoded)

        logger.info(
            f"No {strategy.kind} candidate above ssim {threshold}; "
            f"fallback q={fallback_quality} ssim={score:.4f} needs manual review"
        )
        return CandidateResult(
            encoded_bytes=encoded,
            strategy_tag=FALLBACK_TAG,
            verdict=Fallback(quality=fallback_quality, ssim=score),
        )

    def _scored(self, encoded: bytes, tag: str, quality: int, score: float) -> CandidateResult:
        if score > self.config.ssim_threshold:
            return CandidateResult(
                encoded_bytes=encoded,
                strategy_tag=tag,
                verdict=Accepted(quality=quality, ssim=score),
            )
        return CandidateResult(
            encoded_bytes=encoded,
            strategy_tag=FALLBACK_TAG,
            verdict=Fallback(quality=quality, ssim=score),
        )

    def _outcome(
        self,
        original: bytes,
        result: CandidateResult,
        strategy: EncodingStrategy,
        profile: Optional[ContentProfile],
        with_diff: bool,
    ) -> ConversionOutcome:
        diff = b""
        if with_diff and not isinstance(strategy, SkipStrategy):
            diff = self.diff_renderer.render(original, result.encoded_bytes)

        return ConversionOutcome(
            result=result,
            diff_bytes=diff,
            original_size=len(original),
            strategy_kind=strategy.kind,
            profile=profile,
        )
