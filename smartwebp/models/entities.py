"""
Data entity model definitions
Core data structures flowing through a single-image conversion
"""

from dataclasses import dataclass
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union

from PIL import Image
from pydantic import ConfigDict, Field, model_validator

from .base import BaseModel

FALLBACK_TAG = "fallback"


# ============ Decoded image ============


@dataclass(frozen=True)
class RasterImage:
    """Decoded pixel buffer and the metadata of its source bytes

    Fields:
        image: Pillow image normalised to RGB or RGBA
        width: Width, px
        height: Height, px
        source_format: Lower-case container format of the source ("jpeg", "webp", ...)
        byte_size: Size of the source bytes
    """

    image: Image.Image
    width: int
    height: int
    source_format: str
    byte_size: int


# ============ Classification ============


class ContentProfile(BaseModel):
    """Statistical summary of an image used to pick an encoding strategy"""

    model_config = ConfigDict(frozen=True)

    entropy: float
    mean_brightness: float
    is_flat: bool
    is_dark: bool
    is_high_detail: bool

    @property
    def classification(self) -> str:
        """First matching flag in selector priority order"""
        if self.is_flat:
            return "flat"
        if self.is_dark:
            return "dark"
        if self.is_high_detail:
            return "high-detail"
        return "standard"


class ImageAnalysis(BaseModel):
    """Classifier report for the review UI"""

    width: int
    height: int
    format: str
    size: int
    entropy: float
    mean: float
    classification: str
    recommendation: str
    reason: str


# ============ Strategies ============


class _Strategy(BaseModel):
    model_config = ConfigDict(frozen=True)


class SkipStrategy(_Strategy):
    """Source is already an optimized target-codec image"""

    kind: Literal["skip"] = "skip"


class LosslessStrategy(_Strategy):
    """Single lossless pass for flat/graphic content"""

    kind: Literal["lossless"] = "lossless"
    effort: int = Field(default=6, ge=0, le=6)


class AdaptiveStrategy(_Strategy):
    """Quality search over an ordered candidate list"""

    kind: Literal["adaptive"] = "adaptive"
    quality_candidates: Tuple[int, ...] = Field(min_length=1)


class CarefulStrategy(_Strategy):
    """Quality search with shadow-preserving encoder options"""

    kind: Literal["careful"] = "careful"
    quality_candidates: Tuple[int, ...] = Field(min_length=1)
    near_lossless_strength: int = Field(default=60, ge=0, le=100)
    smart_subsample: bool = True


class ManualStrategy(_Strategy):
    """One-shot encode at a caller-specified quality"""

    kind: Literal["manual"] = "manual"
    quality: int = Field(ge=0, le=100)


EncodingStrategy = Annotated[
    Union[SkipStrategy, LosslessStrategy, AdaptiveStrategy, CarefulStrategy, ManualStrategy],
    Field(discriminator="kind"),
]


# ============ Results ============


class Accepted(BaseModel):
    """Candidate cleared the similarity threshold (or needs no scoring)"""

    model_config = ConfigDict(frozen=True)

    status: Literal["accepted"] = "accepted"
    quality: int = Field(ge=0, le=100)
    ssim: float = Field(ge=0.0, le=1.0)


class Fallback(BaseModel):
    """No candidate cleared the threshold; flagged for manual review"""

    model_config = ConfigDict(frozen=True)

    status: Literal["fallback"] = "fallback"
    quality: int = Field(ge=0, le=100)
    ssim: float = Field(ge=0.0, le=1.0)


Verdict = Annotated[Union[Accepted, Fallback], Field(discriminator="status")]


class CandidateResult(BaseModel):
    """Encoded payload plus the verdict of the search that produced it"""

    model_config = ConfigDict(frozen=True)

    encoded_bytes: bytes
    strategy_tag: str
    verdict: Verdict

    @model_validator(mode="after")
    def _check_fallback_tag(self) -> "CandidateResult":
        is_fallback = isinstance(self.verdict, Fallback)
        if is_fallback != (self.strategy_tag == FALLBACK_TAG):
            raise ValueError(
                f"strategy_tag {self.strategy_tag!r} does not match verdict {self.verdict.status!r}"
            )
        return self

    @property
    def size_bytes(self) -> int:
        return len(self.encoded_bytes)

    @property
    def quality_used(self) -> int:
        return self.verdict.quality

    @property
    def ssim_score(self) -> float:
        return self.verdict.ssim

    @property
    def accepted(self) -> bool:
        return isinstance(self.verdict, Accepted)


class ConversionOutcome(BaseModel):
    """Result of one conversion call: candidate, diff map and diagnostics"""

    model_config = ConfigDict(frozen=True)

    result: CandidateResult
    diff_bytes: bytes = b""
    original_size: int
    strategy_kind: str
    profile: Optional[ContentProfile] = None

    @property
    def reduction_percent(self) -> int:
        if self.original_size <= 0:
            return 0
        return round((self.original_size - self.result.size_bytes) / self.original_size * 100)

    @property
    def reason(self) -> str:
        return "Good quality" if self.result.accepted else "Quality too low"

    def to_record(self) -> Dict[str, Any]:
        """Flat result record handed to persistence / review collaborators"""
        return {
            "strategyTag": self.result.strategy_tag,
            "qualityUsed": self.result.quality_used,
            "ssimScore": self.result.ssim_score,
            "sizeBytes": self.result.size_bytes,
            "encodedBytes": self.result.encoded_bytes,
            "diffBytes": self.diff_bytes,
            "accepted": self.result.accepted,
        }


class BatchItemResult(BaseModel):
    """One entry of a batch conversion, success or failure"""

    id: str
    success: bool
    outcome: Optional[ConversionOutcome] = None
    error: str = ""
