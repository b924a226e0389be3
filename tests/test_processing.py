import io

import pytest
from PIL import Image

from conftest import (
    ConstantComparator,
    FailingComparator,
    RecordingEncoder,
    ScriptedComparator,
    encode,
)
from smartwebp.core.errors import ComparisonError, DecodeError, EncodeError
from smartwebp.core.settings import ConversionConfig
from smartwebp.processing.image import ImageConverter, WebPEncoder


def converter(comparator=None, encoder=None, **config):
    return ImageConverter(
        config=ConversionConfig(comparison_canvas=64, preview_width=80, preview_height=60, **config),
        comparator=comparator,
        encoder=encoder,
    )


def test_high_detail_first_candidate_accepted(photo_jpeg):
    comparator = ScriptedComparator([0.985])
    encoder = RecordingEncoder()

    outcome = converter(comparator, encoder).convert(photo_jpeg)
    result = outcome.result

    assert outcome.strategy_kind == "adaptive"
    assert result.accepted
    assert result.strategy_tag == "adaptive"
    assert result.quality_used == 82
    assert result.ssim_score == pytest.approx(0.985)
    assert [o.quality for o in encoder.options] == [82]
    assert result.size_bytes == len(result.encoded_bytes)
    assert Image.open(io.BytesIO(result.encoded_bytes)).format == "WEBP"


def test_search_stops_at_first_candidate_above_threshold(photo_jpeg):
    comparator = ScriptedComparator([0.90, 0.95, 0.97])
    encoder = RecordingEncoder()

    result = converter(comparator, encoder).convert(photo_jpeg).result

    assert [o.quality for o in encoder.options] == [82, 78, 74]
    assert result.quality_used == 74
    assert result.accepted
    assert comparator.scores == []


def test_threshold_is_strict(photo_jpeg):
    comparator = ScriptedComparator([0.96, 0.96, 0.96, 0.96, 0.96])
    result = converter(comparator).convert(photo_jpeg).result
    assert not result.accepted
    assert result.strategy_tag == "fallback"


def test_flat_logo_is_lossless(logo_png):
    comparator = ConstantComparator(0.0)
    encoder = RecordingEncoder()

    outcome = converter(comparator, encoder).convert(logo_png)
    result = outcome.result

    assert outcome.strategy_kind == "lossless"
    assert result.strategy_tag == "lossless"
    assert result.ssim_score == 1.0
    assert result.quality_used == 100
    assert result.accepted
    assert comparator.calls == 0
    assert len(encoder.options) == 1 and encoder.options[0].lossless
    assert outcome.diff_bytes


def test_small_webp_is_returned_unchanged(small_webp):
    comparator = ConstantComparator(0.0)
    encoder = RecordingEncoder()

    outcome = converter(comparator, encoder).convert(small_webp, force=False)

    assert outcome.result.encoded_bytes == small_webp
    assert outcome.result.ssim_score == 1.0
    assert outcome.result.quality_used == 100
    assert outcome.result.strategy_tag == "skip"
    assert outcome.result.accepted
    assert outcome.diff_bytes == b""
    assert encoder.options == []
    assert comparator.calls == 0


def test_force_routes_small_webp_into_search(small_webp):
    encoder = RecordingEncoder()
    outcome = converter(ConstantComparator(0.99), encoder).convert(small_webp, force=True)

    assert outcome.strategy_kind == "adaptive"
    assert outcome.result.encoded_bytes != small_webp
    assert encoder.options


def test_dark_photo_falls_back_to_first_candidate(dark_png):
    comparator = ScriptedComparator([0.90, 0.91, 0.92, 0.93])
    encoder = RecordingEncoder()

    outcome = converter(comparator, encoder).convert(dark_png)
    result = outcome.result

    assert outcome.strategy_kind == "careful"
    assert [o.quality for o in encoder.options] == [82, 80, 78, 82]
    assert all(o.near_lossless == 60 and o.smart_subsample for o in encoder.options)
    assert not result.accepted
    assert result.strategy_tag == "fallback"
    assert result.quality_used == 82
    assert result.ssim_score == pytest.approx(0.93)
    assert outcome.reason == "Quality too low"


def test_dark_photo_accepted_with_careful_tag(dark_png):
    result = converter(ScriptedComparator([0.99])).convert(dark_png).result
    assert result.accepted
    assert result.strategy_tag == "careful"
    assert result.quality_used == 82


def test_configured_threshold_is_used(photo_jpeg):
    result = converter(ScriptedComparator([0.91]), ssim_threshold=0.9).convert(photo_jpeg).result
    assert result.accepted


def test_manual_quality_bypasses_search(photo_jpeg):
    encoder = RecordingEncoder()
    outcome = converter(ScriptedComparator([0.97]), encoder).convert_at_quality(photo_jpeg, 55)

    assert outcome.strategy_kind == "manual"
    assert [o.quality for o in encoder.options] == [55]
    assert outcome.result.strategy_tag == "manual"
    assert outcome.result.quality_used == 55
    assert outcome.result.accepted


def test_manual_quality_below_threshold_is_flagged(photo_jpeg):
    outcome = converter(ScriptedComparator([0.5])).convert_at_quality(photo_jpeg, 10)
    assert not outcome.result.accepted
    assert outcome.result.strategy_tag == "fallback"
    assert outcome.result.quality_used == 10


@pytest.mark.parametrize("quality", [-1, 101])
def test_manual_quality_out_of_range_raises_encode_error(photo_jpeg, quality):
    comparator = ConstantComparator(1.0)
    with pytest.raises(EncodeError, match="out of range"):
        converter(comparator).convert_at_quality(photo_jpeg, quality)
    assert comparator.calls == 0


def test_decode_error_propagates():
    with pytest.raises(DecodeError):
        converter(ConstantComparator(1.0)).convert(b"garbage")


def test_comparison_error_aborts(photo_jpeg):
    with pytest.raises(ComparisonError):
        converter(FailingComparator()).convert(photo_jpeg)


def test_encode_error_aborts(photo_jpeg):
    class BrokenEncoder(WebPEncoder):
        def encode(self, image, options):
            raise EncodeError("rejected")

    with pytest.raises(EncodeError):
        converter(ConstantComparator(1.0), BrokenEncoder()).convert(photo_jpeg)


def test_diff_can_be_skipped(photo_jpeg):
    outcome = converter(ConstantComparator(0.99)).convert(photo_jpeg, with_diff=False)
    assert outcome.diff_bytes == b""


def test_pipeline_is_deterministic(photo_jpeg):
    first = converter().convert(photo_jpeg)
    second = converter().convert(photo_jpeg)

    assert first.result.encoded_bytes == second.result.encoded_bytes
    assert abs(first.result.ssim_score - second.result.ssim_score) < 1e-6
    assert first.diff_bytes == second.diff_bytes


@pytest.mark.parametrize("fixture", ["photo_jpeg", "dark_png"])
def test_real_comparator_respects_acceptance_invariant(request, fixture):
    original = request.getfixturevalue(fixture)
    result = converter().convert(original).result

    assert 0.0 <= result.ssim_score <= 1.0
    if result.accepted:
        assert result.ssim_score > 0.96
    else:
        assert result.strategy_tag == "fallback"


def test_smooth_image_is_accepted_with_real_comparator():
    smooth = Image.new("RGB", (64, 64))
    smooth.putdata([(x * 4, y * 4, 128) for y in range(64) for x in range(64)])

    result = converter().convert(encode(smooth, "PNG")).result

    assert result.accepted
    assert result.ssim_score > 0.96
