import io

import numpy as np
import pytest
from PIL import Image

from conftest import gradient_image, noise_image
from smartwebp.core.errors import EncodeError
from smartwebp.models.entities import (
    AdaptiveStrategy,
    CarefulStrategy,
    LosslessStrategy,
    ManualStrategy,
    SkipStrategy,
)
from smartwebp.processing.image.encoder import EncodeOptions, WebPEncoder, apply_near_lossless


def decode(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def test_encodes_webp():
    data = WebPEncoder().encode(gradient_image(), EncodeOptions(quality=80))
    img = decode(data)
    assert img.format == "WEBP"
    assert img.size == (96, 64)


def test_encoding_is_deterministic():
    encoder = WebPEncoder()
    options = EncodeOptions(quality=74)
    assert encoder.encode(gradient_image(), options) == encoder.encode(gradient_image(), options)


def test_lossless_round_trips_pixels():
    src = noise_image(size=(32, 32))
    data = WebPEncoder().encode(src, EncodeOptions(lossless=True, effort=6, quality=100))
    assert decode(data).convert("RGB").tobytes() == src.tobytes()


def test_rgba_is_supported():
    src = Image.new("RGBA", (16, 16), (10, 20, 30, 100))
    data = WebPEncoder().encode(src, EncodeOptions(quality=80))
    assert decode(data).mode == "RGBA"


@pytest.mark.parametrize("image", [gradient_image(), noise_image(size=(96, 96), seed=7)])
def test_size_is_monotonic_in_quality(image):
    encoder = WebPEncoder()
    sizes = [len(encoder.encode(image, EncodeOptions(quality=q))) for q in (20, 50, 80, 95)]
    assert sizes == sorted(sizes)


@pytest.mark.parametrize(
    "options",
    [
        EncodeOptions(quality=101),
        EncodeOptions(quality=-1),
        EncodeOptions(effort=7),
        EncodeOptions(near_lossless=150),
        EncodeOptions(lossless=True, smart_subsample=True),
    ],
)
def test_invalid_options_raise(options):
    with pytest.raises(EncodeError):
        WebPEncoder().encode(gradient_image(), options)


def test_unsupported_mode_raises():
    with pytest.raises(EncodeError):
        WebPEncoder().encode(Image.new("CMYK", (4, 4)), EncodeOptions())


def test_options_for_lossless():
    options = EncodeOptions.for_strategy(LosslessStrategy(effort=5))
    assert options.lossless and options.effort == 5 and options.quality == 100


def test_options_for_careful():
    strategy = CarefulStrategy(quality_candidates=(82, 80, 78))
    options = EncodeOptions.for_strategy(strategy, 80)
    assert options.quality == 80
    assert options.near_lossless == 60
    assert options.smart_subsample


def test_options_for_adaptive_need_quality():
    with pytest.raises(EncodeError):
        EncodeOptions.for_strategy(AdaptiveStrategy(quality_candidates=(78,)))
    assert EncodeOptions.for_strategy(AdaptiveStrategy(quality_candidates=(78,)), 66).quality == 66


def test_options_for_manual_and_skip():
    assert EncodeOptions.for_strategy(ManualStrategy(quality=42)).quality == 42
    with pytest.raises(EncodeError):
        EncodeOptions.for_strategy(SkipStrategy())


def test_careful_options_change_the_encoded_bytes():
    encoder = WebPEncoder()
    src = noise_image(size=(64, 64), seed=3)

    plain = encoder.encode(src, EncodeOptions(quality=80, effort=6))
    careful = encoder.encode(
        src, EncodeOptions(quality=80, near_lossless=60, smart_subsample=True)
    )
    strongest = encoder.encode(
        src, EncodeOptions(quality=80, near_lossless=0, smart_subsample=True)
    )

    assert plain != careful
    assert careful != strongest


def test_near_lossless_full_strength_is_identity():
    src = noise_image(size=(32, 32))
    assert apply_near_lossless(src, 100) is src


def test_near_lossless_error_is_bounded():
    src = noise_image(size=(48, 48), seed=5)
    out = apply_near_lossless(src, 60)

    before = np.asarray(src, dtype=np.int32)
    after = np.asarray(out, dtype=np.int32)
    diff = np.abs(after - before)
    assert diff.max() <= 2
    assert diff.any()
    # Border rows and columns are copied verbatim
    assert (diff[0] == 0).all() and (diff[-1] == 0).all()
    assert (diff[:, 0] == 0).all() and (diff[:, -1] == 0).all()


def test_near_lossless_keeps_smooth_areas_exact():
    src = Image.new("RGB", (16, 16), (101, 55, 203))
    out = apply_near_lossless(src, 0)
    assert out.tobytes() == src.tobytes()


def test_near_lossless_shrinks_lossless_output():
    encoder = WebPEncoder()
    src = noise_image(size=(64, 64), seed=9)

    exact = encoder.encode(src, EncodeOptions(lossless=True, quality=100))
    near = encoder.encode(src, EncodeOptions(lossless=True, quality=100, near_lossless=40))

    assert len(near) < len(exact)
