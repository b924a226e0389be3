import io
from typing import Iterable, List

import numpy as np
import pytest
from PIL import Image, ImageDraw

from smartwebp.core.errors import ComparisonError
from smartwebp.core.settings import ConversionConfig
from smartwebp.processing.image import WebPEncoder


def encode(img: Image.Image, fmt: str, **params) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt, **params)
    return buf.getvalue()


def noise_image(size=(64, 64), low=0, high=256, seed=0, gray=False) -> Image.Image:
    rng = np.random.default_rng(seed)
    w, h = size
    if gray:
        plane = rng.integers(low, high, size=(h, w), dtype=np.uint8)
        arr = np.stack([plane, plane, plane], axis=-1)
    else:
        arr = rng.integers(low, high, size=(h, w, 3), dtype=np.uint8)
    return Image.fromarray(arr, mode="RGB")


def gradient_image(size=(96, 64), seed=1, noise=12) -> Image.Image:
    rng = np.random.default_rng(seed)
    w, h = size
    x = np.linspace(40, 220, w)
    y = np.linspace(0, 30, h)[:, None]
    base = x[None, :] + y
    arr = np.stack([base, base * 0.8 + 20, 255 - base], axis=-1)
    arr = arr + rng.normal(0, noise, size=arr.shape)
    return Image.fromarray(np.clip(arr, 0, 255).astype(np.uint8), mode="RGB")


def logo_image(size=(96, 96)) -> Image.Image:
    img = Image.new("RGB", size, (255, 255, 255))
    draw = ImageDraw.Draw(img)
    draw.rectangle([16, 16, 48, 48], fill=(220, 30, 30))
    draw.ellipse([52, 40, 84, 72], fill=(20, 60, 200))
    return img


class ScriptedComparator:
    """Returns pre-set scores in order and records each call"""

    def __init__(self, scores: Iterable[float]):
        self.scores: List[float] = list(scores)
        self.calls: List[tuple] = []

    def compare(self, original: bytes, candidate: bytes) -> float:
        self.calls.append((original, candidate))
        if not self.scores:
            raise AssertionError("comparator called more often than scripted")
        return self.scores.pop(0)


class ConstantComparator:
    def __init__(self, score: float):
        self.score = score
        self.calls = 0

    def compare(self, original: bytes, candidate: bytes) -> float:
        self.calls += 1
        return self.score


class FailingComparator:
    def compare(self, original: bytes, candidate: bytes) -> float:
        raise ComparisonError("scoring failed")


class RecordingEncoder(WebPEncoder):
    """Real WebP encoder that records the options of every pass"""

    def __init__(self):
        self.options = []

    def encode(self, image, options):
        self.options.append(options)
        return super().encode(image, options)


@pytest.fixture
def config() -> ConversionConfig:
    return ConversionConfig()


@pytest.fixture
def photo_jpeg() -> bytes:
    """High-entropy, mid-brightness photographic stand-in"""
    return encode(noise_image(), "JPEG", quality=95)


@pytest.fixture
def logo_png() -> bytes:
    """Flat vector-style logo"""
    return encode(logo_image(), "PNG")


@pytest.fixture
def dark_png() -> bytes:
    """Underexposed image: grey noise in 0..50"""
    return encode(noise_image(size=(96, 96), high=51, gray=True), "PNG")


@pytest.fixture
def small_webp() -> bytes:
    return encode(noise_image(seed=3), "WEBP", quality=80)


@pytest.fixture
def gradient_png() -> bytes:
    return encode(gradient_image(), "PNG")
