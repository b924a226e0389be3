"""
Conversion error taxonomy

None of these are retried inside the core; each one is terminal for the
single-image operation that raised it.
"""


class ConversionError(Exception):
    """Base class for every failure of a single-image conversion"""


class FetchError(ConversionError):
    """Source bytes could not be obtained (network failure or non-success response)"""


class DecodeError(ConversionError):
    """Image bytes are malformed, truncated or not an image at all"""


class EncodeError(ConversionError):
    """Encoder rejected the input or the quality/options combination"""


class ComparisonError(ConversionError):
    """Resize or scoring failure during perceptual comparison"""
