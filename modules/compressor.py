"""
modules/compressor.py — Compress an image to a target file size.

Lossy encoders (JPEG, WebP) trade quality for size, so the requested size is
found by bisecting the quality range. Lossless formats (PNG, BMP) have no
quality knob and are encoded exactly once.

The encoder is passed in as a callable shaped like
image_processor.encode_image(image, fmt, quality) -> bytes, so the search
never depends on a particular imaging backend.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from PIL import Image

from config import COMPRESSION_CONFIG
from modules.image_processor import encode_image, is_lossy, size_kb

logger = logging.getLogger(__name__)

Encoder = Callable[[Image.Image, str, Optional[float]], bytes]

# Fixed bounds, never adapted to the image content
QUALITY_FLOOR = COMPRESSION_CONFIG["quality_floor"]
QUALITY_CEILING = COMPRESSION_CONFIG["quality_ceiling"]


@dataclass(frozen=True)
class EncodeAttempt:
    quality: float | None
    data: bytes
    size_kb: int


@dataclass(frozen=True)
class SearchResult:
    data: bytes
    size_kb: int
    quality: float | None  # None for lossless formats
    attempts: int  # number of encoder calls made

    def summary(self, fmt: str) -> str:
        """One-line result shown to the user after compressing."""
        if self.quality is None:
            return f"Saved as {fmt.split('/')[1].upper()}: {self.size_kb} KB (lossless, no quality search)."
        return f"Compressed to {self.size_kb} KB at quality {self.quality:.2f} ({self.attempts} encodes)."


def _encode(encoder: Encoder, image: Image.Image, fmt: str, quality: float | None) -> EncodeAttempt:
    data = encoder(image, fmt, quality)
    return EncodeAttempt(quality=quality, data=data, size_kb=size_kb(data))


def _result(attempt: EncodeAttempt, attempts: int) -> SearchResult:
    return SearchResult(
        data=attempt.data,
        size_kb=attempt.size_kb,
        quality=attempt.quality,
        attempts=attempts,
    )


def compress_to_target(
    image: Image.Image,
    target_kb: float,
    fmt: str,
    encoder: Encoder = encode_image,
    max_iterations: int = COMPRESSION_CONFIG["max_iterations"],
    tolerance: float = COMPRESSION_CONFIG["tolerance"],
) -> SearchResult:
    """
    Encode an image so its size is as close as possible to target_kb.

    - Lossless formats: one encode at canonical settings, whatever the target.
    - Lossy formats: probe at maximum quality first. If that already fits,
      it is returned as-is. Otherwise bisect quality for up to max_iterations
      steps, returning early once a result lands within tolerance (relative
      to the target), else the attempt closest to the target across all
      encodes, including the first probe.

    Encodes run strictly one after another: at most max_iterations + 1 calls.

    Precondition: target_kb must be positive. This is not checked here;
    callers reject zero or negative targets before calling.

    Args:
        image: Decoded image to encode
        target_kb: Desired size in kilobytes
        fmt: Output MIME type
        encoder: Callable (image, fmt, quality) -> bytes
        max_iterations: Bisection step ceiling
        tolerance: Early-exit distance as a fraction of target_kb

    Returns:
        SearchResult with the chosen bytes, their size in KB and the quality used

    Raises:
        EncodeUnavailable: Propagated unchanged from the encoder; there is no
                           partial result and no retry
    """
    if not is_lossy(fmt):
        attempt = _encode(encoder, image, fmt, None)
        logger.debug("%s is lossless, encoded once at %d KB", fmt, attempt.size_kb)
        return _result(attempt, 1)

    low, high = QUALITY_FLOOR, QUALITY_CEILING

    best = _encode(encoder, image, fmt, high)
    attempts = 1
    if best.size_kb <= target_kb:
        logger.debug("Max quality is %d KB, already within %s KB", best.size_kb, target_kb)
        return _result(best, attempts)

    best_diff = abs(best.size_kb - target_kb)

    for _ in range(max_iterations):
        mid = (low + high) / 2
        current = _encode(encoder, image, fmt, mid)
        attempts += 1

        diff = abs(current.size_kb - target_kb)
        if diff < best_diff:
            best, best_diff = current, diff

        if diff < target_kb * tolerance:
            logger.info(
                "Reached %d KB (target %s KB) at quality %.3f after %d encodes",
                current.size_kb, target_kb, mid, attempts,
            )
            return _result(current, attempts)

        if current.size_kb > target_kb:
            high = mid
        else:
            low = mid

    logger.info(
        "No encode within tolerance of %s KB; closest was %d KB at quality %.3f",
        target_kb, best.size_kb, best.quality,
    )
    return _result(best, attempts)
