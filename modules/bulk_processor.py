"""
modules/bulk_processor.py — Resize (and optionally compress) many images at once.

Each file is scaled down so its longest side fits BulkOptions.max_dimension,
encoded to the chosen format and added to a ZIP archive. When a target size
is given for a lossy format, the compression search picks the quality.

A file that cannot be decoded or encoded is reported as failed in its row;
the rest of the batch still runs.
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass, field

from config import BULK_CONFIG
from modules.compressor import Encoder, compress_to_target
from modules.editor_state import download_filename
from modules.image_processor import (
    EncodeUnavailable,
    encode_image,
    fit_within,
    format_info,
    is_lossy,
    load_image,
    resize_image,
    size_kb,
)

logger = logging.getLogger(__name__)


@dataclass
class BulkOptions:
    max_dimension: int = BULK_CONFIG["default_max_dimension"]
    fmt: str = BULK_CONFIG["default_format"]
    target_kb: int | None = None

    def __post_init__(self):
        if self.max_dimension < 1:
            raise ValueError("Maximum dimension must be at least 1px")
        if self.target_kb is not None and self.target_kb <= 0:
            raise ValueError("Target size must be a positive number of KB")
        if self.fmt == "application/pdf":
            raise ValueError("Bulk resize writes images, not PDF documents")
        try:
            format_info(self.fmt)
        except EncodeUnavailable as e:
            raise ValueError(str(e)) from None


@dataclass
class BulkResult:
    rows: list[dict] = field(default_factory=list)
    archive: bytes = b""

    @property
    def succeeded(self) -> int:
        return sum(1 for row in self.rows if row["status"] == "OK")

    @property
    def failed(self) -> int:
        return len(self.rows) - self.succeeded


def _unique_name(name: str, used: set[str]) -> str:
    """photo_soloresizer.jpg, photo_soloresizer_2.jpg, ..."""
    if name not in used:
        used.add(name)
        return name

    stem, dot, extension = name.rpartition(".")
    counter = 2
    while True:
        candidate = f"{stem}_{counter}{dot}{extension}"
        if candidate not in used:
            used.add(candidate)
            return candidate
        counter += 1


def _empty_row(filename: str, data: bytes) -> dict:
    return {
        "filename": filename,
        "status": "Failed",
        "original_dimensions": "",
        "new_dimensions": "",
        "original_kb": size_kb(data),
        "new_kb": None,
        "quality": None,
        "output_name": "",
        "error": "",
    }


def process_batch(
    files: list[tuple[str, bytes]],
    options: BulkOptions,
    encoder: Encoder = encode_image,
) -> BulkResult:
    """
    Process a batch of uploaded images.

    Args:
        files: List of (filename, raw bytes) tuples
        options: Validated BulkOptions
        encoder: Callable (image, fmt, quality) -> bytes, passed to the compression search

    Returns:
        BulkResult with one report row per input file and a ZIP of the successful outputs
    """
    result = BulkResult()
    used_names: set[str] = set()
    buffer = io.BytesIO()

    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for filename, data in files:
            row = _empty_row(filename, data)
            try:
                img = load_image(data)
                row["original_dimensions"] = f"{img.width} x {img.height}"

                new_w, new_h = fit_within(img.width, img.height, options.max_dimension)
                if (new_w, new_h) != img.size:
                    img = resize_image(img, new_w, new_h)
                row["new_dimensions"] = f"{new_w} x {new_h}"

                if options.target_kb is not None and is_lossy(options.fmt):
                    search = compress_to_target(img, options.target_kb, options.fmt, encoder=encoder)
                    output, quality = search.data, search.quality
                else:
                    output = encoder(img, options.fmt, None)
                    quality = None

            except EncodeUnavailable as e:
                logger.warning("Bulk resize failed for %s: %s", filename, e)
                row["error"] = str(e)
                result.rows.append(row)
                continue

            output_name = _unique_name(download_filename(filename, options.fmt), used_names)
            archive.writestr(output_name, output)

            row.update({
                "status": "OK",
                "new_kb": size_kb(output),
                "quality": round(quality, 3) if quality is not None else None,
                "output_name": output_name,
            })
            result.rows.append(row)

    result.archive = buffer.getvalue()
    logger.info("Bulk resize finished: %d ok, %d failed", result.succeeded, result.failed)
    return result
