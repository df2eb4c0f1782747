"""
SoloResizer — Central Configuration File

This file contains ALL settings, dropdown values, and constants used across the app.
No other file should hardcode these values — always import from config.py.
"""

import os

# ==============================================================================
# APP
# ==============================================================================

APP_NAME = "SoloResizer"

# Suffix appended to every downloaded file: photo.jpg -> photo_soloresizer.jpg
DOWNLOAD_SUFFIX = "_soloresizer"

# ==============================================================================
# IMAGE FORMATS
# ==============================================================================

# Every format the editor can read or write, keyed by MIME type.
#   - pil_format: name passed to Image.save(format=...)
#   - extension: file extension used for downloads
#   - lossy: True if the encoder takes a quality parameter
#   - alpha: False if transparent pixels must be flattened onto white first
IMAGE_FORMATS = {
    "image/jpeg": {"pil_format": "JPEG", "extension": "jpg", "lossy": True, "alpha": False},
    "image/webp": {"pil_format": "WEBP", "extension": "webp", "lossy": True, "alpha": True},
    "image/png": {"pil_format": "PNG", "extension": "png", "lossy": False, "alpha": True},
    "image/bmp": {"pil_format": "BMP", "extension": "bmp", "lossy": False, "alpha": False},
    "application/pdf": {"pil_format": "PDF", "extension": "pdf", "lossy": False, "alpha": False},
}

# File types accepted by the uploaders
UPLOAD_TYPES = ["jpg", "jpeg", "png", "webp", "bmp", "gif"]

# Output formats offered by the Compress tool
COMPRESS_FORMATS = {
    "image/jpeg": "JPG / JPEG — best for photographs & compression",
    "image/webp": "WebP — modern format, good compression",
    "image/png": "PNG — lossless, larger file size",
}

# Output formats offered by the Convert tool
CONVERT_FORMATS = ["image/jpeg", "image/png", "image/webp", "image/bmp", "application/pdf"]

# Background used when flattening transparency for JPEG / BMP / PDF
FLATTEN_BACKGROUND = (255, 255, 255)

# ==============================================================================
# COMPRESSION SEARCH
# ==============================================================================

# Quality is expressed in [0, 1] and mapped to Pillow's 1-100 scale at encode time.
COMPRESSION_CONFIG = {
    "quality_floor": 0.01,
    "quality_ceiling": 1.0,
    "max_iterations": 10,
    "tolerance": 0.05,        # early exit when within 5% of the target
    "default_quality": 0.92,  # used when a lossy format is encoded without a quality
}

# ==============================================================================
# TOOLS AND PAGES
# ==============================================================================

# Order matters — this is the order tools appear in the sidebar
TOOLS = [
    "UPLOAD",
    "RESIZE",
    "CROP",
    "ROTATE",
    "FLIP",
    "COMPRESS",
    "CONVERT",
    "WATERMARK",
    "AI_UPSCALE",
    "AI_DESCRIBE",
]

# Heading shown for each tool, also used as the browser tab title
TOOL_PAGES = {
    "UPLOAD": {"label": "Upload", "title": "Free Online Image Editor",
               "subtitle": "Resize, crop, compress and convert images right in your browser."},
    "RESIZE": {"label": "Resize", "title": "Image Resizer",
               "subtitle": "Change image dimensions in pixels while keeping the aspect ratio."},
    "CROP": {"label": "Crop", "title": "Crop Image",
             "subtitle": "Cut out the part of the image you want to keep."},
    "ROTATE": {"label": "Rotate", "title": "Rotate Image",
               "subtitle": "Rotate an image by any angle."},
    "FLIP": {"label": "Flip", "title": "Flip Image",
             "subtitle": "Mirror an image horizontally or vertically."},
    "COMPRESS": {"label": "Compress", "title": "Compress Image to Target Size",
                 "subtitle": "Reduce file size to a specific number of kilobytes."},
    "CONVERT": {"label": "Convert", "title": "Image Converter",
                "subtitle": "Convert images to JPG, PNG, WebP, BMP or PDF."},
    "WATERMARK": {"label": "Watermark", "title": "Add Watermark",
                  "subtitle": "Stamp text on your image with custom colour, size and transparency."},
    "AI_UPSCALE": {"label": "AI Upscale", "title": "AI Image Upscaler",
                   "subtitle": "Enhance image quality and resolution using artificial intelligence."},
    "AI_DESCRIBE": {"label": "AI Describe", "title": "AI Image Description",
                    "subtitle": "Generate alt text and descriptions for your images."},
}

# Tool selected after the first upload when the user started on the Upload page
DEFAULT_EDIT_TOOL = "RESIZE"

# Quick presets for the Rotate tool (degrees, clockwise)
ROTATE_PRESETS = [90, 180]

# ==============================================================================
# WATERMARK
# ==============================================================================

WATERMARK_DEFAULTS = {
    "text": "SoloResizer",
    "color": "#ff0000",
    "opacity": 1.0,
    "x": 0.5,
    "y": 0.5,
    "font_size": 0.05,  # fraction of the longest image side
}

# Positions within this distance of an edge snap the text alignment to that edge
WATERMARK_EDGE_SNAP = 0.05

# Padding between snapped text and the image edge, as a fraction of the longest side
WATERMARK_PADDING = 0.02

# TrueType fonts tried in order; Pillow's built-in font is used if none is found
WATERMARK_FONTS = ["DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf"]

# ==============================================================================
# SESSION AND CLEANUP
# ==============================================================================

SESSION_CONFIG = {
    "auto_delete_seconds": 600,  # uploaded images are dropped after 10 minutes
}

# Bulk archives are written here so they can be offered for download
EXPORT_DIR = os.environ.get("SOLORESIZER_EXPORT_DIR", os.path.join(os.path.dirname(__file__), "exports"))

CLEANUP_CONFIG = {
    "interval_seconds": 600,  # run every 10 minutes
    "max_age_seconds": 1200,  # delete files older than 20 minutes
}

# ==============================================================================
# BULK RESIZE
# ==============================================================================

BULK_CONFIG = {
    "default_max_dimension": 1920,
    "default_format": "image/jpeg",
    "max_files": 50,
}

# ==============================================================================
# AI CONFIGURATION
# ==============================================================================

AI_CONFIG = {
    "describe_provider": "gemini",  # "gemini" or "claude"
}

# Settings for Gemini API calls
GEMINI_CONFIG = {
    "describe_model": "gemini-2.5-flash",
    "image_model": "gemini-2.5-flash-image",
    "timeout_ms": 120_000,
}

# Settings for Claude API calls (alternative describe backend)
CLAUDE_CONFIG = {
    "model": "claude-sonnet-4-5",
    "max_tokens": 1024,
    "timeout": 120.0,
}

# ==============================================================================
# LOGGING
# ==============================================================================

LOG_CONFIG = {
    "level": os.environ.get("SOLORESIZER_LOG_LEVEL", "INFO"),
    "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
}

# ==============================================================================
# BULK REPORT (EXCEL) CONFIGURATION
# ==============================================================================

# Column specification for the bulk report
# Each dictionary defines one column with:
#   - name: Display name for Excel header
#   - key: key in the bulk result row
#   - width: column width in Excel character units
# Order matters — this is the exact order columns appear in the Excel file
REPORT_SCHEMA = [
    {"name": "File", "key": "filename", "width": 30},
    {"name": "Status", "key": "status", "width": 10},
    {"name": "Original Size", "key": "original_dimensions", "width": 15},
    {"name": "New Size", "key": "new_dimensions", "width": 15},
    {"name": "Original (KB)", "key": "original_kb", "width": 14},
    {"name": "New (KB)", "key": "new_kb", "width": 12},
    {"name": "Quality", "key": "quality", "width": 10},
    {"name": "Output File", "key": "output_name", "width": 34},
    {"name": "Error", "key": "error", "width": 40},
]

REPORT_CONFIG = {
    "sheet_name": "Bulk Resize",

    # Font settings
    "font_name": "Arial",
    "font_size": 10,

    # Header row styling
    "header_bg_color": "2F5496",
    "header_font_color": "FFFFFF",

    # Data row styling
    "alt_row_color": "F2F2F2",
    "header_row_height": 22.5,
    "data_row_height": 15,

    # Failed rows
    "failed": {
        "bg": "FFC7CE",
        "font": "9C0006"
    }
}
