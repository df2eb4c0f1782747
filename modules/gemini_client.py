"""
modules/gemini_client.py — Gemini API communication.

This module sends the current image to Gemini for two tools:
- AI Describe: alt text, dominant colours and mood (text response)
- AI Upscale: the image regenerated at twice the resolution (image response)

Images are sent as raw inline bytes. Formats Gemini does not accept (BMP)
are re-encoded as PNG first.

No retries: errors from google.genai propagate to the page, which shows them.
"""

import logging
import time

from google import genai
from google.genai import types

from config import GEMINI_CONFIG
from modules.credentials import get_api_key
from modules.image_processor import ensure_format
from prompts.image_analysis import DESCRIBE_PROMPT, UPSCALE_PROMPT

logger = logging.getLogger(__name__)

SUPPORTED_MIME_TYPES = ("image/png", "image/jpeg", "image/webp")


def _get_client() -> genai.Client:
    return genai.Client(
        api_key=get_api_key("gemini_api_key", "GEMINI_API_KEY"),
        http_options=types.HttpOptions(timeout=GEMINI_CONFIG["timeout_ms"]),
    )


def _image_part(data: bytes, mime_type: str) -> types.Part:
    data, mime_type = ensure_format(data, mime_type, SUPPORTED_MIME_TYPES)
    return types.Part.from_bytes(data=data, mime_type=mime_type)


def describe_image(data: bytes, mime_type: str) -> str:
    """
    Ask Gemini for an alt-text style description of an image.

    Args:
        data: Encoded image bytes
        mime_type: MIME type of data

    Returns:
        The description text, or "No description generated." if Gemini returned no text

    Raises:
        MissingAPIKey: If no Gemini key is configured
        google.genai.errors.APIError: If the API call fails
    """
    client = _get_client()

    start_time = time.time()
    response = client.models.generate_content(
        model=GEMINI_CONFIG["describe_model"],
        contents=[
            _image_part(data, mime_type),
            types.Part.from_text(text=DESCRIBE_PROMPT),
        ],
    )
    logger.info("Gemini describe took %.1fs", time.time() - start_time)

    return response.text or "No description generated."


def upscale_image(data: bytes, mime_type: str) -> bytes:
    """
    Ask Gemini's image model to regenerate an image at 2x resolution.

    Returns:
        Encoded bytes of the first image in the response (usually PNG)

    Raises:
        MissingAPIKey: If no Gemini key is configured
        google.genai.errors.APIError: If the API call fails
        Exception: If the response contains no image
    """
    client = _get_client()

    start_time = time.time()
    response = client.models.generate_content(
        model=GEMINI_CONFIG["image_model"],
        contents=[
            _image_part(data, mime_type),
            types.Part.from_text(text=UPSCALE_PROMPT),
        ],
    )
    logger.info("Gemini upscale took %.1fs", time.time() - start_time)

    for candidate in response.candidates or []:
        if candidate.content is None:
            continue
        for part in candidate.content.parts or []:
            if part.inline_data is not None and part.inline_data.data:
                return part.inline_data.data

    raise Exception(
        "Gemini did not return an image. The request may have been blocked "
        "or the model only replied with text."
    )
