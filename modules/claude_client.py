"""
modules/claude_client.py — Claude API communication.

Alternative backend for the AI Describe tool, selected with
AI_CONFIG["describe_provider"] or the sidebar. Uses the same prompt as the
Gemini backend so both produce comparable descriptions.

The image is sent as a base64 block; formats Claude does not accept (BMP)
are re-encoded as PNG first.
"""

import base64
import logging
import time

from anthropic import Anthropic

from config import CLAUDE_CONFIG
from modules.credentials import get_api_key
from modules.image_processor import ensure_format
from prompts.image_analysis import DESCRIBE_PROMPT

logger = logging.getLogger(__name__)

SUPPORTED_MIME_TYPES = ("image/png", "image/jpeg", "image/webp", "image/gif")


def _get_client() -> Anthropic:
    return Anthropic(
        api_key=get_api_key("anthropic_api_key", "ANTHROPIC_API_KEY"),
        timeout=CLAUDE_CONFIG["timeout"],
    )


def describe_image(data: bytes, mime_type: str) -> str:
    """
    Ask Claude for an alt-text style description of an image.

    Args:
        data: Encoded image bytes
        mime_type: MIME type of data

    Returns:
        The description text, or "No description generated." if Claude returned no text

    Raises:
        MissingAPIKey: If no Anthropic key is configured
        anthropic.APIError: If the API call fails
    """
    client = _get_client()
    data, mime_type = ensure_format(data, mime_type, SUPPORTED_MIME_TYPES)

    content = [
        {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": mime_type,
                "data": base64.b64encode(data).decode("utf-8"),
            },
        },
        {"type": "text", "text": DESCRIBE_PROMPT},
    ]

    start_time = time.time()
    message = client.messages.create(
        model=CLAUDE_CONFIG["model"],
        max_tokens=CLAUDE_CONFIG["max_tokens"],
        messages=[{"role": "user", "content": content}],
    )
    logger.info("Claude describe took %.1fs", time.time() - start_time)

    text = "".join(
        block.text for block in message.content if getattr(block, "type", None) == "text"
    ).strip()
    return text or "No description generated."
