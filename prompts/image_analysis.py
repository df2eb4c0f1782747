"""
prompts/image_analysis.py — Prompts sent with images to the AI providers.

Kept in their own file so the wording can be tuned without touching any
code logic. Both describe backends (Gemini and Claude) use DESCRIBE_PROMPT.
"""

DESCRIBE_PROMPT = (
    "Analyze this image and provide a concise description suitable for an 'alt' "
    "text attribute. Also mention dominant colors and mood."
)

UPSCALE_PROMPT = (
    "Upscale this image to twice its resolution. Sharpen details, remove noise and "
    "compression artifacts, and improve overall quality. Keep the composition, "
    "colors, text and faces exactly as they are. Return only the enhanced image."
)
