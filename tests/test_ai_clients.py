"""Tests for the AI describe/upscale clients with the network calls faked out."""

import base64
from types import SimpleNamespace

import pytest

from modules import claude_client, credentials, gemini_client
from modules.credentials import MissingAPIKey, get_api_key
from modules.image_processor import encode_image, load_image
from prompts.image_analysis import DESCRIBE_PROMPT, UPSCALE_PROMPT


class FakeGeminiModels:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def generate_content(self, model, contents):
        self.calls.append({"model": model, "contents": contents})
        return self.response


def _fake_gemini(monkeypatch, response):
    models = FakeGeminiModels(response)
    monkeypatch.setattr(gemini_client, "_get_client", lambda: SimpleNamespace(models=models))
    return models


def _image_response(*parts):
    content = SimpleNamespace(parts=list(parts))
    return SimpleNamespace(candidates=[SimpleNamespace(content=content)])


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

def test_streamlit_secrets_win_over_environment(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    monkeypatch.setattr(credentials, "st", SimpleNamespace(secrets={"gemini_api_key": "from-secrets"}))

    assert get_api_key("gemini_api_key", "GEMINI_API_KEY") == "from-secrets"


@pytest.mark.parametrize("secrets", [{}, {"gemini_api_key": ""}])
def test_falls_back_to_environment_variable(monkeypatch, secrets):
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    monkeypatch.setattr(credentials, "st", SimpleNamespace(secrets=secrets))

    assert get_api_key("gemini_api_key", "GEMINI_API_KEY") == "from-env"


@pytest.mark.parametrize("secrets", [{}, {"anthropic_api_key": ""}])
def test_missing_key_raises(monkeypatch, secrets):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.setattr(credentials, "st", SimpleNamespace(secrets=secrets))

    with pytest.raises(MissingAPIKey, match="ANTHROPIC_API_KEY"):
        get_api_key("anthropic_api_key", "ANTHROPIC_API_KEY")


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------

def test_gemini_describe_sends_image_and_prompt(monkeypatch, png_bytes):
    models = _fake_gemini(monkeypatch, SimpleNamespace(text="A noisy test pattern."))

    assert gemini_client.describe_image(png_bytes, "image/png") == "A noisy test pattern."

    call = models.calls[0]
    image_part, prompt_part = call["contents"]
    assert image_part.inline_data.mime_type == "image/png"
    assert image_part.inline_data.data == png_bytes
    assert prompt_part.text == DESCRIBE_PROMPT


def test_gemini_describe_without_text(monkeypatch, png_bytes):
    _fake_gemini(monkeypatch, SimpleNamespace(text=None))

    assert gemini_client.describe_image(png_bytes, "image/png") == "No description generated."


def test_gemini_receives_png_instead_of_bmp(monkeypatch, photo):
    models = _fake_gemini(monkeypatch, SimpleNamespace(text="ok"))

    gemini_client.describe_image(encode_image(photo, "image/bmp"), "image/bmp")

    image_part = models.calls[0]["contents"][0]
    assert image_part.inline_data.mime_type == "image/png"
    assert load_image(image_part.inline_data.data).format == "PNG"


def test_gemini_upscale_returns_first_inline_image(monkeypatch, png_bytes):
    response = _image_response(
        SimpleNamespace(inline_data=None, text="Here is your image"),
        SimpleNamespace(inline_data=SimpleNamespace(data=b"upscaled-bytes", mime_type="image/png")),
    )
    models = _fake_gemini(monkeypatch, response)

    assert gemini_client.upscale_image(png_bytes, "image/png") == b"upscaled-bytes"
    assert models.calls[0]["contents"][1].text == UPSCALE_PROMPT


def test_gemini_upscale_without_image_raises(monkeypatch, png_bytes):
    _fake_gemini(monkeypatch, _image_response(SimpleNamespace(inline_data=None, text="Sorry")))

    with pytest.raises(Exception, match="did not return an image"):
        gemini_client.upscale_image(png_bytes, "image/png")


def test_gemini_without_key_fails_before_calling(monkeypatch, png_bytes):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setattr(credentials, "st", SimpleNamespace(secrets={}))

    with pytest.raises(MissingAPIKey):
        gemini_client.describe_image(png_bytes, "image/png")


# ---------------------------------------------------------------------------
# Claude
# ---------------------------------------------------------------------------

class FakeClaudeMessages:
    def __init__(self, blocks):
        self.blocks = blocks
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(content=self.blocks)


def _fake_claude(monkeypatch, blocks):
    messages = FakeClaudeMessages(blocks)
    monkeypatch.setattr(claude_client, "_get_client", lambda: SimpleNamespace(messages=messages))
    return messages


def test_claude_describe_sends_base64_image(monkeypatch, jpeg_bytes):
    messages = _fake_claude(monkeypatch, [SimpleNamespace(type="text", text="  A photo.  ")])

    assert claude_client.describe_image(jpeg_bytes, "image/jpeg") == "A photo."

    content = messages.calls[0]["messages"][0]["content"]
    assert content[0]["source"]["media_type"] == "image/jpeg"
    assert base64.b64decode(content[0]["source"]["data"]) == jpeg_bytes
    assert content[1] == {"type": "text", "text": DESCRIBE_PROMPT}


def test_claude_joins_text_blocks_only(monkeypatch, png_bytes):
    _fake_claude(monkeypatch, [
        SimpleNamespace(type="thinking", thinking="..."),
        SimpleNamespace(type="text", text="Alt text. "),
        SimpleNamespace(type="text", text="Colours: grey."),
    ])

    assert claude_client.describe_image(png_bytes, "image/png") == "Alt text. Colours: grey."


def test_claude_empty_reply(monkeypatch, png_bytes):
    _fake_claude(monkeypatch, [])

    assert claude_client.describe_image(png_bytes, "image/png") == "No description generated."
