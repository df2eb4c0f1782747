"""Tests for the editor session: current image, undo history and auto-delete."""

import pytest
from PIL import Image

from modules.editor_state import EditorSession, ImageState, download_filename
from modules.image_processor import EncodeUnavailable, encode_image, load_image, resize_image

from conftest import encode


def test_from_upload_reads_dimensions_and_type(jpeg_bytes):
    state = ImageState.from_upload(jpeg_bytes, "holiday.jpg")

    assert (state.width, state.height) == (160, 120)
    assert state.mime_type == "image/jpeg"
    assert state.size == len(jpeg_bytes)
    assert state.data == jpeg_bytes
    assert state.name == "holiday.jpg"


def test_from_upload_trusts_bytes_over_file_name(png_bytes):
    state = ImageState.from_upload(png_bytes, "misnamed.jpg")
    assert state.mime_type == "image/png"


def test_from_upload_converts_gif_to_png(photo):
    gif = encode(photo.convert("P"), "GIF")

    state = ImageState.from_upload(gif, "animation.gif")

    assert state.mime_type == "image/png"
    assert load_image(state.data).format == "PNG"
    assert state.size == len(state.data)


def test_from_upload_rejects_non_images():
    with pytest.raises(EncodeUnavailable):
        ImageState.from_upload(b"<html></html>", "page.html")


def test_replace_updates_metadata_and_keeps_name(png_bytes, photo):
    state = ImageState.from_upload(png_bytes, "photo.png")
    smaller = encode_image(resize_image(photo, 40, 30), "image/jpeg", 0.5)

    new_state = state.replace(smaller)

    assert (new_state.width, new_state.height) == (40, 30)
    assert new_state.mime_type == "image/jpeg"
    assert new_state.size == len(smaller)
    assert new_state.name == "photo.png"
    # Original untouched
    assert (state.width, state.mime_type) == (160, "image/png")


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

def _state(width, height):
    data = encode_image(Image.new("RGB", (width, height)), "image/png")
    return ImageState.from_upload(data, "img.png")


def test_apply_and_undo_walk_the_history():
    session = EditorSession()
    first, second, third = _state(10, 10), _state(20, 20), _state(30, 30)

    session.load(first, now=0)
    session.apply(second, now=1)
    session.apply(third, now=2)

    assert session.current is third
    assert session.history == [first, second]
    assert session.has_edits

    assert session.undo(now=3) is True
    assert session.current is second
    assert session.undo(now=4) is True
    assert session.current is first
    assert not session.has_edits
    assert session.undo(now=5) is False
    assert session.current is first


def test_load_discards_previous_history():
    session = EditorSession()
    session.load(_state(10, 10), now=0)
    session.apply(_state(20, 20), now=1)

    fresh = _state(5, 5)
    session.load(fresh, now=2)

    assert session.current is fresh
    assert session.history == []


def test_every_change_bumps_version():
    session = EditorSession()
    versions = [session.version]

    session.load(_state(10, 10), now=0)
    versions.append(session.version)
    session.apply(_state(20, 20), now=1)
    versions.append(session.version)
    session.undo(now=2)
    versions.append(session.version)
    session.clear()
    versions.append(session.version)

    assert versions == sorted(set(versions))


def test_clear_removes_image_and_history():
    session = EditorSession()
    session.load(_state(10, 10), now=0)
    session.apply(_state(20, 20), now=1)

    session.clear()

    assert session.current is None
    assert session.history == []
    assert not session.is_expired(now=10_000)


# ---------------------------------------------------------------------------
# Auto-delete
# ---------------------------------------------------------------------------

def test_session_expires_after_ten_idle_minutes():
    session = EditorSession()
    session.load(_state(10, 10), now=1000)

    assert session.seconds_left(now=1000) == 600
    assert session.seconds_left(now=1599) == 1
    assert not session.is_expired(now=1599)
    assert session.is_expired(now=1600)
    assert session.seconds_left(now=5000) == 0


def test_any_change_restarts_the_countdown():
    session = EditorSession()
    session.load(_state(10, 10), now=0)
    session.apply(_state(20, 20), now=500)

    assert not session.is_expired(now=1000)
    assert session.seconds_left(now=1000) == 100

    session.undo(now=1050)
    assert session.seconds_left(now=1100) == 550


def test_empty_session_never_expires():
    session = EditorSession()
    assert session.seconds_left(now=0) == 0
    assert not session.is_expired(now=0)


# ---------------------------------------------------------------------------
# Download names
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("name, mime_type, expected", [
    ("holiday.png", "image/jpeg", "holiday_soloresizer.jpg"),
    ("holiday.png", "image/png", "holiday_soloresizer.png"),
    ("my.photo.final.webp", "image/webp", "my.photo.final_soloresizer.webp"),
    ("scan", "application/pdf", "scan_soloresizer.pdf"),
    (".hidden", "image/bmp", ".hidden_soloresizer.bmp"),
])
def test_download_filename(name, mime_type, expected):
    assert download_filename(name, mime_type) == expected


# ---------------------------------------------------------------------------
# Camera uploads
# ---------------------------------------------------------------------------

def test_from_upload_uses_upright_dimensions(rotated_jpeg_bytes):
    state = ImageState.from_upload(rotated_jpeg_bytes, "phone.jpg")

    assert (state.width, state.height) == (20, 40)
    assert state.mime_type == "image/jpeg"


def test_tools_write_rotated_photos_upright(rotated_jpeg_bytes):
    session = EditorSession()
    session.load(ImageState.from_upload(rotated_jpeg_bytes, "phone.jpg"), now=0)

    session.run_tool(lambda img: (encode_image(resize_image(img, 10, 20), "image/jpeg"), "image/jpeg"), now=1)

    assert (session.current.width, session.current.height) == (10, 20)
    assert load_image(session.current.data).size == (10, 20)


def test_mpo_upload_is_kept_as_jpeg(mpo_bytes):
    state = ImageState.from_upload(mpo_bytes, "camera.jpg")

    assert state.mime_type == "image/jpeg"
    assert state.data == mpo_bytes
    assert download_filename(state.name, state.mime_type) == "camera_soloresizer.jpg"


# ---------------------------------------------------------------------------
# Running tools
# ---------------------------------------------------------------------------

def test_run_tool_applies_the_result(png_bytes):
    session = EditorSession()
    session.load(ImageState.from_upload(png_bytes, "photo.png"), now=0)
    original = session.current

    new_state = session.run_tool(lambda img: (encode_image(resize_image(img, 40, 30), "image/png"), "image/png"), now=1)

    assert session.current is new_state
    assert (new_state.width, new_state.height) == (40, 30)
    assert session.history == [original]


@pytest.mark.parametrize("operation, error", [
    (lambda img: (b"not an image", "image/png"), EncodeUnavailable),
    (lambda img: (b"not an image", None), EncodeUnavailable),
    (lambda img: (encode_image(resize_image(img, 0, 10), "image/png"), "image/png"), ValueError),
])
def test_failed_tool_leaves_session_unchanged(png_bytes, operation, error):
    session = EditorSession()
    session.load(ImageState.from_upload(png_bytes, "photo.png"), now=0)
    before = (session.current, list(session.history), session.version, session.touched_at)

    with pytest.raises(error):
        session.run_tool(operation, now=1)

    assert (session.current, session.history, session.version, session.touched_at) == before


def test_result_without_type_is_stored_in_a_writable_format(png_bytes, photo):
    state = ImageState.from_upload(png_bytes, "photo.png")
    gif = encode(photo.convert("P"), "GIF")

    new_state = state.replace(gif)

    assert new_state.mime_type == "image/png"
    assert load_image(new_state.data).format == "PNG"
    assert new_state.size == len(new_state.data)
