"""
SoloResizer — Main Streamlit Application

This file contains the image editor UI:
- Tool navigation (sidebar, mirrored in the URL as ?tool=RESIZE etc.)
- Image upload and preview
- One panel per tool: resize, crop, rotate, flip, compress, convert,
  watermark, AI upscale and AI describe
- Undo, new image and download

Text tools and bulk resize live in pages/.
"""

import logging
import traceback

import anthropic
import streamlit as st
from google.genai import errors as genai_errors
from PIL import ImageDraw

from config import (
    AI_CONFIG,
    APP_NAME,
    COMPRESS_FORMATS,
    CONVERT_FORMATS,
    DEFAULT_EDIT_TOOL,
    IMAGE_FORMATS,
    LOG_CONFIG,
    ROTATE_PRESETS,
    SESSION_CONFIG,
    TOOL_PAGES,
    TOOLS,
    UPLOAD_TYPES,
    WATERMARK_DEFAULTS,
)
from modules.cleanup import get_cleanup_scheduler
from modules.compressor import compress_to_target
from modules.credentials import MissingAPIKey
from modules.editor_state import EditorSession, ImageState, download_filename
from modules.image_processor import (
    WATERMARK_POSITIONS,
    EncodeUnavailable,
    WatermarkSettings,
    convert_image,
    crop_image,
    default_crop_rect,
    encode_image,
    flip_image,
    load_image,
    resize_image,
    rotate_image,
    scale_dimensions,
    watermark_image,
)

logger = logging.getLogger(__name__)

# ==============================================================================
# PAGE CONFIGURATION
# ==============================================================================


def _active_tool() -> str:
    """Tool named in the URL (?tool=CROP); anything unknown falls back to UPLOAD."""
    tool = str(st.query_params.get("tool", "")).upper()
    return tool if tool in TOOLS else "UPLOAD"


active_tool = _active_tool()
page_info = TOOL_PAGES[active_tool]

st.set_page_config(page_title=f"{page_info['title']} - {APP_NAME}", layout="wide")

logging.basicConfig(level=LOG_CONFIG["level"], format=LOG_CONFIG["format"])
get_cleanup_scheduler()

# ==============================================================================
# SESSION STATE INITIALIZATION
# ==============================================================================

_state_defaults = {
    "upload_nonce": 0,
    "flash": None,
    "ai_result": "",
    "confirm_discard": False,
    "describe_provider": AI_CONFIG["describe_provider"],
    "wm_text": WATERMARK_DEFAULTS["text"],
    "wm_color": WATERMARK_DEFAULTS["color"],
    "wm_opacity": WATERMARK_DEFAULTS["opacity"],
    "wm_x": WATERMARK_DEFAULTS["x"],
    "wm_y": WATERMARK_DEFAULTS["y"],
    "wm_font_size": WATERMARK_DEFAULTS["font_size"],
}
for k, v in _state_defaults.items():
    if k not in st.session_state:
        st.session_state[k] = v

if "editor" not in st.session_state:
    st.session_state["editor"] = EditorSession()

editor: EditorSession = st.session_state["editor"]

if editor.is_expired():
    editor.clear()
    st.session_state["ai_result"] = ""
    minutes = SESSION_CONFIG["auto_delete_seconds"] // 60
    st.session_state["flash"] = (
        "warning",
        f"Your image was deleted automatically after {minutes} minutes without changes.",
    )

# ==============================================================================
# HELPERS
# ==============================================================================


def _navigate(tool: str) -> None:
    st.query_params["tool"] = tool


def _set_state(key: str, value) -> None:
    st.session_state[key] = value


def _flash(kind: str, message: str) -> None:
    """Show a message after the next rerun."""
    st.session_state["flash"] = (kind, message)


def _show_flash() -> None:
    flash = st.session_state["flash"]
    if flash:
        kind, message = flash
        getattr(st, kind)(message)
        st.session_state["flash"] = None


def _run_tool(label: str, operation, success_message=None) -> None:
    """
    Run a tool on the current image and push the result onto the history.

    Args:
        label: Spinner text, e.g. "Resizing"
        operation: Callable taking the decoded image and returning
                   (encoded_bytes, mime_type)
        success_message: Optional callable returning the text flashed once the
                         new state has been applied
    """
    try:
        with st.spinner(f"{label}..."):
            editor.run_tool(operation)
    except EncodeUnavailable as e:
        logger.warning("%s failed: %s", label, e)
        st.error("Operation failed. The image might be too large or invalid.")
        return
    except ValueError as e:
        st.error(str(e))
        return

    if success_message is not None:
        _flash("success", success_message())
    st.rerun()


def _run_ai(label: str, operation):
    """
    Call an AI provider inside a status box. Returns the result, or None on failure.

    Failures are shown to the user; nothing is retried.
    """
    with st.status(f"{label}...", expanded=False) as status:
        try:
            result = operation()
            status.update(label=f"{label} complete", state="complete")
            return result

        except MissingAPIKey as e:
            status.update(label="API key missing", state="error")
            st.error(str(e))

        except (anthropic.AuthenticationError, genai_errors.ClientError) as e:
            status.update(label="Request rejected", state="error")
            st.error(f"The AI service rejected the request. Check your API key and settings. ({e})")

        except (anthropic.APITimeoutError, anthropic.APIConnectionError) as e:
            status.update(label="Connection failed", state="error")
            st.error(f"Network error while contacting the AI service. ({e})")

        except genai_errors.ServerError as e:
            status.update(label="AI service unavailable", state="error")
            st.error(f"The AI service is unavailable. Try again later. ({e})")

        except Exception as e:
            status.update(label=f"{label} failed", state="error")
            st.error(f"Unexpected error ({type(e).__name__}): {str(e)}")
            with st.expander("Error Details", expanded=False):
                st.code(traceback.format_exc(), language="text")

    return None


def _discard_image() -> None:
    editor.clear()
    st.session_state["confirm_discard"] = False
    st.session_state["ai_result"] = ""
    st.rerun()


# ==============================================================================
# TOOL PANELS
# ==============================================================================
# Each panel renders its inputs and an apply button. Panels that change the
# preview (crop, watermark) return a callable applied to the preview image.


def panel_upload(state: ImageState, version: int):
    st.info("Image loaded. Pick a tool from the sidebar to start editing.")
    if st.button("Go to Resize", use_container_width=True):
        _navigate(DEFAULT_EDIT_TOOL)
        st.rerun()


def panel_resize(state: ImageState, version: int):
    st.subheader("Resize Image")

    width_key, height_key = f"resize_w_{version}", f"resize_h_{version}"
    st.session_state.setdefault(width_key, state.width)
    st.session_state.setdefault(height_key, state.height)

    def _sync(changed: str) -> None:
        if not st.session_state["resize_lock"]:
            return
        key = width_key if changed == "width" else height_key
        new_w, new_h = scale_dimensions(state.width, state.height, st.session_state[key], changed)
        st.session_state[width_key] = max(1, new_w)
        st.session_state[height_key] = max(1, new_h)

    col1, col2 = st.columns(2)
    with col1:
        st.number_input("Width (px)", min_value=1, step=1, key=width_key,
                        on_change=_sync, args=("width",))
    with col2:
        st.number_input("Height (px)", min_value=1, step=1, key=height_key,
                        on_change=_sync, args=("height",))

    st.checkbox("Maintain aspect ratio", value=True, key="resize_lock")

    if st.button("Apply Resize", type="primary", use_container_width=True):
        width, height = st.session_state[width_key], st.session_state[height_key]
        _run_tool(
            "Resizing",
            lambda img: (encode_image(resize_image(img, width, height), state.mime_type), state.mime_type),
        )


def panel_crop(state: ImageState, version: int):
    st.subheader("Crop Image")
    st.caption("The highlighted rectangle on the preview is the area that will be kept.")

    rect = default_crop_rect(state.width, state.height)
    col1, col2 = st.columns(2)
    with col1:
        x = st.number_input("X", min_value=0, max_value=max(0, state.width - 1),
                            value=rect.x, step=1, key=f"crop_x_{version}")
        width = st.number_input("Width", min_value=1, max_value=state.width,
                                value=max(1, rect.width), step=1, key=f"crop_w_{version}")
    with col2:
        y = st.number_input("Y", min_value=0, max_value=max(0, state.height - 1),
                            value=rect.y, step=1, key=f"crop_y_{version}")
        height = st.number_input("Height", min_value=1, max_value=state.height,
                                 value=max(1, rect.height), step=1, key=f"crop_h_{version}")

    if st.button("Apply Crop", type="primary", use_container_width=True):
        _run_tool(
            "Cropping",
            lambda img: (encode_image(crop_image(img, x, y, width, height), "image/png"), "image/png"),
        )

    def _overlay(img):
        preview = img.convert("RGBA")
        line = max(2, max(preview.size) // 200)
        right = min(preview.width, x + width) - 1
        bottom = min(preview.height, y + height) - 1
        ImageDraw.Draw(preview).rectangle([x, y, right, bottom], outline=(16, 185, 129, 255), width=line)
        return preview

    return _overlay


def panel_rotate(state: ImageState, version: int):
    st.subheader("Rotate Image")

    angle_key = f"rotate_{version}"
    st.session_state.setdefault(angle_key, ROTATE_PRESETS[0])
    angle = st.number_input("Rotation Angle (deg, clockwise)", step=1, key=angle_key)

    cols = st.columns(len(ROTATE_PRESETS))
    for col, preset in zip(cols, ROTATE_PRESETS):
        col.button(f"{preset}°", key=f"rotate_preset_{preset}", on_click=_set_state,
                   args=(angle_key, preset), use_container_width=True)

    if st.button("Apply Rotation", type="primary", use_container_width=True):
        _run_tool("Rotating", lambda img: (encode_image(rotate_image(img, angle), "image/png"), "image/png"))


def panel_flip(state: ImageState, version: int):
    st.subheader("Flip Image")

    col1, col2 = st.columns(2)
    if col1.button("Horizontal", use_container_width=True):
        _run_tool("Flipping", lambda img: (encode_image(flip_image(img, True, False), "image/png"), "image/png"))
    if col2.button("Vertical", use_container_width=True):
        _run_tool("Flipping", lambda img: (encode_image(flip_image(img, False, True), "image/png"), "image/png"))


def panel_compress(state: ImageState, version: int):
    st.subheader("Compress Image")
    st.metric("Current Size", f"{state.size / 1024:.2f} KB")

    target_kb = st.number_input(
        "Target Size (KB)",
        min_value=1,
        value=max(1, int(state.size / 1024 + 0.5)),
        step=1,
        key=f"compress_target_{version}",
    )
    st.caption("Note: Extremely small sizes may reduce quality significantly.")

    formats = list(COMPRESS_FORMATS)
    fmt = st.radio(
        "Output Format",
        formats,
        index=formats.index(state.mime_type) if state.mime_type in formats else 0,
        format_func=COMPRESS_FORMATS.get,
        key=f"compress_fmt_{version}",
    )
    if state.mime_type == "image/png" and fmt == "image/png":
        st.info("Tip: Converting to JPG or WebP is recommended for significantly reducing file size.")

    if st.button("Compress Image", type="primary", use_container_width=True):
        # The search expects a positive target
        if target_kb <= 0:
            st.error("Target size must be greater than 0 KB.")
            return

        search = {}

        def _compress(img):
            search["result"] = compress_to_target(img, target_kb, fmt)
            return search["result"].data, fmt

        _run_tool("Compressing", _compress, success_message=lambda: search["result"].summary(fmt))


def panel_convert(state: ImageState, version: int):
    st.subheader("Convert / Document")
    st.caption("Convert the image to another format or to a PDF document.")

    fmt = st.selectbox(
        "Format",
        CONVERT_FORMATS,
        format_func=lambda f: "PDF Document" if f == "application/pdf" else IMAGE_FORMATS[f]["extension"].upper(),
        key=f"convert_fmt_{version}",
    )

    if fmt == "application/pdf":
        # PDF is offered for download only; the editor keeps working on the image
        try:
            pdf_bytes = convert_image(load_image(state.data), fmt)
        except EncodeUnavailable as e:
            logger.warning("PDF export failed: %s", e)
            st.error("Could not create the PDF document.")
            return
        st.download_button(
            "Download PDF",
            data=pdf_bytes,
            file_name=download_filename(state.name, fmt),
            mime=fmt,
            type="primary",
            use_container_width=True,
        )
        return

    label = IMAGE_FORMATS[fmt]["extension"].upper()
    if st.button(f"Convert to {label}", type="primary", use_container_width=True):
        _run_tool("Converting", lambda img: (convert_image(img, fmt), fmt))


def _watermark_settings() -> WatermarkSettings:
    return WatermarkSettings(
        text=st.session_state["wm_text"],
        color=st.session_state["wm_color"],
        opacity=st.session_state["wm_opacity"],
        x=st.session_state["wm_x"],
        y=st.session_state["wm_y"],
        font_size=st.session_state["wm_font_size"],
    )


def _set_watermark_position(x: float, y: float) -> None:
    st.session_state["wm_x"] = x
    st.session_state["wm_y"] = y


def panel_watermark(state: ImageState, version: int):
    st.subheader("Watermark")

    st.text_input("Text", key="wm_text")
    col1, col2 = st.columns(2)
    with col1:
        st.color_picker("Color", key="wm_color")
    with col2:
        st.slider("Size", min_value=0.01, max_value=0.2, step=0.01, key="wm_font_size")
    st.slider("Transparency", min_value=0.1, max_value=1.0, step=0.05, key="wm_opacity")

    st.caption("Quick Position")
    for row_start in range(0, len(WATERMARK_POSITIONS), 3):
        cols = st.columns(3)
        for col, (pos_x, pos_y) in zip(cols, WATERMARK_POSITIONS[row_start:row_start + 3]):
            selected = st.session_state["wm_x"] == pos_x and st.session_state["wm_y"] == pos_y
            col.button(
                "●" if selected else "○",
                key=f"wm_pos_{pos_x}_{pos_y}",
                on_click=_set_watermark_position,
                args=(pos_x, pos_y),
                use_container_width=True,
            )

    col1, col2 = st.columns(2)
    with col1:
        st.slider("Horizontal", min_value=0.0, max_value=1.0, step=0.01, key="wm_x")
    with col2:
        st.slider("Vertical", min_value=0.0, max_value=1.0, step=0.01, key="wm_y")

    settings = _watermark_settings()

    if st.button("Apply Watermark", type="primary", use_container_width=True):
        _run_tool(
            "Adding watermark",
            lambda img: (encode_image(watermark_image(img, settings), "image/png"), "image/png"),
        )

    return lambda img: watermark_image(img, settings)


def panel_ai_upscale(state: ImageState, version: int):
    from modules.gemini_client import upscale_image

    st.subheader("AI Upscale & Enhance")
    st.info("✨ Powered by Gemini AI. Uses generative AI to increase resolution, "
            "sharpen details, and improve image quality.")
    st.caption("Note: The AI will regenerate the image with higher details. "
               "This may slightly alter facial features or small details.")

    if st.button("Upscale Image 2x", type="primary", use_container_width=True):
        upscaled = _run_ai("Upscaling with Gemini", lambda: upscale_image(state.data, state.mime_type))
        if upscaled is not None:
            _run_tool("Loading upscaled image", lambda img: (upscaled, None))


def panel_ai_describe(state: ImageState, version: int):
    st.subheader("AI Analysis")
    st.write("Generate alt text or a description of your image.")

    provider = st.session_state["describe_provider"]
    if provider == "claude":
        from modules.claude_client import describe_image
        provider_label = "Claude"
    else:
        from modules.gemini_client import describe_image
        provider_label = "Gemini"

    if st.button("Analyze Image", type="primary", use_container_width=True):
        description = _run_ai(f"Analyzing with {provider_label}",
                              lambda: describe_image(state.data, state.mime_type))
        if description is not None:
            st.session_state["ai_result"] = description

    if st.session_state["ai_result"]:
        st.caption("Result (use the copy button to copy the text):")
        st.code(st.session_state["ai_result"], language=None)


PANELS = {
    "UPLOAD": panel_upload,
    "RESIZE": panel_resize,
    "CROP": panel_crop,
    "ROTATE": panel_rotate,
    "FLIP": panel_flip,
    "COMPRESS": panel_compress,
    "CONVERT": panel_convert,
    "WATERMARK": panel_watermark,
    "AI_UPSCALE": panel_ai_upscale,
    "AI_DESCRIBE": panel_ai_describe,
}

# ==============================================================================
# SIDEBAR — TOOL NAVIGATION
# ==============================================================================

with st.sidebar:
    st.title(APP_NAME)
    selected_tool = st.radio(
        "Tools",
        TOOLS,
        index=TOOLS.index(active_tool),
        format_func=lambda t: TOOL_PAGES[t]["label"],
    )
    if selected_tool != active_tool:
        _navigate(selected_tool)
        st.rerun()

    if active_tool == "AI_DESCRIBE":
        st.selectbox(
            "Describe with",
            ["gemini", "claude"],
            format_func=str.capitalize,
            key="describe_provider",
        )

    st.caption("Text tools and bulk resize are in the page menu above.")

# ==============================================================================
# HEADER
# ==============================================================================

st.title(page_info["title"])
st.caption(page_info["subtitle"])
_show_flash()

# ==============================================================================
# SECTION 1 — UPLOAD
# ==============================================================================

if editor.current is None:
    uploaded = st.file_uploader(
        "Upload an image",
        type=UPLOAD_TYPES,
        key=f"uploader_{st.session_state['upload_nonce']}",
    )

    if uploaded is None:
        st.stop()

    try:
        new_state = ImageState.from_upload(uploaded.getvalue(), uploaded.name)
    except EncodeUnavailable as e:
        logger.warning("Upload %s rejected: %s", uploaded.name, e)
        st.error("Failed to load image")
        st.stop()

    editor.load(new_state)
    st.session_state["upload_nonce"] += 1
    st.session_state["ai_result"] = ""

    # Starting from the generic upload page: switch to a real tool
    if active_tool == "UPLOAD":
        _navigate(DEFAULT_EDIT_TOOL)
    st.rerun()

# ==============================================================================
# SECTION 2 — EDITOR
# ==============================================================================

state = editor.current
col_preview, col_panel = st.columns([2, 1])

# Panel first: crop and watermark inputs decide what the preview shows
with col_panel:
    preview_overlay = PANELS[active_tool](state, editor.version)

    st.divider()
    minutes_left = int(editor.seconds_left() // 60) + 1
    st.caption(f"Image is deleted automatically in about {minutes_left} min without changes.")

    col_undo, col_new = st.columns(2)
    if col_undo.button("Undo", disabled=not editor.has_edits, use_container_width=True):
        editor.undo()
        st.rerun()
    if col_new.button("New Image", use_container_width=True):
        if editor.has_edits:
            st.session_state["confirm_discard"] = True
        else:
            _discard_image()

    if st.session_state["confirm_discard"]:
        st.warning("Discard current edits and start over?")
        col_yes, col_no = st.columns(2)
        if col_yes.button("Discard", type="primary", use_container_width=True):
            _discard_image()
        if col_no.button("Keep editing", use_container_width=True):
            st.session_state["confirm_discard"] = False
            st.rerun()

    st.download_button(
        "Download",
        data=state.data,
        file_name=download_filename(state.name, state.mime_type),
        mime=state.mime_type,
        type="primary",
        use_container_width=True,
    )

with col_preview:
    preview = load_image(state.data)
    if preview_overlay is not None:
        try:
            preview = preview_overlay(preview)
        except ValueError as e:
            st.warning(str(e))
    st.image(preview, use_container_width=True)
    st.caption(
        f"{state.width} × {state.height} px · {state.size / 1024:.2f} KB · "
        f"{IMAGE_FORMATS[state.mime_type]['extension'].upper()}"
    )
