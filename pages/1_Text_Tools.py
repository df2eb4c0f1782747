"""
pages/1_Text_Tools.py

Text Tools & Word Counter

Paste text to see live statistics (words, characters, sentences, paragraphs)
and convert it between cases. Everything runs locally — no AI calls.
"""

import streamlit as st

from config import APP_NAME
from modules.text_tools import change_case, text_stats

# ---------------------------------------------------------------------------
# Page config — must be the very first Streamlit call
# ---------------------------------------------------------------------------

st.set_page_config(page_title=f"Text Tools & Word Counter - {APP_NAME}", layout="wide")

if "text_input" not in st.session_state:
    st.session_state["text_input"] = ""

# ---------------------------------------------------------------------------
# Callbacks — run before the text area is drawn, so they may rewrite its value
# ---------------------------------------------------------------------------


def _apply_case(mode: str) -> None:
    st.session_state["text_input"] = change_case(st.session_state["text_input"], mode)


def _clear() -> None:
    st.session_state["text_input"] = ""


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

st.title("Text Tools & Word Counter")
st.caption("Paste your text below to analyze and format it.")

col_text, col_stats = st.columns([2, 1])

with col_text:
    st.text_area(
        "Text",
        key="text_input",
        height=380,
        placeholder="Type or paste your text here...",
        label_visibility="collapsed",
    )

    buttons = [
        ("UPPERCASE", "upper"),
        ("lowercase", "lower"),
        ("Title Case", "title"),
        ("Sentence case", "sentence"),
        ("aLtErNaTiNg", "alternating"),
    ]
    cols = st.columns(len(buttons) + 1)
    for col, (label, mode) in zip(cols, buttons):
        col.button(label, key=f"case_{mode}", on_click=_apply_case, args=(mode,), use_container_width=True)
    cols[-1].button("Clear", key="case_clear", on_click=_clear, use_container_width=True)

with col_stats:
    st.subheader("Statistics")
    stats = text_stats(st.session_state["text_input"])
    st.metric("Words", f"{stats.words:,}")
    st.metric("Characters", f"{stats.chars:,}")
    st.metric("Sentences", f"{stats.sentences:,}")
    st.metric("Paragraphs", f"{stats.paragraphs:,}")
