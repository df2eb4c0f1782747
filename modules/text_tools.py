"""
modules/text_tools.py — Word counter and case conversion for the Text Tools page.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

CASE_MODES = ["upper", "lower", "title", "sentence", "alternating"]

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n+")
_TITLE_WORD = re.compile(r"\w\S*")
_SENTENCE_START = re.compile(r"(^\s*\w|[.!?]\s*\w)")


@dataclass(frozen=True)
class TextStats:
    chars: int
    words: int
    sentences: int
    paragraphs: int


def _count_pieces(pattern: re.Pattern, text: str) -> int:
    return sum(1 for piece in pattern.split(text) if piece.strip())


def text_stats(text: str) -> TextStats:
    """
    Count characters, words, sentences and paragraphs.

    Words are runs of non-whitespace. Sentences are the pieces between runs
    of ".", "!" or "?", paragraphs the pieces between runs of newlines;
    blank pieces are not counted.
    """
    if not text.strip():
        return TextStats(chars=len(text), words=0, sentences=0, paragraphs=0)

    return TextStats(
        chars=len(text),
        words=len(text.split()),
        sentences=_count_pieces(_SENTENCE_SPLIT, text),
        paragraphs=_count_pieces(_PARAGRAPH_SPLIT, text),
    )


def change_case(text: str, mode: str) -> str:
    """
    Convert text to one of CASE_MODES.

    - title: first word character of every word upper-cased, the rest left as typed
      (word characters include accented letters, so "élan" becomes "Élan")
    - sentence: lower-cased, then the first letter of each sentence upper-cased
    - alternating: even positions lower-case, odd positions upper-case

    Raises:
        ValueError: If mode is not one of CASE_MODES
    """
    if mode == "upper":
        return text.upper()
    if mode == "lower":
        return text.lower()
    if mode == "title":
        return _TITLE_WORD.sub(lambda m: m.group(0)[0].upper() + m.group(0)[1:], text)
    if mode == "sentence":
        return _SENTENCE_START.sub(lambda m: m.group(0).upper(), text.lower())
    if mode == "alternating":
        return "".join(c.lower() if i % 2 == 0 else c.upper() for i, c in enumerate(text))
    raise ValueError(f"Unknown case mode: {mode!r}. Expected one of {', '.join(CASE_MODES)}")
