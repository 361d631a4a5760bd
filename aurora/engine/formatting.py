"""Pure text helpers for chat: conversation titles and bot reply formatting.

No I/O happens here; everything is deterministic and safe to unit test.
"""

import re
from typing import List

TITLE_MAX_CHARS = 50
TITLE_ELLIPSIS = "…"
FALLBACK_TITLE = "New Conversation"

# Numbered output only kicks in at this many sentences.
MIN_SENTENCES_FOR_LIST = 3

_EMPHASIS_MARKERS = re.compile(r"[*#]")
_STRIPPED_TAGS = re.compile(r"</?(?:b|i|ul|ol|li)>", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.?!])\s+")
_HAS_ALNUM = re.compile(r"[A-Za-z0-9]")
_LEADING_BULLET = re.compile(r"^\s*(?:\d+\.|[-*+])\s*")


def generate_title(prompt: str) -> str:
    """Derive a conversation title from the first prompt.

    Args:
        prompt: The user's first prompt

    Returns:
        The trimmed prompt if it fits in 50 characters, otherwise its first
        50 characters followed by an ellipsis. "New Conversation" for a
        blank prompt.
    """
    trimmed = (prompt or "").strip()
    if not trimmed:
        return FALLBACK_TITLE
    if len(trimmed) > TITLE_MAX_CHARS:
        return trimmed[:TITLE_MAX_CHARS] + TITLE_ELLIPSIS
    return trimmed


def clean_text(text: str) -> str:
    """Strip markdown emphasis and simple HTML tags, normalize whitespace."""
    cleaned = _EMPHASIS_MARKERS.sub("", text)
    cleaned = _STRIPPED_TAGS.sub("", cleaned)
    cleaned = cleaned.replace("\u00a0", " ")
    return _WHITESPACE.sub(" ", cleaned).strip()


def split_sentences(text: str) -> List[str]:
    """Split on terminal punctuation, dropping empty and punctuation-only pieces."""
    pieces = (s.strip() for s in _SENTENCE_BOUNDARY.split(text))
    return [s for s in pieces if s and _HAS_ALNUM.search(s)]


def format_response_text(text: str) -> str:
    """Reformat a raw model reply as prose or as a numbered list.

    Fewer than three sentences: the cleaned text, unchanged. Otherwise each
    sentence becomes a 1-based numbered line, with any bullet or number it
    already started with removed first.

    Examples:
        >>> format_response_text("Hi.")
        'Hi.'
        >>> format_response_text("A. B. C.")
        '1. A.\\n2. B.\\n3. C.'
    """
    cleaned = clean_text(text)
    sentences = split_sentences(cleaned)
    if len(sentences) < MIN_SENTENCES_FOR_LIST:
        return cleaned
    return "\n".join(
        f"{i}. {_LEADING_BULLET.sub('', sentence)}"
        for i, sentence in enumerate(sentences, start=1)
    )
