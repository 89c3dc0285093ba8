"""
Text Normalization.

Canonicalizes free text (ASR transcripts, catalog names) so that both sides of
a comparison look the same: lower case, no diacritics, no punctuation, single
spaces. Mis-encoded sequences produced when UTF-8 text is re-read as Latin-1
("CafÃ©") are repaired before the accents are stripped.
"""

import re
import unicodedata

from .constants import MISENCODED_SEQUENCES

_TRADEMARK_RE = re.compile(r"[®©™]")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    """
    Normalize text for comparison.

    Steps: lower-case, repair mis-encoded sequences, strip combining marks,
    drop registered/trademark symbols, replace punctuation with a space,
    collapse whitespace and trim. Idempotent.

    Examples:
        "Caffè Latte®" -> "caffe latte"
        "CafÃ© Americano" -> "cafe americano"
        "¡Un capuchino, por favor!" -> "un capuchino por favor"
    """
    if not text:
        return ""

    result = text.lower()
    for broken, fixed in MISENCODED_SEQUENCES.items():
        result = result.replace(broken, fixed)

    decomposed = unicodedata.normalize("NFD", result)
    result = "".join(ch for ch in decomposed if not unicodedata.combining(ch))

    result = _TRADEMARK_RE.sub("", result)
    result = _PUNCTUATION_RE.sub(" ", result)
    result = result.replace("_", " ")
    return _WHITESPACE_RE.sub(" ", result).strip()


def tokenize(text: str | None) -> list[str]:
    """Normalized words of the text."""
    normalized = normalize(text)
    return normalized.split(" ") if normalized else []


def spaceless(text: str | None) -> str:
    """Normalized text with all whitespace removed."""
    return normalize(text).replace(" ", "")


def contains_phrase(text: str, phrase: str) -> bool:
    """
    Whole-word phrase containment on already-normalized text.

    "quiero un latte grande" contains "latte grande" but not "ande".
    """
    if not phrase:
        return False
    return f" {phrase} " in f" {text} "
