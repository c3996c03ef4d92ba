from __future__ import annotations

import re
import unicodedata


# Characters that separate words in item names ("mléko 1,5%" -> "mleko 1 5").
_PUNCT_RE = re.compile(r"[.,;:!?()\[\]{}\"'`´‘’“”„/\\|_\-+*&#@%]")
_SPACE_RE = re.compile(r"\s+")


def _strip_diacritics(s: str) -> str:
    decomposed = unicodedata.normalize("NFD", s)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_name(name: str | None) -> str:
    """Produce the comparison key for an item name.

    Case, accents, punctuation and spacing differences all collapse to the
    same key, so "Mléko", "mleko" and " MLEKO. " compare equal.
    """
    if not name:
        return ""
    s = name.strip().lower()
    s = _strip_diacritics(s)
    s = _PUNCT_RE.sub(" ", s)
    s = _SPACE_RE.sub(" ", s)
    return s.strip()


def tokens(key: str) -> list[str]:
    return key.split()


def sort_key(name: str) -> tuple[str, str]:
    # Accent/case-insensitive ordering, original text breaks ties.
    return normalize_name(name), name
