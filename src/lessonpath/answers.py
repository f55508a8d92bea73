"""Lenient comparison of typed answers against expected answers."""

from __future__ import annotations

import unicodedata
from collections.abc import Mapping, Sequence

# Canonical spelling -> alternates learners commonly type. Igbo entries cover
# spellings without dot-below vowels.
ANSWER_VARIANTS: dict[str, tuple[str, ...]] = {
    "Ka ọ dị": ("Ka o di", "ka ọ dị", "ka o di"),
    "Ndewo": ("ndewo",),
    "Daalụ": ("Daalu", "daalụ", "daalu"),
    "Biko": ("biko",),
    "Ụtụtụ ọma": ("Ututu oma", "utụtụ ọma", "ututu oma"),
    "Ehihie ọma": ("Ehihie oma", "ehihie ọma", "ehihie oma"),
    "Ọ dị m ụtọ izute gị": ("O di m uto izute gi", "ọ dị m ụtọ izute gị", "o di m uto izute gi"),
    "Kedu ka ị mere": ("Kedu ka i mere", "kedu ka ị mere", "kedu ka i mere"),
    "Ụmụaka": ("Umụaka", "umụaka", "Umuaka"),
    "Ụlọ": ("Ulo", "ụlọ", "ulo"),
    "Akwụkwọ": ("Akwukwo", "akwụkwọ", "akwukwo"),
    "Ụbọchị": ("Ubọchị", "ubọchị", "Ubochi"),
    "Abalị": ("Abali", "abalị", "abali"),
    "Anyasị": ("Anyasi", "anyasị", "anyasi"),
    "Ụwa": ("Uwa", "ụwa", "uwa"),
    "Oké ọhịa": ("Oke ohịa", "oké ọhịa", "oke ohịa", "Oke ohia"),
    "Ọnwa": ("Onwa", "ọnwa", "onwa"),
    "Ịga": ("Iga", "ịga", "iga"),
    "Bịa": ("Bia", "bịa", "bia"),
    "Nọrọ": ("Noro", "nọrọ", "noro"),
    "Nọdụ": ("Nodu", "nọdụ", "nodu"),
    "Kpọọ": ("Kpoo", "kpọọ", "kpoo"),
    "Zụta": ("Zuta", "zụta", "zuta"),
    "Kpụrụ": ("Kpuru", "kpụrụ", "kpuru"),
    # Yoruba greetings from the bundled lessons, typed in contracted form.
    "Ẹ káàárọ̀": ("E kaaro", "Ẹ kaaro", "E kaaaro"),
    "Ẹ káàsán": ("E kaasan", "Ẹ kaasan"),
}


def _key(text: str) -> str:
    return text.strip().lower()


def fold_diacritics(text: str) -> str:
    """Lowercase, drop combining accent marks and collapse whitespace."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return " ".join(stripped.split())


def answers_match(
    user_answer: str,
    expected: str,
    variants: Mapping[str, Sequence[str]] = ANSWER_VARIANTS,
) -> bool:
    """Return whether `user_answer` should be accepted for `expected`.

    Tries, in order: case-insensitive exact match, match with diacritics
    removed, and membership of both strings in one variant group.
    """
    user_key = _key(user_answer)
    if not user_key:
        return False
    expected_key = _key(expected)
    if user_key == expected_key:
        return True
    if fold_diacritics(user_answer) == fold_diacritics(expected):
        return True
    for canonical, alternates in variants.items():
        group = {_key(canonical), *(_key(item) for item in alternates)}
        if expected_key in group and user_key in group:
            return True
    return False
