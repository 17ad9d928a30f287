"""Search normalization for catalog names.

normalize_for_search() folds visually equivalent spellings onto one
canonical form so that "ぷらなやま", "ﾌﾟﾗﾅﾔﾏ", "Ｐｒāṇāyāma" and "pranayama"
compare equal inside their own script. derive_tokens() cuts canonical text
into overlapping n-grams for partial matching.

Both functions are pure and never raise.
"""

import re
import unicodedata
from collections.abc import Iterable, Iterator
from typing import Any

DEFAULT_NGRAM_LENGTHS: tuple[int, ...] = (2, 3)

# U+3041 (ぁ) .. U+3096 (ゖ); katakana sits 0x60 code points higher.
_KATAKANA_OFFSET = 0x60

_HIRAGANA_RE = re.compile(r"[\u3041-\u3096]")
_COMBINING_MARKS_RE = re.compile(r"[\u0300-\u036f]")


def hiragana_to_katakana(text: str) -> str:
    """Map every hiragana code point to its katakana counterpart."""
    return _HIRAGANA_RE.sub(lambda match: chr(ord(match.group()) + _KATAKANA_OFFSET), text)


def strip_diacritics(text: str) -> str:
    """Decompose (NFD) and drop combining diacritical marks U+0300-U+036F."""
    return _COMBINING_MARKS_RE.sub("", unicodedata.normalize("NFD", text))


def normalize_for_search(value: Any) -> str:
    """Normalize text for search matching.

    Steps (order matters):
    - Hiragana -> katakana.
    - NFD + removal of combining diacritical marks.
    - NFKC to fold fullwidth/halfwidth and compatibility variants.
    - Lowercase.

    Non-string and empty input yields "".
    """
    if not isinstance(value, str) or not value:
        return ""

    normalized = hiragana_to_katakana(value)
    normalized = strip_diacritics(normalized)
    normalized = unicodedata.normalize("NFKC", normalized)
    return normalized.lower()


def _iter_ngrams(text: str, lengths: Iterable[int]) -> Iterator[str]:
    if not isinstance(text, str) or not text:
        return
    for n in lengths:
        if n < 1:
            continue
        for start in range(len(text) - n + 1):
            yield text[start : start + n]


def derive_tokens(text: str, lengths: Iterable[int] = DEFAULT_NGRAM_LENGTHS) -> set[str]:
    """Return the set of n-grams of ``text`` for every n in ``lengths``."""
    return set(_iter_ngrams(text, lengths))


def ordered_tokens(text: str, lengths: Iterable[int] = DEFAULT_NGRAM_LENGTHS) -> list[str]:
    """Same tokens as derive_tokens(), deduplicated in first-seen order."""
    return list(dict.fromkeys(_iter_ngrams(text, lengths)))
