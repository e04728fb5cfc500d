from __future__ import annotations

import re
import unicodedata


# Lower-case Vietnamese letters with diacritics. Upper-case forms are folded by
# str.lower() before matching.
ACCENTED_LETTERS = (
    "àáảãạăằắẳẵặâầấẩẫậ"
    "èéẻẽẹêềếểễệ"
    "ìíỉĩị"
    "òóỏõọôồốổỗộơờớởỡợ"
    "ùúủũụưừứửữự"
    "ỳýỷỹỵ"
    "đ"
)

MIN_TERM_LENGTH = 3

_re_non_term = re.compile(rf"[^\w\s{ACCENTED_LETTERS}]", flags=re.ASCII)
_re_hyphen_linebreak = re.compile(r"(\w)-\n(\w)")
_re_multispace = re.compile(r"[ \t\x0b\r\f]+")
_re_multi_newlines = re.compile(r"\n{3,}")
_re_whitespace = re.compile(r"\s+")


def tokenize(text: str) -> list[str]:
    """Split text into index terms.

    Lower-cases, blanks out everything that is not an ASCII word character or
    an accented letter, splits on whitespace and drops tokens shorter than
    ``MIN_TERM_LENGTH``. Input is NFC-normalized first so decomposed accents
    match. Chunks and queries both go through here.
    """
    text = unicodedata.normalize("NFC", text).lower()
    cleaned = _re_non_term.sub(" ", text)
    return [t for t in cleaned.split() if len(t) >= MIN_TERM_LENGTH]


def normalize_text(text: str) -> str:
    """Light, deterministic cleanup for extracted document text.

    Paragraph breaks survive (at most two newlines in a row) since the
    chunker prefers to split on them.
    """

    # Fix word breaks: "anti-\ncoagulant" -> "anticoagulant"
    text = _re_hyphen_linebreak.sub(r"\1\2", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _re_multispace.sub(" ", text)
    text = _re_multi_newlines.sub("\n\n", text)
    text = "\n".join(line.rstrip() for line in text.splitlines())
    return text.strip()


def squash_whitespace(text: str) -> str:
    return _re_whitespace.sub(" ", text).strip()
