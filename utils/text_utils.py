"""
Text utilities for Japanese channel titles.

Used to reduce product titles to a comparable core before similarity
scoring, and to read quantities out of channel reports.
"""

import re
from typing import Optional

_WHITESPACE = re.compile(r"[\s　]+")
_BRACKETED = re.compile(r"[（(][^）)]*[）)]")
_HYPHENS = re.compile(r"[-‐‑‒–—―−ーｰ～~]")
_QUOTE_BRACKETS = re.compile(r"[【】『』「」]")
_ALNUM = re.compile(r"[0-9０-９a-zA-Zａ-ｚＡ-Ｚ]")
_PUNCTUATION = re.compile(r"[.,:。、．，：]")
_THOUSANDS = re.compile(r"[,，\s　]")
_FULLWIDTH_DIGITS = str.maketrans("０１２３４５６７８９－", "0123456789-")


def normalize_product_name(raw: Optional[str]) -> str:
    """
    Reduce a product title to its comparable core.

    - "【P】チャーシューたれ（大）" → "チャシュたれ"
    - "商品（大）" → "商品"
    - "ABC-123" → ""

    Removes whitespace, parenthesized segments (with their contents),
    hyphens and long-vowel marks, 【】『』「」, ASCII and full-width
    letters/digits and basic punctuation, then lowercases.

    Args:
        raw: Title as it appears on the channel or in the catalog

    Returns:
        Normalized string (empty for empty input)
    """
    if not raw:
        return ""

    text = _WHITESPACE.sub("", raw)
    text = _BRACKETED.sub("", text)
    text = _HYPHENS.sub("", text)
    text = _QUOTE_BRACKETS.sub("", text)
    # Lowercase before dropping letters: some non-ASCII capitals lowercase to ASCII
    text = text.lower()
    text = _ALNUM.sub("", text)
    text = _PUNCTUATION.sub("", text)

    return text


def parse_quantity(raw: Optional[str], default: int = 0) -> int:
    """
    Parse a sold-units cell.

    Strips thousands separators ("1,234", "１，２３４") and whitespace.
    Decimal cells are truncated ("3.0" → 3).

    Args:
        raw: Cell text
        default: Value returned when the cell is blank or not a number

    Returns:
        Integer quantity
    """
    if raw is None:
        return default

    cleaned = _THOUSANDS.sub("", str(raw)).translate(_FULLWIDTH_DIGITS)
    if not cleaned:
        return default

    try:
        return int(float(cleaned))
    except (ValueError, OverflowError):
        return default
