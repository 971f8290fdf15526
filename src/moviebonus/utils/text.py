"""Text normalization utilities for movie title matching."""

import re

# Characters kept in a match key: CJK ideographs, hiragana, katakana,
# half-width katakana, ASCII lowercase letters and digits.
_NON_KEY_CHARS = re.compile(
    r"[^\u4e00-\u9fff\u3040-\u309f\u30a0-\u30ff\uff66-\uff9fa-z0-9]"
)

_WHITESPACE = re.compile(r"\s+")

# "Title：Subtitle", "Title: Subtitle", "Title - Subtitle" (spaced dashes only)
_SUBTITLE_SEPARATOR = re.compile(r"\s*[:：]\s*|\s+[-–—]\s+")

# Full-width ASCII block (！ to ～) sits at a fixed offset from ASCII.
_FULLWIDTH_START = 0xFF01
_FULLWIDTH_END = 0xFF5E
_FULLWIDTH_OFFSET = 0xFEE0


def fold_fullwidth(text: str) -> str:
    """
    Convert full-width ASCII characters to their half-width equivalents.

    Examples:
        "ＩＭＡＸ" → "IMAX"
        "４Ｋ" → "4K"
    """
    return "".join(
        chr(ord(ch) - _FULLWIDTH_OFFSET)
        if _FULLWIDTH_START <= ord(ch) <= _FULLWIDTH_END
        else ch
        for ch in text
    )


def normalize(text: str) -> str:
    """
    Build a match key for a movie title or bonus description.

    - Full-width alphanumerics are folded to half-width
    - Lower-cased
    - Punctuation, whitespace and symbols are removed

    Args:
        text: Raw title or description

    Returns:
        Key containing only CJK/kana/Latin/digit characters
    """
    return _NON_KEY_CHARS.sub("", fold_fullwidth(text).lower())


def title_variants(title: str) -> list[str]:
    """
    Return the title plus its main title when it carries a subtitle.

    Subtitles follow a colon (full- or half-width) or a spaced dash:

        "鬼滅之刃：無限列車篇" → ["鬼滅之刃：無限列車篇", "鬼滅之刃"]
        "Dune - Part Two" → ["Dune - Part Two", "Dune"]
        "Spider-Man" → ["Spider-Man"]   (unspaced hyphen is not a separator)
    """
    title = title.strip()
    parts = _SUBTITLE_SEPARATOR.split(title, maxsplit=1)
    if len(parts) == 2 and parts[0].strip() and parts[1].strip():
        return [title, parts[0].strip()]
    return [title]


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and strip the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def truncate(text: str, max_length: int, marker: str = "") -> str:
    """Cut text to max_length characters, appending marker when cut."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + marker
