"""
Rerelease detection and date-recency heuristics.

Rereleased films (4K restorations, anniversary screenings, IMAX reissues)
share titles with their original run, so pages about them often mix in
bonus information from years ago. These pure functions flag rerelease
titles and judge whether a piece of text is recent enough to trust.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date

# Presence of any of these in a title or its surrounding text marks a likely rerelease
RERELEASE_KEYWORDS: tuple[str, ...] = (
    "重映",
    "再上映",
    "4K",
    "IMAX",
    "數位修復",
    "經典回歸",
    "重返大銀幕",
    "紀念版",
    "紀念上映",
    "周年紀念",
    "重新上映",
    "復刻上映",
    "經典重映",
    "數位紀念版",
    "Dolby Cinema",
    "杜比影院",
    "4K修復",
    "4K 修復",
    "數位修復版",
    "重製版",
    "特別版上映",
)

_RERELEASE_KEYWORDS_LOWER = tuple(kw.lower() for kw in RERELEASE_KEYWORDS)

RERELEASE_SEARCH_MODIFIERS: tuple[str, ...] = ("重映", "重新上映", "特典")

DEFAULT_SEARCH_SUFFIX = "特典 入場禮"

_MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")

# 2025-01-15, 2025/01/15
_ISO_DATE = re.compile(r"(\d{4})[-/](\d{1,2})[-/](\d{1,2})")
# 2025年1月15日
_CJK_DATE = re.compile(r"(\d{4})年(\d{1,2})月(\d{1,2})日")
# Jan 15, 2025 / January 15 2025 / Sept. 3, 2025
_MONTH_NAME_DATE = re.compile(
    r"\b(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+(\d{1,2}),?\s+(\d{4})",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class DateRelevance:
    is_recent: bool
    extracted_date: str | None  # Matched text of the latest date, if any


def contains_rerelease_keywords(text: str) -> bool:
    """Check whether text contains any rerelease keyword (case-insensitive)."""
    lower = text.lower()
    return any(kw in lower for kw in _RERELEASE_KEYWORDS_LOWER)


def detect_rerelease(title: str, additional_text: str | None = None) -> bool:
    """
    Detect whether a movie is likely a rerelease.

    Args:
        title: Movie title
        additional_text: Extra text such as a synopsis or search snippet

    Returns:
        True if either string contains a rerelease keyword
    """
    if contains_rerelease_keywords(title):
        return True
    return bool(additional_text) and contains_rerelease_keywords(additional_text)


def build_rerelease_search_query(movie_title: str, year: int | None = None) -> str:
    """
    Build a search query for a rereleased movie.

    Adding the year and rerelease terms keeps results about the original
    run out of the way.

    Example:
        build_rerelease_search_query("魔法公主", 2026) → "魔法公主 2026 重映 重新上映 特典"
    """
    current_year = year if year is not None else date.today().year
    return " ".join([movie_title, str(current_year), *RERELEASE_SEARCH_MODIFIERS])


def build_search_query(movie_title: str, suffix: str = DEFAULT_SEARCH_SUFFIX) -> str:
    """Build a search query for a movie in its first run."""
    return f"{movie_title} {suffix}"


def subtract_months(day: date, months: int) -> date:
    """Go back a number of calendar months, clamping to the month's last day."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _find_dates(text: str) -> list[tuple[date, str]]:
    """Return every valid (date, matched text) pair found in text."""
    found: list[tuple[date, str]] = []

    for pattern in (_ISO_DATE, _CJK_DATE):
        for m in pattern.finditer(text):
            parsed = _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
            if parsed:
                found.append((parsed, m.group(0)))

    for m in _MONTH_NAME_DATE.finditer(text):
        month = _MONTHS.index(m.group(1).lower()) + 1
        parsed = _safe_date(int(m.group(3)), month, int(m.group(2)))
        if parsed:
            found.append((parsed, m.group(0)))

    return found


def check_date_relevance(
    text: str,
    max_age_months: int = 3,
    today: date | None = None,
) -> DateRelevance:
    """
    Judge whether text refers to something recent.

    The latest date found in the text is compared with ``today`` minus
    ``max_age_months``. Text with no recognizable date counts as recent:
    the absence of a date is not evidence that the content is stale.

    Args:
        text: Text to scan (e.g. a bonus description plus its quantity note)
        max_age_months: Size of the recency window in months
        today: Reference date (defaults to the current date)

    Returns:
        DateRelevance with the verdict and the matched text of the latest date
    """
    reference = today or date.today()
    cutoff = subtract_months(reference, max_age_months)

    found = _find_dates(text)
    if not found:
        return DateRelevance(is_recent=True, extracted_date=None)

    latest, latest_text = max(found, key=lambda pair: pair[0])
    return DateRelevance(is_recent=latest >= cutoff, extracted_date=latest_text)


def get_freshness_param(months: int = 3, today: date | None = None) -> str:
    """
    Build a ``YYYY-MM-DDtoYYYY-MM-DD`` freshness window for search APIs.

    Example:
        get_freshness_param(3, date(2026, 5, 31)) → "2026-02-28to2026-05-31"
    """
    reference = today or date.today()
    start = subtract_months(reference, months)
    return f"{start.isoformat()}to{reference.isoformat()}"
