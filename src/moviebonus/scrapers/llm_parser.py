"""
Turn extracted page text into bonus records with a text-understanding service.

The service is asked for a JSON array of bonus candidates. Its output is
treated as untrusted: the array is located inside whatever text came back,
each item is decoded field by field with defaults, and low-confidence or
outdated items are dropped. Nothing in this module raises to its caller.
"""

import json
import logging
import re
from collections.abc import Callable
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from moviebonus.config import settings
from moviebonus.scrapers.models import LLMParseRequest, LLMParseResponse, ScrapedBonus
from moviebonus.services.llm_client import TextUnderstandingClient
from moviebonus.utils.text import truncate

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 0.3
DEFAULT_CONFIDENCE = 0.7  # Used when bonuses came back without any confidence values
DEFAULT_QUANTITY = "數量有限，送完為止"
TRUNCATION_MARKER = "\n... [已截斷]"

THEATER_NAMES: dict[str, str] = {
    "vieshow": "威秀影城",
    "ambassador": "國賓影城",
    "showtimes": "秀泰影城",
    "miramar": "美麗華影城",
    "in89": "in89 豪華數位影城",
}

BONUS_EXTRACTION_PROMPT = """你是一個專門分析台灣電影院特典資訊的 AI 助手。

## 任務
請從以下網頁內容中，提取電影入場特典（來場者特典/入場禮）的資訊。

## 影城
{{theaterName}}（ID: {{theaterId}}）

## 來源網址
{{sourceUrl}}

## 今天日期
{{today}}

## 輸出格式
只輸出 JSON 陣列，每個特典物品一個 object，不要其他文字：

[
  {
    "movieTitle": "電影名稱",
    "theaterName": "影城名稱",
    "week": 1,
    "description": "特典描述，例如：角色特製色紙",
    "quantity": "數量說明，例如：每場次前 30 名",
    "sourceUrl": "來源網址",
    "confidence": 0.8,
    "dateRelevance": "recent"
  }
]

## 重要注意事項
1. week 表示第幾週特典，如果無法判斷就填 1
2. 如果看不出數量限制，quantity 填 "數量有限，送完為止"
3. 只提取「入場特典」「來場者特典」「購票贈品」，不包含周邊商品販售
4. 如果內容中沒有特典資訊，回傳空陣列 []
5. 不要編造不存在的資訊
6. **日期檢查**：只提取最近 3 個月內的資訊。明顯是舊文章（超過 3 個月前）就跳過。
7. **重映電影**：重映/再上映/4K修復/IMAX紀念版等，只提取重映版的最新特典，不要提取原版上映時的舊特典。
8. **confidence**（0-1）：0.9-1.0 官方最新資訊；0.6-0.8 可信但需驗證；0.3-0.5 不太確定；0-0.2 很可能過時
9. **dateRelevance**："recent" 確認 3 個月內；"uncertain" 無法判斷；"outdated" 明確過期（請不要提取）

## 網頁內容
{{html}}
"""

THEATER_BONUS_PROMPT = """你是一個專門分析台灣電影院特典/入場禮資訊的 AI 助手。

## 任務
分析以下來自「{{theaterName}}」的網頁內容，提取所有電影入場特典（來場者特典/入場禮/購票贈品）資訊。

## 今天日期
{{today}}

## 重要規則
1. 只提取「入場特典」「來場者特典」「購票贈品」「預購特典」，不包含周邊商品販售
2. 每部電影的每個不同特典物品各一筆
3. week 表示第幾週特典（第 1 週、第 2 週...），無法判斷就填 1
4. 如果看不出數量限制，quantity 填 "數量有限，送完為止"
5. 不要編造不存在的資訊
6. 如果沒有特典資訊，回傳空陣列 []
7. **日期過濾**：只提取最近 3 個月內的活動/特典。明顯過期的舊活動請跳過。
8. **重映電影**：重映/4K修復/IMAX紀念版等，只提取重映版的特典，不要混入原版舊特典。
9. **confidence** (0-1)：0.9+ = 官方最新, 0.6-0.8 = 可信, <0.3 = 可能過期
10. **dateRelevance**："recent" = 3個月內, "uncertain" = 不確定, "outdated" = 過期舊文

## 影城
{{theaterName}}（ID: {{theaterId}}）

## 來源
{{sourceUrl}}

## 輸出格式
只輸出 JSON 陣列，不要其他文字：

[
  {
    "movieTitle": "完整電影名稱",
    "theaterName": "{{theaterName}}",
    "week": 1,
    "description": "特典詳細描述，例如：A3 限定海報（IMAX 場次限定）",
    "quantity": "數量說明，例如：購票即贈，數量有限",
    "sourceUrl": "{{sourceUrl}}",
    "confidence": 0.8,
    "dateRelevance": "recent"
  }
]

## 網頁內容
{{html}}
"""


class DateRelevanceTag(str, Enum):
    RECENT = "recent"
    UNCERTAIN = "uncertain"
    OUTDATED = "outdated"


class BonusCandidate(BaseModel):
    """
    One bonus item as returned by the text-understanding service.

    Every field is optional and coerced leniently: malformed values become
    defaults instead of validation errors.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    movie_title: str = Field("", alias="movieTitle")
    theater_name: str = Field("", alias="theaterName")
    week: int | None = None
    description: str = ""
    quantity: str = ""
    source_url: str = Field("", alias="sourceUrl")
    confidence: float | None = None
    date_relevance: DateRelevanceTag = Field(DateRelevanceTag.UNCERTAIN, alias="dateRelevance")

    @field_validator(
        "movie_title", "theater_name", "description", "quantity", "source_url", mode="before"
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if isinstance(value, bool) or value is None:
            return ""
        if isinstance(value, (str, int, float)):
            return str(value).strip()
        return ""

    @field_validator("week", mode="before")
    @classmethod
    def _coerce_week(cls, value: Any) -> int | None:
        if isinstance(value, bool):
            return None
        try:
            week = int(value)
        except (TypeError, ValueError):
            return None
        return week if week >= 1 else None

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> float | None:
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return None
        try:
            confidence = float(value)
        except ValueError:
            return None
        if confidence != confidence:  # NaN
            return None
        return min(max(confidence, 0.0), 1.0)

    @field_validator("date_relevance", mode="before")
    @classmethod
    def _coerce_date_relevance(cls, value: Any) -> DateRelevanceTag:
        if isinstance(value, str):
            try:
                return DateRelevanceTag(value.strip().lower())
            except ValueError:
                pass
        return DateRelevanceTag.UNCERTAIN

    @classmethod
    def decode(cls, item: Any) -> "BonusCandidate | None":
        """Decode one array element, returning None for non-objects."""
        if not isinstance(item, dict):
            return None
        try:
            return cls.model_validate(item)
        except ValidationError as e:
            logger.debug(f"Skipping undecodable bonus candidate: {e}")
            return None

    @property
    def is_acceptable(self) -> bool:
        """Whether the candidate passes the outdated and confidence filters."""
        if self.date_relevance is DateRelevanceTag.OUTDATED:
            return False
        if self.confidence is not None and self.confidence < MIN_CONFIDENCE:
            return False
        return bool(self.movie_title and self.description)

    def to_bonus(self, fallback_source_url: str) -> ScrapedBonus:
        return ScrapedBonus(
            movie_title=self.movie_title,
            theater_name=self.theater_name,
            week=self.week or 1,
            description=self.description,
            quantity=self.quantity or DEFAULT_QUANTITY,
            source_url=self.source_url or fallback_source_url,
        )


def build_prompt(
    request: LLMParseRequest,
    today: date | None = None,
    max_text_length: int | None = None,
) -> str:
    """
    Fill the prompt template for a request.

    The page text is truncated and substituted last so that placeholder-like
    strings inside scraped content are left untouched.
    """
    limit = max_text_length or settings.extract_max_chars
    template = request.prompt_template or BONUS_EXTRACTION_PROMPT
    text = truncate(request.html, limit, TRUNCATION_MARKER)
    theater_name = THEATER_NAMES.get(request.theater_id, request.theater_id)

    prompt = (
        template.replace("{{sourceUrl}}", request.source_url)
        .replace("{{theaterId}}", request.theater_id)
        .replace("{{theaterName}}", theater_name)
        .replace("{{today}}", (today or date.today()).isoformat())
    )
    return prompt.replace("{{html}}", text)


_ARRAY_START = re.compile(r"\[")


def _find_json_array(raw_response: str) -> list[Any] | None:
    """Decode the first JSON array embedded in the response text."""
    decoder = json.JSONDecoder()
    for match in _ARRAY_START.finditer(raw_response):
        try:
            value, _ = decoder.raw_decode(raw_response, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(value, list):
            return value
    return None


def parse_llm_response(raw_response: str, source_url: str) -> LLMParseResponse:
    """
    Parse the service's raw response into bonus records.

    Args:
        raw_response: Raw response text (may wrap the JSON in prose or fences)
        source_url: URL recorded on bonuses that do not name their own source

    Returns:
        LLMParseResponse; empty with confidence 0 when no array can be decoded
    """
    items = _find_json_array(raw_response)
    if items is None:
        logger.warning("No JSON array found in text service response")
        return LLMParseResponse(bonuses=[], confidence=0.0, raw_response=raw_response)

    kept = [
        candidate
        for candidate in (BonusCandidate.decode(item) for item in items)
        if candidate is not None and candidate.is_acceptable
    ]
    bonuses = [candidate.to_bonus(source_url) for candidate in kept]

    confidences = [c.confidence for c in kept if c.confidence is not None]
    if confidences:
        confidence = sum(confidences) / len(confidences)
    elif bonuses:
        confidence = DEFAULT_CONFIDENCE
    else:
        confidence = 0.0

    logger.debug(f"Parsed {len(bonuses)}/{len(items)} bonus candidates")
    return LLMParseResponse(bonuses=bonuses, confidence=confidence, raw_response=raw_response)


class LLMBonusParser:
    """Text-understanding adapter: prompt in, validated bonus records out."""

    def __init__(
        self,
        client: TextUnderstandingClient,
        *,
        max_text_length: int | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """
        Args:
            client: Service client used to run prompts
            max_text_length: Page text limit inside the prompt
            today: Provider of the reference date written into prompts
        """
        self.client = client
        self.max_text_length = max_text_length
        self._today = today

    @property
    def is_available(self) -> bool:
        """Whether the underlying client has its credential."""
        return self.client.is_configured

    async def parse(self, request: LLMParseRequest) -> LLMParseResponse:
        """Run one extraction request. Failures yield an empty response."""
        prompt = build_prompt(request, self._today(), self.max_text_length)
        logger.info(
            f"Calling text service for {request.theater_id}, prompt length: {len(prompt)}"
        )

        try:
            raw_response = await self.client.complete(prompt)
        except Exception as e:
            logger.error(f"Text service call failed for {request.theater_id}: {e}")
            return LLMParseResponse(bonuses=[], confidence=0.0, raw_response=f"[ERROR] {e}")

        logger.info(f"Text service response received, length: {len(raw_response)}")
        return parse_llm_response(raw_response, request.source_url)
