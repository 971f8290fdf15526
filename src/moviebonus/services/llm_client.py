"""Text-understanding service clients."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from moviebonus.config import settings

logger = logging.getLogger(__name__)


class LLMClientError(Exception):
    """Raised when the text-understanding service cannot produce a response."""


class TextUnderstandingClient(ABC):
    """Abstract base for clients that turn a prompt into response text."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the client has the credential it needs to make calls."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """
        Send a prompt and return the raw response text.

        Raises:
            LLMClientError: On missing credentials, HTTP or transport errors
        """


class AnthropicClient(TextUnderstandingClient):
    """Client for the Anthropic Messages API."""

    API_VERSION = "2023-06-01"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: API key (uses settings if not provided)
            model: Model identifier (uses settings if not provided)
            max_tokens: Completion token limit (uses settings if not provided)
            http_client: Optional shared httpx client, mainly for tests
        """
        self.api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.llm_model
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self._http_client = http_client
        if not self.api_key:
            logger.warning("Anthropic API key not configured")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise LLMClientError("ANTHROPIC_API_KEY is not set")

        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.API_VERSION,
            "content-type": "application/json",
        }
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    settings.anthropic_api_url, headers=headers, json=payload
                )
            else:
                async with httpx.AsyncClient(timeout=settings.llm_timeout) as client:
                    response = await client.post(
                        settings.anthropic_api_url, headers=headers, json=payload
                    )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise LLMClientError(f"HTTP {e.response.status_code} from text service") from e
        except (httpx.HTTPError, ValueError) as e:
            raise LLMClientError(str(e) or type(e).__name__) from e

        return self.extract_text(data)

    @staticmethod
    def extract_text(data: dict[str, Any]) -> str:
        """Return the first text block of a Messages API response, or ''."""
        for block in data.get("content", []):
            if isinstance(block, dict) and block.get("type") == "text":
                return str(block.get("text", ""))
        return ""
