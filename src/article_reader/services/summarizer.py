"""Article summarization through the Gemini generateContent API."""

from __future__ import annotations

import logging

import httpx

from ..errors import SummarizationError
from ..schemas.article import Language

logger = logging.getLogger(__name__)

_LANGUAGE_NAMES = {Language.EN: "English", Language.SV: "Swedish"}


def summary_instruction(word_count: int) -> str:
    """Pick the summary shape from the article length."""

    if word_count < 500:
        return "Summarize the article as a few concise bullet points."
    if word_count <= 1500:
        return "Summarize the article in one short paragraph."
    return "Summarize the article in several paragraphs covering the main sections."


def build_prompt(text: str, language: Language) -> str:
    word_count = len(text.split())
    language_name = _LANGUAGE_NAMES[language]
    return (
        f"{summary_instruction(word_count)} "
        f"Respond in {language_name}, the same language as the article. "
        "The summary will be read aloud, so avoid markdown, headings and emoji.\n\n"
        f"Article:\n{text}"
    )


class GeminiSummarizer:
    """Generate a spoken-friendly summary with a Gemini model."""

    def __init__(
        self,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        model: str = "gemini-2.0-flash",
        timeout: float = 30.0,
    ) -> None:
        self.base_url = str(base_url).rstrip("/")
        self.model = model
        self.timeout = timeout

    async def summarize(self, text: str, language: Language, credential: str) -> str:
        """Return the summary text; raise SummarizationError on any failure."""

        payload = {
            "contents": [{"parts": [{"text": build_prompt(text, language)}]}],
            "generationConfig": {"temperature": 0.3},
        }
        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=5.0)
            ) as client:
                resp = await client.post(url, params={"key": credential}, json=payload)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.exception("Summarization request rejected")
            raise SummarizationError(
                f"Failed to summarize article: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.exception("Summarization request failed")
            raise SummarizationError("Failed to summarize article: network error") from exc
        except ValueError as exc:
            logger.warning("Summarization response was not JSON: %s", exc)
            raise SummarizationError("Failed to summarize article: invalid response") from exc

        try:
            parts = data["candidates"][0]["content"]["parts"]
            summary = "".join(part.get("text", "") for part in parts).strip()
        except (KeyError, IndexError, TypeError) as exc:
            raise SummarizationError("Failed to summarize article: empty response") from exc
        if not summary:
            raise SummarizationError("Failed to summarize article: empty response")

        logger.info(
            "Summarized %d words into %d words", len(text.split()), len(summary.split())
        )
        return summary


__all__ = ["GeminiSummarizer", "build_prompt", "summary_instruction"]
