"""
Clinical note summarizer backed by the OpenAI chat API.

One request per call, no retry and no timeout of our own. Callers that just
want text use `summarize`, which never raises: a missing key or a failed
request turns into a fixed fallback message.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from openai import AsyncOpenAI

log = logging.getLogger("practice-app.summarizer")

DEFAULT_MODEL = "gpt-4o-mini"

MISSING_CONFIG_TEXT = "AI configuration missing. Please set OPENAI_API_KEY."
ERROR_TEXT = "Error generating summary."
EMPTY_TEXT = "No summary generated."

SUMMARY_PROMPT = (
    "You are a clinical assistant. Summarize the following clinical notes into a "
    "concise 2-sentence progress update for a dashboard view. Maintain professional "
    'medical tone. Notes: "{notes}"'
)


@dataclass
class SummaryResult:
    ok: bool
    text: str
    reason: Optional[str] = None


class NoteSummarizer:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = os.getenv("OPENAI_API_KEY", "") if api_key is None else api_key
        self.model = model or os.getenv("SUMMARY_MODEL", DEFAULT_MODEL)
        self._client = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def summarize_notes(self, notes: str) -> SummaryResult:
        if not self.configured:
            log.warning("OPENAI_API_KEY not set; returning fallback summary")
            return SummaryResult(ok=False, text=MISSING_CONFIG_TEXT, reason="missing-config")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": SUMMARY_PROMPT.format(notes=notes)}],
            )
            text = (response.choices[0].message.content or "").strip()
        except Exception as exc:
            log.exception("Summary request failed")
            return SummaryResult(ok=False, text=ERROR_TEXT, reason=str(exc))
        if not text:
            return SummaryResult(ok=False, text=EMPTY_TEXT, reason="empty-response")
        return SummaryResult(ok=True, text=text)

    async def summarize(self, notes: str) -> str:
        return (await self.summarize_notes(notes)).text


note_summarizer = NoteSummarizer()
