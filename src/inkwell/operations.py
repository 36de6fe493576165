from __future__ import annotations

import structlog

from .client import ProviderClient
from .prompts import OUTLINE_SYSTEM_PROMPT, SUMMARIZE_SYSTEM_PROMPT, paragraph_prompt, reword_prompt

log = structlog.get_logger()


class Summarizer:
    def __init__(self, client: ProviderClient, model: str):
        self.client = client
        self.model = model

    async def summarize(self, text: str) -> str:
        log.debug("summarize_requested", provider=self.client.name, model=self.model, chars=len(text))
        return await self.client.create_chat_completion(text, self.model, SUMMARIZE_SYSTEM_PROMPT)


class Creator:
    """Creative-writing operations, optionally biased toward a writing style exemplar."""

    def __init__(self, client: ProviderClient, model: str, writing_style: str | None = None):
        self.client = client
        self.model = model
        self.writing_style = writing_style

    async def reword_content(self, text: str) -> str:
        return await self.client.create_chat_completion(text, self.model, reword_prompt(self.writing_style))

    async def generate_paragraph(self, text: str) -> str:
        return await self.client.create_chat_completion(text, self.model, paragraph_prompt(self.writing_style))

    async def generate_outline(self, text: str) -> str:
        return await self.client.create_chat_completion(text, self.model, OUTLINE_SYSTEM_PROMPT)
