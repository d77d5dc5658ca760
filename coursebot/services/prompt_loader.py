"""
System prompt template loading.

The template is read once (from disk or over HTTP) and cached on the loader
for the life of the process. There is no refresh; a changed template needs a
restart.
"""

from pathlib import Path
from typing import Optional

import httpx
from loguru import logger

COURSES_PLACEHOLDER = "{{COURSES_LIST}}"
CURRENT_COURSE_PLACEHOLDER = "{{CURRENT_COURSE_CONTEXT}}"

FALLBACK_SYSTEM_PROMPT = f"""You are Kōchime AI Guide, a helpful assistant for a course management platform. You help users find courses, answer questions about learning, and provide educational guidance.

Available courses:
{COURSES_PLACEHOLDER}

Guidelines:
- Be helpful, friendly, and encouraging
- Focus on education and learning
- Provide specific course recommendations when relevant
- Keep responses concise but informative
- If you don't know something, be honest about it

{CURRENT_COURSE_PLACEHOLDER}"""


class PromptTemplateLoader:
    def __init__(self, source: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.source = source
        self.timeout = timeout
        self.client = client
        self._template: Optional[str] = None

    @property
    def is_loaded(self) -> bool:
        return self._template is not None

    async def load(self) -> str:
        if self._template is not None:
            return self._template

        try:
            self._template = await self._fetch()
        except (OSError, ValueError, httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Could not load system prompt from {self.source}, using fallback: {e}")
            self._template = FALLBACK_SYSTEM_PROMPT

        return self._template

    async def _fetch(self) -> str:
        if self.source.startswith(("http://", "https://")):
            if self.client is not None:
                response = await self.client.get(self.source)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.source)
            response.raise_for_status()
            return response.text
        return Path(self.source).read_text(encoding="utf-8")


_loader: Optional[PromptTemplateLoader] = None


def get_prompt_loader() -> PromptTemplateLoader:
    """Process-wide loader, created on first use."""
    global _loader
    if _loader is None:
        from coursebot.config import settings
        _loader = PromptTemplateLoader(settings.SYSTEM_PROMPT_PATH)
    return _loader
