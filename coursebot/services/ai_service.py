"""
Chat response orchestration across the configured AI providers.

Providers are tried one at a time in priority order. The first one that
returns text wins; every failure is logged and the next provider is tried.
When none is registered or all of them fail, a rule-based reply is returned,
so ``generate_response`` always produces a string.
"""

import asyncio
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Optional, Set, Tuple

from loguru import logger

from coursebot.services.conversation import ConversationHistory, ConversationTurn, GenerationContext
from coursebot.services.fallback import fallback_response
from coursebot.services.prompt_builder import build_conversation_context, build_system_prompt
from coursebot.services.prompt_loader import PromptTemplateLoader
from coursebot.services.provider_registry import PROVIDER_CATALOG, ProviderId, ProviderRegistry

FALLBACK_PROVIDER = "fallback"


@dataclass(frozen=True)
class ProviderAttempt:
    provider_id: ProviderId
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return bool(self.text)


class AIAgent:
    def __init__(
        self,
        registry: ProviderRegistry,
        prompt_loader: PromptTemplateLoader,
        max_history: int = 10,
        context_history: int = 6,
        timeout: Optional[float] = 15.0,
    ):
        self.registry = registry
        self.prompt_loader = prompt_loader
        self.context_history = context_history
        self.timeout = timeout
        self.current_provider: Optional[str] = None
        self._history = ConversationHistory(max_history)

    @property
    def history(self) -> Tuple[ConversationTurn, ...]:
        return self._history.snapshot()

    async def generate_response(self, user_message: str, context: Optional[GenerationContext] = None) -> str:
        context = context or GenerationContext()

        for provider_id, handler in self.registry.ordered():
            attempt = await self._attempt(provider_id, handler, user_message, context)
            if attempt.succeeded:
                self.current_provider = provider_id.value
                self._history.record_exchange(user_message, attempt.text)
                logger.info(f"[{provider_id.value}] '{user_message[:40]}' -> '{attempt.text[:60]}'")
                return attempt.text
            logger.warning(f"Provider {provider_id.value} failed, trying next: {attempt.error}")

        self.current_provider = FALLBACK_PROVIDER
        response = fallback_response(
            user_message, context, providers_configured=not self.registry.is_empty()
        )
        logger.info(f"[FALLBACK] '{user_message[:40]}' -> '{response[:60]}...'")
        return response

    async def _attempt(
        self, provider_id: ProviderId, handler, user_message: str, context: GenerationContext
    ) -> ProviderAttempt:
        try:
            template = await self.prompt_loader.load()
            system_prompt = build_system_prompt(template, context.courses, context.selected_course)
            conversation = build_conversation_context(
                self._history.recent(self.context_history), user_message, limit=None
            )
            text = await asyncio.wait_for(handler.complete(system_prompt, conversation), timeout=self.timeout)
        except asyncio.TimeoutError:
            return ProviderAttempt(provider_id, error=f"timed out after {self.timeout}s")
        except Exception as e:
            return ProviderAttempt(provider_id, error=f"{type(e).__name__}: {e}")

        text = (text or "").strip() if isinstance(text, str) else ""
        if not text:
            return ProviderAttempt(provider_id, error="empty response")
        return ProviderAttempt(provider_id, text=text)

    def clear_history(self):
        self._history.clear()

    def get_current_provider(self) -> str:
        return self.current_provider or "loading"

    def available_providers(self) -> Set[ProviderId]:
        return self.registry.available_providers()

    @staticmethod
    def provider_info() -> Dict[str, dict]:
        return {p.value: info for p, info in PROVIDER_CATALOG.items()}


class AgentSessions:
    """One agent per chat session; the registry and prompt loader are shared.

    The table keeps at most ``max_sessions`` agents. When a new session would
    exceed it, the least recently used session is dropped along with its history.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        prompt_loader: PromptTemplateLoader,
        max_history: int = 10,
        context_history: int = 6,
        timeout: Optional[float] = 15.0,
        max_sessions: int = 1000,
    ):
        self.registry = registry
        self.prompt_loader = prompt_loader
        self.max_history = max_history
        self.context_history = context_history
        self.timeout = timeout
        self.max_sessions = max(1, max_sessions)
        self._agents: "OrderedDict[str, AIAgent]" = OrderedDict()

    def get(self, session_id: str) -> AIAgent:
        agent = self._agents.get(session_id)
        if agent is not None:
            self._agents.move_to_end(session_id)
            return agent

        agent = AIAgent(
            self.registry,
            self.prompt_loader,
            max_history=self.max_history,
            context_history=self.context_history,
            timeout=self.timeout,
        )
        self._agents[session_id] = agent
        while len(self._agents) > self.max_sessions:
            evicted, _ = self._agents.popitem(last=False)
            logger.debug(f"Session table full, evicted [{evicted[:8]}]")
        return agent

    def reset(self, session_id: str) -> bool:
        return self._agents.pop(session_id, None) is not None

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._agents

    def __len__(self) -> int:
        return len(self._agents)


_sessions: Optional[AgentSessions] = None


def get_sessions() -> AgentSessions:
    """Process-wide session table, built from settings on first use."""
    global _sessions
    if _sessions is None:
        from coursebot.config import settings
        from coursebot.services.prompt_loader import get_prompt_loader

        _sessions = AgentSessions(
            ProviderRegistry.initialize(settings.provider_credentials()),
            get_prompt_loader(),
            max_history=settings.MAX_HISTORY_LENGTH,
            context_history=settings.CONTEXT_HISTORY_LENGTH,
            timeout=settings.PROVIDER_TIMEOUT_S,
            max_sessions=settings.MAX_SESSIONS,
        )
    return _sessions
