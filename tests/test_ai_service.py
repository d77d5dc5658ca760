"""
Tests for response orchestration: provider fallback, history, and sessions.
"""

import asyncio

import pytest

from coursebot.services.ai_service import FALLBACK_PROVIDER, AgentSessions, AIAgent
from coursebot.services.conversation import GenerationContext, Role
from coursebot.services.fallback import GREETING_RESPONSE, ONBOARDING_MESSAGE
from coursebot.services.llm_providers import ProviderError
from coursebot.services.provider_registry import ProviderId, ProviderRegistry

pytestmark = pytest.mark.asyncio


class SlowProvider:
    provider_id = ProviderId.GROQ

    def __init__(self):
        self.cancelled = False

    async def complete(self, system_prompt, conversation):
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return "too late"


class TestNoProviders:
    @pytest.mark.parametrize("message", ["hello", "tell me about courses", "help", "anything at all"])
    async def test_onboarding_message_verbatim(self, message, prompt_loader, sample_courses):
        agent = AIAgent(ProviderRegistry(), prompt_loader)
        reply = await agent.generate_response(message, GenerationContext(courses=sample_courses))
        assert reply == ONBOARDING_MESSAGE
        assert agent.get_current_provider() == FALLBACK_PROVIDER
        assert agent.history == ()

    async def test_missing_context_is_allowed(self, prompt_loader):
        agent = AIAgent(ProviderRegistry(), prompt_loader)
        assert await agent.generate_response("hi") == ONBOARDING_MESSAGE


class TestProviderFallback:
    async def test_first_provider_wins(self, make_provider, make_registry, prompt_loader):
        groq = make_provider(ProviderId.GROQ, reply="from groq")
        together = make_provider(ProviderId.TOGETHER, reply="from together")
        agent = AIAgent(make_registry(groq, together), prompt_loader)

        assert await agent.generate_response("hi") == "from groq"
        assert agent.get_current_provider() == "groq"
        assert together.calls == []

    async def test_groq_error_falls_through_to_together(self, make_provider, make_registry, prompt_loader):
        groq = make_provider(ProviderId.GROQ, error=ProviderError(ProviderId.GROQ, "503"))
        together = make_provider(ProviderId.TOGETHER, reply="from together")
        agent = AIAgent(make_registry(groq, together), prompt_loader)

        reply = await agent.generate_response("what should I study?")
        assert reply == "from together"
        assert agent.get_current_provider() == "together"
        assert len(groq.calls) == 1

    async def test_unexpected_exception_is_contained(self, make_provider, make_registry, prompt_loader):
        groq = make_provider(ProviderId.GROQ, error=RuntimeError("boom"))
        hf = make_provider(ProviderId.HUGGINGFACE, reply="from hf")
        agent = AIAgent(make_registry(groq, hf), prompt_loader)
        assert await agent.generate_response("hi") == "from hf"

    @pytest.mark.parametrize("empty", [None, "", "   "])
    async def test_empty_output_tries_next(self, empty, make_provider, make_registry, prompt_loader):
        groq = make_provider(ProviderId.GROQ, reply=empty)
        together = make_provider(ProviderId.TOGETHER, reply="real answer")
        agent = AIAgent(make_registry(groq, together), prompt_loader)
        assert await agent.generate_response("hi") == "real answer"

    async def test_all_fail_uses_keyword_fallback(self, make_provider, make_registry, prompt_loader, sample_courses):
        groq = make_provider(ProviderId.GROQ, error=ProviderError(ProviderId.GROQ, "down"))
        agent = AIAgent(make_registry(groq), prompt_loader)

        reply = await agent.generate_response("tell me about courses", GenerationContext(courses=sample_courses))
        assert "Intro to React" in reply
        assert agent.get_current_provider() == FALLBACK_PROVIDER

        assert await agent.generate_response("hello") == GREETING_RESPONSE

    async def test_timeout_cancels_and_moves_on(self, make_provider, make_registry, prompt_loader):
        slow = SlowProvider()
        together = make_provider(ProviderId.TOGETHER, reply="fast")
        registry = ProviderRegistry({ProviderId.GROQ: slow, ProviderId.TOGETHER: together})
        agent = AIAgent(registry, prompt_loader, timeout=0.05)

        assert await agent.generate_response("hi") == "fast"
        assert slow.cancelled

    async def test_current_provider_switches_to_fallback(self, make_provider, make_registry, prompt_loader):
        groq = make_provider(ProviderId.GROQ, reply="ok")
        agent = AIAgent(make_registry(groq), prompt_loader)
        await agent.generate_response("hi")
        assert agent.get_current_provider() == "groq"

        groq.error = ProviderError(ProviderId.GROQ, "rate limited")
        await agent.generate_response("hi again")
        assert agent.get_current_provider() == FALLBACK_PROVIDER

    async def test_prompts_sent_to_provider(self, make_provider, make_registry, prompt_loader, sample_courses):
        groq = make_provider(ProviderId.GROQ, reply="answer")
        agent = AIAgent(make_registry(groq), prompt_loader)
        context = GenerationContext(courses=sample_courses[:1], selected_course=sample_courses[0])

        await agent.generate_response("first", context)
        await agent.generate_response("second", context)

        system_prompt, conversation = groq.calls[-1]
        assert "- Intro to React (Beginner) - Learn the basics of React framework" in system_prompt
        assert "Currently discussing: Intro to React" in system_prompt
        assert conversation == "User: first\nAssistant: answer\nUser: second\nAssistant:"

    async def test_prompt_carries_only_context_window(self, make_provider, make_registry, prompt_loader):
        groq = make_provider(ProviderId.GROQ, reply="r")
        agent = AIAgent(make_registry(groq), prompt_loader, context_history=2)
        for message in ("one", "two", "three"):
            await agent.generate_response(message)

        _, conversation = groq.calls[-1]
        assert conversation == "User: two\nAssistant: r\nUser: three\nAssistant:"
        assert len(agent.history) == 4

    async def test_loading_before_first_call(self, prompt_loader):
        assert AIAgent(ProviderRegistry(), prompt_loader).get_current_provider() == "loading"


class TestHistory:
    async def test_history_bounded_and_fifo(self, make_provider, make_registry, prompt_loader):
        groq = make_provider(ProviderId.GROQ, reply="ok")
        agent = AIAgent(make_registry(groq), prompt_loader, max_history=10)

        for i in range(8):
            groq.reply = f"a{i}"
            await agent.generate_response(f"q{i}")
            assert len(agent.history) <= 10

        contents = [turn.content for turn in agent.history]
        assert contents == ["q3", "a3", "q4", "a4", "q5", "a5", "q6", "a6", "q7", "a7"]
        assert [turn.role for turn in agent.history[:2]] == [Role.USER, Role.ASSISTANT]

    async def test_fallback_does_not_touch_history(self, make_provider, make_registry, prompt_loader):
        groq = make_provider(ProviderId.GROQ, reply="ok")
        agent = AIAgent(make_registry(groq), prompt_loader)
        await agent.generate_response("q")

        groq.error = ProviderError(ProviderId.GROQ, "down")
        await agent.generate_response("lost")
        assert [t.content for t in agent.history] == ["q", "ok"]

    async def test_clear_history(self, make_provider, make_registry, prompt_loader):
        agent = AIAgent(make_registry(make_provider(ProviderId.GROQ, reply="ok")), prompt_loader)
        await agent.generate_response("q")
        agent.clear_history()
        assert agent.history == ()


class TestAgentSessions:
    async def test_sessions_keep_separate_state(self, make_provider, make_registry, prompt_loader):
        groq = make_provider(ProviderId.GROQ, reply="ok")
        sessions = AgentSessions(make_registry(groq), prompt_loader)

        await sessions.get("alice").generate_response("from alice")
        bob = sessions.get("bob")

        assert len(sessions.get("alice").history) == 2
        assert bob.history == ()
        assert bob.get_current_provider() == "loading"
        assert "alice" in sessions and len(sessions) == 2

    async def test_shared_registry_and_loader(self, make_registry, prompt_loader):
        sessions = AgentSessions(make_registry(), prompt_loader)
        a, b = sessions.get("a"), sessions.get("b")
        assert a.registry is b.registry
        assert a.prompt_loader is b.prompt_loader

    async def test_reset(self, make_registry, prompt_loader):
        sessions = AgentSessions(make_registry(), prompt_loader)
        sessions.get("a")
        assert sessions.reset("a")
        assert not sessions.reset("a")

    async def test_table_is_bounded(self, make_registry, prompt_loader):
        sessions = AgentSessions(make_registry(), prompt_loader, max_sessions=3)
        for i in range(50):
            await sessions.get(f"anon-{i}").generate_response("hi")

        assert len(sessions) == 3
        assert "anon-49" in sessions
        assert "anon-0" not in sessions

    async def test_least_recently_used_session_is_evicted(self, make_registry, prompt_loader):
        sessions = AgentSessions(make_registry(), prompt_loader, max_sessions=2)
        sessions.get("a")
        sessions.get("b")
        sessions.get("a")
        sessions.get("c")

        assert "a" in sessions and "c" in sessions
        assert "b" not in sessions
