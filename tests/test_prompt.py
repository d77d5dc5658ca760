"""
Tests for system prompt loading and rendering.
"""

from types import SimpleNamespace

import httpx
import pytest

from coursebot.config import DEFAULT_PROMPT_PATH
from coursebot.services.conversation import ConversationHistory, ConversationTurn, Role
from coursebot.services.prompt_builder import (
    NO_COURSES_TEXT,
    build_conversation_context,
    build_system_prompt,
    format_course_list,
)
from coursebot.services.prompt_loader import (
    COURSES_PLACEHOLDER,
    CURRENT_COURSE_PLACEHOLDER,
    FALLBACK_SYSTEM_PROMPT,
    PromptTemplateLoader,
)

TEMPLATE = "Courses:\n{{COURSES_LIST}}\n\n{{CURRENT_COURSE_CONTEXT}}"


@pytest.mark.asyncio
class TestPromptTemplateLoader:
    async def test_loads_file_template(self, tmp_path):
        path = tmp_path / "prompt.md"
        path.write_text(TEMPLATE, encoding="utf-8")
        loader = PromptTemplateLoader(str(path))
        assert await loader.load() == TEMPLATE

    async def test_result_is_cached(self, tmp_path):
        path = tmp_path / "prompt.md"
        path.write_text(TEMPLATE, encoding="utf-8")
        loader = PromptTemplateLoader(str(path))
        first = await loader.load()

        path.write_text("changed", encoding="utf-8")
        assert await loader.load() == first
        assert loader.is_loaded

    async def test_missing_file_uses_fallback(self, tmp_path):
        loader = PromptTemplateLoader(str(tmp_path / "missing.md"))
        assert await loader.load() == FALLBACK_SYSTEM_PROMPT

    async def test_http_template(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=TEMPLATE))
        async with httpx.AsyncClient(transport=transport) as client:
            loader = PromptTemplateLoader("https://example.test/prompt.md", client=client)
            assert await loader.load() == TEMPLATE

    async def test_http_error_status_uses_fallback(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404, text="nope"))
        async with httpx.AsyncClient(transport=transport) as client:
            loader = PromptTemplateLoader("https://example.test/prompt.md", client=client)
            assert await loader.load() == FALLBACK_SYSTEM_PROMPT

    async def test_network_error_uses_fallback(self):
        def _raise(request):
            raise httpx.ConnectError("unreachable", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(_raise)) as client:
            loader = PromptTemplateLoader("https://example.test/prompt.md", client=client)
            assert await loader.load() == FALLBACK_SYSTEM_PROMPT

    async def test_malformed_url_uses_fallback(self):
        loader = PromptTemplateLoader("http://[::1")
        assert await loader.load() == FALLBACK_SYSTEM_PROMPT
        assert loader.is_loaded

    async def test_undecodable_file_uses_fallback(self, tmp_path):
        path = tmp_path / "prompt.md"
        path.write_bytes(b"\xff\xfe\xfa")
        assert await PromptTemplateLoader(str(path)).load() == FALLBACK_SYSTEM_PROMPT

    async def test_bundled_template_has_both_placeholders(self):
        template = await PromptTemplateLoader(DEFAULT_PROMPT_PATH).load()
        assert template.count(COURSES_PLACEHOLDER) == 1
        assert template.count(CURRENT_COURSE_PLACEHOLDER) == 1


class TestBuildSystemPrompt:
    def test_no_courses(self):
        prompt = build_system_prompt(TEMPLATE, [])
        assert prompt == f"Courses:\n{NO_COURSES_TEXT}\n\n"

    def test_single_course_line(self, sample_courses):
        course = sample_courses[0]
        assert format_course_list([course]) == "- Intro to React (Beginner) - Learn the basics of React framework"

    def test_multiple_courses_newline_joined(self, sample_courses):
        lines = format_course_list(sample_courses[:2]).split("\n")
        assert lines == [
            "- Intro to React (Beginner) - Learn the basics of React framework",
            "- Advanced JavaScript (Advanced) - Deep dive into JavaScript concepts",
        ]

    def test_selected_course_context(self, sample_courses):
        prompt = build_system_prompt(TEMPLATE, sample_courses[:1], sample_courses[1])
        assert prompt.endswith("Currently discussing: Advanced JavaScript - Deep dive into JavaScript concepts")
        assert "{{" not in prompt

    def test_deterministic(self, sample_courses):
        a = build_system_prompt(TEMPLATE, sample_courses, sample_courses[2])
        b = build_system_prompt(TEMPLATE, sample_courses, sample_courses[2])
        assert a == b

    def test_fallback_template_renders(self):
        prompt = build_system_prompt(FALLBACK_SYSTEM_PROMPT, [])
        assert NO_COURSES_TEXT in prompt
        assert "{{" not in prompt


class TestConversationContext:
    def test_without_history(self):
        assert build_conversation_context([], "hi") == "User: hi\nAssistant:"

    def test_only_recent_turns(self):
        history = []
        for i in range(5):
            history.append(ConversationTurn(Role.USER, f"q{i}"))
            history.append(ConversationTurn(Role.ASSISTANT, f"a{i}"))

        context = build_conversation_context(history, "next", limit=6)
        lines = context.split("\n")
        assert lines[0] == "User: q2"
        assert lines[5] == "Assistant: a4"
        assert lines[-2:] == ["User: next", "Assistant:"]
        assert len(lines) == 8

    def test_accepts_any_object_with_role_and_content(self):
        turn = SimpleNamespace(role=Role.ASSISTANT, content="hello")
        assert build_conversation_context([turn], "x").startswith("Assistant: hello\n")

    def test_prewindowed_history_used_as_given(self):
        history = ConversationHistory(max_length=10)
        for i in range(5):
            history.record_exchange(f"q{i}", f"a{i}")

        context = build_conversation_context(history.recent(4), "next", limit=None)
        assert context.split("\n")[:4] == ["User: q3", "Assistant: a3", "User: q4", "Assistant: a4"]

    def test_zero_limit_drops_history(self):
        turn = ConversationTurn(Role.USER, "old")
        assert build_conversation_context([turn], "new", limit=0) == "User: new\nAssistant:"


class TestConversationHistory:
    def test_recent_returns_newest_turns(self):
        history = ConversationHistory(max_length=10)
        history.record_exchange("q0", "a0")
        history.record_exchange("q1", "a1")
        assert [t.content for t in history.recent(3)] == ["a0", "q1", "a1"]
        assert history.recent(0) == ()

    def test_oldest_turns_dropped_at_capacity(self):
        history = ConversationHistory(max_length=4)
        for i in range(3):
            history.record_exchange(f"q{i}", f"a{i}")
        assert len(history) == 4
        assert history.snapshot()[0] == ConversationTurn(Role.USER, "q1")
