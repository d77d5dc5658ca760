"""
Pytest configuration and fixtures for CourseBot tests
"""

import os
import tempfile

# Settings are read at import time, so the environment must be fixed first.
_DB_PATH = os.path.join(tempfile.gettempdir(), f"coursebot_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["GROQ_API_KEY"] = ""
os.environ["TOGETHER_API_KEY"] = ""
os.environ["HF_TOKEN"] = ""
os.environ["RATE_LIMIT_PER_MINUTE"] = "1000"

from types import SimpleNamespace

import pytest
import pytest_asyncio

from coursebot.models.database import drop_db, engine, init_db
from coursebot.services.prompt_loader import PromptTemplateLoader
from coursebot.services.provider_registry import ProviderRegistry

TEST_TEMPLATE = "Courses:\n{{COURSES_LIST}}\n\n{{CURRENT_COURSE_CONTEXT}}"


class FakeProvider:
    """Provider handler double that records calls and replies or raises."""

    def __init__(self, provider_id, reply=None, error=None):
        self.provider_id = provider_id
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, system_prompt, conversation):
        self.calls.append((system_prompt, conversation))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def make_registry():
    def _make(*providers):
        return ProviderRegistry({p.provider_id: p for p in providers})
    return _make


@pytest.fixture
def prompt_loader(tmp_path):
    path = tmp_path / "system-prompt.md"
    path.write_text(TEST_TEMPLATE, encoding="utf-8")
    return PromptTemplateLoader(str(path))


@pytest.fixture
def sample_courses():
    """Sample course rows for testing"""
    return [
        SimpleNamespace(
            id=1,
            title="Intro to React",
            description="Learn the basics of React framework",
            instructor="John Doe",
            duration="4 weeks",
            level="Beginner",
        ),
        SimpleNamespace(
            id=2,
            title="Advanced JavaScript",
            description="Deep dive into JavaScript concepts",
            instructor="Jane Smith",
            duration="6 weeks",
            level="Advanced",
        ),
        SimpleNamespace(
            id=3,
            title="Node.js Backend Development",
            description="Build scalable backend applications",
            instructor="Mike Johnson",
            duration="8 weeks",
            level="Intermediate",
        ),
        SimpleNamespace(
            id=4,
            title="Database Design Principles",
            description="Learn to design efficient databases",
            instructor="Sarah Wilson",
            duration="5 weeks",
            level="Intermediate",
        ),
    ]


@pytest_asyncio.fixture
async def database():
    """Fresh tables for one test; pooled connections are closed on the test's loop."""
    await drop_db()
    await init_db()
    yield
    await drop_db()
    await engine.dispose()
