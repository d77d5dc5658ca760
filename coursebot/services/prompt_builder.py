"""
Rendering of the system prompt and the conversation prompt sent to providers.
"""

from typing import Optional, Sequence

from coursebot.services.prompt_loader import COURSES_PLACEHOLDER, CURRENT_COURSE_PLACEHOLDER

NO_COURSES_TEXT = "No courses available at the moment."


def format_course_list(courses: Sequence) -> str:
    if not courses:
        return NO_COURSES_TEXT
    return "\n".join(f"- {c.title} ({c.level}) - {c.description}" for c in courses)


def format_current_course(selected_course) -> str:
    if selected_course is None:
        return ""
    return f"Currently discussing: {selected_course.title} - {selected_course.description}"


def build_system_prompt(template: str, courses: Sequence, selected_course=None) -> str:
    """Fill the template's placeholders. Pure: same inputs give the same prompt."""
    return (
        template
        .replace(COURSES_PLACEHOLDER, format_course_list(courses), 1)
        .replace(CURRENT_COURSE_PLACEHOLDER, format_current_course(selected_course), 1)
    )


def build_conversation_context(history: Sequence, message: str, limit: Optional[int] = 6) -> str:
    """``limit=None`` uses ``history`` as given; callers may have windowed it already."""
    turns = list(history)
    if limit is not None:
        turns = turns[-limit:] if limit > 0 else []
    lines = [f"{turn.role.label}: {turn.content}" for turn in turns]
    lines.append(f"User: {message}")
    lines.append("Assistant:")
    return "\n".join(lines)
