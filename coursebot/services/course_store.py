"""
Course and chat message persistence.

Every operation returns a ``StoreResult`` instead of raising, so callers decide
how a database failure is shown. Successful writes are announced on the
change feed.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from coursebot.models.database import async_session, ping_db
from coursebot.models.entities import ChatMessage, Course
from coursebot.models.schemas import CourseResponse, MessageResponse
from coursebot.services import change_feed as feed_events
from coursebot.services.change_feed import ChangeFeed, change_feed


@dataclass
class StoreResult:
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _course_record(course: Course) -> dict:
    return CourseResponse.model_validate(course).model_dump(mode="json")


def _message_record(message: ChatMessage) -> dict:
    return MessageResponse.model_validate(message).model_dump(mode="json")


class CourseStore:
    def __init__(self, session_factory=async_session, feed: ChangeFeed = change_feed):
        self.session_factory = session_factory
        self.feed = feed

    # ── Courses ──────────────────────────────────────────
    async def list_courses(self) -> StoreResult:
        try:
            async with self.session_factory() as db:
                result = await db.execute(select(Course).order_by(Course.created_at.desc(), Course.id.desc()))
                return StoreResult(data=list(result.scalars().all()))
        except SQLAlchemyError as e:
            logger.error(f"Error getting courses: {e}")
            return StoreResult(data=[], error=str(e))

    async def get_course(self, course_id: int) -> StoreResult:
        try:
            async with self.session_factory() as db:
                course = await db.get(Course, course_id)
                return StoreResult(data=course)
        except SQLAlchemyError as e:
            logger.error(f"Error getting course {course_id}: {e}")
            return StoreResult(error=str(e))

    async def add_course(self, fields: Dict[str, Any]) -> StoreResult:
        try:
            async with self.session_factory() as db:
                course = Course(**fields)
                db.add(course)
                await db.commit()
                await db.refresh(course)
        except SQLAlchemyError as e:
            logger.error(f"Error adding course: {e}")
            return StoreResult(error=str(e))

        logger.info(f"Course added: id={course.id} title='{course.title}'")
        await self.feed.publish(feed_events.COURSES, feed_events.INSERT, _course_record(course))
        return StoreResult(data=course)

    async def update_course(self, course_id: int, updates: Dict[str, Any]) -> StoreResult:
        try:
            async with self.session_factory() as db:
                course = await db.get(Course, course_id)
                if course is None:
                    return StoreResult(data=None)
                for key, value in updates.items():
                    setattr(course, key, value)
                await db.commit()
                await db.refresh(course)
        except SQLAlchemyError as e:
            logger.error(f"Error updating course {course_id}: {e}")
            return StoreResult(error=str(e))

        await self.feed.publish(feed_events.COURSES, feed_events.UPDATE, _course_record(course))
        return StoreResult(data=course)

    async def delete_course(self, course_id: int) -> StoreResult:
        """``data`` is True when a row was deleted, False when none matched."""
        try:
            async with self.session_factory() as db:
                course = await db.get(Course, course_id)
                if course is None:
                    return StoreResult(data=False)
                record = _course_record(course)
                await db.delete(course)
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error deleting course {course_id}: {e}")
            return StoreResult(error=str(e))

        await self.feed.publish(feed_events.COURSES, feed_events.DELETE, record)
        return StoreResult(data=True)

    async def count_courses(self) -> StoreResult:
        try:
            async with self.session_factory() as db:
                result = await db.execute(select(func.count(Course.id)))
                return StoreResult(data=result.scalar() or 0)
        except SQLAlchemyError as e:
            return StoreResult(error=str(e))

    # ── Chat messages ────────────────────────────────────
    async def list_messages(self) -> StoreResult:
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(ChatMessage).order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
                )
                return StoreResult(data=list(result.scalars().all()))
        except SQLAlchemyError as e:
            logger.error(f"Error getting messages: {e}")
            return StoreResult(data=[], error=str(e))

    async def add_message(self, message: str, sender: str, course_id: Optional[int] = None) -> StoreResult:
        try:
            async with self.session_factory() as db:
                row = ChatMessage(message=message, sender=sender, course_id=course_id)
                db.add(row)
                await db.commit()
                await db.refresh(row)
        except SQLAlchemyError as e:
            logger.error(f"Error adding message: {e}")
            return StoreResult(error=str(e))

        await self.feed.publish(feed_events.MESSAGES, feed_events.INSERT, _message_record(row))
        return StoreResult(data=row)

    async def clear_messages(self) -> StoreResult:
        try:
            async with self.session_factory() as db:
                result = await db.execute(delete(ChatMessage))
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error clearing messages: {e}")
            return StoreResult(error=str(e))

        await self.feed.publish(feed_events.MESSAGES, feed_events.DELETE, None)
        return StoreResult(data=result.rowcount)

    # ── Utility ──────────────────────────────────────────
    async def test_connection(self) -> StoreResult:
        try:
            await ping_db()
        except (SQLAlchemyError, OSError) as e:
            return StoreResult(data=False, error=str(e))
        return StoreResult(data=True)


store = CourseStore()


def get_store() -> CourseStore:
    return store
