"""
Create the CourseBot tables and seed sample data.

    coursebot-setup-db            # create tables, seed if empty
    coursebot-setup-db --reset    # wipe and reseed
"""

import argparse
import asyncio
import sys

from loguru import logger

from coursebot.config import settings
from coursebot.models.database import engine, init_db
from coursebot.services.course_store import CourseStore

SAMPLE_COURSES = [
    {
        "title": "Introduction to React",
        "description": "Learn the basics of React framework",
        "instructor": "John Doe",
        "duration": "4 weeks",
        "level": "Beginner",
    },
    {
        "title": "Advanced JavaScript",
        "description": "Deep dive into JavaScript concepts",
        "instructor": "Jane Smith",
        "duration": "6 weeks",
        "level": "Advanced",
    },
    {
        "title": "Node.js Backend Development",
        "description": "Build scalable backend applications",
        "instructor": "Mike Johnson",
        "duration": "8 weeks",
        "level": "Intermediate",
    },
    {
        "title": "Database Design Principles",
        "description": "Learn to design efficient databases",
        "instructor": "Sarah Wilson",
        "duration": "5 weeks",
        "level": "Intermediate",
    },
    {
        "title": "UI/UX Design Fundamentals",
        "description": "Master user interface and experience design",
        "instructor": "Alex Chen",
        "duration": "7 weeks",
        "level": "Beginner",
    },
]

WELCOME_MESSAGES = [
    "Hello! Welcome to the course management system. How can I help you today?",
    "I can help you find courses, answer questions about course content, or provide learning guidance.",
]


async def seed(store: CourseStore) -> bool:
    ok = True
    for course in SAMPLE_COURSES:
        result = await store.add_course(course)
        if not result.ok:
            logger.warning(f"Sample course '{course['title']}' not inserted: {result.error}")
            ok = False
    for text in WELCOME_MESSAGES:
        result = await store.add_message(text, "bot")
        if not result.ok:
            logger.warning(f"Welcome message not inserted: {result.error}")
            ok = False
    return ok


async def reset(store: CourseStore) -> bool:
    # Messages first; they reference courses.
    cleared = await store.clear_messages()
    if not cleared.ok:
        logger.warning(f"Failed to clear messages: {cleared.error}")

    courses = await store.list_courses()
    for course in courses.data or []:
        result = await store.delete_course(course.id)
        if not result.ok:
            logger.warning(f"Failed to delete course {course.id}: {result.error}")

    return await seed(store)


async def setup_database(reset_data: bool = False, store: CourseStore = None) -> int:
    store = store or CourseStore()
    logger.info(f"Setting up database at {settings.DATABASE_URL}")

    try:
        await init_db()
    except Exception as e:
        logger.error(f"Database setup failed: {e}")
        return 1

    count = await store.count_courses()
    if not count.ok:
        logger.error(f"Database setup failed: {count.error}")
        return 1

    if reset_data:
        logger.warning("Resetting database...")
        await reset(store)
    elif count.data == 0:
        logger.info("No courses found, inserting sample data")
        await seed(store)
    else:
        logger.info(f"Found {count.data} courses in database")

    logger.success("Database setup complete!")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="CourseBot database setup")
    parser.add_argument("-r", "--reset", action="store_true", help="reset database and insert fresh sample data")
    args = parser.parse_args(argv)

    async def _run():
        try:
            return await setup_database(reset_data=args.reset)
        finally:
            await engine.dispose()

    return asyncio.run(_run())


if __name__ == "__main__":
    sys.exit(main())
