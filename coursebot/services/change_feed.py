"""
In-process change notifications for the courses and chat_messages tables.
"""

import inspect
from collections import defaultdict
from typing import Any, Callable, Dict, List

from loguru import logger

COURSES = "courses"
MESSAGES = "chat_messages"

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

Subscriber = Callable[[Dict[str, Any]], Any]


class ChangeFeed:
    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)

    def subscribe(self, table: str, callback: Subscriber) -> Callable[[], None]:
        """Register a callback (sync or async); returns a function that unsubscribes it."""
        self._subscribers[table].append(callback)

        def unsubscribe():
            if callback in self._subscribers[table]:
                self._subscribers[table].remove(callback)

        return unsubscribe

    def subscriber_count(self, table: str) -> int:
        return len(self._subscribers[table])

    async def publish(self, table: str, event: str, record: Any):
        payload = {"table": table, "event": event, "record": record}
        for callback in list(self._subscribers[table]):
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Change subscriber for {table} failed: {e}")


change_feed = ChangeFeed()
