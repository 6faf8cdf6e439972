"""
Rolling log of SQL statements executed by the engine, for the admin dashboard.
"""

import threading
import uuid
from collections import deque
from datetime import datetime
from typing import Deque, Dict, List

from sqlalchemy import event
from sqlalchemy.engine import Engine

from src.config import settings

KNOWN_OPERATIONS = {"SELECT", "INSERT", "UPDATE", "DELETE"}

class QueryLog:
    """Keeps the most recent statements, newest first"""

    def __init__(self, max_entries: int = 100):
        self._entries: Deque[Dict] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def install(self, db_engine: Engine) -> None:
        """Listen to an engine; installing twice on the same engine is a no-op"""
        if event.contains(db_engine, "before_cursor_execute", self._before_cursor_execute):
            return
        event.listen(db_engine, "before_cursor_execute", self._before_cursor_execute)

    def _before_cursor_execute(self, conn, cursor, statement, parameters, context, executemany):
        self.record(statement)

    def record(self, statement: str) -> Dict:
        entry = {
            "id": uuid.uuid4().hex[:8],
            "sql": " ".join(statement.split()),
            "operation": self.classify(statement),
            "timestamp": datetime.now().isoformat(),
        }
        with self._lock:
            self._entries.appendleft(entry)
        return entry

    @staticmethod
    def classify(statement: str) -> str:
        words = statement.strip().split(None, 1)
        if not words:
            return "OTHER"
        keyword = words[0].upper()
        return keyword if keyword in KNOWN_OPERATIONS else "OTHER"

    def entries(self, limit: int = None) -> List[Dict]:
        with self._lock:
            items = list(self._entries)
        return items[:limit] if limit else items

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

query_log = QueryLog(max_entries=settings.QUERY_LOG_SIZE)
