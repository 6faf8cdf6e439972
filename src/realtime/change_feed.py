"""
Row-level change capture for the tables the admin dashboard observes.

Images are collected while a session flushes and published only once the
transaction commits, so rolled-back work is never broadcast.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field
from sqlalchemy import event, inspect
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

WATCHED_TABLES = ("trains", "bookings", "payments", "cancellations", "revenue_ledger")

_PENDING_KEY = "pending_changes"

class ChangeEvent(BaseModel):
    table: str
    event: str  # INSERT / UPDATE / DELETE
    old: Optional[Dict[str, Any]] = None
    new: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.now)

    def to_message(self) -> Dict[str, Any]:
        return {"type": "change", **jsonable_encoder(self)}

Subscriber = Callable[[ChangeEvent], None]

class ChangeFeed:
    """In-process publish/subscribe channel for committed row changes"""

    def __init__(self):
        self._subscribers: List[tuple] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber, tables: Optional[Iterable[str]] = None) -> Callable[[], None]:
        """Register a callback; returns a function that removes it"""
        entry = (callback, frozenset(tables) if tables else None)
        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe():
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, change: ChangeEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback, tables in subscribers:
            if tables is not None and change.table not in tables:
                continue
            try:
                callback(change)
            except Exception:
                # the write is already committed; a broken observer must not fail it
                logger.exception("Change subscriber failed for %s %s", change.event, change.table)

change_feed = ChangeFeed()

def _row_image(state) -> Dict[str, Any]:
    """Column values currently loaded on an instance, without emitting SQL"""
    image = {}
    for attr in state.mapper.column_attrs:
        if attr.key in state.dict:
            image[attr.key] = state.dict[attr.key]
    return image

def _previous_image(state) -> Dict[str, Any]:
    image = _row_image(state)
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        if history.deleted:
            image[attr.key] = history.deleted[0]
    return image

def _collect(session: Session, flush_context) -> None:
    pending = session.info.setdefault(_PENDING_KEY, [])

    for obj in session.new:
        state = inspect(obj)
        if state.mapper.local_table.name in WATCHED_TABLES:
            pending.append(ChangeEvent(
                table=state.mapper.local_table.name, event="INSERT", new=_row_image(state)
            ))

    for obj in session.dirty:
        state = inspect(obj)
        if state.mapper.local_table.name not in WATCHED_TABLES:
            continue
        if not session.is_modified(obj, include_collections=False):
            continue
        pending.append(ChangeEvent(
            table=state.mapper.local_table.name,
            event="UPDATE",
            old=_previous_image(state),
            new=_row_image(state),
        ))

    for obj in session.deleted:
        state = inspect(obj)
        if state.mapper.local_table.name in WATCHED_TABLES:
            pending.append(ChangeEvent(
                table=state.mapper.local_table.name, event="DELETE", old=_row_image(state)
            ))

def _publish(session: Session) -> None:
    pending = session.info.pop(_PENDING_KEY, [])
    for change in pending:
        change_feed.publish(change)

def _discard(session: Session, *args) -> None:
    session.info.pop(_PENDING_KEY, None)

def install_change_capture(session_factory: sessionmaker) -> None:
    """Capture changes on every session produced by the factory"""
    if event.contains(session_factory, "after_flush", _collect):
        return
    event.listen(session_factory, "after_flush", _collect)
    event.listen(session_factory, "after_commit", _publish)
    event.listen(session_factory, "after_rollback", _discard)
