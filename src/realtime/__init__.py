"""
Realtime observation channel for the admin dashboard.

- change_feed.py: committed row changes captured from SQLAlchemy sessions
- websocket.py: WebSocket fan-out of the change feed
- query_log.py: rolling log of executed SQL statements
"""

from .change_feed import ChangeEvent, ChangeFeed, change_feed, install_change_capture
from .query_log import QueryLog, query_log

__all__ = [
    "ChangeEvent",
    "ChangeFeed",
    "change_feed",
    "install_change_capture",
    "QueryLog",
    "query_log"
]
