"""In-process change notifications for record store tables."""
import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """A row changed. Subscribers re-pull a snapshot; this is not a diff."""
    table: str
    kind: str  # "insert" | "update" | "delete"
    record_id: Optional[str] = None


Handler = Callable[[ChangeEvent], None]


class ChangeFeed:
    """subscribe(table, handler) -> token; publish() fans out to that table's handlers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: Dict[int, Tuple[str, Handler]] = {}
        self._ids = itertools.count(1)

    def subscribe(self, table: str, handler: Handler) -> int:
        with self._lock:
            token = next(self._ids)
            self._handlers[token] = (table, handler)
        return token

    def unsubscribe(self, token: int) -> bool:
        """Remove a subscription. Returns False if the token was unknown."""
        with self._lock:
            return self._handlers.pop(token, None) is not None

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = [h for table, h in self._handlers.values() if table == event.table]
        for handler in targets:
            try:
                handler(event)
            except Exception:
                # One broken subscriber must not block the writer or the others
                logger.exception("Change handler failed for %s", event)
