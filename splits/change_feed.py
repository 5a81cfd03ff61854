"""
Per-session change feed.

Every write to a session, its roster or its claim ledger appends a
``ChangeEvent`` in the same transaction (see ``splits.signals``). Remote
clients poll the feed with a cursor; code running in this process can
subscribe and is called back once the writing transaction commits.
Delivery is at-least-once, so consumers de-duplicate by cursor.
"""

from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Tuple
import logging
import threading
import uuid

from django.conf import settings
from django.db import transaction
from django.db.models import Max

from splits.models import ChangeEvent

logger = logging.getLogger(__name__)


def session_key(session_id) -> str:
    """Canonical string form of a session id"""
    return str(uuid.UUID(str(session_id)))


ALL_EVENTS = frozenset({ChangeEvent.INSERT, ChangeEvent.UPDATE, ChangeEvent.DELETE})
TABLES = frozenset({ChangeEvent.SESSIONS, ChangeEvent.PARTICIPANTS, ChangeEvent.CLAIMS})


class Subscription:
    """Handle returned by ``ChangeFeed.subscribe``; call ``close()`` to stop delivery"""

    def __init__(self, feed, key, callback, events):
        self._feed = feed
        self.key = key
        self.callback = callback
        self.events = events
        self.closed = False

    def close(self):
        if not self.closed:
            self._feed._unsubscribe(self)
            self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: Dict[Tuple[str, str], List[Subscription]] = defaultdict(list)

    def record(self, session_id, table: str, event: str, row_id, row: dict) -> ChangeEvent:
        """Append an event and schedule in-process delivery for after commit"""
        change = ChangeEvent.objects.create(
            session_id=session_id,
            table=table,
            event=event,
            row_id=str(row_id),
            row=row,
        )
        transaction.on_commit(lambda: self._dispatch(change))
        return change

    def subscribe(self, table: str, session_id, callback: Callable[[ChangeEvent], None],
                  events: Optional[Iterable[str]] = None) -> Subscription:
        if table not in TABLES:
            raise ValueError(f"Unknown table {table!r}")
        wanted = frozenset(events) if events else ALL_EVENTS
        unknown = wanted - ALL_EVENTS
        if unknown:
            raise ValueError(f"Unknown events {sorted(unknown)}")

        subscription = Subscription(self, (table, session_key(session_id)), callback, wanted)
        with self._lock:
            self._subscriptions[subscription.key].append(subscription)
        logger.debug(f"Subscribed to {table} for session {session_id}")
        return subscription

    def _unsubscribe(self, subscription: Subscription):
        with self._lock:
            subscribers = self._subscriptions.get(subscription.key, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscriptions.pop(subscription.key, None)

    def _dispatch(self, change: ChangeEvent):
        with self._lock:
            subscribers = list(self._subscriptions.get((change.table, session_key(change.session_id)), []))

        for subscription in subscribers:
            if change.event not in subscription.events:
                continue
            try:
                subscription.callback(change)
            except Exception:
                # One broken subscriber must not starve the others
                logger.exception(f"Subscriber failed handling change #{change.id}")

    def poll(self, session_id, since: int = 0, limit: Optional[int] = None) -> List[ChangeEvent]:
        """Events for a session with a cursor greater than ``since``, oldest first"""
        limit = limit or settings.CHANGE_FEED_PAGE_SIZE
        return list(
            ChangeEvent.objects.filter(session_id=session_id, id__gt=since).order_by('id')[:limit]
        )

    def latest_cursor(self, session_id=None) -> int:
        queryset = ChangeEvent.objects.all()
        if session_id is not None:
            queryset = queryset.filter(session_id=session_id)
        return queryset.aggregate(latest=Max('id'))['latest'] or 0

    def prune(self, older_than) -> int:
        deleted, _ = ChangeEvent.objects.filter(created_at__lt=older_than).delete()
        if deleted:
            logger.info(f"Pruned {deleted} change events older than {older_than.isoformat()}")
        return deleted

    def subscriber_count(self) -> int:
        with self._lock:
            return sum(len(subs) for subs in self._subscriptions.values())


change_feed = ChangeFeed()
