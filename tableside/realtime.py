"""
Row change feed.

Turns model saves and deletes into per-table change events
({event_kind, new, old}) that views and background consumers can
subscribe to, and provides LiveCollection, a local mirror that applies
those events as idempotent upserts and removals.

Events are published after the surrounding transaction commits, so a
subscriber never sees a row that was rolled back. Delivery is
at-least-once from the consumer's point of view: the same row image can
arrive from an event and from a refresh in either order.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from django.db import transaction
from django.db.models.signals import post_delete, post_save

logger = logging.getLogger(__name__)

INSERT = 'insert'
UPDATE = 'update'
DELETE = 'delete'


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_kind: str
    new: Optional[Dict]
    old: Optional[Dict]

    @property
    def row_id(self):
        row = self.new if self.event_kind != DELETE else self.old
        return row.get('id') if row else None


class Subscription:
    def __init__(self, feed, table, callback):
        self.feed = feed
        self.table = table
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        if self.active:
            self.feed._remove(self)
            self.active = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.unsubscribe()


class ChangeFeed:
    """In-process publish/subscribe keyed by logical table name."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[str, List[Subscription]] = {}

    def subscribe(self, table: str, callback: Callable[[ChangeEvent], None]) -> Subscription:
        subscription = Subscription(self, table, callback)
        with self._lock:
            self._subscribers.setdefault(table, []).append(subscription)
        logger.debug("Subscribed to %s changes", table)
        return subscription

    def _remove(self, subscription):
        with self._lock:
            subscribers = self._subscribers.get(subscription.table, [])
            if subscription in subscribers:
                subscribers.remove(subscription)

    def subscriber_count(self, table: str) -> int:
        with self._lock:
            return len(self._subscribers.get(table, []))

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers.get(event.table, []))
        for subscription in subscribers:
            try:
                subscription.callback(event)
            except Exception:
                # Remaining subscribers still get the event.
                logger.exception(
                    "Change subscriber failed on %s %s", event.table, event.event_kind,
                )


feed = ChangeFeed()


# =============================================================================
# Consumer side
# =============================================================================

class LiveCollection:
    """
    Local copy of a table's rows kept in sync from change events.

    ``reset()`` loads a full refresh; ``apply()`` folds in one event.
    Rows are keyed by id, so replays are harmless. An optional ``keep``
    predicate drops rows that stop matching (e.g. orders once paid).
    """

    def __init__(self, rows: Iterable[Dict] = (), keep=None, sort_key=None):
        self.keep = keep
        self.sort_key = sort_key
        self._rows: Dict[str, Dict] = {}
        self.reset(rows)

    def reset(self, rows: Iterable[Dict]) -> None:
        self._rows = {}
        for row in rows:
            self._upsert(row)

    def _upsert(self, row):
        key = str(row['id'])
        if self.keep is not None and not self.keep(row):
            self._rows.pop(key, None)
        else:
            self._rows[key] = row

    def apply(self, event: ChangeEvent) -> None:
        if event.event_kind == DELETE:
            if event.old and 'id' in event.old:
                self._rows.pop(str(event.old['id']), None)
        elif event.new:
            self._upsert(event.new)

    def get(self, row_id):
        return self._rows.get(str(row_id))

    def rows(self) -> List[Dict]:
        rows = list(self._rows.values())
        if self.sort_key is not None:
            rows.sort(key=self.sort_key)
        return rows

    def __len__(self):
        return len(self._rows)

    def __contains__(self, row_id):
        return str(row_id) in self._rows


# =============================================================================
# Model signal wiring
# =============================================================================

def _table_names():
    from .models import Category, MenuItem, Order, Table
    return {
        Order: 'orders',
        Table: 'tables',
        Category: 'categories',
        MenuItem: 'menu_items',
    }


def _publish_on_commit(event):
    transaction.on_commit(lambda: feed.publish(event))


def _on_save(sender, instance, created, **kwargs):
    table = _table_names()[sender]
    row = instance.to_row()
    if created:
        event = ChangeEvent(table=table, event_kind=INSERT, new=row, old=None)
    else:
        # Only the key is known for the previous image of an update.
        event = ChangeEvent(table=table, event_kind=UPDATE, new=row, old={'id': row['id']})
    _publish_on_commit(event)


def _on_delete(sender, instance, **kwargs):
    table = _table_names()[sender]
    _publish_on_commit(ChangeEvent(table=table, event_kind=DELETE, new=None, old=instance.to_row()))


def connect_model_signals():
    for model in _table_names():
        post_save.connect(_on_save, sender=model, dispatch_uid=f'tableside_save_{model.__name__}')
        post_delete.connect(_on_delete, sender=model, dispatch_uid=f'tableside_delete_{model.__name__}')


def publish_rows(table: str, event_kind: str, rows: Iterable[Dict]) -> None:
    """Publish events for rows changed with queryset.update(), which skips signals."""
    for row in rows:
        old = {'id': row['id']} if event_kind == UPDATE else None
        _publish_on_commit(ChangeEvent(table=table, event_kind=event_kind, new=row, old=old))
