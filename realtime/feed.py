"""Fans each committed order change out to in-process subscribers and the bridge."""

import logging
from threading import RLock

from django.db import transaction

from orders.exceptions import OrderNotFound
from orders.serializers import OrderSerializer
from orders.services import fetch_order

from .bridge import get_bridge
from .snapshots import OrderSnapshot

logger = logging.getLogger(__name__)


def order_payload(order):
    return OrderSerializer(order).data


def snapshot_for(order):
    return OrderSnapshot.from_payload(order_payload(order))


class OrderFeed:

    def __init__(self):
        self._lock = RLock()
        self._subscribers = []

    def subscribe(self, callback, status=None):
        entry = (callback, status)
        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe():
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def subscriber_count(self):
        with self._lock:
            return len(self._subscribers)

    def schedule(self, order_id):
        """Publish ``order_id`` after the surrounding transaction commits."""
        transaction.on_commit(lambda: self.publish(order_id))

    def publish(self, order_id):
        try:
            order = fetch_order(order_id)
        except OrderNotFound:
            logger.warning("Change for vanished order %s not published", order_id)
            return None

        payload = order_payload(order)
        snapshot = OrderSnapshot.from_payload(payload)

        self.emit(snapshot)

        bridge = get_bridge()
        if bridge is not None:
            bridge.publish(payload)

        return snapshot

    def emit(self, snapshot):
        with self._lock:
            subscribers = list(self._subscribers)

        for callback, status in subscribers:
            if status is not None and snapshot.status != status:
                continue
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Order subscriber %r failed on %s", callback, snapshot.id)


feed = OrderFeed()
