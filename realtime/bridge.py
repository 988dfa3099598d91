"""Redis pub/sub transport for order snapshots."""

import json
import logging

import redis
from django.conf import settings
from rest_framework.utils.encoders import JSONEncoder

from .snapshots import OrderSnapshot

logger = logging.getLogger(__name__)

_bridge = None


class RedisBridge:

    def __init__(self, client, channel):
        self.client = client
        self.channel = channel

    @classmethod
    def from_url(cls, url, channel):
        return cls(redis.from_url(url), channel)

    def publish(self, payload):
        message = json.dumps(payload, cls=JSONEncoder)
        try:
            return self.client.publish(self.channel, message)
        except redis.RedisError as exc:
            # Subscribers resync from the database; the write itself stands.
            logger.warning("Publishing order %s failed: %s", payload.get("id"), exc)
            return 0

    def subscribe(self):
        pubsub = self.client.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(self.channel)
        return pubsub

    def listen(self, on_snapshot, stop_event=None, poll_timeout=1.0, pubsub=None):
        """Feed decoded snapshots to ``on_snapshot`` until ``stop_event`` is set.

        Pass a ``pubsub`` from ``subscribe`` to also receive messages sent
        before the call.
        """
        if pubsub is None:
            pubsub = self.subscribe()
        try:
            while stop_event is None or not stop_event.is_set():
                message = pubsub.get_message(timeout=poll_timeout)
                if message is None:
                    continue
                snapshot = self.decode(message.get("data"))
                if snapshot is not None:
                    on_snapshot(snapshot)
        finally:
            pubsub.close()

    @staticmethod
    def decode(data):
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            return OrderSnapshot.from_payload(json.loads(data))
        except (TypeError, ValueError, KeyError) as exc:
            logger.warning("Ignoring malformed order message: %s", exc)
            return None


def get_bridge():
    global _bridge
    if _bridge is None and getattr(settings, "REDIS_URL", ""):
        _bridge = RedisBridge.from_url(settings.REDIS_URL, settings.REALTIME_CHANNEL)
    return _bridge


def set_bridge(bridge):
    global _bridge
    _bridge = bridge
