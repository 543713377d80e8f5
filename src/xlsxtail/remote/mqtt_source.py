"""MQTT implementation of the message source, built on paho-mqtt."""

from __future__ import annotations

import logging
import os
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

import paho.mqtt.client as mqtt

from ..config import parse_address
from ..core.models import Message
from .source import MessageHandler, TopicWorker

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], Any]


def default_client_factory(client_id: str) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=client_id,
    )


class MqttMessageSource:
    """
    Subscribes registered topics on every broker and hands messages to per-topic workers.

    A named channel becomes an MQTT shared subscription
    (``$share/<channel>/<topic>``) so collectors in the same channel split
    the stream. An ephemeral channel subscribes to the plain topic and sees
    every message.
    """

    def __init__(
        self,
        broker_addresses: Sequence[str],
        *,
        channel: str = "",
        qos: int = 1,
        keepalive: int = 30,
        client_id_prefix: str = "xlsxtail",
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        if not broker_addresses:
            raise ValueError("at least one broker address is required")
        self.broker_addresses = list(broker_addresses)
        self.channel = channel
        self.qos = qos
        self.keepalive = keepalive
        self.client_id_prefix = client_id_prefix
        self._client_factory = client_factory or default_client_factory
        self._credit = 1
        self._handlers: Dict[str, MessageHandler] = {}
        self._workers: Dict[str, TopicWorker] = {}
        self._clients: List[Any] = []
        self._lock = threading.Lock()
        self._started = False

    # ------------------------------------------------------------------ configuration
    @property
    def shared(self) -> bool:
        return bool(self.channel) and not self.channel.endswith("#ephemeral")

    @property
    def max_block_s(self) -> Optional[float]:
        """How long delivery may wait on a full topic queue: half the keepalive."""
        if self.keepalive <= 0:
            return None
        return self.keepalive / 2.0

    def subscription_for(self, topic: str) -> str:
        if self.shared:
            return f"$share/{self.channel}/{topic}"
        return topic

    def set_concurrency_credit(self, credit: int) -> None:
        if credit < 1:
            raise ValueError(f"concurrency credit must be at least 1, got {credit}")
        if self._started:
            raise RuntimeError("concurrency credit must be set before start()")
        self._credit = int(credit)

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        with self._lock:
            if self._started:
                raise RuntimeError("topics must be subscribed before start()")
            if topic in self._handlers:
                raise ValueError(f"topic {topic!r} is already subscribed")
            logger.info("Adding consumer for topic: %s", topic)
            self._handlers[topic] = handler

    @property
    def topics(self) -> List[str]:
        return list(self._handlers)

    # ------------------------------------------------------------------ lifecycle
    def start(self) -> None:
        """Start the topic workers, then connect to every broker."""
        with self._lock:
            if self._started:
                return
            if not self._handlers:
                raise RuntimeError("no topics subscribed")
            for topic, handler in self._handlers.items():
                worker = TopicWorker(topic, handler, self._credit, max_block_s=self.max_block_s)
                worker.start()
                self._workers[topic] = worker
            self._started = True

        for index, address in enumerate(self.broker_addresses):
            host, port = parse_address(address)
            client = self._client_factory(f"{self.client_id_prefix}-{index}-{os.getpid()}")
            client.on_connect = self._on_connect
            client.on_message = self._on_message
            client.on_disconnect = self._on_disconnect
            client.reconnect_delay_set(min_delay=1, max_delay=30)
            logger.info("Connecting to MQTT broker %s:%s", host, port)
            client.connect(host, port, keepalive=self.keepalive)
            client.loop_start()
            self._clients.append(client)

    def stop(self, *, join: bool = True, timeout: Optional[float] = None) -> None:
        """Disconnect from the brokers and let the workers drain queued messages."""
        for worker in self._workers.values():
            worker.close()
        for client in self._clients:
            try:
                client.disconnect()
                client.loop_stop()
            except Exception:
                logger.exception("Error while disconnecting MQTT client")
        self._clients.clear()
        for worker in self._workers.values():
            worker.stop(join=join, timeout=timeout)
        logger.info("Stopped %d topic worker(s)", len(self._workers))

    # ------------------------------------------------------------------ paho callbacks
    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        if getattr(reason_code, "is_failure", False):
            logger.error("MQTT connection refused: %s", reason_code)
            return
        for topic in self._handlers:
            subscription = self.subscription_for(topic)
            client.subscribe(subscription, qos=self.qos)
            logger.info("Subscribed to %s", subscription)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None) -> None:
        if getattr(reason_code, "is_failure", False):
            logger.warning("Disconnected from MQTT broker: %s", reason_code)

    def _on_message(self, client, userdata, msg) -> None:
        worker = self._worker_for(msg.topic)
        if worker is None:
            logger.debug("No consumer for topic %s", msg.topic)
            return
        worker.offer(Message(topic=msg.topic, body=bytes(msg.payload)))

    def _worker_for(self, topic: str) -> Optional[TopicWorker]:
        worker = self._workers.get(topic)
        if worker is not None:
            return worker
        for pattern, candidate in self._workers.items():
            if mqtt.topic_matches_sub(pattern, topic):
                return candidate
        return None


__all__ = ["ClientFactory", "MqttMessageSource", "default_client_factory"]
