"""Message sources that feed payloads to the collector's topic handlers.

:class:`MqttMessageSource` connects to one or more MQTT brokers with
paho-mqtt and runs one :class:`TopicWorker` thread per subscribed topic.
"""

from .mqtt_source import MqttMessageSource, default_client_factory
from .source import MessageHandler, MessageSource, TopicWorker

__all__ = [
    "MessageHandler",
    "MessageSource",
    "MqttMessageSource",
    "TopicWorker",
    "default_client_factory",
]
