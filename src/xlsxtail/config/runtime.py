"""Runtime configuration for the collector."""

from __future__ import annotations

import os
import random
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, List, Mapping, MutableMapping, Optional

import yaml

from ..errors import ConfigError

DEFAULT_BROKER_PORT = 1883
HEADER_COLUMNS = 8

ENV_OUTPUT_DIR = "XLSXTAIL_OUTPUT_DIR"


# "Channel 0" .. "Channel 7" and "Acquisition channel data summary".
DEFAULT_HEADER_LABELS = tuple(f"通道{idx}" for idx in range(HEADER_COLUMNS))
DEFAULT_CHART_TITLE = "采集通道数据汇总"


def _default_header_labels() -> List[str]:
    return list(DEFAULT_HEADER_LABELS)


def ephemeral_channel() -> str:
    """Random channel name used when none is configured."""
    return f"tail{random.randrange(999999):06d}#ephemeral"


@dataclass(slots=True)
class TailConfig:
    """
    Everything the collector needs to subscribe, accumulate and finalize.

    ``total_messages <= 0`` runs until interrupted. An empty ``channel`` (or
    one ending in ``#ephemeral``) subscribes to topics directly; a named
    channel becomes a shared subscription group on the broker.
    """

    channel: str = ""
    max_in_flight: int = 200
    total_messages: int = 10
    topics: List[str] = field(default_factory=list)
    broker_addresses: List[str] = field(default_factory=list)
    print_topic: bool = False

    qos: int = 1
    keepalive: int = 30
    client_id_prefix: str = "xlsxtail"

    header_labels: List[str] = field(default_factory=_default_header_labels)
    chart_title: str = DEFAULT_CHART_TITLE
    output_dir: str = "."

    def sanitized(self) -> TailConfig:
        """Return a copy with limits applied and list fields cleaned up."""
        env_output = os.environ.get(ENV_OUTPUT_DIR)
        return replace(
            self,
            channel=str(self.channel or "").strip(),
            max_in_flight=max(1, int(self.max_in_flight)),
            total_messages=int(self.total_messages),
            topics=_clean_list(self.topics),
            broker_addresses=_clean_list(self.broker_addresses),
            print_topic=bool(self.print_topic),
            qos=min(2, max(0, int(self.qos))),
            keepalive=max(1, int(self.keepalive)),
            client_id_prefix=str(self.client_id_prefix or "xlsxtail"),
            header_labels=[str(label) for label in self.header_labels],
            chart_title=str(self.chart_title),
            output_dir=env_output or str(self.output_dir or "."),
        )

    def validate(self) -> None:
        """Raise :class:`ConfigError` if the collector cannot start with this config."""
        if not self.broker_addresses:
            raise ConfigError("at least one broker address is required (--broker-address)")
        if not self.topics:
            raise ConfigError("at least one topic is required (--topic)")
        if len(self.header_labels) != HEADER_COLUMNS:
            raise ConfigError(
                f"header_labels must have {HEADER_COLUMNS} entries, got {len(self.header_labels)}"
            )
        for address in self.broker_addresses:
            parse_address(address)

    @property
    def primary_address(self) -> str:
        if not self.broker_addresses:
            raise ConfigError("no broker address configured")
        return self.broker_addresses[0]

    @property
    def effective_in_flight(self) -> int:
        """In-flight credit, never larger than the number of messages still wanted."""
        if 0 < self.total_messages < self.max_in_flight:
            return self.total_messages
        return self.max_in_flight

    @property
    def is_ephemeral(self) -> bool:
        return not self.channel or self.channel.endswith("#ephemeral")

    def resolved_channel(self) -> str:
        return self.channel or ephemeral_channel()


def parse_address(address: str, default_port: int = DEFAULT_BROKER_PORT) -> tuple[str, int]:
    """Split ``host[:port]`` into its parts."""
    text = address.strip()
    if not text:
        raise ConfigError("empty broker address")
    host, sep, port_text = text.rpartition(":")
    if not sep:
        return text, default_port
    if not host:
        raise ConfigError(f"broker address {address!r} has no host")
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ConfigError(f"broker address {address!r} has an invalid port") from exc
    if not 0 < port < 65536:
        raise ConfigError(f"broker address {address!r} has an out of range port")
    return host.strip("[]"), port


def _clean_list(values: Any) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    cleaned: List[str] = []
    for value in values:
        text = str(value).strip()
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned


def _recognized_fields() -> set[str]:
    """Return the dataclass field names accepted by :class:`TailConfig`."""
    return {f.name for f in fields(TailConfig)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten a top-level ``tail`` block and map dashed keys to field names."""
    merged: MutableMapping[str, Any] = {}
    for key, value in data.items():
        if key == "tail" and isinstance(value, Mapping):
            merged.update(value)
        else:
            merged[key] = value
    return {str(key).replace("-", "_"): value for key, value in merged.items()}


def config_from_mapping(data: Mapping[str, Any] | None) -> TailConfig:
    """Build :class:`TailConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return TailConfig().sanitized()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload = {key: normalized[key] for key in normalized.keys() & known}
    try:
        return TailConfig(**payload).sanitized()
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc


def load_mapping(path: str | Path | None) -> Mapping[str, Any]:
    """Read the raw YAML mapping at ``path``; a missing file yields ``{}``."""
    if path is None:
        return {}
    cfg_path = Path(path).expanduser()
    if not cfg_path.exists():
        return {}
    try:
        with cfg_path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse {cfg_path}: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return raw


def load_config(path: str | Path | None) -> TailConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`TailConfig`.
    """
    return config_from_mapping(load_mapping(path))


__all__ = [
    "DEFAULT_BROKER_PORT",
    "TailConfig",
    "config_from_mapping",
    "ephemeral_channel",
    "load_config",
    "load_mapping",
    "parse_address",
]
