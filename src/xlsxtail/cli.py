"""Command-line entry point and process driver for the collector.

``main()`` parses flags, builds a :class:`~xlsxtail.config.TailConfig` and
hands it to :func:`run`, which wires the collector, subscribes every topic
and waits until the target message count is reached or SIGINT/SIGTERM
arrives. Handlers never exit the process; :func:`run` returns the exit code.
"""

from __future__ import annotations

import argparse
import logging
import os
import signal
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, Optional, Sequence

from . import __version__
from .config import TailConfig, config_from_mapping, load_mapping
from .core.pipeline_wiring import SinkFactory, build_collector
from .errors import ConfigError
from .remote import MessageSource, MqttMessageSource

logger = logging.getLogger(__name__)

SourceFactory = Callable[[TailConfig], MessageSource]

ENV_DEBUG = "XLSXTAIL_DEBUG"
_TRUTHY = {"1", "true", "yes", "on"}

_WAIT_SLICE_S = 0.2
_STOP_TIMEOUT_S = 5.0


def default_source_factory(cfg: TailConfig) -> MessageSource:
    channel = cfg.resolved_channel()
    logger.info("Using channel %s", channel)
    return MqttMessageSource(
        cfg.broker_addresses,
        channel=channel,
        qos=cfg.qos,
        keepalive=cfg.keepalive,
        client_id_prefix=cfg.client_id_prefix,
    )


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xlsxtail",
        description="Collect binary channel batches from MQTT topics into an xlsx workbook",
    )
    parser.add_argument("--version", action="store_true", help="print version string")
    parser.add_argument("--config", help="YAML file with collector settings")
    parser.add_argument("--channel", default=None, help="channel (shared subscription group)")
    parser.add_argument(
        "--max-in-flight",
        type=int,
        default=None,
        help="max number of messages to allow in flight per topic (default: 200)",
    )
    parser.add_argument(
        "-n",
        dest="total_messages",
        type=int,
        default=None,
        help="total messages to collect before saving (will wait if starved; <=0 runs forever)",
    )
    parser.add_argument(
        "--print-topic",
        action="store_true",
        default=None,
        help="print topic name where message was received",
    )
    parser.add_argument(
        "--broker-address",
        dest="broker_addresses",
        action="append",
        default=None,
        help="MQTT broker host[:port] (may be given multiple times)",
    )
    parser.add_argument(
        "--topic",
        dest="topics",
        action="append",
        default=None,
        help="topic (may be given multiple times)",
    )
    parser.add_argument("--qos", type=int, choices=(0, 1, 2), default=None, help="subscription QoS")
    parser.add_argument("--output-dir", default=None, help="directory for the saved workbook")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


_OVERRIDABLE = (
    "channel",
    "max_in_flight",
    "total_messages",
    "print_topic",
    "broker_addresses",
    "topics",
    "qos",
    "output_dir",
)


def config_from_args(args: argparse.Namespace) -> TailConfig:
    """
    Merge the optional config file with command-line flags (flags win).

    Broker addresses must come from exactly one place.
    """
    file_cfg = config_from_mapping(load_mapping(args.config))
    if args.broker_addresses and file_cfg.broker_addresses:
        raise ConfigError("use --broker-address or broker_addresses in --config, not both")

    overrides: Dict[str, Any] = {}
    for name in _OVERRIDABLE:
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    cfg = replace(file_cfg, **overrides).sanitized()
    cfg.validate()
    return cfg


def debug_requested(verbose: bool = False) -> bool:
    """``-v`` or a truthy ``XLSXTAIL_DEBUG`` switches the collector to debug logging."""
    return verbose or os.getenv(ENV_DEBUG, "").strip().lower() in _TRUTHY


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if debug_requested(verbose) else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _install_signal_handlers(stop_event: threading.Event) -> Dict[int, Any]:
    """Route SIGINT/SIGTERM to ``stop_event``; returns the previous handlers."""
    if threading.current_thread() is not threading.main_thread():
        return {}

    def _handler(signum, frame) -> None:
        logger.info("Received signal %d, shutting down", signum)
        stop_event.set()

    previous: Dict[int, Any] = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handler)
    return previous


def _restore_signal_handlers(previous: Dict[int, Any]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def run(
    cfg: TailConfig,
    *,
    source_factory: Optional[SourceFactory] = None,
    sink_factory: Optional[SinkFactory] = None,
    stop_event: Optional[threading.Event] = None,
    install_signal_handlers: bool = True,
) -> int:
    """
    Collect until the message target is reached or ``stop_event`` is set.

    Returns the process exit code: the finalizer's code once finalization
    ran, 0 after an interrupted run.
    """
    handles = build_collector(cfg, sink_factory=sink_factory)
    source = (source_factory or default_source_factory)(cfg)
    source.set_concurrency_credit(cfg.effective_in_flight)
    for topic, handler in handles.handlers.items():
        source.subscribe(topic, handler)

    stop_event = stop_event or threading.Event()
    previous = _install_signal_handlers(stop_event) if install_signal_handlers else {}
    try:
        source.start()
        while not stop_event.is_set():
            if handles.coordinator.wait(_WAIT_SLICE_S):
                break
    finally:
        source.stop(join=True, timeout=_STOP_TIMEOUT_S)
        _restore_signal_handlers(previous)

    if handles.coordinator.is_done():
        exit_code = handles.coordinator.exit_code
        return 0 if exit_code is None else exit_code

    logger.info(
        "Stopped after %d message(s), %d row(s); nothing saved",
        handles.messages_handled,
        handles.table.rows_written,
    )
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"xlsxtail v{__version__}")
        return

    configure_logging(args.verbose)
    try:
        cfg = config_from_args(args)
    except ConfigError as exc:
        parser.error(str(exc))

    try:
        code = run(cfg)
    except OSError as exc:
        logger.error("Cannot connect to MQTT broker: %s", exc)
        code = 1
    raise SystemExit(code)


if __name__ == "__main__":
    main()
