from __future__ import annotations

import argparse
import threading
from pathlib import Path
from typing import Dict, List, Optional

import openpyxl
import pytest

from xlsxtail import __version__
from xlsxtail.cli import _build_arg_parser, config_from_args, debug_requested, main, run
from xlsxtail.config import TailConfig, config_from_mapping
from xlsxtail.core.models import BATCH_ROWS, Message
from xlsxtail.dataio.xlsx_sink import XlsxSink
from xlsxtail.errors import ConfigError
from xlsxtail.remote.source import MessageHandler

from helpers import make_payload


class FakeSource:
    """Delivers pre-baked payloads from one thread per topic once started."""

    def __init__(self, payloads: Dict[str, List[bytes]]) -> None:
        self.payloads = payloads
        self.handlers: Dict[str, MessageHandler] = {}
        self.credit: Optional[int] = None
        self.stopped = False
        self.delivered = threading.Event()
        self._threads: List[threading.Thread] = []

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        self.handlers[topic] = handler

    def set_concurrency_credit(self, credit: int) -> None:
        self.credit = credit

    def start(self) -> None:
        remaining = [len(self.handlers)]
        lock = threading.Lock()

        def _feed(topic: str, handler: MessageHandler) -> None:
            for body in self.payloads.get(topic, []):
                handler(Message(topic=topic, body=body))
            with lock:
                remaining[0] -= 1
                if remaining[0] == 0:
                    self.delivered.set()

        for topic, handler in self.handlers.items():
            thread = threading.Thread(target=_feed, args=(topic, handler), daemon=True)
            thread.start()
            self._threads.append(thread)

    def stop(self, *, join: bool = True, timeout: Optional[float] = None) -> None:
        self.stopped = True
        if join:
            for thread in self._threads:
                thread.join(timeout)


def _cfg(tmp_path: Path, **overrides) -> TailConfig:
    data = {
        "topics": ["adc/raw"],
        "broker_addresses": ["10.0.0.1:4150"],
        "total_messages": 1,
        "output_dir": str(tmp_path),
    }
    data.update(overrides)
    return config_from_mapping(data)


def test_single_valid_message_saves_and_exits_zero(tmp_path: Path) -> None:
    source = FakeSource({"adc/raw": [make_payload(seed=1)]})

    code = run(_cfg(tmp_path), source_factory=lambda cfg: source, install_signal_handlers=False)

    assert code == 0
    assert source.stopped
    assert source.credit == 1
    ws = openpyxl.load_workbook(tmp_path / "10_0_0_1.xlsx").active
    assert ws.max_row == 1 + BATCH_ROWS
    assert ws["A1"].value == "通道0"
    assert ws["H1"].value == "通道7"


def test_target_across_topics_finalizes_once(tmp_path: Path) -> None:
    payloads = {f"adc/{i}": [make_payload(seed=i)] * 3 for i in range(3)}
    source = FakeSource(payloads)
    cfg = _cfg(tmp_path, topics=list(payloads), total_messages=4)
    saves: List[Path] = []

    class CountingSink(XlsxSink):
        def save(self, path: Path) -> None:
            saves.append(Path(path))
            super().save(path)

    code = run(cfg, source_factory=lambda c: source, sink_factory=CountingSink, install_signal_handlers=False)

    assert code == 0
    assert saves == [tmp_path / "10_0_0_1.xlsx"]


def test_short_payload_does_not_finalize(tmp_path: Path) -> None:
    source = FakeSource({"adc/raw": [make_payload()[:-10]]})
    stop_event = threading.Event()
    watcher = threading.Thread(target=lambda: (source.delivered.wait(2.0), stop_event.set()))
    watcher.start()

    code = run(
        _cfg(tmp_path),
        source_factory=lambda cfg: source,
        stop_event=stop_event,
        install_signal_handlers=False,
    )
    watcher.join(timeout=2.0)

    assert code == 0
    assert not (tmp_path / "10_0_0_1.xlsx").exists()


def test_unbounded_run_stops_on_request_without_saving(tmp_path: Path) -> None:
    source = FakeSource({"adc/raw": [make_payload(seed=s) for s in range(3)]})
    stop_event = threading.Event()
    watcher = threading.Thread(target=lambda: (source.delivered.wait(2.0), stop_event.set()))
    watcher.start()

    code = run(
        _cfg(tmp_path, total_messages=0),
        source_factory=lambda cfg: source,
        stop_event=stop_event,
        install_signal_handlers=False,
    )
    watcher.join(timeout=2.0)

    assert code == 0
    assert source.credit == 200
    assert list(tmp_path.iterdir()) == []


def _args(*argv: str) -> argparse.Namespace:
    return _build_arg_parser().parse_args(list(argv))


def test_flags_override_config_file(tmp_path: Path) -> None:
    path = tmp_path / "tail.yaml"
    path.write_text("topics: [from/file]\nmax_in_flight: 50\nprint_topic: true\n", encoding="utf-8")

    cfg = config_from_args(
        _args("--config", str(path), "--broker-address", "10.0.0.1:4150", "-n", "3", "--max-in-flight", "7")
    )

    assert cfg.topics == ["from/file"]
    assert cfg.max_in_flight == 7
    assert cfg.total_messages == 3
    assert cfg.print_topic is True
    assert cfg.broker_addresses == ["10.0.0.1:4150"]


def test_brokers_from_both_flag_and_file_conflict(tmp_path: Path) -> None:
    path = tmp_path / "tail.yaml"
    path.write_text("broker_addresses: ['10.0.0.2:1883']\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        config_from_args(_args("--config", str(path), "--broker-address", "10.0.0.1:4150", "--topic", "a"))


def test_missing_topic_exits_with_status_2(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--broker-address", "10.0.0.1:4150"])

    assert excinfo.value.code == 2
    assert "topic" in capsys.readouterr().err


def test_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    main(["--version"])
    assert capsys.readouterr().out.strip() == f"xlsxtail v{__version__}"


@pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
def test_debug_env_switches_on_debug_logging(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("XLSXTAIL_DEBUG", value)
    assert debug_requested()


def test_debug_off_without_flag_or_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("XLSXTAIL_DEBUG", raising=False)
    assert not debug_requested()
    assert debug_requested(verbose=True)
