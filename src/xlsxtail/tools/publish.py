"""Publish synthetic 1024x8 channel batches to an MQTT topic.

Handy for exercising a running collector without real acquisition hardware::

    xlsxtail-publish --broker-address 127.0.0.1:1883 --topic adc/raw -n 5
"""

from __future__ import annotations

import argparse
import logging
import time
from typing import Optional, Sequence

import numpy as np

from ..config import parse_address
from ..core.decoder import encode_batch
from ..core.models import BATCH_COLUMNS, BATCH_ROWS
from ..remote.mqtt_source import default_client_factory

logger = logging.getLogger(__name__)


def synthetic_batch(
    index: int,
    *,
    sample_rate_hz: float = 1000.0,
    noise: float = 0.0,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Return batch number ``index`` of a continuous multi-channel sine signal.

    Channel ``k`` oscillates at ``k + 1`` Hz so the lines are easy to tell
    apart in the summary chart.
    """
    if sample_rate_hz <= 0:
        raise ValueError("sample_rate_hz must be positive")
    t = (np.arange(BATCH_ROWS, dtype=np.float64) + index * BATCH_ROWS) / sample_rate_hz
    freqs = np.arange(1, BATCH_COLUMNS + 1, dtype=np.float64)
    values = np.sin(2.0 * np.pi * np.outer(t, freqs))
    if noise > 0.0:
        rng = rng or np.random.default_rng()
        values = values + rng.normal(0.0, noise, size=values.shape)
    return values


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Publish synthetic channel batches over MQTT")
    parser.add_argument("--broker-address", required=True, help="MQTT broker host[:port]")
    parser.add_argument("--topic", required=True, help="Topic to publish to")
    parser.add_argument("-n", "--count", type=int, default=10, help="Number of batches (default: 10)")
    parser.add_argument(
        "--interval",
        type=float,
        default=0.1,
        help="Seconds between batches (default: 0.1)",
    )
    parser.add_argument("--sample-rate", type=float, default=1000.0, help="Synthetic sample rate in Hz")
    parser.add_argument("--noise", type=float, default=0.0, help="Gaussian noise standard deviation")
    parser.add_argument("--qos", type=int, choices=(0, 1, 2), default=1)
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    host, port = parse_address(args.broker_address)
    client = default_client_factory(f"xlsxtail-publish-{int(time.time())}")
    client.connect(host, port)
    client.loop_start()
    try:
        for index in range(max(0, args.count)):
            payload = encode_batch(
                synthetic_batch(index, sample_rate_hz=args.sample_rate, noise=args.noise)
            )
            info = client.publish(args.topic, payload, qos=args.qos)
            info.wait_for_publish()
            logger.info("Published batch %d (%d bytes) to %s", index, len(payload), args.topic)
            if args.interval > 0:
                time.sleep(args.interval)
    finally:
        client.disconnect()
        client.loop_stop()


if __name__ == "__main__":
    main()
