"""Helpers for constructing output file names."""

import re
from pathlib import Path

OUTPUT_EXTENSION = ".xlsx"

# MQTT's default listener and nsqd's default TCP port. Addresses on these ports
# are named after the host alone.
WELL_KNOWN_PORTS = frozenset({1883, 4150})

# Anything that is not alphanumeric separates address parts.
_SEPARATOR_RE = re.compile(r"[^A-Za-z0-9]+")


def strip_well_known_port(address: str) -> str:
    """Drop a trailing ``:<port>`` when the port is one of ``WELL_KNOWN_PORTS``."""
    host, sep, port = address.rpartition(":")
    if sep and host and port.isdigit() and int(port) in WELL_KNOWN_PORTS:
        return host
    return address


def derive_output_filename(address: str, extension: str = OUTPUT_EXTENSION) -> str:
    """
    Derive the workbook file name from a broker address.

    Example: "10.0.0.1:4150" -> "10_0_0_1.xlsx"
    Non-default ports stay part of the name: "10.0.0.1:1884" -> "10_0_0_1_1884.xlsx"
    """
    base = strip_well_known_port(address.strip())
    cleaned = _SEPARATOR_RE.sub("_", base).strip("_")
    return f"{cleaned or 'xlsxtail'}{extension}"


def output_path(address: str, directory: Path | str = ".") -> Path:
    return Path(directory).expanduser() / derive_output_filename(address)
