from pathlib import Path

import pytest

from xlsxtail.dataio.file_paths import derive_output_filename, output_path, strip_well_known_port


@pytest.mark.parametrize(
    "address, expected",
    [
        ("10.0.0.1:4150", "10_0_0_1.xlsx"),
        ("10.0.0.1:1883", "10_0_0_1.xlsx"),
        ("10.0.0.1", "10_0_0_1.xlsx"),
        ("10.0.0.1:1884", "10_0_0_1_1884.xlsx"),
        ("broker-a.lab.local:4150", "broker_a_lab_local.xlsx"),
        ("  192.168.1.20:4150  ", "192_168_1_20.xlsx"),
    ],
)
def test_derive_output_filename(address: str, expected: str) -> None:
    assert derive_output_filename(address) == expected


def test_strip_only_touches_well_known_ports() -> None:
    assert strip_well_known_port("host:4150") == "host"
    assert strip_well_known_port("host:8080") == "host:8080"
    assert strip_well_known_port(":4150") == ":4150"


def test_unusable_address_falls_back_to_default_name() -> None:
    assert derive_output_filename("::") == "xlsxtail.xlsx"


def test_output_path_joins_directory(tmp_path: Path) -> None:
    assert output_path("10.0.0.1:4150", tmp_path) == tmp_path / "10_0_0_1.xlsx"
