import pytest

from helpers import RecordingSink


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()
