import pytest

from zipsink.sink import MemorySink
from zipsink.writer import StreamingZipWriter

from tests.helpers import FlakySink


@pytest.fixture
def memory_sink():
    return MemorySink()


@pytest.fixture
def flaky_sink():
    return FlakySink()


@pytest.fixture
def writer(memory_sink):
    z = StreamingZipWriter(memory_sink)
    yield z
    z.release()
