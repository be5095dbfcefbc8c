"""
Copyright 2025 DNAi inc.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

"""
Byte sinks: the destinations a streaming archive is written to.

A sink accepts whole chunks of bytes and reports whether all of them were
taken. There is no partial success: a sink either writes every byte it is
given or reports failure. The writer never closes a sink.
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import BinaryIO, Callable, Iterator

from .errors import ZipConfigError


class ByteSink(ABC):
    """Push-style output for archive bytes."""

    @abstractmethod
    def write(self, data: bytes) -> bool:
        """Write all of ``data``.

        Args:
            data: Bytes to deliver.

        Returns:
            True if every byte was accepted, False otherwise.
        """


class CallbackSink(ByteSink):
    """Sink that forwards each chunk to a user callback.

    The callback returns a truthy value on success. ``None`` is treated
    as success so plain functions such as ``list.append`` can be used.
    """

    def __init__(self, callback: Callable[[bytes], object]):
        if not callable(callback):
            raise ZipConfigError("Sink callback must be callable")
        self._callback = callback

    def write(self, data: bytes) -> bool:
        result = self._callback(data)
        return result is None or bool(result)


class FileSink(ByteSink):
    """Sink over a binary file-like object (file, socket file, pipe).

    Example:
        with open("out.zip", "wb") as f:
            writer = StreamingZipWriter(FileSink(f))
    """

    def __init__(self, file: BinaryIO):
        if not hasattr(file, "write"):
            raise ZipConfigError("File-like object must have a write() method")
        self._file = file

    def write(self, data: bytes) -> bool:
        written = self._file.write(data)
        # Raw (unbuffered) streams return the count actually written
        if written is not None and written != len(data):
            return False
        return True


class MemorySink(ByteSink):
    """Sink that accumulates everything in memory. Mostly useful for tests."""

    def __init__(self):
        self._buffer = bytearray()

    def write(self, data: bytes) -> bool:
        self._buffer += data
        return True

    def getvalue(self) -> bytes:
        """Return all bytes written so far."""
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)


class QueueSink(ByteSink):
    """Sink that queues chunks until the consumer drains them.

    Used by :func:`zipsink.writer.stream_zip` to turn push-style output
    into a generator of chunks.
    """

    def __init__(self):
        self._chunks: deque[bytes] = deque()

    def write(self, data: bytes) -> bool:
        if data:
            self._chunks.append(bytes(data))
        return True

    def drain(self) -> Iterator[bytes]:
        """Yield and remove every queued chunk, oldest first."""
        while self._chunks:
            yield self._chunks.popleft()

    def __len__(self) -> int:
        return len(self._chunks)


def as_sink(target: object) -> ByteSink:
    """Adapt ``target`` to a :class:`ByteSink`.

    Args:
        target: A ByteSink, an object with a ``write()`` method, or a
            callable taking one bytes argument.

    Returns:
        A ByteSink wrapping ``target``.

    Raises:
        ZipConfigError: If ``target`` is None or cannot be adapted.
    """
    if target is None:
        raise ZipConfigError("A byte sink is required")
    if isinstance(target, ByteSink):
        return target
    if hasattr(target, "write"):
        return FileSink(target)
    if callable(target):
        return CallbackSink(target)
    raise ZipConfigError(f"Cannot use {type(target).__name__} as a byte sink")
