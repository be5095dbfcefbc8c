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
Streaming deflate engine.

This module wraps zlib's incremental compressor so that an entry can be
compressed while its data is still arriving. Output is handed out in
chunks no larger than the engine's buffer size.
"""

import enum
import zlib
from typing import Iterator

from .constants import (
    DEFAULT_COMPRESSION_LEVEL,
    DEFLATE_MEMLEVEL,
    DEFLATE_WBITS,
    INTERNAL_BUFFER_SIZE,
)
from .errors import ZipCompressionError


class FlushMode(enum.Enum):
    """Flush directive passed along with each block of input."""

    NO_FLUSH = zlib.Z_NO_FLUSH  # Compressor may keep data buffered
    FINISH = zlib.Z_FINISH  # Emit everything and end the deflate stream


class DeflateEngine:
    """Raw deflate compressor that can be reset between entries.

    Example:
        engine = DeflateEngine()
        for chunk in engine.feed(b"data"):
            sink.write(chunk)
        for chunk in engine.feed(b"", FlushMode.FINISH):
            sink.write(chunk)
        engine.reset()
    """

    def __init__(self, level: int = DEFAULT_COMPRESSION_LEVEL, buffer_size: int = INTERNAL_BUFFER_SIZE):
        """Prepare the compressor.

        Args:
            level: zlib compression level (-1 for the default, 0-9).
            buffer_size: Largest output chunk yielded by feed().

        Raises:
            ZipCompressionError: If the compressor cannot be created.
        """
        if buffer_size <= 0:
            raise ZipCompressionError(f"Invalid buffer size: {buffer_size} (must be positive)")

        try:
            template = zlib.compressobj(
                level,
                zlib.DEFLATED,
                DEFLATE_WBITS,
                DEFLATE_MEMLEVEL,
                zlib.Z_DEFAULT_STRATEGY,
            )
        except (ValueError, zlib.error, MemoryError) as e:
            raise ZipCompressionError(f"Deflate compressor could not be prepared: {e}") from e

        self._template = template
        self._stream = None
        self._buffer_size = buffer_size
        self._finished = False
        self.reset()

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def finished(self) -> bool:
        """True once a FINISH flush ended the current stream."""
        return self._finished

    def reset(self) -> None:
        """Start a fresh deflate stream for the next entry."""
        if self._template is None:
            raise ZipCompressionError("Compressor has been released")
        self._stream = self._template.copy()
        self._finished = False

    def feed(self, data: bytes, flush: FlushMode = FlushMode.NO_FLUSH) -> Iterator[bytes]:
        """Compress ``data`` and return an iterator over the output chunks.

        The iterator must be consumed for the input to be processed. With
        FlushMode.NO_FLUSH it may yield nothing; with FlushMode.FINISH it
        yields every remaining byte of the stream.

        Args:
            data: Uncompressed input (may be empty).
            flush: Flush directive.

        Returns:
            Iterator of compressed chunks, each at most buffer_size bytes.

        Raises:
            ZipCompressionError: If the engine was released or already
                finished, or if zlib fails.
        """
        if self._stream is None:
            raise ZipCompressionError("Compressor has been released")
        if self._finished:
            raise ZipCompressionError("Deflate stream already finished, reset() it first")
        if flush is FlushMode.FINISH:
            self._finished = True
        return self._generate(memoryview(data).cast("B"), flush)

    def _generate(self, view: memoryview, flush: FlushMode) -> Iterator[bytes]:
        stream = self._stream
        size = self._buffer_size
        try:
            for start in range(0, len(view), size):
                yield from self._split(stream.compress(view[start : start + size]))
            if flush is FlushMode.FINISH:
                yield from self._split(stream.flush(zlib.Z_FINISH))
        except zlib.error as e:
            raise ZipCompressionError(f"Deflate compression failed: {e}") from e

    def _split(self, output: bytes) -> Iterator[bytes]:
        size = self._buffer_size
        for start in range(0, len(output), size):
            yield output[start : start + size]

    def release(self) -> None:
        """Drop the compressor state. The engine cannot be used afterwards."""
        self._stream = None
        self._template = None
