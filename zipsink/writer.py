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
Streaming ZIP archive writer.

This module provides the StreamingZipWriter class, which produces a ZIP
archive as a sequence of writes to a byte sink. Entries are compressed
as their data arrives; neither the archive nor any entry is held in
memory. CRC32 and sizes go into a data descriptor after each entry, and
the central directory is written once, by finish().
"""

import contextlib
import enum
import logging
import os
from datetime import datetime
from typing import BinaryIO, Iterable, Iterator, Optional

from .compressor import DeflateEngine, FlushMode
from .constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_COMPRESSION_LEVEL,
    ENTRY_MAX_NAME_LEN,
    INTERNAL_BUFFER_SIZE,
    MAX_CD_OFFSET,
    MAX_CD_SIZE,
    MAX_ENTRIES,
    MAX_FILE_SIZE,
    MAX_NAME_FIELD,
)
from .errors import (
    ZipConfigError,
    ZipError,
    ZipStateError,
    ZipUnsupportedFeature,
)
from .sink import QueueSink, as_sink
from .structures import (
    CentralDirectoryHeader,
    DataDescriptor,
    EndOfCentralDirectory,
    LocalFileHeader,
    ZipEntry,
)
from .utils import DateTimeLike, current_datetime, timestamp_to_dos_datetime, write_bytes

__log__ = logging.getLogger(__name__)


class WriterState(enum.Enum):
    """Lifecycle states of a StreamingZipWriter."""

    IDLE = "idle"  # Ready for open_entry() or finish()
    ENTRY_OPEN = "entry_open"  # Accepting update() and close_entry()
    FINALIZED = "finalized"  # Central directory written
    FAILED = "failed"  # Sink or compressor failure, archive unusable
    RELEASED = "released"  # Resources dropped


_TERMINAL_STATES = (WriterState.FINALIZED, WriterState.FAILED, WriterState.RELEASED)


class StreamingZipWriter:
    """Writer that streams a ZIP archive to a byte sink.

    Entries are written one at a time: open_entry(), any number of
    update() calls, then close_entry(). finish() writes the central
    directory. Only one entry can be open at a time, and the writer is
    not safe for concurrent use.

    Example:
        with open("archive.zip", "wb") as f:
            with StreamingZipWriter(f) as z:
                z.open_entry("hello.txt")
                z.update(b"Hello, ")
                z.update(b"World!")
                z.close_entry()
    """

    def __init__(
        self,
        sink,
        *,
        max_name_len: int = ENTRY_MAX_NAME_LEN,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        buffer_size: int = INTERNAL_BUFFER_SIZE,
    ):
        """Initialize the writer.

        Args:
            sink: ByteSink, binary file-like object, or callable taking
                one bytes argument and returning success. Never closed
                by the writer.
            max_name_len: Entry names longer than this many bytes are
                truncated.
            compression_level: zlib compression level (-1 for the
                default, 0-9).
            buffer_size: Largest compressed chunk passed to the sink.

        Raises:
            ZipConfigError: If the sink is missing or an option is invalid.
            ZipCompressionError: If the compressor cannot be prepared.
        """
        byte_sink = as_sink(sink)

        if not 0 < max_name_len <= MAX_NAME_FIELD:
            raise ZipConfigError(f"Invalid max_name_len: {max_name_len} (must be 1-{MAX_NAME_FIELD})")
        if not -1 <= compression_level <= 9:
            raise ZipConfigError(f"Invalid compression_level: {compression_level} (must be -1-9)")
        if buffer_size <= 0:
            raise ZipConfigError(f"Invalid buffer_size: {buffer_size} (must be positive)")

        self._engine = DeflateEngine(compression_level, buffer_size)
        self._sink = byte_sink
        self._max_name_len = max_name_len
        self._entries: list[ZipEntry] = []
        self._bytes_written: int = 0
        self._central_dir_offset: int = 0
        self._entry_open: bool = False
        self._terminal: Optional[WriterState] = None

    @property
    def state(self) -> WriterState:
        if self._terminal is not None:
            return self._terminal
        return WriterState.ENTRY_OPEN if self._entry_open else WriterState.IDLE

    @property
    def bytes_written(self) -> int:
        """Total number of bytes handed to the sink."""
        return self._bytes_written

    @property
    def central_dir_offset(self) -> int:
        """Offset of the central directory (0 until finish() starts)."""
        return self._central_dir_offset

    @property
    def entry_open(self) -> bool:
        return self._entry_open

    @property
    def num_entries(self) -> int:
        """Number of entries opened so far."""
        return len(self._entries)

    @property
    def entries(self) -> tuple[ZipEntry, ...]:
        """Snapshot of the entry records, in archive order."""
        return tuple(self._entries)

    @property
    def max_name_len(self) -> int:
        return self._max_name_len

    def _check_usable(self, operation: str) -> None:
        if self._terminal is not None:
            raise ZipStateError(f"Cannot {operation}: archive is {self._terminal.value}")

    @contextlib.contextmanager
    def _fatal_on_error(self) -> Iterator[None]:
        # Bytes already handed to the sink stay written
        try:
            yield
        except Exception as e:
            __log__.error("Streaming archive failed after %d bytes: %s", self._bytes_written, e)
            self._terminal = WriterState.FAILED
            raise

    def _encode_name(self, name: str | bytes) -> bytes:
        if isinstance(name, str):
            name_bytes = name.encode("utf-8")
        elif isinstance(name, (bytes, bytearray)):
            name_bytes = bytes(name)
        else:
            raise TypeError(f"Entry name must be str or bytes, not {type(name).__name__}")

        if len(name_bytes) > self._max_name_len:
            __log__.debug(
                "Truncating entry name of %d bytes to %d bytes", len(name_bytes), self._max_name_len
            )
            name_bytes = name_bytes[: self._max_name_len]
        return name_bytes

    def _deflate(self, entry: ZipEntry, data: bytes, flush: FlushMode) -> None:
        """Run data through the compressor, writing every chunk it produces."""
        for chunk in self._engine.feed(data, flush):
            written = write_bytes(self._sink, chunk)
            entry.add_compressed(written)
            self._bytes_written += written

    def open_entry(self, name: str | bytes, date_time: Optional[DateTimeLike] = None) -> ZipEntry:
        """Start a new entry and write its local file header.

        Args:
            name: Entry name (path within ZIP archive). Names longer than
                max_name_len bytes are truncated.
            date_time: datetime or (year, month, day, hour, minute,
                second) tuple; defaults to the current local time.

        Returns:
            The entry record (read-only for callers).

        Raises:
            ZipStateError: If an entry is already open or the archive is
                finalized, failed or released.
            ZipUnsupportedFeature: If the entry would start beyond 4 GiB.
            ZipSinkError: If the sink fails; the writer becomes unusable.
        """
        self._check_usable("open entry")
        if self._entry_open:
            raise ZipStateError("Cannot open entry: another entry is still open")

        name_bytes = self._encode_name(name)

        if self._bytes_written > MAX_FILE_SIZE:
            raise ZipUnsupportedFeature(
                f"Entry offset {self._bytes_written} exceeds {MAX_FILE_SIZE} (ZIP64 is not supported)"
            )

        if date_time is None:
            date_time = current_datetime()
        mod_date, mod_time = timestamp_to_dos_datetime(date_time)

        entry = ZipEntry(
            name=name_bytes,
            offset=self._bytes_written,
            mod_time=mod_time,
            mod_date=mod_date,
        )

        with self._fatal_on_error():
            written = LocalFileHeader.for_entry(entry).write(self._sink)
            self._bytes_written += written
            self._entries.append(entry)
            self._entry_open = True
            self._engine.reset()

        __log__.debug("Opened entry %r at offset %d", entry.filename, entry.offset)
        return entry

    def update(self, data: bytes) -> None:
        """Compress data into the open entry.

        Can be called any number of times per entry; data is checksummed
        and compressed in the order received. Empty data is a no-op.

        Args:
            data: Bytes-like object with the next part of the entry.

        Raises:
            ZipStateError: If no entry is open.
            ZipUnsupportedFeature: If the entry would exceed 4 GiB.
            ZipSinkError: If the sink fails; the writer becomes unusable.
            ZipCompressionError: If compression fails.
        """
        self._check_usable("update entry")
        if not self._entry_open:
            raise ZipStateError("Cannot update entry: no entry is open")

        if not isinstance(data, (bytes, bytearray)):
            data = memoryview(data).cast("B")
        if not data:
            return

        entry = self._entries[-1]
        if entry.uncompressed_size + len(data) > MAX_FILE_SIZE:
            raise ZipUnsupportedFeature(
                f"Entry {entry.filename!r} exceeds {MAX_FILE_SIZE} bytes (ZIP64 is not supported)"
            )

        with self._fatal_on_error():
            entry.add_uncompressed(data)
            self._deflate(entry, data, FlushMode.NO_FLUSH)

    def close_entry(self) -> None:
        """Finish the open entry and write its data descriptor.

        Does nothing if no entry is open.

        Raises:
            ZipStateError: If an entry is open but the writer has failed.
            ZipUnsupportedFeature: If the compressed data exceeded 4 GiB.
            ZipSinkError: If the sink fails; the writer becomes unusable.
        """
        if not self._entry_open:
            return
        self._check_usable("close entry")

        entry = self._entries[-1]
        with self._fatal_on_error():
            self._deflate(entry, b"", FlushMode.FINISH)
            if entry.compressed_size > MAX_FILE_SIZE:
                raise ZipUnsupportedFeature(
                    f"Compressed entry {entry.filename!r} exceeds {MAX_FILE_SIZE} bytes "
                    f"(ZIP64 is not supported)"
                )
            self._bytes_written += DataDescriptor.for_entry(entry).write(self._sink)

        entry.freeze()
        self._entry_open = False
        __log__.debug(
            "Closed entry %r: %d bytes, %d compressed, crc32 %08x",
            entry.filename,
            entry.uncompressed_size,
            entry.compressed_size,
            entry.crc32,
        )

    def finish(self) -> None:
        """Write the central directory and the end of central directory record.

        Raises:
            ZipStateError: If an entry is still open or the archive is
                finalized, failed or released.
            ZipUnsupportedFeature: If the archive needs ZIP64.
            ZipSinkError: If the sink fails; the archive is incomplete.
        """
        self._check_usable("finish archive")
        if self._entry_open:
            raise ZipStateError("Cannot finish archive: an entry is still open")

        num_entries = len(self._entries)
        if num_entries > MAX_ENTRIES:
            raise ZipUnsupportedFeature(f"Too many entries: {num_entries} (max {MAX_ENTRIES})")
        if self._bytes_written > MAX_CD_OFFSET:
            raise ZipUnsupportedFeature(
                f"Central directory offset {self._bytes_written} exceeds {MAX_CD_OFFSET}"
            )

        headers = [CentralDirectoryHeader.for_entry(entry) for entry in self._entries]
        expected_cd_size = sum(header.size for header in headers)
        if expected_cd_size > MAX_CD_SIZE:
            raise ZipUnsupportedFeature(
                f"Central directory size {expected_cd_size} exceeds {MAX_CD_SIZE}"
            )

        self._central_dir_offset = self._bytes_written

        with self._fatal_on_error():
            for header in headers:
                self._bytes_written += header.write(self._sink)

            # The end record itself is not part of the directory
            cd_size = self._bytes_written - self._central_dir_offset

            eocd = EndOfCentralDirectory(
                num_entries=num_entries,
                cd_size=cd_size,
                cd_offset=self._central_dir_offset,
            )
            self._bytes_written += eocd.write(self._sink)

        self._terminal = WriterState.FINALIZED
        __log__.debug(
            "Finished archive: %d entries, central directory at %d, %d bytes total",
            num_entries,
            self._central_dir_offset,
            self._bytes_written,
        )

    def release(self) -> None:
        """Release the compressor and the entry records.

        Safe to call whether or not finish() succeeded; an unfinished
        archive is simply left incomplete. The sink is not closed.
        """
        if self._terminal is WriterState.RELEASED:
            return
        if self._terminal is not WriterState.FINALIZED:
            __log__.debug("Releasing unfinished archive after %d bytes", self._bytes_written)
        self._engine.release()
        self._entries.clear()
        self._entry_open = False
        self._terminal = WriterState.RELEASED

    def close(self) -> None:
        """Close any open entry, finish the archive if needed, then release."""
        try:
            if self._terminal is None:
                self.close_entry()
                self.finish()
        finally:
            self.release()

    def add_bytes(self, name: str | bytes, data: bytes, date_time: Optional[DateTimeLike] = None) -> ZipEntry:
        """Add a complete entry from bytes data.

        Args:
            name: Entry name (path within ZIP archive).
            data: Entry contents.
            date_time: Modification time; defaults to now.

        Returns:
            The closed entry record.
        """
        entry = self.open_entry(name, date_time)
        self.update(data)
        self.close_entry()
        return entry

    def add_stream(
        self,
        name: str | bytes,
        stream: BinaryIO,
        date_time: Optional[DateTimeLike] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> ZipEntry:
        """Add an entry from a stream of unknown size, reading it in chunks.

        Args:
            name: Entry name (path within ZIP archive).
            stream: Binary file-like object to read from.
            date_time: Modification time; defaults to now.
            chunk_size: Number of bytes read per call.

        Returns:
            The closed entry record.

        Raises:
            ZipConfigError: If the stream has no read() method.
            ZipError: If reading the stream fails. The entry stays open.
        """
        if not hasattr(stream, "read"):
            raise ZipConfigError("Stream object must have a read() method")

        entry = self.open_entry(name, date_time)
        while True:
            try:
                chunk = stream.read(chunk_size)
            except OSError as e:
                raise ZipError(f"Failed to read from stream: {e}") from e
            if not chunk:
                break
            self.update(chunk)
        self.close_entry()
        return entry

    def add_file(
        self,
        name_in_zip: str | bytes,
        source_path: str | os.PathLike,
        date_time: Optional[DateTimeLike] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> ZipEntry:
        """Add an entry from a file on disk.

        Args:
            name_in_zip: Entry name (path within ZIP archive).
            source_path: Path to source file on disk.
            date_time: Modification time; defaults to the file's mtime.
            chunk_size: Number of bytes read per call.

        Returns:
            The closed entry record.

        Raises:
            ZipError: If the source file cannot be opened or read.
        """
        try:
            f = open(source_path, "rb")
        except OSError as e:
            raise ZipError(f"Error reading file {source_path}: {e}") from e

        with f:
            if date_time is None:
                date_time = datetime.fromtimestamp(os.fstat(f.fileno()).st_mtime)
            return self.add_stream(name_in_zip, f, date_time, chunk_size)

    def __enter__(self) -> "StreamingZipWriter":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit.

        Finishes the archive on a clean exit. On an exception the archive
        is left incomplete and only resources are released.
        """
        if exc_type is None:
            self.close()
        else:
            self.release()


def stream_zip(
    members: Iterable[tuple[str | bytes, Optional[DateTimeLike], Iterable[bytes]]],
    **options,
) -> Iterator[bytes]:
    """Generate a ZIP archive chunk by chunk.

    Each chunk is yielded as soon as the writer produces it, so the
    archive can be sent while member data is still being generated.

    Example:
        def rows():
            yield b"id,name\\n"
            yield b"1,alice\\n"

        for chunk in stream_zip([("export.csv", None, rows())]):
            response.write(chunk)

    Args:
        members: Iterable of (name, date_time, chunks) tuples, where
            chunks is an iterable of bytes.
        **options: Keyword options for StreamingZipWriter.

    Yields:
        Archive bytes, in order.
    """
    sink = QueueSink()
    with StreamingZipWriter(sink, **options) as writer:
        for name, date_time, chunks in members:
            writer.open_entry(name, date_time)
            yield from sink.drain()
            for chunk in chunks:
                writer.update(chunk)
                yield from sink.drain()
            writer.close_entry()
            yield from sink.drain()
        writer.finish()
    yield from sink.drain()
