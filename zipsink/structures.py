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
ZIP structure definitions and encoding functions.

This module defines the entry record kept for every archive member and
dataclasses for the records a streaming archive is made of: local file
headers, data descriptors, central directory headers and the end of
central directory record. Each record writes itself field by field to a
byte sink and reports how many bytes it emitted.
"""

from dataclasses import dataclass
from datetime import datetime

from .constants import (
    CENTRAL_DIR_HEADER,
    CENTRAL_DIR_HEADER_SIZE,
    COMP_DEFLATE,
    DATA_DESCRIPTOR,
    DATA_DESCRIPTOR_SIZE,
    END_OF_CENTRAL_DIR,
    END_OF_CENTRAL_DIR_SIZE,
    FLAG_DATA_DESCRIPTOR,
    LOCAL_FILE_HEADER,
    LOCAL_FILE_HEADER_SIZE,
    VERSION_DEFAULT,
    VERSION_MADE_BY,
)
from .errors import ZipStateError
from .sink import ByteSink
from .utils import (
    CRC32_SEED,
    crc32,
    dos_datetime_to_timestamp,
    write_bytes,
    write_uint16,
    write_uint32,
)


@dataclass
class ZipEntry:
    """Bookkeeping for one archive member.

    Name, offset and timestamp are fixed when the entry is opened. CRC32
    and sizes grow while data is fed and are frozen when the entry is
    closed; the central directory is written from the frozen values.
    """

    name: bytes
    offset: int
    mod_time: int
    mod_date: int
    crc32: int = CRC32_SEED
    uncompressed_size: int = 0
    compressed_size: int = 0
    frozen: bool = False

    @property
    def filename(self) -> str:
        """Entry name decoded for display."""
        return self.name.decode("utf-8", errors="replace")

    @property
    def date_time(self) -> datetime:
        """Get modification date/time as datetime object."""
        return dos_datetime_to_timestamp(self.mod_date, self.mod_time)

    def add_uncompressed(self, data: bytes) -> None:
        """Account for raw data fed to the entry."""
        self._check_mutable()
        self.crc32 = crc32(data, self.crc32)
        self.uncompressed_size += len(data)

    def add_compressed(self, size: int) -> None:
        """Account for compressed bytes written for the entry."""
        self._check_mutable()
        self.compressed_size += size

    def freeze(self) -> None:
        """Mark the entry as closed; its fields no longer change."""
        self.frozen = True

    def _check_mutable(self) -> None:
        if self.frozen:
            raise ZipStateError(f"Entry {self.filename!r} is closed")


@dataclass
class LocalFileHeader:
    """Local file header structure.

    This header appears before each entry's compressed data. In streaming
    mode the CRC32 and sizes are zero and the data descriptor flag tells
    readers to look for them after the data.
    """

    mod_time: int
    mod_date: int
    filename: bytes
    version: int = VERSION_DEFAULT
    flags: int = FLAG_DATA_DESCRIPTOR
    compression_method: int = COMP_DEFLATE
    crc32: int = 0
    compressed_size: int = 0
    uncompressed_size: int = 0
    extra_len: int = 0

    @classmethod
    def for_entry(cls, entry: ZipEntry) -> "LocalFileHeader":
        """Build the streaming local header of a freshly opened entry."""
        return cls(mod_time=entry.mod_time, mod_date=entry.mod_date, filename=entry.name)

    @property
    def size(self) -> int:
        """Number of bytes write() emits."""
        return LOCAL_FILE_HEADER_SIZE + len(self.filename)

    def write(self, sink: ByteSink) -> int:
        """Write the header and filename.

        Args:
            sink: Destination sink.

        Returns:
            Number of bytes written.

        Raises:
            ZipSinkError: If any write fails. Earlier fields stay written.
        """
        written = write_uint32(sink, LOCAL_FILE_HEADER)
        written += write_uint16(sink, self.version)
        written += write_uint16(sink, self.flags)
        written += write_uint16(sink, self.compression_method)
        written += write_uint16(sink, self.mod_time)
        written += write_uint16(sink, self.mod_date)
        written += write_uint32(sink, self.crc32)
        written += write_uint32(sink, self.compressed_size)
        written += write_uint32(sink, self.uncompressed_size)
        written += write_uint16(sink, len(self.filename))
        written += write_uint16(sink, self.extra_len)
        written += write_bytes(sink, self.filename)
        return written


@dataclass
class DataDescriptor:
    """Data descriptor structure.

    Written after an entry's compressed data with the CRC32 and sizes
    that were not known when the local header went out.
    """

    crc32: int
    compressed_size: int
    uncompressed_size: int

    @classmethod
    def for_entry(cls, entry: ZipEntry) -> "DataDescriptor":
        return cls(
            crc32=entry.crc32,
            compressed_size=entry.compressed_size,
            uncompressed_size=entry.uncompressed_size,
        )

    @property
    def size(self) -> int:
        return DATA_DESCRIPTOR_SIZE

    def write(self, sink: ByteSink) -> int:
        written = write_uint32(sink, DATA_DESCRIPTOR)
        written += write_uint32(sink, self.crc32)
        written += write_uint32(sink, self.compressed_size)
        written += write_uint32(sink, self.uncompressed_size)
        return written


@dataclass
class CentralDirectoryHeader:
    """Central directory header structure.

    One per entry, written at the end of the archive. It repeats the
    local header fields with the final CRC32 and sizes, and points back
    to the local header.
    """

    mod_time: int
    mod_date: int
    crc32: int
    compressed_size: int
    uncompressed_size: int
    local_header_offset: int
    filename: bytes
    version_made_by: int = VERSION_MADE_BY
    version: int = VERSION_DEFAULT
    flags: int = FLAG_DATA_DESCRIPTOR
    compression_method: int = COMP_DEFLATE
    extra_len: int = 0
    comment_len: int = 0
    disk_num: int = 0
    internal_attrs: int = 0
    external_attrs: int = 0

    @classmethod
    def for_entry(cls, entry: ZipEntry) -> "CentralDirectoryHeader":
        return cls(
            mod_time=entry.mod_time,
            mod_date=entry.mod_date,
            crc32=entry.crc32,
            compressed_size=entry.compressed_size,
            uncompressed_size=entry.uncompressed_size,
            local_header_offset=entry.offset,
            filename=entry.name,
        )

    @property
    def size(self) -> int:
        return CENTRAL_DIR_HEADER_SIZE + len(self.filename)

    def write(self, sink: ByteSink) -> int:
        written = write_uint32(sink, CENTRAL_DIR_HEADER)
        written += write_uint16(sink, self.version_made_by)
        written += write_uint16(sink, self.version)
        written += write_uint16(sink, self.flags)
        written += write_uint16(sink, self.compression_method)
        written += write_uint16(sink, self.mod_time)
        written += write_uint16(sink, self.mod_date)
        written += write_uint32(sink, self.crc32)
        written += write_uint32(sink, self.compressed_size)
        written += write_uint32(sink, self.uncompressed_size)
        written += write_uint16(sink, len(self.filename))
        written += write_uint16(sink, self.extra_len)
        written += write_uint16(sink, self.comment_len)
        written += write_uint16(sink, self.disk_num)
        written += write_uint16(sink, self.internal_attrs)
        written += write_uint32(sink, self.external_attrs)
        written += write_uint32(sink, self.local_header_offset)
        written += write_bytes(sink, self.filename)
        return written


@dataclass
class EndOfCentralDirectory:
    """End of Central Directory record.

    Single-disk archives only: both disk numbers are zero and the
    "entries on this disk" count equals the total count.
    """

    num_entries: int
    cd_size: int
    cd_offset: int
    disk_num: int = 0
    cd_disk: int = 0
    comment_len: int = 0

    @property
    def size(self) -> int:
        return END_OF_CENTRAL_DIR_SIZE

    def write(self, sink: ByteSink) -> int:
        written = write_uint32(sink, END_OF_CENTRAL_DIR)
        written += write_uint16(sink, self.disk_num)
        written += write_uint16(sink, self.cd_disk)
        written += write_uint16(sink, self.num_entries)  # Entries on this disk
        written += write_uint16(sink, self.num_entries)  # Total entries
        written += write_uint32(sink, self.cd_size)
        written += write_uint32(sink, self.cd_offset)
        written += write_uint16(sink, self.comment_len)
        return written
