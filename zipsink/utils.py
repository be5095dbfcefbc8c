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
Utility functions for the streaming ZIP writer.

This module provides helpers for running CRC32 calculation, DOS date/time
conversion, and fixed-width little-endian writes to a byte sink.
"""

import logging
import struct
import time
import zlib
from datetime import datetime
from typing import Union

from .constants import DOS_EPOCH_YEAR, FALLBACK_DATE_TIME
from .errors import ZipSinkError
from .sink import ByteSink

__log__ = logging.getLogger(__name__)

DateTimeLike = Union[datetime, tuple]

# Seed of a fresh CRC32 computation
CRC32_SEED = 0


def crc32(data: bytes, value: int = CRC32_SEED) -> int:
    """Calculate or continue a CRC32 checksum.

    Args:
        data: Bytes to add to the checksum.
        value: Checksum of the preceding bytes (CRC32_SEED to start).

    Returns:
        CRC32 value as unsigned 32-bit integer.
    """
    return zlib.crc32(data, value) & 0xFFFFFFFF


def _date_time_fields(dt: DateTimeLike) -> tuple[int, int, int, int, int, int]:
    if isinstance(dt, datetime):
        return (dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second)
    if len(dt) < 6:
        raise ValueError(f"date_time needs 6 fields, got {len(dt)}")
    year, month, day, hour, minute, second = (int(v) for v in dt[:6])
    return (year, month, day, hour, minute, second)


def dos_time(dt: DateTimeLike) -> int:
    """Pack the time of day into MS-DOS format.

    DOS time format (16 bits):
        Bits 0-4: Second / 2
        Bits 5-10: Minute
        Bits 11-15: Hour

    Out-of-range components are masked to their field width, not checked.

    Args:
        dt: datetime, or (year, month, day, hour, minute, second) tuple.

    Returns:
        DOS time value (16-bit unsigned integer).
    """
    _, _, _, hour, minute, second = _date_time_fields(dt)
    packed = (second // 2) & 0x1F
    packed |= (minute & 0x3F) << 5
    packed |= (hour & 0x1F) << 11
    return packed


def dos_date(dt: DateTimeLike) -> int:
    """Pack the calendar date into MS-DOS format.

    DOS date format (16 bits):
        Bits 0-4: Day
        Bits 5-8: Month
        Bits 9-15: Year - 1980

    Years before 1980 or after 2107 wrap around silently.

    Args:
        dt: datetime, or (year, month, day, hour, minute, second) tuple.

    Returns:
        DOS date value (16-bit unsigned integer).
    """
    year, month, day, _, _, _ = _date_time_fields(dt)
    packed = day & 0x1F
    packed |= (month & 0x0F) << 5
    packed |= ((year - DOS_EPOCH_YEAR) & 0x7F) << 9
    return packed


def timestamp_to_dos_datetime(dt: DateTimeLike) -> tuple[int, int]:
    """Convert a date-time to DOS date and time.

    Args:
        dt: datetime, or (year, month, day, hour, minute, second) tuple.

    Returns:
        Tuple of (dos_date, dos_time) as 16-bit unsigned integers.
    """
    return (dos_date(dt), dos_time(dt))


def dos_datetime_to_timestamp(packed_date: int, packed_time: int) -> datetime:
    """Convert DOS date and time back to a Python datetime.

    Args:
        packed_date: DOS date value (16-bit unsigned integer).
        packed_time: DOS time value (16-bit unsigned integer).

    Returns:
        datetime object, or 1980-01-01 00:00:00 if the fields do not form
        a valid date.
    """
    day = packed_date & 0x1F
    month = (packed_date >> 5) & 0x0F
    year = ((packed_date >> 9) & 0x7F) + DOS_EPOCH_YEAR

    second = (packed_time & 0x1F) * 2
    minute = (packed_time >> 5) & 0x3F
    hour = (packed_time >> 11) & 0x1F

    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return datetime(DOS_EPOCH_YEAR, 1, 1, 0, 0, 0)


def current_datetime() -> tuple[int, int, int, int, int, int]:
    """Return the current local date and time as a 6-tuple.

    Falls back to FALLBACK_DATE_TIME (2000-01-01 00:00:00) when the local
    time cannot be determined.
    """
    try:
        now = time.localtime()
    except (OverflowError, OSError, ValueError) as e:
        __log__.warning("Local time lookup failed (%s), using %r", e, FALLBACK_DATE_TIME)
        return FALLBACK_DATE_TIME
    return (now.tm_year, now.tm_mon, now.tm_mday, now.tm_hour, now.tm_min, now.tm_sec)


def write_bytes(sink: ByteSink, data: bytes) -> int:
    """Write raw bytes to a sink.

    Args:
        sink: Destination sink.
        data: Bytes to write. Empty data is not passed to the sink.

    Returns:
        Number of bytes written.

    Raises:
        ZipSinkError: If the sink rejects the data or raises any exception.
    """
    if not data:
        return 0
    try:
        ok = sink.write(data)
    except Exception as e:
        raise ZipSinkError(f"Write operation failed: {e}") from e
    if not ok:
        raise ZipSinkError(f"Write operation failed: sink rejected {len(data)} bytes")
    return len(data)


def write_uint16(sink: ByteSink, value: int) -> int:
    """Write a little-endian 16-bit unsigned integer to a sink.

    Args:
        sink: Destination sink.
        value: Value to write; masked to 16 bits.

    Returns:
        Number of bytes written (always 2).

    Raises:
        ZipSinkError: If the write operation fails.
    """
    return write_bytes(sink, struct.pack("<H", value & 0xFFFF))


def write_uint32(sink: ByteSink, value: int) -> int:
    """Write a little-endian 32-bit unsigned integer to a sink.

    Args:
        sink: Destination sink.
        value: Value to write; masked to 32 bits.

    Returns:
        Number of bytes written (always 4).

    Raises:
        ZipSinkError: If the write operation fails.
    """
    return write_bytes(sink, struct.pack("<I", value & 0xFFFFFFFF))


def write_uint64(sink: ByteSink, value: int) -> int:
    """Write a little-endian 64-bit unsigned integer to a sink.

    Args:
        sink: Destination sink.
        value: Value to write; masked to 64 bits.

    Returns:
        Number of bytes written (always 8).

    Raises:
        ZipSinkError: If the write operation fails.
    """
    return write_bytes(sink, struct.pack("<Q", value & 0xFFFFFFFFFFFFFFFF))
