import io
import struct
import zipfile

from zipsink.sink import ByteSink


class FlakySink(ByteSink):
    """In-memory sink that can be told to start failing.

    Fails once ``fail`` is set, or once ``fail_after`` writes succeeded.
    """

    def __init__(self, fail_after=None):
        self.buffer = bytearray()
        self.writes = 0
        self.fail = False
        self.fail_after = fail_after

    def write(self, data):
        if self.fail or (self.fail_after is not None and self.writes >= self.fail_after):
            return False
        self.buffer += data
        self.writes += 1
        return True


class RaisingSink(ByteSink):
    def write(self, data):
        raise BrokenPipeError("peer went away")


LOCAL_HEADER = struct.Struct("<IHHHHHIIIHH")
DATA_DESCRIPTOR = struct.Struct("<IIII")
CENTRAL_HEADER = struct.Struct("<IHHHHHHIIIHHHHHII")
EOCD = struct.Struct("<IHHHHIIH")


def open_archive(data):
    return zipfile.ZipFile(io.BytesIO(bytes(data)), "r")


def parse_eocd(data):
    return EOCD.unpack(bytes(data[-EOCD.size :]))


def parse_central_directory(data):
    """Return (fields, name) for every central directory header."""
    data = bytes(data)
    fields = parse_eocd(data)
    cd_size, cd_offset = fields[5], fields[6]
    pos = cd_offset
    records = []
    while pos < cd_offset + cd_size:
        header = CENTRAL_HEADER.unpack_from(data, pos)
        name_len = header[10]
        start = pos + CENTRAL_HEADER.size
        records.append((header, data[start : start + name_len]))
        pos = start + name_len
    return records
