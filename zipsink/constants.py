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
ZIP format constants and writer defaults.

This module defines the record signatures, field values and limits used
when streaming a classic (non-ZIP64) archive, plus the default settings
of the streaming writer.
"""

# ZIP record signatures (magic numbers)
LOCAL_FILE_HEADER = 0x04034B50  # "PK\x03\x04"
CENTRAL_DIR_HEADER = 0x02014B50  # "PK\x01\x02"
END_OF_CENTRAL_DIR = 0x06054B50  # "PK\x05\x06"
DATA_DESCRIPTOR = 0x08074B50  # "PK\x07\x08"

# Compression methods
COMP_DEFLATE = 8  # Deflate compression (zlib)

# General purpose bit flags
FLAG_DATA_DESCRIPTOR = 0x0008  # CRC and sizes follow the data in a descriptor

# ZIP version constants
VERSION_DEFAULT = 20  # Version needed to extract (2.0, deflate)
VERSION_MADE_BY = 0  # Made by: MS-DOS, version 0

# Classic ZIP limits (32-bit)
MAX_FILE_SIZE = 0xFFFFFFFF  # 4 GiB - 1
MAX_ENTRIES = 0xFFFF  # 65535 entries
MAX_CD_SIZE = 0xFFFFFFFF  # 4 GiB - 1
MAX_CD_OFFSET = 0xFFFFFFFF  # 4 GiB - 1
MAX_NAME_FIELD = 0xFFFF  # Name length is a 16-bit field

# Local file header size (fixed part, excluding filename)
LOCAL_FILE_HEADER_SIZE = 30

# Central directory header size (fixed part, excluding filename)
CENTRAL_DIR_HEADER_SIZE = 46

# End of central directory size (no comment)
END_OF_CENTRAL_DIR_SIZE = 22

# Data descriptor size (classic, with signature)
DATA_DESCRIPTOR_SIZE = 16

# Writer defaults
ENTRY_MAX_NAME_LEN = 127  # Longer names are truncated to this many bytes
INTERNAL_BUFFER_SIZE = 4 << 10  # Largest compressed chunk handed to the sink
DEFAULT_COMPRESSION_LEVEL = -1  # zlib.Z_DEFAULT_COMPRESSION
DEFAULT_CHUNK_SIZE = 64 << 10  # Read size for add_stream()/add_file()

# Deflate parameters (raw stream, no zlib header)
DEFLATE_WBITS = -15
DEFLATE_MEMLEVEL = 8

# Used when the local time cannot be determined
FALLBACK_DATE_TIME = (2000, 1, 1, 0, 0, 0)

# DOS epoch
DOS_EPOCH_YEAR = 1980
