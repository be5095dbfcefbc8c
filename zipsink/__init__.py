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
ZIPSINK - Streaming ZIP writer - Pure Python ZIP archives produced on the fly.

This library writes ZIP archives incrementally to any byte sink (file,
socket, pipe, callback), compressing each entry while its data is still
being generated, using only Python standard library modules.
"""

from .errors import (
    ZipCompressionError,
    ZipConfigError,
    ZipError,
    ZipSinkError,
    ZipStateError,
    ZipUnsupportedFeature,
)
from .sink import ByteSink, CallbackSink, FileSink, MemorySink, QueueSink
from .utils import current_datetime, dos_datetime_to_timestamp
from .writer import StreamingZipWriter, WriterState, stream_zip

__all__ = [
    "StreamingZipWriter",
    "WriterState",
    "stream_zip",
    "current_datetime",
    "dos_datetime_to_timestamp",
    "ByteSink",
    "CallbackSink",
    "FileSink",
    "MemorySink",
    "QueueSink",
    "ZipError",
    "ZipStateError",
    "ZipSinkError",
    "ZipCompressionError",
    "ZipConfigError",
    "ZipUnsupportedFeature",
]

__version__ = "0.1.0"
