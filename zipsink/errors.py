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
Custom exception classes for the streaming ZIP writer.

This module defines specific exception types for the different ways a
streaming write can fail. None of them are retried internally: bytes
already handed to the sink cannot be taken back.
"""


class ZipError(Exception):
    """Base exception class for all ZIP-related errors."""

    pass


class ZipStateError(ZipError):
    """Raised when an operation is not valid in the writer's current state.

    This exception is raised when:
    - update() is called with no entry open
    - open_entry() is called while another entry is open
    - finish() is called while an entry is still open
    - any operation is attempted after finish(), a fatal error or release()

    The writer's state is left unchanged, so a valid call may follow.
    """

    pass


class ZipSinkError(ZipError):
    """Raised when the byte sink fails to accept data.

    The archive may end in a partially written record. The writer is
    unusable afterwards and the archive must be discarded.
    """

    pass


class ZipCompressionError(ZipError):
    """Raised when the compression engine cannot be prepared or fails.

    This exception is raised when:
    - The deflate compressor cannot be created (bad level, no memory)
    - The compressor reports an error while compressing
    - Data is fed to a finished stream without a reset
    """

    pass


class ZipConfigError(ZipError):
    """Raised when the writer is constructed with invalid options.

    This exception is raised when:
    - No sink is supplied, or the sink cannot be adapted
    - Numeric options are out of range
    """

    pass


class ZipUnsupportedFeature(ZipError):
    """Raised when the archive would need a feature that is not supported.

    Offsets, sizes and counts are limited to the classic 32-bit (and
    16-bit for entry counts) ZIP fields, since ZIP64 is not written.
    """

    pass
