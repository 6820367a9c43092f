"""
MacPaint Header Extraction Module

This module handles detection and parsing of the optional MacBinary header
that may precede MacPaint image data. When present, the header is always
128 bytes long. Files without a header start directly with the 4-byte
data marker 00 00 00 02.

Reference: MacBinary II specification, Apple Technical Note "MacPaint
Document Format"
"""

import enum
import logging
import struct
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import BinaryIO, Self

logger = logging.getLogger(__name__)

HEADER_SIZE = 128
DATA_MARKER = b"\x00\x00\x00\x02"
FILE_TYPE = b"PNTG"
MAX_FILE_NAME_LENGTH = 63

# Macintosh timestamps count seconds from midnight, January 1, 1904
MAC_EPOCH = datetime(1904, 1, 1)


class MacPaintError(Exception):
    """Base exception for MacPaint-related errors"""

    pass


class InvalidMacPaintError(MacPaintError):
    """Raised when MacPaint data is structurally invalid or corrupted"""

    def __init__(self, reason: str):
        super().__init__(f"macpaint: invalid format: {reason}")
        self.reason = reason


class UnsupportedMacPaintError(MacPaintError):
    """Raised for recognized MacPaint variants this decoder cannot handle"""

    def __init__(self, reason: str):
        super().__init__(f"macpaint: unsupported variant: {reason}")
        self.reason = reason


class EndOfInputError(MacPaintError):
    """Raised when the stream is empty before anything was read"""

    pass


class UnexpectedEndOfInputError(MacPaintError):
    """Raised when the stream ends in the middle of a structure"""

    pass


class HeaderMode(enum.Enum):
    """How the compressed data is introduced in the file"""

    HEADERLESS = "headerless"  # starts with the data marker
    MACBINARY = "macbinary"  # 128-byte MacBinary header, then the marker


class FileFlag(enum.IntFlag):
    """Finder attribute bits stored in the header's file flags byte"""

    INITED = 1 << 0
    CHANGED = 1 << 1
    BUSY = 1 << 2
    BOZO = 1 << 3
    SYSTEM = 1 << 4
    BUNDLE = 1 << 5
    INVISIBLE = 1 << 6
    LOCKED = 1 << 7


# Fixed-offset header fields: (name, offset, big-endian struct format).
# The file name (length byte at offset 1, text at offset 2) is variable
# length and is handled separately.
HEADER_FIELDS: tuple[tuple[str, int, str], ...] = (
    ("version", 0, "B"),
    ("file_type", 65, "4s"),
    ("file_creator", 69, "4s"),
    ("file_flags", 73, "B"),
    ("file_vert_pos", 75, "H"),
    ("file_horz_pos", 77, "H"),
    ("window_id", 79, "H"),
    ("protected", 81, "B"),
    ("size_of_data_fork", 83, "I"),
    ("size_of_resource_fork", 87, "I"),
    ("creation_stamp", 91, "I"),
    ("modification_stamp", 95, "I"),
    ("get_info_length", 99, "H"),
    # MacBinary II additions
    ("finder_flags", 101, "H"),
    ("unpacked_length", 117, "I"),
    ("second_head_length", 121, "H"),
    ("upload_version", 123, "B"),
    ("read_version", 124, "B"),
    ("crc_value", 125, "H"),
)


@dataclass(frozen=True)
class MacBinaryHeader:
    """
    MacBinary header structure (128 bytes total)

    All multi-byte integers are stored in big-endian format.

    Should be constructed using `parse_macbinary_header(data)` or
    `MacBinaryHeader.parse_macpaint_header(file_path)`.
    """

    version: int  # Offset 0: Always 0
    file_name: bytes  # Offset 1: length byte, offset 2-64: name
    file_type: bytes  # Offset 65-68: Should be b"PNTG"
    file_creator: bytes  # Offset 69-72: Creator application, e.g. b"MPNT"
    file_flags: int  # Offset 73: Finder attribute flags
    file_vert_pos: int  # Offset 75-76: Vertical position in window
    file_horz_pos: int  # Offset 77-78: Horizontal position in window
    window_id: int  # Offset 79-80: Window or folder ID
    protected: bool  # Offset 81: 1 = protected
    size_of_data_fork: int  # Offset 83-86
    size_of_resource_fork: int  # Offset 87-90
    creation_stamp: int  # Offset 91-94: Seconds since 1904
    modification_stamp: int  # Offset 95-98: Seconds since 1904
    get_info_length: int  # Offset 99-100
    finder_flags: int  # Offset 101-102
    unpacked_length: int  # Offset 117-120: Total unpacked file length
    second_head_length: int  # Offset 121-122
    upload_version: int  # Offset 123: MacBinary version used by uploader
    read_version: int  # Offset 124: MacBinary version needed to read
    crc_value: int  # Offset 125-126: CRC of the previous 124 bytes

    @property
    def file_name_text(self) -> str:
        """File name decoded as Mac Roman text"""
        return self.file_name.decode("mac_roman")

    @property
    def flags(self) -> FileFlag:
        return FileFlag(self.file_flags)

    @property
    def created(self) -> datetime:
        return MAC_EPOCH + timedelta(seconds=self.creation_stamp)

    @property
    def modified(self) -> datetime:
        return MAC_EPOCH + timedelta(seconds=self.modification_stamp)

    def get_flags_string(self) -> str:
        """Get human-readable list of set Finder flags"""
        names = [flag.name for flag in FileFlag if flag in self.flags]
        return ", ".join(names) if names else "None"

    def __str__(self) -> str:
        """String representation of header information"""
        lines = [
            "MacBinary Header Information",
            "=" * 50,
            f"File Name:        {self.file_name_text}",
            f"File Type:        {self.file_type.decode('mac_roman')}",
            f"Creator:          {self.file_creator.decode('mac_roman')}",
            f"Flags:            {self.get_flags_string()}",
            f"Protected:        {'Yes' if self.protected else 'No'}",
            f"Window Position:  {self.file_horz_pos}, {self.file_vert_pos}",
            f"Data Fork:        {self.size_of_data_fork} bytes",
            f"Resource Fork:    {self.size_of_resource_fork} bytes",
            f"Created:          {self.created:%Y-%m-%d %H:%M:%S}",
            f"Modified:         {self.modified:%Y-%m-%d %H:%M:%S}",
            f"MacBinary:        upload v{self.upload_version}, "
            f"read v{self.read_version}",
        ]
        return "\n".join(lines)

    @classmethod
    def parse_macpaint_header(cls, file_path: str) -> Self | None:
        """
        Parse the MacBinary header of a MacPaint file.

        Args:
            file_path: Path to the MacPaint file

        Returns:
            MacBinaryHeader, or None if the file has no header

        Raises:
            InvalidMacPaintError: If the header is invalid
            MacPaintError: If file cannot be read
        """
        try:
            with open(file_path, "rb") as f:
                _, header = read_macpaint_header(f)
                return header
        except OSError as e:
            raise MacPaintError(f"Failed to read file: {e}")


def read_up_to(stream: BinaryIO, size: int) -> bytes:
    """
    Read up to `size` bytes, stopping early only at end of input.

    Raw streams such as pipes and sockets may return fewer bytes than
    requested before the end, so reads are repeated until `size` bytes
    arrive or the stream returns b"".

    Raises:
        MacPaintError: If a non-blocking stream has no data available
    """
    chunks = bytearray()
    while len(chunks) < size:
        chunk = stream.read(size - len(chunks))
        if chunk is None:
            raise MacPaintError("Stream has no data available")
        if not chunk:
            break
        chunks += chunk
    return bytes(chunks)


def read_exact(stream: BinaryIO, size: int) -> bytes:
    """
    Read exactly `size` bytes from a binary stream.

    Raises:
        UnexpectedEndOfInputError: If the stream ends first
    """
    data = read_up_to(stream, size)
    if len(data) < size:
        raise UnexpectedEndOfInputError(
            f"Unexpected end of input: got {len(data)} of {size} bytes"
        )
    return data


def parse_macbinary_header(data: bytes) -> MacBinaryHeader:
    """
    Parse a raw 128-byte MacBinary header.

    The version byte is checked first, then the file name length, then the
    file type. All remaining fields are informational and pass through
    unvalidated.

    Args:
        data: 128 bytes of raw header data

    Returns:
        MacBinaryHeader with all fields extracted

    Raises:
        InvalidMacPaintError: If the header is not a MacPaint MacBinary header
    """
    if len(data) != HEADER_SIZE:
        raise InvalidMacPaintError(
            f"header must be {HEADER_SIZE} bytes, got {len(data)}"
        )
    if data[0] != 0:
        raise InvalidMacPaintError("expected version 0")

    name_length = data[1]
    if name_length > MAX_FILE_NAME_LENGTH:
        raise InvalidMacPaintError("invalid filename length")

    fields = {
        name: struct.unpack_from(">" + fmt, data, offset)[0]
        for name, offset, fmt in HEADER_FIELDS
    }
    if fields["file_type"] != FILE_TYPE:
        raise InvalidMacPaintError("invalid file type")

    fields["protected"] = fields["protected"] == 1
    return MacBinaryHeader(file_name=data[2 : 2 + name_length], **fields)


def read_macpaint_header(
    stream: BinaryIO,
) -> tuple[HeaderMode, MacBinaryHeader | None]:
    """
    Detect and read the optional MacBinary header.

    On return the stream is positioned right before the data marker of a
    MacBinary file, or right after the data marker of a header-less file
    (the 4 bytes used for detection are the marker itself).

    Args:
        stream: Readable binary stream at the start of the file

    Returns:
        Tuple of (mode, header), header is None for header-less files

    Raises:
        EndOfInputError: If the stream is empty
        UnexpectedEndOfInputError: If the stream ends inside the header
        InvalidMacPaintError: If the header is invalid
    """
    prefix = read_up_to(stream, 4)
    if not prefix:
        raise EndOfInputError("End of input: no MacPaint data")
    if len(prefix) < 4:
        raise UnexpectedEndOfInputError(
            f"Unexpected end of input: got {len(prefix)} of 4 bytes"
        )

    if prefix == DATA_MARKER:
        logger.debug("No MacBinary header, data marker found")
        return HeaderMode.HEADERLESS, None

    header = parse_macbinary_header(prefix + read_exact(stream, HEADER_SIZE - 4))
    logger.debug("MacBinary header found for %r", header.file_name)
    return HeaderMode.MACBINARY, header
