"""
Pytest tests for MacPaint header extraction module
"""

import io
import struct
from datetime import datetime

import pytest

from macpaint_header import (
    DATA_MARKER,
    HEADER_FIELDS,
    HEADER_SIZE,
    EndOfInputError,
    FileFlag,
    HeaderMode,
    InvalidMacPaintError,
    MacBinaryHeader,
    MacPaintError,
    UnexpectedEndOfInputError,
    parse_macbinary_header,
    read_exact,
    read_macpaint_header,
    read_up_to,
)


def create_test_macbinary_header(
    version=0,
    file_name=b"HELLO",
    name_length=None,
    file_type=b"PNTG",
    file_creator=b"MPNT",
    file_flags=0,
    file_vert_pos=0,
    file_horz_pos=0,
    window_id=0,
    protected=0,
    size_of_data_fork=0,
    size_of_resource_fork=0,
    creation_stamp=0,
    modification_stamp=0,
    get_info_length=0,
    finder_flags=0,
    unpacked_length=0,
    second_head_length=0,
    upload_version=129,
    read_version=129,
    crc_value=0,
):
    """Helper function to create a MacBinary header for testing"""
    header = bytearray(HEADER_SIZE)
    header[0] = version
    header[1] = len(file_name) if name_length is None else name_length
    header[2 : 2 + len(file_name)] = file_name
    header[65:69] = file_type
    header[69:73] = file_creator
    header[73] = file_flags
    struct.pack_into(">HHH", header, 75, file_vert_pos, file_horz_pos, window_id)
    header[81] = protected
    struct.pack_into(
        ">IIIIHH",
        header,
        83,
        size_of_data_fork,
        size_of_resource_fork,
        creation_stamp,
        modification_stamp,
        get_info_length,
        finder_flags,
    )
    struct.pack_into(
        ">IHBBH",
        header,
        117,
        unpacked_length,
        second_head_length,
        upload_version,
        read_version,
        crc_value,
    )
    return bytes(header)


class OneByteStream:
    """Stream returning a single byte per read call"""

    def __init__(self, data):
        self.data = io.BytesIO(data)

    def read(self, size):
        return self.data.read(min(size, 1))


class TestHeaderLayout:
    """Test the declarative header field table"""

    def test_fields_fit_in_header(self):
        """Every field must lie inside the 128-byte header"""
        for name, offset, fmt in HEADER_FIELDS:
            end = offset + struct.calcsize(">" + fmt)
            assert end <= HEADER_SIZE, name

    def test_fields_do_not_overlap(self):
        """Field byte ranges must not overlap each other"""
        ranges = sorted(
            (offset, offset + struct.calcsize(">" + fmt))
            for _, offset, fmt in HEADER_FIELDS
        )
        for (_, end), (start, _) in zip(ranges, ranges[1:]):
            assert end <= start

    def test_fields_match_dataclass(self):
        """Table names plus the file name cover all header attributes"""
        names = {name for name, _, _ in HEADER_FIELDS} | {"file_name"}
        assert names == set(MacBinaryHeader.__dataclass_fields__)


class TestMacBinaryHeaderParsing:
    """Test MacBinary header parsing functionality"""

    def test_valid_header(self):
        """Test parsing a header with all fields populated"""
        data = create_test_macbinary_header(
            file_name=b"HELLO",
            file_creator=b"MPNT",
            file_flags=0x81,
            file_vert_pos=10,
            file_horz_pos=20,
            window_id=0xFFFF,
            protected=1,
            size_of_data_fork=51_712,
            size_of_resource_fork=0x01020304,
            creation_stamp=0xA0B0C0D0,
            modification_stamp=0xA0B0C0D1,
            get_info_length=7,
            finder_flags=0x0100,
            unpacked_length=123_456,
            second_head_length=0,
            upload_version=130,
            read_version=129,
            crc_value=0xBEEF,
        )

        header = parse_macbinary_header(data)

        assert header.version == 0
        assert header.file_name == b"HELLO"
        assert header.file_type == b"PNTG"
        assert header.file_creator == b"MPNT"
        assert header.file_flags == 0x81
        assert header.file_vert_pos == 10
        assert header.file_horz_pos == 20
        assert header.window_id == 0xFFFF
        assert header.protected is True
        assert header.size_of_data_fork == 51_712
        assert header.size_of_resource_fork == 0x01020304
        assert header.creation_stamp == 0xA0B0C0D0
        assert header.modification_stamp == 0xA0B0C0D1
        assert header.get_info_length == 7
        assert header.finder_flags == 0x0100
        assert header.unpacked_length == 123_456
        assert header.second_head_length == 0
        assert header.upload_version == 130
        assert header.read_version == 129
        assert header.crc_value == 0xBEEF

    @pytest.mark.parametrize("version", [1, 0x0A, 0xFF])
    def test_invalid_version(self, version):
        """Test that a non-zero version byte is rejected"""
        data = create_test_macbinary_header(version=version)

        with pytest.raises(InvalidMacPaintError, match="expected version 0"):
            parse_macbinary_header(data)

    def test_version_checked_before_other_fields(self):
        """Test that the version error wins over other problems"""
        data = create_test_macbinary_header(
            version=1, name_length=200, file_type=b"TEXT"
        )

        with pytest.raises(InvalidMacPaintError, match="expected version 0"):
            parse_macbinary_header(data)

    @pytest.mark.parametrize("name_length", [64, 100, 255])
    def test_invalid_filename_length(self, name_length):
        """Test that filename lengths over 63 are rejected"""
        data = create_test_macbinary_header(name_length=name_length)

        with pytest.raises(
            InvalidMacPaintError, match="invalid filename length"
        ):
            parse_macbinary_header(data)

    def test_maximum_filename_length(self):
        """Test that a 63 byte file name is accepted"""
        data = create_test_macbinary_header(file_name=b"A" * 63)

        header = parse_macbinary_header(data)

        assert header.file_name == b"A" * 63

    @pytest.mark.parametrize("file_type", [b"TEXT", b"PICT", b"pntg", b"\0\0\0\0"])
    def test_invalid_file_type(self, file_type):
        """Test that a wrong type signature is rejected"""
        data = create_test_macbinary_header(file_type=file_type)

        with pytest.raises(InvalidMacPaintError, match="invalid file type"):
            parse_macbinary_header(data)

    def test_error_message_and_reason(self):
        """Test format error message layout"""
        data = create_test_macbinary_header(file_type=b"TEXT")

        with pytest.raises(InvalidMacPaintError) as excinfo:
            parse_macbinary_header(data)

        assert excinfo.value.reason == "invalid file type"
        assert str(excinfo.value) == "macpaint: invalid format: invalid file type"
        assert isinstance(excinfo.value, MacPaintError)

    @pytest.mark.parametrize("protected,expected", [(0, False), (1, True), (2, False)])
    def test_protected_flag(self, protected, expected):
        """Only a protected byte of exactly 1 means protected"""
        data = create_test_macbinary_header(protected=protected)

        assert parse_macbinary_header(data).protected is expected

    def test_wrong_buffer_size(self):
        with pytest.raises(InvalidMacPaintError, match="header must be 128"):
            parse_macbinary_header(b"\x00" * 100)


class TestReadMacPaintHeader:
    """Test header detection on streams"""

    def test_headerless_stream(self):
        """Test that a leading data marker means no header"""
        stream = io.BytesIO(DATA_MARKER + b"\xAA" * 10)

        mode, header = read_macpaint_header(stream)

        assert mode is HeaderMode.HEADERLESS
        assert header is None
        assert stream.tell() == 4

    def test_header_stream(self):
        """Test that a header is consumed and parsed"""
        stream = io.BytesIO(
            create_test_macbinary_header() + DATA_MARKER + b"\xAA" * 10
        )

        mode, header = read_macpaint_header(stream)

        assert mode is HeaderMode.MACBINARY
        assert header.file_name == b"HELLO"
        assert stream.tell() == HEADER_SIZE

    def test_empty_stream(self):
        """Test that an empty stream is a clean end of input"""
        with pytest.raises(EndOfInputError):
            read_macpaint_header(io.BytesIO(b""))

    @pytest.mark.parametrize("size", [1, 2, 3, 4, 64, 127])
    def test_truncated_header(self, size):
        """Test that a partial header is an unexpected end of input"""
        data = create_test_macbinary_header()[:size]

        with pytest.raises(UnexpectedEndOfInputError):
            read_macpaint_header(io.BytesIO(data))

    def test_truncated_is_not_clean_end(self):
        """The two end-of-input conditions are distinct"""
        assert not issubclass(UnexpectedEndOfInputError, EndOfInputError)
        assert not issubclass(EndOfInputError, UnexpectedEndOfInputError)

    def test_read_exact(self):
        stream = io.BytesIO(b"abcdef")

        assert read_exact(stream, 4) == b"abcd"
        with pytest.raises(UnexpectedEndOfInputError, match="got 2 of 4"):
            read_exact(stream, 4)

    def test_read_up_to_joins_short_reads(self):
        """Short reads are repeated until the requested size arrives"""
        raw = OneByteStream(b"abcdef")

        assert read_up_to(raw, 4) == b"abcd"
        assert read_up_to(raw, 4) == b"ef"
        assert read_up_to(raw, 4) == b""

    def test_read_up_to_stream_without_data(self):
        class WouldBlock:
            def read(self, size):
                return None

        with pytest.raises(MacPaintError, match="no data available"):
            read_up_to(WouldBlock(), 4)

    def test_header_read_one_byte_at_a_time(self):
        raw = OneByteStream(create_test_macbinary_header() + DATA_MARKER)

        mode, header = read_macpaint_header(raw)

        assert mode is HeaderMode.MACBINARY
        assert header.file_name == b"HELLO"
        assert raw.read(4) == b"\x00"


class TestMacBinaryHeaderObject:
    """Test MacBinaryHeader object methods"""

    def test_flags(self):
        header = parse_macbinary_header(
            create_test_macbinary_header(file_flags=0x81)
        )

        assert header.flags == FileFlag.INITED | FileFlag.LOCKED
        assert header.get_flags_string() == "INITED, LOCKED"

    def test_no_flags(self):
        header = parse_macbinary_header(create_test_macbinary_header())

        assert header.get_flags_string() == "None"

    def test_timestamps(self):
        """Test conversion from the 1904 Macintosh epoch"""
        header = parse_macbinary_header(
            create_test_macbinary_header(
                creation_stamp=0, modification_stamp=86_400 * 366
            )
        )

        assert header.created == datetime(1904, 1, 1)
        assert header.modified == datetime(1905, 1, 1)

    def test_mac_roman_file_name(self):
        header = parse_macbinary_header(
            create_test_macbinary_header(file_name=b"Caf\x8e")
        )

        assert header.file_name_text == "Café"

    def test_header_is_immutable(self):
        header = parse_macbinary_header(create_test_macbinary_header())

        with pytest.raises(AttributeError):
            header.version = 1

    def test_string_representation(self):
        header = parse_macbinary_header(
            create_test_macbinary_header(protected=1, size_of_data_fork=512)
        )

        text = str(header)

        assert "MacBinary Header Information" in text
        assert "HELLO" in text
        assert "PNTG" in text
        assert "MPNT" in text
        assert "Protected:        Yes" in text
        assert "512 bytes" in text

    def test_parse_from_file(self, tmp_path):
        mac_file = tmp_path / "header.mac"
        mac_file.write_bytes(create_test_macbinary_header() + DATA_MARKER)

        header = MacBinaryHeader.parse_macpaint_header(str(mac_file))

        assert header.file_name == b"HELLO"

    def test_parse_from_headerless_file(self, tmp_path):
        mac_file = tmp_path / "noheader.mac"
        mac_file.write_bytes(DATA_MARKER + b"\x00" * 508)

        assert MacBinaryHeader.parse_macpaint_header(str(mac_file)) is None

    def test_nonexistent_file(self):
        """Test that nonexistent files raise appropriate error"""
        with pytest.raises(MacPaintError, match="Failed to read file"):
            MacBinaryHeader.parse_macpaint_header("/nonexistent/path/file.mac")
