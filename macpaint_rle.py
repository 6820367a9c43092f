"""
MacPaint RLE Decompression Module

This module handles decompression of MacPaint bitmap data. The bitmap is
576x720 pixels at 1 bit per pixel, packed 8 pixels per byte (most
significant bit first, 1 = black). The packed bytes are compressed with
a PackBits-style run-length scheme where the high bit of a control byte
selects between a repeated byte and a run of literal bytes.

Reference: Apple Technical Note "MacPaint Document Format"
"""

import logging
from typing import BinaryIO

import numpy as np

from macpaint_header import (
    DATA_MARKER,
    HeaderMode,
    InvalidMacPaintError,
    UnsupportedMacPaintError,
    read_exact,
)

logger = logging.getLogger(__name__)

WIDTH = 576
HEIGHT = 720
PATTERN_TABLE_SIZE = 304
PATTERN_PADDING_SIZE = 204

BLACK = 0
WHITE = 255


def unpack_bits(packed: bytes) -> np.ndarray:
    """
    Expand packed 1-bit samples into one byte per pixel.

    Bits are taken most significant first; a set bit is black (0) and a
    clear bit is white (255).
    """
    bits = np.unpackbits(np.frombuffer(packed, dtype=np.uint8))
    return np.where(bits == 1, BLACK, WHITE).astype(np.uint8)


def skip_pattern_table(stream: BinaryIO) -> None:
    """
    Discard the pattern table and the padding that follows it.

    Raises:
        UnexpectedEndOfInputError: If the stream ends inside the table
    """
    read_exact(stream, PATTERN_TABLE_SIZE + PATTERN_PADDING_SIZE)


def decompress_macpaint_rle(
    stream: BinaryIO, width: int = WIDTH, height: int = HEIGHT
) -> np.ndarray:
    """
    Decompress MacPaint RLE-encoded bitmap data

    MacPaint RLE encoding rules (per control byte n):
    - If the high bit is set, the next byte is repeated 256 - n times
      (2 to 128 repeats)
    - Otherwise, the next n + 1 bytes are copied literally

    Every packed byte expands to 8 pixels. Decoding stops as soon as the
    bitmap is full, so trailing data in the stream is left unread.

    Args:
        stream: Binary stream positioned at the first control byte
        width: Bitmap width in pixels, a multiple of 8
        height: Bitmap height in pixels

    Returns:
        uint8 array of shape (height, width) holding 0 and 255 values

    Raises:
        InvalidMacPaintError: If a run would write past the end of the bitmap
        UnexpectedEndOfInputError: If the stream ends before the bitmap is full
    """
    total_pixels = width * height
    packed = bytearray()
    cursor = 0  # pixels written so far, always len(packed) * 8

    while cursor < total_pixels:
        n = read_exact(stream, 1)[0]

        if n & 0x80:
            # Repeat run: one packed byte, replayed
            run = read_exact(stream, 1) * (256 - n)
        else:
            # Literal run: n + 1 packed bytes
            run = read_exact(stream, n + 1)

        if cursor + len(run) * 8 > total_pixels:
            raise InvalidMacPaintError("overflow decoding RLE")

        packed += run
        cursor = len(packed) * 8

    return unpack_bits(bytes(packed)).reshape((height, width))


def read_and_decompress_macpaint_data(
    stream: BinaryIO, mode: HeaderMode
) -> np.ndarray:
    """
    Read the data marker, pattern table and compressed bitmap

    The stream must be positioned where `read_macpaint_header` left it.

    Args:
        stream: Binary stream following header detection
        mode: Header mode returned by `read_macpaint_header`

    Returns:
        Decompressed bitmap as a (720, 576) uint8 array

    Raises:
        InvalidMacPaintError: If RLE data is corrupted
        UnexpectedEndOfInputError: If the stream is truncated
        UnsupportedMacPaintError: If the header mode is not handled
    """
    if mode is HeaderMode.MACBINARY:
        # Some real-world files carry a different marker here, so any
        # 4 bytes are accepted.
        marker = read_exact(stream, len(DATA_MARKER))
        if marker != DATA_MARKER:
            logger.warning("Unusual data marker %s", marker.hex())
    elif mode is not HeaderMode.HEADERLESS:
        raise UnsupportedMacPaintError(f"header mode {mode!r}")

    skip_pattern_table(stream)
    logger.debug("Skipped pattern table")

    pixels = decompress_macpaint_rle(stream)
    logger.debug("Decompressed %dx%d bitmap", WIDTH, HEIGHT)
    return pixels
