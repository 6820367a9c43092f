"""
MacPaint Decoding Module

Entry points for decoding MacPaint images: full decoding, configuration
lookup without decompression, and signature matching used to route files
to this decoder.
"""

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO

import numpy as np

from macpaint_header import (
    DATA_MARKER,
    FILE_TYPE,
    HeaderMode,
    MacBinaryHeader,
    MacPaintError,
    read_macpaint_header,
)
from macpaint_rle import HEIGHT, WIDTH, read_and_decompress_macpaint_data

logger = logging.getLogger(__name__)

# 8-bit single channel grayscale, 0 = black and 255 = white
COLOR_MODEL = "L"

# Header-present files: version byte 0, type tag at offset 65.
# None marks a byte that may hold any value.
MACPAINT_SIGNATURE = (0,) + (None,) * 64 + tuple(FILE_TYPE)
MACPAINT_EXTENSIONS = (".mac", ".pntg", ".pnt")


@dataclass(frozen=True)
class MacPaintConfig:
    """Color model and dimensions of a MacPaint image"""

    width: int = WIDTH
    height: int = HEIGHT
    color_model: str = COLOR_MODEL


@dataclass
class MacPaintImage:
    """A decoded MacPaint bitmap and the metadata found with it"""

    pixels: np.ndarray  # (height, width) uint8, values 0 or 255
    mode: HeaderMode
    header: MacBinaryHeader | None = None

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def color_model(self) -> str:
        return COLOR_MODEL


def decode_macpaint(stream: BinaryIO) -> MacPaintImage:
    """
    Decode a MacPaint image from a binary stream.

    Args:
        stream: Readable binary stream at the start of the file

    Returns:
        MacPaintImage holding the full 576x720 bitmap

    Raises:
        EndOfInputError: If the stream is empty
        UnexpectedEndOfInputError: If the stream is truncated
        InvalidMacPaintError: If the header or RLE data is invalid
    """
    mode, header = read_macpaint_header(stream)
    pixels = read_and_decompress_macpaint_data(stream, mode)
    return MacPaintImage(pixels=pixels, mode=mode, header=header)


def decode_macpaint_config(stream: BinaryIO) -> MacPaintConfig:
    """
    Return the color model and dimensions of a MacPaint image without
    decoding it. MacPaint images always have the same dimensions, so the
    stream content is not inspected.

    Raises:
        MacPaintError: If the stream cannot be read
    """
    if not stream.readable():
        raise MacPaintError("Stream is not readable")
    return MacPaintConfig()


def matches_macpaint_signature(prefix: bytes) -> bool:
    """
    Check whether the leading bytes of a file look like a MacPaint image

    Matches either a header-less file starting with the data marker, or a
    MacBinary header with version 0 and the PNTG type tag at offset 65.
    """
    if prefix[: len(DATA_MARKER)] == DATA_MARKER:
        return True
    if len(prefix) < len(MACPAINT_SIGNATURE):
        return False
    return all(
        expected is None or actual == expected
        for expected, actual in zip(MACPAINT_SIGNATURE, prefix)
    )


def is_macpaint_file(file_path: str) -> bool:
    """Check a file by extension, falling back to its signature"""
    if os.path.splitext(file_path)[1].lower() in MACPAINT_EXTENSIONS:
        return True
    try:
        with open(file_path, "rb") as f:
            return matches_macpaint_signature(f.read(len(MACPAINT_SIGNATURE)))
    except OSError:
        return False


def decode_macpaint_file(file_path: str) -> MacPaintImage:
    """
    Open and decode a MacPaint file

    Args:
        file_path: Path to the MacPaint file

    Returns:
        Decoded MacPaintImage

    Raises:
        InvalidMacPaintError: If the file is not a valid MacPaint file
        MacPaintError: If file cannot be read
    """
    try:
        with open(file_path, "rb") as f:
            image = decode_macpaint(f)
    except OSError as e:
        raise MacPaintError(f"Failed to read file: {e}")

    logger.debug("Decoded %s (%s)", file_path, image.mode.value)
    return image
