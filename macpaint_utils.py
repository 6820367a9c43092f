"""
MacPaint Utilities for PyQt6 GUI

This module provides functions to convert decoded MacPaint bitmaps to
QImage objects and export them as PNG.
"""

import numpy as np
from PyQt6.QtGui import QImage

from macpaint_decoder import MacPaintImage
from macpaint_header import MacPaintError


def macpaint_to_qimage(image: MacPaintImage) -> QImage:
    """
    Convert a decoded MacPaint bitmap to QImage.

    Args:
        image: Decoded MacPaint image

    Returns:
        QImage with Format_Grayscale8
    """
    arr = np.ascontiguousarray(image.pixels, dtype=np.uint8)
    h, w = arr.shape
    qimg = QImage(
        arr.data,  # pyright: ignore
        w,
        h,
        w,
        QImage.Format.Format_Grayscale8,
    )

    return qimg.copy()  # return deep copy to avoid referencing numpy buffer


def save_macpaint_png(image: MacPaintImage, file_path: str) -> None:
    """
    Save a decoded MacPaint bitmap as a PNG file.

    Raises:
        MacPaintError: If the PNG cannot be written
    """
    if not macpaint_to_qimage(image).save(file_path, "PNG"):
        raise MacPaintError(f"Failed to write PNG: {file_path}")
