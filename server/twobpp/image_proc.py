from __future__ import annotations
import logging
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Iterable, Union
from PIL import Image, TiffImagePlugin, TiffTags, UnidentifiedImageError
from .codec import packed_length

logger = logging.getLogger(__name__)

Source = Union[str, Path, bytes]

IMAGE_WIDTH = 256
IMAGE_LENGTH = 257
BITS_PER_SAMPLE = 258
COMPRESSION = 259
PHOTOMETRIC = 262
FILL_ORDER = 266
STRIP_OFFSETS = 273
SAMPLES_PER_PIXEL = 277
ROWS_PER_STRIP = 278
STRIP_BYTE_COUNTS = 279
X_RESOLUTION = 282
Y_RESOLUTION = 283
PLANAR_CONFIG = 284
RESOLUTION_UNIT = 296

COMPRESSION_NONE = 1
PHOTOMETRIC_MINISBLACK = 1
FILL_ORDER_MSB2LSB = 1
PLANAR_CONTIG = 1
RESUNIT_INCH = 2

DEFAULT_RESOLUTION = 72


class UnsupportedImage(ValueError):
    pass


@dataclass
class Raster:
    """An 8-bit, one-sample-per-pixel image split into scanlines."""

    width: int
    height: int
    x_resolution: int = DEFAULT_RESOLUTION
    y_resolution: int = DEFAULT_RESOLUTION
    resolution_unit: int = RESUNIT_INCH
    rows: list[bytes] = field(default_factory=list)

    @property
    def scanline_size(self) -> int:
        return self.width

    @property
    def packed_scanline_size(self) -> int:
        return packed_length(self.width)


def _resolution(img: Image.Image, tag: int) -> int:
    value = img.tag_v2.get(tag)
    if value is None:
        return DEFAULT_RESOLUTION
    # Rational resolutions are truncated to whole units
    try:
        return int(float(value))
    except (TypeError, ValueError, ZeroDivisionError):
        return DEFAULT_RESOLUTION


def read_raster(source: Source) -> Raster:
    if isinstance(source, (bytes, bytearray)):
        source = BytesIO(source)
    try:
        img = Image.open(source)
    except UnidentifiedImageError as exc:
        raise UnsupportedImage(f"not a readable image: {exc}") from exc
    with img:
        if img.format != "TIFF":
            raise UnsupportedImage(f"expected a TIFF image, got {img.format}")
        if img.mode != "L":
            raise UnsupportedImage(
                f"expected 8 bits per sample and 1 sample per pixel, got mode {img.mode}"
            )
        width, height = img.size
        try:
            pixels = img.tobytes()
        except OSError as exc:
            raise UnsupportedImage(f"cannot decode image data: {exc}") from exc
        raster = Raster(
            width=width,
            height=height,
            x_resolution=_resolution(img, X_RESOLUTION),
            y_resolution=_resolution(img, Y_RESOLUTION),
            resolution_unit=int(img.tag_v2.get(RESOLUTION_UNIT, RESUNIT_INCH)),
            rows=[pixels[y * width : (y + 1) * width] for y in range(height)],
        )
    logger.debug(
        "read %dx%d raster at %dx%d", width, height, raster.x_resolution, raster.y_resolution
    )
    return raster


def _write_single_strip(
    fp: BinaryIO,
    width: int,
    height: int,
    bits_per_sample: int,
    data: bytes,
    x_res: int,
    y_res: int,
    resolution_unit: int,
) -> None:
    # Pillow has no 2-bit save mode, so build the directory ourselves and let
    # Pillow serialize it. The strip follows the directory; StripOffsets is
    # written relative and rebased by Pillow to the end of the IFD.
    ifd = TiffImagePlugin.ImageFileDirectory_v2()
    entries = (
        (IMAGE_WIDTH, TiffTags.LONG, width),
        (IMAGE_LENGTH, TiffTags.LONG, height),
        (BITS_PER_SAMPLE, TiffTags.SHORT, bits_per_sample),
        (COMPRESSION, TiffTags.SHORT, COMPRESSION_NONE),
        (PHOTOMETRIC, TiffTags.SHORT, PHOTOMETRIC_MINISBLACK),
        (FILL_ORDER, TiffTags.SHORT, FILL_ORDER_MSB2LSB),
        (STRIP_OFFSETS, TiffTags.LONG, 0),
        (SAMPLES_PER_PIXEL, TiffTags.SHORT, 1),
        (ROWS_PER_STRIP, TiffTags.LONG, height),
        (STRIP_BYTE_COUNTS, TiffTags.LONG, len(data)),
        (X_RESOLUTION, TiffTags.RATIONAL, float(x_res)),
        (Y_RESOLUTION, TiffTags.RATIONAL, float(y_res)),
        (PLANAR_CONFIG, TiffTags.SHORT, PLANAR_CONTIG),
        (RESOLUTION_UNIT, TiffTags.SHORT, resolution_unit),
    )
    for tag, tag_type, value in entries:
        ifd.tagtype[tag] = tag_type
        ifd[tag] = value
    ifd.save(fp)
    fp.write(data)


def write_packed_tiff(
    fp: BinaryIO,
    width: int,
    height: int,
    rows: Iterable[bytes],
    x_res: int = DEFAULT_RESOLUTION,
    y_res: int = DEFAULT_RESOLUTION,
    resolution_unit: int = RESUNIT_INCH,
) -> None:
    """Write packed 2bpp scanlines as a single-strip, uncompressed TIFF.

    ``fp`` must be positioned at the start of an empty stream.
    """
    row_size = packed_length(width)
    rows = list(rows)
    if len(rows) != height:
        raise ValueError(f"expected {height} rows, got {len(rows)}")
    for y, row in enumerate(rows):
        if len(row) != row_size:
            raise ValueError(f"row {y} is {len(row)} bytes, expected {row_size}")
    _write_single_strip(
        fp, width, height, 2, b"".join(rows), x_res, y_res, resolution_unit
    )


def encode_packed_tiff(
    width: int,
    height: int,
    rows: Iterable[bytes],
    x_res: int = DEFAULT_RESOLUTION,
    y_res: int = DEFAULT_RESOLUTION,
    resolution_unit: int = RESUNIT_INCH,
) -> bytes:
    buf = BytesIO()
    write_packed_tiff(buf, width, height, rows, x_res, y_res, resolution_unit)
    return buf.getvalue()


def gradient_row(width: int) -> bytes:
    return bytes(255 * x // width for x in range(width))


def create_gradient_tiff(
    target: Union[str, Path, BinaryIO],
    width: int = 1000,
    height: int = 1000,
    x_res: int = DEFAULT_RESOLUTION,
    y_res: int = DEFAULT_RESOLUTION,
) -> None:
    """Write an 8-bit horizontal gradient, identical on every row."""
    data = gradient_row(width) * height
    if isinstance(target, (str, Path)):
        with open(target, "wb") as fp:
            _write_single_strip(fp, width, height, 8, data, x_res, y_res, RESUNIT_INCH)
    else:
        _write_single_strip(target, width, height, 8, data, x_res, y_res, RESUNIT_INCH)
    logger.info("created %dx%d gradient test image", width, height)
