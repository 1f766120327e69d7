from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence, Union
from .codec import GapPolicy, InvalidSample, code_table, pack_scanline
from .image_proc import (
    RESUNIT_INCH,
    Raster,
    create_gradient_tiff,
    encode_packed_tiff,
    read_raster,
    write_packed_tiff,
)
from .schemas import Thresholds

logger = logging.getLogger(__name__)


@dataclass
class PackedImage:
    width: int
    height: int
    x_resolution: int
    y_resolution: int
    resolution_unit: int = RESUNIT_INCH
    rows: list[bytes] = field(default_factory=list)

    def raw_bytes(self) -> bytes:
        return b"".join(self.rows)

    def tiff_bytes(self) -> bytes:
        return encode_packed_tiff(
            self.width,
            self.height,
            self.rows,
            self.x_resolution,
            self.y_resolution,
            self.resolution_unit,
        )


def pack_rows(
    rows: Sequence[bytes],
    thresholds: Thresholds,
    gap: GapPolicy = GapPolicy.ERROR,
    workers: int = 1,
) -> list[bytes]:
    """Pack every scanline; result order always matches ``rows``.

    Rows are independent, so with ``workers > 1`` they are spread over a
    thread pool. The first unclassifiable sample aborts the run.
    """
    table = code_table(thresholds, gap)

    def pack_row(index: int) -> bytes:
        try:
            return pack_scanline(rows[index], thresholds, gap, table)
        except InvalidSample as exc:
            raise exc.at_row(index) from None

    if workers <= 1 or len(rows) <= 1:
        return [pack_row(i) for i in range(len(rows))]
    with ThreadPoolExecutor(max_workers=workers) as ex:
        # map re-raises the first failure in row order; pending rows are dropped
        try:
            return list(ex.map(pack_row, range(len(rows))))
        except InvalidSample:
            ex.shutdown(wait=False, cancel_futures=True)
            raise


def convert_raster(
    raster: Raster,
    thresholds: Thresholds,
    gap: GapPolicy = GapPolicy.ERROR,
    workers: int = 1,
) -> PackedImage:
    rows = pack_rows(raster.rows, thresholds, gap, workers)
    return PackedImage(
        width=raster.width,
        height=raster.height,
        x_resolution=raster.x_resolution,
        y_resolution=raster.y_resolution,
        resolution_unit=raster.resolution_unit,
        rows=rows,
    )


def ensure_input(
    path: Union[str, Path],
    x_res: int,
    y_res: int,
    width: int = 1000,
    height: int = 1000,
) -> bool:
    """Generate the gradient test image at ``path`` if nothing is there.

    Returns True when an image was generated.
    """
    path = Path(path)
    if path.exists():
        return False
    logger.info("input %s not found, generating gradient test image", path)
    create_gradient_tiff(path, width, height, x_res, y_res)
    return True


def convert_file(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    thresholds: Thresholds,
    gap: GapPolicy = GapPolicy.ERROR,
    workers: int = 1,
) -> PackedImage:
    raster = read_raster(Path(input_path))
    logger.info(
        "converting %s (%dx%d) with thresholds %s",
        input_path,
        raster.width,
        raster.height,
        thresholds.as_tuple(),
    )
    packed = convert_raster(raster, thresholds, gap, workers)
    with open(output_path, "wb") as fp:
        write_packed_tiff(
            fp,
            packed.width,
            packed.height,
            packed.rows,
            packed.x_resolution,
            packed.y_resolution,
            packed.resolution_unit,
        )
    logger.info("wrote %s", output_path)
    return packed
