import random
import pytest

from twobpp.codec import GapPolicy, InvalidSample, pack_scanline
from twobpp.convert import convert_file, convert_raster, ensure_input, pack_rows
from twobpp.image_proc import gradient_row, read_raster
from twobpp.schemas import Thresholds

T = Thresholds.of(50, 100, 150)


def _random_rows(count: int, width: int) -> list[bytes]:
    rng = random.Random(1234)
    choices = [0] + list(range(51, 256))
    return [bytes(rng.choice(choices) for _ in range(width)) for _ in range(count)]


def test_parallel_matches_sequential():
    rows = _random_rows(64, 37)
    expected = [pack_scanline(r, T) for r in rows]
    assert pack_rows(rows, T, workers=1) == expected
    assert pack_rows(rows, T, workers=8) == expected


def test_row_order_does_not_matter():
    rows = _random_rows(16, 9)
    forward = pack_rows(rows, T, workers=4)
    backward = pack_rows(rows[::-1], T, workers=4)
    assert backward[::-1] == forward


def test_pack_rows_empty():
    assert pack_rows([], T, workers=4) == []


@pytest.mark.parametrize("workers", [1, 4])
def test_invalid_sample_reports_row(workers):
    rows = [bytes([200] * 8)] * 5 + [bytes([200, 200, 7])] + [bytes([200])] * 5
    with pytest.raises(InvalidSample) as info:
        pack_rows(rows, T, workers=workers)
    assert info.value.row == 5
    assert info.value.position == 2
    assert info.value.sample == 7


def test_zero_gap_policy_never_fails():
    rows = [bytes(range(256))] * 3
    out = pack_rows(rows, T, GapPolicy.ZERO, workers=2)
    assert len(out) == 3 and all(len(r) == 64 for r in out)


def test_convert_raster_keeps_metadata(sample_tiff):
    raster = read_raster(sample_tiff)
    packed = convert_raster(raster, T, workers=2)
    assert (packed.width, packed.height) == (5, 3)
    assert (packed.x_resolution, packed.y_resolution) == (300, 200)
    assert packed.rows == [bytes([0x1B, 0xC0]), bytes([0xE4, 0x40]), bytes([0xFF, 0xC0])]
    assert packed.raw_bytes() == bytes([0x1B, 0xC0, 0xE4, 0x40, 0xFF, 0xC0])


def test_convert_file(tmp_path, sample_tiff):
    src = tmp_path / "in.tif"
    dst = tmp_path / "out.tif"
    src.write_bytes(sample_tiff)
    packed = convert_file(src, dst, T, workers=2)
    assert dst.read_bytes() == packed.tiff_bytes()


def test_ensure_input_generates_gradient(tmp_path):
    path = tmp_path / "missing.tif"
    assert ensure_input(path, 300, 300, 20, 2) is True
    raster = read_raster(path)
    assert raster.rows == [gradient_row(20)] * 2
    assert ensure_input(path, 300, 300, 20, 2) is False


def test_gradient_round_trip_with_zero_thresholds(tmp_path):
    path = tmp_path / "g.tif"
    ensure_input(path, 72, 72, 8, 1)
    packed = convert_raster(read_raster(path), Thresholds.of(0, 0, 0))
    # gradient row 0,31,63,95,127,159,191,223 -> 0,3,3,3 / 3,3,3,3
    assert packed.rows == [bytes([0x3F, 0xFF])]
