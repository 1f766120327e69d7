"""Quantize 8-bit samples to 2-bit codes and pack four codes per byte.

Every function here is pure: the output depends only on the arguments, so
scanlines can be packed in any order or concurrently.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional, Sequence
from .schemas import Thresholds

SAMPLES_PER_BYTE = 4
BITS_PER_CODE = 2
MAX_SAMPLE = 255

# marks a table entry the classification rules do not cover
UNCLASSIFIED = -1


class GapPolicy(str, Enum):
    """What to do with a sample that matches no band (``0 < s <= t1``)."""

    ERROR = "error"
    ZERO = "zero"


class InvalidSample(ValueError):
    def __init__(
        self,
        sample: int,
        thresholds: Thresholds,
        position: Optional[int] = None,
        row: Optional[int] = None,
    ):
        self.sample = sample
        self.thresholds = thresholds
        self.position = position
        self.row = row
        super().__init__(self._message())

    def _message(self) -> str:
        t1, t2, t3 = self.thresholds.as_tuple()
        where = ""
        if self.row is not None:
            where += f" row {self.row}"
        if self.position is not None:
            where += f" column {self.position}"
        return (
            f"sample {self.sample}{where} matches no band "
            f"for thresholds ({t1}, {t2}, {t3})"
        )

    def at_row(self, row: int) -> "InvalidSample":
        return InvalidSample(self.sample, self.thresholds, self.position, row)


def _check_range(sample: int) -> None:
    if not 0 <= sample <= MAX_SAMPLE:
        raise ValueError(f"sample out of range: {sample}")


def classify(sample: int, thresholds: Thresholds) -> int:
    # First match wins; UNCLASSIFIED when no rule applies.
    t1, t2, t3 = thresholds.as_tuple()
    if sample == 0:
        return 0
    if t1 < sample <= t2:
        return 1
    if t2 < sample <= t3:
        return 2
    if t3 < sample <= MAX_SAMPLE:
        return 3
    return UNCLASSIFIED


def quantize(
    sample: int, thresholds: Thresholds, gap: GapPolicy = GapPolicy.ERROR
) -> int:
    """Return the 2-bit code of ``sample``.

    Raises InvalidSample for an unclassifiable sample unless ``gap`` is
    ``GapPolicy.ZERO``, in which case the code is 0.
    """
    _check_range(sample)
    code = classify(sample, thresholds)
    if code == UNCLASSIFIED:
        if GapPolicy(gap) is GapPolicy.ZERO:
            return 0
        raise InvalidSample(sample, thresholds)
    return code


def code_table(
    thresholds: Thresholds, gap: GapPolicy = GapPolicy.ERROR
) -> tuple[int, ...]:
    """Quantizer output for every possible sample value.

    Under ``GapPolicy.ERROR`` unclassifiable entries stay UNCLASSIFIED so the
    packer can report the offending sample and its position.
    """
    zero_gap = GapPolicy(gap) is GapPolicy.ZERO
    table = []
    for sample in range(MAX_SAMPLE + 1):
        code = classify(sample, thresholds)
        if code == UNCLASSIFIED and zero_gap:
            code = 0
        table.append(code)
    return tuple(table)


def combine(c1: int, c2: int, c3: int, c4: int) -> int:
    return (c1 << 6) | (c2 << 4) | (c3 << 2) | c4


def packed_length(n: int) -> int:
    return (n + SAMPLES_PER_BYTE - 1) // SAMPLES_PER_BYTE


def pack_scanline(
    scanline: Sequence[int],
    thresholds: Thresholds,
    gap: GapPolicy = GapPolicy.ERROR,
    table: Optional[Sequence[int]] = None,
) -> bytes:
    # Groups of four samples, first sample in the high bits; a short last
    # group is padded with code 0.
    if table is None:
        table = code_table(thresholds, gap)
    buf = bytearray()
    for i in range(0, len(scanline), SAMPLES_PER_BYTE):
        codes = [0, 0, 0, 0]
        for j, sample in enumerate(scanline[i : i + SAMPLES_PER_BYTE]):
            _check_range(sample)
            code = table[sample]
            if code == UNCLASSIFIED:
                raise InvalidSample(sample, thresholds, position=i + j)
            codes[j] = code
        buf.append(combine(*codes))
    return bytes(buf)
