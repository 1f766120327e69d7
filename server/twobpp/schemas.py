from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field


class Thresholds(BaseModel):
    """The three ascending band boundaries of a conversion run.

    Each value must lie in [0, 255]. Ordering is reported by ``is_ordered``
    but not enforced here; callers that want strict ordering check it.
    """

    model_config = ConfigDict(frozen=True)

    t1: int = Field(ge=0, le=255)
    t2: int = Field(ge=0, le=255)
    t3: int = Field(ge=0, le=255)

    @classmethod
    def of(cls, t1: int, t2: int, t3: int) -> "Thresholds":
        return cls(t1=t1, t2=t2, t3=t3)

    @property
    def is_ordered(self) -> bool:
        return self.t1 <= self.t2 <= self.t3

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.t1, self.t2, self.t3)


class ImageInfoOut(BaseModel):
    width: int
    height: int
    x_resolution: int
    y_resolution: int
    resolution_unit: int
    scanline_size: int
    packed_scanline_size: int
