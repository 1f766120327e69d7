import pytest
from io import BytesIO
from typing import AsyncIterator
from httpx import ASGITransport, AsyncClient
from PIL import Image

from twobpp.main import app


def make_tiff_bytes(
    rows: list[list[int]], dpi: tuple[int, int] = (300, 200), mode: str = "L"
) -> bytes:
    height = len(rows)
    width = len(rows[0]) if rows else 0
    img = Image.frombytes("L", (width, height), bytes(v for row in rows for v in row))
    if mode != "L":
        img = img.convert(mode)
    buf = BytesIO()
    img.save(buf, format="TIFF", dpi=dpi)
    return buf.getvalue()


@pytest.fixture()
def sample_tiff() -> bytes:
    # Every sample classifies cleanly with thresholds (50, 100, 150)
    return make_tiff_bytes(
        [
            [0, 60, 120, 200, 255],
            [200, 150, 100, 0, 51],
            [255, 255, 255, 255, 255],
        ]
    )


@pytest.fixture()
async def client() -> AsyncIterator[AsyncClient]:
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as ac:
        yield ac
