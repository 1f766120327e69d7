from __future__ import annotations
import asyncio
from typing import Optional
from fastapi import APIRouter, HTTPException, Query, Request, Response
from ..codec import GapPolicy, InvalidSample
from ..config import settings
from ..convert import convert_raster
from ..image_proc import Raster, UnsupportedImage, read_raster
from ..schemas import ImageInfoOut, Thresholds

router = APIRouter(tags=["convert"])

MEDIA_TYPES = {"tiff": "image/tiff", "raw": "application/octet-stream"}


def _too_large() -> HTTPException:
    return HTTPException(status_code=413, detail="image too large")


async def read_upload(request: Request) -> Raster:
    limit = settings.max_upload_bytes
    declared = request.headers.get("content-length")
    if declared is not None:
        try:
            if int(declared) > limit:
                raise _too_large()
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid content-length")
    # Chunked uploads carry no length, so stop reading once past the limit
    body = bytearray()
    async for chunk in request.stream():
        body += chunk
        if len(body) > limit:
            raise _too_large()
    try:
        return await asyncio.to_thread(read_raster, bytes(body))
    except UnsupportedImage as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def ranged_response(
    payload: bytes, media_type: str, range_header: Optional[str]
) -> Response:
    # Implement Range support (bytes= start-end)
    total_size = len(payload)
    start = 0
    end = total_size - 1
    status_code = 200
    headers = {
        "Accept-Ranges": "bytes",
        "Content-Length": str(total_size),
    }
    if range_header and range_header.startswith("bytes="):
        try:
            range_spec = range_header.split("=", 1)[1]
            s, e = range_spec.split("-")
            start = int(s) if s else 0
            end = int(e) if e else total_size - 1
            if start < 0 or end < start or end >= total_size:
                raise ValueError("bad range")
        except ValueError:
            raise HTTPException(status_code=416, detail="invalid range")
        status_code = 206
        headers["Content-Range"] = f"bytes {start}-{end}/{total_size}"
        headers["Content-Length"] = str(end - start + 1)

    chunk = memoryview(payload)[start : end + 1]
    return Response(
        content=chunk.tobytes(),
        media_type=media_type,
        status_code=status_code,
        headers=headers,
    )


@router.post("/convert")
async def convert_image(
    request: Request,
    t1: int = Query(..., ge=0, le=255),
    t2: int = Query(..., ge=0, le=255),
    t3: int = Query(..., ge=0, le=255),
    gap: GapPolicy = Query(GapPolicy(settings.gap_policy)),
    format: str = Query("tiff", pattern="^(tiff|raw)$"),
    strict_order: bool = Query(settings.strict_threshold_order),
):
    thresholds = Thresholds.of(t1, t2, t3)
    if strict_order and not thresholds.is_ordered:
        raise HTTPException(status_code=422, detail="thresholds not in ascending order")
    raster = await read_upload(request)
    try:
        packed = await asyncio.to_thread(
            convert_raster, raster, thresholds, gap, settings.convert_workers
        )
    except InvalidSample as exc:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "invalid sample",
                "sample": exc.sample,
                "row": exc.row,
                "column": exc.position,
            },
        )

    if format == "tiff":
        payload = await asyncio.to_thread(packed.tiff_bytes)
    else:
        payload = packed.raw_bytes()
    return ranged_response(
        payload, MEDIA_TYPES[format], request.headers.get("range")
    )


@router.post("/inspect", response_model=ImageInfoOut)
async def inspect_image(request: Request):
    raster = await read_upload(request)
    return ImageInfoOut(
        width=raster.width,
        height=raster.height,
        x_resolution=raster.x_resolution,
        y_resolution=raster.y_resolution,
        resolution_unit=raster.resolution_unit,
        scanline_size=raster.scanline_size,
        packed_scanline_size=raster.packed_scanline_size,
    )
