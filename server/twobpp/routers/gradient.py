from __future__ import annotations
from io import BytesIO
from fastapi import APIRouter, Query, Response
from ..config import settings
from ..image_proc import create_gradient_tiff

router = APIRouter(tags=["gradient"])


@router.get("/gradient")
async def gradient_image(
    x_res: int = Query(..., gt=0),
    y_res: int = Query(..., gt=0),
    width: int = Query(settings.gradient_width, gt=0, le=10000),
    height: int = Query(settings.gradient_height, gt=0, le=10000),
):
    buf = BytesIO()
    create_gradient_tiff(buf, width, height, x_res, y_res)
    return Response(content=buf.getvalue(), media_type="image/tiff")
