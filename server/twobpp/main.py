from __future__ import annotations
from fastapi import FastAPI
from .routers import convert, gradient

app = FastAPI(title="2bpp TIFF converter")

app.include_router(convert.router)
app.include_router(gradient.router)


@app.get("/")
async def root():
    return {"ok": True, "service": "twobpp"}
