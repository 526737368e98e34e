# api_main.py
# FastAPI service for highlight extraction
# - POST /extract (and aliases): image in, highlighted passages out
# - Pipeline errors mapped to 4xx; OCR problems degrade inside the pipeline

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from config import Settings
from highlights.colors import HighlightColor
from highlights.errors import InvalidImage, NoHighlightDetected
from highlights.models import HighlightResult
from highlights.pipeline import run_pipeline
from highlights.selftest import run_pipeline_selftest
from ocr.engines import available_engines, make_extractor

# ---------- environment ----------
SETTINGS = Settings.from_env()

logging.basicConfig(
    level=getattr(logging, SETTINGS.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("highlightcapture")


# ---------- models ----------
class LineOut(BaseModel):
    index: int
    text: str
    bbox: List[float]  # x, y, width, height (normalized, bottom-left origin)


class RegionOut(BaseModel):
    bbox: List[float]
    area: int
    color: Optional[str] = None


class ExtractResponse(BaseModel):
    ok: bool = True
    color: Optional[str] = None
    passages: List[str]
    text: str
    lines: List[LineOut] = []
    regions: List[RegionOut] = []
    counts: Dict[str, int] = {}


# ---------- app ----------
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Refuse to serve if the passage repair rules regressed.
    run_pipeline_selftest()
    yield


app = FastAPI(title="Highlight Capture API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- utils ----------
async def _read_page(request: Request, file: UploadFile | None, image: UploadFile | None) -> bytes:
    """Page image from a multipart part (`file` or `image`) or a raw image/* body."""
    part = file or image
    if part is not None:
        if not (part.content_type or "").lower().startswith("image/"):
            raise HTTPException(status_code=400, detail=f"Part {part.filename!r} is not an image.")
        return await part.read()

    body_type = (request.headers.get("content-type") or "").lower()
    if body_type.startswith("image/"):
        return await request.body()
    raise HTTPException(
        status_code=422,
        detail="Send the page as multipart field 'file' (or 'image'), or as a raw body with Content-Type: image/*.",
    )


def _default_color() -> HighlightColor:
    """HIGHLIGHT_COLOR as a color; "auto" or a bad value falls back to pink."""
    if SETTINGS.default_color == "auto":
        return HighlightColor.PINK
    try:
        return HighlightColor.parse(SETTINGS.default_color)
    except ValueError:
        logger.warning("HIGHLIGHT_COLOR=%r is not a known color; using pink", SETTINGS.default_color)
        return HighlightColor.PINK


def _to_response(res: HighlightResult) -> ExtractResponse:
    return ExtractResponse(
        color=res.color,
        passages=res.passages,
        text="\n\n".join(res.passages),
        lines=[LineOut(index=ln.line_index, text=ln.text, bbox=ln.bbox.to_list()) for ln in res.lines],
        regions=[RegionOut(bbox=r.bbox.to_list(), area=r.area, color=r.color) for r in res.regions],
        counts=res.counts,
    )


# ---------- routes ----------
@app.get("/")
async def root():
    return {"service": "highlight-capture-api", "env": SETTINGS.environment, "ok": True}


@app.get("/healthz")
async def healthz():
    return {"ok": True, "env": SETTINGS.environment, "engines": available_engines()}


@app.post("/extract", response_model=ExtractResponse)
@app.post("/api/extract", response_model=ExtractResponse)
@app.post("/highlights", response_model=ExtractResponse)
async def extract(
    request: Request,
    file: UploadFile | None = File(None),
    image: UploadFile | None = File(None),
    color: Optional[str] = None,
    engine: Optional[str] = None,
):
    data = await _read_page(request, file, image)

    if color:
        name = color.strip().lower()
    elif SETTINGS.default_color == "auto":
        name = "auto"
    else:
        # unset color: server default, pink when HIGHLIGHT_COLOR is unusable
        name = _default_color().value
    if name != "auto":
        try:
            HighlightColor.parse(name)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    try:
        recognizer = make_extractor(engine or SETTINGS.ocr_engine)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=501, detail=str(e))

    try:
        res = await run_pipeline(
            data,
            name,
            recognizer=recognizer,
            config=SETTINGS.pipeline,
            default_color=_default_color(),
        )
    except InvalidImage as e:
        raise HTTPException(status_code=400, detail=f"Invalid image: {e}")
    except NoHighlightDetected as e:
        raise HTTPException(status_code=422, detail=f"No highlight detected: {e}")
    except Exception as e:
        logger.exception("Highlight extraction failed")
        raise HTTPException(status_code=500, detail=str(e))

    return _to_response(res)


# ---------- uvicorn entry ----------
if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    uvicorn.run("api_main:app", host="0.0.0.0", port=port, reload=False)
