#!/usr/bin/env python3
"""
FastAPI server for Menu Scan.
One in-process scan session: each upload supersedes the previous analysis.
"""

import io
import logging
from contextlib import asynccontextmanager
from typing import Optional

import numpy as np
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from menuscan.geometry.frames import Viewport
from menuscan.models.schema import WordSourceResponse
from menuscan.pipeline import MenuPipeline, PipelineConfig
from menuscan.session import ScanSession

log = logging.getLogger("menuscan.server")


class WordSourceCache:
    """Lazily created OCR engine (loading EasyOCR models is slow)."""

    def __init__(self):
        self._source = None

    def get(self):
        if self._source is None:
            from menuscan.ocr.engine import EasyOCRWordSource
            self._source = EasyOCRWordSource()
        return self._source


word_sources = WordSourceCache()
scan_session = ScanSession(MenuPipeline(PipelineConfig.from_env(), logger=log))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown events."""
    logging.basicConfig(level=logging.INFO)
    log.info("Remote classifier %s", "enabled" if scan_session.pipeline.config.use_remote else "disabled")
    yield
    log.info("Shutting down...")


# Create app
app = FastAPI(
    title="Menu Scan API",
    description="Turn menu photos into tappable dish records",
    version="0.1.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/response models
class HealthResponse(BaseModel):
    status: str
    remote_classifier: bool
    has_analysis: bool


class ViewportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    natural_width: float = Field(alias="naturalWidth", gt=0)
    natural_height: float = Field(alias="naturalHeight", gt=0)
    display_width: float = Field(alias="displayWidth", gt=0)
    display_height: float = Field(alias="displayHeight", gt=0)
    device_pixel_ratio: float = Field(default=1.0, alias="devicePixelRatio", gt=0)

    def to_viewport(self) -> Viewport:
        return Viewport(
            natural_width=self.natural_width,
            natural_height=self.natural_height,
            display_width=self.display_width,
            display_height=self.display_height,
            device_pixel_ratio=self.device_pixel_ratio,
        )


class TapRequest(BaseModel):
    x: float
    y: float
    viewport: ViewportModel


class TapResponse(BaseModel):
    dish: Optional[dict] = None


# Endpoints
@app.get("/api/health", response_model=HealthResponse)
async def health():
    """Health check."""
    return {
        "status": "ok",
        "remote_classifier": scan_session.pipeline.config.use_remote,
        "has_analysis": scan_session.result is not None,
    }


@app.post("/api/analyze")
def analyze(response: WordSourceResponse):
    """Analyze a Word Source response."""
    result = scan_session.submit(response, source="api")
    return result.to_output_json()


@app.post("/api/analyze-image")
def analyze_image(image: UploadFile = File(...)):
    """Recognize and analyze an uploaded menu photo."""
    contents = image.file.read()
    try:
        with Image.open(io.BytesIO(contents)) as img:
            frame = np.array(img.convert("RGB"))
    except (OSError, ValueError) as e:
        raise HTTPException(400, f"Invalid image: {e}") from e

    try:
        source = word_sources.get()
    except ImportError as e:
        raise HTTPException(503, "OCR engine not installed (pip install 'menuscan[ocr]')") from e

    result = scan_session.submit_image(frame, source, source_name=image.filename or "upload")
    output = result.to_output_json()
    output["image"] = {"width": frame.shape[1], "height": frame.shape[0]}
    return output


@app.post("/api/tap", response_model=TapResponse)
def tap(request: TapRequest):
    """Resolve a canvas tap to the dish whose title is under it."""
    if scan_session.result is None:
        raise HTTPException(409, "No analysis yet")

    item = scan_session.tap(request.x, request.y, request.viewport.to_viewport())
    if item is None:
        raise HTTPException(404, "No dish at this point")
    return {"dish": item.to_dish()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3001)
