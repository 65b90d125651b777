"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
import os
import time
from typing import List

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from .competitors import CompetitorSearchError, find_competitors
from .config import get_settings
from .logging_setup import configure_logging
from .pipeline import PrimarySiteError, run_analysis
from .schemas import report_to_json, to_json

LOG_FILE_PATH = configure_logging()
logger = logging.getLogger(__name__)
logger.info("Logging configured. File output: %s", LOG_FILE_PATH)

app = FastAPI(title="SEO Competitor Comparison")

VALIDATION_MESSAGES = {
    "/analyze": "Missing URL or competitors",
    "/competitors": "URL is required",
}


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    my_url: str = Field(alias="myUrl", min_length=1)
    competitors: List[str | None] = Field(min_length=1)


class CompetitorRequest(BaseModel):
    url: str = Field(min_length=1)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = VALIDATION_MESSAGES.get(request.url.path, "Invalid request")
    logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/analyze")
def analyze(payload: AnalyzeRequest) -> dict:
    my_url = payload.my_url.strip()
    if not my_url:
        raise HTTPException(status_code=400, detail=VALIDATION_MESSAGES["/analyze"])

    max_competitors = get_settings().max_competitors
    if len(payload.competitors) > max_competitors:
        raise HTTPException(
            status_code=400,
            detail=f"At most {max_competitors} competitors can be compared",
        )

    start = time.perf_counter()
    try:
        report = run_analysis(my_url, [url or "" for url in payload.competitors])
    except PrimarySiteError as exc:
        raise HTTPException(status_code=422, detail=f"Failed to fetch your URL: {exc}") from exc
    except Exception as exc:
        logger.exception("Analysis error: %s", exc)
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    logger.info("Served analysis for %s in %.2fs", my_url, time.perf_counter() - start)
    return report_to_json(report)


@app.post("/competitors")
def competitors(payload: CompetitorRequest) -> dict:
    url = payload.url.strip()
    if not url:
        raise HTTPException(status_code=400, detail=VALIDATION_MESSAGES["/competitors"])

    try:
        found = find_competitors(url)
    except CompetitorSearchError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Competitor search error: %s", exc)
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    return {"competitors": to_json(found)}


def run() -> None:  # pragma: no cover - manual server start
    import uvicorn

    uvicorn.run(
        "seo_compare.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
