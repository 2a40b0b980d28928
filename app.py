from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

from catalog import Catalog, load_catalog
from matching import LLMRanker, MatchingService
from models import (
    CandidateFormData,
    LocationsResponse,
    MatchesResponse,
    MatchHistoryResponse,
    Settings,
    SkillsResponse,
)
from storage import MemStorage, Storage


# Load environment from project root .env if present
load_dotenv()
load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env", override=False)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


def get_settings() -> Settings:
    defaults = Settings()
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        model_name=os.getenv("OPENAI_MODEL", defaults.model_name),
        ranker_timeout_seconds=float(os.getenv("RANKER_TIMEOUT_SECONDS", str(defaults.ranker_timeout_seconds))),
        data_dir=Path(os.getenv("CATALOG_DATA_DIR", str(defaults.data_dir))),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire storage, catalog and ranker once; missing configuration fails startup."""
    settings: Settings = app.state.settings

    if app.state.storage is None:
        app.state.storage = MemStorage()
    if app.state.catalog is None:
        app.state.catalog = load_catalog(settings.data_dir, app.state.storage)
    if app.state.ranker is None:
        app.state.ranker = LLMRanker.from_settings(settings)

    app.state.matching_service = MatchingService(app.state.storage, app.state.ranker)
    logger.info(f"Internship matcher ready with {len(app.state.catalog.internships)} catalog internships")
    yield


def get_catalog(request: Request) -> Catalog:
    catalog = request.app.state.catalog
    if catalog is None:
        raise HTTPException(status_code=500, detail="Catalog unavailable")
    return catalog


def get_matching_service(request: Request) -> MatchingService:
    return request.app.state.matching_service


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"Rejected invalid request to {request.url.path}: {len(exc.errors())} error(s)")
    errors = [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid candidate data", "errors": errors})


router = APIRouter(prefix="/api")


@router.get("/skills", response_model=SkillsResponse)
async def get_skills(catalog: Catalog = Depends(get_catalog)):
    return SkillsResponse(skills=catalog.skills)


@router.get("/locations", response_model=LocationsResponse)
async def get_locations(catalog: Catalog = Depends(get_catalog)):
    return LocationsResponse(locations=catalog.locations)


@router.post("/matches", response_model=MatchesResponse)
async def create_matches(
    form: CandidateFormData,
    service: MatchingService = Depends(get_matching_service),
):
    """
    Create a candidate from the submitted form and return ranked matches.

    Ranking failures are absorbed by the matcher's fallback; only errors
    before a shortlist exists (e.g. the catalog cannot be read) reach here.
    """
    try:
        candidate, matches = await service.run(form)
    except Exception:
        logger.exception("Error generating matches")
        raise HTTPException(status_code=500, detail="Failed to generate matches")

    return MatchesResponse(matches=matches, candidate_id=candidate.id)


@router.get("/matches/{candidate_id}", response_model=MatchHistoryResponse)
async def get_match_history(
    candidate_id: str,
    service: MatchingService = Depends(get_matching_service),
):
    try:
        matches = service.match_history(candidate_id)
    except Exception:
        logger.exception(f"Error fetching match history for {candidate_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch matches")
    return MatchHistoryResponse(matches=matches)


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[Storage] = None,
    catalog: Optional[Catalog] = None,
    ranker=None,
) -> FastAPI:
    """
    Build the API. Anything not passed in is created at startup: an empty
    MemStorage, the catalog from ``settings.data_dir`` and an LLMRanker.
    """
    app = FastAPI(title="Internship Matching API", version=API_VERSION, lifespan=lifespan)
    app.state.settings = settings or get_settings()
    logging.getLogger().setLevel(app.state.settings.log_level.upper())
    app.state.storage = storage
    app.state.catalog = catalog
    app.state.ranker = ranker

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.get("/")
    async def root():
        return {"status": "ok", "version": API_VERSION}

    app.include_router(router)
    return app


app = create_app()


def main():
    """Run the API server."""
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Starting Internship Matching API on {host}:{port}")
    uvicorn.run("app:app", host=host, port=port, reload=False, log_level="info")


if __name__ == "__main__":
    main()
