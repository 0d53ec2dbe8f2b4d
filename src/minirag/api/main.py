"""
FastAPI application for the minirag REST API.

Run with:
    uvicorn minirag.api.main:app --reload

Or use the CLI:
    minirag serve
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request, status

from minirag import __version__
from minirag.api.models import (
    AskRequest,
    AskResponse,
    ErrorResponse,
    HealthResponse,
    IngestErrorSchema,
    IngestRequest,
    IngestResponse,
    PassageSchema,
)
from minirag.exceptions import (
    CollectionAlreadyExists,
    CollectionNotFound,
    DimensionMismatch,
    EmbeddingFailed,
    GenerationFailed,
)
from minirag.pipeline import Pipeline

logger = logging.getLogger(__name__)

router = APIRouter()


def create_app(pipeline: Optional[Pipeline] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        pipeline: Pre-built pipeline (tests); built from settings at startup otherwise

    Returns:
        Configured FastAPI app instance
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if pipeline is not None:
            app.state.pipeline = pipeline
        else:
            from minirag.config import settings
            from minirag.logging_config import configure_logging

            configure_logging(settings.log_level)
            logger.info("Initializing minirag pipeline...")
            app.state.pipeline = Pipeline.from_settings(settings)

        yield

        logger.info("Shutting down minirag...")
        app.state.pipeline.persist()

    app = FastAPI(
        title="minirag",
        description="Minimal retrieval-augmented generation API",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


def _pipeline(request: Request) -> Pipeline:
    return request.app.state.pipeline


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(request: Request) -> HealthResponse:
    """Report service status and the size of the configured collection."""
    pipeline = _pipeline(request)
    name = pipeline.config.collection_name

    try:
        records = pipeline.store.describe(name).size
    except CollectionNotFound:
        records = 0

    return HealthResponse(
        status="healthy",
        version=__version__,
        collection=name,
        records=records,
    )


@router.post(
    "/ingest",
    response_model=IngestResponse,
    responses={500: {"model": ErrorResponse, "description": "Configuration error"}},
    tags=["Ingestion"],
)
async def ingest_endpoint(body: IngestRequest, request: Request) -> IngestResponse:
    """
    Scrape, chunk, embed and store the given URLs.

    Per-URL and per-chunk failures are returned in ``errors``; the request
    itself only fails on configuration errors such as a dimension mismatch.
    """
    try:
        report = await _pipeline(request).run_ingestion(body.urls)
    except DimensionMismatch as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "dimension_mismatch", "message": str(e)},
        )
    except CollectionAlreadyExists as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "collection_conflict", "message": str(e)},
        )

    return IngestResponse(
        documents_processed=report.documents_processed,
        chunks_created=report.chunks_created,
        records_inserted=report.records_inserted,
        errors=[
            IngestErrorSchema(
                source=e.source,
                stage=e.stage,
                message=e.message,
                sequence_index=e.sequence_index,
            )
            for e in report.errors
        ],
    )


@router.post(
    "/ask",
    response_model=AskResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Nothing ingested yet"},
        422: {"model": ErrorResponse, "description": "Blank question or invalid top_k"},
        502: {"model": ErrorResponse, "description": "Embedding or generation failed"},
    },
    tags=["Query"],
)
async def ask_endpoint(body: AskRequest, request: Request) -> AskResponse:
    """
    Answer a question from the stored passages.

    Fails outright rather than returning a degraded answer.
    """
    try:
        result = await _pipeline(request).ask_question_with_sources(body.question, body.top_k)
    except CollectionNotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "collection_not_found", "message": str(e)},
        )
    except EmbeddingFailed as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "embedding_failed", "message": str(e)},
        )
    except GenerationFailed as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "generation_failed", "message": str(e)},
        )
    except DimensionMismatch as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "dimension_mismatch", "message": str(e)},
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "invalid_request", "message": str(e)},
        )

    return AskResponse(
        answer=result.answer,
        passages=[
            PassageSchema(text=p.text, source=p.source, score=p.score)
            for p in result.passages
        ],
    )


# Create app instance
app = create_app()
