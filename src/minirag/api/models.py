"""
Pydantic models for API request and response schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class IngestRequest(BaseModel):
    """Request schema for the /ingest endpoint."""

    urls: list[str] = Field(
        ...,
        min_length=1,
        description="Source URLs to scrape and ingest",
        examples=[["https://example.com/article"]],
    )


class IngestErrorSchema(BaseModel):
    """A non-fatal ingestion failure."""

    source: str
    stage: str
    message: str
    sequence_index: Optional[int] = None


class IngestResponse(BaseModel):
    """Response schema for the /ingest endpoint."""

    documents_processed: int
    chunks_created: int
    records_inserted: int
    errors: list[IngestErrorSchema] = Field(default_factory=list)


class AskRequest(BaseModel):
    """Request schema for the /ask endpoint."""

    question: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="Natural language question",
        examples=["What does the article say about vector databases?"],
    )
    top_k: Optional[int] = Field(
        default=None,
        ge=1,
        le=100,
        description="Passages to retrieve (defaults to RETRIEVAL_TOP_K)",
    )

    @field_validator("question")
    @classmethod
    def strip_question(cls, v: str) -> str:
        """Reject questions that are only whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("question must not be blank")
        return v


class PassageSchema(BaseModel):
    """A retrieved passage."""

    text: str
    source: str
    score: float


class AskResponse(BaseModel):
    """Response schema for the /ask endpoint."""

    answer: str
    passages: list[PassageSchema] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Response schema for the /health endpoint."""

    status: str = Field(description="Service health status", examples=["healthy"])
    version: str
    collection: str
    records: int = Field(description="Records in the configured collection")


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str
    message: str
