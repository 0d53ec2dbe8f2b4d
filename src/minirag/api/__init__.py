"""
FastAPI REST API for minirag.

Endpoints:
    POST /ingest - Scrape and ingest URLs
    POST /ask - Answer a question from stored passages
    GET /health - Health check
"""

from minirag.api.main import app, create_app

__all__ = ["app", "create_app"]
