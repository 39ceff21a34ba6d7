"""
FastAPI backend for the KBV fetch-questions service
Exposes the fetch-questions handler over HTTP for the orchestration layer.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Any, Dict, Optional
import json
import logging
from datetime import datetime

from fetch_questions.config import app_config, fastapi_config, validate_config
from fetch_questions.handler import FetchQuestionsHandler, build_fetch_questions_handler

# Configure logging
logging.basicConfig(level=app_config.log_level)
logger = logging.getLogger(__name__)

# Built on startup
fetch_questions_handler: Optional[FetchQuestionsHandler] = None


class FetchQuestionsResponse(BaseModel):
    fetchQuestionsState: Optional[str] = None
    error: Optional[str] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the handler on startup and close its HTTP clients on shutdown."""
    global fetch_questions_handler

    logger.info("Initializing fetch questions handler...")
    if not validate_config():
        raise RuntimeError("Invalid configuration")

    fetch_questions_handler = build_fetch_questions_handler()
    logger.info("Fetch questions handler initialized")

    yield

    logger.info("Shutting down fetch questions service...")
    if fetch_questions_handler:
        await fetch_questions_handler.close()


app = FastAPI(
    title="KBV Fetch Questions API",
    description="Retrieves and saves knowledge-based verification questions for a session",
    version="1.0.0",
    lifespan=lifespan
)


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "components": {
            "fetch_questions_handler": fetch_questions_handler is not None
        }
    }


@app.post("/api/fetch-questions", response_model=FetchQuestionsResponse, response_model_exclude_none=True)
async def fetch_questions(request: Request):
    """
    Run the fetch-questions handler on the raw request body.

    Handler failures come back as ``{"error": ...}`` with a 200 status, the
    same shape the orchestration layer gets from any other invocation.
    """
    if not fetch_questions_handler:
        return JSONResponse(status_code=503, content={"detail": "Fetch questions handler not initialized"})

    body = await request.body()
    event: Any = None
    if body:
        try:
            event = json.loads(body)
        except json.JSONDecodeError:
            logger.warning("Request body was not valid JSON")

    result: Dict[str, str] = await fetch_questions_handler.handler(event)
    return FetchQuestionsResponse(**result)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "timestamp": datetime.now().isoformat()}
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.main:app",
        host=fastapi_config.host,
        port=fastapi_config.port,
        log_level=fastapi_config.log_level
    )
