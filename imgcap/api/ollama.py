"""
Purpose:
- Expose the local Ollama server's status and model list to the browser.
"""

from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from ..vlm.ollama import ModelListError, ServerStatus, list_models, probe_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ollama", tags=["ollama"])


@router.get("/status", response_model=ServerStatus)
async def ollama_status(url: Optional[str] = Query(default=None, description="Ollama base URL")):
    """Always 200; the body says running or error."""
    return await probe_status(url)


@router.get("/models")
async def ollama_models(url: Optional[str] = Query(default=None, description="Ollama base URL")):
    try:
        models = await list_models(url)
    except ModelListError as e:
        if e.status_code is not None:
            logger.warning(f"Ollama model list returned HTTP {e.status_code}")
            return JSONResponse({"error": "Failed to fetch models"}, status_code=e.status_code)
        logger.error(f"Error fetching Ollama models: {e.message}")
        return JSONResponse({"error": "Failed to connect to Ollama server"}, status_code=500)
    return {"models": [m.model_dump() for m in models]}
