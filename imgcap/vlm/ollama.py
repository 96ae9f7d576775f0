"""
Purpose:
- Helpers for a local Ollama server that run before a batch starts:
  a short-timeout liveness probe and the model catalog.

Notes:
- probe_status never raises; the UI only needs running/error.
- list_models raises ModelListError so the router can map upstream status codes.
"""

from __future__ import annotations
import logging
from typing import List, Literal, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from ..captions.errors import BackendError, BackendErrorKind
from ..core.settings import settings

logger = logging.getLogger(__name__)


class ServerStatus(BaseModel):
    status: Literal["running", "error", "checking"]
    message: Optional[str] = None


class LocalModel(BaseModel):
    # Ollama adds digest/details; keep them for the client
    model_config = ConfigDict(extra="allow")

    name: str
    modified_at: Optional[str] = None
    size: Optional[int] = None


class ModelListError(BackendError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(BackendErrorKind.PROVIDER_ERROR, message)
        self.status_code = status_code


def _base(url: Optional[str]) -> str:
    return (url or settings.ollama_url).strip().rstrip("/")


async def probe_status(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ServerStatus:
    """HEAD the server root; anything but a 2xx within `timeout` is an error."""
    url = _base(base_url)
    t = settings.ollama_probe_timeout if timeout is None else timeout
    try:
        async with httpx.AsyncClient(timeout=t, transport=transport) as client:
            resp = await client.head(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.info(f"Ollama probe failed for {url}: {e!r}")
        return ServerStatus(status="error", message=str(e) or "Failed to connect to Ollama server")

    if resp.is_success:
        return ServerStatus(status="running")
    return ServerStatus(status="error", message=resp.reason_phrase or f"HTTP {resp.status_code}")


async def list_models(
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[LocalModel]:
    url = _base(base_url)
    try:
        async with httpx.AsyncClient(timeout=10.0, transport=transport) as client:
            resp = await client.get(f"{url}/api/tags")
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise ModelListError(f"Failed to connect to Ollama server: {e}") from e

    if resp.is_error:
        raise ModelListError("Failed to fetch models", status_code=resp.status_code)

    try:
        data = resp.json()
    except ValueError as e:
        raise ModelListError("Ollama server returned invalid JSON") from e

    # expected shape: {"models": [{"name": ...}, ...]}
    entries = (data.get("models") or []) if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ModelListError("Ollama server returned an unexpected model list")
    try:
        return [LocalModel.model_validate(m) for m in entries]
    except ValidationError as e:
        raise ModelListError("Ollama server returned an unexpected model list") from e
