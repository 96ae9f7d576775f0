"""
Purpose:
- Captioning backends behind one interface: `await backend.caption(image, config) -> str`.
- HostedBackend talks to the OpenAI chat-completions API.
- LocalBackend talks to an Ollama server over HTTP.

Notes:
- Every failure surfaces as BackendError so the batch stays backend-agnostic.
- Clients are created lazily on the first call and reused for the whole batch.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import httpx
import openai
from openai import AsyncOpenAI

from ..captions.errors import BackendError, BackendErrorKind
from ..captions.schema import BackendKind, GenerationConfig, ImageInput
from ..core.settings import settings

logger = logging.getLogger(__name__)


class CaptionBackend:
    """Base class for captioning providers."""

    kind: BackendKind

    async def caption(self, image: ImageInput, config: GenerationConfig) -> str:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class HostedBackend(CaptionBackend):
    kind = BackendKind.HOSTED

    def __init__(self, client: Optional[Any] = None):
        # a pre-built client is never closed here
        self._client = client
        self._owns_client = client is None

    def _get_client(self, api_key: str) -> Any:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=api_key, base_url=settings.openai_base_url)
        return self._client

    @staticmethod
    def _messages(image: ImageInput, config: GenerationConfig) -> list[Dict[str, Any]]:
        return [
            {"role": "system", "content": config.system_instruction},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": config.user_prompt},
                    {
                        "type": "image_url",
                        "image_url": {"url": image.data_url(), "detail": config.detail.value},
                    },
                ],
            },
        ]

    async def caption(self, image: ImageInput, config: GenerationConfig) -> str:
        if not config.credentials:
            raise BackendError(BackendErrorKind.AUTH_MISSING, "OpenAI API key is required")

        logger.debug(f"OpenAI caption request: model={config.model} file={image.filename}")
        client = self._get_client(config.credentials)
        try:
            resp = await client.chat.completions.create(
                model=config.model,
                messages=self._messages(image, config),
            )
        except openai.OpenAIError as e:
            raise BackendError(BackendErrorKind.PROVIDER_ERROR, str(e)) from e

        choices = getattr(resp, "choices", None) or []
        text = (choices[0].message.content or "") if choices else ""
        if not text.strip():
            raise BackendError(BackendErrorKind.PROVIDER_ERROR, "Model returned no caption text")
        return text

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None


def _ollama_error_message(resp: httpx.Response) -> str:
    # Ollama reports failures as {"error": "..."}
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"Ollama server returned HTTP {resp.status_code}"


class LocalBackend(CaptionBackend):
    kind = BackendKind.LOCAL

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self, base_url: str) -> httpx.AsyncClient:
        if self._client is None:
            # no timeout: generation on a local model can take a while
            self._client = httpx.AsyncClient(base_url=base_url, timeout=None, transport=self._transport)
        return self._client

    async def caption(self, image: ImageInput, config: GenerationConfig) -> str:
        if not config.model:
            raise BackendError(BackendErrorKind.NO_MODEL_SELECTED, "No Ollama model selected")

        payload = {
            "model": config.model,
            "stream": False,
            "messages": [
                {"role": "system", "content": config.system_instruction},
                {"role": "user", "content": config.user_prompt, "images": [image.b64()]},
            ],
        }
        logger.debug(f"Ollama caption request: model={config.model} file={image.filename}")
        try:
            client = self._get_client(config.endpoint_url)
            r = await client.post("/api/chat", json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise BackendError(
                BackendErrorKind.PROVIDER_ERROR,
                f"Failed to reach Ollama server at {config.endpoint_url}: {e}",
            ) from e

        if r.is_error:
            raise BackendError(BackendErrorKind.PROVIDER_ERROR, _ollama_error_message(r))

        try:
            data = r.json()
        except ValueError as e:
            raise BackendError(BackendErrorKind.PROVIDER_ERROR, "Ollama server returned invalid JSON") from e

        text = ((data.get("message") or {}).get("content") or "") if isinstance(data, dict) else ""
        if not text.strip():
            raise BackendError(BackendErrorKind.PROVIDER_ERROR, "Model returned no caption text")
        return text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def resolve_backend(config: GenerationConfig) -> CaptionBackend:
    """Pick the backend variant for a batch (once, not per image)."""
    if config.backend is BackendKind.LOCAL:
        return LocalBackend()
    return HostedBackend()
