"""
Purpose:
- POST /api/progress: caption an uploaded batch and stream one frame per image.
- Configuration problems are rejected with 400 before the stream starts.
"""

from __future__ import annotations
import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from ..captions.batch import run_batch
from ..captions.channel import stream_progress
from ..captions.errors import ConfigurationError
from ..captions.schema import GenerationConfig, ImageInput
from ..vlm.images import detect_media_type

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["captions"])


def _invalid(message: str) -> HTTPException:
    logger.warning(f"Rejected caption batch: {message}")
    return HTTPException(status_code=400, detail={"code": "INVALID_CONFIGURATION", "message": message})


async def _read_images(files: List[UploadFile]) -> List[ImageInput]:
    out: List[ImageInput] = []
    for f in files:
        raw = await f.read()
        out.append(ImageInput(
            content=raw,
            media_type=detect_media_type(raw, f.content_type, f.filename),
            filename=f.filename or "",
        ))
    return out


@router.post("/progress")
async def caption_progress(
    request: Request,
    images: Optional[List[UploadFile]] = File(default=None),
    prefix: str = Form(default=""),
    suffix: str = Form(default=""),
    system_message: str = Form(default="", alias="systemMessage"),
    user_prompt: str = Form(default="", alias="userPrompt"),
    service: str = Form(default=""),
    model: str = Form(default=""),
    detail: str = Form(default=""),
    api_key: str = Form(default="", alias="apiKey"),
    ollama_url: str = Form(default="", alias="ollamaUrl"),
    lowercase: str = Form(default=""),
):
    try:
        config = GenerationConfig(
            system_instruction=system_message,
            user_prompt=user_prompt,
            backend=service,
            model=model,
            detail=detail,
            credentials=api_key,
            endpoint_url=ollama_url,
            caption_prefix=prefix,
            caption_suffix=suffix,
            lowercase_first=lowercase,
        )
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err.get("loc", ())) or "config"
        raise _invalid(f"{field}: {err.get('msg')}")

    inputs = await _read_images(images or [])
    try:
        events = run_batch(inputs, config)
    except ConfigurationError as e:
        raise _invalid(str(e))

    return StreamingResponse(
        stream_progress(events, request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
