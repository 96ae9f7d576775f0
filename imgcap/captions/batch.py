"""
Purpose:
- Caption a batch of images one at a time and yield one progress event per image.

Design:
- Config is checked once, when run_batch() is called, before any image is touched.
- A failing image becomes an ErrorEvent; the batch keeps going.
- Strictly sequential: the next image is only dispatched when the consumer
  asks for the next event.
"""

from __future__ import annotations
import logging
from typing import AsyncIterator, Iterable, List, Optional

from .errors import BackendError, ConfigurationError
from .formatter import format_caption
from .schema import (
    BackendKind,
    CaptionEvent,
    CaptionResult,
    DoneEvent,
    ErrorEvent,
    GenerationConfig,
    ImageInput,
    ProgressEvent,
)
from ..vlm.backends import CaptionBackend, resolve_backend

logger = logging.getLogger(__name__)


def validate_batch(images: List[ImageInput], config: GenerationConfig) -> None:
    """Raise ConfigurationError if the batch cannot start."""
    if not images:
        raise ConfigurationError("No images provided")

    if config.backend is BackendKind.HOSTED:
        if not config.credentials:
            raise ConfigurationError("OpenAI API key is required")
        if not config.model:
            raise ConfigurationError("No model selected")
    else:
        if not config.model:
            raise ConfigurationError("No Ollama model selected")
        if not config.endpoint_url:
            raise ConfigurationError("Ollama server URL is required")


def run_batch(
    images: Iterable[ImageInput],
    config: GenerationConfig,
    backend: Optional[CaptionBackend] = None,
) -> AsyncIterator[ProgressEvent]:
    """
    Validate, then return the lazy event stream for the batch.

    Raises ConfigurationError immediately (no events) if the batch is invalid.
    The backend is owned by the stream and closed when it ends.
    """
    items = list(images)
    validate_batch(items, config)
    return _caption_events(items, config, backend or resolve_backend(config))


async def caption_one(
    index: int,
    image: ImageInput,
    config: GenerationConfig,
    backend: CaptionBackend,
) -> CaptionResult:
    """Caption one image; any failure comes back as an ErrorEvent instead of raising."""
    filename = image.caption_filename
    try:
        raw = await backend.caption(image, config)
    except BackendError as e:
        logger.warning(f"Caption failed for {image.filename} ({e.kind.value}): {e.message}")
        return ErrorEvent(index=index, filename=filename, error=e.message)
    except Exception as e:
        logger.error(f"Unexpected caption error for {image.filename}", exc_info=True)
        return ErrorEvent(index=index, filename=filename, error=str(e) or e.__class__.__name__)

    content = format_caption(
        raw,
        prefix=config.caption_prefix,
        suffix=config.caption_suffix,
        lowercase_first=config.lowercase_first,
    )
    return CaptionEvent(index=index, filename=filename, content=content)


async def _caption_events(
    images: List[ImageInput],
    config: GenerationConfig,
    backend: CaptionBackend,
) -> AsyncIterator[ProgressEvent]:
    failed = 0
    logger.info(f"Caption batch started: {len(images)} images, backend={config.backend.value}, model={config.model}")
    try:
        for i, image in enumerate(images):
            result = await caption_one(i, image, config, backend)
            if isinstance(result, ErrorEvent):
                failed += 1
            yield result

        logger.info(f"Caption batch finished: {len(images) - failed} ok, {failed} failed")
        yield DoneEvent(total=len(images), failed=failed)
    finally:
        await backend.aclose()
