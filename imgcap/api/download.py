"""
Purpose:
- POST /api/download: zip the captions collected from a batch.
"""

from __future__ import annotations
import logging
from typing import List

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, Field

from ..services.archive import CaptionFile, archive_filename, build_archive

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["download"])


class DownloadRequest(BaseModel):
    captions: List[CaptionFile] = Field(default_factory=list)


@router.post("/download")
def download_captions(payload: DownloadRequest):
    try:
        data = build_archive(payload.captions)
    except (OSError, ValueError) as e:
        logger.error(f"Error creating zip file: {e}", exc_info=True)
        return PlainTextResponse("Error creating zip file", status_code=500)

    return Response(
        content=data,
        media_type="application/zip",
        headers={"Content-Disposition": f"attachment; filename={archive_filename()}"},
    )
