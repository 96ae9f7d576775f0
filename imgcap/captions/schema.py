"""
Purpose:
- Data model for a caption batch: image inputs, generation config, progress events.
- Pydantic models so the wire format is self-documenting and stable.
"""

from __future__ import annotations
import base64
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.settings import settings


class BackendKind(str, Enum):
    HOSTED = "hosted"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: Any) -> "BackendKind":
        if isinstance(value, cls):
            return value
        v = (str(value or "")).strip().lower()
        # legacy service names sent by older clients
        aliases = {"": cls.HOSTED, "openai": cls.HOSTED, "ollama": cls.LOCAL}
        if v in aliases:
            return aliases[v]
        return cls(v)


class DetailLevel(str, Enum):
    AUTO = "auto"
    LOW = "low"
    HIGH = "high"


@dataclass(frozen=True)
class ImageInput:
    content: bytes
    media_type: str
    filename: str

    @property
    def caption_filename(self) -> str:
        """photo.JPG -> photo.txt (directories dropped, only the last extension removed)."""
        name = PurePosixPath(self.filename.replace("\\", "/")).name
        stem = PurePosixPath(name).stem if name else ""
        return f"{stem or 'image'}.txt"

    def b64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")

    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.b64()}"


class GenerationConfig(BaseModel):
    """
    Read-only settings shared by every image of one batch.
    Blank fields are filled from settings; backend-specific defaults depend on `backend`.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    system_instruction: str
    user_prompt: str
    backend: BackendKind = BackendKind.HOSTED
    model: str = ""
    detail: DetailLevel = DetailLevel.AUTO
    credentials: Optional[str] = None
    endpoint_url: str = ""
    caption_prefix: str = ""
    caption_suffix: str = ""
    lowercase_first: bool = False

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        # drop blanks so defaults apply
        out = {}
        for k, v in data.items():
            if isinstance(v, str):
                v = v.strip()
            if v is None or v == "":
                continue
            out[k] = v

        backend = BackendKind.parse(out.get("backend"))
        out["backend"] = backend
        out.setdefault("system_instruction", settings.default_system_message)
        out.setdefault("user_prompt", settings.default_user_prompt)
        out.setdefault("lowercase_first", settings.lowercase_first_letter)

        if backend is BackendKind.HOSTED:
            out.setdefault("model", settings.openai_default_model)
            if settings.openai_api_key:
                out.setdefault("credentials", settings.openai_api_key)
        else:
            out.setdefault("model", settings.ollama_default_model)
            out.setdefault("endpoint_url", settings.ollama_url)
            out.pop("credentials", None)
            # image detail is an OpenAI knob; Ollama has no equivalent
            out.pop("detail", None)
        return out

    @field_validator("detail", mode="before")
    @classmethod
    def _detail_lower(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("endpoint_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")


# ---- Progress events (one per image, then a terminal "done") ----

class CaptionEvent(BaseModel):
    type: Literal["caption"] = "caption"
    index: int
    filename: str
    content: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    index: int
    filename: str
    error: str


class DoneEvent(BaseModel):
    type: Literal["done"] = "done"
    total: int
    failed: int = 0


# Per-image outcome
CaptionResult = Union[CaptionEvent, ErrorEvent]

ProgressEvent = Annotated[Union[CaptionEvent, ErrorEvent, DoneEvent], Field(discriminator="type")]
