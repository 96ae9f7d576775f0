# Common language: Environment/ops probe that surfaces version pins and effective config.
# Use this before/after upgrades to confirm no silent drift.

from fastapi import APIRouter
from ..core.settings import settings
import sys, importlib

router = APIRouter(tags=["health"])

def _ver(modname: str) -> str:
    try:
        m = importlib.import_module(modname)
        return getattr(m, "__version__", "unknown")
    except ImportError:
        return "not-installed"

@router.get("/healthz")
def healthz():
    return {
        "status": "ok",
        "python": sys.version.split()[0],
        "versions": {
            "fastapi": _ver("fastapi"),
            "uvicorn": _ver("uvicorn"),
            "pydantic": _ver("pydantic"),
            "pydantic_settings": _ver("pydantic_settings"),
            "httpx": _ver("httpx"),
            "openai": _ver("openai"),
            "PIL": _ver("PIL"),
        },
        "config": {
            "openai_default_model": settings.openai_default_model,
            "openai_base_url": settings.openai_base_url,
            "ollama_url": settings.ollama_url,
            "ollama_probe_timeout": settings.ollama_probe_timeout,
            "lowercase_first_letter": settings.lowercase_first_letter,
        },
        # presence only, never the value
        "env_keys_present": {
            "OPENAI_API_KEY": bool(settings.openai_api_key),
        },
    }
