"""
Purpose:
- Centralized configuration using pydantic-settings.
- Reads from environment variables and optional .env file.
- Holds the defaults a caption batch falls back to when form fields are blank.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_MESSAGE = (
    "Generate a concise, yet detailed comma-separated caption. "
    "Do not use markdown. Do not have an intro or outro."
)
DEFAULT_USER_PROMPT = "Describe this image, focusing on the main elements, style, and composition."


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",          # <-- prevents crashes if extra env vars exist
    )

    # API host/port
    host: str = Field(default="0.0.0.0", description="Bind address for FastAPI/Uvicorn")
    port: int = Field(default=8000, description="Port for FastAPI/Uvicorn")

    # CORS
    cors_allow_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Allowed origins for browser apps"
    )

    log_level: str = Field(default="INFO")

    # ---- Prompt defaults ----
    default_system_message: str = Field(default=DEFAULT_SYSTEM_MESSAGE)
    default_user_prompt: str = Field(default=DEFAULT_USER_PROMPT)

    # ---- Hosted (OpenAI) backend ----
    # OPENAI_API_KEY is used when the form does not carry a key
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = Field(default=None, description="OpenAI-compatible endpoint override")
    openai_default_model: str = Field(default="gpt-4o-mini")

    # ---- Local (Ollama) backend ----
    ollama_url: str = Field(default="http://localhost:11434")
    ollama_default_model: str = Field(default="", description="Empty means the user must pick one")
    ollama_probe_timeout: float = Field(default=3.0, description="Seconds before a liveness probe gives up")

    # Caption policy: lowercase the first letter of every caption
    lowercase_first_letter: bool = Field(default=False)


settings = Settings()
