import pytest

from imgcap.core.settings import settings


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Keep tests independent of the developer's .env / OPENAI_API_KEY."""
    monkeypatch.setattr(settings, "openai_api_key", None)
    monkeypatch.setattr(settings, "openai_base_url", None)
    monkeypatch.setattr(settings, "ollama_default_model", "")
    monkeypatch.setattr(settings, "ollama_url", "http://localhost:11434")
    monkeypatch.setattr(settings, "lowercase_first_letter", False)


