import asyncio
import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from imgcap.captions.errors import BackendError, BackendErrorKind
from imgcap.captions.schema import GenerationConfig
from imgcap.vlm.backends import HostedBackend, LocalBackend, resolve_backend
from helpers import fake_openai_client, make_image


def hosted_config(**kw):
    base = dict(backend="hosted", credentials="sk-test", model="gpt-4o-mini", detail="low",
                system_instruction="be brief", user_prompt="describe")
    base.update(kw)
    return GenerationConfig(**base)


def local_config(**kw):
    base = dict(backend="local", model="llava", endpoint_url="http://ollama.test:11434",
                system_instruction="be brief", user_prompt="describe")
    base.update(kw)
    return GenerationConfig(**base)


def test_hosted_request_shape():
    """
    One chat request per image: system message, then a user message with the
    prompt text and the image inlined as a data URL at the requested detail.
    """
    client, completions = fake_openai_client(content="A cat sits on a mat.")
    backend = HostedBackend(client=client)
    img = make_image("cat.png", content=b"abc", media_type="image/png")

    text = asyncio.run(backend.caption(img, hosted_config()))

    assert text == "A cat sits on a mat."
    req = completions.requests[0]
    assert req["model"] == "gpt-4o-mini"
    system, user = req["messages"]
    assert system == {"role": "system", "content": "be brief"}
    assert user["role"] == "user"
    assert user["content"][0] == {"type": "text", "text": "describe"}
    image_part = user["content"][1]
    assert image_part["type"] == "image_url"
    assert image_part["image_url"] == {"url": "data:image/png;base64,YWJj", "detail": "low"}


def test_hosted_without_credentials_never_calls_out():
    client, completions = fake_openai_client()
    backend = HostedBackend(client=client)
    cfg = GenerationConfig(backend="hosted")
    assert cfg.credentials is None

    with pytest.raises(BackendError) as exc:
        asyncio.run(backend.caption(make_image(), cfg))
    assert exc.value.kind is BackendErrorKind.AUTH_MISSING
    assert completions.requests == []


def test_hosted_provider_failure_becomes_backend_error():
    err = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    client, _ = fake_openai_client(error=err)
    backend = HostedBackend(client=client)

    with pytest.raises(BackendError) as exc:
        asyncio.run(backend.caption(make_image(), hosted_config()))
    assert exc.value.kind is BackendErrorKind.PROVIDER_ERROR
    assert "Connection error" in exc.value.message


def test_hosted_empty_text_is_a_failure():
    client, _ = fake_openai_client(content="   ")
    backend = HostedBackend(client=client)
    with pytest.raises(BackendError) as exc:
        asyncio.run(backend.caption(make_image(), hosted_config()))
    assert exc.value.kind is BackendErrorKind.PROVIDER_ERROR


def test_hosted_no_choices_is_a_failure():
    async def create(**kwargs):
        return SimpleNamespace(choices=[])

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    backend = HostedBackend(client=client)
    with pytest.raises(BackendError) as exc:
        asyncio.run(backend.caption(make_image(), hosted_config()))
    assert exc.value.kind is BackendErrorKind.PROVIDER_ERROR
    assert exc.value.message == "Model returned no caption text"


def test_hosted_does_not_close_injected_client():
    client, _ = fake_openai_client()
    backend = HostedBackend(client=client)
    # SimpleNamespace has no close(); this would fail if it tried
    asyncio.run(backend.aclose())


def _run_local(backend, img, cfg):
    async def go():
        try:
            return await backend.caption(img, cfg)
        finally:
            await backend.aclose()
    return asyncio.run(go())


def test_local_request_shape():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"message": {"role": "assistant", "content": "A dog in snow."}})

    backend = LocalBackend(transport=httpx.MockTransport(handler))
    text = _run_local(backend, make_image(content=b"abc"), local_config())

    assert text == "A dog in snow."
    assert seen["url"] == "http://ollama.test:11434/api/chat"
    body = seen["body"]
    assert body["model"] == "llava"
    assert body["stream"] is False
    assert body["messages"][0] == {"role": "system", "content": "be brief"}
    assert body["messages"][1] == {"role": "user", "content": "describe", "images": ["YWJj"]}


def test_local_requires_model():
    def handler(request):
        raise AssertionError("no request expected")

    backend = LocalBackend(transport=httpx.MockTransport(handler))
    with pytest.raises(BackendError) as exc:
        _run_local(backend, make_image(), local_config(model=""))
    assert exc.value.kind is BackendErrorKind.NO_MODEL_SELECTED


def test_local_reports_server_error_message():
    def handler(request):
        return httpx.Response(404, json={"error": "model 'llava' not found"})

    backend = LocalBackend(transport=httpx.MockTransport(handler))
    with pytest.raises(BackendError) as exc:
        _run_local(backend, make_image(), local_config())
    assert exc.value.kind is BackendErrorKind.PROVIDER_ERROR
    assert exc.value.message == "model 'llava' not found"


def test_local_connection_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    backend = LocalBackend(transport=httpx.MockTransport(handler))
    with pytest.raises(BackendError) as exc:
        _run_local(backend, make_image(), local_config())
    assert exc.value.kind is BackendErrorKind.PROVIDER_ERROR
    assert "connection refused" in exc.value.message


def test_local_empty_text_is_a_failure():
    def handler(request):
        return httpx.Response(200, json={"message": {"content": ""}})

    backend = LocalBackend(transport=httpx.MockTransport(handler))
    with pytest.raises(BackendError):
        _run_local(backend, make_image(), local_config())


def test_resolve_backend():
    assert isinstance(resolve_backend(hosted_config()), HostedBackend)
    assert isinstance(resolve_backend(local_config()), LocalBackend)
