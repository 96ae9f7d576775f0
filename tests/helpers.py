import asyncio
from io import BytesIO
from types import SimpleNamespace

from PIL import Image

from imgcap.captions.errors import BackendError, BackendErrorKind
from imgcap.captions.schema import ImageInput
from imgcap.vlm.backends import CaptionBackend


def png_bytes(size=(8, 8), color="red") -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, "PNG")
    return buf.getvalue()


def make_image(filename="photo.png", content=b"\x89PNG fake", media_type="image/png") -> ImageInput:
    return ImageInput(content=content, media_type=media_type, filename=filename)


def collect(aiter):
    """Drain an async iterator from sync test code."""
    async def _drain():
        return [item async for item in aiter]
    return asyncio.run(_drain())


class ScriptedBackend(CaptionBackend):
    """
    Backend double: `script` maps an image filename to the caption text,
    or to an exception instance to raise for that image.
    """

    def __init__(self, script=None, default="a test caption"):
        self.script = script or {}
        self.default = default
        self.calls = []
        self.closed = False
        self.in_flight = 0
        self.max_in_flight = 0

    async def caption(self, image, config):
        self.calls.append(image.filename)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            outcome = self.script.get(image.filename, self.default)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1

    async def aclose(self):
        self.closed = True


def provider_error(message="boom") -> BackendError:
    return BackendError(BackendErrorKind.PROVIDER_ERROR, message)


class FakeCompletions:
    """Stands in for `AsyncOpenAI().chat.completions`."""

    def __init__(self, content="A cat sits on a mat.", error=None):
        self.content = content
        self.error = error
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_openai_client(**kwargs):
    completions = FakeCompletions(**kwargs)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions
