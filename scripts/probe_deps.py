"""
Purpose:
- Sanity-check critical library versions after upgrades.
- Import the exact modules we use and print versions so we can spot drift immediately.
"""

import sys
import fastapi
import uvicorn
import httpx
import openai
import PIL
from pydantic_settings import BaseSettings

from imgcap.captions.formatter import format_caption

print("python", sys.version)
print("fastapi", fastapi.__version__)
print("uvicorn", uvicorn.__version__)
print("httpx", httpx.__version__)
print("openai", openai.__version__)
print("pillow", PIL.__version__)
print("pydantic-settings", BaseSettings.__module__.split(".")[0])  # presence check
# formatter is pure; a quick call proves the package imports end to end
print("formatter", format_caption("A cat sits.", "style,", ", 8k"))
print("OK")
