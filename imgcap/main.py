"""
Purpose:
- FastAPI application factory and router mounts.
- Adds CORS for the browser client.
- Uvicorn serves this on settings.host:settings.port (python -m imgcap.main).
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.settings import settings
from .core.logging_utils import configure_logging
from .api.health import router as health_router
from .api.progress import router as progress_router
from .api.ollama import router as ollama_router
from .api.download import router as download_router

def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Image Captioner API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health_router)
    app.include_router(progress_router)
    app.include_router(ollama_router)
    app.include_router(download_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
