"""Entry point for the chat FastAPI application."""
from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from core.config import BASE_DIR, Settings, load_settings
from core.db import Database
from core.errors import ChatError
from domains.chat.router import router as chat_router
from domains.config.router import router as config_router
from domains.pages.router import router as pages_router
from domains.sessions.router import router as sessions_router

LOGGER = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> FastAPI:
    """Build the application around one shared database handle."""

    settings = settings or load_settings()
    app = FastAPI(title="Chat Relay", description="Streaming chat assistant backed by OpenAI.")
    app.state.settings = settings
    app.state.database = database or Database(settings.database_url)
    app.state.environ = os.environ if environ is None else environ
    app.state.openai_factory = AsyncOpenAI

    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    @app.on_event("startup")
    def _startup() -> None:
        app.state.database.init()

    @app.on_event("shutdown")
    def _shutdown() -> None:
        app.state.database.dispose()

    @app.exception_handler(ChatError)
    async def _chat_error(request: Request, exc: ChatError) -> JSONResponse:
        if exc.status_code >= 500:
            LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse({"error": "Malformed request body."}, status_code=400)

    @app.get("/health")
    async def healthcheck():
        """Simple health endpoint for monitoring."""
        return {"status": "ok"}

    app.include_router(chat_router)
    app.include_router(sessions_router)
    app.include_router(config_router)
    app.include_router(pages_router)
    return app


settings = load_settings()
logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host=settings.host, port=settings.port, reload=False)
