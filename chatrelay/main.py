import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from chatrelay import __version__
from chatrelay.api import auth, chat, health
from chatrelay.core.config import Settings, get_settings
from chatrelay.core.database import Database
from chatrelay.core.errors import register_exception_handlers
from chatrelay.services.ollama_client import GenerationClient
from chatrelay.utils.logger import clear_request_id, get_logger, init_logging, set_request_id

logger = get_logger("chatrelay.main")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    init_logging(level=settings.LOG_LEVEL, log_dir=settings.LOG_DIR, filename=settings.LOG_FILE)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(settings.DATABASE_URL)
        await db.create_all()
        generation_client = GenerationClient(
            base_url=settings.OLLAMA_URL,
            model=settings.OLLAMA_MODEL,
            generate_timeout=settings.GENERATE_TIMEOUT,
            health_timeout=settings.HEALTH_TIMEOUT,
        )
        app.state.db = db
        app.state.generation_client = generation_client
        logger.info("Backend server started", extra={
            "ollama_url": settings.OLLAMA_URL,
            "model": settings.OLLAMA_MODEL,
        })
        try:
            yield
        finally:
            logger.info("Backend server shutting down")
            await generation_client.aclose()
            await db.dispose()

    app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID middleware for request tracing
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        set_request_id(request_id)
        start_time = time.perf_counter()
        logger.info("Request started", extra={
            "method": request.method,
            "path": request.url.path,
        })
        try:
            response = await call_next(request)
            logger.info("Request completed", extra={
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - start_time) * 1000, 1),
            })
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as e:
            logger.error("Request failed", extra={"error": str(e)})
            raise
        finally:
            clear_request_id()

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(chat.router)

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
