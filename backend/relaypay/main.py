"""RelayPay API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map RelayPayError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Hub initialized and liveness sweep started on startup via lifespan
    - Shutdown: stop the sweep, close every socket channel, let HTTP responses finish

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py to keep this module thin
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relaypay.api.error_handlers import register_error_handlers
from relaypay.infrastructure.observability import setup_logging
from relaypay.services.hub import init_hub
from relaypay.config import get_settings
from relaypay.api.routes import health, ledger, chat_socket, ledger_socket

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    hub = init_hub(settings)
    sweep_task = asyncio.create_task(hub.sweep.run())
    logger.info("RelayPay API started")
    yield
    logger.info("RelayPay API shutting down")
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass
    hub.shutdown()


app = FastAPI(
    title="RelayPay API", version="1.0.0", lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(ledger.router)
app.include_router(chat_socket.router)
app.include_router(ledger_socket.router)

register_error_handlers(app)


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "relaypay.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
