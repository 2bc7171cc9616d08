from contextlib import asynccontextmanager

from fastapi import FastAPI

from adpilot import __version__
from adpilot.config import get_config
from adpilot.logging import configure_logging
from adpilot.server.routers.whatsapp import router as whatsapp_router
from adpilot.server.runtime import get_runtime, get_runtime_async, reset_runtime


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    config = get_config()
    configure_logging(config.log_level, config.log_format)
    await get_runtime_async(config)
    yield
    await reset_runtime()


app = FastAPI(
    title="adpilot",
    description="Chat-driven ad campaign assistant - webhook server",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(whatsapp_router)


@app.get("/health")
async def health():
    runtime = get_runtime()
    return {
        "status": "ok",
        "store": runtime.config.store,
        "transport": runtime.transport.channel if runtime.transport else None,
    }
