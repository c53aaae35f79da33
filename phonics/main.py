from contextlib import asynccontextmanager
import asyncio
import logging

from fastapi import FastAPI

from phonics.api.routes import router
from phonics.session_registry import registry
from phonics.settings import load_settings

# Configure logging
logging.basicConfig(level=getattr(logging, load_settings().log_level, logging.INFO))
logger = logging.getLogger(__name__)

IDLE_SWEEP_INTERVAL_S = 60.0


async def _sweep_idle_sessions() -> None:
    while True:
        await asyncio.sleep(IDLE_SWEEP_INTERVAL_S)
        closed = registry.sweep_idle()
        if closed:
            logger.info("Idle sweep closed %d session(s); %d live", closed, len(registry))


@asynccontextmanager
async def _lifespan(_: FastAPI):
    sweeper = asyncio.create_task(_sweep_idle_sessions())
    yield
    sweeper.cancel()
    # Pending wheel/feedback timers must not outlive the loop.
    registry.close_all()


app = FastAPI(title="phonics-games", version="0.1.0", lifespan=_lifespan)
app.include_router(router)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "phonics-games", "version": "0.1.0"}
