"""
OnceDrop API Gateway
FastAPI application hosting the once-per-server drop gate.

Endpoints:
- Drop gate status / reload
- Kill and loot occurrence adapters
- Realtime announcements (WebSocket)
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from config.settings import API_HOST, API_PORT, CREATURE_NAMES, LOG_LEVEL, LOG_FORMAT, drop_gate_options
from config.service_registry import (
    get_service, has_service, register_service, DROP_GATE_SERVICE, REALTIME_CHANNEL
)
from kernel.src.db_session import DatabaseManager
from drop_gate.src.announcer import Announcer, StaticNameResolver
from drop_gate.src.drop_config import load_drop_config
from drop_gate.src.gate_store import GateStore
from drop_gate.src.orchestrator import DropGateService
from gateway.src.realtime import RealtimeBroadcastChannel, get_realtime_service
from gateway.src.drop_gate_routes import router as drop_gate_router
from gateway.src.realtime_routes import router as realtime_router

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO), format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def build_drop_gate_service(database_url: Optional[str] = None) -> DropGateService:
    """Wire storage, broadcast and name lookup into a drop gate service."""
    channel = RealtimeBroadcastChannel(get_realtime_service())
    register_service(REALTIME_CHANNEL, channel)

    return DropGateService(
        store=GateStore(DatabaseManager(database_url)),
        announcer=Announcer(channel),
        name_resolver=StaticNameResolver(CREATURE_NAMES)
    )


# =============================================================================
# Application Lifecycle
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("OnceDrop API Gateway starting...")

    if not has_service(DROP_GATE_SERVICE):
        register_service(DROP_GATE_SERVICE, build_drop_gate_service())

    if has_service(REALTIME_CHANNEL):
        get_service(REALTIME_CHANNEL).bind_loop(asyncio.get_running_loop())

    service = get_service(DROP_GATE_SERVICE)
    state = service.on_config_loaded(load_drop_config(drop_gate_options()), is_reload=False)
    logger.info(f"Drop gate ready, state={state.value}")

    yield

    logger.info("OnceDrop API Gateway shutting down...")
    service.store.db.close()


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title="OnceDrop API",
    description="Once-per-server reward drop gate",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(drop_gate_router)
app.include_router(realtime_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "oncedrop"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
