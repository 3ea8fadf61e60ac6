"""
OnceDrop Drop Gate API Routes
HTTP adapter onto the drop gate service

- Gate status (state, config, persisted record)
- Config reload
- Kill / loot occurrence adapters for hosts that dispatch over HTTP
- Recent announcements
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from config.service_registry import get_service, DROP_GATE_SERVICE
from config.settings import drop_gate_options
from drop_gate.src.drop_config import load_drop_config
from drop_gate.src.models import Actor, KilledEntity, LootContainer, LootItem, LootSource
from drop_gate.src.orchestrator import DropGateService
from gateway.src.realtime import get_realtime_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/once-drop", tags=["Once Drop"])


def get_drop_gate_service() -> DropGateService:
    try:
        return get_service(DROP_GATE_SERVICE)
    except ValueError:
        raise HTTPException(status_code=503, detail="Drop gate service not initialized")


# =============================================================================
# Request/Response Models
# =============================================================================
class ReloadRequestModel(BaseModel):
    """Config reload; options override the environment values"""
    options: Dict[str, Any] = Field(default_factory=dict, description="Raw option overrides")


class LootItemModel(BaseModel):
    item_entry: int
    count: int = 1


class KillEventModel(BaseModel):
    actor_name: str = Field(..., description="Killing player")
    actor_guid: Optional[str] = None
    entry: int = Field(..., description="Killed creature template entry")
    guid: Optional[str] = None
    name: Optional[str] = None
    items: List[LootItemModel] = Field(default_factory=list, description="Corpse loot")
    quest_items: List[LootItemModel] = Field(default_factory=list)


class KillEventResponse(BaseModel):
    granted: bool
    state: str
    items: List[LootItemModel]


class LootEventModel(BaseModel):
    actor_name: Optional[str] = Field(default=None, description="Collecting player")
    item_entry: int
    source_entry: Optional[int] = None
    source_guid: Optional[str] = None
    source_kind: str = "creature"
    source_name: Optional[str] = None


class LootEventResponse(BaseModel):
    announced: bool
    message: Optional[str] = None


# =============================================================================
# Routes
# =============================================================================
@router.get("/status")
def get_status(service: DropGateService = Depends(get_drop_gate_service)):
    return service.get_status()


@router.post("/reload")
def reload_config(
    request: ReloadRequestModel,
    service: DropGateService = Depends(get_drop_gate_service)
):
    options = drop_gate_options()
    options.update(request.options)
    state = service.on_config_loaded(load_drop_config(options), is_reload=True)
    logger.info(f"Drop gate config reloaded via API, state={state.value}")
    return service.get_status()


@router.post("/events/kill", response_model=KillEventResponse)
def kill_event(
    request: KillEventModel,
    service: DropGateService = Depends(get_drop_gate_service)
):
    container = LootContainer(
        items=[LootItem(it.item_entry, it.count) for it in request.items],
        quest_items=[LootItem(it.item_entry, it.count) for it in request.quest_items]
    )
    granted = service.on_entity_killed(
        Actor(request.actor_name, request.actor_guid),
        KilledEntity(request.entry, request.guid, request.name),
        container
    )
    return KillEventResponse(
        granted=granted,
        state=service.state.value,
        items=[LootItemModel(item_entry=it.item_entry, count=it.count) for it in container.items]
    )


@router.post("/events/loot", response_model=LootEventResponse)
def loot_event(
    request: LootEventModel,
    service: DropGateService = Depends(get_drop_gate_service)
):
    source = None
    if request.source_entry is not None:
        source = LootSource(request.source_entry, request.source_guid, request.source_kind, request.source_name)

    actor = Actor(request.actor_name) if request.actor_name else None
    message = service.on_item_collected(actor, request.item_entry, source)
    return LootEventResponse(announced=message is not None, message=message)


@router.get("/announcements")
def get_announcements(limit: int = Query(20, ge=1, le=200)):
    return {"announcements": get_realtime_service().recent_announcements(limit)}
