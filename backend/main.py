"""FastAPI entry point - thin layer over the community graph."""

import asyncio
import dataclasses
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any, Literal

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from core.categories import parse_category
from core.models import (
    HOURS_IN_WINDOW,
    CommunityDataset,
    Entity,
    EntityCategory,
    FilterCriteria,
    V2GFilter,
    entity_category,
)
from data import SAMPLE_COMMUNITY, DatasetLoadError, load_dataset
from interaction.panel import detail_panel
from pipeline import KpiScope, category_flow_summary, default_criteria, entity_flow_history, project
from services import GraphView, PerformanceGovernor, PerformanceMode

logging.basicConfig(level=logging.WARNING, format="%(name)s | %(message)s")
logging.getLogger("data.loader").setLevel(logging.INFO)
logging.getLogger("simulation.engine").setLevel(logging.INFO)
logging.getLogger("services.performance").setLevel(logging.INFO)

logger = logging.getLogger(__name__)

DATASET_SOURCE: str | None = os.environ.get("COMMUNITY_DATASET")
FRAME_INTERVAL_S = float(os.environ.get("GRAPH_FRAME_INTERVAL_S", 1 / 30))
PERFORMANCE_MODE = PerformanceMode(os.environ.get("GRAPH_PERFORMANCE_MODE", PerformanceMode.AUTO))

# --- module-level state, set once at startup ---
dataset: CommunityDataset | None = None
load_error: str | None = None


async def _load() -> None:
    global dataset, load_error
    try:
        dataset = SAMPLE_COMMUNITY if DATASET_SOURCE is None else await load_dataset(DATASET_SOURCE)
        load_error = None
    except DatasetLoadError as exc:
        logger.error("Dataset unavailable: %s", exc)
        dataset, load_error = None, str(exc)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    await _load()
    yield


app = FastAPI(title="Community Flow Graph API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_dataset() -> CommunityDataset:
    if dataset is None:
        raise HTTPException(status_code=503, detail=load_error or "Dataset not loaded")
    return dataset


def _entity_json(entity: Entity) -> dict[str, Any]:
    return {"category": entity_category(entity).value, **dataclasses.asdict(entity)}


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class FilterPayload(BaseModel):
    categories: list[EntityCategory] | None = None  # None = all
    owners: list[str] = []
    v2g: V2GFilter = V2GFilter.ANY
    capacity_min: float = Field(0.0, ge=0)
    capacity_max: float | None = Field(None, ge=0)  # None = dataset default
    min_flow: float = Field(0.0, ge=0)

    @field_validator("categories", mode="before")
    @classmethod
    def _parse_categories(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        parsed = []
        for raw in value:
            category = parse_category(raw) if isinstance(raw, str) else None
            if category is None:
                raise ValueError(f"unknown category {raw!r}")
            parsed.append(category)
        return parsed

    def to_criteria(self, community: CommunityDataset) -> FilterCriteria:
        default = default_criteria(community)
        return FilterCriteria(
            categories=frozenset(self.categories) if self.categories is not None else default.categories,
            owners=frozenset(self.owners),
            v2g=self.v2g,
            capacity_min=self.capacity_min,
            capacity_max=self.capacity_max if self.capacity_max is not None else default.capacity_max,
            min_flow=self.min_flow,
        )


class GraphQuery(BaseModel):
    hour: int = Field(0, ge=0, le=HOURS_IN_WINDOW - 1)
    filters: FilterPayload = FilterPayload()
    kpi_scope: KpiScope = KpiScope.COMMUNITY


# ---------------------------------------------------------------------------
# HTTP endpoints
# ---------------------------------------------------------------------------


def _graph_response(community: CommunityDataset, query: GraphQuery) -> dict[str, Any]:
    projection = project(community, query.filters.to_criteria(community), query.hour, query.kpi_scope)
    return {
        "hour": projection.hour,
        "topology_key": projection.topology_key,
        "filter_key": projection.filter_key,
        "entities": [_entity_json(e) for e in projection.entities],
        "connections": [
            {"source": c.source, "target": c.target, "flow": c.flow_at(projection.hour)} for c in projection.connections
        ],
        "kpis": dataclasses.asdict(projection.kpis),
    }


@app.get("/health")
def get_health() -> dict[str, str]:
    if dataset is None:
        return {"status": "error", "message": load_error or "Dataset not loaded"}
    return {"status": "ok"}


@app.get("/graph")
def get_graph(hour: int = Query(0, ge=0, le=HOURS_IN_WINDOW - 1)) -> dict[str, Any]:
    """Filtered graph at ``hour`` under the default filters."""
    return _graph_response(_require_dataset(), GraphQuery(hour=hour))


@app.post("/graph")
def query_graph(query: GraphQuery) -> dict[str, Any]:
    return _graph_response(_require_dataset(), query)


@app.get("/kpis")
def get_kpis() -> dict[str, Any]:
    community = _require_dataset()
    kpis = project(community, default_criteria(community), 0).kpis
    return {**dataclasses.asdict(kpis), "community_kpis": community.community_kpis, "owners": community.owners()}


@app.get("/flows/summary")
def get_flow_summary(hour: int = Query(0, ge=0, le=HOURS_IN_WINDOW - 1)) -> list[dict[str, Any]]:
    return [dataclasses.asdict(row) for row in category_flow_summary(_require_dataset(), hour)]


@app.get("/entities/{entity_id}")
def get_entity(entity_id: str) -> dict[str, Any]:
    community = _require_dataset()
    entity = community.entity(entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail=f"Unknown entity {entity_id}")
    return {"entity": _entity_json(entity), "panel": dataclasses.asdict(detail_panel(entity, community.connections))}


@app.get("/entities/{entity_id}/history")
def get_entity_history(entity_id: str) -> dict[str, Any]:
    community = _require_dataset()
    if community.entity(entity_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown entity {entity_id}")
    return dataclasses.asdict(entity_flow_history(entity_id, community.connections))


# ---------------------------------------------------------------------------
# WebSocket messages
# ---------------------------------------------------------------------------


class FiltersMessage(BaseModel):
    type: Literal["filters"]
    filters: FilterPayload


class HourMessage(BaseModel):
    type: Literal["hour"]
    hour: int = Field(ge=0, le=HOURS_IN_WINDOW - 1)


class PlayingMessage(BaseModel):
    type: Literal["playing"]
    playing: bool


class ResizeMessage(BaseModel):
    type: Literal["resize"]
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class PointerMessage(BaseModel):
    type: Literal["pointer"]
    action: Literal["move", "down", "up", "leave"]
    x: float = 0.0
    y: float = 0.0


class ZoomMessage(BaseModel):
    type: Literal["zoom"]
    factor: float = Field(gt=0)
    x: float
    y: float


class PanMessage(BaseModel):
    type: Literal["pan"]
    dx: float
    dy: float


class FitMessage(BaseModel):
    type: Literal["fit"]


class ThemeMessage(BaseModel):
    type: Literal["theme"]
    dark: bool


class FpsMessage(BaseModel):
    type: Literal["fps"]
    fps: float = Field(ge=0)


class PerformanceMessage(BaseModel):
    type: Literal["performance"]
    mode: PerformanceMode


ClientMessage = Annotated[
    FiltersMessage
    | HourMessage
    | PlayingMessage
    | ResizeMessage
    | PointerMessage
    | ZoomMessage
    | PanMessage
    | FitMessage
    | ThemeMessage
    | FpsMessage
    | PerformanceMessage,
    Field(discriminator="type"),
]
client_message_adapter: TypeAdapter[Any] = TypeAdapter(ClientMessage)


def _dispatch(view: GraphView, community: CommunityDataset, message: BaseModel, now: float) -> None:
    match message:
        case FiltersMessage(filters=payload):
            view.set_filters(payload.to_criteria(community))
        case HourMessage(hour=hour):
            view.set_hour(hour)
        case PlayingMessage(playing=playing):
            view.set_playing(playing)
        case ResizeMessage(width=width, height=height):
            view.set_dimensions(width, height)
        case PointerMessage(action="move", x=x, y=y):
            view.pointer_move(x, y)
        case PointerMessage(action="down", x=x, y=y):
            view.pointer_down(x, y)
        case PointerMessage(action="up", x=x, y=y):
            view.pointer_up(x, y)
        case PointerMessage(action="leave"):
            view.pointer_leave()
        case ZoomMessage(factor=factor, x=x, y=y):
            view.zoom(factor, x, y)
        case PanMessage(dx=dx, dy=dy):
            view.pan(dx, dy)
        case FitMessage():
            view.fit_to_view(now)
        case ThemeMessage(dark=dark):
            view.set_dark(dark)
        case FpsMessage(fps=fps):
            view.report_fps(fps)
        case PerformanceMessage(mode=mode):
            view.set_performance_mode(mode)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    community = dataset
    if community is None:
        await websocket.send_json({"status": "error", "message": load_error or "Dataset not loaded"})
        await websocket.close()
        return

    governor = PerformanceGovernor(mode=PERFORMANCE_MODE, target_fps=1 / FRAME_INTERVAL_S)
    view = GraphView(community, governor=governor)
    loop = asyncio.get_running_loop()
    started = loop.time()
    send_lock = asyncio.Lock()

    async def receive() -> None:
        while True:
            text = await websocket.receive_text()
            try:
                message = client_message_adapter.validate_json(text)
            except ValidationError:
                async with send_lock:
                    await websocket.send_json({"status": "invalid"})
                continue
            _dispatch(view, community, message, loop.time() - started)

    receiver = asyncio.create_task(receive())
    try:
        while not receiver.done():
            frame = view.advance_frame(loop.time() - started)
            if frame is not None:
                async with send_lock:
                    await websocket.send_json(dataclasses.asdict(frame))
            await asyncio.sleep(FRAME_INTERVAL_S)
        receiver.result()
    except WebSocketDisconnect:
        pass
    finally:
        receiver.cancel()
        view.teardown()
