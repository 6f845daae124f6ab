"""FastAPI endpoints the chat gateway calls for every tracker command."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import BackendSettings, load_settings
from .engine import TrackerEngine
from .errors import InvalidInputError, TrackerError, UnauthorizedError
from .messages import (
    GUIDE,
    render_all_players,
    render_combatant_changes,
    render_maxima_set,
    render_outcome,
    render_pending,
    render_player,
    render_resolved,
    render_resource_change,
    render_rest,
    render_roster,
    render_status_change,
    render_status_removed,
    render_turn_advance,
)
from .models import ActionKind, PenaltyChoice, PendingChoice, ResourceKind
from .security import hash_token, verify_token
from .store import create_store


class CommandResponse(BaseModel):
    result: Any = None
    message: str


class PlayerRef(BaseModel):
    display_name: str = Field(min_length=1, max_length=100)


class SetMaximaRequest(PlayerRef):
    character_name: str = Field(min_length=1, max_length=100)
    hp: int
    mp: int
    ip: int
    armor: int
    barrier: int


class ResourceUpdateRequest(PlayerRef):
    amount: int | str


class StatusRequest(PlayerRef):
    name: str = Field(min_length=1, max_length=100)
    duration: int


class CombatantsRequest(BaseModel):
    player_ids: list[str] = Field(min_length=1)


class ActorRequest(BaseModel):
    actor_id: str = Field(min_length=1)
    actor_name: str = Field(min_length=1, max_length=100)


class ActionRollRequest(ActorRequest):
    die1: int
    die2: int
    modifier: int = 0
    penalty: PenaltyChoice | None = None


class ResumeAttackRequest(ActorRequest):
    token: str = Field(min_length=1)
    penalty: PenaltyChoice


class CheckRequest(BaseModel):
    die1: int
    die2: int
    gate: int = Field(ge=0)


class ResetPenaltyRequest(BaseModel):
    kind: ActionKind


def _default_engine(settings: BackendSettings) -> TrackerEngine:
    store = create_store(database_url=settings.database_url, data_file=settings.data_file)
    return TrackerEngine(store=store, server_salt=settings.server_salt, clamp_resources=settings.clamp_resources)


def _parse_kind(raw: str) -> ResourceKind:
    try:
        return ResourceKind.parse(raw)
    except ValueError:
        raise InvalidInputError(f"Unknown resource {raw}") from None


def create_app(engine: TrackerEngine | None = None, settings: BackendSettings | None = None) -> FastAPI:
    app = FastAPI(title="Clash Tracker API", version="0.3.0")
    app_settings = settings if settings is not None else load_settings()
    tracker = engine if engine is not None else _default_engine(app_settings)
    gm_hash = hash_token(app_settings.gm_token, app_settings.server_salt)
    app.state.engine = tracker

    @app.exception_handler(TrackerError)
    async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.reason, "kind": exc.kind})

    def get_engine() -> TrackerEngine:
        return tracker

    def require_gm(x_gm_token: str | None = Header(default=None)) -> None:
        if not x_gm_token or not verify_token(x_gm_token, gm_hash, app_settings.server_salt):
            raise UnauthorizedError("This command is GM only")

    def character_names(local_engine: TrackerEngine) -> dict[str, str]:
        return {record.player_id: record.character_name for record in local_engine.view_all()}

    @app.get("/api/guide", response_model=CommandResponse)
    def guide() -> CommandResponse:
        return CommandResponse(message=GUIDE)

    @app.get("/api/players", response_model=CommandResponse)
    def view_all(local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        records = local_engine.view_all()
        return CommandResponse(result=jsonable_encoder(records), message=render_all_players(records))

    @app.delete("/api/players", response_model=CommandResponse, dependencies=[Depends(require_gm)])
    def reset_players(local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        count = local_engine.reset_players()
        return CommandResponse(result={"removed": count}, message="⚠️ All Player Data Reset")

    @app.get("/api/players/{player_id}", response_model=CommandResponse)
    def view_player(
        player_id: str,
        name: str = Query(min_length=1),
        local_engine: TrackerEngine = Depends(get_engine),
    ) -> CommandResponse:
        record = local_engine.view(player_id, name)
        return CommandResponse(result=jsonable_encoder(record), message=render_player(record))

    @app.delete("/api/players/{player_id}", response_model=CommandResponse, dependencies=[Depends(require_gm)])
    def delete_player(player_id: str, local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        record = local_engine.delete_player(player_id)
        return CommandResponse(result=jsonable_encoder(record), message=f"🗑️ {record.character_name} removed")

    @app.put("/api/players/{player_id}/maxima", response_model=CommandResponse)
    def set_maxima(
        player_id: str,
        payload: SetMaximaRequest,
        local_engine: TrackerEngine = Depends(get_engine),
    ) -> CommandResponse:
        record = local_engine.set_maxima(
            player_id,
            payload.display_name,
            payload.character_name,
            {
                ResourceKind.HP: payload.hp,
                ResourceKind.MP: payload.mp,
                ResourceKind.IP: payload.ip,
                ResourceKind.ARMOR: payload.armor,
                ResourceKind.BARRIER: payload.barrier,
            },
        )
        return CommandResponse(result=jsonable_encoder(record), message=render_maxima_set(record))

    @app.post("/api/players/{player_id}/resources/{kind}", response_model=CommandResponse)
    def update_resource(
        player_id: str,
        kind: str,
        payload: ResourceUpdateRequest,
        local_engine: TrackerEngine = Depends(get_engine),
    ) -> CommandResponse:
        change = local_engine.update_resource(player_id, payload.display_name, _parse_kind(kind), payload.amount)
        return CommandResponse(result=jsonable_encoder(change), message=render_resource_change(change))

    @app.post("/api/players/{player_id}/rest", response_model=CommandResponse)
    def rest(player_id: str, payload: PlayerRef, local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        record = local_engine.rest(player_id, payload.display_name)
        return CommandResponse(result=jsonable_encoder(record), message=render_rest(record))

    @app.put("/api/players/{player_id}/statuses", response_model=CommandResponse)
    def set_status(
        player_id: str,
        payload: StatusRequest,
        local_engine: TrackerEngine = Depends(get_engine),
    ) -> CommandResponse:
        change = local_engine.set_status(player_id, payload.display_name, payload.name, payload.duration)
        return CommandResponse(result=jsonable_encoder(change), message=render_status_change(change))

    @app.delete("/api/players/{player_id}/statuses/{name}", response_model=CommandResponse)
    def remove_status(
        player_id: str,
        name: str,
        display_name: str = Query(min_length=1),
        local_engine: TrackerEngine = Depends(get_engine),
    ) -> CommandResponse:
        change = local_engine.remove_status(player_id, display_name, name)
        return CommandResponse(result=jsonable_encoder(change), message=render_status_removed(change))

    @app.post("/api/players/{player_id}/tick", response_model=CommandResponse)
    def tick(player_id: str, payload: PlayerRef, local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        advance = local_engine.advance_turn(player_id, payload.display_name)
        return CommandResponse(result=jsonable_encoder(advance), message=render_turn_advance(advance))

    @app.get("/api/encounter", response_model=CommandResponse)
    def list_combatants(local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        records = local_engine.list_combatants()
        return CommandResponse(result=jsonable_encoder(records), message=render_roster(records))

    @app.post("/api/encounter/start", response_model=CommandResponse, dependencies=[Depends(require_gm)])
    def start_encounter(local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        local_engine.start_encounter()
        return CommandResponse(
            result={"active": True},
            message="⚔️ Encounter Started! Add players with addcombatant, view them with listall.",
        )

    @app.post("/api/encounter/end", response_model=CommandResponse, dependencies=[Depends(require_gm)])
    def end_encounter(local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        count = local_engine.end_encounter()
        return CommandResponse(
            result={"active": False, "combatants": count},
            message=f"✅ Encounter Ended with {count} combatant(s).",
        )

    @app.post("/api/encounter/combatants", response_model=CommandResponse)
    def add_combatants(
        payload: CombatantsRequest,
        local_engine: TrackerEngine = Depends(get_engine),
    ) -> CommandResponse:
        changes = local_engine.add_combatants(payload.player_ids)
        return CommandResponse(
            result=jsonable_encoder(changes),
            message=render_combatant_changes(changes, character_names(local_engine), joined=True),
        )

    @app.post("/api/encounter/combatants/remove", response_model=CommandResponse)
    def remove_combatants(
        payload: CombatantsRequest,
        local_engine: TrackerEngine = Depends(get_engine),
    ) -> CommandResponse:
        changes = local_engine.remove_combatants(payload.player_ids)
        return CommandResponse(
            result=jsonable_encoder(changes),
            message=render_combatant_changes(changes, character_names(local_engine), joined=False),
        )

    @app.post("/api/rolls/attack", response_model=CommandResponse)
    def attack(payload: ActionRollRequest, local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        outcome = local_engine.attack(payload.actor_id, payload.die1, payload.die2, payload.modifier, payload.penalty)
        if isinstance(outcome, PendingChoice):
            return CommandResponse(
                result={"status": "pending", **jsonable_encoder(outcome)},
                message=render_pending(outcome, payload.actor_name),
            )
        return CommandResponse(
            result={"status": "resolved", **jsonable_encoder(outcome)},
            message=render_resolved(outcome, payload.actor_name),
        )

    @app.post("/api/rolls/attack/resume", response_model=CommandResponse)
    def resume_attack(
        payload: ResumeAttackRequest,
        local_engine: TrackerEngine = Depends(get_engine),
    ) -> CommandResponse:
        resolved = local_engine.resume_attack(payload.actor_id, payload.token, payload.penalty)
        return CommandResponse(
            result={"status": "resolved", **jsonable_encoder(resolved)},
            message=render_resolved(resolved, payload.actor_name),
        )

    @app.post("/api/rolls/cast", response_model=CommandResponse)
    def cast(payload: ActionRollRequest, local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        resolved = local_engine.cast(payload.actor_id, payload.die1, payload.die2, payload.modifier, payload.penalty)
        return CommandResponse(
            result={"status": "resolved", **jsonable_encoder(resolved)},
            message=render_resolved(resolved, payload.actor_name),
        )

    @app.post("/api/rolls/check", response_model=CommandResponse)
    def check(payload: CheckRequest, local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        outcome = local_engine.check(payload.die1, payload.die2, payload.gate)
        return CommandResponse(result=jsonable_encoder(outcome), message=render_outcome(outcome))

    @app.post("/api/rounds/next", response_model=CommandResponse, dependencies=[Depends(require_gm)])
    def next_round(local_engine: TrackerEngine = Depends(get_engine)) -> CommandResponse:
        local_engine.next_round()
        return CommandResponse(result={"reset": True}, message="🔁 New round: all attack and cast penalties cleared")

    @app.post(
        "/api/penalties/{player_id}/reset",
        response_model=CommandResponse,
        dependencies=[Depends(require_gm)],
    )
    def reset_penalty(
        player_id: str,
        payload: ResetPenaltyRequest,
        local_engine: TrackerEngine = Depends(get_engine),
    ) -> CommandResponse:
        local_engine.reset_penalty(player_id, payload.kind)
        return CommandResponse(
            result={"player_id": player_id, "kind": payload.kind.value},
            message=f"🔁 {payload.kind.value.capitalize()} penalties cleared",
        )

    return app


app = create_app()
