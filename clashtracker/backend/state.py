"""State builders and snapshot codecs for players and the encounter."""

from __future__ import annotations

from typing import Any

from .models import EncounterState, PlayerRecord, ResourceKind, StatusEffect


def build_initial_player(player_id: str, display_name: str, character_name: str | None = None) -> PlayerRecord:
    """Return a zeroed player record; the character name defaults to the display name."""
    return PlayerRecord(
        player_id=player_id,
        display_name=display_name,
        character_name=character_name or display_name,
    )


def build_initial_encounter() -> EncounterState:
    return EncounterState(active=False, combatants=[])


def player_to_dict(record: PlayerRecord) -> dict[str, Any]:
    """Serialize a player using the field names of the flat-file layout."""
    payload: dict[str, Any] = {
        "username": record.display_name,
        "characterName": record.character_name,
    }
    for kind, pool in record.pools().items():
        payload[kind.value] = pool.current
    for kind, pool in record.pools().items():
        payload[f"max{kind.value}"] = pool.max
    payload["statusEffects"] = [{"name": effect.name, "duration": effect.duration} for effect in record.status_effects]
    return payload


def player_from_dict(player_id: str, payload: dict[str, Any]) -> PlayerRecord:
    display_name = str(payload.get("username") or player_id)
    record = build_initial_player(
        player_id=player_id,
        display_name=display_name,
        character_name=payload.get("characterName") or display_name,
    )
    for kind in ResourceKind:
        pool = record.pool(kind)
        pool.current = int(payload.get(kind.value, 0) or 0)
        pool.max = int(payload.get(f"max{kind.value}", 0) or 0)
    record.status_effects = [
        StatusEffect(name=str(effect["name"]), duration=int(effect.get("duration", 0)))
        for effect in payload.get("statusEffects") or []
        if isinstance(effect, dict) and "name" in effect
    ]
    return record


def encounter_to_dict(encounter: EncounterState) -> dict[str, Any]:
    return {"active": encounter.active, "combatants": list(encounter.combatants)}


def encounter_from_dict(payload: dict[str, Any] | None) -> EncounterState:
    if not payload:
        return build_initial_encounter()
    combatants: list[str] = []
    for player_id in payload.get("combatants") or []:
        player_id = str(player_id)
        if player_id not in combatants:
            combatants.append(player_id)
    return EncounterState(active=bool(payload.get("active", False)), combatants=combatants)


def copy_player(record: PlayerRecord) -> PlayerRecord:
    return player_from_dict(record.player_id, player_to_dict(record))


def copy_encounter(encounter: EncounterState) -> EncounterState:
    return encounter_from_dict(encounter_to_dict(encounter))
