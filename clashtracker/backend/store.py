"""Persistence interfaces and implementations for tracker data."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol

from clashtracker.backend.models import EncounterState, PlayerRecord
from clashtracker.backend.state import (
    build_initial_encounter,
    copy_encounter,
    copy_player,
    encounter_from_dict,
    encounter_to_dict,
    player_from_dict,
    player_to_dict,
)

logger = logging.getLogger(__name__)

Snapshot = tuple[dict[str, PlayerRecord], EncounterState]


class TrackerStore(Protocol):
    def load_all(self) -> Snapshot:
        """Return every player record and the encounter state."""

    def save_all(self, players: dict[str, PlayerRecord], encounter: EncounterState) -> bool:
        """Replace stored state with the given snapshot; False when the write failed."""

    def delete_one(self, player_id: str) -> bool:
        """Remove one player record; False when the write failed."""


@dataclass
class InMemoryTrackerStore:
    def __post_init__(self) -> None:
        self._players: dict[str, PlayerRecord] = {}
        self._encounter = build_initial_encounter()

    def load_all(self) -> Snapshot:
        players = {player_id: copy_player(record) for player_id, record in self._players.items()}
        return players, copy_encounter(self._encounter)

    def save_all(self, players: dict[str, PlayerRecord], encounter: EncounterState) -> bool:
        self._players = {player_id: copy_player(record) for player_id, record in players.items()}
        self._encounter = copy_encounter(encounter)
        return True

    def delete_one(self, player_id: str) -> bool:
        self._players.pop(player_id, None)
        return True


@dataclass
class JsonFileTrackerStore:
    """Single JSON document ``{"players": {...}, "encounter": {...}}``."""

    path: Path

    def load_all(self) -> Snapshot:
        document = self._read()
        if document is None:
            return {}, build_initial_encounter()
        if "players" in document:
            raw_players = document.get("players") or {}
        else:
            # Older files stored the player mapping at the top level.
            raw_players = {key: value for key, value in document.items() if key != "encounter"}
        if not isinstance(raw_players, dict):
            logger.error("Ignoring malformed player mapping in %s", self.path)
            raw_players = {}
        players = {}
        for player_id, payload in raw_players.items():
            if not isinstance(payload, dict):
                continue
            try:
                players[str(player_id)] = player_from_dict(str(player_id), payload)
            except (TypeError, ValueError, AttributeError):
                logger.error("Skipping unreadable record for player %s in %s", player_id, self.path, exc_info=True)
        raw_encounter = document.get("encounter")
        try:
            encounter = encounter_from_dict(raw_encounter if isinstance(raw_encounter, dict) else None)
        except TypeError:
            logger.error("Ignoring unreadable encounter in %s", self.path, exc_info=True)
            encounter = build_initial_encounter()
        logger.info("Loaded data for %d players from %s", len(players), self.path)
        return players, encounter

    def save_all(self, players: dict[str, PlayerRecord], encounter: EncounterState) -> bool:
        document = {
            "players": {player_id: player_to_dict(record) for player_id, record in players.items()},
            "encounter": encounter_to_dict(encounter),
        }
        if not self._write(document):
            return False
        logger.debug("Data saved for %d players", len(players))
        return True

    def delete_one(self, player_id: str) -> bool:
        players, encounter = self.load_all()
        players.pop(player_id, None)
        return self.save_all(players, encounter)

    def _read(self) -> dict[str, Any] | None:
        if not self.path.exists():
            logger.info("No existing data file at %s, starting fresh", self.path)
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                document = json.load(handle)
        except (OSError, ValueError):
            logger.error("Error loading data from %s, starting with empty data", self.path, exc_info=True)
            return None
        return document if isinstance(document, dict) else None

    def _write(self, document: dict[str, Any]) -> bool:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError:
            logger.error("Error saving data to %s", self.path, exc_info=True)
            return False
        return True


_PLAYER_COLUMNS = (
    "username",
    "character_name",
    "hp",
    "max_hp",
    "mp",
    "max_mp",
    "ip",
    "max_ip",
    "armor",
    "max_armor",
    "barrier",
    "max_barrier",
    "status_effects",
)


def _player_row(record: PlayerRecord) -> tuple[Any, ...]:
    payload = player_to_dict(record)
    return (
        record.player_id,
        payload["username"],
        payload["characterName"],
        payload["HP"],
        payload["maxHP"],
        payload["MP"],
        payload["maxMP"],
        payload["IP"],
        payload["maxIP"],
        payload["Armor"],
        payload["maxArmor"],
        payload["Barrier"],
        payload["maxBarrier"],
        json.dumps(payload["statusEffects"]),
    )


def _player_from_row(row: tuple[Any, ...]) -> PlayerRecord:
    player_id, *values = row
    columns = dict(zip(_PLAYER_COLUMNS, values))
    status_effects = columns["status_effects"]
    if isinstance(status_effects, str):
        status_effects = json.loads(status_effects)
    return player_from_dict(
        str(player_id),
        {
            "username": columns["username"],
            "characterName": columns["character_name"],
            "HP": columns["hp"],
            "maxHP": columns["max_hp"],
            "MP": columns["mp"],
            "maxMP": columns["max_mp"],
            "IP": columns["ip"],
            "maxIP": columns["max_ip"],
            "Armor": columns["armor"],
            "maxArmor": columns["max_armor"],
            "Barrier": columns["barrier"],
            "maxBarrier": columns["max_barrier"],
            "statusEffects": status_effects,
        },
    )


@dataclass
class PostgresTrackerStore:
    database_url: str

    def _connect(self) -> Any:
        import psycopg

        return psycopg.connect(self.database_url)

    def load_all(self) -> Snapshot:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, username, character_name, hp, max_hp, mp, max_mp, ip, max_ip,
                           armor, max_armor, barrier, max_barrier, status_effects
                    FROM players
                    ORDER BY created_at, id
                    """
                )
                rows = cur.fetchall()
                cur.execute("SELECT active, combatants FROM encounter WHERE id = 1")
                encounter_row = cur.fetchone()

        players = {}
        for row in rows:
            record = _player_from_row(row)
            players[record.player_id] = record

        encounter = build_initial_encounter()
        if encounter_row is not None:
            active, combatants = encounter_row
            if isinstance(combatants, str):
                combatants = json.loads(combatants)
            encounter = encounter_from_dict({"active": active, "combatants": combatants})
        logger.info("Loaded data for %d players from database", len(players))
        return players, encounter

    def save_all(self, players: dict[str, PlayerRecord], encounter: EncounterState) -> bool:
        import psycopg

        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "DELETE FROM players WHERE NOT (id = ANY(%s))",
                        (list(players.keys()),),
                    )
                    for record in players.values():
                        cur.execute(
                            """
                            INSERT INTO players (id, username, character_name, hp, max_hp, mp, max_mp, ip, max_ip,
                                                 armor, max_armor, barrier, max_barrier, status_effects)
                            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s::jsonb)
                            ON CONFLICT (id) DO UPDATE SET
                                username = EXCLUDED.username,
                                character_name = EXCLUDED.character_name,
                                hp = EXCLUDED.hp,
                                max_hp = EXCLUDED.max_hp,
                                mp = EXCLUDED.mp,
                                max_mp = EXCLUDED.max_mp,
                                ip = EXCLUDED.ip,
                                max_ip = EXCLUDED.max_ip,
                                armor = EXCLUDED.armor,
                                max_armor = EXCLUDED.max_armor,
                                barrier = EXCLUDED.barrier,
                                max_barrier = EXCLUDED.max_barrier,
                                status_effects = EXCLUDED.status_effects
                            """,
                            _player_row(record),
                        )
                    cur.execute(
                        """
                        INSERT INTO encounter (id, active, combatants)
                        VALUES (1, %s, %s::jsonb)
                        ON CONFLICT (id) DO UPDATE SET
                            active = EXCLUDED.active,
                            combatants = EXCLUDED.combatants
                        """,
                        (encounter.active, json.dumps(list(encounter.combatants))),
                    )
                conn.commit()
        except (psycopg.Error, OSError):
            logger.error("Error saving data for %d players to database", len(players), exc_info=True)
            return False
        return True

    def delete_one(self, player_id: str) -> bool:
        import psycopg

        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM players WHERE id = %s", (player_id,))
                conn.commit()
        except (psycopg.Error, OSError):
            logger.error("Error deleting player %s from database", player_id, exc_info=True)
            return False
        return True


def create_store(database_url: str | None, data_file: str | None = None) -> TrackerStore:
    if database_url:
        return PostgresTrackerStore(database_url=database_url)
    if data_file:
        return JsonFileTrackerStore(path=Path(data_file))
    return InMemoryTrackerStore()
