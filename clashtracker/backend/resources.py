"""Per-player resource pools and status effects."""

from __future__ import annotations

from .errors import InvalidInputError, NotFoundError
from .models import PlayerRecord, ResourceChange, ResourceKind, StatusChange, StatusEffect, TurnAdvance
from .state import build_initial_player

# Resources refilled by a rest; IP is carried over untouched.
RESTORED_ON_REST = (ResourceKind.HP, ResourceKind.MP, ResourceKind.ARMOR, ResourceKind.BARRIER)


class ResourceStore:
    """Mapping from player id to record.

    Arithmetic on current values is unclamped unless ``clamp`` is set, in
    which case every adjustment is bounded to ``[0, max]``.
    """

    def __init__(self, players: dict[str, PlayerRecord] | None = None, clamp: bool = False) -> None:
        self.players: dict[str, PlayerRecord] = dict(players or {})
        self.clamp = clamp

    def get(self, player_id: str) -> PlayerRecord:
        record = self.players.get(player_id)
        if record is None:
            raise NotFoundError(f"No character data for player {player_id}")
        return record

    def has(self, player_id: str) -> bool:
        return player_id in self.players

    def all(self) -> list[PlayerRecord]:
        return list(self.players.values())

    def ensure(self, player_id: str, display_name: str, character_name: str | None = None) -> PlayerRecord:
        record = self.players.get(player_id)
        if record is None:
            record = build_initial_player(player_id, display_name, character_name)
            self.players[player_id] = record
            return record
        record.display_name = display_name
        if character_name:
            record.character_name = character_name
        return record

    def upsert_max(
        self,
        player_id: str,
        display_name: str,
        character_name: str,
        maxima: dict[ResourceKind, int],
    ) -> PlayerRecord:
        record = self.ensure(player_id, display_name, character_name)
        for kind in ResourceKind:
            pool = record.pool(kind)
            pool.max = int(maxima.get(kind, 0))
            if kind is not ResourceKind.IP:
                pool.current = pool.max
        return record

    def adjust(self, player_id: str, kind: ResourceKind, delta: int) -> ResourceChange:
        record = self.get(player_id)
        pool = record.pool(kind)
        old_value = pool.current
        new_value = old_value + delta
        if self.clamp:
            new_value = min(max(new_value, 0), pool.max)
        pool.current = new_value
        return self._change(record, kind, old_value)

    def set_to_max(self, kind: ResourceKind, player_id: str) -> ResourceChange:
        record = self.get(player_id)
        pool = record.pool(kind)
        old_value = pool.current
        pool.current = pool.max
        return self._change(record, kind, old_value)

    def set_to_zero(self, kind: ResourceKind, player_id: str) -> ResourceChange:
        record = self.get(player_id)
        pool = record.pool(kind)
        old_value = pool.current
        pool.current = 0
        return self._change(record, kind, old_value)

    def rest(self, player_id: str) -> PlayerRecord:
        record = self.get(player_id)
        for kind in RESTORED_ON_REST:
            pool = record.pool(kind)
            pool.current = pool.max
        return record

    def add_or_update_status(self, player_id: str, name: str, duration: int) -> StatusChange:
        name = name.strip()
        if not name:
            raise InvalidInputError("Status name must not be blank")
        record = self.get(player_id)
        existing = _find_status(record, name)
        if existing is not None:
            existing.duration = duration
            return StatusChange(player_id, record.character_name, StatusEffect(existing.name, duration), updated=True)
        effect = StatusEffect(name=name, duration=duration)
        record.status_effects.append(effect)
        return StatusChange(player_id, record.character_name, StatusEffect(name, duration), updated=False)

    def remove_status(self, player_id: str, name: str) -> StatusEffect:
        record = self.get(player_id)
        existing = _find_status(record, name)
        if existing is None:
            raise NotFoundError(f"{record.character_name} doesn't have the status {name}")
        record.status_effects.remove(existing)
        return existing

    def advance_turn(self, player_id: str) -> TurnAdvance:
        record = self.get(player_id)
        if not record.status_effects:
            raise NotFoundError(f"{record.character_name} has no status effects to tick")
        expired: list[StatusEffect] = []
        remaining: list[StatusEffect] = []
        for effect in record.status_effects:
            effect.duration -= 1
            if effect.duration <= 0:
                expired.append(effect)
            else:
                remaining.append(effect)
        record.status_effects = remaining
        return TurnAdvance(
            player_id=player_id,
            character_name=record.character_name,
            expired=[StatusEffect(effect.name, effect.duration) for effect in expired],
            remaining=[StatusEffect(effect.name, effect.duration) for effect in remaining],
        )

    def delete(self, player_id: str) -> PlayerRecord:
        record = self.players.pop(player_id, None)
        if record is None:
            raise NotFoundError(f"No character data for player {player_id}")
        return record

    def clear(self) -> int:
        count = len(self.players)
        self.players.clear()
        return count

    def _change(self, record: PlayerRecord, kind: ResourceKind, old_value: int) -> ResourceChange:
        pool = record.pool(kind)
        return ResourceChange(
            player_id=record.player_id,
            character_name=record.character_name,
            kind=kind,
            old_value=old_value,
            new_value=pool.current,
            max_value=pool.max,
        )


def _find_status(record: PlayerRecord, name: str) -> StatusEffect | None:
    target = name.strip().lower()
    for effect in record.status_effects:
        if effect.name.strip().lower() == target:
            return effect
    return None
