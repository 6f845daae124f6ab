"""Encounter roster: an ordered set of combatants gated by an active flag."""

from __future__ import annotations

from .errors import InvalidStateError, NotFoundError
from .models import CombatantChanges, EncounterState, PlayerRecord
from .resources import ResourceStore


class EncounterRoster:
    def __init__(self, state: EncounterState, resources: ResourceStore) -> None:
        self.state = state
        self._resources = resources

    @property
    def active(self) -> bool:
        return self.state.active

    def start(self) -> None:
        if self.state.active:
            raise InvalidStateError("An encounter is already active. End it first.")
        self.state.active = True
        self.state.combatants = []

    def end(self) -> int:
        if not self.state.active:
            raise InvalidStateError("No active encounter to end.")
        count = len(self.state.combatants)
        self.state.active = False
        self.state.combatants = []
        return count

    def add_combatants(self, player_ids: list[str]) -> CombatantChanges:
        self._require_active()
        added: list[str] = []
        missing: list[str] = []
        duplicates: list[str] = []
        for player_id in player_ids:
            if not self._resources.has(player_id):
                missing.append(player_id)
            elif player_id in self.state.combatants:
                duplicates.append(player_id)
            else:
                self.state.combatants.append(player_id)
                added.append(player_id)
        return CombatantChanges(changed=added, missing=missing, duplicates=duplicates)

    def remove_combatants(self, player_ids: list[str]) -> CombatantChanges:
        self._require_active()
        removed: list[str] = []
        not_found: list[str] = []
        for player_id in player_ids:
            if player_id in self.state.combatants:
                self.state.combatants.remove(player_id)
                removed.append(player_id)
            else:
                not_found.append(player_id)
        return CombatantChanges(changed=removed, not_found=not_found)

    def list(self) -> list[PlayerRecord]:
        self._require_active()
        if not self.state.combatants:
            raise NotFoundError("No combatants in the current encounter.")
        return [self._resources.players[player_id] for player_id in self.state.combatants if self._resources.has(player_id)]

    def discard(self, player_ids: list[str]) -> bool:
        """Drop ids without the active-state precondition; used when records are deleted."""
        before = len(self.state.combatants)
        self.state.combatants = [player_id for player_id in self.state.combatants if player_id not in player_ids]
        return len(self.state.combatants) != before

    def _require_active(self) -> None:
        if not self.state.active:
            raise InvalidStateError("No active encounter. Start one first.")
