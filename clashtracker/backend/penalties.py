"""Round-scoped attempt counters and stacking penalties per player and action kind."""

from __future__ import annotations

from dataclasses import replace

from .models import ActionKind, PenaltyChoice, PenaltyState

BASE_GATE = 1
BLIND_GATE = 3


class PenaltyLedger:
    """In-memory ledger, cleared by the new-round signal; never persisted."""

    def __init__(self) -> None:
        self._states: dict[tuple[str, ActionKind], PenaltyState] = {}

    def _state(self, player_id: str, kind: ActionKind) -> PenaltyState:
        key = (player_id, kind)
        if key not in self._states:
            self._states[key] = PenaltyState()
        return self._states[key]

    def snapshot(self, player_id: str, kind: ActionKind) -> PenaltyState:
        state = self._states.get((player_id, kind))
        return replace(state) if state is not None else PenaltyState()

    def record_attempt(self, player_id: str, kind: ActionKind) -> tuple[int, PenaltyState]:
        state = self._state(player_id, kind)
        state.attempt_count += 1
        return state.attempt_count, replace(state)

    def apply_penalty(self, player_id: str, kind: ActionKind, choice: PenaltyChoice) -> PenaltyState:
        state = self._state(player_id, kind)
        if choice is PenaltyChoice.GATE:
            state.gate_bonus += 1
        elif choice is PenaltyChoice.DAMAGE50:
            state.damage_reduction_percent += 50
        elif choice is PenaltyChoice.DAMAGE100:
            state.damage_reduction_percent += 100
        elif choice is PenaltyChoice.BLIND:
            state.blind_applied = True
        return replace(state)

    def available_choices(self, player_id: str, kind: ActionKind) -> list[PenaltyChoice]:
        blind_applied = self.snapshot(player_id, kind).blind_applied
        return [choice for choice in PenaltyChoice if not (choice is PenaltyChoice.BLIND and blind_applied)]

    def effective_gate(self, player_id: str, kind: ActionKind) -> int:
        state = self.snapshot(player_id, kind)
        if state.blind_applied:
            return BLIND_GATE
        return BASE_GATE + state.gate_bonus

    def effective_modifier(self, player_id: str, kind: ActionKind, raw_modifier: int) -> int:
        remaining_percent = max(0, 100 - self.snapshot(player_id, kind).damage_reduction_percent)
        return (raw_modifier * remaining_percent) // 100

    def reset_all(self) -> None:
        self._states.clear()

    def reset_one(self, player_id: str, kind: ActionKind) -> None:
        self._states.pop((player_id, kind), None)
