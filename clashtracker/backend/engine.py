"""Command core: routes requests into the resource store, roster, ledger and dice."""

from __future__ import annotations

import functools
import logging
import random
import threading
from typing import Any, Callable, TypeVar

from clashtracker.backend import dice
from clashtracker.backend.encounter import EncounterRoster
from clashtracker.backend.errors import InvalidInputError, NotFoundError, UnauthorizedError
from clashtracker.backend.models import (
    ActionKind,
    CombatantChanges,
    PenaltyChoice,
    PendingChoice,
    PlayerRecord,
    Resolved,
    ResourceChange,
    ResourceKind,
    RollOutcome,
    StatusChange,
    TurnAdvance,
)
from clashtracker.backend.penalties import PenaltyLedger
from clashtracker.backend.resources import ResourceStore
from clashtracker.backend.security import generate_nonce, sign_context, unsign_context
from clashtracker.backend.state import copy_player
from clashtracker.backend.store import TrackerStore

logger = logging.getLogger(__name__)

# An attack from this attempt onwards needs a penalty before it is rolled.
FORCED_CHOICE_ATTEMPT = 2
# Older unanswered prompts of the same player are discarded beyond this many.
MAX_PENDING_PER_PLAYER = 5

_F = TypeVar("_F", bound=Callable[..., Any])


def _locked(method: _F) -> _F:
    @functools.wraps(method)
    def wrapper(self: "TrackerEngine", *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def parse_amount(raw: str | int) -> int | str:
    """Return a signed delta, or the sentinel ``"full"`` / ``"zero"``."""
    if isinstance(raw, int):
        return raw
    text = raw.strip().lower()
    if text in ("full", "zero"):
        return text
    try:
        return int(text)
    except ValueError:
        raise InvalidInputError('Please enter a valid number, "full" or "zero"') from None


class TrackerEngine:
    def __init__(
        self,
        store: TrackerStore,
        server_salt: str,
        rng: dice.RandomSource | None = None,
        clamp_resources: bool = False,
    ) -> None:
        self._store = store
        self._server_salt = server_salt
        self._rng = rng if rng is not None else random.Random()
        self._lock = threading.RLock()
        players, encounter = store.load_all()
        self.resources = ResourceStore(players, clamp=clamp_resources)
        self.roster = EncounterRoster(encounter, self.resources)
        self.ledger = PenaltyLedger()
        self._pending: dict[str, str] = {}

    def _flush(self) -> None:
        if not self._store.save_all(self.resources.players, self.roster.state):
            logger.warning("Persistence flush failed, keeping in-memory state")

    # Resource store

    @_locked
    def view(self, player_id: str, display_name: str) -> PlayerRecord:
        record = self.resources.ensure(player_id, display_name)
        self._flush()
        return copy_player(record)

    @_locked
    def view_all(self) -> list[PlayerRecord]:
        return [copy_player(record) for record in self.resources.all()]

    @_locked
    def set_maxima(
        self,
        player_id: str,
        display_name: str,
        character_name: str,
        maxima: dict[ResourceKind, int],
    ) -> PlayerRecord:
        record = self.resources.upsert_max(player_id, display_name, character_name, maxima)
        self._flush()
        return copy_player(record)

    @_locked
    def update_resource(self, player_id: str, display_name: str, kind: ResourceKind, amount: str | int) -> ResourceChange:
        parsed = parse_amount(amount)
        self.resources.ensure(player_id, display_name)
        if parsed == "full":
            change = self.resources.set_to_max(kind, player_id)
        elif parsed == "zero":
            change = self.resources.set_to_zero(kind, player_id)
        else:
            change = self.resources.adjust(player_id, kind, int(parsed))
        self._flush()
        return change

    @_locked
    def rest(self, player_id: str, display_name: str) -> PlayerRecord:
        self.resources.ensure(player_id, display_name)
        record = self.resources.rest(player_id)
        self._flush()
        return copy_player(record)

    @_locked
    def set_status(self, player_id: str, display_name: str, name: str, duration: int) -> StatusChange:
        self.resources.ensure(player_id, display_name)
        change = self.resources.add_or_update_status(player_id, name, duration)
        self._flush()
        return change

    @_locked
    def remove_status(self, player_id: str, display_name: str, name: str) -> StatusChange:
        record = self.resources.ensure(player_id, display_name)
        removed = self.resources.remove_status(player_id, name)
        self._flush()
        return StatusChange(player_id, record.character_name, removed, updated=False)

    @_locked
    def advance_turn(self, player_id: str, display_name: str) -> TurnAdvance:
        self.resources.ensure(player_id, display_name)
        advance = self.resources.advance_turn(player_id)
        self._flush()
        return advance

    @_locked
    def delete_player(self, player_id: str) -> PlayerRecord:
        record = self.resources.delete(player_id)
        self._drop_prompts([player_id])
        roster_changed = self.roster.discard([player_id])
        if not self._store.delete_one(player_id):
            logger.warning("Could not delete player %s from storage", player_id)
        if roster_changed:
            self._flush()
        return record

    @_locked
    def reset_players(self) -> int:
        player_ids = list(self.resources.players)
        count = self.resources.clear()
        self._drop_prompts(player_ids)
        self.roster.discard(player_ids)
        self._flush()
        logger.info("Reset data for %d players", count)
        return count

    # Encounter roster

    @_locked
    def start_encounter(self) -> None:
        self.roster.start()
        self._flush()
        logger.info("Encounter started")

    @_locked
    def end_encounter(self) -> int:
        count = self.roster.end()
        self._flush()
        logger.info("Encounter ended with %d combatants", count)
        return count

    @_locked
    def add_combatants(self, player_ids: list[str]) -> CombatantChanges:
        changes = self.roster.add_combatants(player_ids)
        if changes.changed:
            self._flush()
        return changes

    @_locked
    def remove_combatants(self, player_ids: list[str]) -> CombatantChanges:
        changes = self.roster.remove_combatants(player_ids)
        if changes.changed:
            self._flush()
        return changes

    @_locked
    def list_combatants(self) -> list[PlayerRecord]:
        return [copy_player(record) for record in self.roster.list()]

    # Penalties and rolls

    @_locked
    def attack(
        self,
        player_id: str,
        die_size1: int,
        die_size2: int,
        modifier: int,
        choice: PenaltyChoice | None = None,
    ) -> Resolved | PendingChoice:
        dice.validate_sizes(die_size1, die_size2)
        self._require_available(player_id, ActionKind.ATTACK, choice)
        attempt, _ = self.ledger.record_attempt(player_id, ActionKind.ATTACK)
        if choice is not None:
            self.ledger.apply_penalty(player_id, ActionKind.ATTACK, choice)
        elif attempt >= FORCED_CHOICE_ATTEMPT:
            return self._prompt(player_id, attempt, die_size1, die_size2, modifier)
        return self._resolve(player_id, ActionKind.ATTACK, attempt, die_size1, die_size2, modifier)

    @_locked
    def resume_attack(self, player_id: str, token: str, choice: PenaltyChoice) -> Resolved:
        context = unsign_context(token, self._server_salt)
        if context is None:
            raise InvalidInputError("Penalty prompt token is invalid")
        if str(context.get("player")) != player_id:
            raise UnauthorizedError("Only the attacking player can choose this penalty")
        nonce = str(context.get("nonce"))
        if self._pending.get(nonce) != player_id:
            raise NotFoundError("This penalty prompt was already resolved or has expired")
        self._require_available(player_id, ActionKind.ATTACK, choice)
        del self._pending[nonce]
        self.ledger.apply_penalty(player_id, ActionKind.ATTACK, choice)
        return self._resolve(
            player_id,
            ActionKind.ATTACK,
            int(context["attempt"]),
            int(context["die1"]),
            int(context["die2"]),
            int(context["modifier"]),
        )

    @_locked
    def cast(
        self,
        player_id: str,
        die_size1: int,
        die_size2: int,
        modifier: int,
        choice: PenaltyChoice | None = None,
    ) -> Resolved:
        dice.validate_sizes(die_size1, die_size2)
        self._require_available(player_id, ActionKind.CAST, choice)
        attempt, _ = self.ledger.record_attempt(player_id, ActionKind.CAST)
        if choice is not None:
            self.ledger.apply_penalty(player_id, ActionKind.CAST, choice)
        return self._resolve(player_id, ActionKind.CAST, attempt, die_size1, die_size2, modifier)

    @_locked
    def check(self, die_size1: int, die_size2: int, gate: int) -> RollOutcome:
        return dice.check(die_size1, die_size2, gate, self._rng)

    @_locked
    def next_round(self) -> None:
        self.ledger.reset_all()
        self._pending.clear()
        logger.info("New round: attack and cast penalties cleared")

    @_locked
    def reset_penalty(self, player_id: str, kind: ActionKind) -> None:
        self.ledger.reset_one(player_id, kind)
        if kind is ActionKind.ATTACK:
            self._drop_prompts([player_id])
        logger.info("Cleared %s penalties for player %s", kind.value, player_id)

    def _require_available(self, player_id: str, kind: ActionKind, choice: PenaltyChoice | None) -> None:
        if choice is not None and choice not in self.ledger.available_choices(player_id, kind):
            raise InvalidInputError(f"Penalty {choice.value} is no longer available")

    def _drop_prompts(self, player_ids: list[str]) -> None:
        self._pending = {nonce: owner for nonce, owner in self._pending.items() if owner not in player_ids}

    def _prompt(self, player_id: str, attempt: int, die_size1: int, die_size2: int, modifier: int) -> PendingChoice:
        owned = [nonce for nonce, owner in self._pending.items() if owner == player_id]
        for stale in owned[: max(0, len(owned) - MAX_PENDING_PER_PLAYER + 1)]:
            del self._pending[stale]
        nonce = generate_nonce()
        self._pending[nonce] = player_id
        token = sign_context(
            {
                "player": player_id,
                "die1": die_size1,
                "die2": die_size2,
                "modifier": modifier,
                "attempt": attempt,
                "nonce": nonce,
            },
            self._server_salt,
        )
        return PendingChoice(
            player_id=player_id,
            kind=ActionKind.ATTACK,
            attempt=attempt,
            token=token,
            options=self.ledger.available_choices(player_id, ActionKind.ATTACK),
        )

    def _resolve(
        self,
        player_id: str,
        kind: ActionKind,
        attempt: int,
        die_size1: int,
        die_size2: int,
        modifier: int,
    ) -> Resolved:
        gate = self.ledger.effective_gate(player_id, kind)
        effective_modifier = self.ledger.effective_modifier(player_id, kind, modifier)
        outcome = dice.resolve(die_size1, die_size2, effective_modifier, gate, self._rng)
        return Resolved(
            player_id=player_id,
            kind=kind,
            attempt=attempt,
            penalty=self.ledger.snapshot(player_id, kind),
            outcome=outcome,
        )
