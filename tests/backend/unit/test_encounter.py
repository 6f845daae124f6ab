import pytest

from clashtracker.backend.encounter import EncounterRoster
from clashtracker.backend.errors import InvalidStateError, NotFoundError
from clashtracker.backend.resources import ResourceStore
from clashtracker.backend.state import build_initial_encounter


def _roster(*player_ids: str) -> EncounterRoster:
    resources = ResourceStore()
    for player_id in player_ids:
        resources.ensure(player_id, f"name-{player_id}")
    return EncounterRoster(build_initial_encounter(), resources)


def test_start_and_end_transitions() -> None:
    roster = _roster("a")

    roster.start()
    with pytest.raises(InvalidStateError):
        roster.start()

    roster.add_combatants(["a"])
    assert roster.end() == 1
    assert roster.state.combatants == []
    with pytest.raises(InvalidStateError):
        roster.end()


def test_add_combatants_reports_soft_failures_and_keeps_order() -> None:
    roster = _roster("a", "b", "c")
    roster.start()

    first = roster.add_combatants(["b", "ghost", "a"])
    second = roster.add_combatants(["a", "c"])

    assert first.changed == ["b", "a"]
    assert first.missing == ["ghost"]
    assert second.changed == ["c"]
    assert second.duplicates == ["a"]
    assert roster.state.combatants == ["b", "a", "c"]


def test_remove_combatants_reports_unknown_ids() -> None:
    roster = _roster("a", "b")
    roster.start()
    roster.add_combatants(["a", "b"])

    changes = roster.remove_combatants(["a", "zzz"])

    assert changes.changed == ["a"]
    assert changes.not_found == ["zzz"]
    assert roster.state.combatants == ["b"]


def test_roster_changes_require_active_encounter() -> None:
    roster = _roster("a")

    with pytest.raises(InvalidStateError):
        roster.add_combatants(["a"])
    with pytest.raises(InvalidStateError):
        roster.remove_combatants(["a"])
    with pytest.raises(InvalidStateError):
        roster.list()


def test_list_signals_empty_roster_and_returns_live_records() -> None:
    roster = _roster("a", "b")
    roster.start()

    with pytest.raises(NotFoundError):
        roster.list()

    roster.add_combatants(["b", "a"])

    assert [record.player_id for record in roster.list()] == ["b", "a"]


def test_discard_drops_ids_even_when_inactive() -> None:
    roster = _roster("a", "b")
    roster.start()
    roster.add_combatants(["a", "b"])

    assert roster.discard(["a"]) is True
    assert roster.discard(["a"]) is False
    assert roster.state.combatants == ["b"]
