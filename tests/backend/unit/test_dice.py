import random

import pytest

from clashtracker.backend.dice import check, classify, resolve, resolve_rolls
from clashtracker.backend.errors import InvalidInputError
from clashtracker.backend.models import RollClass


class _ScriptedRandom:
    def __init__(self, values: list[int]) -> None:
        self.values = list(values)
        self.calls: list[tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        return self.values.pop(0)


@pytest.mark.parametrize("gate", [0, 1, 2, 3, 10])
def test_double_one_is_always_a_fumble(gate: int) -> None:
    assert classify(1, 1, gate) is RollClass.FUMBLE


@pytest.mark.parametrize("value", [6, 7, 8, 12])
def test_equal_dice_above_five_are_critical_even_below_gate(value: int) -> None:
    assert classify(value, value, gate=20) is RollClass.CRITICAL


def test_equal_dice_at_five_fall_back_to_gate_comparison() -> None:
    assert classify(5, 5, gate=1) is RollClass.HIT
    assert classify(5, 5, gate=5) is RollClass.MISS


def test_hit_requires_both_dice_strictly_above_gate() -> None:
    assert classify(4, 3, gate=2) is RollClass.HIT
    assert classify(4, 2, gate=2) is RollClass.MISS
    assert classify(2, 4, gate=2) is RollClass.MISS


def test_resolve_rolls_computes_total_high_roll_and_damage() -> None:
    outcome = resolve_rolls(3, 7, modifier=4, gate=1)

    assert outcome.total == 10
    assert outcome.high_roll == 7
    assert outcome.damage == 11
    assert outcome.gate == 1
    assert outcome.classification is RollClass.HIT


def test_resolve_draws_each_die_from_its_own_size() -> None:
    rng = _ScriptedRandom([2, 9])

    outcome = resolve(6, 10, modifier=-1, gate=1, rng=rng)

    assert rng.calls == [(1, 6), (1, 10)]
    assert (outcome.roll1, outcome.roll2) == (2, 9)
    assert outcome.damage == 8


def test_resolve_with_seeded_random_stays_in_range() -> None:
    rng = random.Random(1234)

    for _ in range(200):
        outcome = resolve(4, 8, modifier=0, gate=1, rng=rng)
        assert 1 <= outcome.roll1 <= 4
        assert 1 <= outcome.roll2 <= 8


def test_check_has_no_modifier_or_damage() -> None:
    outcome = check(10, 10, gate=4, rng=_ScriptedRandom([6, 6]))

    assert outcome.modifier is None
    assert outcome.damage is None
    assert outcome.classification is RollClass.CRITICAL


def test_check_rejects_zero_sided_dice() -> None:
    with pytest.raises(InvalidInputError):
        check(0, 6, gate=1, rng=_ScriptedRandom([1, 1]))
