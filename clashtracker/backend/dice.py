"""Two-die roll resolution shared by attacks, casts and skill checks."""

from __future__ import annotations

from typing import Protocol

from .errors import InvalidInputError
from .models import RollClass, RollOutcome

CRITICAL_FLOOR = 5


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int:
        """Return a uniform integer in [a, b]."""


def classify(roll1: int, roll2: int, gate: int) -> RollClass:
    if roll1 == 1 and roll2 == 1:
        return RollClass.FUMBLE
    if roll1 == roll2 and roll1 > CRITICAL_FLOOR:
        return RollClass.CRITICAL
    if roll1 > gate and roll2 > gate:
        return RollClass.HIT
    return RollClass.MISS


def resolve_rolls(roll1: int, roll2: int, modifier: int, gate: int) -> RollOutcome:
    """Resolve already-drawn dice; damage is the high roll plus the modifier."""
    high_roll = max(roll1, roll2)
    return RollOutcome(
        roll1=roll1,
        roll2=roll2,
        total=roll1 + roll2,
        high_roll=high_roll,
        gate=gate,
        modifier=modifier,
        damage=high_roll + modifier,
        classification=classify(roll1, roll2, gate),
    )


def resolve(die_size1: int, die_size2: int, modifier: int, gate: int, rng: RandomSource) -> RollOutcome:
    roll1, roll2 = draw(die_size1, die_size2, rng)
    return resolve_rolls(roll1, roll2, modifier, gate)


def check(die_size1: int, die_size2: int, gate: int, rng: RandomSource) -> RollOutcome:
    """Skill check: same classification, fixed gate, no modifier or damage."""
    roll1, roll2 = draw(die_size1, die_size2, rng)
    return RollOutcome(
        roll1=roll1,
        roll2=roll2,
        total=roll1 + roll2,
        high_roll=max(roll1, roll2),
        gate=gate,
        modifier=None,
        damage=None,
        classification=classify(roll1, roll2, gate),
    )


def validate_sizes(die_size1: int, die_size2: int) -> None:
    if die_size1 < 1 or die_size2 < 1:
        raise InvalidInputError("Die sizes must be at least 1")


def draw(die_size1: int, die_size2: int, rng: RandomSource) -> tuple[int, int]:
    validate_sizes(die_size1, die_size2)
    return rng.randint(1, die_size1), rng.randint(1, die_size2)
