"""Domain models for player resources, encounters, penalties and rolls."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ResourceKind(str, Enum):
    HP = "HP"
    MP = "MP"
    IP = "IP"
    ARMOR = "Armor"
    BARRIER = "Barrier"

    @classmethod
    def parse(cls, raw: str) -> "ResourceKind":
        lowered = raw.strip().lower()
        for kind in cls:
            if kind.value.lower() == lowered:
                return kind
        raise ValueError(f"Unknown resource: {raw}")


class ActionKind(str, Enum):
    ATTACK = "attack"
    CAST = "cast"


class PenaltyChoice(str, Enum):
    GATE = "gate"
    DAMAGE50 = "damage50"
    DAMAGE100 = "damage100"
    BLIND = "blind"


class RollClass(str, Enum):
    FUMBLE = "fumble"
    CRITICAL = "critical"
    HIT = "hit"
    MISS = "miss"


@dataclass
class ResourcePool:
    current: int = 0
    max: int = 0


@dataclass
class StatusEffect:
    name: str
    duration: int


@dataclass
class PlayerRecord:
    player_id: str
    display_name: str
    character_name: str
    hp: ResourcePool = field(default_factory=ResourcePool)
    mp: ResourcePool = field(default_factory=ResourcePool)
    ip: ResourcePool = field(default_factory=ResourcePool)
    armor: ResourcePool = field(default_factory=ResourcePool)
    barrier: ResourcePool = field(default_factory=ResourcePool)
    status_effects: list[StatusEffect] = field(default_factory=list)

    def pool(self, kind: ResourceKind) -> ResourcePool:
        return getattr(self, _POOL_ATTRIBUTES[kind])

    def pools(self) -> dict[ResourceKind, ResourcePool]:
        return {kind: self.pool(kind) for kind in ResourceKind}


_POOL_ATTRIBUTES: dict[ResourceKind, str] = {
    ResourceKind.HP: "hp",
    ResourceKind.MP: "mp",
    ResourceKind.IP: "ip",
    ResourceKind.ARMOR: "armor",
    ResourceKind.BARRIER: "barrier",
}


@dataclass
class EncounterState:
    active: bool = False
    combatants: list[str] = field(default_factory=list)


@dataclass
class PenaltyState:
    attempt_count: int = 0
    gate_bonus: int = 0
    damage_reduction_percent: int = 0
    blind_applied: bool = False


@dataclass(frozen=True)
class RollOutcome:
    roll1: int
    roll2: int
    total: int
    high_roll: int
    gate: int
    modifier: int | None
    damage: int | None
    classification: RollClass


@dataclass(frozen=True)
class ResourceChange:
    player_id: str
    character_name: str
    kind: ResourceKind
    old_value: int
    new_value: int
    max_value: int


@dataclass(frozen=True)
class StatusChange:
    player_id: str
    character_name: str
    effect: StatusEffect
    updated: bool


@dataclass(frozen=True)
class TurnAdvance:
    player_id: str
    character_name: str
    expired: list[StatusEffect]
    remaining: list[StatusEffect]


@dataclass(frozen=True)
class CombatantChanges:
    changed: list[str]
    missing: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Resolved:
    player_id: str
    kind: ActionKind
    attempt: int
    penalty: PenaltyState
    outcome: RollOutcome


@dataclass(frozen=True)
class PendingChoice:
    player_id: str
    kind: ActionKind
    attempt: int
    token: str
    options: list[PenaltyChoice]
