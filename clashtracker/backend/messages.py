"""Plain-text rendering of tracker results for the chat gateway."""

from __future__ import annotations

from clashtracker.backend.models import (
    CombatantChanges,
    PendingChoice,
    PlayerRecord,
    Resolved,
    ResourceChange,
    ResourceKind,
    RollClass,
    RollOutcome,
    StatusChange,
    StatusEffect,
    TurnAdvance,
)

RESOURCE_EMOJIS = {
    ResourceKind.HP: "❤️",
    ResourceKind.MP: "💧",
    ResourceKind.IP: "💰",
    ResourceKind.ARMOR: "💥",
    ResourceKind.BARRIER: "🛡️",
}

ROLL_LABELS = {
    RollClass.FUMBLE: "💀 Fumble",
    RollClass.CRITICAL: "🌟 Critical",
    RollClass.HIT: "✅ Hit",
    RollClass.MISS: "❌ Miss",
}

PENALTY_LABELS = {
    "gate": "Gate +1",
    "damage50": "Damage -50%",
    "damage100": "Damage -100%",
    "blind": "Blind (gate 3)",
}

GUIDE = "\n".join(
    [
        "📖 Command Guide",
        "⚙️ set: max resources for a player (HP, MP, IP, Armor, Barrier); refills all but IP",
        "👀 view / viewall: one player's resources, or every registered character",
        "⚡ hp, mp, ip, armor, barrier: `-10` to subtract, `full` to restore, `zero` to empty",
        "✨ rest: HP, MP, Armor and Barrier to max; IP stays",
        "🔮 status / removestatus / tick: manage status effects and advance your turn",
        "⚔️ startencounter, addcombatant, removecombatant, listall, endencounter",
        "🎲 attack: from your second attack each round you must pick a penalty first",
        "🪄 cast: penalties are optional; check: two dice against a fixed gate",
        "🔁 nextround / resetpenalty: clear penalties (GM only)",
    ]
)


def format_pools(record: PlayerRecord, separator: str = " | ") -> str:
    return separator.join(
        f"{RESOURCE_EMOJIS[kind]} {kind.value}: {pool.current}/{pool.max}" for kind, pool in record.pools().items()
    )


def format_statuses(effects: list[StatusEffect]) -> str:
    return ", ".join(f"{effect.name} ({effect.duration})" for effect in effects)


def render_player(record: PlayerRecord) -> str:
    lines = [f"{record.character_name}'s Resources", format_pools(record, separator="\n")]
    if record.status_effects:
        lines.append("🔮 Status Effects: " + format_statuses(record.status_effects))
    return "\n".join(lines)


def render_all_players(records: list[PlayerRecord]) -> str:
    if not records:
        return "No player data available yet."
    blocks = ["📊 All Players - Resources Overview"]
    for record in records:
        block = f"👤 {record.character_name}\n{format_pools(record)}"
        if record.status_effects:
            block += "\n🔮 " + format_statuses(record.status_effects)
        blocks.append(block)
    return "\n\n".join(blocks)


def render_maxima_set(record: PlayerRecord) -> str:
    return (
        f"✨ Max Resources Set for {record.character_name}\n"
        "HP, MP, Armor and Barrier restored to new max. IP preserved.\n" + format_pools(record)
    )


def render_resource_change(change: ResourceChange) -> str:
    emoji = RESOURCE_EMOJIS[change.kind]
    delta = change.new_value - change.old_value
    sign = "+" if delta > 0 else ""
    return (
        f"{change.character_name}'s {emoji} {change.kind.value} Updated\n"
        f"{change.old_value} {sign}{delta} = {change.new_value}/{change.max_value}"
    )


def render_rest(record: PlayerRecord) -> str:
    return (
        f"✨ {record.character_name} Rested!\n"
        "HP, MP, Armor and Barrier restored. IP stays.\n" + format_pools(record)
    )


def render_status_change(change: StatusChange) -> str:
    if change.updated:
        return f"🔄 Status Updated: {change.effect.name} on {change.character_name} updated to {change.effect.duration} turns"
    return f"✨ Status Applied: {change.effect.name} applied to {change.character_name} for {change.effect.duration} turns"


def render_status_removed(change: StatusChange) -> str:
    return f"🗑️ Status Removed: {change.effect.name} removed from {change.character_name}"


def render_turn_advance(advance: TurnAdvance) -> str:
    lines = [f"⏰ {advance.character_name}'s Turn Advanced"]
    if advance.expired:
        lines.append("💨 Expired: " + ", ".join(effect.name for effect in advance.expired))
    if advance.remaining:
        lines.append("🔮 Remaining: " + format_statuses(advance.remaining))
    lines.append(f"{len(advance.expired)} status effect(s) expired")
    return "\n".join(lines)


def render_roster(records: list[PlayerRecord]) -> str:
    blocks = ["⚔️ Active Encounter - Combatants"]
    for record in records:
        block = f"{record.character_name}\n{format_pools(record)}"
        if record.status_effects:
            block += "\n🔮 " + format_statuses(record.status_effects)
        blocks.append(block)
    blocks.append(f"{len(records)} combatant(s) in encounter")
    return "\n\n".join(blocks)


def render_combatant_changes(changes: CombatantChanges, names: dict[str, str], joined: bool) -> str:
    lines = []
    verb = "joined" if joined else "left"
    for player_id in changes.changed:
        lines.append(f"{'➕' if joined else '➖'} {names.get(player_id, player_id)} {verb} the encounter!")
    for player_id in changes.missing:
        lines.append(f"{names.get(player_id, player_id)} doesn't have character data. Use set first.")
    for player_id in changes.duplicates:
        lines.append(f"{names.get(player_id, player_id)} is already in the encounter!")
    for player_id in changes.not_found:
        lines.append(f"{names.get(player_id, player_id)} is not in the encounter.")
    return "\n".join(lines)


def render_outcome(outcome: RollOutcome) -> str:
    text = f"🎲 {outcome.roll1} + {outcome.roll2} = {outcome.total} (HR {outcome.high_roll}, gate {outcome.gate})"
    if outcome.damage is not None:
        text += f"\nDamage: {outcome.high_roll} {outcome.modifier:+d} = {outcome.damage}"
    return f"{text}\n{ROLL_LABELS[outcome.classification]}"


def render_resolved(resolved: Resolved, actor_name: str) -> str:
    header = f"{actor_name}'s {resolved.kind.value} #{resolved.attempt}"
    penalties = []
    if resolved.penalty.gate_bonus:
        penalties.append(f"gate +{resolved.penalty.gate_bonus}")
    if resolved.penalty.damage_reduction_percent:
        penalties.append(f"damage -{resolved.penalty.damage_reduction_percent}%")
    if resolved.penalty.blind_applied:
        penalties.append("blind")
    if penalties:
        header += " [" + ", ".join(penalties) + "]"
    return f"{header}\n{render_outcome(resolved.outcome)}"


def render_pending(pending: PendingChoice, actor_name: str) -> str:
    options = ", ".join(PENALTY_LABELS[option.value] for option in pending.options)
    return f"⚠️ {actor_name}, attack #{pending.attempt} this round needs a penalty. Choose one: {options}"
