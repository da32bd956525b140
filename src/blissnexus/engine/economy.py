"""Deterministic economy, war, mood, calendar and drift ticks.

Each function takes the WorldStore and mutates it in place; the scheduler
runs them as jobs. ``compute_mood`` is pure so it can be tested in isolation.

Mood priority (first match wins):
    1. two or more wars           -> angry
    2. one war                    -> emboldened if aggression > 60 else anxious
    3. grain < 200                -> fearful
    4. gold < 100                 -> anxious
    5. morale > 85                -> content
    6. two or more allies         -> emboldened
    7. tension > 70               -> suspicious
    8. troops > 1.5x start troops -> emboldened
    9. otherwise                  -> calm
"""

from __future__ import annotations

import logging

from blissnexus.engine.store import NoticeKind, WorldStore
from blissnexus.models import Mood, Nation, OutcomeTally
from blissnexus.parameters import (
    DESTRUCTION_TROOP_FLOOR,
    DRIFT_ALLIANCE_LOYALTY_STEP,
    DRIFT_ALLIANCE_PARANOIA_STEP,
    DRIFT_CITY_LOSS_PARANOIA_STEP,
    DRIFT_WAR_LOSS_AGGRESSION_UP_CHANCE,
    DRIFT_WAR_LOSS_STEP,
    GOLD_BASE_INCOME,
    GOLD_PER_ALLY,
    GOLD_PER_TECH,
    GRAIN_BASE_INCOME,
    GRAIN_PER_HUNDRED_POP,
    GRAIN_TECH_BONUS,
    MOOD_AGGRESSION_THRESHOLD,
    MOOD_CONTENT_MORALE,
    MOOD_SUSPICIOUS_TENSION,
    MOOD_TROOP_SURPLUS,
    PROSPERITY_GOLD,
    PROSPERITY_MORALE_GAIN,
    SCARCITY_GOLD,
    SCARCITY_GRAIN,
    SCARCITY_MORALE_HIT,
    TECH_CHANCE,
    TECH_CHANCE_FOCUSED,
    TECH_GOLD_THRESHOLD,
    TECH_MAX,
    TENSION_DECAY,
    TROOP_UPKEEP_DIVISOR,
    WAR_DAMAGE_JITTER,
    WAR_DAMAGE_SCALE,
    WAR_GOLD_UPKEEP,
    WAR_GRAIN_UPKEEP,
    WAR_MORALE_DRAIN,
    WAR_TECH_FACTOR,
)
from blissnexus.personas import NATION_IDS, PERSONAS, SEASONS

logger = logging.getLogger(__name__)


def compute_mood(nation: Nation, tension: int) -> tuple[Mood, str]:
    """Derive a ruler's mood and the reason for it from current state."""
    persona = PERSONAS[nation.id]
    wars = len(nation.wars)
    if wars >= 2:
        return Mood.ANGRY, "Fighting on multiple fronts."
    if wars == 1:
        enemy = PERSONAS.get(next(iter(nation.wars)))
        reason = f"At war with {enemy.name if enemy else 'an enemy'}."
        if nation.personality.aggression > MOOD_AGGRESSION_THRESHOLD:
            return Mood.EMBOLDENED, reason
        return Mood.ANXIOUS, reason
    if nation.grain < SCARCITY_GRAIN:
        return Mood.FEARFUL, "Famine threatens the people."
    if nation.gold < SCARCITY_GOLD:
        return Mood.ANXIOUS, "The treasury runs dry."
    if nation.morale > MOOD_CONTENT_MORALE:
        return Mood.CONTENT, "The people are prosperous."
    if len(nation.allies) >= 2:
        return Mood.EMBOLDENED, "Strong alliances support us."
    if tension > MOOD_SUSPICIOUS_TENSION:
        return Mood.SUSPICIOUS, "The world teeters on the edge."
    if nation.troops > persona.start.troops * MOOD_TROOP_SURPLUS:
        return Mood.EMBOLDENED, "Our armies grow mighty."
    return Mood.CALM, "The realm is stable."


def recompute_mood(store: WorldStore, nation_id: str) -> None:
    nation = store.nation(nation_id)
    if nation is None or not nation.alive:
        return
    nation.mood, nation.mood_reason = compute_mood(nation, store.world.tension)


def recompute_moods(store: WorldStore) -> None:
    for nation_id in store.living_ids():
        recompute_mood(store, nation_id)
    store.dirty = True


def resource_tick(store: WorldStore) -> None:
    """Income, upkeep, war costs, morale drift and tech rolls for living nations."""
    for nation_id in store.living_ids():
        nation = store.nation(nation_id)
        living_allies = [a for a in nation.allies if (ally := store.nation(a)) is not None and ally.alive]
        wars = len(nation.wars)

        nation.gold += GOLD_BASE_INCOME + nation.tech * GOLD_PER_TECH + len(living_allies) * GOLD_PER_ALLY
        grain_income = GRAIN_BASE_INCOME + (GRAIN_TECH_BONUS if nation.tech > 2 else 0)
        nation.grain += grain_income - round(nation.population / 100 * GRAIN_PER_HUNDRED_POP)

        if wars:
            nation.gold -= wars * WAR_GOLD_UPKEEP
            nation.grain -= wars * WAR_GRAIN_UPKEEP
            nation.morale -= wars * WAR_MORALE_DRAIN
        nation.gold -= round(nation.troops / TROOP_UPKEEP_DIVISOR)

        if nation.grain < SCARCITY_GRAIN:
            nation.morale -= SCARCITY_MORALE_HIT
        elif nation.gold > PROSPERITY_GOLD and not wars:
            nation.morale += PROSPERITY_MORALE_GAIN

        chance = TECH_CHANCE_FOCUSED if PERSONAS[nation_id].tech_focused else TECH_CHANCE
        if nation.tech < TECH_MAX and nation.gold > TECH_GOLD_THRESHOLD and store.rng.random() < chance:
            nation.tech += 1
            store.add_log(f"⚡ {store.name(nation_id)} advanced to Tech Level {nation.tech}!", "event")
            store.emit(NoticeKind.WORLD_EVENT, {
                "text": f"⚡ {store.label(nation_id)} reaches T{nation.tech}!",
                "kind": "event",
                "nation": nation_id,
            })

        recompute_mood(store, nation_id)

    store.shift_tension(-TENSION_DECAY)
    store.dirty = True
    logger.debug(f"Resource tick done, tension={store.world.tension}")


def war_power(nation: Nation) -> float:
    return max(1, nation.troops) * (1 + nation.tech * WAR_TECH_FACTOR) * (nation.morale / 100)


def war_pairs(store: WorldStore) -> list[tuple[str, str]]:
    """Every active war between living nations, each pair listed once."""
    pairs = []
    for nation_id in store.living_ids():
        for enemy_id in sorted(store.nation(nation_id).wars):
            enemy = store.nation(enemy_id)
            if enemy is None or not enemy.alive:
                continue
            if nation_id < enemy_id:
                pairs.append((nation_id, enemy_id))
    return pairs


def war_tick(store: WorldStore) -> None:
    """Resolve one round of fighting for each war pair.

    Damage to each side is the opponent's share of total power scaled by
    WAR_DAMAGE_SCALE, plus up to WAR_DAMAGE_JITTER. The side that took more
    damage records a war loss. A side at or under the destruction floor is
    destroyed; if both are, only the one that took more damage falls.
    """
    for first_id, second_id in war_pairs(store):
        first, second = store.nation(first_id), store.nation(second_id)
        # An earlier pair in this tick may already have destroyed one side.
        if not first.alive or not second.alive:
            continue
        first_power, second_power = war_power(first), war_power(second)
        total = (first_power + second_power) or 1.0
        first_damage = round(second_power / total * WAR_DAMAGE_SCALE + store.rng.random() * WAR_DAMAGE_JITTER)
        second_damage = round(first_power / total * WAR_DAMAGE_SCALE + store.rng.random() * WAR_DAMAGE_JITTER)
        first.troops -= first_damage
        second.troops -= second_damage

        if first_damage > second_damage:
            first.outcomes.war_losses += 1
        elif second_damage > first_damage:
            second.outcomes.war_losses += 1

        # At most one side falls per pair per tick.
        first_down = first.troops <= DESTRUCTION_TROOP_FLOOR
        second_down = second.troops <= DESTRUCTION_TROOP_FLOOR
        if first_down and (not second_down or first_damage >= second_damage):
            store.destroy_nation(first_id, second_id)
        elif second_down:
            store.destroy_nation(second_id, first_id)
    store.dirty = True


def season_tick(store: WorldStore) -> bool:
    """Advance the season; returns True when a new year begins."""
    world = store.world
    world.season_index = (world.season_index + 1) % len(SEASONS)
    new_year = world.season_index == 0
    if new_year:
        world.year += 1
        store.add_log(f"📅 Year {world.year} begins.", "event")
        logger.info(f"Year {world.year} begins")
    store.emit(NoticeKind.YEAR_UPDATE, {"year": world.year, "season": world.season})
    return new_year


def personality_drift(store: WorldStore) -> None:
    """Nudge each ruler's traits from the outcomes since the last drift."""
    for nation_id in NATION_IDS:
        nation = store.nation(nation_id)
        if nation is None:
            continue
        traits, outcomes = nation.personality, nation.outcomes
        for _ in range(outcomes.war_losses):
            if store.rng.random() < DRIFT_WAR_LOSS_AGGRESSION_UP_CHANCE:
                traits.aggression += DRIFT_WAR_LOSS_STEP
            else:
                traits.aggression -= DRIFT_WAR_LOSS_STEP
        if outcomes.alliances_formed:
            traits.loyalty += outcomes.alliances_formed * DRIFT_ALLIANCE_LOYALTY_STEP
            traits.paranoia -= outcomes.alliances_formed * DRIFT_ALLIANCE_PARANOIA_STEP
        if outcomes.cities_lost:
            traits.paranoia += outcomes.cities_lost * DRIFT_CITY_LOSS_PARANOIA_STEP
        if outcomes.war_losses or outcomes.alliances_formed or outcomes.cities_lost:
            logger.debug(f"Personality drift for {nation_id}: {traits.model_dump()}")
        nation.outcomes = OutcomeTally()
    store.dirty = True
