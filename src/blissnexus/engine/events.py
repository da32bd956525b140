"""Cascade and random event generators.

Generators pick content from the catalog and hand it to the store's generic
applier (``WorldStore.apply_event`` / ``apply_effects``). They never mutate
nations directly, so catalog content and cascade rules live in one place.

Frequencies:
    World events fire faster as tension rises:
        delay = U(300, 540) * (1 - 0.6 * tension / 100)
    Crises, prophecies and breaking news use fixed random windows.
"""

from __future__ import annotations

import logging
import random

from blissnexus.engine.store import NoticeKind, WorldStore
from blissnexus.models import BreakingNews, Prophecy, push_bounded
from blissnexus.parameters import (
    BREAKING_NEWS_CAP,
    CRISIS_TENSION_MAX,
    CRISIS_TENSION_MIN,
    CRISIS_WAR_CHANCE,
    PROPHECY_FULFIL_DELAY,
    WORLD_EVENT_DELAY,
    WORLD_EVENT_TENSION_SPEEDUP,
)

logger = logging.getLogger(__name__)


def world_event_delay(tension: int, rng: random.Random) -> float:
    """Seconds until the next world event; shrinks as tension rises."""
    low, high = WORLD_EVENT_DELAY
    return rng.uniform(low, high) * (1 - WORLD_EVENT_TENSION_SPEEDUP * tension / 100)


def random_world_event(store: WorldStore) -> bool:
    """Strike a random living nation with a random eligible catalog event."""
    living = store.living_ids()
    candidates = store.catalog.events_for_tension(store.world.tension)
    if not living or not candidates:
        return False
    nation_id = store.rng.choice(living)
    spec = store.rng.choice(candidates)
    logger.debug(f"World event {spec.id} on {nation_id}")
    return store.apply_event(spec, nation_id)


def generate_crisis(store: WorldStore) -> bool:
    """Open a named crisis among two or three living nations."""
    living = store.living_ids()
    if len(living) < 2 or not store.catalog.crises:
        return False
    count = min(len(living), store.rng.randint(2, 3))
    participants = store.rng.sample(living, count)
    text = store.rng.choice(store.catalog.crises)
    tension = store.rng.randint(CRISIS_TENSION_MIN, CRISIS_TENSION_MAX)
    store.open_crisis(text, participants, tension)
    return True


def sweep_crises(store: WorldStore) -> int:
    """Resolve crises past their deadline.

    Each expiring crisis has a CRISIS_WAR_CHANCE of forcing war between its
    first two living participants. Resolved crises are dropped from the
    world. Returns the number of crises resolved.
    """
    now = store.clock()
    resolved = 0
    for crisis in store.world.crises:
        if crisis.resolved or crisis.deadline >= now:
            continue
        crisis.resolved = True
        resolved += 1
        if store.rng.random() < CRISIS_WAR_CHANCE:
            living = [nid for nid in crisis.participants if (n := store.nation(nid)) is not None and n.alive]
            if len(living) >= 2:
                store.declare_war(living[0], living[1])
        store.add_log(f"⚠️ Crisis expired: {crisis.text[:40]}...", "event")

    if resolved:
        store.world.crises = store.world.open_crises
        store.dirty = True
    return resolved


def generate_prophecy(store: WorldStore) -> Prophecy | None:
    """Foretell a catalog event against one living nation.

    Only one prophecy is active at a time. Fulfilment is scheduled on the
    store and checks the prophecy is still the active one, so a reset in
    between turns it into a no-op.
    """
    if store.world.active_prophecy is not None:
        return None
    living = store.living_ids()
    candidates = [spec for spec in store.catalog.events_for_tension(store.world.tension) if spec.omen]
    if not living or not candidates:
        return None

    nation_id = store.rng.choice(living)
    spec = store.rng.choice(candidates)
    delay = store.rng.uniform(*PROPHECY_FULFIL_DELAY)
    now = store.clock()
    omen = spec.omen.replace("{name}", store.name(nation_id))
    prophecy = Prophecy(
        id=f"prophecy_{int(now * 1000)}",
        text=f"🔮 The oracle foretells: {omen}.",
        event_id=spec.id,
        nation_ids=[nation_id],
        fulfil_at=now + delay,
    )
    store.world.active_prophecy = prophecy
    store.add_log(prophecy.text, "event")
    store.emit(NoticeKind.PROPHECY, {"prophecy": prophecy.model_dump(mode="json")})
    schedule_fulfilment(store, prophecy, delay)
    return prophecy


def schedule_fulfilment(store: WorldStore, prophecy: Prophecy, delay: float) -> None:
    store.later(max(0.0, delay), lambda: fulfil_prophecy(store, prophecy.id))


def fulfil_prophecy(store: WorldStore, prophecy_id: str) -> bool:
    prophecy = store.world.active_prophecy
    if prophecy is None or prophecy.id != prophecy_id:
        return False
    store.world.active_prophecy = None
    struck = [nid for nid in prophecy.nation_ids if store.apply_event(prophecy.event_id, nid)]
    store.emit(NoticeKind.PROPHECY_FULFILLED, {
        "prophecy": prophecy.model_dump(mode="json"),
        "nations": struck,
    })
    logger.info(f"Prophecy {prophecy.id} fulfilled on {struck or 'no living nation'}")
    return True


def breaking_news(store: WorldStore) -> BreakingNews | None:
    """Apply a hand-authored story to every living nation or to one of them."""
    living = store.living_ids()
    stories = store.catalog.news_for_tension(store.world.tension)
    if not living or not stories:
        return None

    story = store.rng.choice(stories)
    targets = living if story.scope == "all" else [store.rng.choice(living)]
    headline = story.headline
    if story.scope == "one":
        headline = headline.replace("{name}", store.name(targets[0]))

    tension_effect = story.effects.tension
    nation_effects = story.effects.model_copy(update={"tension": 0})
    for nation_id in targets:
        store.apply_effects(store.nation(nation_id), nation_effects)
    if tension_effect:
        store.shift_tension(tension_effect)

    news = BreakingNews(id=story.id, headline=headline, nation_ids=targets, ts=store.clock())
    push_bounded(store.world.breaking_news_history, news, BREAKING_NEWS_CAP)
    store.add_log(f"📰 BREAKING: {headline}", "event")
    store.emit(NoticeKind.BREAKING_NEWS, {"news": news.model_dump(mode="json")})
    return news
