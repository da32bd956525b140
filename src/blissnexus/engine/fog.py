"""Fog-of-war projection.

``project`` turns the canonical World into the snapshot one viewer is
allowed to see. It is recomputed for every send and never cached.

Rules:
    - A nation whose trust toward the viewer is below FOG_TRUST_THRESHOLD has
      troops, gold, grain, nukes and morale scaled by U(0.8, 1.2), rounded and
      floored at zero, and is flagged ``is_fogged``. A fuzzed value that lands
      on the exact canonical value of a non-zero stat is nudged by one, so
      the exact value never leaks. For small stats the nudge can step outside
      the band (nukes=1 shows as 0 or 2).
    - Secrets, memory, rumors, promises, suggestions and outcome tallies are
      always stripped. Relations expose only their label, and the only
      viewer trust shown is the requesting viewer's own.
    - Only the viewer's own mission and influence record are included.
"""

from __future__ import annotations

import random
from typing import Any

from blissnexus.models import Nation, World
from blissnexus.parameters import FOG_FUZZ_HIGH, FOG_FUZZ_LOW, FOG_TRUST_THRESHOLD

FOGGED_STATS = ("troops", "gold", "grain", "nukes", "morale")


def fuzz(value: int, rng: random.Random) -> int:
    """Scale a stat into the fuzz band without ever returning the exact value.

    The one-step nudge away from the exact value may leave the band when the
    stat is small.
    """
    fuzzed = max(0, round(value * rng.uniform(FOG_FUZZ_LOW, FOG_FUZZ_HIGH)))
    if value > 0 and fuzzed == value:
        fuzzed = value + 1 if rng.random() < 0.5 else value - 1
    return fuzzed


def project_nation(nation: Nation, viewer_id: str | None, rng: random.Random) -> dict[str, Any]:
    trust = nation.trust_toward(viewer_id) if viewer_id else 0
    view: dict[str, Any] = {
        "id": nation.id,
        "alive": nation.alive,
        "troops": nation.troops,
        "nukes": nation.nukes,
        "gold": nation.gold,
        "grain": nation.grain,
        "morale": nation.morale,
        "population": nation.population,
        "tech": nation.tech,
        "mood": nation.mood.value,
        "mood_emoji": nation.mood_emoji,
        "mood_reason": nation.mood_reason,
        "wars": sorted(nation.wars),
        "allies": sorted(nation.allies),
        "relations": {other_id: {"label": rel.label.value} for other_id, rel in nation.relations.items()},
        "cities": [city.model_dump(mode="json") for city in nation.cities],
        "user_trust": trust,
    }
    if trust < FOG_TRUST_THRESHOLD:
        for stat in FOGGED_STATS:
            view[stat] = fuzz(view[stat], rng)
        view["is_fogged"] = True
    else:
        view["is_fogged"] = False
    return view


def project(world: World, viewer_id: str | None, rng: random.Random | None = None) -> dict[str, Any]:
    """Build the fogged snapshot of ``world`` for one viewer.

    Args:
        world: Canonical world state (not modified)
        viewer_id: Requesting viewer, or None for an anonymous observer
        rng: Random source for the fuzz draws

    Returns:
        JSON-compatible snapshot dict
    """
    rng = rng or random.Random()
    mission = world.missions.get(viewer_id) if viewer_id else None
    player = world.players.get(viewer_id) if viewer_id else None
    return {
        "year": world.year,
        "season": world.season,
        "season_index": world.season_index,
        "tension": world.tension,
        "nations": {nid: project_nation(nation, viewer_id, rng) for nid, nation in world.nations.items()},
        "crises": [crisis.model_dump(mode="json") for crisis in world.open_crises],
        "chronicle": [entry.model_dump(mode="json") for entry in world.chronicle],
        "intercept_feed": [entry.model_dump(mode="json") for entry in world.intercept_feed],
        "breaking_news": [entry.model_dump(mode="json") for entry in world.breaking_news_history],
        "prophecy": world.active_prophecy.model_dump(mode="json") if world.active_prophecy else None,
        "mission": mission.model_dump(mode="json") if mission else None,
        "influence": player.model_dump(mode="json", exclude={"secrets_known", "used_leverage"}) if player else None,
        "secrets_known": dict(player.secrets_known) if player else {},
    }
