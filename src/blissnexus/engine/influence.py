"""Influence and mission subsystem.

Viewers earn points from fixed triggers and climb five levels:

    Level  Points  Unlocks
    1      0       whispers, leverage
    2      50      rumor planting
    3      150     memory reads
    4      300     suggestion weight
    5      500     world-event triggering

Abilities are enforced by the whisper command handlers in the session, not by
a separate permission layer.

Missions are short-lived, viewer-scoped objectives checked by naive keyword
co-occurrence in the whisper and reply text.
"""

from __future__ import annotations

import logging

from blissnexus.engine.store import NoticeKind, WorldStore
from blissnexus.models import Mission, MissionType
from blissnexus.parameters import (
    LEVEL_EVENT_TRIGGER,
    LEVEL_MEMORY_READ,
    LEVEL_RUMOR_PLANTING,
    LEVEL_SUGGESTION_WEIGHT,
    MISSION_SECONDS,
    POINTS_MISSION_COMPLETED,
)

logger = logging.getLogger(__name__)

ABILITIES: dict[int, str] = {
    LEVEL_RUMOR_PLANTING: "rumor planting",
    LEVEL_MEMORY_READ: "memory reads",
    LEVEL_SUGGESTION_WEIGHT: "suggestion weight",
    LEVEL_EVENT_TRIGGER: "world-event triggering",
}


def abilities(level: int) -> list[str]:
    """Abilities unlocked at or below ``level``."""
    return [name for needed, name in sorted(ABILITIES.items()) if level >= needed]


def award_points(store: WorldStore, viewer_id: str, points: int, reason: str) -> int:
    """Add influence points and announce any level gained.

    Exactly one ``level_up`` notice is sent per award that raises the level,
    naming every ability unlocked by it.

    Returns:
        The viewer's level after the award
    """
    player = store.player(viewer_id)
    before = player.level
    player.points += points
    after = player.level
    store.dirty = True
    logger.debug(f"{viewer_id} +{points} influence ({reason}), now {player.points}")

    if after > before:
        unlocked = [name for needed, name in sorted(ABILITIES.items()) if before < needed <= after]
        store.emit(
            NoticeKind.LEVEL_UP,
            {"level": after, "points": player.points, "unlocked": unlocked, "reason": reason},
            viewer_id=viewer_id,
        )
        logger.info(f"{viewer_id} reached influence level {after}")
    return after


def generate_mission(store: WorldStore, viewer_id: str) -> Mission | None:
    """Issue a fresh mission to a viewer, replacing any previous one."""
    living = store.living_ids()
    if not living:
        return None
    rng = store.rng
    issuer = rng.choice(living)
    others = [nid for nid in living if nid != issuer]
    target = rng.choice(others) if others else None
    mission_type = rng.choice(list(MissionType))

    issuer_name = store.name(issuer)
    target_name = store.name(target) if target else None
    if mission_type is MissionType.CONVINCE_PEACE and target:
        description = f"Convince {target_name} to make peace with {issuer_name}."
    elif mission_type is MissionType.DELIVER_WARNING and target:
        description = f"Deliver a stern warning to {target_name} from {issuer_name}."
    else:
        description = f"Secure a secret alliance between {issuer_name} and {target_name or 'another ruler'}."

    now = store.clock()
    mission = Mission(
        id=f"mission_{int(now * 1000)}",
        viewer_id=viewer_id,
        issuer=issuer,
        target=target,
        type=mission_type,
        description=description,
        deadline=now + MISSION_SECONDS,
    )
    store.world.missions[viewer_id] = mission
    store.dirty = True
    return mission


def mission_satisfied(mission: Mission, addressee: str, viewer_text: str, reply: str) -> bool:
    """Keyword check for a whisper exchange against an active mission."""
    combined = f"{reply} {viewer_text}".lower()
    if mission.type is MissionType.CONVINCE_PEACE:
        return "peace" in combined and "agree" in combined
    if mission.type is MissionType.DELIVER_WARNING:
        return "warning" in combined and addressee == mission.issuer
    if mission.type is MissionType.SECURE_ALLIANCE:
        return "alliance" in combined and "agree" in combined
    return False


def check_mission_completion(store: WorldStore, viewer_id: str, addressee: str, viewer_text: str, reply: str) -> bool:
    """Complete the viewer's mission if this exchange satisfies it.

    Completion is one-shot: the issuer's trust toward the viewer rises by
    the mission reward and points are awarded only the first time.
    """
    mission = store.world.missions.get(viewer_id)
    if mission is None or not mission.active:
        return False
    if not mission_satisfied(mission, addressee, viewer_text, reply):
        return False

    mission.completed = True
    store.adjust_user_trust(mission.issuer, viewer_id, mission.reward_trust)
    store.emit(NoticeKind.MISSION_COMPLETED, {"mission": mission.model_dump(mode="json")}, viewer_id=viewer_id)
    award_points(store, viewer_id, POINTS_MISSION_COMPLETED, "mission completed")
    logger.info(f"Mission {mission.id} completed by {viewer_id}")
    return True


def expire_missions(store: WorldStore) -> int:
    """Expire overdue missions, applying their trust penalty to the issuer."""
    now = store.clock()
    expired = 0
    for viewer_id, mission in store.world.missions.items():
        if not mission.active or mission.deadline >= now:
            continue
        mission.expired = True
        store.adjust_user_trust(mission.issuer, viewer_id, mission.penalty_trust)
        store.emit(NoticeKind.MISSION_EXPIRED, {"mission": mission.model_dump(mode="json")}, viewer_id=viewer_id)
        expired += 1
    return expired
