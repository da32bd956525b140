"""BlissNexus world models.

This module exports the core data structures of the simulation.
"""

from .nation import (
    MOOD_EMOJIS,
    City,
    Mood,
    Nation,
    OutcomeTally,
    Personality,
    Promise,
    Relation,
    RelationLabel,
    Rumor,
    clamp,
    label_for_trust,
    push_bounded,
)
from .world import (
    BreakingNews,
    ChronicleEntry,
    Crisis,
    Intercept,
    LogEntry,
    Mission,
    MissionType,
    PlayerInfluence,
    Prophecy,
    World,
    level_for_points,
)

__all__ = [
    # Enums
    "Mood",
    "MissionType",
    "RelationLabel",
    # Nation models
    "City",
    "Nation",
    "OutcomeTally",
    "Personality",
    "Promise",
    "Relation",
    "Rumor",
    # World models
    "BreakingNews",
    "ChronicleEntry",
    "Crisis",
    "Intercept",
    "LogEntry",
    "Mission",
    "PlayerInfluence",
    "Prophecy",
    "World",
    # Functions
    "clamp",
    "label_for_trust",
    "level_for_points",
    "push_bounded",
    # Constants
    "MOOD_EMOJIS",
]
