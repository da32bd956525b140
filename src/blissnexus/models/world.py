"""World state models for BlissNexus.

A World is the singleton state of one session: calendar, global tension,
the five nations, bounded event feeds, open crises, and the per-viewer
missions and influence records.
"""

from __future__ import annotations

import random
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from blissnexus.models.nation import Nation, clamp
from blissnexus.parameters import (
    LEVEL_THRESHOLDS,
    MISSION_PENALTY_TRUST,
    MISSION_REWARD_TRUST,
    TENSION_MAX,
)
from blissnexus.personas import NATION_IDS, PERSONAS, SEASONS


class LogEntry(BaseModel):
    text: str
    kind: str = "event"
    year: int = 1
    ts: float = 0.0


class ChronicleEntry(BaseModel):
    year: int
    text: str
    ts: float = 0.0


class Intercept(BaseModel):
    """A secret message between two rulers, intercepted for viewers."""

    sender: str
    recipient: str
    text: str
    ts: float = 0.0


class BreakingNews(BaseModel):
    id: str
    headline: str
    nation_ids: list[str] = Field(default_factory=list)
    ts: float = 0.0


class Crisis(BaseModel):
    """A named crisis that may force war when its deadline passes."""

    id: str
    text: str
    participants: list[str]
    deadline: float
    tension: int = 0
    resolved: bool = False


class Prophecy(BaseModel):
    """A foreshadowed event, fulfilled after a delay."""

    id: str
    text: str
    event_id: str
    nation_ids: list[str]
    fulfil_at: float


class MissionType(str, Enum):
    CONVINCE_PEACE = "convince_peace"
    DELIVER_WARNING = "deliver_warning"
    SECURE_ALLIANCE = "secure_alliance"


class Mission(BaseModel):
    """A short-lived objective for one viewer.

    Attributes:
        viewer_id: The viewer this mission belongs to
        issuer: Nation that issued the mission (its trust is at stake)
        target: Nation the mission is about, if any
        reward_trust: Issuer trust gained toward the viewer on completion
        penalty_trust: Issuer trust change toward the viewer on expiry
    """

    id: str
    viewer_id: str
    issuer: str
    target: str | None = None
    type: MissionType
    description: str
    deadline: float
    reward_trust: int = MISSION_REWARD_TRUST
    penalty_trust: int = MISSION_PENALTY_TRUST
    completed: bool = False
    expired: bool = False

    @property
    def active(self) -> bool:
        return not self.completed and not self.expired


def level_for_points(points: int) -> int:
    """Derive the influence level (1-5) from cumulative points."""
    level = 1
    for index, threshold in enumerate(LEVEL_THRESHOLDS):
        if points >= threshold:
            level = index + 1
    return level


class PlayerInfluence(BaseModel):
    """A viewer's accumulated standing in the world.

    Points only ever grow; the level is always derived from them.
    """

    viewer_id: str
    name: str = "Stranger"
    points: int = Field(default=0, ge=0)
    secrets_known: dict[str, list[str]] = Field(default_factory=dict)
    used_leverage: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def level(self) -> int:
        return level_for_points(self.points)


class World(BaseModel):
    """Complete state of one simulated world.

    Shared state variables:
        year: Current in-world year (starts at 1)
        season_index: Index into SEASONS (0-3, cyclic)
        tension: Global tension (0-100); biases event frequency

    Feeds (newest first, bounded):
        log, chronicle, intercept_feed, breaking_news_history
    """

    model_config = ConfigDict(validate_assignment=True)

    year: int = Field(default=1, ge=1)
    season_index: int = Field(default=0, ge=0, le=3)
    tension: int = 10
    nations: dict[str, Nation] = Field(default_factory=dict)
    log: list[LogEntry] = Field(default_factory=list)
    chronicle: list[ChronicleEntry] = Field(default_factory=list)
    crises: list[Crisis] = Field(default_factory=list)
    missions: dict[str, Mission] = Field(default_factory=dict)
    players: dict[str, PlayerInfluence] = Field(default_factory=dict)
    intercept_feed: list[Intercept] = Field(default_factory=list)
    breaking_news_history: list[BreakingNews] = Field(default_factory=list)
    active_prophecy: Prophecy | None = None

    @field_validator("tension", mode="before")
    @classmethod
    def clamp_tension(cls, v: float) -> int:
        """Clamp tension to [0, 100]."""
        return int(clamp(round(v), 0, TENSION_MAX))

    @property
    def season(self) -> str:
        return SEASONS[self.season_index]

    @property
    def open_crises(self) -> list[Crisis]:
        return [c for c in self.crises if not c.resolved]

    @classmethod
    def genesis(cls, rng: random.Random | None = None) -> World:
        """Create a fresh world with every nation at its starting stats."""
        rng = rng or random.Random()
        nations = {nid: Nation.found(PERSONAS[nid], rng) for nid in NATION_IDS}
        return cls(nations=nations)

    # Serialization methods
    def to_blob(self) -> dict[str, Any]:
        """Serialize the world to a JSON-compatible dict."""
        return self.model_dump(mode="json")

    @classmethod
    def from_blob(cls, blob: dict[str, Any], rng: random.Random | None = None) -> World:
        """Restore a world saved by an older or newer build.

        Missing fields are backfilled with fresh defaults: unknown nations are
        founded anew, and fields absent from a stored nation are taken from a
        freshly founded one. Derived values (relation labels) are recomputed.
        """
        rng = rng or random.Random()
        data = dict(blob)
        stored_nations = data.get("nations") or {}
        nations: dict[str, Any] = {}
        for nid in NATION_IDS:
            fresh = Nation.found(PERSONAS[nid]).model_dump(mode="json")
            stored = stored_nations.get(nid)
            if not isinstance(stored, dict):
                nations[nid] = Nation.found(PERSONAS[nid], rng).model_dump(mode="json")
                continue
            merged = {**fresh, **{k: v for k, v in stored.items() if v is not None}}
            if not merged.get("cities"):
                merged["cities"] = fresh["cities"]
            relations = dict(merged.get("relations") or {})
            for other_id in NATION_IDS:
                if other_id != nid and other_id not in relations:
                    relations[other_id] = {"trust": 0}
            merged["relations"] = relations
            merged["id"] = nid
            nations[nid] = merged
        data["nations"] = nations
        return cls.model_validate(data)
