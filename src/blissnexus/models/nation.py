"""Nation state models for BlissNexus.

This module defines the per-ruler state that evolves during a world's
lifetime. All numeric fields are clamped to valid ranges on construction and
on assignment, so no mutator can leave a nation with negative gold or a
morale of 140.

Trust bands (relation labels):
    trust > 60   -> ally
    trust > 20   -> friendly
    trust > -20  -> neutral
    trust > -60  -> rival
    otherwise    -> enemy
"""

from __future__ import annotations

import random
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from blissnexus.parameters import (
    MAX_TROOPS,
    MEMORY_CAP,
    MORALE_MAX,
    TECH_MAX,
    TRUST_MAX,
    TRUST_MIN,
    USER_TRUST_DEFAULT,
    USER_TRUST_MAX,
    USER_TRUST_MIN,
)
from blissnexus.personas import NATION_IDS, Persona


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value to the specified range."""
    return max(min_val, min(max_val, value))


def push_bounded(items: list, item: Any, cap: int) -> None:
    """Insert item at the front of a newest-first feed, evicting the oldest."""
    items.insert(0, item)
    del items[cap:]


class RelationLabel(str, Enum):
    """Derived label for a trust value.

    Inherits from str for proper JSON serialization.
    """

    ALLY = "ally"
    FRIENDLY = "friendly"
    NEUTRAL = "neutral"
    RIVAL = "rival"
    ENEMY = "enemy"


def label_for_trust(trust: int) -> RelationLabel:
    """Map a trust value to its relation label."""
    if trust > 60:
        return RelationLabel.ALLY
    if trust > 20:
        return RelationLabel.FRIENDLY
    if trust > -20:
        return RelationLabel.NEUTRAL
    if trust > -60:
        return RelationLabel.RIVAL
    return RelationLabel.ENEMY


class Mood(str, Enum):
    """A ruler's current disposition."""

    CALM = "calm"
    CONTENT = "content"
    ANXIOUS = "anxious"
    ANGRY = "angry"
    EMBOLDENED = "emboldened"
    FEARFUL = "fearful"
    SUSPICIOUS = "suspicious"
    GRIEVING = "grieving"
    TRIUMPHANT = "triumphant"


MOOD_EMOJIS: dict[Mood, str] = {
    Mood.CALM: "😐",
    Mood.CONTENT: "😊",
    Mood.ANXIOUS: "😰",
    Mood.ANGRY: "😡",
    Mood.EMBOLDENED: "😤",
    Mood.FEARFUL: "😨",
    Mood.SUSPICIOUS: "🤨",
    Mood.GRIEVING: "😢",
    Mood.TRIUMPHANT: "🏆",
}


class Relation(BaseModel):
    """One nation's view of another.

    The label is never stored independently; it is recomputed from trust
    every time it is read or serialized.
    """

    model_config = ConfigDict(validate_assignment=True)

    trust: int = Field(default=0)

    @field_validator("trust", mode="before")
    @classmethod
    def clamp_trust(cls, v: float) -> int:
        """Clamp trust to [-100, 100]."""
        return int(clamp(round(v), TRUST_MIN, TRUST_MAX))

    @computed_field
    @property
    def label(self) -> RelationLabel:
        return label_for_trust(self.trust)


class City(BaseModel):
    name: str
    role: str
    population: int = Field(default=0, ge=0)
    destroyed: bool = False


class Rumor(BaseModel):
    """Something a ruler has heard, planted by a viewer or a world event."""

    text: str
    source: str
    about: str | None = None
    timestamp: float = 0.0


class Promise(BaseModel):
    text: str
    viewer_id: str
    timestamp: float = 0.0
    kept: bool | None = None


class Personality(BaseModel):
    """Drifting trait values, each bounded to [0, 100]."""

    model_config = ConfigDict(validate_assignment=True)

    aggression: int = 50
    greed: int = 50
    pride: int = 50
    paranoia: int = 50
    loyalty: int = 50

    @field_validator("aggression", "greed", "pride", "paranoia", "loyalty", mode="before")
    @classmethod
    def clamp_trait(cls, v: float) -> int:
        return int(clamp(round(v), 0, 100))


class OutcomeTally(BaseModel):
    """Outcomes accumulated since the last personality drift."""

    war_losses: int = 0
    alliances_formed: int = 0
    cities_lost: int = 0


class Nation(BaseModel):
    """Complete evolving state of one ruler's nation.

    Attributes:
        id: Persona id this nation belongs to
        alive: False between destruction and succession
        troops, nukes, gold, grain, population: Non-negative resources
        morale: Popular morale (0-100)
        tech: Technology level (0-5)
        mood: Current disposition, recomputed from state
        wars, allies: Symmetric relationship sets (see WorldStore)
        relations: Trust toward every other nation
        user_trust: Standing toward each viewer (0-100)
        memory: Recent first-person facts, newest first
        cities: Cities in founding order
        secrets, revealed_secrets: Flavor secrets and those already disclosed
        rumors: Recently heard rumors, newest first
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str
    alive: bool = True
    troops: int = 0
    nukes: int = 0
    gold: int = 0
    grain: int = 0
    morale: int = 50
    population: int = 0
    tech: int = 1
    mood: Mood = Mood.CALM
    mood_reason: str = "The realm is stable."
    wars: set[str] = Field(default_factory=set)
    allies: set[str] = Field(default_factory=set)
    relations: dict[str, Relation] = Field(default_factory=dict)
    user_trust: dict[str, int] = Field(default_factory=dict)
    memory: list[str] = Field(default_factory=list)
    cities: list[City] = Field(default_factory=list)
    secrets: list[str] = Field(default_factory=list)
    revealed_secrets: list[str] = Field(default_factory=list)
    rumors: list[Rumor] = Field(default_factory=list)
    promises: list[Promise] = Field(default_factory=list)
    personality: Personality = Field(default_factory=Personality)
    outcomes: OutcomeTally = Field(default_factory=OutcomeTally)
    suggestion: str | None = None

    @field_validator("nukes", "gold", "grain", "population", mode="before")
    @classmethod
    def clamp_non_negative(cls, v: float) -> int:
        """Resources never go negative."""
        return max(0, int(round(v)))

    @field_validator("troops", mode="before")
    @classmethod
    def clamp_troops(cls, v: float) -> int:
        """Clamp troops to [0, MAX_TROOPS]."""
        return int(clamp(round(v), 0, MAX_TROOPS))

    @field_validator("morale", mode="before")
    @classmethod
    def clamp_morale(cls, v: float) -> int:
        return int(clamp(round(v), 0, MORALE_MAX))

    @field_validator("tech", mode="before")
    @classmethod
    def clamp_tech(cls, v: float) -> int:
        return int(clamp(round(v), 0, TECH_MAX))

    @property
    def mood_emoji(self) -> str:
        return MOOD_EMOJIS.get(self.mood, "😐")

    @property
    def standing_cities(self) -> list[City]:
        return [c for c in self.cities if not c.destroyed]

    def trust_toward(self, viewer_id: str) -> int:
        """This ruler's standing toward a viewer (default for strangers)."""
        return self.user_trust.get(viewer_id, USER_TRUST_DEFAULT)

    def set_trust_toward(self, viewer_id: str, value: float) -> int:
        trust = int(clamp(round(value), USER_TRUST_MIN, USER_TRUST_MAX))
        self.user_trust[viewer_id] = trust
        return trust

    def relation_to(self, other_id: str) -> Relation:
        """Relation toward another nation, created neutral if missing."""
        relation = self.relations.get(other_id)
        if relation is None:
            relation = Relation()
            self.relations[other_id] = relation
        return relation

    def remember(self, text: str) -> None:
        push_bounded(self.memory, text, MEMORY_CAP)

    @classmethod
    def found(cls, persona: Persona, rng: random.Random | None = None) -> Nation:
        """Create a nation at genesis from its persona.

        Starting trust toward each other nation is uniform in [-20, 19].
        Pass rng=None for the neutral relations used after succession.
        """
        start = persona.start
        relations = {}
        for other_id in NATION_IDS:
            if other_id == persona.id:
                continue
            trust = rng.randint(-20, 19) if rng is not None else 0
            relations[other_id] = Relation(trust=trust)

        return cls(
            id=persona.id,
            troops=start.troops,
            nukes=start.nukes,
            gold=start.gold,
            grain=start.grain,
            morale=start.morale,
            population=start.population,
            tech=start.tech,
            relations=relations,
            cities=[City(name=c.name, role=c.role, population=c.population) for c in persona.cities],
            secrets=list(persona.secrets),
            personality=Personality(**persona.traits.model_dump()),
        )
