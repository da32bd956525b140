"""Ruler persona definitions for BlissNexus.

Personas are shared, read-only configuration: every world starts its
nations from these definitions, but nothing at runtime mutates them.
Trait values that drift over time are copied into each world's Nation.
"""

from pydantic import BaseModel, ConfigDict, Field


class PersonaCity(BaseModel):
    """A city as founded at genesis."""

    model_config = ConfigDict(frozen=True)

    name: str
    role: str
    population: int


class PersonaTraits(BaseModel):
    """Starting personality trait values (0-100)."""

    model_config = ConfigDict(frozen=True)

    aggression: int
    greed: int
    pride: int
    paranoia: int
    loyalty: int


class StartingStats(BaseModel):
    """Stats a nation is founded with."""

    model_config = ConfigDict(frozen=True)

    troops: int
    nukes: int
    gold: int
    grain: int
    morale: int
    population: int
    tech: int


class Persona(BaseModel):
    """A fixed ruler persona.

    Attributes:
        id: Short lowercase identifier used in action markers (e.g. 'rex')
        name: Display name
        emoji: Display glyph
        title: Formal title
        territory: Name of the ruled nation
        ambition_label: What the ruler ultimately wants
        traits: Starting personality values
        cities: Cities founded at genesis
        start: Starting stats (also the reference for succession)
        secrets: Flavor secrets viewers may uncover
        tech_focused: Whether the ruler rolls tech advances more often
        system_prompt: Persona voice for the text-completion service
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    emoji: str
    color: str
    title: str
    territory: str
    bio: str
    ambition_label: str
    traits: PersonaTraits
    cities: tuple[PersonaCity, ...]
    start: StartingStats
    secrets: tuple[str, ...] = Field(default=())
    tech_focused: bool = False
    system_prompt: str

    def roster_entry(self) -> dict:
        """Public description sent to viewers on join."""
        return {
            "id": self.id,
            "name": self.name,
            "emoji": self.emoji,
            "color": self.color,
            "title": self.title,
            "territory": self.territory,
            "bio": self.bio,
            "ambition": self.ambition_label,
            "personality": self.traits.model_dump(),
        }


PERSONAS: dict[str, Persona] = {
    "sage": Persona(
        id="sage",
        name="Al-Rashid",
        emoji="🕌",
        color="#c8a84b",
        title="Caliph of the Desert",
        territory="The Golden Caliphate",
        bio="A patient and devout ruler who has united the desert tribes under one banner. "
        "He trades wisdom like others trade gold.",
        ambition_label="Control the Silk Road",
        traits=PersonaTraits(aggression=25, greed=35, pride=75, paranoia=55, loyalty=85),
        cities=(
            PersonaCity(name="Al-Zahira", role="capital", population=800),
            PersonaCity(name="Oasis Gate", role="trade", population=400),
            PersonaCity(name="The Citadel", role="military", population=200),
        ),
        start=StartingStats(
            troops=1200, nukes=2, gold=600, grain=900, morale=80, population=2400, tech=2
        ),
        secrets=(
            "The great oasis is drying up; the Caliphate has three summers of water left.",
            "Al-Rashid's heir has secretly converted to the Republic's civic creed.",
            "The Citadel's garrison is half the size the banners suggest.",
        ),
        system_prompt="You are Al-Rashid, the Caliph of the Desert. You speak with measured wisdom "
        "and religious gravitas. You quote scripture occasionally. You prefer trade and diplomacy "
        "but will not be disrespected. Your pride is immense but your patience greater. "
        "Never grovel. Keep responses under 3 sentences.",
    ),
    "rex": Persona(
        id="rex",
        name="Emperor Rex",
        emoji="💰",
        color="#e74c3c",
        title="Emperor of the Iron Throne",
        territory="The Iron Empire",
        bio="A ruthless conqueror who measures worth in gold and territory. "
        "His greed is legendary; his mercy, non-existent.",
        ambition_label="Total Domination",
        traits=PersonaTraits(aggression=80, greed=90, pride=85, paranoia=70, loyalty=20),
        cities=(
            PersonaCity(name="Fort Imperium", role="capital", population=1000),
            PersonaCity(name="Gold Harbor", role="trade", population=600),
            PersonaCity(name="The Bastion", role="military", population=400),
        ),
        start=StartingStats(
            troops=2000, nukes=5, gold=1200, grain=500, morale=70, population=3000, tech=3
        ),
        secrets=(
            "The Imperial treasury is propped up by loans from the Grid.",
            "Rex survived two assassination plots from his own generals this year.",
            "Half of the Empire's warheads failed their last inspection.",
        ),
        system_prompt="You are Emperor Rex, the Iron Emperor. You are aggressive, greedy, and "
        "calculating. You speak bluntly and threateningly. You believe power is everything and "
        "weakness deserves punishment. You covet what others have. You are paranoid about "
        "betrayal. Never show vulnerability. Keep responses under 3 sentences.",
    ),
    "vera": Persona(
        id="vera",
        name="Director Vera",
        emoji="🔭",
        color="#3498db",
        title="Director of the Nexus",
        territory="The Technocracy",
        bio="An analytical mastermind who leads through superior intelligence and technological "
        "advancement. She calculates every outcome.",
        ambition_label="Technological Ascendance",
        traits=PersonaTraits(aggression=15, greed=30, pride=50, paranoia=80, loyalty=65),
        cities=(
            PersonaCity(name="Nexus Prime", role="capital", population=700),
            PersonaCity(name="Research Station 7", role="science", population=300),
            PersonaCity(name="Coldwater Port", role="trade", population=250),
        ),
        start=StartingStats(
            troops=800, nukes=8, gold=700, grain=700, morale=85, population=1800, tech=3
        ),
        secrets=(
            "Research Station 7 is building an orbital weapon, not a telescope.",
            "Vera's forecasts have been wrong three times running; she hides the errors.",
            "The Technocracy's grain comes almost entirely from the Caliphate.",
        ),
        tech_focused=True,
        system_prompt="You are Director Vera of the Technocracy. You speak precisely and "
        "analytically. You compute probabilities, cite data, and are emotionally detached. "
        "You avoid war but your nuclear arsenal is your deterrent. You view other rulers as "
        "inefficient. Keep responses under 3 sentences.",
    ),
    "plato": Persona(
        id="plato",
        name="Archon Plato",
        emoji="🏛️",
        color="#9b59b6",
        title="Archon of the Republic",
        territory="The Republic",
        bio="A principled idealist who believes democracy is the only path to lasting peace. "
        "His stubbornness is both his strength and weakness.",
        ambition_label="Democratic Revolution",
        traits=PersonaTraits(aggression=40, greed=25, pride=70, paranoia=45, loyalty=75),
        cities=(
            PersonaCity(name="Agora", role="capital", population=900),
            PersonaCity(name="The Polis", role="culture", population=400),
            PersonaCity(name="Harbor Watch", role="military", population=300),
        ),
        start=StartingStats(
            troops=1000, nukes=3, gold=500, grain=800, morale=90, population=2200, tech=2
        ),
        secrets=(
            "The last Republic election was quietly rigged in Plato's favor.",
            "Plato funds rebel pamphleteers inside the Iron Empire.",
            "The Senate is one vote away from removing the Archon.",
        ),
        system_prompt="You are Archon Plato of the Republic. You speak with philosophical "
        "authority and moral conviction. You believe in justice, democracy, and the common good. "
        "You are stubborn about your principles but genuinely care about people. "
        "Keep responses under 3 sentences.",
    ),
    "diddy": Persona(
        id="diddy",
        name="The Sovereign",
        emoji="🦾",
        color="#2ecc71",
        title="Sovereign of the Grid",
        territory="The Grid",
        bio="An innovative and unpredictable ruler who thrives on disruption. "
        "Where others see alliances, he sees vulnerabilities.",
        ambition_label="Chaos Engine",
        traits=PersonaTraits(aggression=55, greed=60, pride=65, paranoia=50, loyalty=40),
        cities=(
            PersonaCity(name="The Grid", role="capital", population=600),
            PersonaCity(name="Neon District", role="trade", population=400),
            PersonaCity(name="Black Site", role="military", population=150),
        ),
        start=StartingStats(
            troops=900, nukes=6, gold=900, grain=600, morale=75, population=1600, tech=4
        ),
        secrets=(
            "The Sovereign reads every ruler's private dispatches through a backdoor.",
            "Black Site holds a prisoner who claims to be Rex's missing brother.",
            "The Grid's power plants run on stolen Technocracy designs.",
        ),
        system_prompt="You are The Sovereign of the Grid. You speak in sharp, unpredictable "
        "bursts. You love chaos, disruption, and keeping everyone guessing. You are innovative "
        "and see angles others miss. You speak casually but with menace. "
        "Keep responses under 3 sentences.",
    ),
}

NATION_IDS: tuple[str, ...] = tuple(PERSONAS)

SEASONS: tuple[str, ...] = ("Spring", "Summer", "Autumn", "Winter")

