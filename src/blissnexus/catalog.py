"""Declarative content catalog for BlissNexus.

World events, crisis templates and breaking-news stories are data, not code.
The packaged catalog lives in ``content/catalog.json``; designers can point
``BLISSNEXUS_CATALOG_PATH`` at their own file to retune content without
touching the engine. Every entry is consumed by the single generic applier in
``blissnexus.engine.events``.

Catalog structure:
    events: World events applied to one nation, each with an optional cascade
    crises: Crisis text templates
    breaking_news: Larger hand-authored effects, applied to one or all nations
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "content" / "catalog.json"


class Effects(BaseModel):
    """Numeric effects applied to a nation (and the world).

    Absolute fields add to the stat; ``*_pct`` fields scale it by (1 + value).
    ``trust`` shifts the nation's trust toward every other nation;
    ``tension`` shifts global tension.
    """

    grain: int = 0
    gold: int = 0
    morale: int = 0
    troops: int = 0
    tech: int = 0
    tension: int = 0
    trust: int = 0
    population_pct: float = 0.0
    troops_pct: float = 0.0
    gold_pct: float = 0.0


class CascadeSpec(BaseModel):
    """A secondary event chained from a primary one."""

    event_id: str
    probability: float = Field(ge=0.0, le=1.0)
    delay: float = Field(ge=0.0)


class EventSpec(BaseModel):
    """A world event from the catalog.

    Attributes:
        id: Stable identifier (used by cascades, prophecies and /event)
        text: Log text; ``{name}`` is replaced by the ruler's name
        omen: Prophecy phrasing for the event
        effects: Numeric effects on the struck nation
        cascade: Optional follow-up event
        min_tension: Trigger condition; the event is only drawn at or above it
    """

    id: str
    text: str
    omen: str = ""
    effects: Effects = Field(default_factory=Effects)
    cascade: CascadeSpec | None = None
    min_tension: int = 0


class NewsSpec(BaseModel):
    """A breaking-news story with a global or single-nation effect."""

    id: str
    headline: str
    scope: Literal["all", "one"] = "all"
    effects: Effects = Field(default_factory=Effects)
    min_tension: int = 0


class Catalog(BaseModel):
    events: list[EventSpec]
    crises: list[str]
    breaking_news: list[NewsSpec]

    def event(self, event_id: str) -> EventSpec | None:
        """Look up an event by id."""
        for spec in self.events:
            if spec.id == event_id:
                return spec
        return None

    def events_for_tension(self, tension: int) -> list[EventSpec]:
        return [spec for spec in self.events if tension >= spec.min_tension]

    def news_for_tension(self, tension: int) -> list[NewsSpec]:
        return [spec for spec in self.breaking_news if tension >= spec.min_tension]


def get_catalog_path() -> Path:
    """Get configured catalog path from environment."""
    configured = os.environ.get("BLISSNEXUS_CATALOG_PATH")
    return Path(configured) if configured else DEFAULT_CATALOG_PATH


def load_catalog(path: str | Path | None = None) -> Catalog:
    """Load and validate a catalog file.

    Args:
        path: Catalog JSON file. Defaults to the configured path.

    Returns:
        Validated Catalog

    Raises:
        ValueError: If a cascade references an unknown event
    """
    path = Path(path) if path is not None else get_catalog_path()
    catalog = Catalog.model_validate_json(path.read_text(encoding="utf-8"))

    known = {spec.id for spec in catalog.events}
    for spec in catalog.events:
        if spec.cascade is not None and spec.cascade.event_id not in known:
            raise ValueError(f"Event '{spec.id}' cascades into unknown event '{spec.cascade.event_id}'")

    logger.info(f"Loaded catalog from {path}: {len(catalog.events)} events, "
                f"{len(catalog.crises)} crises, {len(catalog.breaking_news)} news stories")
    return catalog


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    """The configured catalog, loaded once per process."""
    return load_catalog()
