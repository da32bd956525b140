"""Diplomatic action engine.

Free text (an autonomous decision or a whisper reply) is scanned for a small
vocabulary of action markers:

    DECLARE_WAR:<id>  FORM_ALLIANCE:<id>  MAKE_PEACE:<id>
    BETRAY_ALLY:<id>  TRADE:<id>          LAUNCH_NUKE:<id>
    MOBILIZE

Markers are case-insensitive. Targets must be a known nation id other than
the speaker. Each marker kind yields at most one intent per text; anything
unrecognised is dropped. This module is the single entry point through which
text-driven diplomacy reaches the WorldStore.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from blissnexus.engine.store import WorldStore
from blissnexus.personas import NATION_IDS

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    DECLARE_WAR = "DECLARE_WAR"
    FORM_ALLIANCE = "FORM_ALLIANCE"
    MAKE_PEACE = "MAKE_PEACE"
    BETRAY_ALLY = "BETRAY_ALLY"
    TRADE = "TRADE"
    LAUNCH_NUKE = "LAUNCH_NUKE"
    MOBILIZE = "MOBILIZE"


TARGETED_KINDS = tuple(kind for kind in ActionKind if kind is not ActionKind.MOBILIZE)

_TARGETED_PATTERN = re.compile(
    r"\b(" + "|".join(kind.value for kind in TARGETED_KINDS) + r")\s*:\s*([a-z0-9_]+)",
    re.IGNORECASE,
)
_MOBILIZE_PATTERN = re.compile(r"\bMOBILIZE\b", re.IGNORECASE)


@dataclass(frozen=True)
class ActionIntent:
    """A structured action extracted from text.

    Attributes:
        kind: Which mutator to call
        target: Target nation id (None for MOBILIZE)
    """

    kind: ActionKind
    target: str | None = None


def parse_actions(text: str, speaker: str, nation_ids: Iterable[str] = NATION_IDS) -> list[ActionIntent]:
    """Extract action intents from free text, in order of appearance."""
    if not text:
        return []
    known = set(nation_ids)
    found: list[tuple[int, ActionIntent]] = []
    seen: set[ActionKind] = set()

    for match in _TARGETED_PATTERN.finditer(text):
        kind = ActionKind(match.group(1).upper())
        target = match.group(2).lower()
        if kind in seen or target == speaker or target not in known:
            continue
        seen.add(kind)
        found.append((match.start(), ActionIntent(kind, target)))

    mobilize = _MOBILIZE_PATTERN.search(text)
    if mobilize is not None:
        found.append((mobilize.start(), ActionIntent(ActionKind.MOBILIZE)))

    found.sort(key=lambda item: item[0])
    return [intent for _, intent in found]


def apply_actions(store: WorldStore, speaker: str, intents: Iterable[ActionIntent]) -> list[ActionIntent]:
    """Dispatch intents to the store's mutators.

    Returns:
        The intents whose mutator actually changed the world
    """
    dispatch = {
        ActionKind.DECLARE_WAR: store.declare_war,
        ActionKind.FORM_ALLIANCE: store.form_alliance,
        ActionKind.MAKE_PEACE: store.make_peace,
        ActionKind.BETRAY_ALLY: store.betray_ally,
        ActionKind.TRADE: store.trade,
        ActionKind.LAUNCH_NUKE: store.launch_nuke,
    }
    applied = []
    for intent in intents:
        if intent.kind is ActionKind.MOBILIZE:
            ok = store.mobilize(speaker)
        else:
            ok = dispatch[intent.kind](speaker, intent.target)
        if ok:
            applied.append(intent)
        else:
            logger.debug(f"Action {intent.kind.value}:{intent.target} by {speaker} did not apply")
    return applied


def run_action_text(store: WorldStore, speaker: str, text: str) -> list[ActionIntent]:
    """Parse and apply all markers found in a ruler's text."""
    intents = parse_actions(text, speaker)
    if not intents:
        return []
    applied = apply_actions(store, speaker, intents)
    if applied:
        logger.info(f"{speaker} acted: {', '.join(i.kind.value for i in applied)}")
    return applied


def strip_markers(text: str) -> str:
    """Remove action markers from text shown to viewers."""
    cleaned = _TARGETED_PATTERN.sub("", text)
    cleaned = _MOBILIZE_PATTERN.sub("", cleaned)
    return re.sub(r"\s{2,}", " ", cleaned).strip()
