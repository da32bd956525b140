"""World engine for BlissNexus.

This module contains the simulation core:
- store: WorldStore, the owner of the World and its invariant-keeping mutators
- actions: parsing of free-text action markers into mutator calls
- economy: resource, war, mood, season and personality-drift ticks
- events: random world events, cascades, crises, prophecies, breaking news
- fog: per-viewer fog-of-war projection
- influence: viewer points, levels and missions
- scheduler: the asyncio job queue that serializes every mutation
- session: WorldSession / SessionManager wiring it all together

Usage:
    from blissnexus.engine import WorldSession

    session = WorldSession("main", time_scale=0.1)
    await session.start()
    init = await session.join("viewer-1", "Aria")
    reply = await session.whisper("viewer-1", "rex", "I bring a warning.")
    await session.stop()
"""

from blissnexus.engine.actions import (
    ActionIntent,
    ActionKind,
    apply_actions,
    parse_actions,
    run_action_text,
)
from blissnexus.engine.fog import project
from blissnexus.engine.scheduler import TickScheduler
from blissnexus.engine.session import SessionManager, WorldSession
from blissnexus.engine.store import Notice, NoticeKind, WorldStore

__all__ = [
    # Store
    "WorldStore",
    "Notice",
    "NoticeKind",
    # Actions
    "ActionIntent",
    "ActionKind",
    "parse_actions",
    "apply_actions",
    "run_action_text",
    # Projection
    "project",
    # Scheduling
    "TickScheduler",
    "WorldSession",
    "SessionManager",
]
