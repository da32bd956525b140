"""World sessions: one store, one scheduler, fully isolated per world id.

A WorldSession wires the WorldStore to its collaborators:

- TickScheduler runs every mutation as a serialized job and arms the
  periodic ticks and generators
- TextCompletion gives rulers their voice (decisions, whispers, ambient
  speech, intercepted letters, yearly chronicle)
- WorldRepository receives best-effort snapshots whenever the world is dirty
- Broadcaster delivers notices and a per-viewer fogged world_update after
  every job

Text completion never runs inside a job. Speaker selection and prompt
building read the world between jobs, the call is awaited outside the
queue, and its effect is submitted as a new job once the text arrives.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

from blissnexus.broadcast import Broadcaster
from blissnexus.catalog import Catalog
from blissnexus.engine import economy, events, influence
from blissnexus.engine.actions import ActionKind, run_action_text, strip_markers
from blissnexus.engine.fog import project
from blissnexus.engine.store import NoticeKind, WorldStore
from blissnexus.engine.scheduler import TickScheduler
from blissnexus.llm import NullCompletion, TextCompletion
from blissnexus.models import ChronicleEntry, Intercept, Promise, Rumor, World, push_bounded
from blissnexus.parameters import (
    AMBIENT_DELAY,
    AMBIENT_MAX_TOKENS,
    BREAKING_NEWS_DELAY,
    CHRONICLE_CAP,
    CHRONICLE_MAX_TOKENS,
    CRISIS_DELAY,
    DECISION_DELAY,
    DECISION_MAX_TOKENS,
    DRIFT_TICK_SECONDS,
    INTERCEPT_CAP,
    INTERCEPT_DELAY,
    LEVEL_EVENT_TRIGGER,
    LEVEL_MEMORY_READ,
    LEVEL_RUMOR_PLANTING,
    LEVEL_SUGGESTION_WEIGHT,
    LEVERAGE_MORALE_HIT,
    LEVERAGE_TRUST_HIT,
    MOOD_TICK_SECONDS,
    POINTS_AMBIENT_SUCCESS,
    POINTS_LEVERAGE_USED,
    POINTS_SECRET_DISCOVERED,
    POINTS_TRADE_BROKERED,
    PROMISE_CAP,
    PROPHECY_DELAY,
    RESOURCE_TICK_SECONDS,
    RUMOR_CAP,
    RUMOR_TRUST_HIT,
    SAVE_TICK_SECONDS,
    SEASON_TICK_SECONDS,
    SECRET_REVEAL_CHANCE,
    SECRET_TRUST_THRESHOLD,
    SWEEP_TICK_SECONDS,
    WAR_TICK_SECONDS,
    WHISPER_MAX_TOKENS,
    WHISPER_TRUST_GAIN_CHANCE,
)
from blissnexus.personas import NATION_IDS, PERSONAS
from blissnexus.prompts import (
    AMBIENT_USER_PROMPT,
    CHRONICLE_SYSTEM_PROMPT,
    DECISION_USER_PROMPT,
    INTERCEPT_USER_PROMPT,
    format_ambient_prompt,
    format_chronicle_prompt,
    format_decision_prompt,
    format_intercept_prompt,
    format_whisper_prompt,
)
from blissnexus.storage import WorldRepository

logger = logging.getLogger(__name__)

JOIN_LOG_LINES = 30
PROMISE_MARKERS = ("promise", "i will")


class WorldSession:
    """A running world and everything it talks to.

    Attributes:
        world_id: Identifier used for storage and broadcast
        store: Owner of the canonical World
        scheduler: Serialized job queue and timers
    """

    def __init__(
        self,
        world_id: str,
        *,
        completion: TextCompletion | None = None,
        repository: WorldRepository | None = None,
        broadcaster: Broadcaster | None = None,
        rng: random.Random | None = None,
        time_scale: float = 1.0,
        catalog: Catalog | None = None,
    ):
        self.world_id = world_id
        self.completion = completion or NullCompletion()
        self.repository = repository
        self.broadcaster = broadcaster or Broadcaster()
        self.scheduler = TickScheduler(time_scale=time_scale, on_job_done=self.flush)
        self.store = WorldStore(rng=rng, clock=self.scheduler.clock, catalog=catalog)
        self._fog_rng = random.Random()
        self._autosave: asyncio.Task | None = None

    @property
    def world(self) -> World:
        return self.store.world

    @property
    def rng(self) -> random.Random:
        return self.store.rng

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self, arm_timers: bool = True) -> None:
        """Load or create the world and start ticking."""
        await self.load()
        self.scheduler.start()
        self.store.attach(self.scheduler.after)
        if arm_timers:
            self._arm_timers()
        prophecy = self.world.active_prophecy
        if prophecy is not None:
            events.schedule_fulfilment(self.store, prophecy, prophecy.fulfil_at - self.store.clock())
        self._autosave = self.scheduler.spawn(self._autosave_loop())
        logger.info(f"World session {self.world_id} started (year {self.world.year})")

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.save()
        logger.info(f"World session {self.world_id} stopped")

    def _arm_timers(self) -> None:
        store, scheduler, rng = self.store, self.scheduler, self.store.rng

        scheduler.every(RESOURCE_TICK_SECONDS, lambda: economy.resource_tick(store))
        scheduler.every(WAR_TICK_SECONDS, lambda: economy.war_tick(store))
        scheduler.every(MOOD_TICK_SECONDS, lambda: economy.recompute_moods(store))
        scheduler.every(SWEEP_TICK_SECONDS, self._sweep)
        scheduler.every(SEASON_TICK_SECONDS, self._season)
        scheduler.every(DRIFT_TICK_SECONDS, lambda: economy.personality_drift(store))

        scheduler.every(
            lambda: events.world_event_delay(store.world.tension, rng),
            lambda: events.random_world_event(store),
            first=120.0,
        )
        scheduler.every(lambda: rng.uniform(*CRISIS_DELAY), lambda: events.generate_crisis(store), first=180.0)
        scheduler.every(lambda: rng.uniform(*PROPHECY_DELAY), lambda: events.generate_prophecy(store))
        scheduler.every(lambda: rng.uniform(*BREAKING_NEWS_DELAY), lambda: events.breaking_news(store))

        scheduler.every(
            lambda: rng.uniform(*DECISION_DELAY),
            lambda: scheduler.spawn(self.autonomous_decision()),
            first=30.0,
        )
        scheduler.every(
            lambda: rng.uniform(*AMBIENT_DELAY),
            lambda: scheduler.spawn(self.ambient_speech()),
            first=5.0,
        )
        scheduler.every(
            lambda: rng.uniform(*INTERCEPT_DELAY),
            lambda: scheduler.spawn(self.intercept()),
            first=60.0,
        )

    def _sweep(self) -> None:
        events.sweep_crises(self.store)
        influence.expire_missions(self.store)

    def _season(self) -> None:
        if economy.season_tick(self.store):
            self.scheduler.spawn(self.write_chronicle(self.world.year - 1))

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def load(self) -> None:
        """Restore the world from the repository, or keep the fresh genesis."""
        if self.repository is None:
            return
        try:
            blob = await asyncio.to_thread(self.repository.load_world, self.world_id)
        except Exception as e:
            logger.warning(f"Could not load world {self.world_id}: {e}")
            return
        if not blob:
            logger.info(f"New world created: {self.world_id}")
            self.store.dirty = True
            return
        try:
            self.store.world = World.from_blob(blob, self.rng)
        except ValueError as e:
            logger.warning(f"Stored world {self.world_id} is unreadable, starting fresh: {e}")
            self.store.dirty = True
            return
        logger.info(f"World loaded: {self.world_id}, year {self.world.year}")

    async def save(self) -> bool:
        """Write a snapshot if the world changed; failures are logged only."""
        if self.repository is None or not self.store.dirty:
            return False
        blob = self.world.to_blob()
        self.store.dirty = False
        try:
            await asyncio.to_thread(self.repository.save_world, self.world_id, blob)
        except Exception as e:
            logger.warning(f"Saving world {self.world_id} failed: {e}")
            self.store.dirty = True
            return False
        return True

    async def _autosave_loop(self) -> None:
        while True:
            await asyncio.sleep(SAVE_TICK_SECONDS * self.scheduler.time_scale)
            await self.save()

    # -------------------------------------------------------------------------
    # Broadcast
    # -------------------------------------------------------------------------

    def flush(self) -> None:
        """Deliver queued notices, then a fresh fogged snapshot to each viewer."""
        notices = self.store.drain_notices()
        for notice in notices:
            message = notice.to_message()
            if notice.viewer_id is None:
                self.broadcaster.send_to_all(self.world_id, message)
            else:
                self.broadcaster.send_to_one(self.world_id, notice.viewer_id, message)
        if not notices and not self.store.changed:
            return
        self.store.changed = False
        for viewer_id in self.broadcaster.viewers(self.world_id):
            self.broadcaster.send_to_one(self.world_id, viewer_id, {
                "type": NoticeKind.WORLD_UPDATE.value,
                "world": project(self.world, viewer_id, self._fog_rng),
            })

    def snapshot(self, viewer_id: str | None) -> dict[str, Any]:
        return project(self.world, viewer_id, self._fog_rng)

    # -------------------------------------------------------------------------
    # Viewer interactions
    # -------------------------------------------------------------------------

    async def join(self, viewer_id: str, name: str | None = None) -> dict[str, Any]:
        """Subscribe a viewer and return its initial view of the world."""
        self.broadcaster.subscribe(self.world_id, viewer_id)
        return await self.scheduler.call(lambda: self._join(viewer_id, name))

    def _join(self, viewer_id: str, name: str | None) -> dict[str, Any]:
        player = self.store.player(viewer_id, name)
        mission = self.world.missions.get(viewer_id)
        if mission is None or not mission.active:
            mission = influence.generate_mission(self.store, viewer_id)
        return {
            "type": "init",
            "agents": [PERSONAS[nid].roster_entry() for nid in NATION_IDS],
            "world": self.snapshot(viewer_id),
            "log": [entry.model_dump(mode="json") for entry in self.world.log[:JOIN_LOG_LINES]],
            "chronicle": [entry.model_dump(mode="json") for entry in self.world.chronicle],
            "mission": mission.model_dump(mode="json") if mission else None,
            "influence": player.model_dump(mode="json"),
            "abilities": influence.abilities(player.level),
            "is_new": not self.world.log,
        }

    async def request_mission(self, viewer_id: str) -> dict[str, Any] | None:
        def issue() -> dict[str, Any] | None:
            self.store.player(viewer_id)
            mission = influence.generate_mission(self.store, viewer_id)
            return mission.model_dump(mode="json") if mission else None

        return await self.scheduler.call(issue)

    async def reset(self) -> None:
        """Replace the world wholesale and persist the new genesis."""
        await self.scheduler.call(self.store.reset)
        await self.save()

    async def whisper(
        self,
        viewer_id: str,
        nation_id: str,
        text: str,
        viewer_name: str | None = None,
    ) -> dict[str, Any] | None:
        """Handle a private message from a viewer to a ruler.

        Commands (``/rumor``, ``/memory``, ``/event``, ``/leverage``) are
        answered without the text service. Everything else is sent to the
        ruler, whose reply runs through the action engine and mission checks.

        Returns:
            The whisper_reply message, or None for an unknown ruler or empty text
        """
        text = (text or "").strip()
        if nation_id not in PERSONAS or not text:
            return None

        early = await self.scheduler.call(lambda: self._before_whisper(viewer_id, viewer_name, nation_id, text))
        if early is not None:
            return early

        prompt = format_whisper_prompt(self.world, nation_id, viewer_id, self.store.player(viewer_id).name)
        reply = await self.completion.complete(prompt, text, WHISPER_MAX_TOKENS)
        return await self.scheduler.call(lambda: self._after_whisper(viewer_id, nation_id, text, reply))

    def _reply(self, viewer_id: str, nation_id: str, text: str, command: str | None = None) -> dict[str, Any]:
        persona = PERSONAS[nation_id]
        message = {
            "agent_id": nation_id,
            "name": persona.name,
            "emoji": persona.emoji,
            "color": persona.color,
            "text": text,
        }
        if command is not None:
            message["command"] = command
        self.store.emit(NoticeKind.WHISPER_REPLY, message, viewer_id=viewer_id)
        return {"type": NoticeKind.WHISPER_REPLY.value, **message}

    def _before_whisper(self, viewer_id: str, viewer_name: str | None, nation_id: str, text: str) -> dict | None:
        player = self.store.player(viewer_id, viewer_name)
        nation = self.store.nation(nation_id)
        persona = PERSONAS[nation_id]

        if text.startswith("/"):
            return self._command(viewer_id, nation_id, text)

        if not nation.alive:
            return self._reply(viewer_id, nation_id, f"🕯️ The court of {persona.name} is silent. The realm has fallen.")

        lowered = text.lower()
        if any(marker in lowered for marker in PROMISE_MARKERS):
            promise = Promise(text=text, viewer_id=viewer_id, timestamp=self.store.clock())
            push_bounded(nation.promises, promise, PROMISE_CAP)
        if player.level >= LEVEL_SUGGESTION_WEIGHT:
            nation.suggestion = text
        self.store.dirty = True
        return None

    def _command(self, viewer_id: str, nation_id: str, text: str) -> dict[str, Any]:
        store = self.store
        player = store.player(viewer_id)
        nation = store.nation(nation_id)
        persona = PERSONAS[nation_id]
        name, _, rest = text[1:].partition(" ")
        name = name.lower()
        rest = rest.strip()

        def locked(level: int, ability: str) -> dict[str, Any]:
            return self._reply(viewer_id, nation_id, f"🔒 {ability} requires influence level {level}.", name)

        if name == "rumor":
            if player.level < LEVEL_RUMOR_PLANTING:
                return locked(LEVEL_RUMOR_PLANTING, "Rumor planting")
            about, _, rumor_text = rest.partition(" ")
            about = about.lower()
            if about not in PERSONAS or about == nation_id or not rumor_text.strip():
                return self._reply(viewer_id, nation_id, "Usage: /rumor <ruler id> <rumor>", name)
            rumor = Rumor(text=rumor_text.strip(), source=viewer_id, about=about, timestamp=store.clock())
            push_bounded(nation.rumors, rumor, RUMOR_CAP)
            store.adjust_trust(nation_id, about, RUMOR_TRUST_HIT)
            store.add_memory(nation_id, f"Heard a rumor about {store.name(about)}: {rumor.text}")
            store.emit(NoticeKind.RUMOR_PLANTED, {"nation": nation_id, "about": about, "text": rumor.text}, viewer_id)
            return self._reply(viewer_id, nation_id, f"🗣️ {persona.name} listens closely to your rumor about {store.name(about)}.", name)

        if name == "memory":
            if player.level < LEVEL_MEMORY_READ:
                return locked(LEVEL_MEMORY_READ, "Memory reading")
            store.emit(NoticeKind.MEMORY_READ, {"nation": nation_id, "memory": list(nation.memory)}, viewer_id)
            recalled = "; ".join(nation.memory) or "nothing of note"
            return self._reply(viewer_id, nation_id, f"🧠 {persona.name} recalls: {recalled}", name)

        if name == "event":
            if player.level < LEVEL_EVENT_TRIGGER:
                return locked(LEVEL_EVENT_TRIGGER, "World-event triggering")
            if store.catalog.event(rest) is None:
                return self._reply(viewer_id, nation_id, f"No such event: {rest or '?'}", name)
            if not store.apply_event(rest, nation_id):
                return self._reply(viewer_id, nation_id, f"The fates refuse: {persona.name} cannot be struck now.", name)
            return self._reply(viewer_id, nation_id, f"🌩️ You have set '{rest}' upon {persona.name}.", name)

        if name == "leverage":
            known = player.secrets_known.get(nation_id, [])
            unused = [secret for secret in known if secret not in player.used_leverage]
            if not unused:
                return self._reply(viewer_id, nation_id, f"You hold no leverage over {persona.name}.", name)
            secret = unused[0]
            player.used_leverage.append(secret)
            nation.morale -= LEVERAGE_MORALE_HIT
            store.adjust_user_trust(nation_id, viewer_id, LEVERAGE_TRUST_HIT)
            store.add_memory(nation_id, "A stranger threatened to expose our secrets")
            store.emit(NoticeKind.LEVERAGE_USED, {"nation": nation_id, "secret": secret}, viewer_id)
            influence.award_points(store, viewer_id, POINTS_LEVERAGE_USED, "leverage used")
            return self._reply(viewer_id, nation_id, f"😠 {persona.name} blanches. \"Keep your voice down.\"", name)

        return self._reply(viewer_id, nation_id, f"Unknown command: /{name}", name)

    def _after_whisper(self, viewer_id: str, nation_id: str, text: str, reply: str) -> dict[str, Any]:
        store = self.store
        persona = PERSONAS[nation_id]

        if store.rng.random() < WHISPER_TRUST_GAIN_CHANCE:
            store.adjust_user_trust(nation_id, viewer_id, 1)

        applied = run_action_text(store, nation_id, reply)
        if any(intent.kind is ActionKind.TRADE for intent in applied):
            influence.award_points(store, viewer_id, POINTS_TRADE_BROKERED, "trade brokered")

        influence.check_mission_completion(store, viewer_id, nation_id, text, reply)
        self._maybe_reveal_secret(viewer_id, nation_id)

        shown = strip_markers(reply) or f"*{persona.name} regards you in silence.*"
        return self._reply(viewer_id, nation_id, shown)

    def _maybe_reveal_secret(self, viewer_id: str, nation_id: str) -> None:
        store = self.store
        nation = store.nation(nation_id)
        if nation.trust_toward(viewer_id) < SECRET_TRUST_THRESHOLD:
            return
        player = store.player(viewer_id)
        known = player.secrets_known.setdefault(nation_id, [])
        hidden = [secret for secret in nation.secrets if secret not in known]
        if not hidden or store.rng.random() >= SECRET_REVEAL_CHANCE:
            return
        secret = hidden[0]
        known.append(secret)
        if secret not in nation.revealed_secrets:
            nation.revealed_secrets.append(secret)
        store.emit(NoticeKind.SECRET_REVEALED, {"nation": nation_id, "secret": secret}, viewer_id)
        influence.award_points(store, viewer_id, POINTS_SECRET_DISCOVERED, "secret discovered")
        logger.info(f"{viewer_id} learned a secret of {nation_id}")

    # -------------------------------------------------------------------------
    # Ruler voices
    # -------------------------------------------------------------------------

    async def autonomous_decision(self) -> None:
        living = self.store.living_ids()
        if not living:
            return
        nation_id = self.rng.choice(living)
        prompt = format_decision_prompt(self.world, nation_id)
        text = await self.completion.complete(prompt, DECISION_USER_PROMPT, DECISION_MAX_TOKENS)
        self.scheduler.submit(lambda: self.apply_decision(nation_id, text))

    def apply_decision(self, nation_id: str, text: str) -> list:
        """Apply a ruler's decision text; empty or NONE replies change nothing."""
        nation = self.store.nation(nation_id)
        if nation is None or not nation.alive:
            return []
        nation.suggestion = None
        if not text or "NONE" in text.upper():
            logger.debug(f"{nation_id} chose to do nothing")
            return []
        return run_action_text(self.store, nation_id, text)

    async def ambient_speech(self) -> None:
        living = self.store.living_ids()
        if not living:
            return
        nation_id = self.rng.choice(living)
        prompt = format_ambient_prompt(self.world, nation_id)
        text = await self.completion.complete(prompt, AMBIENT_USER_PROMPT, AMBIENT_MAX_TOKENS)
        self.scheduler.submit(lambda: self.publish_speech(nation_id, text))

    def publish_speech(self, nation_id: str, text: str) -> bool:
        """Announce a proclamation; viewers whose rumors it echoes earn points."""
        nation = self.store.nation(nation_id)
        text = strip_markers(text or "")
        if nation is None or not nation.alive or not text:
            return False
        persona = PERSONAS[nation_id]
        self.store.add_log(f"{persona.emoji} {persona.name}: \"{text}\"", "speech")
        self.store.emit(NoticeKind.MESSAGE, {
            "agent_id": nation_id,
            "name": persona.name,
            "emoji": persona.emoji,
            "color": persona.color,
            "text": text,
        })

        lowered = text.lower()
        echoed = [
            rumor for rumor in nation.rumors
            if rumor.about and rumor.source in self.world.players and PERSONAS[rumor.about].name.lower() in lowered
        ]
        for rumor in echoed:
            nation.rumors.remove(rumor)
            influence.award_points(self.store, rumor.source, POINTS_AMBIENT_SUCCESS, "rumor echoed in public")
        return True

    async def intercept(self) -> None:
        living = self.store.living_ids()
        if len(living) < 2:
            return
        sender = self.rng.choice(living)
        recipient = self.rng.choice([nid for nid in living if nid != sender])
        prompt = format_intercept_prompt(self.world, sender, recipient)
        user_text = INTERCEPT_USER_PROMPT.format(recipient=PERSONAS[recipient].name)
        text = await self.completion.complete(prompt, user_text, AMBIENT_MAX_TOKENS)
        self.scheduler.submit(lambda: self.record_intercept(sender, recipient, text))

    def record_intercept(self, sender: str, recipient: str, text: str) -> Intercept | None:
        text = strip_markers(text or "")
        if not text:
            return None
        entry = Intercept(sender=sender, recipient=recipient, text=text, ts=self.store.clock())
        push_bounded(self.world.intercept_feed, entry, INTERCEPT_CAP)
        self.store.emit(NoticeKind.INTERCEPT, {
            "entry": {
                **entry.model_dump(mode="json"),
                "sender_name": PERSONAS[sender].name,
                "recipient_name": PERSONAS[recipient].name,
                "sender_emoji": PERSONAS[sender].emoji,
                "recipient_emoji": PERSONAS[recipient].emoji,
            }
        })
        return entry

    async def write_chronicle(self, year: int) -> None:
        prompt = format_chronicle_prompt(self.world, year)
        text = await self.completion.complete(CHRONICLE_SYSTEM_PROMPT, prompt, CHRONICLE_MAX_TOKENS)
        self.scheduler.submit(lambda: self.record_chronicle(year, text))

    def record_chronicle(self, year: int, text: str) -> ChronicleEntry | None:
        text = (text or "").strip()
        if not text:
            logger.warning(f"No chronicle written for year {year}")
            return None
        entry = ChronicleEntry(year=year, text=text, ts=self.store.clock())
        push_bounded(self.world.chronicle, entry, CHRONICLE_CAP)
        self.store.add_log(f"📜 Chronicle written for Year {year}", "event")
        self.store.emit(NoticeKind.CHRONICLE, {"entry": entry.model_dump(mode="json")})
        return entry


class SessionManager:
    """Creates and owns one WorldSession per world id."""

    def __init__(
        self,
        *,
        completion: TextCompletion | None = None,
        repository: WorldRepository | None = None,
        broadcaster: Broadcaster | None = None,
        time_scale: float = 1.0,
        arm_timers: bool = True,
    ):
        self.completion = completion
        self.repository = repository
        self.broadcaster = broadcaster or Broadcaster()
        self.time_scale = time_scale
        self.arm_timers = arm_timers
        self._sessions: dict[str, WorldSession] = {}
        self._lock = asyncio.Lock()

    async def get(self, world_id: str) -> WorldSession:
        async with self._lock:
            session = self._sessions.get(world_id)
            if session is None:
                session = WorldSession(
                    world_id,
                    completion=self.completion,
                    repository=self.repository,
                    broadcaster=self.broadcaster,
                    time_scale=self.time_scale,
                )
                await session.start(arm_timers=self.arm_timers)
                self._sessions[world_id] = session
            return session

    def sessions(self) -> list[str]:
        return list(self._sessions)

    async def shutdown(self) -> None:
        async with self._lock:
            for session in self._sessions.values():
                await session.stop()
            self._sessions.clear()
