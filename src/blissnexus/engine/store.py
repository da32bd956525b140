"""World State Store for BlissNexus.

The WorldStore owns the only authoritative World of a session and exposes
the mutators every other component calls. Each mutator:

1. Checks its preconditions and silently returns False when they fail
   (dead participants, duplicate edges, self-targeting). Mutators are driven
   by untrusted free text, so an illegal transition is never an error.
2. Applies its effects while keeping the relationship invariants:
   - wars and allies are symmetric
   - a pair is never allied and at war at the same time
   - relation labels are derived from trust (see models.nation)
3. Appends a log line, ruler memories and a notice to the outbox.

Delayed follow-ups (nuke impact, cascades, succession) are handed to the
scheduler through ``later``. They are never cancelled; each mutator re-checks
liveness when it finally runs.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from blissnexus.catalog import Catalog, Effects, EventSpec, default_catalog
from blissnexus.models import (
    Crisis,
    LogEntry,
    Mood,
    Nation,
    PlayerInfluence,
    World,
    push_bounded,
)
from blissnexus.parameters import (
    ALLIANCE_TENSION_DELTA,
    ALLIANCE_TRUST_FLOOR,
    BETRAYAL_BETRAYER_TRUST_HIT,
    BETRAYAL_VICTIM_TRUST_HIT,
    BETRAYAL_WAR_CHANCE,
    CRISIS_SECONDS,
    DESTRUCTION_TROOP_FLOOR,
    LOG_CAP,
    MOBILIZE_COST,
    MOBILIZE_MULTIPLIER,
    NUKE_FLIGHT_SECONDS,
    NUKE_MORALE_HIT,
    NUKE_PLAGUE_CHANCE,
    NUKE_PLAGUE_DELAY,
    NUKE_POPULATION_FACTOR,
    NUKE_REBELLION_CHANCE,
    NUKE_REBELLION_DELAY,
    NUKE_TENSION_DELTA,
    NUKE_TROOP_FACTOR,
    PEACE_TENSION_DELTA,
    PEACE_TRUST_BONUS,
    PEACE_TRUST_FLOOR,
    POWER_VACUUM_CHANCE,
    SUCCESSION_MORALE,
    SUCCESSION_SECONDS,
    SUCCESSION_STAT_FACTOR,
    TRADE_GOLD,
    TRADE_TENSION_DELTA,
    TRADE_TRUST_BONUS,
    WAR_FAMINE_CHANCE,
    WAR_FAMINE_DELAY,
    WAR_TENSION_DELTA,
    WAR_TRUST_CEILING,
)
from blissnexus.personas import NATION_IDS, PERSONAS

logger = logging.getLogger(__name__)

Job = Callable[[], Any]
Later = Callable[[float, Job], Any]


class NoticeKind(str, Enum):
    """Message kinds the engine emits to viewers."""

    WORLD_UPDATE = "world_update"
    WORLD_EVENT = "world_event"
    WORLD_RESET = "world_reset"
    CRISIS = "crisis"
    CHRONICLE = "chronicle"
    YEAR_UPDATE = "year_update"
    PROPHECY = "prophecy"
    PROPHECY_FULFILLED = "prophecy_fulfilled"
    BREAKING_NEWS = "breaking_news"
    WAR = "war"
    ALLIANCE = "alliance"
    PEACE = "peace"
    BETRAYAL = "betrayal"
    TRADE = "trade"
    MOBILIZE = "mobilize"
    NUKE_INCOMING = "nuke_incoming"
    NUKE_IMPACT = "nuke_impact"
    NATION_DESTROYED = "nation_destroyed"
    SUCCESSION = "succession"
    MISSION_COMPLETED = "mission_completed"
    MISSION_EXPIRED = "mission_expired"
    LEVEL_UP = "level_up"
    SECRET_REVEALED = "secret_revealed"
    RUMOR_PLANTED = "rumor_planted"
    LEVERAGE_USED = "leverage_used"
    MEMORY_READ = "memory_read"
    MESSAGE = "message"
    INTERCEPT = "intercept"
    WHISPER_REPLY = "whisper_reply"


@dataclass
class Notice:
    """An outbound message produced by a mutation.

    Attributes:
        kind: Message kind
        data: Message payload
        viewer_id: Recipient viewer, or None to broadcast to everyone
    """

    kind: NoticeKind
    data: dict[str, Any] = field(default_factory=dict)
    viewer_id: str | None = None

    def to_message(self) -> dict[str, Any]:
        return {"type": self.kind.value, **self.data}


class WorldStore:
    """Owner of one World and its invariant-preserving mutators.

    Attributes:
        world: The canonical world state
        rng: Random source for every stochastic rule
        catalog: Event / crisis / news content
        outbox: Notices produced since the last drain
        dirty: Whether the world changed since the last save
        changed: Whether the world changed since viewers last got a snapshot;
            setting ``dirty`` also sets it
    """

    def __init__(
        self,
        world: World | None = None,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
        later: Later | None = None,
        catalog: Catalog | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.world = world or World.genesis(self.rng)
        self.clock = clock
        self.catalog = catalog or default_catalog()
        self.outbox: list[Notice] = []
        self.changed = False
        self._dirty = False
        self.deferred: list[tuple[float, Job]] = []
        self._later = later

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    @property
    def dirty(self) -> bool:
        return self._dirty

    @dirty.setter
    def dirty(self, value: bool) -> None:
        self._dirty = value
        if value:
            self.changed = True

    def attach(self, later: Later) -> None:
        """Route delayed work to a scheduler, handing over anything deferred so far."""
        self._later = later
        pending, self.deferred = self.deferred, []
        for delay, job in pending:
            later(delay, job)

    def later(self, delay: float, job: Job) -> None:
        if self._later is None:
            self.deferred.append((delay, job))
        else:
            self._later(delay, job)

    def emit(self, kind: NoticeKind, data: dict[str, Any] | None = None, viewer_id: str | None = None) -> None:
        self.outbox.append(Notice(kind=kind, data=data or {}, viewer_id=viewer_id))
        self.dirty = True

    def drain_notices(self) -> list[Notice]:
        notices, self.outbox = self.outbox, []
        return notices

    def add_log(self, text: str, kind: str = "event") -> None:
        entry = LogEntry(text=text, kind=kind, year=self.world.year, ts=self.clock())
        push_bounded(self.world.log, entry, LOG_CAP)
        self.dirty = True

    def add_memory(self, nation_id: str, text: str) -> None:
        nation = self.nation(nation_id)
        if nation is not None:
            nation.remember(text)
            self.dirty = True

    def reset(self) -> None:
        """Replace the world wholesale with a fresh genesis."""
        self.world = World.genesis(self.rng)
        self.outbox.clear()
        self.emit(NoticeKind.WORLD_RESET)
        self.emit(NoticeKind.WORLD_EVENT, {"text": "🔄 The world has been reset. A new era begins.", "kind": "event"})
        logger.info("World reset")

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def nation(self, nation_id: str) -> Nation | None:
        return self.world.nations.get(nation_id)

    def living_ids(self) -> list[str]:
        return [nid for nid in NATION_IDS if nid in self.world.nations and self.world.nations[nid].alive]

    @staticmethod
    def name(nation_id: str) -> str:
        persona = PERSONAS.get(nation_id)
        return persona.name if persona else nation_id

    @staticmethod
    def label(nation_id: str) -> str:
        persona = PERSONAS.get(nation_id)
        return f"{persona.emoji} {persona.name}" if persona else nation_id

    def _living_pair(self, first: str, second: str) -> tuple[Nation, Nation] | None:
        """Both nations if they exist, are distinct and alive."""
        if first == second:
            return None
        a = self.nation(first)
        b = self.nation(second)
        if a is None or b is None or not a.alive or not b.alive:
            return None
        return a, b

    def player(self, viewer_id: str, name: str | None = None) -> PlayerInfluence:
        """Influence record for a viewer, created on first interaction."""
        record = self.world.players.get(viewer_id)
        if record is None:
            record = PlayerInfluence(viewer_id=viewer_id, name=name or "Stranger")
            self.world.players[viewer_id] = record
            self.dirty = True
        elif name:
            record.name = name
        return record

    # -------------------------------------------------------------------------
    # Scalar adjustments
    # -------------------------------------------------------------------------

    def shift_tension(self, delta: int) -> None:
        self.world.tension = self.world.tension + delta

    def adjust_trust(self, nation_id: str, other_id: str, delta: int) -> None:
        nation = self.nation(nation_id)
        if nation is None or nation_id == other_id or other_id not in self.world.nations:
            return
        relation = nation.relation_to(other_id)
        relation.trust = relation.trust + delta
        self.dirty = True

    def adjust_user_trust(self, nation_id: str, viewer_id: str, delta: int) -> int | None:
        nation = self.nation(nation_id)
        if nation is None:
            return None
        self.dirty = True
        return nation.set_trust_toward(viewer_id, nation.trust_toward(viewer_id) + delta)

    # -------------------------------------------------------------------------
    # Diplomatic mutators
    # -------------------------------------------------------------------------

    def declare_war(self, attacker_id: str, defender_id: str) -> bool:
        """Open a war between two living nations.

        Strips any alliance, forces trust to at most WAR_TRUST_CEILING both
        ways, raises tension and may schedule a famine on one belligerent.
        """
        pair = self._living_pair(attacker_id, defender_id)
        if pair is None:
            return False
        attacker, defender = pair
        if defender_id in attacker.wars:
            return False

        attacker.wars.add(defender_id)
        defender.wars.add(attacker_id)
        attacker.allies.discard(defender_id)
        defender.allies.discard(attacker_id)
        for nation, other_id in ((attacker, defender_id), (defender, attacker_id)):
            relation = nation.relation_to(other_id)
            relation.trust = min(relation.trust, WAR_TRUST_CEILING)
        self.shift_tension(WAR_TENSION_DELTA)

        a_name, d_name = self.name(attacker_id), self.name(defender_id)
        self.add_log(f"⚔️ {self.label(attacker_id)} declared war on {self.label(defender_id)}!", "war")
        attacker.remember(f"Declared war on {d_name}")
        defender.remember(f"{a_name} declared war on us!")
        self.emit(NoticeKind.WAR, {
            "text": f"⚔️ WAR DECLARED: {a_name} vs {d_name}!",
            "attacker": attacker_id,
            "defender": defender_id,
        })

        if self.rng.random() < WAR_FAMINE_CHANCE:
            victim = self.rng.choice((attacker_id, defender_id))
            self.schedule_event("famine", victim, WAR_FAMINE_DELAY)
        return True

    def form_alliance(self, first_id: str, second_id: str) -> bool:
        pair = self._living_pair(first_id, second_id)
        if pair is None:
            return False
        first, second = pair
        if second_id in first.allies or second_id in first.wars:
            return False

        first.allies.add(second_id)
        second.allies.add(first_id)
        for nation, other_id in ((first, second_id), (second, first_id)):
            relation = nation.relation_to(other_id)
            relation.trust = max(relation.trust, ALLIANCE_TRUST_FLOOR)
            nation.outcomes.alliances_formed += 1
        self.shift_tension(ALLIANCE_TENSION_DELTA)

        n1, n2 = self.name(first_id), self.name(second_id)
        self.add_log(f"🤝 Alliance formed: {self.label(first_id)} & {self.label(second_id)}", "alliance")
        first.remember(f"Formed alliance with {n2}")
        second.remember(f"Formed alliance with {n1}")
        self.emit(NoticeKind.ALLIANCE, {"text": f"🤝 ALLIANCE: {n1} & {n2} united!", "nations": [first_id, second_id]})
        return True

    def make_peace(self, first_id: str, second_id: str) -> bool:
        pair = self._living_pair(first_id, second_id)
        if pair is None:
            return False
        first, second = pair
        if second_id not in first.wars:
            return False

        first.wars.discard(second_id)
        second.wars.discard(first_id)
        for nation, other_id in ((first, second_id), (second, first_id)):
            relation = nation.relation_to(other_id)
            relation.trust = max(relation.trust + PEACE_TRUST_BONUS, PEACE_TRUST_FLOOR)
        self.shift_tension(PEACE_TENSION_DELTA)

        n1, n2 = self.name(first_id), self.name(second_id)
        self.add_log(f"🕊️ Peace: {n1} & {n2} ended hostilities", "peace")
        first.remember(f"Made peace with {n2}")
        second.remember(f"Made peace with {n1}")
        self.emit(NoticeKind.PEACE, {"text": f"🕊️ PEACE: {n1} & {n2} have ceased fire.", "nations": [first_id, second_id]})
        return True

    def betray_ally(self, betrayer_id: str, victim_id: str) -> bool:
        """Break an alliance; the victim may answer with war at once."""
        pair = self._living_pair(betrayer_id, victim_id)
        if pair is None:
            return False
        betrayer, victim = pair
        if victim_id not in betrayer.allies:
            return False

        betrayer.allies.discard(victim_id)
        victim.allies.discard(betrayer_id)
        self.adjust_trust(victim_id, betrayer_id, BETRAYAL_VICTIM_TRUST_HIT)
        self.adjust_trust(betrayer_id, victim_id, BETRAYAL_BETRAYER_TRUST_HIT)

        n1, n2 = self.name(betrayer_id), self.name(victim_id)
        self.add_log(f"🗡️ BETRAYAL: {n1} betrayed their ally {n2}!", "war")
        betrayer.remember(f"Betrayed ally {n2}")
        victim.remember(f"Betrayed by {n1}!")
        self.emit(NoticeKind.BETRAYAL, {
            "text": f"🗡️ BETRAYAL: {n1} stabbed {n2} in the back!",
            "betrayer": betrayer_id,
            "victim": victim_id,
        })

        if self.rng.random() < BETRAYAL_WAR_CHANCE:
            self.declare_war(victim_id, betrayer_id)
        return True

    def trade(self, first_id: str, second_id: str) -> bool:
        pair = self._living_pair(first_id, second_id)
        if pair is None:
            return False
        first, second = pair
        if second_id in first.wars:
            return False

        first.gold += TRADE_GOLD
        second.gold += TRADE_GOLD
        self.adjust_trust(first_id, second_id, TRADE_TRUST_BONUS)
        self.adjust_trust(second_id, first_id, TRADE_TRUST_BONUS)
        self.shift_tension(TRADE_TENSION_DELTA)

        n1, n2 = self.name(first_id), self.name(second_id)
        self.add_log(f"⚖️ Trade pact: {n1} & {n2} exchanged goods (+{TRADE_GOLD} gold each)", "event")
        first.remember(f"Traded with {n2}")
        second.remember(f"Traded with {n1}")
        self.emit(NoticeKind.TRADE, {"text": f"⚖️ TRADE: {n1} & {n2} open their markets.", "nations": [first_id, second_id]})
        return True

    # -------------------------------------------------------------------------
    # Military mutators
    # -------------------------------------------------------------------------

    def mobilize(self, nation_id: str) -> bool:
        nation = self.nation(nation_id)
        if nation is None or not nation.alive or nation.gold < MOBILIZE_COST:
            return False
        nation.gold -= MOBILIZE_COST
        nation.troops = round(nation.troops * MOBILIZE_MULTIPLIER)

        self.add_log(f"🪖 {self.name(nation_id)} mobilized armies (+20% troops)", "event")
        nation.remember("Mobilized our armies")
        self.emit(NoticeKind.MOBILIZE, {"text": f"🪖 {self.label(nation_id)} mobilizes for war!", "nation": nation_id})
        return True

    def launch_nuke(self, attacker_id: str, defender_id: str) -> bool:
        """Fire a warhead; impact lands after NUKE_FLIGHT_SECONDS."""
        pair = self._living_pair(attacker_id, defender_id)
        if pair is None:
            return False
        attacker, _ = pair
        if attacker.nukes < 1:
            return False

        attacker.nukes -= 1
        self.shift_tension(NUKE_TENSION_DELTA)
        a_name, d_name = self.name(attacker_id), self.name(defender_id)
        self.add_log(f"☢️ NUKE LAUNCHED: {a_name} → {d_name}!", "nuke")
        attacker.remember(f"Launched a nuclear strike at {d_name}")
        self.emit(NoticeKind.NUKE_INCOMING, {
            "text": f"☢️ INCOMING: {a_name} has launched at {d_name}!",
            "attacker": attacker_id,
            "defender": defender_id,
        })
        self.later(NUKE_FLIGHT_SECONDS, lambda: self.nuke_impact(attacker_id, defender_id))
        return True

    def nuke_impact(self, attacker_id: str, defender_id: str) -> bool:
        defender = self.nation(defender_id)
        if defender is None or not defender.alive:
            return False
        standing = defender.standing_cities
        if not standing:
            return False

        city = self.rng.choice(standing)
        city.destroyed = True
        defender.population = round(defender.population * NUKE_POPULATION_FACTOR)
        defender.troops = round(defender.troops * NUKE_TROOP_FACTOR)
        defender.morale = defender.morale - NUKE_MORALE_HIT
        defender.outcomes.cities_lost += 1

        a_name, d_name = self.name(attacker_id), self.name(defender_id)
        self.add_log(f"💥 NUCLEAR IMPACT: {city.name} ({d_name}) obliterated by {a_name}!", "nuke")
        defender.remember(f"{a_name} nuked our city {city.name}!")
        self.emit(NoticeKind.NUKE_IMPACT, {
            "text": f"💥 {city.name} has been destroyed by nuclear fire!",
            "attacker": attacker_id,
            "defender": defender_id,
            "city": city.name,
        })

        if defender.troops <= DESTRUCTION_TROOP_FLOOR or not defender.standing_cities:
            self.destroy_nation(defender_id, attacker_id)

        if self.rng.random() < NUKE_PLAGUE_CHANCE:
            self.schedule_event("plague", defender_id, NUKE_PLAGUE_DELAY)
        if self.rng.random() < NUKE_REBELLION_CHANCE:
            self.schedule_event("rebellion", attacker_id, NUKE_REBELLION_DELAY)
        return True

    def destroy_nation(self, loser_id: str, winner_id: str | None = None) -> bool:
        """Mark a nation dead and schedule its succession.

        Runs at most once per fall: a nation that is already dead is left
        untouched.
        """
        loser = self.nation(loser_id)
        if loser is None or not loser.alive:
            return False

        loser.alive = False
        loser.troops = 0
        loser.mood = Mood.GRIEVING
        loser.mood_reason = "The realm has fallen."
        for other_id in list(loser.wars | loser.allies):
            other = self.nation(other_id)
            if other is not None:
                other.wars.discard(loser_id)
                other.allies.discard(loser_id)
        loser.wars.clear()
        loser.allies.clear()

        l_name = self.name(loser_id)
        w_name = self.name(winner_id) if winner_id else "the world"
        self.add_log(f"💀 {l_name} has been destroyed! Fallen to {w_name}.", "war")
        if winner_id and (winner := self.nation(winner_id)) is not None:
            winner.remember(f"Destroyed {l_name}")
        self.emit(NoticeKind.NATION_DESTROYED, {
            "text": f"💀 {self.label(loser_id)} has been DESTROYED!",
            "nation": loser_id,
            "winner": winner_id,
        })
        logger.info(f"Nation {loser_id} destroyed (winner={winner_id})")

        if self.rng.random() < POWER_VACUUM_CHANCE:
            survivors = self.living_ids()
            if len(survivors) >= 2:
                count = min(len(survivors), self.rng.randint(2, 3))
                self.open_crisis(
                    f"A power vacuum left by the fall of {l_name} draws rivals into the ruins.",
                    self.rng.sample(survivors, count),
                    tension=self.rng.randint(10, 20),
                )

        self.later(SUCCESSION_SECONDS, lambda: self.succession(loser_id))
        return True

    def succession(self, nation_id: str) -> bool:
        """Raise a successor on a destroyed nation's throne at reduced strength."""
        nation = self.nation(nation_id)
        persona = PERSONAS.get(nation_id)
        if nation is None or persona is None or nation.alive:
            return False

        start = persona.start
        nation.alive = True
        nation.troops = round(start.troops * SUCCESSION_STAT_FACTOR)
        nation.nukes = round(start.nukes * SUCCESSION_STAT_FACTOR)
        nation.gold = round(start.gold * SUCCESSION_STAT_FACTOR)
        nation.grain = round(start.grain * SUCCESSION_STAT_FACTOR)
        nation.population = round(start.population * SUCCESSION_STAT_FACTOR)
        nation.morale = SUCCESSION_MORALE
        nation.tech = start.tech
        nation.wars = set()
        nation.allies = set()
        nation.memory = ["Rose from the ashes after total defeat."]
        nation.user_trust = {}
        nation.suggestion = None
        for city, founded in zip(nation.cities, persona.cities):
            city.destroyed = False
            city.population = founded.population
        for other_id in NATION_IDS:
            if other_id == nation_id:
                continue
            nation.relation_to(other_id).trust = 0
            other = self.nation(other_id)
            if other is not None:
                other.relation_to(nation_id).trust = 0
        nation.mood = Mood.ANXIOUS
        nation.mood_reason = "Rebuilding after total collapse."

        self.add_log(f"♻️ {persona.name} rises from the ashes! A new successor claims the throne.", "event")
        self.emit(NoticeKind.SUCCESSION, {
            "text": f"♻️ {self.label(nation_id)} has risen from the ashes!",
            "nation": nation_id,
        })
        logger.info(f"Succession in {nation_id}")
        return True

    # -------------------------------------------------------------------------
    # Crises and events
    # -------------------------------------------------------------------------

    def open_crisis(self, text: str, participants: list[str], tension: int) -> Crisis:
        now = self.clock()
        crisis = Crisis(
            id=f"crisis_{int(now * 1000)}_{self.rng.randrange(10000)}",
            text=text,
            participants=list(participants),
            deadline=now + CRISIS_SECONDS,
            tension=tension,
        )
        self.world.crises.append(crisis)
        self.shift_tension(tension)
        self.add_log(f"⚠️ CRISIS: {text}", "crisis")
        self.emit(NoticeKind.CRISIS, {"crisis": crisis.model_dump(mode="json")})
        return crisis

    def schedule_event(self, event_id: str, nation_id: str, delay: float) -> None:
        """Queue a catalog event against a nation (a cascade)."""
        logger.debug(f"Cascade scheduled: {event_id} on {nation_id} in {delay}s")
        self.later(delay, lambda: self.apply_event(event_id, nation_id))

    def apply_event(self, event: str | EventSpec, nation_id: str) -> bool:
        """Apply a catalog event to one nation, rolling its cascade.

        This is the single applier for random events, cascades, prophecy
        fulfilment and viewer-triggered events. Dead or unknown targets make it
        a no-op.
        """
        spec = self.catalog.event(event) if isinstance(event, str) else event
        nation = self.nation(nation_id)
        if spec is None or nation is None or not nation.alive:
            return False

        self.apply_effects(nation, spec.effects)
        text = spec.text.replace("{name}", self.name(nation_id))
        self.add_log(text, "event")
        nation.remember(text)
        self.emit(NoticeKind.WORLD_EVENT, {"text": text, "kind": "event", "event": spec.id, "nation": nation_id})

        cascade = spec.cascade
        if cascade is not None and self.rng.random() < cascade.probability:
            self.schedule_event(cascade.event_id, nation_id, cascade.delay)
        return True

    def apply_effects(self, nation: Nation, effects: Effects) -> None:
        """Apply numeric effects; the model validators clamp every result."""
        nation.grain += effects.grain
        nation.gold += effects.gold
        nation.morale += effects.morale
        nation.troops += effects.troops
        if effects.tech:
            nation.tech += effects.tech
        if effects.population_pct:
            nation.population = max(100, round(nation.population * (1 + effects.population_pct)))
        if effects.troops_pct:
            nation.troops = round(nation.troops * (1 + effects.troops_pct))
        if effects.gold_pct:
            nation.gold = round(nation.gold * (1 + effects.gold_pct))
        if effects.tension:
            self.shift_tension(effects.tension)
        if effects.trust:
            for other_id in NATION_IDS:
                if other_id != nation.id:
                    self.adjust_trust(nation.id, other_id, effects.trust)
        self.dirty = True
