"""Unit tests for blissnexus.engine.store.

Tests cover:
- Diplomatic mutators: war, alliance, peace, betrayal, trade
- Relationship invariants: symmetry, never allied and at war
- Military mutators: mobilize, nuclear strike, destruction, succession
- Generic event applier and cascades
"""

import pytest

from blissnexus.engine.store import NoticeKind, WorldStore
from blissnexus.models import Mood, RelationLabel
from blissnexus.parameters import (
    MAX_TROOPS,
    MOBILIZE_COST,
    NUKE_FLIGHT_SECONDS,
    SUCCESSION_SECONDS,
)
from blissnexus.personas import NATION_IDS, PERSONAS


def kinds(store: WorldStore) -> list[NoticeKind]:
    return [notice.kind for notice in store.drain_notices()]


def assert_relationships_consistent(store: WorldStore):
    for nid, nation in store.world.nations.items():
        assert not (nation.wars & nation.allies), nid
        for other in nation.wars:
            assert nid in store.world.nations[other].wars
        for other in nation.allies:
            assert nid in store.world.nations[other].allies


class TestDeclareWar:
    def test_war_is_symmetric_and_hostile(self, make_store):
        store = make_store(rolls=[0.99])  # no famine cascade
        tension = store.world.tension

        assert store.declare_war("rex", "sage") is True

        rex, sage = store.nation("rex"), store.nation("sage")
        assert "sage" in rex.wars and "rex" in sage.wars
        assert rex.relation_to("sage").trust <= -50
        assert sage.relation_to("rex").trust <= -50
        assert rex.relation_to("sage").label in (RelationLabel.RIVAL, RelationLabel.ENEMY)
        assert store.world.tension == tension + 20
        assert "Declared war on Al-Rashid" in rex.memory[0]
        assert NoticeKind.WAR in kinds(store)
        assert store.deferred == []

    def test_second_declaration_is_a_no_op(self, make_store):
        store = make_store(rolls=[0.99])
        store.declare_war("rex", "sage")
        tension = store.world.tension
        log_size = len(store.world.log)

        assert store.declare_war("rex", "sage") is False
        assert store.declare_war("sage", "rex") is False
        assert store.world.tension == tension
        assert len(store.world.log) == log_size

    def test_war_breaks_alliance(self, make_store):
        store = make_store(rolls=[0.99])
        store.form_alliance("rex", "sage")
        store.declare_war("rex", "sage")
        assert "sage" not in store.nation("rex").allies
        assert "rex" not in store.nation("sage").allies
        assert_relationships_consistent(store)

    @pytest.mark.parametrize("attacker,defender", [("rex", "rex"), ("rex", "nobody"), ("nobody", "rex")])
    def test_invalid_participants(self, store, attacker, defender):
        assert store.declare_war(attacker, defender) is False
        assert store.drain_notices() == []

    def test_dead_nation_cannot_go_to_war(self, store):
        store.nation("vera").alive = False
        assert store.declare_war("rex", "vera") is False
        assert store.declare_war("vera", "rex") is False

    def test_famine_cascade_scheduled(self, make_store):
        store = make_store(rolls=[0.1])
        store.declare_war("rex", "sage")
        assert len(store.deferred) == 1
        assert store.deferred[0][0] == 120.0


class TestAlliancePeaceTrade:
    def test_alliance(self, store):
        assert store.form_alliance("sage", "plato") is True
        sage, plato = store.nation("sage"), store.nation("plato")
        assert "plato" in sage.allies and "sage" in plato.allies
        assert sage.relation_to("plato").trust >= 65
        assert sage.relation_to("plato").label is RelationLabel.ALLY
        assert sage.outcomes.alliances_formed == 1
        assert store.form_alliance("plato", "sage") is False

    def test_no_alliance_while_at_war(self, make_store):
        store = make_store(rolls=[0.99])
        store.declare_war("rex", "sage")
        assert store.form_alliance("rex", "sage") is False
        assert_relationships_consistent(store)

    def test_peace_requires_war(self, make_store):
        store = make_store(rolls=[0.99])
        assert store.make_peace("rex", "sage") is False

        store.declare_war("rex", "sage")
        tension = store.world.tension
        assert store.make_peace("sage", "rex") is True
        assert "sage" not in store.nation("rex").wars
        assert "rex" not in store.nation("sage").wars
        assert store.nation("rex").relation_to("sage").trust >= -20
        assert store.world.tension == tension - 10

    def test_trade(self, store):
        gold = store.nation("rex").gold, store.nation("vera").gold
        assert store.trade("rex", "vera") is True
        assert store.nation("rex").gold == gold[0] + 120
        assert store.nation("vera").gold == gold[1] + 120

    def test_no_trade_at_war(self, make_store):
        store = make_store(rolls=[0.99])
        store.declare_war("rex", "vera")
        assert store.trade("rex", "vera") is False


class TestBetrayal:
    def test_betrayal_without_war(self, make_store):
        store = make_store(rolls=[0.99])
        store.form_alliance("rex", "diddy")
        victim_trust = store.nation("diddy").relation_to("rex").trust

        assert store.betray_ally("rex", "diddy") is True
        assert "diddy" not in store.nation("rex").allies
        assert "rex" not in store.nation("diddy").allies
        assert store.nation("diddy").relation_to("rex").trust == victim_trust - 40
        assert "rex" not in store.nation("diddy").wars

    def test_betrayal_provokes_war(self, make_store):
        store = make_store(rolls=[0.1, 0.99])  # war, then no famine
        store.form_alliance("rex", "diddy")
        store.betray_ally("rex", "diddy")
        assert "rex" in store.nation("diddy").wars
        assert_relationships_consistent(store)

    def test_betrayal_requires_alliance(self, store):
        assert store.betray_ally("rex", "diddy") is False


class TestMobilize:
    def test_mobilize_costs_gold(self, store):
        rex = store.nation("rex")
        troops, gold = rex.troops, rex.gold
        assert store.mobilize("rex") is True
        assert rex.gold == gold - MOBILIZE_COST
        assert rex.troops == round(troops * 1.2)

    def test_mobilize_needs_gold(self, store):
        store.nation("rex").gold = MOBILIZE_COST - 1
        assert store.mobilize("rex") is False

    def test_troops_capped(self, store):
        rex = store.nation("rex")
        rex.troops = MAX_TROOPS - 10
        store.mobilize("rex")
        assert rex.troops == MAX_TROOPS


class TestNuclearStrike:
    def test_launch_then_impact(self, make_store, drain):
        store = make_store(rolls=[0.99, 0.99])  # impact: no plague, no rebellion
        vera, sage = store.nation("vera"), store.nation("sage")
        nukes, troops, population = vera.nukes, sage.troops, sage.population

        assert store.launch_nuke("vera", "sage") is True
        assert vera.nukes == nukes - 1
        assert NoticeKind.NUKE_INCOMING in kinds(store)
        assert all(not c.destroyed for c in sage.cities)

        assert drain(store) == [NUKE_FLIGHT_SECONDS]
        assert sum(c.destroyed for c in sage.cities) == 1
        assert sage.troops == round(troops * 0.6)
        assert sage.population == round(population * 0.7)
        assert sage.outcomes.cities_lost == 1
        assert sage.alive
        assert NoticeKind.NUKE_IMPACT in kinds(store)

    def test_no_warheads(self, store):
        store.nation("vera").nukes = 0
        assert store.launch_nuke("vera", "sage") is False
        assert store.deferred == []

    def test_impact_on_dead_nation_is_a_no_op(self, make_store):
        store = make_store(rolls=[0.99, 0.99])
        store.launch_nuke("vera", "sage")
        store.nation("sage").alive = False
        _, impact = store.deferred.pop()
        assert impact() is False

    def test_last_city_destroys_nation(self, make_store):
        store = make_store(rolls=[0.99, 0.99, 0.99])  # no power vacuum, no cascades
        sage = store.nation("sage")
        for city in sage.cities[1:]:
            city.destroyed = True

        assert store.nuke_impact("vera", "sage") is True
        assert not sage.alive
        assert sage.mood is Mood.GRIEVING
        assert [delay for delay, _ in store.deferred] == [SUCCESSION_SECONDS]


class TestDestructionAndSuccession:
    def test_destroy_strips_relationships(self, make_store):
        store = make_store(rolls=[0.99, 0.99, 0.99])
        store.declare_war("rex", "plato")
        store.form_alliance("plato", "sage")

        assert store.destroy_nation("plato", "rex") is True
        plato = store.nation("plato")
        assert not plato.alive
        assert plato.troops == 0
        assert plato.wars == set() and plato.allies == set()
        assert "plato" not in store.nation("rex").wars
        assert "plato" not in store.nation("sage").allies
        assert "Destroyed Archon Plato" in store.nation("rex").memory[0]

    def test_destroy_runs_once(self, make_store):
        store = make_store(rolls=[0.99])
        assert store.destroy_nation("plato") is True
        store.drain_notices()
        assert store.destroy_nation("plato") is False
        assert store.drain_notices() == []
        assert len(store.deferred) == 1

    def test_power_vacuum_crisis(self, make_store):
        store = make_store(rolls=[0.1])
        store.destroy_nation("plato")
        assert len(store.world.crises) == 1
        crisis = store.world.crises[0]
        assert "plato" not in crisis.participants
        assert 2 <= len(crisis.participants) <= 3

    def test_succession_restores_reduced_nation(self, make_store, drain):
        store = make_store(rolls=[0.99])
        store.nation("rex").relation_to("plato").trust = 80
        store.nation("plato").set_trust_toward("v1", 90)
        store.destroy_nation("plato")
        drain(store)

        plato = store.nation("plato")
        start = PERSONAS["plato"].start
        assert plato.alive
        assert plato.troops == round(start.troops * 0.4)
        assert plato.gold == round(start.gold * 0.4)
        assert plato.morale == 50
        assert plato.mood is Mood.ANXIOUS
        assert all(not c.destroyed for c in plato.cities)
        assert all(plato.relation_to(other).trust == 0 for other in NATION_IDS if other != "plato")
        assert store.nation("rex").relation_to("plato").trust == 0
        assert plato.trust_toward("v1") == 30
        assert plato.memory == ["Rose from the ashes after total defeat."]
        assert NoticeKind.SUCCESSION in kinds(store)

    def test_succession_of_living_nation_is_a_no_op(self, store):
        assert store.succession("rex") is False


class TestApplyEvent:
    def test_event_effects_and_memory(self, make_store):
        store = make_store(rolls=[0.99])
        rex = store.nation("rex")
        grain = rex.grain

        assert store.apply_event("drought", "rex") is True
        assert rex.grain == max(0, grain - 200)
        assert "drought" in rex.memory[0]
        assert "Emperor Rex" in store.world.log[0].text
        assert store.deferred == []

    def test_cascade_rolls(self, make_store):
        store = make_store(rolls=[0.1])
        store.apply_event("drought", "rex")
        assert [delay for delay, _ in store.deferred] == [90]

    def test_unknown_event_or_dead_target(self, store):
        assert store.apply_event("no_such_event", "rex") is False
        store.nation("rex").alive = False
        assert store.apply_event("drought", "rex") is False

    def test_reset_replaces_world(self, make_store):
        store = make_store(rolls=[0.99])
        store.declare_war("rex", "sage")
        store.reset()
        assert store.nation("rex").wars == set()
        assert kinds(store) == [NoticeKind.WORLD_RESET, NoticeKind.WORLD_EVENT]
