"""Unit tests for blissnexus.engine.economy.

Tests cover:
- compute_mood priority order
- resource_tick income, upkeep and tension decay
- war_tick damage, destruction and war-loss tallies
- season_tick calendar rollover
- personality_drift from accumulated outcomes
"""

import pytest

from blissnexus.engine import economy
from blissnexus.engine.store import NoticeKind
from blissnexus.models import Mood, OutcomeTally
from blissnexus.personas import PERSONAS


class TestComputeMood:
    @pytest.fixture
    def nation(self, store):
        nation = store.nation("sage")
        nation.grain, nation.gold, nation.morale = 900, 600, 80
        return nation

    def test_calm(self, nation):
        assert economy.compute_mood(nation, 10)[0] is Mood.CALM

    def test_two_wars_angry_before_everything(self, nation):
        nation.wars = {"rex", "vera"}
        nation.grain = 0
        assert economy.compute_mood(nation, 10)[0] is Mood.ANGRY

    def test_one_war_depends_on_aggression(self, nation):
        nation.wars = {"rex"}
        mood, reason = economy.compute_mood(nation, 10)
        assert mood is Mood.ANXIOUS
        assert "Emperor Rex" in reason
        nation.personality.aggression = 61
        assert economy.compute_mood(nation, 10)[0] is Mood.EMBOLDENED

    def test_famine_before_poverty(self, nation):
        nation.grain, nation.gold = 100, 50
        assert economy.compute_mood(nation, 10)[0] is Mood.FEARFUL
        nation.grain = 500
        assert economy.compute_mood(nation, 10)[0] is Mood.ANXIOUS

    def test_content_then_allies_then_tension(self, nation):
        nation.morale = 90
        assert economy.compute_mood(nation, 90)[0] is Mood.CONTENT
        nation.morale = 80
        nation.allies = {"plato", "vera"}
        assert economy.compute_mood(nation, 90)[0] is Mood.EMBOLDENED
        nation.allies = set()
        assert economy.compute_mood(nation, 90)[0] is Mood.SUSPICIOUS

    def test_troop_surplus(self, nation):
        nation.troops = int(PERSONAS["sage"].start.troops * 1.5) + 1
        assert economy.compute_mood(nation, 10)[0] is Mood.EMBOLDENED


class TestResourceTick:
    def test_peacetime_income(self, make_store):
        store = make_store(rolls=[0.99] * 10)
        sage = store.nation("sage")
        gold, grain = sage.gold, sage.grain
        store.world.tension = 10

        economy.resource_tick(store)

        # 50 base + 2 tech * 20 - 1200 troops // 100
        assert sage.gold == gold + 50 + 40 - 12
        # 60 base - 2400 population / 100
        assert sage.grain == grain + 60 - 24
        assert store.world.tension == 9

    def test_war_upkeep(self, make_store):
        store = make_store(rolls=[0.99] * 20)
        store.declare_war("rex", "sage")
        sage = store.nation("sage")
        gold, morale = sage.gold, sage.morale

        economy.resource_tick(store)

        assert sage.gold == gold + 50 + 40 - 30 - 12
        assert sage.morale == morale - 2

    def test_resources_stay_non_negative(self, make_store):
        store = make_store(rolls=[0.99] * 50)
        for nation in store.world.nations.values():
            nation.gold, nation.grain = 0, 0
        for _ in range(5):
            economy.resource_tick(store)
        for nation in store.world.nations.values():
            assert nation.gold >= 0 and nation.grain >= 0 and nation.morale >= 0

    def test_tech_advance(self, make_store):
        store = make_store(rolls=[0.01] + [0.99] * 10)
        sage = store.nation("sage")
        sage.gold = 2000
        economy.resource_tick(store)
        assert sage.tech == 3
        assert NoticeKind.WORLD_EVENT in [n.kind for n in store.drain_notices()]

    def test_dead_nations_skipped(self, make_store):
        store = make_store(rolls=[0.99] * 10)
        plato = store.nation("plato")
        plato.alive = False
        gold = plato.gold
        economy.resource_tick(store)
        assert plato.gold == gold


class TestWarTick:
    def test_damage_applied_once_per_pair(self, make_store):
        store = make_store(rolls=[0.99] + [0.0] * 10)
        store.declare_war("rex", "sage")
        rex, sage = store.nation("rex"), store.nation("sage")
        rex_troops, sage_troops = rex.troops, sage.troops

        economy.war_tick(store)

        total = economy.war_power(rex) + economy.war_power(sage)
        assert rex_troops - rex.troops <= 80
        assert sage_troops - sage.troops <= 80
        assert (rex_troops - rex.troops) + (sage_troops - sage.troops) in (79, 80, 81)
        assert total > 0

    def test_weaker_side_records_loss(self, make_store):
        store = make_store(rolls=[0.99] + [0.0] * 10)
        store.declare_war("rex", "sage")
        economy.war_tick(store)
        assert store.nation("sage").outcomes.war_losses == 1
        assert store.nation("rex").outcomes.war_losses == 0

    def test_destruction_at_floor(self, make_store):
        store = make_store(rolls=[0.99, 0.0, 0.0, 0.99])  # famine, jitter x2, power vacuum
        store.declare_war("rex", "sage")
        store.nation("sage").troops = 60

        economy.war_tick(store)

        sage = store.nation("sage")
        assert not sage.alive
        assert "sage" not in store.nation("rex").wars
        destroyed = [n for n in store.drain_notices() if n.kind is NoticeKind.NATION_DESTROYED]
        assert len(destroyed) == 1

    def test_only_one_side_falls_when_both_hit_floor(self, make_store):
        store = make_store(rolls=[0.99, 0.0, 0.0, 0.99])
        store.declare_war("rex", "sage")
        rex, sage = store.nation("rex"), store.nation("sage")
        rex.troops = sage.troops = 60

        economy.war_tick(store)

        assert [rex.alive, sage.alive].count(True) == 1
        assert rex.troops <= 50 and sage.troops <= 50
        survivor = sage if not rex.alive else rex
        assert survivor.outcomes.war_losses == 0
        destroyed = [n for n in store.drain_notices() if n.kind is NoticeKind.NATION_DESTROYED]
        assert len(destroyed) == 1

    def test_zero_morale_does_not_divide_by_zero(self, make_store):
        store = make_store(rolls=[0.99] + [0.5] * 10)
        store.declare_war("rex", "sage")
        store.nation("rex").morale = 0
        store.nation("sage").morale = 0
        economy.war_tick(store)


class TestSeasonTick:
    def test_year_rolls_over_after_four_seasons(self, store):
        results = [economy.season_tick(store) for _ in range(4)]
        assert results == [False, False, False, True]
        assert store.world.year == 2
        assert store.world.season == "Spring"
        updates = [n for n in store.drain_notices() if n.kind is NoticeKind.YEAR_UPDATE]
        assert len(updates) == 4


class TestPersonalityDrift:
    def test_alliances_and_city_losses(self, store):
        sage = store.nation("sage")
        loyalty, paranoia = sage.personality.loyalty, sage.personality.paranoia
        sage.outcomes = OutcomeTally(alliances_formed=1, cities_lost=2)

        economy.personality_drift(store)

        assert sage.personality.loyalty == min(100, loyalty + 3)
        assert sage.personality.paranoia == paranoia - 2 + 10
        assert sage.outcomes == OutcomeTally()

    def test_war_losses_move_aggression(self, make_store):
        store = make_store(rolls=[0.1, 0.9])
        rex = store.nation("rex")
        aggression = rex.personality.aggression
        rex.outcomes = OutcomeTally(war_losses=2)
        economy.personality_drift(store)
        assert rex.personality.aggression == aggression

    def test_traits_stay_bounded(self, store):
        vera = store.nation("vera")
        vera.outcomes = OutcomeTally(cities_lost=50)
        economy.personality_drift(store)
        assert vera.personality.paranoia == 100
