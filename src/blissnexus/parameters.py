"""World balance parameters for BlissNexus.

This module is the SINGLE SOURCE OF TRUTH for all tunable simulation
constants. Content tables (events, crises, breaking news) live in the
catalog instead; see ``blissnexus.catalog``.

Parameter Categories:
- Bounds: hard limits on nation stats and feeds
- Diplomacy: trust floors/ceilings and tension deltas for each action
- Military: mobilization, nuclear strikes, war resolution, destruction
- Economy: income, upkeep, morale drift, tech progression
- Cascades: probabilities and delays of chained follow-up events
- Fog of War: trust threshold and fuzz band
- Influence: point triggers, level thresholds, ability gates
- Missions: deadlines, rewards, penalties
- Timing: scheduler periods (seconds, before TIME_SCALE)

Usage:
    from blissnexus.parameters import WAR_TENSION_DELTA, DESTRUCTION_TROOP_FLOOR
"""

# =============================================================================
# BOUNDS
# =============================================================================

TRUST_MIN = -100
TRUST_MAX = 100

USER_TRUST_MIN = 0
USER_TRUST_MAX = 100

USER_TRUST_DEFAULT = 30
"""Standing a ruler has toward a viewer it has never met.

Current: 30

Analysis:
    Deliberately below FOG_TRUST_THRESHOLD so new viewers see fuzzed stats
    for every nation until they earn a ruler's confidence.
"""

MORALE_MAX = 100
TECH_MAX = 5
TENSION_MAX = 100

MAX_TROOPS = 20000
"""Ceiling on a nation's troop count.

Current: 20000

Analysis:
    Starting armies are 800-2000. Repeated mobilization compounds at 1.2x,
    so without a cap an LLM that spams MOBILIZE would reach absurd numbers
    within a few in-game years.
"""

MEMORY_CAP = 12
RUMOR_CAP = 10
PROMISE_CAP = 10
LOG_CAP = 200
CHRONICLE_CAP = 20
INTERCEPT_CAP = 50
BREAKING_NEWS_CAP = 20


# =============================================================================
# DIPLOMACY
# =============================================================================

WAR_TRUST_CEILING = -50
"""Trust is forced to at most this value in both directions on war."""

WAR_TENSION_DELTA = 20

ALLIANCE_TRUST_FLOOR = 65
ALLIANCE_TENSION_DELTA = -5

PEACE_TRUST_BONUS = 20
PEACE_TRUST_FLOOR = -20
PEACE_TENSION_DELTA = -10

BETRAYAL_VICTIM_TRUST_HIT = -40
BETRAYAL_BETRAYER_TRUST_HIT = -20
BETRAYAL_WAR_CHANCE = 0.6
"""Probability that the betrayed ally immediately declares war."""

TRADE_GOLD = 120
TRADE_TRUST_BONUS = 10
TRADE_TENSION_DELTA = -2

RUMOR_TRUST_HIT = -10
"""Trust the addressed ruler loses toward the subject of a planted rumor."""


# =============================================================================
# MILITARY
# =============================================================================

MOBILIZE_COST = 200
MOBILIZE_MULTIPLIER = 1.2

NUKE_TENSION_DELTA = 35
NUKE_FLIGHT_SECONDS = 8.0
NUKE_POPULATION_FACTOR = 0.7
NUKE_TROOP_FACTOR = 0.6
NUKE_MORALE_HIT = 30

WAR_TECH_FACTOR = 0.1
"""k in power = troops * (1 + tech * k) * (morale / 100)."""

WAR_DAMAGE_SCALE = 80
"""Damage dealt proportional to the attacker's share of total power."""

WAR_DAMAGE_JITTER = 20
"""Upper bound of the uniform random damage added on top."""

DESTRUCTION_TROOP_FLOOR = 50
"""A nation at or under this many troops is destroyed."""

SUCCESSION_SECONDS = 30.0
SUCCESSION_STAT_FACTOR = 0.4
SUCCESSION_MORALE = 50


# =============================================================================
# ECONOMY
# =============================================================================

GOLD_BASE_INCOME = 50
GOLD_PER_TECH = 20
GOLD_PER_ALLY = 15
GRAIN_BASE_INCOME = 60
GRAIN_TECH_BONUS = 20
"""Extra grain per tick for nations above tech level 2."""

GRAIN_PER_HUNDRED_POP = 1
WAR_GOLD_UPKEEP = 30
WAR_GRAIN_UPKEEP = 20
WAR_MORALE_DRAIN = 2
TROOP_UPKEEP_DIVISOR = 100
"""Gold upkeep per tick is troops // TROOP_UPKEEP_DIVISOR."""

SCARCITY_GRAIN = 200
SCARCITY_GOLD = 100
SCARCITY_MORALE_HIT = 5
PROSPERITY_GOLD = 500
PROSPERITY_MORALE_GAIN = 2

TECH_GOLD_THRESHOLD = 800
TECH_CHANCE = 0.04
TECH_CHANCE_FOCUSED = 0.15
"""Tech roll chance for rulers whose persona is tech focused."""

TENSION_DECAY = 1


# =============================================================================
# MOOD
# =============================================================================

MOOD_AGGRESSION_THRESHOLD = 60
MOOD_CONTENT_MORALE = 85
MOOD_SUSPICIOUS_TENSION = 70
MOOD_TROOP_SURPLUS = 1.5


# =============================================================================
# PERSONALITY DRIFT
# =============================================================================

DRIFT_WAR_LOSS_STEP = 2
DRIFT_WAR_LOSS_AGGRESSION_UP_CHANCE = 0.5
"""On each war loss, aggression rises with this chance and falls otherwise."""

DRIFT_ALLIANCE_LOYALTY_STEP = 3
DRIFT_ALLIANCE_PARANOIA_STEP = 2
DRIFT_CITY_LOSS_PARANOIA_STEP = 5


# =============================================================================
# CASCADES
# =============================================================================

WAR_FAMINE_CHANCE = 0.25
WAR_FAMINE_DELAY = 120.0

NUKE_PLAGUE_CHANCE = 0.5
NUKE_PLAGUE_DELAY = 30.0
NUKE_REBELLION_CHANCE = 0.3
NUKE_REBELLION_DELAY = 45.0

POWER_VACUUM_CHANCE = 0.5

CRISIS_WAR_CHANCE = 0.4
"""Probability that an expired crisis forces war between two participants."""

CRISIS_SECONDS = 600.0
CRISIS_TENSION_MIN = 20
CRISIS_TENSION_MAX = 39


# =============================================================================
# FOG OF WAR
# =============================================================================

FOG_TRUST_THRESHOLD = 45
FOG_FUZZ_LOW = 0.8
FOG_FUZZ_HIGH = 1.2


# =============================================================================
# INFLUENCE
# =============================================================================

LEVEL_THRESHOLDS = (0, 50, 150, 300, 500)
"""Cumulative points needed for levels 1 through 5."""

POINTS_MISSION_COMPLETED = 25
POINTS_SECRET_DISCOVERED = 15
POINTS_TRADE_BROKERED = 10
POINTS_LEVERAGE_USED = 10
POINTS_AMBIENT_SUCCESS = 2

LEVEL_RUMOR_PLANTING = 2
LEVEL_MEMORY_READ = 3
LEVEL_SUGGESTION_WEIGHT = 4
LEVEL_EVENT_TRIGGER = 5

WHISPER_TRUST_GAIN_CHANCE = 0.3
SECRET_TRUST_THRESHOLD = 60
SECRET_REVEAL_CHANCE = 0.25
LEVERAGE_MORALE_HIT = 10
LEVERAGE_TRUST_HIT = -5


# =============================================================================
# MISSIONS
# =============================================================================

MISSION_SECONDS = 900.0
MISSION_REWARD_TRUST = 15
MISSION_PENALTY_TRUST = -10


# =============================================================================
# TIMING (seconds, multiplied by TIME_SCALE)
# =============================================================================

RESOURCE_TICK_SECONDS = 45.0
WAR_TICK_SECONDS = 15.0
MOOD_TICK_SECONDS = 30.0
SWEEP_TICK_SECONDS = 30.0
SEASON_TICK_SECONDS = 180.0
DRIFT_TICK_SECONDS = 240.0
SAVE_TICK_SECONDS = 20.0

WORLD_EVENT_DELAY = (300.0, 540.0)
WORLD_EVENT_TENSION_SPEEDUP = 0.6
"""At tension 100 the world-event delay shrinks by this fraction.

Current: 0.6

Analysis:
    Tension 0 keeps the full 300-540s delay; tension 100 gives 120-216s.
    This is the feedback loop: wars raise tension, tension brings more
    droughts and rebellions, which strain nations into more wars.
"""

CRISIS_DELAY = (420.0, 900.0)
PROPHECY_DELAY = (600.0, 900.0)
PROPHECY_FULFIL_DELAY = (120.0, 240.0)
BREAKING_NEWS_DELAY = (500.0, 800.0)
DECISION_DELAY = (80.0, 130.0)
AMBIENT_DELAY = (28.0, 50.0)
INTERCEPT_DELAY = (90.0, 150.0)


# =============================================================================
# TEXT COMPLETION
# =============================================================================

WHISPER_MAX_TOKENS = 150
DECISION_MAX_TOKENS = 30
AMBIENT_MAX_TOKENS = 80
CHRONICLE_MAX_TOKENS = 200
