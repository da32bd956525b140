"""LLM prompts for BlissNexus rulers.

This module consolidates every prompt the world sends to the text-completion
service. Prompts are organized by function:

1. Ruler Context - The shared situation report prepended to every call
2. Autonomous Decisions - Choosing one diplomatic action or NONE
3. Whispers - Private replies to viewers
4. Ambient Speech and Intercepts - Public proclamations and secret letters
5. Chronicle - The yearly historian's entry

All prompts use clear template variable naming with curly braces: {variable_name}
"""

from blissnexus.models import World
from blissnexus.personas import NATION_IDS, PERSONAS

# =============================================================================
# RULER CONTEXT
# =============================================================================

RULER_CONTEXT_TEMPLATE = """{system_prompt}

CURRENT YEAR: {year} {season}
WORLD TENSION: {tension}/100
YOUR STATS: troops={troops}, nukes={nukes}, gold={gold}, grain={grain}, morale={morale}, tech=T{tech}
YOUR MOOD: {mood} ({mood_reason})
AT WAR WITH: {wars}
ALLIES: {allies}
RELATIONS: {relations}
ACTIVE CRISES: {crises}
YOUR AMBITION: {ambition}
PERSONALITY: aggression={aggression}, greed={greed}, pride={pride}, paranoia={paranoia}, loyalty={loyalty}
"""

# =============================================================================
# AUTONOMOUS DECISIONS
# =============================================================================

DECISION_INSTRUCTIONS = """You must decide if you want to take an action. Options:
- Declare war: respond with DECLARE_WAR:<id> (ids: {ids})
- Form alliance: respond with FORM_ALLIANCE:<id>
- Make peace: respond with MAKE_PEACE:<id>
- Trade: respond with TRADE:<id>
- Mobilize: respond with MOBILIZE
- Betray ally: respond with BETRAY_ALLY:<id>
- Launch a nuclear strike: respond with LAUNCH_NUKE:<id>
- Do nothing: respond with NONE
Consider your personality stats heavily. Respond with ONE action or NONE."""

DECISION_SUGGESTION = """A trusted voice has counselled you: "{suggestion}". Weigh it seriously."""

DECISION_USER_PROMPT = "What is your decision?"

# =============================================================================
# WHISPERS
# =============================================================================

WHISPER_INSTRUCTIONS = """The player (name: "{viewer_name}") whispers to you privately. Reply in character. Keep it under 3 sentences.
You may act on what you hear by including one of: DECLARE_WAR:<id>, FORM_ALLIANCE:<id>, MAKE_PEACE:<id>, TRADE:<id>, BETRAY_ALLY:<id>, MOBILIZE."""

WHISPER_MISSION_NOTE = " There is an active mission: {description}"

WHISPER_TRUST_NOTE = " Your trust in this player is {trust}/100."

# =============================================================================
# AMBIENT SPEECH AND INTERCEPTS
# =============================================================================

AMBIENT_INSTRUCTIONS = "Make a short public proclamation appropriate to your current situation. 1-2 sentences only. No action tags."

AMBIENT_USER_PROMPT = "Speak."

INTERCEPT_INSTRUCTIONS = """Write a secret private message to {recipient}. This message is being INTERCEPTED. Be candid about your true intentions. 1-2 sentences. No action tags."""

INTERCEPT_USER_PROMPT = "Write your secret message to {recipient}."

# =============================================================================
# CHRONICLE
# =============================================================================

CHRONICLE_SYSTEM_PROMPT = "You are a historian writing in epic style."

CHRONICLE_PROMPT = """Write a 3-4 sentence chronicle of Year {year} of BlissNexus.
Active wars: {war_count}. Living rulers: {living}. World tension: {tension}.
Recent events: {recent_events}. Be dramatic and grand."""


def _names(nation_ids) -> str:
    names = [PERSONAS[nid].name for nid in sorted(nation_ids) if nid in PERSONAS]
    return ", ".join(names) or "none"


def build_context(world: World, nation_id: str, extra: str | None = None) -> str:
    """Build the situation report a ruler sees before speaking.

    Args:
        world: Canonical world state
        nation_id: The speaking ruler
        extra: Task instructions appended after the report

    Returns:
        Complete system context
    """
    persona = PERSONAS[nation_id]
    nation = world.nations[nation_id]
    traits = nation.personality

    relations = "; ".join(
        f"{PERSONAS[other].name}({PERSONAS[other].emoji}): trust={nation.relation_to(other).trust}, "
        f"{nation.relation_to(other).label.value}"
        for other in NATION_IDS
        if other != nation_id
    )
    crises = "; ".join(c.text for c in world.open_crises) or "none"

    context = RULER_CONTEXT_TEMPLATE.format(
        system_prompt=persona.system_prompt,
        year=world.year,
        season=world.season,
        tension=world.tension,
        troops=nation.troops,
        nukes=nation.nukes,
        gold=nation.gold,
        grain=nation.grain,
        morale=nation.morale,
        tech=nation.tech,
        mood=nation.mood.value,
        mood_reason=nation.mood_reason,
        wars=_names(nation.wars),
        allies=_names(nation.allies),
        relations=relations,
        crises=crises,
        ambition=persona.ambition_label,
        aggression=traits.aggression,
        greed=traits.greed,
        pride=traits.pride,
        paranoia=traits.paranoia,
        loyalty=traits.loyalty,
    )
    if nation.memory:
        context += f"RECENT EVENTS: {'; '.join(nation.memory[:5])}\n"
    if nation.rumors:
        context += f"RUMORS YOU HAVE HEARD: {'; '.join(r.text for r in nation.rumors[:5])}\n"
    if extra:
        context += f"\n{extra}"
    return context


def format_decision_prompt(world: World, nation_id: str) -> str:
    """Context for an autonomous decision, including any pending suggestion."""
    extra = DECISION_INSTRUCTIONS.format(ids=",".join(NATION_IDS))
    suggestion = world.nations[nation_id].suggestion
    if suggestion:
        extra += "\n" + DECISION_SUGGESTION.format(suggestion=suggestion)
    return build_context(world, nation_id, extra)


def format_whisper_prompt(
    world: World,
    nation_id: str,
    viewer_id: str,
    viewer_name: str,
) -> str:
    extra = WHISPER_INSTRUCTIONS.format(viewer_name=viewer_name or "Stranger")
    mission = world.missions.get(viewer_id)
    if mission is not None and mission.active:
        extra += WHISPER_MISSION_NOTE.format(description=mission.description)
    extra += WHISPER_TRUST_NOTE.format(trust=world.nations[nation_id].trust_toward(viewer_id))
    return build_context(world, nation_id, extra)


def format_ambient_prompt(world: World, nation_id: str) -> str:
    return build_context(world, nation_id, AMBIENT_INSTRUCTIONS)


def format_intercept_prompt(world: World, sender: str, recipient: str) -> str:
    return build_context(world, sender, INTERCEPT_INSTRUCTIONS.format(recipient=PERSONAS[recipient].name))


def format_chronicle_prompt(world: World, year: int) -> str:
    """Historian prompt for the year that just ended."""
    war_edges = sum(len(n.wars) for n in world.nations.values())
    living = _names(nid for nid, n in world.nations.items() if n.alive)
    recent = "; ".join(entry.text for entry in world.log[:5]) or "none"
    return CHRONICLE_PROMPT.format(
        year=year,
        war_count=war_edges // 2,
        living=living,
        tension=world.tension,
        recent_events=recent,
    )
