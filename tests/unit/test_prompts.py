"""Unit tests for blissnexus.prompts."""

from blissnexus.models import Mission, MissionType, Rumor
from blissnexus.prompts import (
    build_context,
    format_chronicle_prompt,
    format_decision_prompt,
    format_intercept_prompt,
    format_whisper_prompt,
)


def test_context_reports_state(store):
    store.declare_war("rex", "sage")
    store.nation("rex").rumors.append(Rumor(text="Vera hoards warheads", source="v1", about="vera"))
    context = build_context(store.world, "rex")

    assert "AT WAR WITH: Al-Rashid" in context
    assert "Declared war on Al-Rashid" in context
    assert "Vera hoards warheads" in context
    assert "Director Vera" in context


def test_decision_prompt_lists_markers_and_suggestion(store):
    store.nation("rex").suggestion = "Strike the Caliph"
    prompt = format_decision_prompt(store.world, "rex")
    assert "DECLARE_WAR:<id>" in prompt
    assert "sage,rex,vera,plato,diddy" in prompt
    assert "Strike the Caliph" in prompt


def test_whisper_prompt_includes_mission_and_trust(store):
    store.world.missions["v1"] = Mission(
        id="m", viewer_id="v1", issuer="rex", target="sage",
        type=MissionType.CONVINCE_PEACE, description="Convince Al-Rashid to make peace",
        deadline=store.clock() + 100,
    )
    prompt = format_whisper_prompt(store.world, "rex", "v1", "Ada")
    assert '"Ada"' in prompt
    assert "Convince Al-Rashid to make peace" in prompt
    assert "30/100" in prompt


def test_intercept_prompt_names_recipient(store):
    assert "Archon Plato" in format_intercept_prompt(store.world, "rex", "plato")


def test_chronicle_prompt(store):
    store.declare_war("rex", "sage")
    prompt = format_chronicle_prompt(store.world, 1)
    assert "Year 1" in prompt
    assert "Active wars: 1" in prompt
