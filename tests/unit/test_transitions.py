# tests/unit/test_transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import dataclasses

import pytest
from hypothesis import given
from hypothesis import strategies as st

from fsm.core.errors import ConfigurationError
from fsm.core.transitions import TransitionContext, TransitionRequest, TransitionRule, TransitionTable
from fsm.core.types import ANY_STATE, NONE_STATE


@pytest.fixture
def table() -> TransitionTable:
    return TransitionTable()


# -----------------------------------------------------------------------------
# DEFINE / RESOLVE
# -----------------------------------------------------------------------------


def test_resolve_exact_source(table):
    table.define("go", "yellow", "green")
    rule = table.resolve("go", "yellow")
    assert rule is not None
    assert rule.destination == "green"


def test_resolve_missing_source_returns_none(table):
    table.define("go", "yellow", "green")
    assert table.resolve("go", "red") is None


def test_resolve_unknown_event_returns_none(table):
    assert table.resolve("missing", "red") is None


def test_multiple_sources_share_destination(table):
    table.define("slow", ["one", "two", "three"], "one")
    for source in ("one", "two", "three"):
        assert table.resolve("slow", source).destination == "one"


def test_wildcard_is_fallback_only(table):
    table.define("reset", ANY_STATE, "idle")
    table.define("reset", "broken", "repair")
    assert table.resolve("reset", "running").destination == "idle"
    assert table.resolve("reset", "broken").destination == "repair"


def test_redefinition_last_write_wins(table):
    table.define("go", "yellow", "green")
    table.define("go", "yellow", "blue")
    assert table.resolve("go", "yellow").destination == "blue"


def test_conditions_and_action_are_kept_per_source(table):
    action = lambda context: None  # noqa: E731
    table.define("go", "a", "b", conditions=["check"], action=action)
    table.define("go", "c", "b")
    assert table.resolve("go", "a") == TransitionRule("b", ("check",), action)
    assert table.resolve("go", "c").conditions == ()


@pytest.mark.parametrize("name", ["", None, 42])
def test_invalid_event_name_rejected(table, name):
    with pytest.raises(ConfigurationError):
        table.define(name, "a", "b")


def test_wildcard_destination_rejected(table):
    with pytest.raises(ConfigurationError):
        table.define("go", "a", ANY_STATE)


def test_empty_source_list_rejected(table):
    with pytest.raises(ConfigurationError):
        table.define("go", [], "b")


# -----------------------------------------------------------------------------
# INTROSPECTION
# -----------------------------------------------------------------------------


def test_all_states_excludes_wildcard(table):
    table.define("init", NONE_STATE, "red")
    table.define("ready", "red", "yellow")
    table.define("panic", ANY_STATE, "off")
    assert table.all_states() == {NONE_STATE, "red", "yellow", "off"}


def test_all_events_and_contains(table):
    table.define("ready", "red", "yellow")
    table.define("go", "yellow", "green")
    assert table.all_events() == {"ready", "go"}
    assert "go" in table
    assert "stop" not in table
    assert len(table) == 2


def test_sources_in_definition_order(table):
    table.define("slow", ["three", "one"], "one")
    table.define("slow", "two", "one")
    assert table.sources("slow") == ["three", "one", "two"]


# -----------------------------------------------------------------------------
# REQUEST / CONTEXT
# -----------------------------------------------------------------------------


def test_request_built_from_rule():
    rule = TransitionRule("green", ("c",), None)
    request = TransitionRequest.build("go", "yellow", rule, ["P"])
    assert request.args == ("P",)
    assert request.to_state == "green"
    assert request.context == TransitionContext("go", "yellow", "green")
    assert not request.is_self_transition


def test_request_is_immutable():
    request = TransitionRequest("go", "a", "b")
    with pytest.raises(dataclasses.FrozenInstanceError):
        request.to_state = "c"


def test_self_transition_detected():
    assert TransitionRequest("stay", "a", "a").is_self_transition


# -----------------------------------------------------------------------------
# PROPERTIES
# -----------------------------------------------------------------------------

state_names = st.sampled_from(["a", "b", "c", "d", "e"])
rules = st.lists(
    st.tuples(st.sampled_from(["x", "y", "z"]), st.one_of(state_names, st.just(ANY_STATE)), state_names),
    max_size=20,
)


@pytest.mark.property
@given(rules=rules, event=st.sampled_from(["x", "y", "z"]), state=state_names)
def test_resolution_prefers_exact_then_wildcard(rules, event, state):
    table = TransitionTable()
    expected = {}
    for name, source, destination in rules:
        table.define(name, source, destination)
        expected[(name, source)] = destination

    rule = table.resolve(event, state)
    if (event, state) in expected:
        assert rule.destination == expected[(event, state)]
    elif (event, ANY_STATE) in expected:
        assert rule.destination == expected[(event, ANY_STATE)]
    else:
        assert rule is None
    assert table.can_resolve(event, state) == (rule is not None)
