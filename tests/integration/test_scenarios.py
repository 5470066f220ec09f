# tests/integration/test_scenarios.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""End to end scenarios driving a machine through the public API."""

from fsm import ANY_STATE, InvalidStateError, MachineBuilder, Result, TransitionError


class Logger:
    def __init__(self):
        self.result = None

    def log_error(self, exception):
        self.result = f"log_error({type(exception).__name__})"

    def raise_error(self, *args):
        raise TransitionError("raised from target")


# -----------------------------------------------------------------------------
# TRAFFIC LIGHT
# -----------------------------------------------------------------------------


def test_traffic_light(traffic_light):
    received = []
    traffic_light.on_enter("go", lambda context, *args: received.append(args))

    assert traffic_light.current == "red"
    assert traffic_light.trigger("ready") is Result.SUCCEEDED
    assert traffic_light.current == "yellow"
    assert traffic_light.trigger("go", "P") is Result.SUCCEEDED
    assert traffic_light.current == "green"
    assert received == [("P",)]


def test_traffic_light_full_cycle(traffic_light, trace):
    traffic_light.on_enter(ANY_STATE, lambda context: trace.append(context.to_state))
    for event in ("ready", "go", "stop", "ready"):
        traffic_light.trigger(event)
    assert trace == ["yellow", "green", "red", "yellow"]


# -----------------------------------------------------------------------------
# TERMINAL STATE
# -----------------------------------------------------------------------------


def test_terminal_state():
    machine = (
        MachineBuilder()
        .initial("green")
        .terminal("red")
        .event("slow", "green", "yellow")
        .event("stop", "yellow", "red")
        .build()
    )
    assert not machine.is_finished()
    machine.trigger("slow")
    assert not machine.is_finished()
    machine.trigger("stop")
    assert machine.is_finished()


# -----------------------------------------------------------------------------
# GUARDS AND GROUPING
# -----------------------------------------------------------------------------


def test_guarded_transition(logger_target):
    machine = (
        MachineBuilder()
        .target(logger_target)
        .initial("neutral")
        .event("start", "neutral", "one", if_="engine_on")
        .build()
    )
    assert machine.trigger("start") is Result.CANCELLED
    assert machine.current == "neutral"


def test_multi_source_grouping():
    machine = (
        MachineBuilder()
        .initial("one")
        .event("shift", "one", "two")
        .event("slow", ["one", "two", "three"], "one")
        .build()
    )
    machine.trigger("shift")
    assert machine.current == "two"
    assert machine.trigger("slow") is Result.SUCCEEDED
    assert machine.current == "one"


# -----------------------------------------------------------------------------
# ERROR HANDLERS
# -----------------------------------------------------------------------------


def test_custom_error_handling():
    called = []
    machine = (
        MachineBuilder()
        .initial("green")
        .event("slow", "green", "yellow")
        .event("stop", "yellow", "red")
        .handle(InvalidStateError, lambda exception: called.append("invalidstate"))
        .build()
    )
    assert machine.current == "green"
    assert machine.trigger("stop") is Result.CANCELLED
    assert machine.current == "green"
    assert called == ["invalidstate"]


def test_handler_with_target_method():
    logger = Logger()
    machine = (
        MachineBuilder()
        .initial("green")
        .target(logger)
        .event("slow", "green", "yellow")
        .event("stop", "yellow", "red")
        .handle(InvalidStateError, with_="log_error")
        .build()
    )
    machine.trigger("stop")
    assert machine.current == "green"
    assert logger.result == "log_error(InvalidStateError)"


def test_handler_kind_as_string():
    logger = Logger()
    called = []
    machine = (
        MachineBuilder()
        .initial("green")
        .target(logger)
        .event("slow", "green", "yellow")
        .event("stop", "yellow", "red")
        .on_enter("yellow", "raise_error")
        .handle("InvalidStateError", lambda exception: called.append("invalid_state_error"))
        .build()
    )
    assert machine.current == "green"
    machine.trigger("stop")
    assert machine.current == "green"
    assert called == ["invalid_state_error"]


def test_transition_error_handler_catches_callback_failure():
    logger = Logger()
    machine = (
        MachineBuilder()
        .initial("green")
        .target(logger)
        .event("slow", "green", "yellow")
        .on_enter("yellow", "raise_error")
        .handle("TransitionError", with_="log_error")
        .build()
    )
    assert machine.trigger("slow") is Result.SUCCEEDED
    assert machine.current == "yellow"
    assert logger.result == "log_error(TransitionError)"
