# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, List

import pytest

from fsm import MachineBuilder, StateMachine


def pytest_configure(config):
    """Register custom marks."""
    config.addinivalue_line("markers", "stress: mark test as a stress test")
    config.addinivalue_line("markers", "property: mark test as a property-based test")


class Recorder:
    """
    Callback that appends a trace record on every call, so tests can compare
    the observed notification order to an expected sequence.
    """

    def __init__(self, trace: List[Any], label: str) -> None:
        self.trace = trace
        self.label = label

    def __call__(self, context, *args) -> None:
        self.trace.append((self.label, context.name, context.from_state, context.to_state, args))


class Logger:
    """A target object exposing methods named by conditions and handlers."""

    def __init__(self) -> None:
        self.result = None
        self.allowed = False

    def log_error(self, exception) -> None:
        self.result = f"log_error({type(exception).__name__})"

    def raise_error(self, *args) -> None:
        raise ValueError("boom")

    def is_allowed(self) -> bool:
        return self.allowed

    def engine_on(self, *args) -> bool:
        return False


@pytest.fixture
def trace() -> List[Any]:
    return []


@pytest.fixture
def logger_target() -> Logger:
    return Logger()


@pytest.fixture
def traffic_light() -> StateMachine:
    """ready: red -> yellow, go: yellow -> green, stop: green -> red; starts red."""
    return (
        MachineBuilder()
        .initial("red")
        .event("ready", "red", "yellow")
        .event("go", "yellow", "green")
        .event("stop", "green", "red")
        .build()
    )


@pytest.fixture
def bare_machine() -> StateMachine:
    """A machine with no initial state and no events."""
    return StateMachine()
