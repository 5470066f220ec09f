# fsm/core/types.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Shared type definitions, sentinels and enums.

Design:
- No runtime dependencies on other modules
- Used by the transition table, the notification bus and the machine
"""

from enum import Enum, auto
from typing import Hashable

StateID = Hashable
EventName = str


class _Sentinel:
    """A named marker object compared by identity."""

    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __reduce__(self) -> str:
        return self._name.upper() + "_STATE"


# Table key matching any current state. Never a current state itself.
ANY_STATE = _Sentinel("any")

# Starting state of a machine with no initial state configured.
NONE_STATE = _Sentinel("none")


class Result(Enum):
    """Outcome of a trigger call that did not raise."""

    SUCCEEDED = auto()
    CANCELLED = auto()
    NOTRANSITION = auto()


class Selector(Enum):
    """Which universe a notification stage selects subscribers from."""

    STATE = auto()
    EVENT = auto()


class Stage(Enum):
    """
    Notification stages in pipeline order. The first two fire before the
    current state changes, the remaining four after.
    """

    EXIT_STATE = ("exit", Selector.STATE)
    ENTER_EVENT = ("enter", Selector.EVENT)
    TRANSITION_EVENT = ("transition", Selector.EVENT)
    TRANSITION_STATE = ("transition", Selector.STATE)
    ENTER_STATE = ("enter", Selector.STATE)
    EXIT_EVENT = ("exit", Selector.EVENT)

    @property
    def kind(self) -> str:
        """One of 'enter', 'transition' or 'exit'."""
        return self.value[0]

    @property
    def selector(self) -> Selector:
        return self.value[1]

    @classmethod
    def for_kind(cls, kind: str, selector: Selector) -> "Stage":
        for stage in cls:
            if stage.value == (kind, selector):
                return stage
        raise ValueError(f"Unknown stage kind: {kind!r}")


class ConditionKind(Enum):
    """Whether a guard condition must hold (IF) or must not hold (UNLESS)."""

    IF = auto()
    UNLESS = auto()
