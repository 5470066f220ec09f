# fsm/core/transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from fsm.core.errors import ConfigurationError
from fsm.core.types import ANY_STATE, EventName, StateID


@dataclass(frozen=True)
class TransitionContext:
    """The value every notification callback receives first."""

    name: EventName
    from_state: StateID
    to_state: StateID


@dataclass(frozen=True)
class TransitionRule:
    """
    One row of the transition table: where an event leads from a given source,
    which guard conditions must pass, and an optional action to run.
    """

    destination: StateID
    conditions: Tuple[Any, ...] = ()
    action: Optional[Callable[..., Any]] = None


@dataclass(frozen=True)
class TransitionRequest:
    """
    Built fresh for every trigger call and discarded when it returns.
    """

    name: EventName
    from_state: StateID
    to_state: StateID
    conditions: Tuple[Any, ...] = ()
    args: Tuple[Any, ...] = field(default_factory=tuple)
    action: Optional[Callable[..., Any]] = None

    @classmethod
    def build(cls, name: EventName, from_state: StateID, rule: TransitionRule, args: Tuple[Any, ...]) -> "TransitionRequest":
        return cls(name, from_state, rule.destination, rule.conditions, tuple(args), rule.action)

    @property
    def context(self) -> TransitionContext:
        return TransitionContext(self.name, self.from_state, self.to_state)

    @property
    def is_self_transition(self) -> bool:
        return self.from_state == self.to_state


class TransitionTable:
    """
    Static mapping of event name to (source state -> rule). A rule keyed by
    ANY_STATE is a fallback consulted only when no exact source matches.

    Redefining an existing (event, source) pair replaces its rule.
    """

    def __init__(self) -> None:
        self._rules: Dict[EventName, Dict[StateID, TransitionRule]] = {}
        self._lock = threading.Lock()

    def define(
        self,
        event: EventName,
        sources: Any,
        destination: StateID,
        conditions: Iterable[Any] = (),
        action: Optional[Callable[..., Any]] = None,
    ) -> TransitionRule:
        """
        Record a rule for every listed source state.

        :param event: Event name.
        :param sources: A single state, an iterable of states, or ANY_STATE.
        :param destination: State the event leads to.
        :param conditions: Ordered guard conditions for this rule.
        :param action: Optional callable run during the transition.
        :raises ConfigurationError: If the event name or destination is unusable.
        """
        if not isinstance(event, str) or not event:
            raise ConfigurationError("Event name must be a non-empty string.", {"event": event})
        if destination is ANY_STATE:
            raise ConfigurationError(
                f"Event '{event}' cannot lead to the wildcard state.", {"event": event}
            )
        source_list = _as_source_list(sources)
        if not source_list:
            raise ConfigurationError(f"Event '{event}' needs at least one source state.", {"event": event})

        rule = TransitionRule(destination, tuple(conditions), action)
        with self._lock:
            rules = self._rules.setdefault(event, {})
            for source in source_list:
                rules[source] = rule
        return rule

    def resolve(self, event: EventName, state: StateID) -> Optional[TransitionRule]:
        """
        Return the rule for ``event`` from ``state``: the exact source first,
        then the wildcard, else None.
        """
        with self._lock:
            rules = self._rules.get(event)
            if not rules:
                return None
            rule = rules.get(state)
            if rule is None:
                rule = rules.get(ANY_STATE)
            return rule

    def can_resolve(self, event: EventName, state: StateID) -> bool:
        return self.resolve(event, state) is not None

    def all_states(self) -> Set[StateID]:
        """Every source and destination state, excluding the wildcard."""
        with self._lock:
            states: Set[StateID] = set()
            for rules in self._rules.values():
                for source, rule in rules.items():
                    states.add(source)
                    states.add(rule.destination)
        states.discard(ANY_STATE)
        return states

    def all_events(self) -> Set[EventName]:
        with self._lock:
            return set(self._rules)

    def sources(self, event: EventName) -> List[StateID]:
        """Source keys defined for ``event``, in definition order."""
        with self._lock:
            return list(self._rules.get(event, {}))

    def __contains__(self, event: object) -> bool:
        with self._lock:
            return event in self._rules

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)


def _as_source_list(sources: Any) -> List[StateID]:
    if sources is ANY_STATE or isinstance(sources, (str, bytes)):
        return [sources]
    if isinstance(sources, (list, tuple, set, frozenset)):
        return list(sources)
    return [sources]
