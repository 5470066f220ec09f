# fsm/core/guards.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional, Sequence, Union

from fsm.core.errors import ConfigurationError
from fsm.core.types import ConditionKind

if TYPE_CHECKING:
    from fsm.core.target import Target


@dataclass(frozen=True)
class Predicate:
    """A callable guard, invoked as ``fn(target, *args)``."""

    fn: Callable[..., Any]
    kind: ConditionKind = ConditionKind.IF

    def check(self, target: Any, args: Sequence[Any]) -> bool:
        return bool(self.fn(target, *args))


@dataclass(frozen=True)
class NamedMethod:
    """
    A guard naming a method on the target. The method is looked up when the
    condition is built; ``method`` holds the resolved callable.
    """

    name: str
    method: Callable[..., Any]
    kind: ConditionKind = ConditionKind.IF

    def check(self, target: Any, args: Sequence[Any]) -> bool:
        return bool(self.method(*args))


Condition = Union[Predicate, NamedMethod]
ConditionSpec = Union[str, Callable[..., Any], Iterable[Union[str, Callable[..., Any]]], None]


def make_condition(spec: Union[str, Callable[..., Any]], kind: ConditionKind, target: "Target") -> Condition:
    """
    Turn a user supplied condition into a Condition.

    :param spec: A callable or the name of a method on the target.
    :param kind: IF or UNLESS.
    :param target: Target used to resolve method names.
    :raises ConfigurationError: If the spec is neither a callable nor a known method name.
    """
    if isinstance(spec, (Predicate, NamedMethod)):
        return spec
    if isinstance(spec, str):
        return NamedMethod(spec, target.resolve(spec), kind)
    if callable(spec):
        return Predicate(spec, kind)
    raise ConfigurationError(f"Guard condition must be callable or a method name, got {spec!r}")


def build_conditions(target: "Target", if_: ConditionSpec = None, unless: ConditionSpec = None) -> List[Condition]:
    """
    Normalize ``if_`` and ``unless`` specs into one ordered condition list,
    affirmative conditions first.
    """
    conditions: List[Condition] = []
    for spec, kind in ((if_, ConditionKind.IF), (unless, ConditionKind.UNLESS)):
        for item in _as_list(spec):
            conditions.append(make_condition(item, kind, target))
    return conditions


def _as_list(spec: ConditionSpec) -> List[Any]:
    if spec is None:
        return []
    if isinstance(spec, str) or callable(spec):
        return [spec]
    return list(spec)


class GuardEvaluator:
    """
    Evaluates an ordered list of IF / UNLESS conditions. A transition may
    proceed only if every IF holds and every UNLESS does not.
    """

    def evaluate(self, conditions: Iterable[Condition], target: Any, args: Optional[Sequence[Any]] = None) -> bool:
        """
        Check all conditions in order, stopping at the first one that blocks.

        :param conditions: Conditions built by ``build_conditions``.
        :param target: Receiver passed to predicate conditions.
        :param args: Arguments forwarded from the trigger call.
        :return: True if the transition may proceed.
        """
        args = tuple(args or ())
        for condition in conditions:
            passed = condition.check(target, args)
            if condition.kind is ConditionKind.UNLESS:
                passed = not passed
            if not passed:
                return False
        return True
