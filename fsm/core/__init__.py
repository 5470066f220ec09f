"""
Core package providing the transition execution engine.

Architecture:
- TransitionTable maps event names to per-source rules
- GuardEvaluator filters rules through IF / UNLESS conditions
- NotificationBus fans out six ordered notification stages
- ErrorHandlerRegistry routes errors raised during a transition
- StateMachine orchestrates the above under a shared/exclusive lock
"""

from .errors import ConfigurationError, FSMError, InvalidStateError, TransitionError
from .types import ANY_STATE, NONE_STATE, ConditionKind, Result, Selector, Stage
from .transitions import TransitionContext, TransitionRequest, TransitionRule, TransitionTable
from .guards import GuardEvaluator, NamedMethod, Predicate
from .hooks import NotificationBus, Subscription
from .handlers import ErrorHandlerRegistry
from .target import Target
from .state_machine import StateMachine
from .builder import MachineBuilder, define

__all__ = [
    # Errors
    "FSMError",
    "InvalidStateError",
    "TransitionError",
    "ConfigurationError",
    # Types
    "ANY_STATE",
    "NONE_STATE",
    "ConditionKind",
    "Result",
    "Selector",
    "Stage",
    # Components
    "TransitionContext",
    "TransitionRequest",
    "TransitionRule",
    "TransitionTable",
    "GuardEvaluator",
    "Predicate",
    "NamedMethod",
    "NotificationBus",
    "Subscription",
    "ErrorHandlerRegistry",
    "Target",
    "StateMachine",
    "MachineBuilder",
    "define",
]
