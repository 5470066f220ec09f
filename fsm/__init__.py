"""fsm: a flat finite state machine execution engine

Given a table of named events, each mapping source states to a destination,
the engine decides whether a triggered event is legal and permitted, changes
a single current state exclusively, and notifies subscribers around that
change.

Responsibilities:
    - Transition table lookup, including wildcard sources
    - IF / UNLESS guard evaluation
    - Ordered enter / transition / exit notifications
    - Dispatch of errors to handlers registered by error kind

Cross-cutting Concerns:
    Thread Safety:
        - Queries take a shared lock, transitions an exclusive one
        - Transitions on one machine are serialized

    Error Handling:
        - FSMError hierarchy for library errors
        - Unhandled errors during a transition surface as TransitionError

    Logging:
        - Standard library logging under the "fsm" logger namespace
"""

from fsm.core import (
    ANY_STATE,
    NONE_STATE,
    ConfigurationError,
    FSMError,
    InvalidStateError,
    MachineBuilder,
    Result,
    Stage,
    StateMachine,
    TransitionContext,
    TransitionError,
    define,
)

__version__ = "0.1.0"

__all__ = [
    "ANY_STATE",
    "NONE_STATE",
    "ConfigurationError",
    "FSMError",
    "InvalidStateError",
    "MachineBuilder",
    "Result",
    "Stage",
    "StateMachine",
    "TransitionContext",
    "TransitionError",
    "define",
]
