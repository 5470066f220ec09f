# fsm/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import traceback
from typing import Any, Dict, Optional


class FSMError(Exception):
    """
    Base exception class for errors within the state machine library.

    :param message: Human readable description.
    :param details: Optional dictionary of extra context.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidStateError(FSMError):
    """
    Raised when an event is triggered from a state that has no matching rule,
    neither for the exact state nor for the wildcard.
    """

    def __init__(self, message: str, event: Optional[str] = None, state: Any = None) -> None:
        super().__init__(message, {"event": event, "state": state})
        self.event = event
        self.state = state


class TransitionError(FSMError):
    """
    Raised when an error escapes a transition action or a notification
    callback and no registered handler claims it. The original error is
    chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        original_type: Optional[type] = None,
        original_message: str = "",
        trace: str = "",
    ) -> None:
        super().__init__(
            message,
            {"original_type": original_type, "original_message": original_message},
        )
        self.original_type = original_type
        self.original_message = original_message
        self.trace = trace

    @classmethod
    def wrap(cls, error: BaseException) -> "TransitionError":
        """Build a TransitionError describing ``error`` and its traceback."""
        trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        message = f"({type(error).__name__}): {error}\noccurred at {trace}"
        return cls(message, type(error), str(error), trace)


class ConfigurationError(FSMError):
    """
    Raised when the machine is configured with something it cannot use: an
    empty event name, an unknown target method, an unresolvable error kind.
    """
