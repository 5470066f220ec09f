# fsm/core/builder.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from fsm.core.errors import ConfigurationError
from fsm.core.guards import ConditionSpec
from fsm.core.handlers import ErrorKind
from fsm.core.state_machine import CallbackSpec, StateMachine
from fsm.core.types import EventName, Stage, StateID


class MachineBuilder:
    """
    Collects a machine's configuration and builds it in one step.

    Events are defined first, then callbacks and error handlers are
    registered, and only then is the initial event fired, so subscribers
    observe the initial transition too.

    Example::

        machine = (
            MachineBuilder()
            .initial("red")
            .event("ready", "red", "yellow")
            .event("go", "yellow", "green")
            .on_enter("go", lambda ctx, *args: print(args))
            .build()
        )
    """

    def __init__(self, machine_type: type = StateMachine) -> None:
        self._machine_type = StateMachine
        self.set_machine_type(machine_type)
        self._initial: Optional[StateID] = None
        self._initial_event: EventName = "init"
        self._defer = False
        self._terminal: Any = None
        self._target: Any = None
        self._events: List[Tuple[tuple, Dict[str, Any]]] = []
        self._callbacks: List[Tuple[str, tuple]] = []
        self._handlers: List[Tuple[ErrorKind, Optional[Callable[..., Any]], Optional[str]]] = []
        self._lock = threading.Lock()

    @property
    def machine_type(self) -> type:
        return self._machine_type

    def set_machine_type(self, machine_type: type) -> "MachineBuilder":
        """
        :raises ConfigurationError: If machine_type is not a StateMachine subclass.
        """
        if not isinstance(machine_type, type) or not issubclass(machine_type, StateMachine):
            raise ConfigurationError("Machine type must be a StateMachine subclass")
        self._machine_type = machine_type
        return self

    def initial(self, state: StateID, event: EventName = "init", defer: bool = False) -> "MachineBuilder":
        with self._lock:
            self._initial = state
            self._initial_event = event
            self._defer = defer
        return self

    def terminal(self, state: Any) -> "MachineBuilder":
        with self._lock:
            self._terminal = state
        return self

    def target(self, obj: Any) -> "MachineBuilder":
        with self._lock:
            self._target = obj
        return self

    def event(
        self,
        name: EventName,
        sources: Any,
        destination: StateID,
        if_: ConditionSpec = None,
        unless: ConditionSpec = None,
        action: Optional[CallbackSpec] = None,
    ) -> "MachineBuilder":
        with self._lock:
            self._events.append(((name, sources, destination), {"if_": if_, "unless": unless, "action": action}))
        return self

    def subscribe(self, stage: Stage, selector: Any, callback: CallbackSpec) -> "MachineBuilder":
        with self._lock:
            self._callbacks.append(("subscribe", (stage, selector, callback)))
        return self

    def on_enter(self, selector: Any, callback: CallbackSpec) -> "MachineBuilder":
        return self._add_callback("on_enter", selector, callback)

    def on_transition(self, selector: Any, callback: CallbackSpec) -> "MachineBuilder":
        return self._add_callback("on_transition", selector, callback)

    def on_exit(self, selector: Any, callback: CallbackSpec) -> "MachineBuilder":
        return self._add_callback("on_exit", selector, callback)

    def handle(
        self,
        kind: ErrorKind,
        handler: Optional[Callable[[BaseException], Any]] = None,
        with_: Optional[str] = None,
    ) -> "MachineBuilder":
        with self._lock:
            self._handlers.append((kind, handler, with_))
        return self

    def build(self) -> StateMachine:
        """
        Construct the configured machine.

        :raises ConfigurationError: If any part of the configuration is invalid.
        """
        with self._lock:
            machine = self._machine_type(
                initial=self._initial,
                terminal=self._terminal,
                target=self._target,
                defer=True,
                initial_event=self._initial_event,
            )
            for args, options in self._events:
                machine.define_transition(*args, **options)
            for method, args in self._callbacks:
                getattr(machine, method)(*args)
            for kind, handler, with_ in self._handlers:
                machine.register_error_handler(kind, handler, with_=with_)
            start = self._initial is not None and not self._defer

        if start:
            machine.start()
        return machine

    def _add_callback(self, method: str, selector: Any, callback: CallbackSpec) -> "MachineBuilder":
        with self._lock:
            self._callbacks.append((method, (selector, callback)))
        return self


def define(**kwargs: Any) -> MachineBuilder:
    """
    Start a builder pre-populated from keyword arguments: ``initial``,
    ``terminal``, ``target`` and ``events`` (a list of
    ``(name, sources, destination)`` tuples).
    """
    builder = MachineBuilder()
    if "target" in kwargs:
        builder.target(kwargs.pop("target"))
    if "initial" in kwargs:
        builder.initial(kwargs.pop("initial"), kwargs.pop("initial_event", "init"), kwargs.pop("defer", False))
    if "terminal" in kwargs:
        builder.terminal(kwargs.pop("terminal"))
    for name, sources, destination in kwargs.pop("events", ()):
        builder.event(name, sources, destination)
    if kwargs:
        raise ConfigurationError(f"Unknown options: {sorted(kwargs)}")
    return builder
