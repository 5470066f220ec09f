# fsm/core/state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Optional, Set, Union

from fsm.core.errors import ConfigurationError, InvalidStateError, TransitionError
from fsm.core.guards import ConditionSpec, GuardEvaluator, build_conditions
from fsm.core.handlers import ErrorHandlerRegistry, ErrorKind
from fsm.core.hooks import NotificationBus, Subscription
from fsm.core.target import Target
from fsm.core.transitions import TransitionRequest, TransitionRule, TransitionTable
from fsm.core.types import ANY_STATE, NONE_STATE, EventName, Result, Selector, Stage, StateID
from fsm.runtime.concurrency import ReadWriteLock

logger = logging.getLogger(__name__)

CallbackSpec = Union[str, Callable[..., Any]]


class StateMachine:
    """
    A flat finite state machine holding a single current state.

    Events are looked up in a TransitionTable, filtered by guard conditions,
    and applied inside an exclusive section that notifies subscribers before
    and after the state changes. Errors raised inside that section are offered
    to registered error handlers; unhandled ones surface as TransitionError.

    Query methods take the shared side of the machine's lock, the mutation
    and its notifications take the exclusive side. Lookup and guard checks
    run before the exclusive side is acquired.
    """

    def __init__(
        self,
        initial: Optional[StateID] = None,
        terminal: Any = None,
        target: Any = None,
        defer: bool = False,
        initial_event: EventName = "init",
        transitions: Iterable[Any] = (),
    ) -> None:
        """
        :param initial: State entered by the initial event. Without it the
            machine starts, and stays, in NONE_STATE until an event moves it.
        :param terminal: State, or collection of states, that ``is_finished`` checks.
        :param target: Receiver for named conditions, callbacks and handlers.
            Defaults to the machine itself.
        :param defer: Do not fire the initial event from the constructor;
            call ``start()`` instead.
        :param initial_event: Name of the event leading from NONE_STATE to ``initial``.
        :param transitions: ``(name, sources, destination)`` tuples or mappings
            with ``name``, ``sources``, ``destination`` and optional ``if_``,
            ``unless``, ``action`` keys.
        """
        self._table = TransitionTable()
        self._bus = NotificationBus()
        self._handlers = ErrorHandlerRegistry()
        self._guards = GuardEvaluator()
        self._lock = ReadWriteLock()
        self._target = Target(self if target is None else target)
        self._state: StateID = NONE_STATE
        self._initial_state = initial
        self._initial_event = initial_event
        self._terminal = terminal
        self._started = False

        for spec in transitions:
            self._define_from_spec(spec)

        if initial is not None:
            self.define_transition(initial_event, NONE_STATE, initial)
            if not defer:
                self.start()

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def target(self) -> Any:
        """The object named conditions and callbacks are resolved on."""
        return self._target.obj

    @property
    def initial_state(self) -> Optional[StateID]:
        return self._initial_state

    @property
    def initial_event(self) -> EventName:
        return self._initial_event

    @property
    def terminal_state(self) -> Any:
        return self._terminal

    def define_transition(
        self,
        name: EventName,
        sources: Any,
        destination: StateID,
        if_: ConditionSpec = None,
        unless: ConditionSpec = None,
        action: Optional[CallbackSpec] = None,
    ) -> TransitionRule:
        """
        Add a rule to the transition table.

        :param name: Event name.
        :param sources: One state, several states, or ANY_STATE.
        :param destination: State the event leads to.
        :param if_: Condition(s) that must hold.
        :param unless: Condition(s) that must not hold.
        :param action: Callable or target method name run as the transition
            body, as ``action(context, *args)``.
        """
        conditions = build_conditions(self._target, if_=if_, unless=unless)
        resolved_action = self._resolve_callable(action) if action is not None else None
        rule = self._table.define(name, sources, destination, conditions, resolved_action)
        logger.debug("Defined event %r: %r -> %r", name, sources, destination)
        return rule

    def subscribe(self, stage: Stage, selector: Any, callback: CallbackSpec) -> Subscription:
        """
        Register ``callback`` for ``stage`` and a state or event name (or
        ANY_STATE). Callbacks are called as ``callback(context, *args)``.
        """
        return self._bus.subscribe(stage, selector, self._resolve_callable(callback))

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self._bus.unsubscribe(subscription)

    def on_enter(self, selector: Any, callback: CallbackSpec) -> Subscription:
        """Subscribe to entering a state, or to the start of an event."""
        return self.subscribe(self._stage_for("enter", selector), selector, callback)

    def on_transition(self, selector: Any, callback: CallbackSpec) -> Subscription:
        """Subscribe to the change into a state, or to an event having applied."""
        return self.subscribe(self._stage_for("transition", selector), selector, callback)

    def on_exit(self, selector: Any, callback: CallbackSpec) -> Subscription:
        """Subscribe to leaving a state, or to an event having finished."""
        return self.subscribe(self._stage_for("exit", selector), selector, callback)

    def on_enter_state(self, selector: Any, callback: CallbackSpec) -> Subscription:
        return self.subscribe(Stage.ENTER_STATE, selector, callback)

    def on_enter_event(self, selector: Any, callback: CallbackSpec) -> Subscription:
        return self.subscribe(Stage.ENTER_EVENT, selector, callback)

    def on_transition_state(self, selector: Any, callback: CallbackSpec) -> Subscription:
        return self.subscribe(Stage.TRANSITION_STATE, selector, callback)

    def on_transition_event(self, selector: Any, callback: CallbackSpec) -> Subscription:
        return self.subscribe(Stage.TRANSITION_EVENT, selector, callback)

    def on_exit_state(self, selector: Any, callback: CallbackSpec) -> Subscription:
        return self.subscribe(Stage.EXIT_STATE, selector, callback)

    def on_exit_event(self, selector: Any, callback: CallbackSpec) -> Subscription:
        return self.subscribe(Stage.EXIT_EVENT, selector, callback)

    def register_error_handler(
        self,
        kind: ErrorKind,
        handler: Optional[Callable[[BaseException], Any]] = None,
        with_: Optional[str] = None,
    ) -> type:
        """
        Handle errors of ``kind`` (a class, its name, or a dotted path).

        :param handler: Called with the error instance.
        :param with_: Name of a target method to call with the error instead.
        :return: The normalized exception class.
        """
        if (handler is None) == (with_ is None):
            raise ConfigurationError("Provide exactly one of handler or with_", {"kind": kind})
        if with_ is not None:
            handler = self._target.resolve(with_)
        return self._handlers.register(kind, handler)

    # -------------------------------------------------------------------------
    # Triggering
    # -------------------------------------------------------------------------

    def start(self) -> Result:
        """
        Fire the initial event. Only meaningful once, for a machine built with
        an initial state and ``defer=True``.
        """
        if self._initial_state is None:
            raise ConfigurationError("No initial state configured")
        self._started = True
        return self.trigger(self._initial_event)

    def trigger(self, name: EventName, *args: Any) -> Result:
        """
        Attempt the transition for event ``name`` from the current state.

        :param name: Event name.
        :param args: Forwarded to guard conditions, the action and callbacks.
        :return: SUCCEEDED, CANCELLED when a guard blocks or an invalid state
            error was handled, NOTRANSITION when the destination is the
            current state.
        :raises InvalidStateError: If the event has no rule for the current
            state and no handler is registered for it.
        :raises TransitionError: If the action or a callback raised an error
            no handler is registered for.
        """
        from_state = self.current
        rule = self._table.resolve(name, from_state)
        if rule is None:
            error = InvalidStateError(f"inappropriate current state {from_state!r}", name, from_state)
            if self._handlers.handle(error):
                logger.warning("Event %r from %r handled as invalid state", name, from_state)
                return Result.CANCELLED
            raise error

        request = TransitionRequest.build(name, from_state, rule, args)
        if not self._guards.evaluate(request.conditions, self._target.obj, request.args):
            logger.debug("Event %r cancelled by guard in %r", name, from_state)
            return Result.CANCELLED
        if request.is_self_transition:
            logger.debug("Event %r leaves state %r unchanged", name, from_state)
            return Result.NOTRANSITION

        with self._lock.exclusive():
            self._run_exclusive(request)

        logger.debug("Event %r moved %r -> %r", name, request.from_state, request.to_state)
        return Result.SUCCEEDED

    def _run_exclusive(self, request: TransitionRequest) -> None:
        context = request.context
        args = request.args
        name = request.name
        to_state = request.to_state

        self._step(self._bus.dispatch, Stage.EXIT_STATE, self._state, context, args)
        self._step(self._bus.dispatch, Stage.ENTER_EVENT, name, context, args)
        if request.action is not None:
            self._step(request.action, context, *args)
        self._state = to_state
        self._step(self._bus.dispatch, Stage.TRANSITION_EVENT, name, context, args)
        self._step(self._bus.dispatch, Stage.TRANSITION_STATE, to_state, context, args)
        self._step(self._bus.dispatch, Stage.ENTER_STATE, to_state, context, args)
        self._step(self._bus.dispatch, Stage.EXIT_EVENT, name, context, args)

    def _step(self, fn: Callable[..., Any], *args: Any) -> None:
        """
        Run one step of the exclusive section. Errors go to the registered
        handlers; unhandled ones abort the section as TransitionError.
        """
        try:
            fn(*args)
        except Exception as error:
            if self._handlers.handle(error):
                logger.warning("Handled %s during transition: %s", type(error).__name__, error)
                return
            if isinstance(error, TransitionError):
                raise
            raise TransitionError.wrap(error) from error

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def current(self) -> StateID:
        """The current state."""
        with self._lock.shared():
            return self._state

    def is_state(self, state: Any) -> bool:
        """
        True if the current state equals ``state``, or is one of them when
        a list, tuple or set is given.
        """
        with self._lock.shared():
            if isinstance(state, (list, tuple, set, frozenset)):
                return self._state in state
            return self._state == state

    def can(self, name: EventName) -> bool:
        """True if ``name`` has a rule for the current state, exact or wildcard."""
        with self._lock.shared():
            return self._table.can_resolve(name, self._state)

    def cannot(self, name: EventName) -> bool:
        return not self.can(name)

    def states(self) -> Set[StateID]:
        """All states mentioned in the transition table."""
        with self._lock.shared():
            return self._table.all_states()

    def event_names(self) -> Set[EventName]:
        with self._lock.shared():
            return self._table.all_events()

    def is_finished(self) -> bool:
        """True if a terminal state is configured and currently held."""
        if self._terminal is None:
            return False
        return self.is_state(self._terminal)

    @property
    def started(self) -> bool:
        return self._started

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _resolve_callable(self, spec: CallbackSpec) -> Callable[..., Any]:
        if isinstance(spec, str):
            return self._target.resolve(spec)
        if not callable(spec):
            raise ConfigurationError(f"Expected a callable or a method name, got {spec!r}")
        return spec

    def _stage_for(self, kind: str, selector: Any) -> Stage:
        universe = Selector.EVENT if selector is not ANY_STATE and selector in self._table else Selector.STATE
        return Stage.for_kind(kind, universe)

    def _define_from_spec(self, spec: Any) -> None:
        if isinstance(spec, Mapping):
            options = dict(spec)
            try:
                name = options.pop("name")
                sources = options.pop("sources")
                destination = options.pop("destination")
            except KeyError as e:
                raise ConfigurationError(f"Transition spec is missing {e.args[0]!r}", {"spec": spec})
            self.define_transition(name, sources, destination, **options)
            return
        try:
            name, sources, destination = spec
        except (TypeError, ValueError):
            raise ConfigurationError(f"Cannot read transition spec {spec!r}", {"spec": spec})
        self.define_transition(name, sources, destination)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} current={self._state!r}>"
