# fsm/core/hooks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence, Tuple

from fsm.core.errors import ConfigurationError
from fsm.core.transitions import TransitionContext
from fsm.core.types import ANY_STATE, Stage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Subscription:
    """
    Handle returned by ``NotificationBus.subscribe``. Pass it back to
    ``unsubscribe`` to stop receiving notifications.
    """

    stage: Stage
    selector: Any
    callback: Callable[..., Any]
    index: int


class NotificationBus:
    """
    Ordered registry of callbacks keyed by (stage, selector). Callbacks
    registered for ANY_STATE are kept per stage and consulted on every
    dispatch of that stage, after the specific-selector callbacks.
    """

    def __init__(self) -> None:
        self._specific: Dict[Tuple[Stage, Any], List[Subscription]] = {}
        self._wildcard: Dict[Stage, List[Subscription]] = {}
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def subscribe(self, stage: Stage, selector: Any, callback: Callable[..., Any]) -> Subscription:
        """
        Append a callback for ``stage`` and ``selector``.

        :param stage: One of the Stage members.
        :param selector: A state or event name, or ANY_STATE.
        :param callback: Called as ``callback(context, *args)``.
        :raises ConfigurationError: If the stage or callback is invalid.
        """
        if not isinstance(stage, Stage):
            raise ConfigurationError(f"Unknown notification stage {stage!r}")
        if not callable(callback):
            raise ConfigurationError(f"Callback for {stage.name} must be callable, got {callback!r}")

        with self._lock:
            subscription = Subscription(stage, selector, callback, next(self._counter))
            self._bucket(stage, selector).append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """
        Remove a subscription. Returns False if it was not registered.
        """
        with self._lock:
            bucket = self._bucket(subscription.stage, subscription.selector)
            try:
                bucket.remove(subscription)
            except ValueError:
                return False
            return True

    def subscribers(self, stage: Stage, selector: Any) -> List[Subscription]:
        """
        Snapshot of the subscriptions a dispatch for ``stage`` and
        ``selector`` would invoke, in invocation order.
        """
        with self._lock:
            specific = [] if selector is ANY_STATE else list(self._specific.get((stage, selector), ()))
            return specific + list(self._wildcard.get(stage, ()))

    def dispatch(self, stage: Stage, selector: Any, context: TransitionContext, args: Sequence[Any] = ()) -> int:
        """
        Invoke matching callbacks. Errors raised by callbacks are not caught.

        :return: Number of callbacks invoked.
        """
        snapshot = self.subscribers(stage, selector)
        for subscription in snapshot:
            logger.debug("Dispatching %s(%r) to %r", stage.name, selector, subscription.callback)
            subscription.callback(context, *args)
        return len(snapshot)

    def clear(self) -> None:
        with self._lock:
            self._specific.clear()
            self._wildcard.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._specific.values()) + sum(len(v) for v in self._wildcard.values())

    def _bucket(self, stage: Stage, selector: Any) -> List[Subscription]:
        if selector is ANY_STATE:
            return self._wildcard.setdefault(stage, [])
        return self._specific.setdefault((stage, selector), [])
