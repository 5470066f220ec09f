# fsm/core/target.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import inspect
import threading
from typing import Any, Callable, Dict

from fsm.core.errors import ConfigurationError


class Target:
    """
    Explicit capability lookup on the external context object. Guard
    conditions, callbacks and error handlers given as method names are
    resolved here once, when they are configured, instead of on every call.
    """

    def __init__(self, obj: Any) -> None:
        """
        :param obj: The object whose methods named conditions, callbacks and
            handlers refer to.
        """
        self._obj = obj
        self._methods: Dict[str, Callable[..., Any]] = {}
        self._lock = threading.Lock()

    @property
    def obj(self) -> Any:
        """The wrapped context object."""
        return self._obj

    def resolve(self, name: str) -> Callable[..., Any]:
        """
        Return the bound method called ``name``.

        :param name: Method name on the target object.
        :raises ConfigurationError: If the target has no such callable.
        """
        with self._lock:
            method = self._methods.get(name)
            if method is not None:
                return method
            method = getattr(self._obj, name, None)
            if method is None or not callable(method):
                raise ConfigurationError(
                    f"Target {type(self._obj).__name__} has no callable '{name}'",
                    {"name": name},
                )
            method = _adapt_arity(method)
            self._methods[name] = method
            return method

    def has(self, name: str) -> bool:
        return callable(getattr(self._obj, name, None))


def _adapt_arity(method: Callable[..., Any]) -> Callable[..., Any]:
    """
    Wrap methods that take no positional arguments so they can be called with
    the forwarded trigger arguments, which are then dropped.
    """
    try:
        params = inspect.signature(method).parameters.values()
    except (TypeError, ValueError):
        return method
    accepts_args = any(
        p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.VAR_POSITIONAL) for p in params
    )
    if accepts_args:
        return method

    def call_without_args(*_args: Any) -> Any:
        return method()

    call_without_args.__name__ = getattr(method, "__name__", "method")
    return call_without_args
