# fsm/core/handlers.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import builtins
import importlib
import threading
from typing import Callable, Dict, Optional, Union

from fsm.core import errors as fsm_errors
from fsm.core.errors import ConfigurationError

ErrorKind = Union[type, str]
Handler = Callable[[BaseException], None]

_MISSING = object()


class ErrorHandlerRegistry:
    """
    Maps error kinds to handlers and resolves the most specific handler for a
    raised error. Kinds given by name are normalized to exception classes when
    registered.
    """

    def __init__(self) -> None:
        self._handlers: Dict[type, Handler] = {}
        self._cache: Dict[type, Optional[Handler]] = {}
        self._lock = threading.Lock()

    def register(self, kind: ErrorKind, handler: Handler) -> type:
        """
        Register ``handler`` for errors of ``kind`` and its subclasses.

        :param kind: An exception class, its name, or a dotted ``module.Class`` path.
        :param handler: Called with the error instance.
        :return: The normalized exception class.
        :raises ConfigurationError: If the kind cannot be resolved or the handler is not callable.
        """
        if not callable(handler):
            raise ConfigurationError(f"Error handler for {kind!r} must be callable")
        error_type = normalize_kind(kind)
        with self._lock:
            self._handlers[error_type] = handler
            self._cache.clear()
        return error_type

    def resolve(self, error: BaseException) -> Optional[Handler]:
        """
        Return the handler registered for the most specific class ``error``
        is an instance of, or None.
        """
        error_type = type(error)
        with self._lock:
            cached = self._cache.get(error_type, _MISSING)
            if cached is not _MISSING:
                return cached
            handler = None
            for klass in error_type.__mro__:
                handler = self._handlers.get(klass)
                if handler is not None:
                    break
            self._cache[error_type] = handler
            return handler

    def handle(self, error: BaseException) -> bool:
        """
        Run the resolved handler for ``error``. Returns False when none matched.
        """
        handler = self.resolve(error)
        if handler is None:
            return False
        handler(error)
        return True

    def __contains__(self, kind: object) -> bool:
        try:
            error_type = normalize_kind(kind)
        except ConfigurationError:
            return False
        with self._lock:
            return error_type in self._handlers

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)


def normalize_kind(kind: object) -> type:
    """
    Resolve an error kind to an exception class. Plain names are looked up in
    this library's errors first, then the builtins; dotted names are imported.
    """
    if isinstance(kind, type):
        if not issubclass(kind, BaseException):
            raise ConfigurationError(f"{kind.__name__} is not an exception class")
        return kind
    if not isinstance(kind, str) or not kind:
        raise ConfigurationError(f"Error kind must be an exception class or its name, got {kind!r}")

    if "." in kind:
        module_name, _, attr = kind.rpartition(".")
        try:
            resolved = getattr(importlib.import_module(module_name), attr, None)
        except ImportError:
            resolved = None
    else:
        resolved = getattr(fsm_errors, kind, None) or getattr(builtins, kind, None)

    if not isinstance(resolved, type) or not issubclass(resolved, BaseException):
        raise ConfigurationError(f"Cannot resolve error kind '{kind}'", {"kind": kind})
    return resolved
