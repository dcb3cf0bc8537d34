"""Mapped diagnostic context built atop :mod:`contextvars`.

Purpose
-------
Give applications a thread- and task-safe place to attach key/value pairs
(request ids, tenants, job names) that every record emitted inside the scope
carries as additional Loghub fields.

Contents
--------
* :class:`ContextBinder` - stack manager with ``bind``, ``current`` and
  ``clear``.
* :data:`DEFAULT_BINDER` and the module-level :func:`bind` shortcut.

System Role
-----------
Domain helper read by the event adaptation use case; the stack lives in a
context variable so concurrent callers never observe each other's fields.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Iterator, Mapping


class ContextBinder:
    """Manage context maps bound to the current execution flow."""

    _stack_var: contextvars.ContextVar[tuple[Mapping[str, str], ...]]

    def __init__(self, name: str = "lib_log_loghub_context_stack") -> None:
        self._stack_var = contextvars.ContextVar(name, default=())

    @contextmanager
    def bind(self, **fields: Any) -> Iterator[Mapping[str, str]]:
        """Bind ``fields`` on top of the current context for the ``with`` block.

        Values are stringified; ``None`` removes an inherited key.

        Examples
        --------
        >>> binder = ContextBinder()
        >>> with binder.bind(request_id="r-1"):
        ...     with binder.bind(user="alice"):
        ...         sorted(binder.current().items())
        [('request_id', 'r-1'), ('user', 'alice')]
        >>> dict(binder.current())
        {}
        """

        stack = self._stack_var.get()
        merged = dict(stack[-1]) if stack else {}
        for key, value in fields.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = str(value)
        frame = MappingProxyType(merged)
        token = self._stack_var.set(stack + (frame,))
        try:
            yield frame
        finally:
            self._stack_var.reset(token)

    def current(self) -> Mapping[str, str]:
        """Return the context bound to the current scope (empty when unbound)."""

        stack = self._stack_var.get()
        return stack[-1] if stack else MappingProxyType({})

    def clear(self) -> None:
        """Remove all bound context information."""

        self._stack_var.set(())


DEFAULT_BINDER = ContextBinder()


def bind(**fields: Any):
    """Bind ``fields`` on the process-wide :data:`DEFAULT_BINDER`."""

    return DEFAULT_BINDER.bind(**fields)


__all__ = ["ContextBinder", "DEFAULT_BINDER", "bind"]
