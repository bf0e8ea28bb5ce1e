"""
butane/builtins.py
==================

Registered (native) functions.

A registered function is a Python callable that can be called from a rule
like a ``.functions`` entry.  Its arguments must be literals; it receives
their Python values and returns expression *source text*, which is then
parsed and inlined in place of the call.

Built-in Functions
------------------
- **oneOf** — ``oneOf(a, b, ...)`` or ``oneOf([a, b], 'snapshot')``;
  true when the snapshot (default ``next``) equals one of the keys.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, Optional

from butane.ast import Literal
from butane.codegen import generate
from butane.errors import FunctionArgumentError

logger = logging.getLogger(__name__)

__all__ = [
    "NativeFunction",
    "FunctionRegistry",
    "one_of",
    "BUILTIN_FUNCTIONS",
    "DEFAULT_REGISTRY",
    "default_registry",
    "register_function",
]

NativeFunction = Callable[..., str]


class FunctionRegistry:
    """Name → callable table consulted when a call matches no ``.functions`` entry.

    Usage::

        registry = FunctionRegistry()

        @registry.register("isOwner")
        def is_owner(field):
            return f"next.{field} === auth.uid"
    """

    def __init__(self, functions: Optional[Dict[str, NativeFunction]] = None) -> None:
        self._functions: Dict[str, NativeFunction] = dict(functions or {})

    def register(self, name: str, fn: Optional[NativeFunction] = None):
        """Register ``fn`` under ``name``; usable as a decorator when ``fn`` is omitted."""
        if fn is None:
            def decorator(func: NativeFunction) -> NativeFunction:
                self.register(name, func)
                return func
            return decorator
        if not callable(fn):
            raise TypeError(f"registered function {name!r} is not callable")
        if name in self._functions:
            logger.info("Replacing registered function %r", name)
        self._functions[name] = fn
        return fn

    def unregister(self, name: str) -> None:
        self._functions.pop(name, None)

    def get(self, name: str) -> Optional[NativeFunction]:
        return self._functions.get(name)

    def copy(self) -> "FunctionRegistry":
        return FunctionRegistry(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)

    def __repr__(self) -> str:
        return f"FunctionRegistry({sorted(self._functions)})"


# ═══════════════════════════════════════════════════════════════════════════════
# BUILT-IN FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def _source(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_source(v) for v in value) + "]"
    return generate(Literal(value))


def one_of(*args: Any) -> str:
    """``snapshot === k1 || snapshot === k2 || ...``

    Called either with the keys spread out (``oneOf(true, false)``) or with
    a key list and an optional snapshot expression
    (``oneOf(['a', 'b'], 'next.kind')``).  String keys are quoted, anything
    else is printed as a literal.
    """
    if not args:
        raise FunctionArgumentError("oneOf", "expected at least one key")
    keys, snapshot = args[0], "next"
    if isinstance(keys, list):
        if len(args) > 2:
            raise FunctionArgumentError("oneOf", "expected a key list and an optional snapshot")
        if len(args) == 2:
            snapshot = args[1]
            if not isinstance(snapshot, str):
                raise FunctionArgumentError("oneOf", "snapshot must be a string expression")
    else:
        keys = list(args)
    if not keys:
        raise FunctionArgumentError("oneOf", "key list is empty")
    return " || ".join(f"{snapshot} === {_source(key)}" for key in keys)


BUILTIN_FUNCTIONS: Dict[str, NativeFunction] = {
    "oneOf": one_of,
}

DEFAULT_REGISTRY = FunctionRegistry(BUILTIN_FUNCTIONS)


def default_registry() -> FunctionRegistry:
    """The process-wide registry used when a caller does not pass one."""
    return DEFAULT_REGISTRY


def register_function(name: str, fn: Optional[NativeFunction] = None):
    """Register ``fn`` in the default registry (decorator form supported)."""
    return DEFAULT_REGISTRY.register(name, fn)
