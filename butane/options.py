"""butane/options.py – Scoped ``.functions`` / ``.refs`` resolution.

Each node of a rules tree may declare helper functions (``.functions``)
and named snapshot references (``.refs``).  Declarations are inherited by
every descendant, and each wildcard key (``$chat``) of a node's parent
becomes an implicit ref for the node itself.  :func:`get_options` computes
the effective set for one node and strips the declaration keys from it so
they never reach the compiled output.

Ref depth
---------
A ref records how many ``.parent()`` hops lead from the node where it is
*used* back to the node where it was *declared*.  Declaring sets depth 0;
every level of inheritance adds one::

    $chat:              # ^$chat here is prev                    (depth 0)
      messages:         # ^$chat here is prev.parent()           (depth 1)
        $msg:           # ^$chat here is prev.parent().parent()  (depth 2)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple

from butane.ast import CallExpression, Identifier, Literal
from butane.codegen import generate
from butane.errors import DeclarationError, MalformedFunctionDeclarationError, ParseError
from butane.parser import parse_expression

logger = logging.getLogger(__name__)

__all__ = [
    "FUNCTIONS_KEY",
    "REFS_KEY",
    "PARENT_KEY",
    "RefDef",
    "FunctionDef",
    "Options",
    "get_options",
    "resolve",
    "coerce_options",
    "expand_ref",
    "expand_functions",
    "parse_function_header",
]

FUNCTIONS_KEY = ".functions"
REFS_KEY = ".refs"
PARENT_KEY = ".parent"

#: Keys consumed by option resolution; never emitted.
RESERVED_KEYS = (FUNCTIONS_KEY, REFS_KEY, PARENT_KEY)

WILDCARD_PREFIX = "$"

#: Implicit refs for wildcard keys point at the existing data.
IMPLICIT_REF_SNAPSHOT = "prev"


@dataclass(frozen=True)
class RefDef:
    """A named snapshot reference: ``value`` followed by ``depth`` ``.parent()`` calls."""
    value: str
    depth: int = 0

    def inherited(self) -> "RefDef":
        """This ref as seen one level further down the tree."""
        return RefDef(self.value, self.depth + 1)


@dataclass(frozen=True)
class FunctionDef:
    """A ``.functions`` entry: ``name(args...)`` expanding to ``body``."""
    name: str
    args: Tuple[str, ...]
    body: str
    #: The ``.functions`` key it was parsed from, for diagnostics.
    declaration: str = field(default="", compare=False)


@dataclass
class Options:
    """Effective declarations at one node of the rules tree."""
    functions: Dict[str, FunctionDef] = field(default_factory=dict)
    refs: Dict[str, RefDef] = field(default_factory=dict)
    parent: Optional[MutableMapping[str, Any]] = None
    parent_keys: Tuple[Any, ...] = ()


# ═══════════════════════════════════════════════════════════════════════════════
# DECLARATION PARSING
# ═══════════════════════════════════════════════════════════════════════════════

def parse_function_header(declaration: str) -> Tuple[str, Tuple[str, ...]]:
    """``"hasUser(chat, user)"`` -> ``("hasUser", ("chat", "user"))``.

    Raises:
        MalformedFunctionDeclarationError: unless ``declaration`` is a call
            of a bare name with distinct bare-name arguments.
    """
    try:
        node = parse_expression(declaration)
    except ParseError:
        raise MalformedFunctionDeclarationError(declaration, "not an expression") from None
    if not isinstance(node, CallExpression) or not isinstance(node.callee, Identifier):
        raise MalformedFunctionDeclarationError(declaration, "expected name(arg, ...)")
    args = []
    for arg in node.arguments:
        if not isinstance(arg, Identifier):
            raise MalformedFunctionDeclarationError(
                declaration, f"parameter {generate(arg)} is not an identifier")
        if arg.name in args:
            raise MalformedFunctionDeclarationError(
                declaration, f"duplicate parameter {arg.name}")
        args.append(arg.name)
    return node.callee.name, tuple(args)


def _body_source(declaration: str, body: Any) -> str:
    if isinstance(body, str):
        return body
    # YAML hands over `isTrue(): true` as a bool
    if body is None or isinstance(body, (bool, int, float)):
        return generate(Literal(body))
    raise MalformedFunctionDeclarationError(
        declaration, f"body must be an expression, got {type(body).__name__}")


def expand_functions(declarations: Mapping[str, Any]) -> Dict[str, FunctionDef]:
    """Parse the headers of a ``.functions`` mapping, keyed by function name."""
    if not isinstance(declarations, Mapping):
        raise DeclarationError(
            f"{FUNCTIONS_KEY} must be a mapping, got {type(declarations).__name__}")
    functions: Dict[str, FunctionDef] = {}
    for declaration, body in declarations.items():
        if isinstance(body, FunctionDef):
            functions[body.name] = body
            continue
        name, args = parse_function_header(str(declaration))
        if name in functions:
            logger.warning("Function %r declared twice in one %s (%s and %s); keeping the last",
                           name, FUNCTIONS_KEY, functions[name].declaration, declaration)
        functions[name] = FunctionDef(
            name, args, _body_source(declaration, body), declaration=str(declaration))
    return functions


def expand_ref(name: str, ref: Any) -> RefDef:
    """A ``.refs`` value: a snapshot string, ``{value, depth}`` or a :class:`RefDef`."""
    if isinstance(ref, RefDef):
        return ref
    if isinstance(ref, str):
        return RefDef(ref, 0)
    if isinstance(ref, Mapping) and isinstance(ref.get("value"), str):
        depth = ref.get("depth", 0)
        if not isinstance(depth, int) or isinstance(depth, bool) or depth < 0:
            raise DeclarationError(f"Invalid {REFS_KEY} depth for {name}: {depth!r}")
        return RefDef(ref["value"], depth)
    raise DeclarationError(f"Invalid {REFS_KEY} declaration: {name}")


# ═══════════════════════════════════════════════════════════════════════════════
# SCOPE RESOLUTION
# ═══════════════════════════════════════════════════════════════════════════════

def coerce_options(options: Any) -> Options:
    """Accept :class:`Options`, ``None``, or a mapping using the rule keys.

    A mapping is read like a rules node: ``{".functions": ..., ".refs": ...}``.
    Its refs are taken as given, not deepened.
    """
    if options is None:
        return Options()
    if isinstance(options, Options):
        return options
    if isinstance(options, Mapping):
        refs = options.get(REFS_KEY) or {}
        if not isinstance(refs, Mapping):
            raise DeclarationError(f"{REFS_KEY} must be a mapping, got {type(refs).__name__}")
        parent = options.get(PARENT_KEY)
        return Options(
            functions=expand_functions(options.get(FUNCTIONS_KEY) or {}),
            refs={name: expand_ref(name, ref) for name, ref in refs.items()},
            parent=parent,
            parent_keys=tuple(parent) if parent else (),
        )
    raise TypeError(f"expected Options or a mapping, got {type(options).__name__}")


def get_options(rules: MutableMapping[str, Any], options: Any = None) -> Options:
    """Compute the effective options for ``rules`` and strip its declaration keys.

    ``options`` are the effective options of the parent node (``None`` at
    the top), or a raw ``{".refs": ..., ".functions": ...}`` mapping seeding
    the top node.  Resolution order, later entries winning:

    1. inherited refs, one level deeper; bare-string refs of a raw mapping
       enter at depth 0
    2. implicit ``prev`` refs for the parent's wildcard keys
    3. the node's own ``.refs`` at depth 0, or the depth they give

    Functions are the inherited ones overlaid with the node's own.
    """
    inherited = coerce_options(options)
    keys = tuple(rules.keys())
    local_functions = rules.get(FUNCTIONS_KEY) or {}
    local_refs = rules.get(REFS_KEY) or {}
    if not isinstance(local_refs, Mapping):
        raise DeclarationError(f"{REFS_KEY} must be a mapping, got {type(local_refs).__name__}")
    for key in RESERVED_KEYS:
        rules.pop(key, None)

    refs = {name: ref.inherited() for name, ref in inherited.refs.items()}
    if isinstance(options, Mapping):
        # raw seed mapping: bare strings have not been declared anywhere yet
        for name, ref in (options.get(REFS_KEY) or {}).items():
            if isinstance(ref, str):
                refs[name] = RefDef(ref, 0)
    if inherited.parent is not None:
        for key in inherited.parent_keys:
            if isinstance(key, str) and key.startswith(WILDCARD_PREFIX) and key not in local_refs:
                refs[key] = RefDef(IMPLICIT_REF_SNAPSHOT, 0)
    for name, ref in local_refs.items():
        refs[name] = expand_ref(name, ref)

    functions = dict(inherited.functions)
    functions.update(expand_functions(local_functions))

    return Options(functions=functions, refs=refs, parent=rules, parent_keys=keys)


def resolve(rules: MutableMapping[str, Any], options: Optional[Options] = None) -> Options:
    """Alias of :func:`get_options`."""
    return get_options(rules, options)
