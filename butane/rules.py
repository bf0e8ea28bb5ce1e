"""butane/rules.py – Rules tree compiler.

:func:`parse` walks a decoded rules document depth-first.  At each mapping
it resolves the node's options (:mod:`butane.options`), then compiles
every string value through the pass pipeline:

    replace_refs → inline functions → coerce values
                 → child syntax → rename snapshots → print

Mappings are recursed into, strings are replaced by their compiled form,
and every other value (booleans, numbers, lists) is kept as is.  The tree
is rewritten **in place** and also returned.
"""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional, Sequence

from butane.builtins import FunctionRegistry, default_registry
from butane.codegen import generate
from butane.config import DEFAULT_CONFIG, CompilerConfig
from butane.errors import ButaneError, RulesFormatError
from butane.inline import inline_functions
from butane.options import coerce_options, get_options
from butane.parser import parse_expression
from butane.refs import replace_refs
from butane.transforms import coerce_values, desugar_child_syntax, rename_snapshots

logger = logging.getLogger(__name__)

__all__ = ["Compiler", "compile_expression", "parse"]


class Compiler:
    """Compiles rule expressions and rules trees with one registry and config.

    Usage::

        compiler = Compiler(config=CompilerConfig(max_inline_depth=16))
        compiler.parse(yaml.safe_load(text))
    """

    def __init__(
        self,
        registry: Optional[FunctionRegistry] = None,
        config: Optional[CompilerConfig] = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.config = config or DEFAULT_CONFIG
        for w in self.config.validate():
            logger.warning("CompilerConfig: %s", w)

    def compile_expression(self, text: str, options: Any = None) -> str:
        """Run one rule string through the full pipeline."""
        options = coerce_options(options)
        expanded = replace_refs(text, options)
        node = parse_expression(expanded)
        node = inline_functions(node, options, self.registry, self.config)
        node = coerce_values(node, self.config)
        node = desugar_child_syntax(node, self.config)
        node = rename_snapshots(node, self.config)
        return generate(node)

    def parse(self, rules: MutableMapping[str, Any], options: Any = None) -> MutableMapping[str, Any]:
        """Compile a rules tree in place; returns ``rules``.

        Raises:
            RulesFormatError: if ``rules`` is not a mapping.
            ButaneError: the first failure, with ``rule_path`` set to the
                offending rule.
        """
        if not isinstance(rules, MutableMapping):
            raise RulesFormatError(
                f"Rules document must be a mapping, got {type(rules).__name__}")
        return self._walk(rules, options, ())

    def _walk(
        self,
        rules: MutableMapping[str, Any],
        options: Any,
        path: Sequence[Any],
    ) -> MutableMapping[str, Any]:
        try:
            options = get_options(rules, options)
        except ButaneError as exc:
            raise exc.at(path)
        for key, rule in list(rules.items()):
            rule_path = tuple(path) + (key,)
            if isinstance(rule, MutableMapping):
                self._walk(rule, options, rule_path)
            elif isinstance(rule, str):
                try:
                    rules[key] = self.compile_expression(rule, options)
                except ButaneError as exc:
                    raise exc.at(rule_path)
                logger.debug("/%s: %s", "/".join(map(str, rule_path)), rules[key])
        return rules


def compile_expression(
    text: str,
    options: Any = None,
    registry: Optional[FunctionRegistry] = None,
    config: Optional[CompilerConfig] = None,
) -> str:
    """Compile a single rule string outside of any rules tree."""
    return Compiler(registry, config).compile_expression(text, options)


def parse(
    rules: MutableMapping[str, Any],
    options: Any = None,
    registry: Optional[FunctionRegistry] = None,
    config: Optional[CompilerConfig] = None,
) -> MutableMapping[str, Any]:
    """Compile a decoded rules document in place and return it.

    ``options`` seeds the top level.  Bare-string refs given in a mapping
    are declared at the top node (depth 0); :class:`Options` and structured
    ``{value, depth}`` refs are inherited one level deeper.
    """
    return Compiler(registry, config).parse(rules, options)
