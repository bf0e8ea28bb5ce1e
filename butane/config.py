"""butane/config.py – Compiler configuration.

The tables that steer the passes (which identifiers are snapshots, which
roots are left alone, which methods end a child chain) live here rather
than as module constants so a caller can compile for a variant of the
rules language without patching the passes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List

__all__ = [
    "SNAPSHOT_IDENTIFIERS",
    "IGNORE_IDENTIFIERS",
    "VALUE_METHODS",
    "BUILTIN_METHODS",
    "CompilerConfig",
    "DEFAULT_CONFIG",
]


#: Shorthand snapshot names and the Firebase identifiers they compile to.
SNAPSHOT_IDENTIFIERS: Dict[str, str] = {
    "next": "newData",
    "prev": "data",
    "root": "root",
}

#: Chain roots that child-syntax desugaring leaves untouched.
IGNORE_IDENTIFIERS: FrozenSet[str] = frozenset({"auth"})

#: Methods returning a plain value rather than a snapshot.  Member access
#: after one of these is ordinary property access, not ``child()``.
VALUE_METHODS: FrozenSet[str] = frozenset({"val", "getPriority"})

#: Names that may appear as a bare call without a ``.functions`` entry.
BUILTIN_METHODS: FrozenSet[str] = frozenset({
    # RuleDataSnapshot
    "val", "child", "parent", "hasChild", "hasChildren", "exists",
    "getPriority", "isNumber", "isString", "isBoolean",
    # strings
    "contains", "beginsWith", "endsWith", "replace",
    "toLowerCase", "toUpperCase", "matches",
})


# ===================================================================== #
#  Compiler Configuration                                                #
# ===================================================================== #

@dataclass
class CompilerConfig:
    """Tuning knobs for the rule compiler."""
    snapshot_identifiers: Dict[str, str] = field(
        default_factory=lambda: dict(SNAPSHOT_IDENTIFIERS))
    ignore_identifiers: FrozenSet[str] = IGNORE_IDENTIFIERS
    value_methods: FrozenSet[str] = VALUE_METHODS
    builtin_methods: FrozenSet[str] = BUILTIN_METHODS
    max_inline_depth: int = 64
    json_indent: int = 2

    @property
    def snapshots(self) -> FrozenSet[str]:
        """The shorthand snapshot names (``next``, ``prev``, ``root``)."""
        return frozenset(self.snapshot_identifiers)

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.max_inline_depth <= 0:
            warnings.append("max_inline_depth must be positive")
        if self.json_indent < 0:
            warnings.append("json_indent must be non-negative")
        if not self.snapshot_identifiers:
            warnings.append("snapshot_identifiers is empty; no values will be coerced")
        overlap = self.snapshots & set(self.ignore_identifiers)
        if overlap:
            warnings.append(
                f"identifiers both snapshot and ignored: {', '.join(sorted(overlap))}")
        return warnings


DEFAULT_CONFIG = CompilerConfig()
