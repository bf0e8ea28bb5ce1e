"""butane/refs.py – ``^name`` reference expansion.

``^name`` in a rule string expands to the ref's snapshot followed by one
``.parent()`` per level between the rule and the ref's declaration.  An
explicit snapshot may be chosen with ``^name(prev)`` or ``^name(next)``.

Expansion is textual and happens before parsing, because ``^`` is not
part of the expression grammar.  Refs are applied in declaration order;
each occurrence must match the whole name (``^$chat`` never rewrites the
start of ``^$chatroom``).
"""

from __future__ import annotations

import logging
import re
from typing import Pattern

from butane.options import Options, RefDef

logger = logging.getLogger(__name__)

__all__ = ["ref_pattern", "expand_ref_text", "replace_refs"]

PARENT_CALL = ".parent()"


def ref_pattern(name: str) -> Pattern[str]:
    """Regex matching ``^name`` and ``^name(next|prev)`` as a whole token."""
    return re.compile(r"\^" + re.escape(name) + r"(?![\w$])(?:\((next|prev)\))?")


def expand_ref_text(ref: RefDef, snapshot: str = "") -> str:
    return (snapshot or ref.value) + PARENT_CALL * ref.depth


def replace_refs(text: str, options: Options) -> str:
    """Expand every ``^name`` in ``text`` using ``options.refs``.

    Unknown refs are left in place; the parser reports them.
    """
    if "^" not in text:
        return text
    for name, ref in options.refs.items():
        text, count = ref_pattern(name).subn(
            lambda m, ref=ref: expand_ref_text(ref, m.group(1)), text)
        if count:
            logger.debug("Expanded %d reference(s) to ^%s", count, name)
    return text
