"""butane — YAML Firebase security rules compiler.

Rules are written in YAML with shorthand expressions and compiled into
the JSON rules format Firebase accepts.  The shorthand adds:

* ``next`` / ``prev`` / ``root`` snapshots, coerced to ``.val()`` when
  used as values and renamed to ``newData`` / ``data`` / ``root``;
* ``a.b`` / ``a[b]`` member access on snapshots, desugared to ``child()``;
* ``.functions`` declarations inlined at their call sites;
* ``^name`` references to ancestor snapshots, including one implicit ref
  per ``$wildcard`` key.

Submodules
----------
parser
    Parsimonious grammar: rule string → :mod:`butane.ast` tree.
codegen
    Tree → rule string.
options, refs, inline, transforms
    The compilation passes.
rules
    The tree walker tying the passes together (:func:`parse`).
convert
    YAML file / text → JSON.
main
    Command-line interface.

Usage
-----
Command-line::

    butane rules.yaml rules.json
    python -m butane rules.yaml

Programmatic::

    import yaml
    from butane import parse

    compiled = parse(yaml.safe_load(text))
"""

from butane.builtins import FunctionRegistry, register_function
from butane.config import CompilerConfig
from butane.convert import convert, convert_string, load_rules
from butane.errors import ButaneError
from butane.rules import Compiler, compile_expression, parse

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "ButaneError",
    "Compiler",
    "CompilerConfig",
    "FunctionRegistry",
    "compile_expression",
    "convert",
    "convert_string",
    "load_rules",
    "parse",
    "register_function",
]
