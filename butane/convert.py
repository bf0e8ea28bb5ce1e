"""butane/convert.py – YAML in, Firebase rules JSON out.

The input document is YAML with a top-level ``rules`` key (plus an optional
top-level ``.functions`` / ``.refs``); the output is the same tree with
every rule string compiled, serialised as JSON.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional, Union

import yaml

from butane.builtins import FunctionRegistry
from butane.config import DEFAULT_CONFIG, CompilerConfig
from butane.errors import MissingInputError, MissingOutputDirectoryError, RulesFormatError
from butane.rules import Compiler

logger = logging.getLogger(__name__)

__all__ = ["load_rules", "dump_rules", "convert_string", "convert"]

PathLike = Union[str, "os.PathLike[str]"]


def load_rules(text: str) -> Dict[str, Any]:
    """Decode a YAML rules document.

    Raises:
        RulesFormatError: on invalid YAML, or when the document is not a mapping.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        message = f"Invalid YAML: {getattr(e, 'problem', None) or e}"
        if getattr(e, "problem_mark", None) is not None:
            message += f" (line {e.problem_mark.line + 1})"
        raise RulesFormatError(message) from e
    if not isinstance(data, dict):
        raise RulesFormatError(
            f"Rules document must be a mapping, got {type(data).__name__}")
    return data


def dump_rules(rules: Any, indent: Optional[int] = 2) -> str:
    return json.dumps(rules, indent=indent)


def convert_string(
    text: str,
    registry: Optional[FunctionRegistry] = None,
    config: Optional[CompilerConfig] = None,
) -> str:
    """Compile YAML rules text and return the JSON text."""
    config = config or DEFAULT_CONFIG
    rules = Compiler(registry, config).parse(load_rules(text))
    return dump_rules(rules, config.json_indent)


def convert(
    input: PathLike,
    output: Optional[PathLike] = None,
    registry: Optional[FunctionRegistry] = None,
    config: Optional[CompilerConfig] = None,
) -> Dict[str, Any]:
    """Compile the YAML file ``input``; write JSON to ``output`` if given.

    Returns the compiled rules tree.

    Raises:
        MissingInputError: ``input`` does not exist.
        MissingOutputDirectoryError: the directory of ``output`` does not exist.
    """
    input_path = os.path.abspath(os.fspath(input))
    if not os.path.exists(input_path):
        raise MissingInputError(os.fspath(input))

    output_path = None
    if output is not None:
        output_path = os.path.abspath(os.fspath(output))
        output_dir = os.path.dirname(output_path)
        if not os.path.isdir(output_dir):
            raise MissingOutputDirectoryError(output_dir)

    config = config or DEFAULT_CONFIG
    with open(input_path, encoding="utf-8") as f:
        text = f.read()
    rules = Compiler(registry, config).parse(load_rules(text))

    if output_path is not None:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(dump_rules(rules, config.json_indent))
            f.write("\n")
        logger.info("Wrote %s", output_path)
    return rules
