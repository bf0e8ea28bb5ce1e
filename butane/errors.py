# butane/errors.py
"""
Butane Error Types

Every failure raised by the compiler derives from :class:`ButaneError`
and carries a structured :class:`ErrorCode` so callers (and the command
line) can tell the compilation phases apart without matching on message
text.  Errors raised while compiling a rules tree also carry the path of
the offending rule (see :meth:`ButaneError.at`).

Error Hierarchy:
────────────────
    ButaneError (base)
    ├── ParseError                       - expression text rejected by the grammar
    │   └── ExpressionSyntaxError
    ├── DeclarationError
    │   └── MalformedFunctionDeclarationError
    ├── InlineError
    │   ├── UndefinedFunctionError
    │   ├── FunctionArgumentError
    │   └── CircularDefinitionError
    ├── RulesFormatError                 - decoded document is not a mapping
    └── ConvertError
        ├── MissingInputError
        └── MissingOutputDirectoryError

Error Codes:
────────────
    BTN-1xxx  syntax
    BTN-2xxx  declarations and inlining
    BTN-3xxx  rule documents
    BTN-4xxx  file conversion
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Optional, Sequence, Tuple


@unique
class ErrorPhase(Enum):
    """Compilation phase where the error occurred."""

    SYNTAX = "syntax"
    DECLARATION = "declaration"
    INLINE = "inline"
    RULES = "rules"
    CONVERT = "convert"


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code of the form ``BTN-NNNN``.
    """

    __slots__ = ("prefix", "number", "phase")

    def __init__(self, prefix: str, number: int, phase: ErrorPhase) -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.phase.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ErrorCodes:
    """Predefined error codes."""

    INVALID_EXPRESSION = ErrorCode("BTN", 1001, ErrorPhase.SYNTAX)

    MALFORMED_FUNCTION_DECLARATION = ErrorCode("BTN", 2001, ErrorPhase.DECLARATION)
    UNDEFINED_FUNCTION = ErrorCode("BTN", 2002, ErrorPhase.INLINE)
    INVALID_FUNCTION_ARGUMENT = ErrorCode("BTN", 2003, ErrorPhase.INLINE)
    CIRCULAR_DEFINITION = ErrorCode("BTN", 2004, ErrorPhase.INLINE)

    INVALID_RULES_DOCUMENT = ErrorCode("BTN", 3001, ErrorPhase.RULES)

    MISSING_INPUT = ErrorCode("BTN", 4001, ErrorPhase.CONVERT)
    MISSING_OUTPUT_DIRECTORY = ErrorCode("BTN", 4002, ErrorPhase.CONVERT)

    INTERNAL_ERROR = ErrorCode("BTN", 9001, ErrorPhase.RULES)


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class ButaneError(Exception):
    """
    Base exception for all Butane errors.

    ``message`` is the human readable text; ``str(error)`` prefixes it
    with the error code.
    """

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or ErrorCodes.INTERNAL_ERROR
        self.hint = hint
        self.rule_path: Optional[Tuple[str, ...]] = None

    def with_hint(self, hint: str) -> "ButaneError":
        """Attach a hint to this error."""
        self.hint = hint
        return self

    def at(self, path: Sequence[object]) -> "ButaneError":
        """Record the rule path where this error surfaced.

        Only the first (innermost) path sticks; outer frames re-raising the
        same error leave it alone.
        """
        if self.rule_path is None:
            self.rule_path = tuple(str(p) for p in path)
        return self

    @property
    def location(self) -> str:
        """The rule path as ``/a/b/.write``, or ``""`` when unknown."""
        if self.rule_path is None:
            return ""
        return "/" + "/".join(self.rule_path)

    def __str__(self) -> str:
        text = f"{self.code}: {self.message}"
        if self.location:
            text = f"{self.code}: {self.location}: {self.message}"
        if self.hint:
            text += f" (hint: {self.hint})"
        return text


# ───────────────────────────────────────────────────────────────────────────────
# SYNTAX ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class ParseError(ButaneError):
    """An expression string is not valid in the supported grammar."""

    def __init__(
        self,
        message: str,
        source: str = "",
        position: int = -1,
        code: Optional[ErrorCode] = None,
        **kwargs,
    ) -> None:
        super().__init__(
            message=message,
            code=code or ErrorCodes.INVALID_EXPRESSION,
            **kwargs,
        )
        self.source = source
        self.position = position


class ExpressionSyntaxError(ParseError):
    """Grammar rejected the expression at ``position``."""

    def __init__(self, source: str, position: int, rule: str = "", **kwargs) -> None:
        where = f" at column {position + 1}" if position >= 0 else ""
        near = source[position:position + 10] if 0 <= position < len(source) else ""
        message = f"Invalid expression {source!r}{where}"
        if near:
            message += f" near {near!r}"
        super().__init__(message=message, source=source, position=position, **kwargs)
        self.rule = rule


# ───────────────────────────────────────────────────────────────────────────────
# DECLARATION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class DeclarationError(ButaneError):
    """A ``.functions`` or ``.refs`` declaration is unusable."""


class MalformedFunctionDeclarationError(DeclarationError):
    """A ``.functions`` key does not read ``name(arg, ...)``."""

    def __init__(self, declaration: str, reason: str = "", **kwargs) -> None:
        message = f"Invalid .function declaration: {declaration}"
        if reason:
            message += f" ({reason})"
        super().__init__(
            message=message,
            code=ErrorCodes.MALFORMED_FUNCTION_DECLARATION,
            **kwargs,
        )
        self.declaration = declaration


# ───────────────────────────────────────────────────────────────────────────────
# INLINING ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class InlineError(ButaneError):
    """Failure while inlining a function call."""


class UndefinedFunctionError(InlineError):
    """A bare call names no declared, registered or built-in function."""

    def __init__(self, name: str, **kwargs) -> None:
        super().__init__(
            message=f"Undefined function '{name}'",
            code=ErrorCodes.UNDEFINED_FUNCTION,
            **kwargs,
        )
        self.name = name


class FunctionArgumentError(InlineError):
    """A registered function received arguments it cannot use."""

    def __init__(self, name: str, reason: str, **kwargs) -> None:
        super().__init__(
            message=f"Invalid arguments to {name}(): {reason}",
            code=ErrorCodes.INVALID_FUNCTION_ARGUMENT,
            **kwargs,
        )
        self.name = name


class CircularDefinitionError(InlineError):
    """A function expands into a call to itself."""

    def __init__(self, cycle: Sequence[str], **kwargs) -> None:
        cycle_str = " -> ".join(cycle)
        super().__init__(
            message=f"Circular function definition detected: {cycle_str}",
            code=ErrorCodes.CIRCULAR_DEFINITION,
            **kwargs,
        )
        self.cycle = list(cycle)


# ───────────────────────────────────────────────────────────────────────────────
# RULE DOCUMENT ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class RulesFormatError(ButaneError):
    """The rules document cannot be read as a mapping of rules."""

    def __init__(self, message: str, **kwargs) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_RULES_DOCUMENT,
            **kwargs,
        )


# ───────────────────────────────────────────────────────────────────────────────
# CONVERSION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class ConvertError(ButaneError):
    """File-mode conversion could not start."""


class MissingInputError(ConvertError):
    """The input file does not exist."""

    def __init__(self, path: str, **kwargs) -> None:
        super().__init__(
            message=f'Input "{path}" does not exist',
            code=ErrorCodes.MISSING_INPUT,
            **kwargs,
        )
        self.path = path


class MissingOutputDirectoryError(ConvertError):
    """The directory of the output file does not exist."""

    def __init__(self, path: str, **kwargs) -> None:
        super().__init__(
            message=f'Output directory "{path}" does not exist',
            code=ErrorCodes.MISSING_OUTPUT_DIRECTORY,
            **kwargs,
        )
        self.path = path


__all__ = [
    "ErrorPhase",
    "ErrorCode",
    "ErrorCodes",
    "ButaneError",
    "ParseError",
    "ExpressionSyntaxError",
    "DeclarationError",
    "MalformedFunctionDeclarationError",
    "InlineError",
    "UndefinedFunctionError",
    "FunctionArgumentError",
    "CircularDefinitionError",
    "RulesFormatError",
    "ConvertError",
    "MissingInputError",
    "MissingOutputDirectoryError",
]
