"""
Expression model.

An expression is an immutable tree of combinator nodes. Recursive grammars
are expressed nominally: ``RuleRef`` holds a rule name that the engine
resolves through a registry, so the tree itself never contains a cycle.

Every node may carry a post-processor, a callable applied to the value of a
successful match of that node.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Tuple, Union

from .errors import GrammarError

PostProcessor = Callable[[Any], Any]


class MacroName(str, Enum):
    OPTIONAL = "optional"
    ZERO_OR_MORE = "zeroOrMore"
    ONE_OR_MORE = "oneOrMore"
    UNTIL = "until"
    WS = "ws"


@dataclass(frozen=True)
class Literal:
    text: str
    post: Optional[PostProcessor] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.text, str) or not self.text:
            raise GrammarError("Literal requires a non-empty string")


@dataclass(frozen=True)
class Range:
    lo: str
    hi: str
    post: Optional[PostProcessor] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        for bound in (self.lo, self.hi):
            if not isinstance(bound, str) or len(bound) != 1:
                raise GrammarError(
                    f"Range requires single character bounds, got {bound!r}"
                )
        if ord(self.lo) > ord(self.hi):
            raise GrammarError(f"Range lower bound {self.lo!r} exceeds {self.hi!r}")


@dataclass(frozen=True)
class Sequence:
    items: Tuple["Expression", ...]
    post: Optional[PostProcessor] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not self.items:
            raise GrammarError("Sequence requires at least one expression")


@dataclass(frozen=True)
class Choice:
    alternatives: Tuple["Expression", ...]
    post: Optional[PostProcessor] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not self.alternatives:
            raise GrammarError("Choice requires at least one expression")


@dataclass(frozen=True)
class RuleRef:
    name: str
    post: Optional[PostProcessor] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Macro:
    name: str
    arg: Optional["Expression"] = None
    post: Optional[PostProcessor] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        # names are stored as plain strings
        if isinstance(self.name, MacroName):
            object.__setattr__(self, "name", self.name.value)


Expression = Union[Literal, Range, Sequence, Choice, RuleRef, Macro]


def with_post(expr: Expression, fn: Optional[PostProcessor]) -> Expression:
    """Return a copy of ``expr`` whose successful matches are passed through ``fn``."""
    return dataclasses.replace(expr, post=fn)


# ---------------- builders ----------------
def string(text: str) -> Literal:
    return Literal(text)


def char_range(lo: str, hi: str) -> Range:
    return Range(lo, hi)


def seq(*items: Expression) -> Sequence:
    return Sequence(tuple(items))


def choice(*alternatives: Expression) -> Choice:
    return Choice(tuple(alternatives))


def ref(name: str) -> RuleRef:
    return RuleRef(name)


def macro(name: Union[str, MacroName], arg: Optional[Expression] = None) -> Macro:
    return Macro(name, arg)


def optional(expr: Expression) -> Macro:
    return Macro(MacroName.OPTIONAL, expr)


def zero_or_more(expr: Expression) -> Macro:
    return Macro(MacroName.ZERO_OR_MORE, expr)


def one_or_more(expr: Expression) -> Macro:
    return Macro(MacroName.ONE_OR_MORE, expr)


def until(stop: Expression) -> Macro:
    return Macro(MacroName.UNTIL, stop)


def ws() -> Macro:
    return Macro(MacroName.WS)
