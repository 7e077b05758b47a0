from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from .errors import MacroNotFoundError, RegistryFrozenError, RuleNotFoundError
from .expressions import Expression, PostProcessor, Range, string
from .macros import BUILTIN_MACROS, MacroFn

# Seeded into every grammar before user rules, which may overwrite them.
PRIMITIVES: Dict[str, Expression] = {
    "alpha": Range("a", "z"),
    "digit": Range("0", "9"),
    "alphaUpper": Range("A", "Z"),
    "underscore": string("_"),
}


@dataclass(frozen=True)
class Rule:
    name: str
    expression: Expression
    post_processor: Optional[PostProcessor] = field(default=None, compare=False)


class Registry:
    """Rule and macro tables for one grammar session.

    Populated by a single writer during grammar setup, then frozen; after
    that it is only read, so any number of matches may share it.
    """

    def __init__(self):
        self._rules: Dict[str, Rule] = {}
        self._macros: Dict[str, MacroFn] = dict(BUILTIN_MACROS)
        self._frozen = False

    @classmethod
    def with_primitives(cls) -> "Registry":
        registry = cls()
        for name, expr in PRIMITIVES.items():
            registry.define_rule(name, expr)
        return registry

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "Registry":
        self._frozen = True
        return self

    def _check_writable(self, what: str, name: str):
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot define {what} '{name}': registry is frozen"
            )

    def define_rule(
        self,
        name: str,
        expression: Expression,
        post_processor: Optional[PostProcessor] = None,
    ) -> Rule:
        self._check_writable("rule", name)
        rule = Rule(name, expression, post_processor)
        self._rules[name] = rule
        return rule

    def define_macro(self, name: str, fn: MacroFn):
        self._check_writable("macro", name)
        self._macros[name] = fn

    def get_rule(self, name: str) -> Rule:
        try:
            return self._rules[name]
        except KeyError:
            raise RuleNotFoundError(name) from None

    def get_macro(self, name: str) -> MacroFn:
        try:
            return self._macros[name]
        except KeyError:
            raise MacroNotFoundError(name) from None

    def has_rule(self, name: str) -> bool:
        return name in self._rules

    def rule_names(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)
