"""
Execution of compiled grammars.

A compiled grammar names its post-processors as strings; the callables are
registered on a ``Runtime`` with ``load_funcs`` and resolved when the
grammar is loaded. A name with no registered callable only warns: that
rule's raw match value passes through unchanged.
"""

import json
import warnings
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .config.settings import Settings, get_settings
from .engine import Engine
from .errors import GrammarError
from .expressions import RuleRef
from .nodes import CompiledRule, to_expression
from .registry import Registry
from .results import MatchResult

GrammarSource = Union[str, Mapping[str, Any], Iterable[Union[CompiledRule, Mapping[str, Any]]]]


def load_grammar(source: GrammarSource) -> List[CompiledRule]:
    """Normalize a compiled grammar into ``CompiledRule`` objects.

    Accepts the JSON artifact text, the artifact dict, or a list of rule
    dicts or ``CompiledRule`` objects.
    """
    if isinstance(source, str):
        try:
            source = json.loads(source)
        except json.JSONDecodeError as e:
            raise GrammarError(f"Grammar artifact is not valid JSON: {e}") from None
    if isinstance(source, Mapping):
        if "rules" not in source:
            raise GrammarError("Grammar artifact has no 'rules' list")
        source = source["rules"]

    rules = []
    for entry in source:
        if isinstance(entry, CompiledRule):
            rules.append(entry)
        else:
            rules.append(CompiledRule.from_dict(entry))
    return rules


class Runtime:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._funcs: Dict[str, Callable[[Any], Any]] = {}

    def load_funcs(self, funcs: Mapping[str, Callable[[Any], Any]]):
        """Register post-processors by the names compiled rules refer to.

        Each callable receives the raw match value, which rule memoization
        may share between alternatives: return a new value instead of
        mutating it, or run with ``Settings(memoize=False)``.
        """
        for name, fn in funcs.items():
            if not callable(fn):
                raise GrammarError(f"Post-processor '{name}' is not callable")
            self._funcs[name] = fn

    def create_postprocessor(self, name: str, fn: Callable[[Any], Any]):
        self.load_funcs({name: fn})

    def load(self, grammar_rules: GrammarSource) -> Engine:
        """Build a frozen registry for ``grammar_rules`` and an engine over it."""
        registry = Registry.with_primitives()
        for compiled in load_grammar(grammar_rules):
            post = None
            if compiled.post_processor:
                post = self._funcs.get(compiled.post_processor)
                if post is None:
                    warnings.warn(
                        f"Postprocessor '{compiled.post_processor}' is missing "
                        f"(rule '{compiled.name}')",
                        UserWarning,
                    )
            registry.define_rule(compiled.name, to_expression(compiled.expression), post)
        registry.freeze()
        return Engine(registry, settings=self.settings)

    def execute(
        self, grammar_rules: GrammarSource, start_rule: str, text: str
    ) -> MatchResult:
        return self.load(grammar_rules).match(RuleRef(start_rule), text, 0)


def execute(
    grammar_rules: GrammarSource,
    start_rule: str,
    text: str,
    funcs: Optional[Mapping[str, Callable[[Any], Any]]] = None,
    settings: Optional[Settings] = None,
) -> MatchResult:
    runtime = Runtime(settings)
    if funcs:
        runtime.load_funcs(funcs)
    return runtime.execute(grammar_rules, start_rule, text)
