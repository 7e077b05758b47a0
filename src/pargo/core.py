import re
from abc import ABC
from typing import Any, Callable, List, Optional, Tuple

from .config.settings import Settings, get_settings
from .engine import Engine
from .errors import ParseError
from .expressions import Expression
from .registry import Registry
from .results import MatchResult

# same line breaks the grammar DSL accepts between rules
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


# ---------------- DSL spec objects ----------------
class RuleSpec:
    def __init__(self, expression: Expression, name: Optional[str] = None):
        self.expression = expression
        # if None, the class attribute name is used as the rule name
        self.name = name
        self._is_rule_spec = True


def define(expression: Expression, *, name: Optional[str] = None) -> RuleSpec:
    """Declare a rule without a post-processor as a class attribute.

        class Numbers(Grammar):
            number = define(one_or_more(ref("digit")))
    """
    return RuleSpec(expression, name)


def rule(expression: Expression, *, name: Optional[str] = None):
    """Decorator declaring a rule whose post-processor is the decorated method.

    The method receives the value of a successful match and returns the
    value the rule produces. The rule name is ``name`` if given, otherwise
    the method name. A method may be decorated more than once to share one
    post-processor between several rules.

    The value may be shared with other alternatives through the per-call
    rule memo, so the method must build a new value rather than mutate the
    one it receives.
    """

    def decorator(fn):
        if not hasattr(fn, "_rule_defs"):
            fn._rule_defs = []
        fn._rule_defs.append({"expression": expression, "rule_name": name})
        fn._is_rule = True
        return fn

    return decorator


# ---------------- Grammar ----------------
class Grammar(ABC):
    # name of the rule ``parse`` starts from; see ``default_start_rule``
    start_rule: Optional[str] = None

    def __init__(
        self,
        registry: Optional[Registry] = None,
        *,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry if registry is not None else Registry.with_primitives()
        self._rule_order: List[str] = []

        # base classes first so subclasses can overwrite inherited rules
        for klass in reversed(type(self).__mro__):
            for attr_name, attr in vars(klass).items():
                if hasattr(attr, "_is_rule_spec"):
                    self._define(attr.name or attr_name, attr.expression, None)
                elif hasattr(attr, "_is_rule"):
                    for rule_def in getattr(attr, "_rule_defs", []):
                        rule_name = rule_def["rule_name"] or attr_name
                        # bound method
                        self._define(
                            rule_name, rule_def["expression"], getattr(self, attr_name)
                        )

        self.registry.freeze()
        self.engine = Engine(self.registry, settings=self.settings)

    def _define(
        self,
        rule_name: str,
        expression: Expression,
        post_processor: Optional[Callable[[Any], Any]],
    ):
        self.registry.define_rule(rule_name, expression, post_processor)
        if rule_name not in self._rule_order:
            self._rule_order.append(rule_name)

    @property
    def rule_names(self) -> List[str]:
        return list(self._rule_order)

    def default_start_rule(self) -> str:
        if self.start_rule is not None:
            return self.start_rule
        if "top" in self._rule_order:
            return "top"
        if self._rule_order:
            return self._rule_order[0]
        raise RuntimeError("No rules defined")

    # location helpers
    def _loc(self, text: str, pos: int) -> Tuple[int, int, int]:
        if pos < 0:
            pos = 0
        line = 1
        line_start = 0
        for m in _LINE_BREAK.finditer(text, 0, pos):
            line += 1
            line_start = m.end()
        return line, pos - line_start + 1, line_start

    def _format_error(
        self, message: str, text: str, pos: int, expected: Optional[List[str]] = None
    ) -> ParseError:
        line, col, line_start = self._loc(text, pos)
        next_break = _LINE_BREAK.search(text, line_start)
        line_end = next_break.start() if next_break else len(text)
        snippet = text[line_start:line_end]
        caret = " " * (col - 1) + "^"
        exp_part = f"\nExpected: {', '.join(expected)}" if expected else ""
        # small lookahead to show what was actually found
        lookahead_len = self.settings.error_preview_length
        found = text[pos : pos + lookahead_len]
        found_disp = found.replace("\r", "\\r").replace("\n", "\\n")
        if found_disp and pos + lookahead_len < len(text):
            found_disp += "..."
        found_part = f"\nFound: '{found_disp}'" if found_disp else ""
        return ParseError(
            f"{message}\nLine {line}, Column {col}:{exp_part}{found_part}\n{snippet}\n{caret}",
            line=line,
            column=col,
        )

    # public entrypoints
    def match(
        self, text: str, start_rule: Optional[str] = None, pos: int = 0
    ) -> MatchResult:
        """Match ``start_rule`` at ``pos`` without requiring full consumption."""
        if start_rule is None:
            start_rule = self.default_start_rule()
        return self.engine.match_rule(start_rule, text, pos)

    def parse(self, text: str, start_rule: Optional[str] = None) -> Any:
        """Match the whole of ``text`` and return the produced value.

        Raises ParseError when the start rule fails or stops before the end
        of the input.
        """
        if start_rule is None:
            start_rule = self.default_start_rule()
        result = self.engine.match_rule(start_rule, text, 0)
        if not result.success:
            raise self._format_error(
                f"Failed to match rule '{start_rule}'",
                text,
                0,
                expected=[result.error] if result.error else None,
            )
        if result.consumed != len(text):
            raise self._format_error("Unconsumed input", text, result.consumed)
        return result.value
