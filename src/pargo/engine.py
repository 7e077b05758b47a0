"""
Matching engine.

``Engine.match(expr, text, pos)`` is a pure function of its arguments and
the (frozen) registry: positions are threaded through every call and
returned in the ``MatchResult``; nothing is stored on the engine while
matching. Per-call state (recursion depth, rule memo) lives in a
``MatchContext`` created for that call, so concurrent matches against one
engine never see each other.
"""

from typing import Any, Callable, Dict, Optional, Tuple

from .config.settings import Settings, get_settings
from .errors import GrammarError, GrammarTooDeepError
from .expressions import Choice, Expression, Literal, Macro, Range, RuleRef, Sequence
from .registry import Registry
from .results import MatchResult

MemoKey = Tuple[str, int]


def _apply_post(fn: Callable[[Any], Any], result: MatchResult) -> MatchResult:
    try:
        return result.with_value(fn(result.value))
    except Exception as e:
        return MatchResult.fail(f"post-processing error: {e}")


class MatchContext:
    """Evaluation state for one level of one ``Engine.match`` call.

    Macros receive a context and use ``ctx.match(expr, pos)`` to evaluate
    their argument one level deeper.
    """

    __slots__ = ("engine", "text", "depth", "memo")

    def __init__(
        self,
        engine: "Engine",
        text: str,
        depth: int = 0,
        memo: Optional[Dict[MemoKey, MatchResult]] = None,
    ):
        self.engine = engine
        self.text = text
        self.depth = depth
        self.memo = memo

    @property
    def registry(self) -> Registry:
        return self.engine.registry

    def deeper(self) -> "MatchContext":
        return MatchContext(self.engine, self.text, self.depth + 1, self.memo)

    def match(self, expr: Expression, pos: int) -> MatchResult:
        return self.engine._eval(expr, pos, self)


class Engine:
    def __init__(
        self,
        registry: Optional[Registry] = None,
        *,
        max_depth: Optional[int] = None,
        memoize: Optional[bool] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.registry = registry if registry is not None else Registry.with_primitives()
        self.max_depth = max_depth if max_depth is not None else settings.max_depth
        self.memoize = memoize if memoize is not None else settings.memoize

    # public entrypoints
    def match(self, expr: Expression, text: str, pos: int = 0) -> MatchResult:
        if pos < 0 or pos > len(text):
            raise ValueError(f"position {pos} is outside the input (length {len(text)})")
        ctx = MatchContext(self, text, 0, {} if self.memoize else None)
        try:
            return self._eval(expr, pos, ctx)
        except RecursionError:
            # max_depth set above what the interpreter stack can hold
            raise GrammarTooDeepError(self.max_depth, pos) from None

    def match_rule(self, name: str, text: str, pos: int = 0) -> MatchResult:
        return self.match(RuleRef(name), text, pos)

    # dispatch
    def _eval(self, expr: Expression, pos: int, ctx: MatchContext) -> MatchResult:
        if ctx.depth > self.max_depth:
            raise GrammarTooDeepError(self.max_depth, pos)
        inner = ctx.deeper()

        if isinstance(expr, Literal):
            result = self._match_literal(expr, ctx.text, pos)
        elif isinstance(expr, Range):
            result = self._match_range(expr, ctx.text, pos)
        elif isinstance(expr, Sequence):
            result = self._match_sequence(expr, pos, inner)
        elif isinstance(expr, Choice):
            result = self._match_choice(expr, pos, inner)
        elif isinstance(expr, RuleRef):
            result = self._match_rule_ref(expr, pos, inner)
        elif isinstance(expr, Macro):
            macro_fn = self.registry.get_macro(expr.name)
            result = macro_fn(inner, expr.arg, pos)
        else:
            raise GrammarError(f"Unknown expression node: {expr!r}")

        if result.success and expr.post is not None:
            result = _apply_post(expr.post, result)
        return result

    @staticmethod
    def _match_literal(expr: Literal, text: str, pos: int) -> MatchResult:
        lit = expr.text
        if text.startswith(lit, pos):
            return MatchResult.ok(len(lit), lit)
        if pos + len(lit) > len(text):
            return MatchResult.fail(f'expected "{lit}" but reached end of input')
        found = text[pos : pos + len(lit)]
        return MatchResult.fail(f'expected "{lit}" but found "{found}"')

    @staticmethod
    def _match_range(expr: Range, text: str, pos: int) -> MatchResult:
        if pos >= len(text):
            return MatchResult.fail("unexpected end of input")
        ch = text[pos]
        if ord(expr.lo) <= ord(ch) <= ord(expr.hi):
            return MatchResult.ok(1, ch)
        return MatchResult.fail(
            f'expected character in range [{expr.lo}-{expr.hi}] but found "{ch}"'
        )

    def _match_sequence(
        self, expr: Sequence, pos: int, ctx: MatchContext
    ) -> MatchResult:
        values = []
        cur = pos
        for item in expr.items:
            result = self._eval(item, cur, ctx)
            if not result.success:
                return result
            values.append(result.value)
            cur += result.consumed
        return MatchResult.ok(cur - pos, values)

    def _match_choice(self, expr: Choice, pos: int, ctx: MatchContext) -> MatchResult:
        # longest match wins; on a tie the earliest alternative is kept
        best: Optional[MatchResult] = None
        for alt in expr.alternatives:
            result = self._eval(alt, pos, ctx)
            if result.success and (best is None or result.consumed > best.consumed):
                best = result
        return best if best is not None else MatchResult.fail("no alternative matched")

    def _match_rule_ref(
        self, expr: RuleRef, pos: int, ctx: MatchContext
    ) -> MatchResult:
        key = (expr.name, pos)
        if ctx.memo is not None and key in ctx.memo:
            return ctx.memo[key]

        rule = self.registry.get_rule(expr.name)
        result = self._eval(rule.expression, pos, ctx)
        if result.success and rule.post_processor is not None:
            result = _apply_post(rule.post_processor, result)

        if ctx.memo is not None:
            ctx.memo[key] = result
        return result
