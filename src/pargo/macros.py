"""
Built-in macro library.

A macro is a higher-order combinator dispatched by name at match time. Each
callback receives the evaluation context (which knows the input text and
how to match a sub-expression), its optional argument expression, and the
position to start at. None of them mutate anything outside their own locals.
"""

from typing import Any, Callable, Dict, List, NamedTuple, Optional, TYPE_CHECKING

from .errors import GrammarError
from .expressions import Expression, MacroName
from .results import MatchResult

if TYPE_CHECKING:
    from .engine import MatchContext

MacroFn = Callable[["MatchContext", Optional[Expression], int], MatchResult]

ESCAPE_CHAR = "\\"


class Until(NamedTuple):
    """Value of a successful ``until`` scan."""

    text: str
    stop: Any


def _require_arg(name: MacroName, arg: Optional[Expression]) -> Expression:
    if arg is None:
        raise GrammarError(f"Macro '{name.value}' requires an argument expression")
    return arg


def macro_optional(ctx: "MatchContext", arg: Optional[Expression], pos: int) -> MatchResult:
    result = ctx.match(_require_arg(MacroName.OPTIONAL, arg), pos)
    if result.success:
        return result
    return MatchResult.ok(0, None)


def macro_zero_or_more(
    ctx: "MatchContext", arg: Optional[Expression], pos: int
) -> MatchResult:
    expr = _require_arg(MacroName.ZERO_OR_MORE, arg)
    values: List[Any] = []
    cur = pos
    while True:
        result = ctx.match(expr, cur)
        # a zero-width success would repeat forever
        if not result.success or result.consumed == 0:
            break
        values.append(result.value)
        cur += result.consumed
    return MatchResult.ok(cur - pos, values)


def macro_one_or_more(
    ctx: "MatchContext", arg: Optional[Expression], pos: int
) -> MatchResult:
    expr = _require_arg(MacroName.ONE_OR_MORE, arg)
    first = ctx.match(expr, pos)
    if not first.success:
        return MatchResult.fail("expected at least one match")
    rest = macro_zero_or_more(ctx, expr, pos + first.consumed)
    return MatchResult.ok(first.consumed + rest.consumed, [first.value] + rest.value)


def macro_until(ctx: "MatchContext", arg: Optional[Expression], pos: int) -> MatchResult:
    """Scan forward until ``arg`` matches at an unescaped position.

    A backslash makes the next character ineligible to start the stop match.
    Escape characters are kept in the accumulated text as written.
    """
    stop_expr = _require_arg(MacroName.UNTIL, arg)
    text = ctx.text
    chars: List[str] = []
    cur = pos
    escaped = False
    while cur < len(text):
        ch = text[cur]
        if ch == ESCAPE_CHAR and not escaped:
            escaped = True
            chars.append(ch)
            cur += 1
            continue
        if not escaped:
            stop = ctx.match(stop_expr, cur)
            if stop.success:
                return MatchResult.ok(
                    cur - pos + stop.consumed, Until("".join(chars), stop.value)
                )
        chars.append(ch)
        escaped = False
        cur += 1
    return MatchResult.fail("end of input reached without finding stop condition")


def macro_ws(ctx: "MatchContext", arg: Optional[Expression], pos: int) -> MatchResult:
    text = ctx.text
    cur = pos
    while cur < len(text) and text[cur].isspace():
        cur += 1
    return MatchResult.ok(cur - pos, text[pos:cur])


BUILTIN_MACROS: Dict[str, MacroFn] = {
    MacroName.OPTIONAL.value: macro_optional,
    MacroName.ZERO_OR_MORE.value: macro_zero_or_more,
    MacroName.ONE_OR_MORE.value: macro_one_or_more,
    MacroName.UNTIL.value: macro_until,
    MacroName.WS.value: macro_ws,
}
