"""
Unit Tests for the Matching Engine
==================================

Primitive matching, longest-match choice, post-processing, the recursion
budget and per-call memoization.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from pargo import (
    Engine,
    GrammarTooDeepError,
    MacroNotFoundError,
    MatchResult,
    RuleNotFoundError,
    char_range,
    choice,
    macro,
    one_or_more,
    ref,
    seq,
    string,
    with_post,
)


class TestPrimitives:
    """Literal and range matching."""

    @pytest.mark.parametrize("ch,inside", [("a", True), ("m", True), ("z", True), ("`", False), ("{", False), ("A", False)])
    def test_range_bounds_inclusive(self, engine, ch, inside):
        """Test range membership by code point."""
        result = engine.match(char_range("a", "z"), ch)
        assert result.success is inside
        assert result.consumed == (1 if inside else 0)

    def test_literal_match(self, engine):
        """Test a literal consumes exactly its text."""
        result = engine.match(string("abc"), "abcd")
        assert result == MatchResult(True, 3, "abc", None)

    def test_literal_mismatch(self, engine):
        """Test a literal reports what was found instead."""
        result = engine.match(string("abc"), "abx")
        assert not result.success
        assert result.error == 'expected "abc" but found "abx"'

    def test_literal_at_end_of_input(self, engine):
        """Test a literal longer than the remaining input."""
        result = engine.match(string("abc"), "xab", 1)
        assert result.error == 'expected "abc" but reached end of input'

    def test_range_match(self, engine):
        """Test a range consumes one character inside its bounds."""
        result = engine.match(char_range("a", "z"), "q")
        assert result.success
        assert (result.consumed, result.value) == (1, "q")

    def test_range_mismatch(self, engine):
        """Test a range rejects characters outside its bounds."""
        result = engine.match(char_range("a", "z"), "Q")
        assert result.error == 'expected character in range [a-z] but found "Q"'

    def test_range_at_end_of_input(self, engine):
        """Test a range fails on empty input."""
        assert engine.match(char_range("a", "z"), "").error == "unexpected end of input"

    def test_failure_consumes_nothing(self, engine):
        """Test failed results carry no value and no consumption."""
        result = engine.match(string("x"), "y")
        assert (result.consumed, result.value) == (0, None)


class TestPositions:
    """Matching threads positions through explicit arguments."""

    def test_match_at_offset(self, engine):
        """Test matching starts at the given position."""
        result = engine.match(string("cd"), "abcd", 2)
        assert result.success
        assert result.consumed == 2

    @pytest.mark.parametrize("pos", [-1, 5])
    def test_position_outside_input(self, engine, pos):
        """Test positions outside the input are rejected."""
        with pytest.raises(ValueError):
            engine.match(string("a"), "abcd", pos)

    def test_position_at_end_is_allowed(self, engine):
        """Test matching at the end of input is a normal failure."""
        result = engine.match(string("a"), "abcd", 4)
        assert not result.success

    def test_repeated_matches_are_identical(self, engine):
        """Test the engine keeps no state between calls."""
        expr = seq(one_or_more(ref("digit")), string("!"))
        first = engine.match(expr, "123!")
        engine.match(expr, "9!")
        assert engine.match(expr, "123!") == first

    def test_concurrent_matches(self, registry):
        """Test one engine serves many threads at once."""
        registry.define_rule("number", one_or_more(ref("digit")))
        registry.freeze()
        engine = Engine(registry)
        inputs = [str(n) * (n % 7 + 1) for n in range(50)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda s: engine.match_rule("number", s), inputs))

        assert [r.consumed for r in results] == [len(s) for s in inputs]


class TestSequence:
    """Sequences match their children in order."""

    def test_sequence_values(self, engine):
        """Test a sequence collects each child value."""
        result = engine.match(seq(string("a"), ref("digit"), string("b")), "a7b")
        assert result.consumed == 3
        assert result.value == ["a", "7", "b"]

    def test_sequence_reports_first_failure(self, engine):
        """Test a sequence fails with the failing child's error."""
        result = engine.match(seq(string("a"), ref("digit")), "ax")
        assert not result.success
        assert result.error == 'expected character in range [0-9] but found "x"'


class TestChoice:
    """Choices evaluate every alternative and keep the longest."""

    def test_longest_alternative_wins(self, engine):
        """Test a later, longer alternative beats an earlier one."""
        result = engine.match(choice(string("a"), string("ab"), string("abc")), "abcd")
        assert result.value == "abc"
        assert result.consumed == 3

    def test_tie_keeps_earliest(self, engine):
        """Test the first alternative wins between equal lengths."""
        first = with_post(string("a"), lambda _: "first")
        second = with_post(string("a"), lambda _: "second")
        assert engine.match(choice(first, second), "a").value == "first"

    def test_no_alternative(self, engine):
        """Test a choice with no successful alternative."""
        result = engine.match(choice(string("x"), string("y")), "z")
        assert result.error == "no alternative matched"

    def test_keyword_versus_identifier(self, registry):
        """Test longest match prefers the identifier over its keyword prefix."""
        registry.define_rule("keyword", string("if"))
        registry.define_rule("name", one_or_more(ref("alpha")))
        engine = Engine(registry)
        result = engine.match(choice(ref("keyword"), ref("name")), "iffy")
        assert result.value == ["i", "f", "f", "y"]


class TestRules:
    """Rule references and post-processors."""

    def test_rule_post_processor(self, registry):
        """Test a rule's post-processor transforms its value."""
        registry.define_rule(
            "number", one_or_more(ref("digit")), lambda d: int("".join(d))
        )
        result = Engine(registry).match_rule("number", "042")
        assert result.value == 42

    def test_post_processor_error_becomes_failure(self, registry):
        """Test an exception in a post-processor fails the match."""

        def boom(_):
            raise ValueError("boom")

        registry.define_rule("bad", string("a"), boom)
        result = Engine(registry).match_rule("bad", "a")
        assert not result.success
        assert result.error == "post-processing error: boom"

    def test_node_post_processor_error(self, engine):
        """Test an exception in an expression post-processor fails the match."""
        result = engine.match(with_post(string("a"), lambda _: 1 / 0), "a")
        assert result.error.startswith("post-processing error:")

    def test_post_processor_skipped_on_failure(self, engine):
        """Test post-processors only see successful matches."""
        calls = []
        engine.match(with_post(string("a"), calls.append), "b")
        assert calls == []

    def test_unknown_rule(self, engine):
        """Test an unknown rule is a configuration error."""
        with pytest.raises(RuleNotFoundError, match="Rule 'nope' not found"):
            engine.match(ref("nope"), "x")

    def test_unknown_macro(self, engine):
        """Test an unknown macro is a configuration error."""
        with pytest.raises(MacroNotFoundError, match="Macro 'nope' not found"):
            engine.match(macro("nope"), "x")

    def test_primitives(self, engine):
        """Test the seeded primitive rules."""
        assert engine.match(ref("alpha"), "m").success
        assert engine.match(ref("alphaUpper"), "M").success
        assert engine.match(ref("digit"), "5").success
        assert engine.match(ref("underscore"), "_").success
        assert not engine.match(ref("alpha"), "M").success


class TestDepthBudget:
    """Unbounded recursion stops at the configured budget."""

    def test_left_recursion_raises(self, registry):
        """Test a left-recursive rule exhausts the budget."""
        registry.define_rule("a", seq(ref("a"), string("x")))
        engine = Engine(registry, max_depth=50)
        with pytest.raises(GrammarTooDeepError) as exc_info:
            engine.match_rule("a", "xxx")
        assert exc_info.value.limit == 50
        assert "Grammar too deep" in str(exc_info.value)

    def test_budget_allows_bounded_nesting(self, registry):
        """Test nesting within the budget matches normally."""
        registry.define_rule(
            "nested", choice(string("x"), seq(string("("), ref("nested"), string(")")))
        )
        text = "(" * 10 + "x" + ")" * 10
        assert Engine(registry, max_depth=200).match_rule("nested", text).consumed == len(text)
        with pytest.raises(GrammarTooDeepError):
            Engine(registry, max_depth=10).match_rule("nested", text)

    def test_budget_above_interpreter_stack(self, registry):
        """Test a budget larger than the interpreter stack still fails cleanly."""
        registry.define_rule("a", seq(ref("a"), string("x")))
        engine = Engine(registry, max_depth=1_000_000)
        with pytest.raises(GrammarTooDeepError) as exc_info:
            engine.match_rule("a", "xxx")
        assert exc_info.value.limit == 1_000_000
        assert exc_info.value.position == 0

    def test_budget_from_settings(self, registry, monkeypatch):
        """Test the default budget comes from settings."""
        monkeypatch.setenv("PARGO_MAX_DEPTH", "7")
        assert Engine(registry).max_depth == 7


class TestMemoization:
    """Rule results are cached per match call."""

    def _counting_engine(self, registry, memoize):
        calls = []

        def count(value):
            calls.append(value)
            return value

        registry.define_rule("x", string("a"), count)
        engine = Engine(registry, memoize=memoize)
        expr = choice(seq(ref("x"), string("b")), seq(ref("x"), string("c")))
        return engine, expr, calls

    def test_memo_reuses_rule_results(self, registry):
        """Test a rule is evaluated once per position within one call."""
        engine, expr, calls = self._counting_engine(registry, memoize=True)
        assert engine.match(expr, "ac").success
        assert calls == ["a"]

    def test_memo_is_per_call(self, registry):
        """Test a second call starts with an empty cache."""
        engine, expr, calls = self._counting_engine(registry, memoize=True)
        engine.match(expr, "ac")
        engine.match(expr, "ac")
        assert len(calls) == 2

    def test_without_memo(self, registry):
        """Test disabling the memo re-evaluates the rule."""
        engine, expr, calls = self._counting_engine(registry, memoize=False)
        assert engine.match(expr, "ac").success
        assert calls == ["a", "a"]

    def _mutating_engine(self, registry, memoize):
        def append_marker(value):
            value.append("z")
            return value

        registry.define_rule("pair", seq(string("a"), string("b")))
        engine = Engine(registry, memoize=memoize)
        expr = choice(
            with_post(ref("pair"), append_marker),
            seq(ref("pair"), string("!")),
        )
        return engine, expr

    def test_memoized_values_are_shared(self, registry):
        """Test consumers at one rule position see the same value object."""
        engine, expr = self._mutating_engine(registry, memoize=True)
        result = engine.match(expr, "ab!")
        assert result.consumed == 3
        assert result.value == [["a", "b", "z"], "!"]

    def test_without_memo_values_are_fresh(self, registry):
        """Test each consumer gets its own value without the memo."""
        engine, expr = self._mutating_engine(registry, memoize=False)
        result = engine.match(expr, "ab!")
        assert result.consumed == 3
        assert result.value == [["a", "b"], "!"]
