"""
Unit Tests for the Expression Model
===================================

Construction contracts and builder helpers.
"""

import dataclasses

import pytest

from pargo import (
    Choice,
    GrammarError,
    Literal,
    Macro,
    MacroName,
    Range,
    RuleRef,
    Sequence,
    char_range,
    choice,
    macro,
    optional,
    ref,
    seq,
    string,
    until,
    with_post,
    ws,
    zero_or_more,
)


class TestConstruction:
    """Build-time validation of expression nodes."""

    def test_empty_literal_rejected(self):
        """Test a literal needs at least one character."""
        with pytest.raises(GrammarError):
            Literal("")

    @pytest.mark.parametrize("lo,hi", [("ab", "z"), ("a", ""), ("z", "a")])
    def test_malformed_range_rejected(self, lo, hi):
        """Test multi-character, empty and inverted bounds fail."""
        with pytest.raises(GrammarError):
            Range(lo, hi)

    def test_single_character_range(self):
        """Test a range may start and end on the same character."""
        assert char_range("a", "a") == Range("a", "a")

    def test_empty_sequence_and_choice_rejected(self):
        """Test sequence and choice need at least one child."""
        with pytest.raises(GrammarError):
            seq()
        with pytest.raises(GrammarError):
            choice()

    def test_unknown_macro_name_is_accepted_at_build_time(self):
        """Test macro names are only resolved when matching."""
        node = macro("noSuchMacro", string("a"))
        assert node.name == "noSuchMacro"


class TestBuilders:
    """Builder helpers produce the expected node types."""

    def test_builders(self):
        """Test each helper returns the matching node."""
        assert string("x") == Literal("x")
        assert ref("digit") == RuleRef("digit")
        assert seq(string("a"), ref("b")) == Sequence((Literal("a"), RuleRef("b")))
        assert choice(string("a")) == Choice((Literal("a"),))

    def test_macro_names_are_plain_strings(self):
        """Test MacroName members are stored as their string value."""
        node = Macro(MacroName.WS)
        assert node.name == "ws"
        assert type(node.name) is str
        assert optional(string("a")).name == "optional"
        assert zero_or_more(string("a")).name == "zeroOrMore"
        assert until(string('"')).name == "until"
        assert ws().arg is None

    def test_with_post_copies_node(self):
        """Test attaching a post-processor leaves the original untouched."""
        base = string("a")
        mapped = with_post(base, str.upper)
        assert base.post is None
        assert mapped.post is str.upper
        # post-processors do not take part in equality
        assert mapped == base

    def test_nodes_are_immutable(self):
        """Test expression nodes are frozen."""
        node = string("a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            node.text = "b"
