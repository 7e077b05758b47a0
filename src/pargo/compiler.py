"""
Grammar compiler.

The grammar DSL is itself described with the combinator engine:

    digit: "0"-"9"
    number: *oneOrMore(digit) {toInt}
    word: (alpha | alphaUpper), *zeroOrMore(alpha | alphaUpper | digit | "_")

One rule per line, rules separated by one or more line breaks. Elements are
identifiers (rule references), "strings", "a"-"z" ranges, (groups) and
*macro or *macro(expr) calls. Elements separated by commas and/or blanks
form a sequence; ``|`` separates the alternatives of a choice, each of which
may itself be a sequence. A trailing {name} names the rule's post-processor.
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .analysis import (
    BUILTIN_RULES,
    ValidationIssue,
    find_dependencies,
    validate_grammar,
)
from .config.logging import get_logger
from .config.settings import Settings, get_settings
from .core import Grammar, define, rule
from .errors import PargoError
from .expressions import (
    choice,
    one_or_more,
    optional,
    ref,
    seq,
    string,
    until,
    ws,
    zero_or_more,
)
from .nodes import ASTNode, CompiledRule, MacroCall, NodeKind, RuleDefinition

logger = get_logger(__name__)

ARTIFACT_VERSION = "1.0"

ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


def unescape(text: str) -> str:
    return _ESCAPE_RE.sub(lambda m: ESCAPES.get(m.group(1), m.group(1)), text)


def _bracketed(open_char: str, inner: str, close_char: str):
    return seq(string(open_char), ref("blank"), ref(inner), ref("blank"), string(close_char))


class DSLGrammar(Grammar):
    start_rule = "grammar_file"

    # spaces and tabs only: line breaks separate rules
    blank = define(zero_or_more(choice(string(" "), string("\t"))))
    line_end = define(choice(string("\r\n"), string("\n"), string("\r")))
    separator = define(one_or_more(seq(ref("blank"), ref("line_end"))))

    @rule(
        seq(
            choice(ref("alpha"), ref("alphaUpper"), ref("underscore")),
            zero_or_more(
                choice(ref("alpha"), ref("alphaUpper"), ref("digit"), ref("underscore"))
            ),
        )
    )
    def identifier(self, parts):
        head, tail = parts
        return ASTNode(NodeKind.IDENTIFIER, head + "".join(tail))

    @rule(seq(string('"'), until(string('"'))))
    def string_literal(self, parts):
        return ASTNode(NodeKind.STRING, unescape(parts[1].text))

    @rule(
        seq(
            ref("string_literal"),
            ref("blank"),
            string("-"),
            ref("blank"),
            ref("string_literal"),
        )
    )
    def char_range(self, parts):
        return ASTNode(NodeKind.RANGE, (parts[0].value, parts[4].value))

    @rule(_bracketed("(", "expression", ")"))
    def grouped(self, parts):
        return parts[2]

    @rule(
        seq(
            string("*"),
            ref("identifier"),
            optional(_bracketed("(", "expression", ")")),
        )
    )
    def macro_invocation(self, parts):
        argument = parts[2][2] if parts[2] is not None else None
        return ASTNode(NodeKind.MACRO, MacroCall(parts[1].value, argument))

    # macro and range first: on equal length the earlier alternative wins
    primary = define(
        choice(
            ref("macro_invocation"),
            ref("char_range"),
            ref("string_literal"),
            ref("grouped"),
            ref("identifier"),
        )
    )

    @rule(seq(ref("blank"), ref("primary"), ref("blank")))
    def sequence_element(self, parts):
        return parts[1]

    @rule(
        seq(
            ref("sequence_element"),
            one_or_more(
                seq(optional(string(",")), ref("blank"), ref("sequence_element"))
            ),
        )
    )
    def sequence_expression(self, parts):
        first, rest = parts
        return ASTNode(NodeKind.SEQUENCE, (first,) + tuple(p[2] for p in rest))

    choice_alternative = define(
        choice(ref("sequence_expression"), ref("sequence_element"))
    )

    @rule(
        seq(
            ref("choice_alternative"),
            one_or_more(
                seq(ref("blank"), string("|"), ref("blank"), ref("choice_alternative"))
            ),
        )
    )
    def choice_expression(self, parts):
        first, rest = parts
        return ASTNode(NodeKind.CHOICE, (first,) + tuple(p[3] for p in rest))

    expression = define(
        choice(
            ref("choice_expression"),
            ref("sequence_expression"),
            ref("sequence_element"),
        )
    )

    @rule(_bracketed("{", "identifier", "}"))
    def post_processor(self, parts):
        return parts[2].value

    @rule(
        seq(
            ref("identifier"),
            ref("blank"),
            string(":"),
            ref("blank"),
            ref("expression"),
            ref("blank"),
            optional(ref("post_processor")),
            ref("blank"),
        )
    )
    def rule_definition(self, parts):
        return ASTNode(
            NodeKind.RULE, RuleDefinition(parts[0].value, parts[4], parts[6])
        )

    @rule(
        seq(
            ws(),
            optional(
                seq(
                    ref("rule_definition"),
                    zero_or_more(
                        seq(ref("separator"), ref("blank"), ref("rule_definition"))
                    ),
                )
            ),
            ws(),
        )
    )
    def grammar_file(self, parts):
        body = parts[1]
        if body is None:
            # empty file
            return []
        first, rest = body
        return [first] + [p[2] for p in rest]


@dataclass
class CompileResult:
    success: bool
    ast: Optional[List[ASTNode]] = None
    rules: Optional[List[CompiledRule]] = None
    error: Optional[str] = None


class GrammarCompiler:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.grammar = DSLGrammar(settings=self.settings)

    def compile(self, grammar_text: str) -> CompileResult:
        """Parse DSL source into rule definitions and their dependency sets.

        Never raises for bad input: a failed or incomplete parse comes back
        as ``CompileResult(success=False, error=...)`` with the line number
        where parsing stopped and a preview of the remaining text.
        """
        logger.debug("compiling grammar", length=len(grammar_text))
        try:
            ast = self.grammar.parse(grammar_text)
        except PargoError as e:
            logger.warning("grammar compilation failed", error=str(e))
            return CompileResult(False, error=str(e))

        rules = self.extract_rules(ast)
        logger.debug("grammar compiled", rules=len(rules))
        return CompileResult(True, ast=ast, rules=rules)

    def extract_rules(self, ast: Iterable[ASTNode]) -> List[CompiledRule]:
        rules: Dict[str, CompiledRule] = {}
        for node in ast:
            if node.kind != NodeKind.RULE:
                continue
            rule_def = node.value
            if rule_def.name in rules:
                logger.warning("rule redefined", rule=rule_def.name)
            rules[rule_def.name] = CompiledRule(
                name=rule_def.name,
                expression=rule_def.expression,
                post_processor=rule_def.post_processor,
                dependencies=self.find_dependencies(rule_def.expression),
            )
        return list(rules.values())

    @staticmethod
    def find_dependencies(expression: Optional[ASTNode]) -> List[str]:
        return find_dependencies(expression)

    @staticmethod
    def is_builtin_rule(name: str) -> bool:
        return name in BUILTIN_RULES

    def validate_grammar(self, rules: Iterable[CompiledRule]) -> List[ValidationIssue]:
        return validate_grammar(rules)

    def to_artifact(self, rules: Iterable[CompiledRule]) -> Dict[str, Any]:
        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        return {
            "version": ARTIFACT_VERSION,
            "timestamp": timestamp.replace("+00:00", "Z"),
            "rules": [r.to_dict() for r in rules],
        }

    def to_json(self, rules: Iterable[CompiledRule], pretty: bool = True) -> str:
        indent = self.settings.json_indent if pretty else None
        return json.dumps(self.to_artifact(rules), indent=indent, ensure_ascii=False)
