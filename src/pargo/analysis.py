"""
Dependency and validation analysis over compiled rules.

Only direct left recursion is detected; a cycle through another rule
(``a: b, "x"`` / ``b: a``) is not reported.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .nodes import ASTNode, CompiledRule, NodeKind
from .registry import PRIMITIVES

BUILTIN_RULES = tuple(PRIMITIVES)


class IssueKind(str, Enum):
    UNDEFINED_REFERENCE = "undefined rule reference"
    DIRECT_LEFT_RECURSION = "direct left recursion"


@dataclass(frozen=True)
class ValidationIssue:
    rule: str
    kind: IssueKind
    reference: Optional[str] = None

    @property
    def message(self) -> str:
        if self.kind == IssueKind.UNDEFINED_REFERENCE:
            return f"Rule '{self.rule}' references undefined rule '{self.reference}'"
        return f"Rule '{self.rule}' has direct left recursion"

    def __str__(self) -> str:
        return self.message


def find_dependencies(expression: Optional[ASTNode]) -> List[str]:
    """Names of the rules ``expression`` references, in first-seen order."""
    deps: Dict[str, None] = {}
    _collect(expression, deps)
    return list(deps)


def _collect(node: Optional[ASTNode], deps: Dict[str, None]):
    if node is None:
        return
    if node.kind == NodeKind.IDENTIFIER:
        deps.setdefault(node.value, None)
    elif node.kind in (NodeKind.SEQUENCE, NodeKind.CHOICE):
        for item in node.value:
            _collect(item, deps)
    elif node.kind == NodeKind.MACRO:
        # the macro name is not a rule reference
        _collect(node.value.argument, deps)


def has_direct_left_recursion(rule: CompiledRule) -> bool:
    expr = rule.expression
    if expr.kind != NodeKind.SEQUENCE or not expr.value:
        return False
    first = expr.value[0]
    return first.kind == NodeKind.IDENTIFIER and first.value == rule.name


def validate_grammar(
    rules: Iterable[CompiledRule], builtins: Iterable[str] = BUILTIN_RULES
) -> List[ValidationIssue]:
    """Every undefined reference and direct left recursion, in rule order."""
    rules = list(rules)
    known = {r.name for r in rules}
    known.update(builtins)

    issues: List[ValidationIssue] = []
    for r in rules:
        deps = r.dependencies or find_dependencies(r.expression)
        for dep in deps:
            if dep not in known:
                issues.append(ValidationIssue(r.name, IssueKind.UNDEFINED_REFERENCE, dep))
        if has_direct_left_recursion(r):
            issues.append(ValidationIssue(r.name, IssueKind.DIRECT_LEFT_RECURSION))
    return issues
