"""
AST produced by the grammar compiler, and its JSON shape.

Node dicts look like ``{"type": "<kind>", "value": ...}``; any metadata keys
sit beside ``type`` and ``value``. Macro values are the macro name, or
``[name, argument]`` when the macro has an argument.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from .errors import GrammarError
from .expressions import (
    Choice,
    Expression,
    Literal,
    Macro,
    Range,
    RuleRef,
    Sequence,
)


class NodeKind(str, Enum):
    IDENTIFIER = "identifier"
    STRING = "string"
    RANGE = "range"
    SEQUENCE = "sequence"
    CHOICE = "choice"
    MACRO = "macro"
    RULE = "rule"


class MacroCall(NamedTuple):
    name: str
    argument: Optional["ASTNode"] = None


class RuleDefinition(NamedTuple):
    name: str
    expression: "ASTNode"
    post_processor: Optional[str] = None


@dataclass
class ASTNode:
    kind: NodeKind
    value: Any
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        kind = self.kind
        if kind in (NodeKind.IDENTIFIER, NodeKind.STRING):
            value: Any = self.value
        elif kind == NodeKind.RANGE:
            value = list(self.value)
        elif kind in (NodeKind.SEQUENCE, NodeKind.CHOICE):
            value = [item.to_dict() for item in self.value]
        elif kind == NodeKind.MACRO:
            call = self.value
            value = call.name if call.argument is None else [call.name, call.argument.to_dict()]
        elif kind == NodeKind.RULE:
            rule_def = self.value
            value = {
                "name": rule_def.name,
                "expression": rule_def.expression.to_dict(),
                "postProcessor": rule_def.post_processor,
            }
        else:
            raise GrammarError(f"Unknown AST node kind: {kind!r}")
        data = {"type": kind.value, "value": value}
        data.update(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ASTNode":
        try:
            kind = NodeKind(data["type"])
            raw = data["value"]
        except (KeyError, TypeError, ValueError) as e:
            raise GrammarError(f"Malformed AST node {data!r}: {e}") from None
        metadata = {k: v for k, v in data.items() if k not in ("type", "value")}

        if kind in (NodeKind.IDENTIFIER, NodeKind.STRING):
            value: Any = raw
        elif kind == NodeKind.RANGE:
            value = tuple(raw)
        elif kind in (NodeKind.SEQUENCE, NodeKind.CHOICE):
            value = tuple(cls.from_dict(item) for item in raw)
        elif kind == NodeKind.MACRO:
            if isinstance(raw, str):
                value = MacroCall(raw)
            else:
                value = MacroCall(raw[0], cls.from_dict(raw[1]))
        else:
            value = RuleDefinition(
                raw["name"], cls.from_dict(raw["expression"]), raw.get("postProcessor")
            )
        return cls(kind, value, metadata)


@dataclass
class CompiledRule:
    """One rule of a compiled grammar, as listed in the JSON artifact."""

    name: str
    expression: ASTNode
    post_processor: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "expression": self.expression.to_dict(),
            "postProcessor": self.post_processor,
            "dependencies": list(self.dependencies),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompiledRule":
        try:
            return cls(
                name=data["name"],
                expression=ASTNode.from_dict(data["expression"]),
                post_processor=data.get("postProcessor"),
                dependencies=list(data.get("dependencies") or []),
            )
        except (KeyError, TypeError) as e:
            raise GrammarError(f"Malformed rule entry: {e}") from None


def to_expression(node: ASTNode) -> Expression:
    """Build the engine expression for a compiled AST node.

    Identifiers become rule references, resolved by the registry at match
    time. Invalid literals or ranges raise GrammarError here.
    """
    kind = node.kind
    if kind == NodeKind.IDENTIFIER:
        return RuleRef(node.value)
    if kind == NodeKind.STRING:
        return Literal(node.value)
    if kind == NodeKind.RANGE:
        lo, hi = node.value
        return Range(lo, hi)
    if kind == NodeKind.SEQUENCE:
        return Sequence(tuple(to_expression(item) for item in node.value))
    if kind == NodeKind.CHOICE:
        return Choice(tuple(to_expression(item) for item in node.value))
    if kind == NodeKind.MACRO:
        call = node.value
        arg = to_expression(call.argument) if call.argument is not None else None
        return Macro(call.name, arg)
    raise GrammarError(f"AST node of kind '{kind.value}' is not an expression")
