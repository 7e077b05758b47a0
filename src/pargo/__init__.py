from .analysis import (
    BUILTIN_RULES,
    IssueKind,
    ValidationIssue,
    find_dependencies,
    has_direct_left_recursion,
    validate_grammar,
)
from .compiler import CompileResult, DSLGrammar, GrammarCompiler
from .core import Grammar, define, rule
from .engine import Engine, MatchContext
from .errors import (
    GrammarError,
    GrammarTooDeepError,
    MacroNotFoundError,
    ParseError,
    PargoError,
    RegistryFrozenError,
    RuleNotFoundError,
)
from .expressions import (
    Choice,
    Literal,
    Macro,
    MacroName,
    Range,
    RuleRef,
    Sequence,
    char_range,
    choice,
    macro,
    one_or_more,
    optional,
    ref,
    seq,
    string,
    until,
    with_post,
    ws,
    zero_or_more,
)
from .macros import Until
from .nodes import ASTNode, CompiledRule, MacroCall, NodeKind, RuleDefinition, to_expression
from .registry import PRIMITIVES, Registry, Rule
from .results import MatchResult
from .runtime import Runtime, execute, load_grammar

__version__ = "0.3.0"
