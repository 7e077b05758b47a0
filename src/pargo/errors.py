from typing import Optional


class PargoError(Exception):
    pass


class GrammarError(PargoError):
    """Configuration error raised while a grammar is being built.

    These are never recovered: an unknown rule or macro, or a malformed
    expression, means the grammar itself is wrong, not the input.
    """


class RuleNotFoundError(GrammarError):
    def __init__(self, name: str):
        super().__init__(f"Rule '{name}' not found")
        self.name = name


class MacroNotFoundError(GrammarError):
    def __init__(self, name: str):
        super().__init__(f"Macro '{name}' not found")
        self.name = name


class RegistryFrozenError(GrammarError):
    pass


class GrammarTooDeepError(PargoError):
    def __init__(self, limit: int, position: int):
        super().__init__(
            f"Grammar too deep: recursion budget of {limit} exhausted at position {position}"
        )
        self.limit = limit
        self.position = position


class ParseError(PargoError):
    def __init__(
        self, message: str, line: Optional[int] = None, column: Optional[int] = None
    ):
        super().__init__(message)
        self.line = line
        self.column = column
