"""Compile examples/grammars/arith.gr and evaluate a sum with it."""

from pathlib import Path

from pargo import GrammarCompiler, Runtime


def eval_sum(parts):
    total, rest = parts
    for _, op, _, n in rest:
        total = total + n if op == "+" else total - n
    return total


def main(expression: str = "12 + 30 - 2"):
    source = Path(__file__).with_name("grammars").joinpath("arith.gr").read_text()
    compiled = GrammarCompiler().compile(source)
    if not compiled.success:
        raise SystemExit(compiled.error)

    runtime = Runtime()
    runtime.load_funcs({"toInt": lambda digits: int("".join(digits)), "evalSum": eval_sum})
    result = runtime.execute(compiled.rules, "sum", expression)
    return result.value


if __name__ == "__main__":
    print(main())
