from math import prod
from pargo import Grammar, choice, define, one_or_more, optional, ref, rule, seq, string, ws, zero_or_more


class Calculator(Grammar):
    start_rule = "top"

    @rule(seq(ws(), ref("expr"), ws()))
    def top(self, parts):
        return parts[1]

    @rule(seq(ref("term"), zero_or_more(seq(ws(), choice(string("+"), string("-")), ws(), ref("term")))))
    def expr(self, parts):
        value, rest = parts
        for _, op, _, rhs in rest:
            value = value + rhs if op == "+" else value - rhs
        return value

    @rule(seq(ref("factor"), zero_or_more(seq(ws(), choice(string("*"), string("/")), ws(), ref("factor")))))
    def term(self, parts):
        value, rest = parts
        for _, op, _, rhs in rest:
            value = value * rhs if op == "*" else value / rhs
        return value

    @rule(seq(ref("atom"), optional(string("!"))))
    def factor(self, parts):
        x, bang = parts
        return prod(range(1, x + 1)) if bang else x

    atom = define(choice(ref("number"), ref("paren"), ref("negation")))

    @rule(seq(string("-"), ws(), ref("factor")))
    def negation(self, parts):
        return -parts[2]

    @rule(seq(string("("), ws(), ref("expr"), ws(), string(")")))
    def paren(self, parts):
        return parts[2]

    @rule(one_or_more(ref("digit")))
    def number(self, digits):
        return int("".join(digits))


if __name__ == "__main__":
    calc = Calculator()
    tests = [
        "1 + 2 * 3",  # 7
        "-1 + 4",  # 3
        "2 * 3 + 4",  # 10
        "2 * (3 + 4)",  # 14
        "3! + 1",  # 7
        "5! / 5",  # 24.0
    ]
    for t in tests:
        print(t, "->", calc.parse(t))
