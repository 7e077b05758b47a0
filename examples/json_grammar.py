# json_grammar.py
import json
from pargo import Grammar, choice, define, one_or_more, optional, ref, rule, seq, string, until, ws, zero_or_more


def _separated(item: str):
    # item (',' item)*, possibly empty; value is None or [first, [[ws, ',', ws, item], ...]]
    return optional(seq(ref(item), zero_or_more(seq(ws(), string(","), ws(), ref(item)))))


def _items(body):
    if body is None:
        return []
    first, rest = body
    return [first] + [p[3] for p in rest]


class JSONGrammar(Grammar):
    start_rule = "document"

    @rule(seq(ws(), ref("value"), ws()))
    def document(self, parts):
        return parts[1]

    value = define(
        choice(
            ref("string"),
            ref("number"),
            ref("object"),
            ref("array"),
            ref("true"),
            ref("false"),
            ref("null"),
        )
    )

    # until() keeps escapes as written, so json can decode them
    @rule(seq(string('"'), until(string('"'))), name="string")
    def string_value(self, parts):
        return json.loads('"' + parts[1].text + '"')

    @rule(
        seq(
            optional(string("-")),
            one_or_more(ref("digit")),
            optional(seq(string("."), one_or_more(ref("digit")))),
            optional(
                seq(
                    choice(string("e"), string("E")),
                    optional(choice(string("+"), string("-"))),
                    one_or_more(ref("digit")),
                )
            ),
        )
    )
    def number(self, parts):
        sign, digits, fraction, exponent = parts
        text = (sign or "") + "".join(digits)
        if fraction is None and exponent is None:
            return int(text)
        if fraction is not None:
            text += "." + "".join(fraction[1])
        if exponent is not None:
            text += "e" + (exponent[1] or "") + "".join(exponent[2])
        return float(text)

    @rule(string("true"), name="true")
    def true_value(self, _):
        return True

    @rule(string("false"), name="false")
    def false_value(self, _):
        return False

    @rule(string("null"), name="null")
    def null_value(self, _):
        return None

    @rule(seq(ref("string"), ws(), string(":"), ws(), ref("value")))
    def pair(self, parts):
        return parts[0], parts[4]

    @rule(seq(string("{"), ws(), _separated("pair"), ws(), string("}")), name="object")
    def object_value(self, parts):
        return dict(_items(parts[2]))

    @rule(seq(string("["), ws(), _separated("value"), ws(), string("]")), name="array")
    def array_value(self, parts):
        return _items(parts[2])


if __name__ == "__main__":
    g = JSONGrammar()
    src = '{"name": "pargo", "tags": ["peg", "longest\\"match"], "depth": 2e2, "ok": true}'
    print(g.parse(src))
