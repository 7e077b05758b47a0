import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .compiler import GrammarCompiler
from .config.logging import get_logger, setup_logging
from .config.settings import Settings, get_settings
from .errors import PargoError
from .runtime import Runtime, load_grammar

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pargo", description="Compile and run combinator grammars"
    )
    parser.add_argument("--log-level", type=str, default=None,
                        help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    parser.add_argument("--max-depth", type=int, default=None,
                        help="recursion budget of the matching engine")
    commands = parser.add_subparsers(dest="command", required=True)

    compile_cmd = commands.add_parser("compile", help="compile a grammar file to JSON")
    compile_cmd.add_argument("grammar_file", metavar="grammar-file", type=str,
                             help="grammar DSL source")
    compile_cmd.add_argument("output_file", metavar="output-file", type=str, nargs="?",
                             help="defaults to the grammar file with a .json extension")
    compile_cmd.add_argument("--compact", action="store_true",
                             help="write the artifact without indentation")

    run_cmd = commands.add_parser("run", help="match input against a compiled grammar")
    run_cmd.add_argument("grammar_json", metavar="grammar-json", type=str,
                         help="compiled grammar artifact")
    run_cmd.add_argument("start_rule", metavar="start-rule", type=str)
    run_cmd.add_argument("input_file", metavar="input-file", type=str, nargs="?",
                         help="reads standard input when omitted")
    return parser


def default_output_path(grammar_file: str) -> Path:
    return Path(grammar_file).with_suffix(".json")


def _compile(args, settings: Settings) -> int:
    input_path = Path(args.grammar_file)
    output_path = Path(args.output_file) if args.output_file else default_output_path(args.grammar_file)

    print(f"Compiling grammar file: {input_path}")
    grammar_text = input_path.read_text(encoding="utf-8")

    compiler = GrammarCompiler(settings)
    result = compiler.compile(grammar_text)
    if not result.success:
        print(f"Compilation failed: {result.error}", file=sys.stderr)
        return 1

    issues = compiler.validate_grammar(result.rules)
    if issues:
        print("Grammar validation warnings:", file=sys.stderr)
        for issue in issues:
            print(f"  - {issue}", file=sys.stderr)

    output_path.write_text(compiler.to_json(result.rules, pretty=not args.compact), encoding="utf-8")

    print(f"Successfully compiled to: {output_path}")
    print(f"Generated {len(result.rules)} rules")
    if result.rules:
        print("\nRules generated:")
        for compiled in result.rules:
            deps = f" (depends on: {', '.join(compiled.dependencies)})" if compiled.dependencies else ""
            print(f"  - {compiled.name}{deps}")
    return 0


def _run(args, settings: Settings) -> int:
    grammar = load_grammar(Path(args.grammar_json).read_text(encoding="utf-8"))
    if args.input_file:
        text = Path(args.input_file).read_text(encoding="utf-8")
    else:
        text = sys.stdin.read()

    result = Runtime(settings).execute(grammar, args.start_rule, text)
    print(json.dumps(result.to_dict(), indent=settings.json_indent, ensure_ascii=False, default=str))
    return 0 if result.success and result.consumed == len(text) else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if args.max_depth is not None:
        overrides["max_depth"] = args.max_depth
    try:
        settings = Settings(**overrides) if overrides else get_settings()
    except ValueError as e:
        print(f"Error: invalid option: {e}", file=sys.stderr)
        return 1
    setup_logging(settings)

    try:
        if args.command == "compile":
            return _compile(args, settings)
        return _run(args, settings)
    except (OSError, PargoError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("unexpected error")
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
