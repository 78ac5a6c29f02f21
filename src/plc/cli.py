"""PLC CLI — tokenize, parse, and analyze .plc files."""

from __future__ import annotations

import json
import sys

from .check import analyze
from .environment import SemanticError
from .parse import ParseError, parse_source
from .serialize import source_to_dict, tokens_to_list
from .tokens import LexError, tokenize

PHASES: list[str] = ["tokens", "parse", "analyze"]

USAGE: str = """\
plc [OPTIONS] [INPUT]

Check a PLC program and print the result of the last phase as JSON.
Reads stdin when INPUT is omitted.

Options:
  --stop-at PHASE   Stop after phase: tokens, parse, analyze (default)
  --help            Show this help message
"""


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            print("plc: " + input_file + ": No such file or directory", file=sys.stderr)
            return ("", 1)
        except OSError as e:
            print("plc: " + input_file + ": " + str(e), file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        return (raw.decode("utf-8"), 0)
    except ValueError:
        print("plc: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)


def run(source: str, stop_at: str) -> object:
    """Run the pipeline up to stop_at and return the serialized result."""
    tokens = tokenize(source)
    if stop_at == "tokens":
        return tokens_to_list(tokens)
    ast = parse_source(tokens)
    if stop_at == "parse":
        return source_to_dict(ast)
    return source_to_dict(ast, analyze(ast))


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    input_file: str | None = None
    stop_at = "analyze"
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--stop-at":
            if i + 1 >= len(args):
                print("plc: --stop-at requires a phase", file=sys.stderr)
                return 2
            stop_at = args[i + 1]
            if stop_at not in PHASES:
                print("plc: unknown phase '" + stop_at + "'", file=sys.stderr)
                return 2
            i += 2
        elif arg.startswith("-"):
            print("plc: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif input_file is None:
            input_file = arg
            i += 1
        else:
            print("plc: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2

    source, code = read_source(input_file)
    if code != 0:
        return code

    try:
        result = run(source, stop_at)
    except LexError as e:
        print("plc: lex error: " + str(e), file=sys.stderr)
        return 1
    except ParseError as e:
        print("plc: parse error: " + str(e), file=sys.stderr)
        return 1
    except SemanticError as e:
        print("plc: semantic error: " + str(e), file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
