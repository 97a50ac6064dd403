import os
import sys
import traceback

import colorama

from errors import LdrxSyntaxError
from interpreter import Interpreter, StdoutSink
from lexer import tokenize
from parser import parse


class ConsoleSink(StdoutSink):
    """stdout sink that paints diagnostics red on a terminal."""

    def __init__(self, stream=None):
        super().__init__(stream)
        self.color = hasattr(self.stream, "isatty") and self.stream.isatty()
        if self.color:
            colorama.just_fix_windows_console()

    def append_error(self, text):
        if self.color:
            text = f"{colorama.Fore.RED}{text}{colorama.Style.RESET_ALL}"
        super().append_error(text)


# Simple AST printer (so you can SEE what the parser built)
def ast_to_dict(node):
    if node is None:
        return None

    d = {"tag": node.tag}
    if node.tag not in ("ROOT", "BODY", "ARGLIST", "PASS"):
        d["text"] = node.text
    if node.children:
        d["children"] = [ast_to_dict(c) for c in node.children]
    return d


def pretty(obj, indent=0):
    sp = "  " * indent
    if isinstance(obj, dict):
        lines = []
        for k, v in obj.items():
            if isinstance(v, (dict, list)):
                lines.append(f"{sp}{k}:")
                lines.append(pretty(v, indent + 1))
            else:
                lines.append(f"{sp}{k}: {v}")
        return "\n".join(lines)
    if isinstance(obj, list):
        lines = []
        for item in obj:
            lines.append(f"{sp}-")
            lines.append(pretty(item, indent + 1))
        return "\n".join(lines)
    return f"{sp}{obj}"


def read_source(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def cmd_parse(path, debug: bool = False):
    sink = ConsoleSink()
    try:
        program = parse(read_source(path))
    except LdrxSyntaxError as e:
        sink.append_error(e.format(os.path.basename(path)))
        sys.exit(1)
    except Exception as e:
        if debug:
            traceback.print_exc()
        else:
            print(f"Parse error: {e}")
        sys.exit(1)

    print(pretty(ast_to_dict(program)))


def cmd_tokens(path, debug: bool = False):
    sink = ConsoleSink()
    try:
        tokens = tokenize(read_source(path))
    except LdrxSyntaxError as e:
        sink.append_error(e.format(os.path.basename(path)))
        sys.exit(1)
    except Exception as e:
        if debug:
            traceback.print_exc()
        else:
            print(f"Lex error: {e}")
        sys.exit(1)

    for tok in tokens:
        print(f"  {tok.position:04d}  {tok.type:<9} {tok.value}")


def cmd_run(path, debug: bool = False, trace: bool = False, max_steps=None):
    sink = ConsoleSink()
    try:
        source = read_source(path)
        interp = Interpreter(
            output=sink,
            source_name=os.path.basename(path),
            max_steps=max_steps,
            trace=trace,
        )
        ok = interp.run(source)
    except Exception as e:
        sink.end_line()
        if debug:
            traceback.print_exc()
        else:
            print(str(e))
        sys.exit(1)

    sink.end_line()
    if not ok:
        sys.exit(1)


def _count_braces_delta(line: str) -> int:
    # Minimal brace balancer for REPL multiline input.
    # Ignores braces inside quotes and after a "\" comment.
    delta = 0
    quote = None
    for ch in line:
        if quote is not None:
            if ch == quote:
                quote = None
            continue
        if ch == "\\":
            break
        if ch in "'\"`":
            quote = ch
        elif ch == "{":
            delta += 1
        elif ch == "}":
            delta -= 1
    return delta


def cmd_repl(debug: bool = False, trace: bool = False):
    sink = ConsoleSink()
    interp = Interpreter(output=sink, source_name="<stdin>", trace=trace)

    print("LDRX REPL. Type :q to quit.")

    buffer_lines = []
    brace_depth = 0
    while True:
        prompt = "ldrx> " if not buffer_lines else "...> "
        try:
            line = input(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            break

        stripped = line.strip()
        if not buffer_lines and stripped in (":q", ":quit", "quit", "exit"):
            break

        if not stripped and brace_depth == 0 and not buffer_lines:
            continue

        buffer_lines.append(line)
        brace_depth += _count_braces_delta(line)

        # Wait for block completion if braces aren't balanced yet.
        if brace_depth > 0:
            continue

        source = "\n".join(buffer_lines) + "\n"
        buffer_lines = []
        brace_depth = 0

        try:
            # First, try parsing as a normal program (statements).
            try:
                mark = interp.load(source)
            except LdrxSyntaxError as parse_err:
                # If that fails, try it as a single expression and auto-print it.
                try:
                    mark = interp.load_expression(source)
                except LdrxSyntaxError:
                    interp.report(parse_err)
                    continue

            interp.resume(mark)
            sink.end_line()
        except Exception as e:
            sink.end_line()
            if debug:
                traceback.print_exc()
            else:
                print(str(e))


USAGE = """Usage:
  python cli.py run <file.ldrx> [--trace] [--max-steps N]
  python cli.py parse <file.ldrx>
  python cli.py tokens <file.ldrx>
  python cli.py repl [--trace]
  (optional) --debug to show Python traceback"""


def _pop_flag(argv, flag):
    if flag in argv:
        argv.remove(flag)
        return True
    return False


def _pop_option(argv, option):
    if option not in argv:
        return None
    i = argv.index(option)
    if i + 1 >= len(argv):
        print(f"{option} expects a value")
        sys.exit(1)
    value = argv[i + 1]
    del argv[i:i + 2]
    try:
        return int(value)
    except ValueError:
        print(f"{option} expects an integer, got {value}")
        sys.exit(1)


def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)
    debug = _pop_flag(argv, "--debug")
    trace = _pop_flag(argv, "--trace")
    max_steps = _pop_option(argv, "--max-steps")

    if not argv:
        print(USAGE)
        sys.exit(1)

    cmd = argv[0]

    if cmd == "repl":
        if len(argv) != 1:
            print(USAGE)
            sys.exit(1)
        cmd_repl(debug=debug, trace=trace)
        return

    if cmd not in ("run", "parse", "tokens"):
        print(f"Unknown command: {cmd}")
        sys.exit(1)

    if len(argv) != 2:
        print(USAGE)
        sys.exit(1)

    path = argv[1]
    if cmd == "run":
        cmd_run(path, debug=debug, trace=trace, max_steps=max_steps)
    elif cmd == "parse":
        cmd_parse(path, debug=debug)
    else:
        cmd_tokens(path, debug=debug)


if __name__ == "__main__":
    main()
