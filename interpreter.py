import math
import sys
from decimal import Decimal

from ast_nodes import (
    Node,
    ROOT, BODY, CALL, IF, GET, WHILE, STORE, STRING_LIT, NUMBER_LIT,
    RETURN, OUTPUT, INPUT, REMOVE, FUNCTION, OPERATOR,
)
from errors import LdrxError, LdrxRuntimeError, LdrxSyntaxError
from lexer import tokenize
from memory import Memory, UNDEFINED, NULL
from parser import Parser


# ---------- values ----------

# integers beyond this lose precision as doubles, so they stay floats
SAFE_INTEGER = 2 ** 53


def normalize(number):
    if isinstance(number, int) and not isinstance(number, bool):
        return number if abs(number) < SAFE_INTEGER else float(number)
    if (isinstance(number, float) and math.isfinite(number)
            and number.is_integer() and abs(number) < SAFE_INTEGER):
        return int(number)
    return number


def format_number(number) -> str:
    """Shortest round-trip digits; exponent form only outside [1e-6, 1e21)."""
    if isinstance(number, int) or not math.isfinite(number):
        return str(number)
    text = repr(number)
    if "e" not in text:
        return text
    if 1e-6 <= abs(number) < 1e21:
        return format(Decimal(text), "f")
    mantissa, exponent = text.split("e")
    return f"{mantissa}e{int(exponent):+d}"


def parse_number(text):
    try:
        return normalize(float(text))
    except (TypeError, ValueError):
        return 0


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value):
    if is_number(value):
        return value
    if isinstance(value, str):
        s = value.strip()
        if s == "":
            return 0
        return normalize(float(s))
    raise ValueError(f"cannot convert {type(value).__name__} to number")


def to_int32(value):
    n = int(to_number(value)) & 0xFFFFFFFF
    if n >= 0x80000000:
        n -= 0x100000000
    return n


def is_truthy(value) -> bool:
    if isinstance(value, Node):
        return True
    return bool(value)


def format_value(value) -> str:
    if isinstance(value, Node):
        return "[function]"
    if is_number(value):
        return format_number(normalize(value))
    return str(value)


def loose_equals(a, b) -> bool:
    if isinstance(a, Node) or isinstance(b, Node):
        return a is b
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    try:
        return to_number(a) == to_number(b)
    except ValueError:
        return False


def apply_operator(op, a, b):
    if op == "+":
        if is_number(a) and is_number(b):
            return a + b
        return format_value(a) + format_value(b)

    if op in ("-", "*", "/", "%", "**"):
        x = to_number(a)
        y = to_number(b)
        if op == "-":
            return x - y
        if op == "*":
            return x * y
        if op == "/":
            return x / y
        if op == "%":
            return math.fmod(x, y)
        return math.pow(x, y)

    if op == "^":
        return to_int32(a) ^ to_int32(b)
    if op == "&":
        return to_int32(a) & to_int32(b)
    if op == "|":
        return to_int32(a) | to_int32(b)

    if op in ("<", ">", "<=", ">="):
        if not (isinstance(a, str) and isinstance(b, str)):
            a = to_number(a)
            b = to_number(b)
        if op == "<":
            return int(a < b)
        if op == ">":
            return int(a > b)
        if op == "<=":
            return int(a <= b)
        return int(a >= b)

    if op == "==":
        return int(loose_equals(a, b))
    if op == "!=":
        return int(not loose_equals(a, b))

    if op == "&&":
        return int(is_truthy(a) and is_truthy(b))
    if op == "||":
        return int(is_truthy(a) or is_truthy(b))

    raise ValueError(f"Unknown operator: {op}")


class Evaluated:
    """An expression value plus the parameter list when the value is a function body."""

    __slots__ = ("value", "params")

    def __init__(self, value, params=None):
        self.value = value
        self.params = params


# ---------- output sinks ----------

class OutputSink:
    def append(self, text):
        raise NotImplementedError

    def append_error(self, text):
        self.append(text)


class StdoutSink(OutputSink):
    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self.pending_line = False  # something was written since the last newline

    def write(self, text):
        if not text:
            return
        self.stream.write(text)
        self.stream.flush()
        self.pending_line = not text.endswith("\n")

    def append(self, text):
        self.write(text)

    def append_error(self, text):
        if self.pending_line:
            self.write("\n")
        self.write(text + "\n")

    def end_line(self):
        if self.pending_line:
            self.write("\n")


class BufferSink(OutputSink):
    def __init__(self):
        self.parts = []
        self.errors = []

    def append(self, text):
        self.parts.append(text)

    def append_error(self, text):
        self.errors.append(text)
        self.parts.append(text)

    @property
    def text(self) -> str:
        return "".join(self.parts)


# ---------- interpreter ----------

class Interpreter:
    MAX_CALL_DEPTH = 1000
    # python frames used by one nested call, with headroom
    FRAMES_PER_CALL = 16

    def __init__(self, output=None, read_line=None, source_name: str = "",
                 max_call_depth: int | None = None, max_steps: int | None = None, trace: bool = False):
        self.output = output if output is not None else StdoutSink()
        self.read_line = read_line or input
        self.source_name = source_name

        self.max_call_depth = self.MAX_CALL_DEPTH if max_call_depth is None else max_call_depth
        self.max_steps = max_steps  # set to an int to guard against infinite loops
        self.trace_enabled = trace

        self.memory = Memory()
        self.root = Node("root", ROOT)
        self.call_depth = 0
        self.steps = 0

    # ---------- pipeline ----------
    def load(self, source) -> int:
        """Parse `source` onto the persistent root; returns the index of the first new statement."""
        mark = len(self.root.children)
        try:
            Parser(tokenize(source), root=self.root).parse()
        except LdrxSyntaxError:
            del self.root.children[mark:]
            raise
        return mark

    def load_expression(self, source) -> int:
        expr = Parser(tokenize(source)).parse_expression()
        mark = len(self.root.children)
        node = Node("print", OUTPUT, expr.position)
        node.push(expr)
        self.root.push(node)
        return mark

    def resume(self, mark: int = 0) -> bool:
        self.steps = 0
        saved_limit = sys.getrecursionlimit()
        needed = saved_limit + self.max_call_depth * self.FRAMES_PER_CALL
        sys.setrecursionlimit(needed)
        try:
            try:
                self.execute(self.root, start=mark)
            except RecursionError:
                raise LdrxRuntimeError("Max recursion depth exceeded")
        except LdrxRuntimeError as e:
            self.report(e)
            return False
        finally:
            self.call_depth = 0
            sys.setrecursionlimit(saved_limit)
        return True

    def run(self, source) -> bool:
        try:
            mark = self.load(source)
        except LdrxSyntaxError as e:
            self.report(e)
            return False
        return self.resume(mark)

    def report(self, error: LdrxError):
        self.output.append_error(error.format(self.source_name))

    # ---------- evaluator ----------
    def evaluate(self, node):
        return self.evaluate_full(node).value

    def evaluate_full(self, node) -> Evaluated:
        if node is None:
            return Evaluated(0)

        tag = node.tag

        if tag == STRING_LIT:
            return Evaluated(node.text)

        if tag == NUMBER_LIT:
            return Evaluated(parse_number(node.text))

        if tag == GET:
            binding = self.memory.get(node.text, node)
            if binding is None:
                return Evaluated(UNDEFINED)
            return Evaluated(binding.value, binding.params)

        if tag == CALL:
            return Evaluated(self.run_call(node.text, node.child(0), node))

        if tag == BODY:
            result = self.execute(node)
            return Evaluated(NULL if result is None else result)

        if tag == OPERATOR:
            # both sides always run; && and || do not short-circuit
            a = self.evaluate(node.child(0))
            b = self.evaluate(node.child(1))
            try:
                value = apply_operator(node.text, a, b)
            except (ArithmeticError, ValueError, TypeError):
                return Evaluated(0)
            if not value or (isinstance(value, float) and not math.isfinite(value)):
                return Evaluated(0)
            return Evaluated(normalize(value))

        return Evaluated(0)

    # ---------- executor ----------
    def execute(self, body, start: int = 0):
        """Run the statements of `body`; returns the value of a `return`, or None."""
        if not isinstance(body, Node):
            return None

        index = start
        while index < len(body.children):
            result = self.execute_statement(body.children[index])
            if result is not None:
                return result
            index += 1

        return None

    def execute_statement(self, node):
        self._tick(node)
        tag = node.tag

        if tag == STORE:
            value = self.evaluate_full(node.child(0)) if node.children else Evaluated(NULL)
            self.memory.store(node.text, value.value, value.params, node.parent)
            return None

        if tag == FUNCTION:
            self.memory.store(node.text, node.child(1), node.child(0), node.parent)
            return None

        if tag == REMOVE:
            self.memory.remove(node.text, node.parent)
            return None

        if tag == INPUT:
            self.memory.store(node.text, self.read_input(), None, node.parent)
            return None

        if tag == CALL:
            self.run_call(node.text, node.child(0), node)
            return None

        if tag == IF:
            # children: cond0, body0, cond1, body1, ...
            for i in range(0, len(node.children), 2):
                if is_truthy(self.evaluate(node.children[i])):
                    return self.execute(node.child(i + 1))
            return None

        if tag == WHILE:
            while is_truthy(self.evaluate(node.child(0))):
                result = self.execute(node.child(1))
                if result is not None:
                    return result
                self._tick(node)
            return None

        if tag == OUTPUT:
            self.output.append(format_value(self.evaluate(node.child(0))))
            return None

        if tag == RETURN:
            return self.evaluate(node.child(0))

        # PASS and anything unknown
        return None

    def run_call(self, name, args, access):
        binding = self.memory.get(name, access)
        if binding is None:
            return UNDEFINED

        body = binding.value
        if not isinstance(body, Node):
            return NULL

        if self.call_depth >= self.max_call_depth:
            raise LdrxRuntimeError(f"Max call depth exceeded ({self.max_call_depth})")

        # parameters share the body's single static scope with its locals
        if binding.params is not None:
            for i, param in enumerate(binding.params.children):
                arg = args.child(i) if args is not None else None
                self.memory.store(param.text, self.evaluate(arg), None, body)

        self.call_depth += 1
        try:
            result = self.execute(body)
        finally:
            self.call_depth -= 1

        return NULL if result is None else result

    def read_input(self):
        try:
            return self.read_line()
        except EOFError:
            return NULL

    def _tick(self, node):
        if self.trace_enabled:
            pos = node.position if node.position is not None else 0
            print(f"TRACE char={pos:04d} {node.tag} {node.text!r} memory={len(self.memory)}", file=sys.stderr)

        if self.max_steps is not None:
            self.steps += 1
            if self.steps > self.max_steps:
                raise LdrxRuntimeError("Step limit exceeded (possible infinite loop)")
