from ast_nodes import (
    Node,
    ROOT, BODY, CALL, IF, GET, WHILE, STORE, ARGLIST, STRING_LIT, NUMBER_LIT,
    RETURN, OUTPUT, INPUT, REMOVE, FUNCTION, OPERATOR, PASS,
)
from errors import LdrxSyntaxError, ERROR_INTERPRETER, ERROR_SYNTAX
from lexer import tokenize


# Lower binds tighter. Anything missing here (** == != >= && ||) falls into the loosest group.
PRECEDENCE = {
    "/": 0, "*": 0, "%": 0, "^": 0,
    "+": 1, "-": 1,
    "<": 2, ">": 2, "<=": 2,
    "&": 3, "|": 3,
}
LOOSEST = 4
TOP_THRESHOLD = 0xF

KEYWORD_TAGS = {
    "if": IF,
    "while": WHILE,
    "print": OUTPUT,
    "return": RETURN,
    "rem": REMOVE,
    "ask": INPUT,
}


def priority(operator):
    return PRECEDENCE.get(operator, LOOSEST)


class Parser:
    def __init__(self, tokens, root=None):
        self.tokens = tokens
        self.pos = 0
        self.root = root if root is not None else Node("root", ROOT)
        self.current_body = self.root
        # statements already on the root belong to earlier parses
        self.start = len(self.root.children)

    @property
    def current_token(self):
        # value parsing may step past EOF; keep reporting EOF from there
        if self.pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[self.pos]

    def error_here(self, kind=ERROR_SYNTAX, text=None):
        tok = self.current_token
        raise LdrxSyntaxError(kind, tok.value if text is None else text, tok.position)

    # ---------- TOP LEVEL ----------
    def parse(self):
        while True:
            tok = self.current_token

            if tok.type == "EOF":
                break

            if tok.type == "SEMICOLON":
                self.current_body.push(Node(";", PASS, tok.position))
                self.pos += 1
                continue

            if tok.type == "KEYWORD":
                self.keyword_statement()
            elif tok.type == "NAME":
                self.name_statement()
            else:
                self.error_here()

        return self.root

    def parse_expression(self):
        """Parse source that holds exactly one expression (optionally followed by ';')."""
        expr = self.expr()
        while self.current_token.type == "SEMICOLON":
            self.pos += 1
        if expr is None or self.current_token.type != "EOF":
            self.error_here()
        return expr

    # ---------- STATEMENTS ----------
    def keyword_statement(self):
        tok = self.current_token
        keyword = tok.value
        self.pos += 1
        after_keyword = self.pos

        if keyword in ("if", "while", "print", "return"):
            node = Node(keyword, KEYWORD_TAGS[keyword], tok.position)
            operand = self.expr()
            if operand is None:
                self.pos = after_keyword
            node.push(operand)
            self.current_body.push(node)

        elif keyword == "else":
            self.else_clause(after_keyword)

        elif keyword in ("rem", "ask"):
            name_tok = self.current_token
            if name_tok.type != "NAME":
                self.error_here()
            self.current_body.push(Node(name_tok.value, KEYWORD_TAGS[keyword], name_tok.position))
            self.pos += 1

        elif keyword == "fn":
            self.func_def()

        elif keyword == "{":
            floor = self.start if self.current_body is self.root else 0
            if len(self.current_body.children) <= floor:
                self.error_here(text=keyword)
            body = Node("body", BODY, tok.position)
            self.current_body.children[-1].push(body)
            self.current_body = body

        elif keyword == "}":
            if self.current_body is self.root or self.current_body.parent is self.root:
                self.error_here(text=keyword)
            self.current_body = self.current_body.parent.parent

        else:
            self.error_here(ERROR_INTERPRETER, keyword)

    def else_clause(self, after_keyword):
        owner = self.current_body.parent
        if owner is None or owner.tag != IF:
            self.error_here()

        body = Node("body", BODY, self.current_token.position)
        condition = self.expr()
        if condition is None:
            self.pos = after_keyword
            condition = Node("1", NUMBER_LIT)

        owner.push(condition)
        owner.push(body)
        self.current_body = body

    def func_def(self):
        name_tok = self.current_token
        if name_tok.type != "NAME":
            self.error_here()
        self.pos += 1

        if self.current_token.type != "OPEN":
            self.error_here()
        self.pos += 1

        params = Node("arg", ARGLIST, name_tok.position)
        if self.current_token.type == "CLOSE":
            self.pos += 1
        else:
            while True:
                param = self.current_token
                if param.type != "NAME":
                    self.error_here()
                params.push(Node(param.value, STORE, param.position))
                self.pos += 1

                if self.current_token.type == "COMMA":
                    self.pos += 1
                    continue
                if self.current_token.type == "CLOSE":
                    self.pos += 1
                    break
                self.error_here()

        fn = Node(name_tok.value, FUNCTION, name_tok.position)
        fn.push(params)
        self.current_body.push(fn)

    def name_statement(self):
        node = self.call_or_get()
        if node is None:
            self.error_here()

        if node.tag == CALL:
            self.current_body.push(node)
            return

        # a bare name only makes sense as the target of "name: value"
        if self.current_token.type != "ASSIGN":
            self.error_here()
        self.pos += 1
        after_assign = self.pos

        node.tag = STORE
        value = self.expr()
        if value is None:
            self.pos = after_assign
        node.push(value)
        self.current_body.push(node)

    # ---------- EXPRESSIONS ----------
    def call_or_get(self):
        name_tok = self.current_token
        self.pos += 1

        if self.current_token.type != "OPEN":
            return Node(name_tok.value, GET, name_tok.position)
        self.pos += 1

        args = Node("arg", ARGLIST, name_tok.position)
        if self.current_token.type == "CLOSE":
            self.pos += 1
        else:
            while True:
                arg = self.expr()
                if arg is None:
                    return None
                args.push(arg)

                if self.current_token.type == "COMMA":
                    self.pos += 1
                    continue
                if self.current_token.type == "CLOSE":
                    self.pos += 1
                    break
                return None

        call = Node(name_tok.value, CALL, name_tok.position)
        call.push(args)
        return call

    def value(self):
        tok = self.current_token

        if tok.type == "NAME":
            return self.call_or_get()

        # the token is consumed even when it is not a value; statement callers rewind
        self.pos += 1
        if tok.type == "STRING":
            return Node(tok.value, STRING_LIT, tok.position)
        if tok.type == "NUMBER":
            return Node(tok.value, NUMBER_LIT, tok.position)
        return None

    def expr(self, threshold=TOP_THRESHOLD):
        left = self.value()
        if left is None:
            return None

        while self.current_token.type == "OPERATOR":
            tok = self.current_token
            group = priority(tok.value)
            if group >= threshold:
                break
            self.pos += 1

            right = self.expr(group)
            if right is None:
                return None

            op = Node(tok.value, OPERATOR, tok.position)
            op.push(left)
            op.push(right)
            left = op

        return left


def parse(source, root=None):
    return Parser(tokenize(source), root=root).parse()
